"""
Test Fixtures

Catalog factories and canned upstream responses.
"""

from .factories import (
    CategoryFactory,
    EPGFactory,
    SeriesFactory,
    StreamFactory,
    StreamingUserFactory,
    VodFactory,
    panel_setting,
    save,
)

__all__ = [
    "CategoryFactory",
    "EPGFactory",
    "SeriesFactory",
    "StreamFactory",
    "StreamingUserFactory",
    "VodFactory",
    "panel_setting",
    "save",
]
