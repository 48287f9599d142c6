"""
HTTP middleware for StreamPanel.
"""

from .cors import CORSMiddleware

__all__ = ["CORSMiddleware"]
