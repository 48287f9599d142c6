"""
Effective panel settings.

The ``panel_settings`` table is read once per request and layered over the
``panel`` section of the configuration file.
"""

import logging
from typing import Optional

from pydantic import BaseModel, ConfigDict, ValidationError
from sqlalchemy import select
from sqlalchemy.orm import Session

from streampanel.config import get_config
from streampanel.database.models import PanelSetting

logger = logging.getLogger(__name__)


class PanelSettings(BaseModel):
    """Immutable snapshot of the settings a request needs."""

    model_config = ConfigDict(frozen=True)

    server_name: str = "StreamPanel"
    server_domain: str = ""
    server_ip: str = ""
    http_port: int = 80
    https_port: int = 443
    rtmp_port: int = 1935
    ssl_enabled: bool = False
    timezone: str = "Europe/Zagreb"

    # Streaming / resolver
    hosted_preview: bool = False
    edge_functions_url: str = ""

    @property
    def protocol(self) -> str:
        return "https" if self.ssl_enabled else "http"

    def public_host(self, request_host: str) -> str:
        """Host clients should connect to: domain, then IP, then the request host."""
        return self.server_domain or self.server_ip or request_host

    def public_port(self) -> int:
        return self.https_port if self.ssl_enabled else self.http_port


def _coerce_bool(value: Optional[str]) -> bool:
    return str(value).strip().lower() in ("true", "1", "yes", "on")


def load_panel_settings(db: Session) -> PanelSettings:
    """Build a PanelSettings snapshot from config defaults and stored rows."""
    config = get_config()
    values: dict = config.panel.model_dump()
    values["hosted_preview"] = config.streaming.hosted_preview
    values["edge_functions_url"] = config.streaming.edge_functions_url

    for row in db.scalars(select(PanelSetting)):
        if row.key not in PanelSettings.model_fields or row.value in (None, ""):
            continue
        if row.key in ("ssl_enabled", "hosted_preview"):
            values[row.key] = _coerce_bool(row.value)
        else:
            values[row.key] = row.value

    try:
        return PanelSettings(**values)
    except ValidationError as e:
        logger.warning(f"Ignoring invalid panel settings: {e}")
        return PanelSettings(
            **config.panel.model_dump(),
            hosted_preview=config.streaming.hosted_preview,
            edge_functions_url=config.streaming.edge_functions_url,
        )
