"""
Configuration management for StreamPanel.

Handles loading, validation, and access to application configuration.
"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field

# Global configuration instance
_config: Optional["StreamPanelConfig"] = None


class ServerConfig(BaseModel):
    """Server configuration."""
    host: str = "0.0.0.0"
    port: int = 8080
    debug: bool = False
    log_level: str = "INFO"


class DatabaseConfig(BaseModel):
    """Database configuration."""
    url: str = "sqlite:///./streampanel.db"
    echo: bool = False


class PanelConfig(BaseModel):
    """
    Defaults for the panel settings table.

    Rows stored in ``panel_settings`` take precedence over these values.
    """
    server_name: str = "StreamPanel"
    server_domain: str = ""
    server_ip: str = ""
    http_port: int = 80
    https_port: int = 443
    rtmp_port: int = 1935
    ssl_enabled: bool = False
    timezone: str = "Europe/Zagreb"


class StreamingConfig(BaseModel):
    """Stream URL resolution settings."""
    hosted_preview: bool = False  # Route HLS playback through the edge proxy path
    edge_functions_url: str = ""


class ProxyConfig(BaseModel):
    """HLS proxy settings."""
    user_agent: str = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
    timeout: float = 15.0
    rewrite_manifest_urls: bool = True


class ImportsConfig(BaseModel):
    """M3U import settings."""
    fetch_timeout: float = 30.0
    batch_size: int = 100
    max_reported_errors: int = 10


class EPGConfig(BaseModel):
    """XMLTV import settings."""
    fetch_timeout: float = 60.0
    batch_size: int = 100
    past_hours: int = 24
    future_days: int = 7
    strict_dates: bool = False  # Drop records with unparseable timestamps instead of using "now"


class XtreamConfig(BaseModel):
    """Xtream-Codes API settings."""
    message: str = "Welcome to StreamPanel"
    epg_language: str = "hr"
    allowed_output_formats: list[str] = Field(default_factory=lambda: ["m3u8", "ts", "rtmp"])


class StalkerConfig(BaseModel):
    """Stalker portal settings."""
    page_size: int = 50
    portal_name: str = "StreamPanel Portal"
    tariff_plan: str = "Premium"
    enforce_link_authorization: bool = False


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"
    file: str = "logs/streampanel.log"
    max_size: str = "10MB"
    backup_count: int = 5
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class StreamPanelConfig(BaseModel):
    """Main StreamPanel configuration."""
    server: ServerConfig = Field(default_factory=ServerConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    panel: PanelConfig = Field(default_factory=PanelConfig)
    streaming: StreamingConfig = Field(default_factory=StreamingConfig)
    proxy: ProxyConfig = Field(default_factory=ProxyConfig)
    imports: ImportsConfig = Field(default_factory=ImportsConfig)
    epg: EPGConfig = Field(default_factory=EPGConfig)
    xtream: XtreamConfig = Field(default_factory=XtreamConfig)
    stalker: StalkerConfig = Field(default_factory=StalkerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(config_path: Optional[str] = None) -> StreamPanelConfig:
    """
    Load configuration from file.

    Args:
        config_path: Path to config file. Defaults to config.yaml in project root.

    Returns:
        Loaded and validated configuration.
    """
    global _config

    if config_path is None:
        possible_paths = [
            Path("config.yaml"),
            Path(__file__).parent.parent / "config.yaml",
        ]
        for path in possible_paths:
            if path.exists():
                config_path = str(path)
                break

    config_data: dict[str, Any] = {}

    if config_path and Path(config_path).exists():
        with open(config_path) as f:
            config_data = yaml.safe_load(f) or {}

    # Apply environment variable overrides
    env_overrides = _get_env_overrides()
    _deep_merge(config_data, env_overrides)

    _config = StreamPanelConfig(**config_data)
    return _config


def get_config() -> StreamPanelConfig:
    """
    Get the current configuration.

    Returns:
        Current configuration (loads default if not yet loaded).
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> StreamPanelConfig:
    """Reload configuration from disk and the environment."""
    global _config
    _config = None
    return load_config()


def _get_env_overrides() -> dict[str, Any]:
    """Get configuration overrides from environment variables."""
    overrides: dict[str, Any] = {}

    env_map = {
        "STREAMPANEL_HOST": ("server", "host"),
        "STREAMPANEL_PORT": ("server", "port"),
        "STREAMPANEL_DEBUG": ("server", "debug"),
        "STREAMPANEL_DATABASE_URL": ("database", "url"),
        "STREAMPANEL_SERVER_DOMAIN": ("panel", "server_domain"),
        "STREAMPANEL_SERVER_IP": ("panel", "server_ip"),
        "STREAMPANEL_HTTP_PORT": ("panel", "http_port"),
        "STREAMPANEL_SSL_ENABLED": ("panel", "ssl_enabled"),
        "STREAMPANEL_HOSTED_PREVIEW": ("streaming", "hosted_preview"),
        "STREAMPANEL_EDGE_FUNCTIONS_URL": ("streaming", "edge_functions_url"),
        "STREAMPANEL_LOG_LEVEL": ("logging", "level"),
    }

    for env_var, path in env_map.items():
        value = os.environ.get(env_var)
        if value is not None:
            _set_nested(overrides, path, _parse_env_value(value))

    return overrides


def _parse_env_value(value: str) -> Any:
    """Parse environment variable value to appropriate type."""
    if value.lower() in ("true", "yes"):
        return True
    if value.lower() in ("false", "no"):
        return False

    try:
        return int(value)
    except ValueError:
        pass

    try:
        return float(value)
    except ValueError:
        pass

    return value


def _set_nested(d: dict[str, Any], path: tuple[str, ...], value: Any) -> None:
    """Set a nested dictionary value from a path tuple."""
    for key in path[:-1]:
        d = d.setdefault(key, {})
    d[path[-1]] = value


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> None:
    """Deep merge override into base dictionary."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
