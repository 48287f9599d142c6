"""
Stream URL resolution.

Computes the outward-facing URLs handed to players: the preview/proxy URL
for a catalog stream, and the credentialed ``/live``, ``/movie`` and
``/series`` URLs used by the Xtream API and the M3U playlist.
"""

import logging
from typing import Optional
from urllib.parse import quote

from streampanel.database.models import InputType, SeriesEpisode, Stream, VodContent
from streampanel.panel_settings import PanelSettings

logger = logging.getLogger(__name__)

EDGE_PROXY_PATH = "/functions/v1/stream-proxy"


def _segment(value: object) -> str:
    return quote(str(value), safe="")


class StreamURLResolver:
    """
    Builds URLs for one request.

    Usage:
        resolver = StreamURLResolver(settings, request.url.scheme, request.url.hostname)
        resolver.resolve(stream.name, stream.input_type, stream.input_url)
        resolver.live_url(username, password, stream)
    """

    def __init__(
        self,
        settings: PanelSettings,
        request_scheme: str = "http",
        request_host: str = "localhost",
    ):
        self.settings = settings
        self.request_scheme = request_scheme or "http"
        self.request_host = request_host or "localhost"

    @property
    def protocol(self) -> str:
        return "https" if self.settings.ssl_enabled else self.request_scheme

    @property
    def domain(self) -> str:
        return self.settings.server_domain or self.request_host

    def resolve(self, stream_name: str, input_type: str, input_url: Optional[str] = None) -> str:
        """
        Preview URL for a stream.

        HLS sources go through the edge proxy when running as a hosted
        preview, otherwise through the self-hosted ``/proxy`` path; every
        other input type is served from ``/live/{name}/playlist.m3u8``.
        """
        name = _segment(stream_name)
        if input_type == InputType.HLS.value:
            if self.settings.hosted_preview and self.settings.edge_functions_url:
                base = self.settings.edge_functions_url.rstrip("/")
                return f"{base}{EDGE_PROXY_PATH}/{name}/index.m3u8"
            return f"{self.protocol}://{self.domain}/proxy/{name}/index.m3u8"
        return f"{self.protocol}://{self.domain}/live/{name}/playlist.m3u8"

    @property
    def player_base_url(self) -> str:
        """``scheme://host:port`` advertised to players."""
        host = self.settings.public_host(self.request_host)
        return f"{self.settings.protocol}://{host}:{self.settings.public_port()}"

    def live_url(self, username: str, password: str, stream: Stream, output: str = "m3u8") -> str:
        base = self.player_base_url
        credentials = f"{_segment(username)}/{_segment(password)}"
        if stream.input_type == InputType.HLS.value:
            return f"{base}/proxy/{credentials}/{_segment(stream.name)}/index.m3u8"
        ext = ".ts" if output == "ts" else ".m3u8"
        return f"{base}/live/{credentials}/{stream.id}{ext}"

    def movie_url(self, username: str, password: str, vod: VodContent) -> str:
        ext = vod.container_extension or "mp4"
        return f"{self.player_base_url}/movie/{_segment(username)}/{_segment(password)}/{vod.id}.{ext}"

    def episode_url(self, username: str, password: str, episode: SeriesEpisode) -> str:
        ext = episode.container_extension or "mp4"
        return f"{self.player_base_url}/series/{_segment(username)}/{_segment(password)}/{episode.id}.{ext}"


def resolve_stream_url(
    stream_name: str,
    input_type: str,
    input_url: Optional[str],
    settings: PanelSettings,
    request_scheme: str = "http",
    request_host: str = "localhost",
) -> str:
    return StreamURLResolver(settings, request_scheme, request_host).resolve(
        stream_name, input_type, input_url
    )
