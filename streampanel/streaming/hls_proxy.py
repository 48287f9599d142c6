"""
Same-origin HLS/DASH proxy.

Resolves a proxy path onto a catalog stream, builds the upstream URL for the
requested file, fetches it and hands the bytes back with a content type and
cache policy chosen from the file extension. Manifests are passed through
line by line, with absolute URIs under the upstream directory made relative
so that child requests come back through the proxy.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urljoin, urlsplit

from sqlalchemy import select
from sqlalchemy.orm import Session

from streampanel.auth import find_user_by_credentials
from streampanel.config import get_config
from streampanel.database.models import Stream
from streampanel.exceptions import StreamPanelError, UpstreamFetchError
from streampanel.utils.http import FetchResult, fetch_url
from streampanel.utils.timeutils import utcnow

logger = logging.getLogger(__name__)

HLS_MANIFEST = "index.m3u8"
DASH_MANIFEST = "manifest.mpd"

CONTENT_TYPES = {
    ".mpd": "application/dash+xml",
    ".m4s": "video/iso.segment",
    ".m4a": "audio/mp4",
    ".m4v": "video/mp4",
    ".mp4": "video/mp4",
    ".m3u8": "application/vnd.apple.mpegurl",
    ".ts": "video/mp2t",
    ".aac": "audio/aac",
    ".mp3": "audio/mpeg",
    ".vtt": "text/vtt",
    ".srt": "text/plain",
}

SEGMENT_EXTENSIONS = (".ts", ".m4s", ".mp4")
MANIFEST_EXTENSIONS = (".m3u8", ".mpd")

HREF_REDIRECT_PATTERN = re.compile(r"""href=["']?([^"'\s>]+\.m3u8[^"'\s>]*)["']?""", re.IGNORECASE)
META_REFRESH_PATTERN = re.compile(r"""content=["'][^"']*url=([^"'\s>]+)["']""", re.IGNORECASE)
URI_ATTRIBUTE_PATTERN = re.compile(r'URI="([^"]+)"')


class ProxyError(StreamPanelError):
    """A proxy failure that maps directly onto an HTTP status."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(message)


@dataclass
class ProxyTarget:
    stream: Stream
    file_path: str
    username: Optional[str] = None


@dataclass
class ProxyResponse:
    content: bytes
    media_type: str
    cache_control: str


def _path_only(value: str) -> str:
    return urlsplit(value).path.lower() if "://" in value else value.split("?", 1)[0].lower()


def is_manifest_url(url: str) -> bool:
    return _path_only(url).endswith(MANIFEST_EXTENSIONS)


def default_file(input_url: str) -> str:
    """File requested when the proxy path names only a stream."""
    lower = input_url.lower()
    if is_manifest_url(input_url):
        return ""
    if ".mpd" in lower or "dash" in lower:
        return DASH_MANIFEST
    return HLS_MANIFEST


def _base_directory(url: str) -> str:
    return url[: url.rfind("/") + 1]


def build_target_url(input_url: str, file_path: str) -> str:
    """
    Upstream URL for ``file_path`` relative to a stream's source URL.

    - manifest source, default file: the source itself
    - source ending in ``/``: append
    - source that is a manifest or segment file: replace its filename
    - anything else: join with ``/``
    """
    input_url = input_url.strip()
    file_path = file_path or default_file(input_url)
    lower = _path_only(input_url)

    if lower.endswith(MANIFEST_EXTENSIONS):
        if not file_path or file_path in (HLS_MANIFEST, DASH_MANIFEST):
            return input_url
        return f"{_base_directory(input_url)}{file_path}"
    if input_url.endswith("/"):
        return f"{input_url}{file_path}"
    if lower.endswith((".ts", ".m4s")):
        return f"{_base_directory(input_url)}{file_path}"
    return f"{input_url}/{file_path}" if file_path else input_url


def content_type_for(path: str, upstream: str = "") -> str:
    lower = _path_only(path)
    for ext, content_type in CONTENT_TYPES.items():
        if lower.endswith(ext):
            return content_type
    return upstream or "application/octet-stream"


def cache_control_for(path: str) -> str:
    """Segments may be cached for a day; manifests and everything else never."""
    if _path_only(path).endswith(SEGMENT_EXTENSIONS):
        return "max-age=86400"
    return "no-cache"


def extract_redirect_url(html: str) -> Optional[str]:
    """Find the stream URL on an HTML redirect page."""
    match = HREF_REDIRECT_PATTERN.search(html)
    if match:
        return match.group(1)
    match = META_REFRESH_PATTERN.search(html)
    if match:
        return match.group(1)
    return None


def rewrite_manifest(text: str, manifest_url: str, make_relative: bool = True) -> str:
    """
    Pass an HLS playlist through line by line.

    When ``make_relative`` is set, absolute URIs (bare lines and ``URI="..."``
    attributes) that live under the manifest's own directory are rewritten
    relative to it. Everything else is left verbatim.
    """
    base = _base_directory(manifest_url)

    def relative(uri: str) -> str:
        if make_relative and base and uri.startswith(base):
            return uri[len(base):]
        return uri

    lines = []
    for line in text.split("\n"):
        stripped = line.strip()
        if not stripped:
            lines.append(line)
        elif stripped.startswith("#"):
            lines.append(URI_ATTRIBUTE_PATTERN.sub(lambda m: f'URI="{relative(m.group(1))}"', line))
        else:
            lines.append(relative(stripped))
    return "\n".join(lines)


class HLSProxy:
    """
    Resolves proxy paths and fetches upstream files.

    Path formats:
        {username}/{password}/{stream_name}/{file_path}
        {stream_name}/{file_path}
    The credentialed form is used only when the first two segments match a
    streaming user.
    """

    def __init__(self, db: Session):
        config = get_config()
        self.db = db
        self.user_agent = config.proxy.user_agent
        self.timeout = config.proxy.timeout
        self.rewrite_manifest_urls = config.proxy.rewrite_manifest_urls

    def _find_stream(self, name: str) -> Optional[Stream]:
        return self.db.scalars(
            select(Stream).where(Stream.name == name).order_by(Stream.created_at).limit(1)
        ).first()

    def resolve(self, path: str) -> ProxyTarget:
        parts = path.strip("/").split("/") if path else []
        if not parts or not parts[0]:
            logger.error(f"[Proxy] Invalid path: {path}")
            raise ProxyError(400, "Invalid stream path")

        username = None
        stream_name, file_parts = parts[0], parts[1:]

        if len(parts) >= 3:
            user = find_user_by_credentials(self.db, parts[0], parts[1])
            if user is not None:
                if user.is_expired(utcnow()):
                    logger.info(f"[Proxy] Account expired for {user.username}")
                    raise ProxyError(403, "Account expired")
                username = user.username
                stream_name, file_parts = parts[2], parts[3:]

        stream = self._find_stream(stream_name)
        if stream is None:
            logger.error(f"[Proxy] Stream not found: {stream_name}")
            raise ProxyError(404, "Stream not found")
        if not stream.input_url:
            logger.error(f"[Proxy] Stream has no input URL: {stream_name}")
            raise ProxyError(400, "Stream has no source URL")

        file_path = "/".join(file_parts)
        if username:
            logger.info(f"[Proxy] Authenticated request: {username}/{stream_name}/{file_path}")
        else:
            logger.info(f"[Proxy] Legacy request: {stream_name}/{file_path}")
        return ProxyTarget(stream=stream, file_path=file_path, username=username)

    @property
    def _headers(self) -> dict[str, str]:
        return {
            "User-Agent": self.user_agent,
            "Accept": "*/*",
            "Accept-Encoding": "identity",
        }

    async def _fetch(self, url: str) -> FetchResult:
        try:
            return await fetch_url(url, timeout=self.timeout, headers=self._headers)
        except UpstreamFetchError as e:
            if e.status_code is not None:
                raise ProxyError(e.status_code, f"Upstream error: {e.status_code}") from e
            if e.timed_out:
                raise ProxyError(504, "Upstream timeout") from e
            raise ProxyError(502, e.message) from e

    async def fetch(self, target: ProxyTarget) -> ProxyResponse:
        input_url = target.stream.input_url.strip()
        file_path = target.file_path or default_file(input_url)
        target_url = build_target_url(input_url, file_path)
        logger.info(f"[Proxy] Fetching: {target_url}")

        result = await self._fetch(target_url)

        if "text/html" in result.content_type:
            redirect_url = extract_redirect_url(result.text)
            if not redirect_url:
                logger.error("[Proxy] Got HTML response but no redirect URL found")
                raise ProxyError(502, "Invalid upstream response")
            redirect_url = urljoin(result.url, redirect_url)
            logger.info(f"[Proxy] Found HTML redirect, following to: {redirect_url}")
            result = await self._fetch(redirect_url)
            target_url = result.url

        name = file_path or target_url
        content_type = content_type_for(name, result.content_type)
        content = result.content

        if _path_only(name).endswith(".m3u8") or _path_only(result.url).endswith(".m3u8"):
            content_type = CONTENT_TYPES[".m3u8"]
            content = rewrite_manifest(
                result.text, result.url, self.rewrite_manifest_urls
            ).encode("utf-8")

        return ProxyResponse(
            content=content,
            media_type=content_type,
            cache_control=cache_control_for(name),
        )
