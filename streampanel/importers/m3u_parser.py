"""M3U playlist parsing and emission"""

import logging
import re
from dataclasses import asdict, dataclass
from typing import Any, Iterable, Mapping, Optional

from ..database.models import InputType

logger = logging.getLogger(__name__)


@dataclass
class M3UEntry:
    """A single playlist entry. Transient: mapped onto Stream rows on import."""

    name: str
    url: str
    tvg_id: Optional[str] = None
    tvg_name: Optional[str] = None
    tvg_logo: Optional[str] = None
    group_title: Optional[str] = None
    channel_number: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class M3UParser:
    """
    Line-oriented ``#EXTM3U`` parser.

    Attributes are matched independently so their order on the ``#EXTINF``
    line does not matter. The display name is whatever follows the last
    comma, so a comma inside a quoted attribute value is only safe when the
    name itself contains none.
    """

    HEADER = "#EXTM3U"
    EXTINF = "#EXTINF:"

    TVG_ID_PATTERN = re.compile(r'tvg-id="([^"]*)"', re.IGNORECASE)
    TVG_NAME_PATTERN = re.compile(r'tvg-name="([^"]*)"', re.IGNORECASE)
    TVG_LOGO_PATTERN = re.compile(r'tvg-logo="([^"]*)"', re.IGNORECASE)
    GROUP_TITLE_PATTERN = re.compile(r'group-title="([^"]*)"', re.IGNORECASE)
    TVG_CHNO_PATTERN = re.compile(r'tvg-chno="([^"]*)"', re.IGNORECASE)
    LEADING_INT_PATTERN = re.compile(r"^\s*([+-]?\d+)")

    @classmethod
    def _attr(cls, pattern: re.Pattern, line: str) -> Optional[str]:
        match = pattern.search(line)
        if match and match.group(1):
            return match.group(1)
        return None

    @classmethod
    def _channel_number(cls, value: Optional[str]) -> Optional[int]:
        if not value:
            return None
        match = cls.LEADING_INT_PATTERN.match(value)
        if not match:
            return None
        number = int(match.group(1))
        return number or None

    @classmethod
    def parse_extinf(cls, line: str) -> dict[str, Any]:
        """Parse the metadata of one ``#EXTINF:`` line (URL not included)."""
        extinf = line[len(cls.EXTINF):]

        tvg_name = cls._attr(cls.TVG_NAME_PATTERN, extinf)
        comma = extinf.rfind(",")
        display_name = extinf[comma + 1:].strip() if comma != -1 else ""

        return {
            "name": display_name or tvg_name or "Unknown",
            "tvg_id": cls._attr(cls.TVG_ID_PATTERN, extinf),
            "tvg_name": tvg_name,
            "tvg_logo": cls._attr(cls.TVG_LOGO_PATTERN, extinf),
            "group_title": cls._attr(cls.GROUP_TITLE_PATTERN, extinf),
            "channel_number": cls._channel_number(cls._attr(cls.TVG_CHNO_PATTERN, extinf)),
        }

    @classmethod
    def parse(cls, content: str) -> list[M3UEntry]:
        """
        Parse playlist text into entries.

        A URL line without a preceding ``#EXTINF`` is dropped, and a trailing
        ``#EXTINF`` with no URL after it yields nothing.
        """
        entries: list[M3UEntry] = []
        pending: Optional[dict[str, Any]] = None

        for raw_line in content.splitlines():
            line = raw_line.strip()
            if not line or line.startswith(cls.HEADER):
                continue

            if line.startswith(cls.EXTINF):
                pending = cls.parse_extinf(line)
            elif not line.startswith("#"):
                if pending is None:
                    logger.debug(f"Dropping URL line without #EXTINF: {line}")
                    continue
                entries.append(M3UEntry(url=line, **pending))
                pending = None

        return entries


def parse_m3u(content: str) -> list[M3UEntry]:
    return M3UParser.parse(content)


def detect_input_type(url: str) -> str:
    """
    Classify a source URL. Checks run in order and the first match wins,
    so ``http://host/a@b/x.m3u8`` is ``udp``.
    """
    lower = url.lower()
    if "rtmp://" in lower:
        return InputType.RTMP.value
    if "rtsp://" in lower:
        return InputType.RTSP.value
    if "srt://" in lower:
        return InputType.SRT.value
    if "udp://" in lower or "@" in lower:
        return InputType.UDP.value
    if ".mpd" in lower or "/dash" in lower:
        return InputType.MPD.value
    if ".m3u8" in lower or "/hls/" in lower:
        return InputType.HLS.value
    return InputType.HLS.value


def _quote(value: Any) -> str:
    return str(value).replace('"', "'")


def format_extinf(name: str, attributes: Optional[Mapping[str, Any]] = None, duration: int = -1) -> str:
    """
    Build an ``#EXTINF`` line.

    Attributes are written in mapping order; ``None`` values are skipped,
    empty strings are kept.
    """
    parts = [f"#EXTINF:{duration}"]
    for key, value in (attributes or {}).items():
        if value is None:
            continue
        parts.append(f'{key}="{_quote(value)}"')
    return " ".join(parts) + f",{name}"


def emit_m3u(entries: Iterable[M3UEntry], extended: bool = True) -> str:
    """Serialize entries back to playlist text."""
    lines = [M3UParser.HEADER]
    for entry in entries:
        attributes = None
        if extended:
            attributes = {
                "tvg-id": entry.tvg_id,
                "tvg-name": entry.tvg_name,
                "tvg-logo": entry.tvg_logo,
                "tvg-chno": entry.channel_number,
                "group-title": entry.group_title,
            }
        lines.append(format_extinf(entry.name, attributes))
        lines.append(entry.url)
    return "\n".join(lines) + "\n"
