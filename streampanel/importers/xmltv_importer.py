"""
XMLTV EPG import.

Documents are read with a streaming parser so large guides never build a
full tree. Channels are matched onto catalog streams and programmes inside
the import window are inserted in batches, ignoring rows that already exist
for the same ``(channel_id, start_time)``.
"""

import asyncio
import gzip
import io
import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Iterator, Optional

from sqlalchemy import insert, select, tuple_
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from ..config import get_config
from ..database.models import EPGChannel, EPGProgram, EPGSource, Stream, generate_uuid
from ..exceptions import ImportInputError
from ..utils.http import fetch_url
from ..utils.timeutils import to_naive_utc, utcnow

logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"

XMLTV_DATE_PATTERN = re.compile(
    r"(\d{4})(\d{2})(\d{2})(\d{2})(\d{2})(\d{2})\s*([+-]\d{4})?"
)


@dataclass
class XMLTVChannel:
    id: str
    name: str
    icon: Optional[str] = None


@dataclass
class XMLTVProgramme:
    channel: str
    title: str
    start: datetime
    stop: datetime
    description: Optional[str] = None


@dataclass
class XMLTVDocument:
    channels: list[XMLTVChannel] = field(default_factory=list)
    programmes: list[XMLTVProgramme] = field(default_factory=list)


@dataclass
class XMLTVImportResult:
    channels_found: int = 0
    channels_mapped: int = 0
    programs_imported: int = 0
    errors: list[str] = field(default_factory=list)

    def to_dict(self, max_errors: int = 10) -> dict[str, Any]:
        result: dict[str, Any] = {
            "success": True,
            "channels_found": self.channels_found,
            "channels_mapped": self.channels_mapped,
            "programs_imported": self.programs_imported,
        }
        if self.errors:
            result["errors"] = self.errors[:max_errors]
        return result


def parse_xmltv_date(value: Optional[str]) -> Optional[datetime]:
    """
    Parse ``YYYYMMDDHHMMSS [+-HHMM]`` into a naive UTC datetime.

    A missing offset means UTC. Returns None when the value cannot be parsed.
    """
    if not value:
        return None
    match = XMLTV_DATE_PATTERN.search(value)
    if not match:
        return None

    year, month, day, hour, minute, second, offset = match.groups()
    tz = timezone.utc
    if offset:
        sign = -1 if offset[0] == "-" else 1
        tz = timezone(sign * timedelta(hours=int(offset[1:3]), minutes=int(offset[3:5])))

    try:
        parsed = datetime(
            int(year), int(month), int(day), int(hour), int(minute), int(second), tzinfo=tz
        )
    except ValueError:
        return None
    return to_naive_utc(parsed)


def decompress_if_gzipped(data: bytes, url: str = "") -> bytes:
    """Inflate gzip payloads; ``.gz`` sources that arrive already inflated pass through."""
    if data[:2] == GZIP_MAGIC:
        if url.endswith(".gz"):
            logger.info("[EPG Import] Handling gzipped content")
        return gzip.decompress(data)
    return data


def _text(element: ET.Element, tag: str) -> Optional[str]:
    child = element.find(tag)
    if child is None or child.text is None:
        return None
    text = child.text.strip()
    return text or None


def _iter_elements(data: bytes) -> Iterator[ET.Element]:
    """Yield finished <channel> and <programme> elements, clearing each after use."""
    root: Optional[ET.Element] = None
    for event, element in ET.iterparse(io.BytesIO(data), events=("start", "end")):
        if event == "start":
            if root is None:
                root = element
            continue
        if element.tag in ("channel", "programme"):
            yield element
            element.clear()
            if root is not None:
                root.clear()


def parse_xmltv(data: bytes, strict_dates: bool = False, now: Optional[datetime] = None) -> XMLTVDocument:
    """
    Extract channel and programme records from an XMLTV document.

    Unparseable programme timestamps fall back to ``now`` unless
    ``strict_dates`` is set, in which case the programme is dropped.

    Raises:
        ImportInputError: when the payload is not well-formed XML.
    """
    now = now or utcnow()
    document = XMLTVDocument()
    dropped = 0

    try:
        for element in _iter_elements(data):
            if element.tag == "channel":
                channel_id = element.get("id")
                if not channel_id:
                    continue
                icon = element.find("icon")
                document.channels.append(
                    XMLTVChannel(
                        id=channel_id,
                        name=_text(element, "display-name") or channel_id,
                        icon=icon.get("src") if icon is not None else None,
                    )
                )
                continue

            channel_id = element.get("channel")
            if not channel_id:
                continue
            start = parse_xmltv_date(element.get("start"))
            stop = parse_xmltv_date(element.get("stop"))
            if start is None or stop is None:
                if strict_dates:
                    dropped += 1
                    continue
                start = start or now
                stop = stop or now

            document.programmes.append(
                XMLTVProgramme(
                    channel=channel_id,
                    title=_text(element, "title") or "Unknown",
                    description=_text(element, "desc"),
                    start=start,
                    stop=stop,
                )
            )
    except ET.ParseError as e:
        raise ImportInputError(f"Invalid XMLTV document: {e}") from e

    if dropped:
        logger.warning(f"[EPG Import] Dropped {dropped} programmes with invalid timestamps")
    return document


class XMLTVImporter:
    """Maps XMLTV channels onto streams and loads windowed programmes."""

    def __init__(self, db: Session, batch_size: Optional[int] = None):
        config = get_config()
        self.db = db
        self.batch_size = batch_size or config.epg.batch_size
        self.fetch_timeout = config.epg.fetch_timeout
        self.past_window = timedelta(hours=config.epg.past_hours)
        self.future_window = timedelta(days=config.epg.future_days)
        self.strict_dates = config.epg.strict_dates

    async def fetch_document(self, url: str) -> XMLTVDocument:
        """Download and parse a guide. Raises UpstreamFetchError on failure."""
        logger.info(f"[EPG Import] Starting import from: {url}")
        result = await fetch_url(url, timeout=self.fetch_timeout)
        return await asyncio.to_thread(self.parse_payload, result.content, url)

    def parse_payload(self, data: bytes, url: str = "") -> XMLTVDocument:
        return parse_xmltv(decompress_if_gzipped(data, url), strict_dates=self.strict_dates)

    def _match_stream(self, channel: XMLTVChannel, streams: list[Stream]) -> Optional[Stream]:
        name = channel.name.lower()
        for stream in streams:
            if stream.epg_channel_id == channel.id or stream.name.lower() == name:
                return stream
        return None

    def _upsert_channel(self, channel: XMLTVChannel, stream: Stream) -> EPGChannel:
        epg_channel = self.db.scalars(
            select(EPGChannel).where(EPGChannel.stream_id == stream.id)
        ).first()
        if epg_channel is None:
            epg_channel = EPGChannel(
                id=generate_uuid(), stream_id=stream.id, epg_channel_id=channel.id, name=channel.name
            )
            self.db.add(epg_channel)
            self.db.flush()
        epg_channel.epg_channel_id = channel.id
        epg_channel.name = channel.name
        epg_channel.icon_url = channel.icon
        return epg_channel

    def map_channels(self, channels: list[XMLTVChannel]) -> dict[str, str]:
        """Return XMLTV channel id -> epg_channels.id for every matched channel."""
        streams = list(self.db.scalars(select(Stream).order_by(Stream.created_at)))
        mapping: dict[str, str] = {}

        for channel in channels:
            stream = self._match_stream(channel, streams)
            if stream is None:
                continue
            epg_channel = self._upsert_channel(channel, stream)
            mapping[channel.id] = epg_channel.id
            if not stream.epg_channel_id:
                stream.epg_channel_id = channel.id

        self.db.commit()
        return mapping

    def _insert_statement(self, rows: list[dict[str, Any]]):
        dialect = self.db.get_bind().dialect.name
        if dialect == "sqlite":
            return sqlite.insert(EPGProgram).values(rows).on_conflict_do_nothing(
                index_elements=["channel_id", "start_time"]
            )
        if dialect == "postgresql":
            return postgresql.insert(EPGProgram).values(rows).on_conflict_do_nothing(
                index_elements=["channel_id", "start_time"]
            )

        existing = set(
            self.db.execute(
                select(EPGProgram.channel_id, EPGProgram.start_time).where(
                    tuple_(EPGProgram.channel_id, EPGProgram.start_time).in_(
                        [(r["channel_id"], r["start_time"]) for r in rows]
                    )
                )
            ).all()
        )
        fresh: dict[tuple, dict[str, Any]] = {}
        for row in rows:
            key = (row["channel_id"], row["start_time"])
            if key not in existing:
                fresh.setdefault(key, row)
        if not fresh:
            return None
        return insert(EPGProgram).values(list(fresh.values()))

    def _insert_batch(self, rows: list[dict[str, Any]], result: XMLTVImportResult) -> None:
        try:
            with self.db.begin_nested():
                stmt = self._insert_statement(rows)
                if stmt is not None:
                    self.db.execute(stmt)
            self.db.commit()
            result.programs_imported += len(rows)
        except Exception as e:
            self.db.rollback()
            logger.error(f"[EPG Import] Failed to insert batch of {len(rows)} programs: {e}", exc_info=True)
            result.errors.append(f"Failed to insert batch of {len(rows)} programs: {e}")

    def import_document(
        self,
        document: XMLTVDocument,
        source_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> XMLTVImportResult:
        now = now or utcnow()
        result = XMLTVImportResult(channels_found=len(document.channels))
        logger.info(
            f"[EPG Import] Found {len(document.channels)} channels, {len(document.programmes)} programs"
        )

        mapping = self.map_channels(document.channels)
        result.channels_mapped = len(mapping)
        logger.info(f"[EPG Import] Mapped {result.channels_mapped} channels to streams")

        window_start = now - self.past_window
        window_end = now + self.future_window
        batch: list[dict[str, Any]] = []

        for programme in document.programmes:
            channel_uuid = mapping.get(programme.channel)
            if channel_uuid is None:
                continue
            if programme.start < window_start or programme.start > window_end:
                continue

            batch.append(
                {
                    "id": generate_uuid(),
                    "channel_id": channel_uuid,
                    "title": programme.title,
                    "description": programme.description,
                    "start_time": programme.start,
                    "end_time": programme.stop,
                }
            )
            if len(batch) >= self.batch_size:
                self._insert_batch(batch, result)
                batch = []

        if batch:
            self._insert_batch(batch, result)

        logger.info(f"[EPG Import] Imported {result.programs_imported} programs")

        if source_id:
            self._mark_source(source_id, result, now)

        return result

    def _mark_source(self, source_id: str, result: XMLTVImportResult, now: datetime) -> None:
        source = self.db.get(EPGSource, source_id)
        if source is None:
            logger.warning(f"[EPG Import] EPG source {source_id} not found")
            return
        source.last_import = now
        source.status = "error" if result.errors else "active"
        self.db.commit()
