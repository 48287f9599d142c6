"""Bulk M3U import into the streams catalog"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from ..config import get_config
from ..database.models import Stream, StreamStatus
from ..exceptions import ImportInputError
from ..utils.http import fetch_url
from .m3u_parser import M3UEntry, detect_input_type, parse_m3u
from .url_rewrites import RewriteRule, rewrite_url

logger = logging.getLogger(__name__)


@dataclass
class M3UImportResult:
    """Outcome counters; ``imported + updated + skipped + failed == total``."""

    total: int = 0
    imported: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)

    def to_dict(self, max_errors: int = 10) -> dict[str, Any]:
        result: dict[str, Any] = {
            "success": True,
            "total": self.total,
            "imported": self.imported,
            "updated": self.updated,
            "skipped": self.skipped,
            "failed": self.failed,
        }
        if self.errors:
            result["errors"] = self.errors[:max_errors]
        return result


class M3UImporter:
    """
    Upserts playlist entries into ``streams``.

    Existing rows are matched by exact name or exact source URL. Each entry
    is written inside its own SAVEPOINT so one bad row does not abort the rest.
    """

    def __init__(
        self,
        db: Session,
        batch_size: Optional[int] = None,
        rewrite_rules: Optional[list[RewriteRule]] = None,
    ):
        config = get_config()
        self.db = db
        self.batch_size = batch_size or config.imports.batch_size
        self.fetch_timeout = config.imports.fetch_timeout
        self.rewrite_rules = rewrite_rules

    async def fetch_playlist(self, url: str) -> str:
        """Download playlist text. Raises UpstreamFetchError on failure."""
        logger.info(f"[M3U Import] Fetching M3U from URL: {url}")
        result = await fetch_url(url, timeout=self.fetch_timeout)
        return result.text

    def _find_existing(self, name: str, urls: set[str]) -> Optional[Stream]:
        stmt = (
            select(Stream)
            .where(or_(Stream.name == name, Stream.input_url.in_(urls)))
            .order_by(Stream.created_at)
            .limit(1)
        )
        return self.db.scalars(stmt).first()

    def _stream_values(self, entry: M3UEntry, url: str, default_category: Optional[str]) -> dict[str, Any]:
        return {
            "name": entry.name,
            "input_type": detect_input_type(url),
            "input_url": url,
            "category": entry.group_title or default_category or None,
            "stream_icon": entry.tvg_logo,
            "epg_channel_id": entry.tvg_id,
            "channel_number": entry.channel_number,
            "status": StreamStatus.INACTIVE.value,
            "output_formats": ["hls"],
        }

    def _import_entry(
        self,
        entry: M3UEntry,
        default_category: Optional[str],
        overwrite_existing: bool,
    ) -> str:
        """Write one entry and return which counter it belongs to."""
        url = rewrite_url(entry.url, self.rewrite_rules)
        existing = self._find_existing(entry.name, {entry.url, url})
        values = self._stream_values(entry, url, default_category)

        if existing is not None:
            if not overwrite_existing:
                return "skipped"
            for key, value in values.items():
                setattr(existing, key, value)
            return "updated"

        self.db.add(Stream(**values))
        return "imported"

    def import_entries(
        self,
        entries: list[M3UEntry],
        default_category: Optional[str] = None,
        overwrite_existing: bool = False,
    ) -> M3UImportResult:
        result = M3UImportResult(total=len(entries))

        for idx, entry in enumerate(entries):
            try:
                with self.db.begin_nested():
                    outcome = self._import_entry(entry, default_category, overwrite_existing)
                setattr(result, outcome, getattr(result, outcome) + 1)
            except Exception as e:
                logger.error(f"[M3U Import] Error processing {entry.name}: {e}", exc_info=True)
                result.failed += 1
                result.errors.append(f"Error processing {entry.name}: {e}")

            if (idx + 1) % self.batch_size == 0:
                self.db.commit()
                logger.debug(f"[M3U Import] Committed batch {idx + 1}/{len(entries)}")

        self.db.commit()
        logger.info(
            f"[M3U Import] Import complete: {result.imported} imported, {result.updated} updated, "
            f"{result.skipped} skipped, {result.failed} failed"
        )
        return result

    def import_content(
        self,
        content: str,
        default_category: Optional[str] = None,
        overwrite_existing: bool = False,
    ) -> M3UImportResult:
        """
        Parse and import playlist text.

        Raises:
            ImportInputError: when the text holds no entries.
        """
        logger.info(f"[M3U Import] Parsing M3U content ({len(content)} bytes)")
        entries = parse_m3u(content)
        logger.info(f"[M3U Import] Found {len(entries)} entries in M3U")

        if not entries:
            raise ImportInputError("No valid entries found in M3U file")

        return self.import_entries(entries, default_category, overwrite_existing)
