"""
Live category aliasing for the Xtream API.

Live streams carry free-text category names. Players group channels by the
``category_id`` values returned from ``get_live_categories``, so names
without a ``live_categories`` row are given synthetic ``cat_{n}`` ids, and
the same ids are emitted on each stream and accepted as filters.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from sqlalchemy import distinct, select
from sqlalchemy.orm import Session

from streampanel.database.models import LiveCategory, Stream

DEFAULT_CATEGORY_ID = "1"


@dataclass
class LiveCategoryIndex:
    entries: list[dict[str, Any]] = field(default_factory=list)
    _id_by_name: dict[str, str] = field(default_factory=dict)
    _name_by_id: dict[str, str] = field(default_factory=dict)

    def _add(self, category_id: str, name: str) -> None:
        self.entries.append({"category_id": category_id, "category_name": name, "parent_id": 0})
        self._id_by_name.setdefault(name, category_id)
        self._name_by_id[category_id] = name

    @classmethod
    def build(cls, db: Session) -> "LiveCategoryIndex":
        index = cls()
        rows = db.scalars(
            select(LiveCategory).order_by(LiveCategory.sort_order, LiveCategory.name)
        )
        for row in rows:
            index._add(row.id, row.name)

        stream_categories = db.scalars(
            select(distinct(Stream.category))
            .where(Stream.category.is_not(None), Stream.category != "")
            .order_by(Stream.category)
        ).all()
        # ids are positional over every distinct stream category, present or not
        for idx, name in enumerate(stream_categories):
            if name not in index._id_by_name:
                index._add(f"cat_{idx}", name)
        return index

    def id_for(self, name: Optional[str]) -> str:
        if not name:
            return DEFAULT_CATEGORY_ID
        return self._id_by_name.get(name, DEFAULT_CATEGORY_ID)

    def name_for(self, category_id: str) -> str:
        """Category name for a filter id; unknown ids are taken to be names."""
        return self._name_by_id.get(category_id, category_id)
