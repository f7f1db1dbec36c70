"""
Cursor Store for listing feeds.

Keeps, per listing context, the position of the last item rendered so the
next "load more" query can resume strictly after it. Each ListingSession
is handed a store explicitly; nothing here is module-global, so separate
views (and separate tests) never share cursors by accident.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional, Tuple

from newsfeed.store.query import Document
from newsfeed.utils.logging_config import get_logger

logger = get_logger("cursor_store")


@dataclass(frozen=True)
class Cursor:
    """
    Resume point after one document of a sorted scan.

    Carries the sort-field value and the document id, so two documents
    with the same sort value still have distinct positions.
    """
    sort_value: Any
    document_id: str

    @classmethod
    def after(cls, document: Document, sort_field: str) -> "Cursor":
        return cls(sort_value=document.get(sort_field), document_id=document.id)

    def position(self) -> Tuple[Any, str]:
        return (self.sort_value, self.document_id)


class CursorStore:
    """
    Mapping of listing context id -> Cursor.

    Only the paginated fetcher writes entries: after a successful non-empty
    page, and by clearing on reset.
    """

    def __init__(self):
        self._cursors: Dict[str, Cursor] = {}

    def get(self, context_id: str) -> Optional[Cursor]:
        return self._cursors.get(context_id)

    def set(self, context_id: str, cursor: Cursor) -> None:
        self._cursors[context_id] = cursor
        logger.debug(f"Cursor for {context_id} -> {cursor.document_id}")

    def clear(self, context_id: str) -> None:
        """Forget the cursor for one context (reset)."""
        if self._cursors.pop(context_id, None) is not None:
            logger.debug(f"Cleared cursor for {context_id}")

    def clear_all(self) -> None:
        self._cursors.clear()

    def snapshot(self) -> Dict[str, Cursor]:
        """Copy of the current entries, for inspection."""
        return dict(self._cursors)

    def __contains__(self, context_id: str) -> bool:
        return context_id in self._cursors

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._cursors))

    def __len__(self) -> int:
        return len(self._cursors)
