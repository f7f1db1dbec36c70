"""
Query and document types shared by every document store.

A Query is plain data: a collection path, ANDed field filters, order
clauses, an optional start-after position and a limit. Stores translate
it into their own wire format.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


# Pseudo field path addressing a document's own identity.
DOCUMENT_ID = "__name__"

# Last code point of the BMP private use area; appended to a prefix to
# form the inclusive upper bound of a prefix range.
PREFIX_UPPER_BOUND = "\uf8ff"


class Operator(str, Enum):
    EQUAL = "=="
    LESS_THAN = "<"
    LESS_THAN_OR_EQUAL = "<="
    GREATER_THAN = ">"
    GREATER_THAN_OR_EQUAL = ">="


class Direction(str, Enum):
    ASCENDING = "asc"
    DESCENDING = "desc"


class _ServerTimestamp:
    """Write sentinel: the store fills in its own commit time."""

    def __repr__(self):
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


@dataclass(frozen=True)
class FieldFilter:
    field: str
    op: Operator
    value: Any


@dataclass(frozen=True)
class OrderBy:
    field: str
    direction: Direction = Direction.ASCENDING


@dataclass(frozen=True)
class Query:
    """
    A single structured query against one collection.

    Attributes:
        collection: Collection path, e.g. "articles" or
            "articles/<id>/comments"
        filters: Field filters, all ANDed, in declaration order
        order_by: Order clauses, most significant first
        start_after: Values (one per order clause) of the position to
            resume strictly after
        limit: Maximum number of documents to return
    """
    collection: str
    filters: Tuple[FieldFilter, ...] = ()
    order_by: Tuple[OrderBy, ...] = ()
    start_after: Optional[Tuple[Any, ...]] = None
    limit: Optional[int] = None

    def __post_init__(self):
        if self.start_after is not None and len(self.start_after) != len(self.order_by):
            raise ValueError("start_after needs exactly one value per order clause")
        if self.limit is not None and self.limit < 1:
            raise ValueError("limit must be positive")


@dataclass
class Document:
    """A stored document: its id plus its field data."""
    id: str
    data: Dict[str, Any] = field(default_factory=dict)

    def get(self, field_path: str, default: Any = None) -> Any:
        if field_path == DOCUMENT_ID:
            return self.id
        return self.data.get(field_path, default)

    def position(self, order_by: Tuple[OrderBy, ...]) -> Tuple[Any, ...]:
        """Values of this document for each order clause."""
        return tuple(self.get(o.field) for o in order_by)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, **self.data}


@dataclass
class QueryResult:
    """
    Documents returned by one query, plus whether the scan reached the end.

    ``is_last`` is decided by the store in the same round trip as the
    documents, so it can't disagree with them.
    """
    documents: List[Document] = field(default_factory=list)
    is_last: bool = True

    def __len__(self) -> int:
        return len(self.documents)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
