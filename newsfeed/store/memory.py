"""
In-memory document store.

Implements the same query semantics the hosted store guarantees: field
filters are ANDed, documents missing a filtered or ordered field are
excluded, ordering is stable for ties broken by document id, and
start_after resumes strictly after a position. Used for local development
and by the test suite.
"""

import copy
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from newsfeed.store.base import DocumentStore
from newsfeed.store.query import (
    DOCUMENT_ID,
    SERVER_TIMESTAMP,
    Direction,
    Document,
    FieldFilter,
    Operator,
    OrderBy,
    Query,
    QueryResult,
    utc_now,
)
from newsfeed.utils.exceptions import DocumentNotFoundError, InvalidQueryError
from newsfeed.utils.logging_config import get_logger

logger = get_logger("memory_store")

_MISSING = object()

# Cross-type ordering used by the hosted store: null < bool < number <
# timestamp < string.
_TYPE_RANK = {type(None): 0, bool: 1, int: 2, float: 2, datetime: 3, str: 4}


def _sort_key(value: Any) -> Tuple[int, Any]:
    rank = _TYPE_RANK.get(type(value), 5)
    if value is None:
        return (rank, 0)
    return (rank, value)


def _compare(a: Any, b: Any) -> int:
    ka, kb = _sort_key(a), _sort_key(b)
    if ka < kb:
        return -1
    if ka > kb:
        return 1
    return 0


def _matches(doc: Document, flt: FieldFilter) -> bool:
    value = doc.get(flt.field, _MISSING)
    if value is _MISSING:
        return False
    if flt.op == Operator.EQUAL:
        return value == flt.value
    # Range filters only match values of the same type class.
    if _sort_key(value)[0] != _sort_key(flt.value)[0]:
        return False
    cmp = _compare(value, flt.value)
    if flt.op == Operator.LESS_THAN:
        return cmp < 0
    if flt.op == Operator.LESS_THAN_OR_EQUAL:
        return cmp <= 0
    if flt.op == Operator.GREATER_THAN:
        return cmp > 0
    if flt.op == Operator.GREATER_THAN_OR_EQUAL:
        return cmp >= 0
    raise InvalidQueryError(f"Unsupported operator: {flt.op}")


def _is_after(doc: Document, order_by: Tuple[OrderBy, ...], position: Tuple[Any, ...]) -> bool:
    """True if ``doc`` sorts strictly after ``position``."""
    for clause, cursor_value in zip(order_by, position):
        cmp = _compare(doc.get(clause.field), cursor_value)
        if cmp == 0:
            continue
        if clause.direction == Direction.DESCENDING:
            cmp = -cmp
        return cmp > 0
    return False


class MemoryDocumentStore(DocumentStore):
    """
    Document store backed by nested dicts.

    Args:
        clock: Callable returning the time used for SERVER_TIMESTAMP writes
        id_factory: Callable returning new document ids
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._clock = clock
        self._id_factory = id_factory or (lambda: uuid.uuid4().hex[:20])
        self.query_log: List[Query] = []

    # -------------------------------------------------------------------------
    # Seeding helpers
    # -------------------------------------------------------------------------

    def seed(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        """Insert or replace a document verbatim."""
        self._collections.setdefault(collection, {})[doc_id] = copy.deepcopy(data)

    def count(self, collection: str) -> int:
        return len(self._collections.get(collection, {}))

    # -------------------------------------------------------------------------
    # DocumentStore
    # -------------------------------------------------------------------------

    async def run_query(self, query: Query) -> QueryResult:
        self.query_log.append(query)
        docs = [
            Document(doc_id, copy.deepcopy(data))
            for doc_id, data in self._collections.get(query.collection, {}).items()
        ]

        for flt in query.filters:
            docs = [d for d in docs if _matches(d, flt)]

        for clause in query.order_by:
            if clause.field != DOCUMENT_ID:
                docs = [d for d in docs if clause.field in d.data]

        # Stable sorts applied least-significant key first.
        for clause in reversed(query.order_by):
            docs.sort(
                key=lambda d, f=clause.field: _sort_key(d.get(f)),
                reverse=clause.direction == Direction.DESCENDING,
            )

        if query.start_after is not None:
            docs = [d for d in docs if _is_after(d, query.order_by, query.start_after)]

        if query.limit is None:
            return QueryResult(documents=docs, is_last=True)

        return QueryResult(
            documents=docs[:query.limit],
            is_last=len(docs) <= query.limit,
        )

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        data = self._collections.get(collection, {}).get(doc_id)
        if data is None:
            return None
        return Document(doc_id, copy.deepcopy(data))

    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        doc_id = self._id_factory()
        self._collections.setdefault(collection, {})[doc_id] = self._resolve(data)
        logger.debug(f"Added {collection}/{doc_id}")
        return doc_id

    async def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        existing = self._collections.get(collection, {}).get(doc_id)
        if existing is None:
            raise DocumentNotFoundError(collection, doc_id)
        existing.update(self._resolve(data))

    async def increment(self, collection: str, doc_id: str, field: str, amount: int = 1) -> None:
        existing = self._collections.get(collection, {}).get(doc_id)
        if existing is None:
            raise DocumentNotFoundError(collection, doc_id)
        current = existing.get(field, 0)
        if not isinstance(current, (int, float)) or isinstance(current, bool):
            current = 0
        existing[field] = current + amount

    async def delete(self, collection: str, doc_id: str) -> None:
        self._collections.get(collection, {}).pop(doc_id, None)

    def _resolve(self, data: Dict[str, Any]) -> Dict[str, Any]:
        now = self._clock()
        return {
            key: (now if value is SERVER_TIMESTAMP else copy.deepcopy(value))
            for key, value in data.items()
        }
