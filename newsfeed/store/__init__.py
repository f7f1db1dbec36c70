"""
Document store layer.

- query: Query/Document/QueryResult types and write sentinels
- base: DocumentStore abstract interface
- memory: In-process store with the hosted store's query semantics
- firestore: Firestore REST implementation over httpx
"""

from newsfeed.store.query import (
    DOCUMENT_ID,
    PREFIX_UPPER_BOUND,
    SERVER_TIMESTAMP,
    Direction,
    Document,
    FieldFilter,
    Operator,
    OrderBy,
    Query,
    QueryResult,
)
from newsfeed.store.base import DocumentStore
from newsfeed.store.memory import MemoryDocumentStore
from newsfeed.store.firestore import FirestoreDocumentStore

__all__ = [
    "DOCUMENT_ID",
    "PREFIX_UPPER_BOUND",
    "SERVER_TIMESTAMP",
    "Direction",
    "Document",
    "FieldFilter",
    "Operator",
    "OrderBy",
    "Query",
    "QueryResult",
    "DocumentStore",
    "MemoryDocumentStore",
    "FirestoreDocumentStore",
]
