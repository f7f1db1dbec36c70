"""
Document Store Interface

Abstract base class for the hosted document database the client reads
from and writes to. Everything the listing core needs is run_query();
the remaining operations back the article, comment and admin services.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from newsfeed.store.query import Document, Query, QueryResult


class DocumentStore(ABC):
    """
    Abstract document store.

    Subclasses must implement:
    - run_query(): filtered/ordered/limited scan with an end-of-data hint
    - get(), add(), update(), increment(), delete()

    Collections are addressed by slash-separated paths so subcollections
    ("articles/<id>/comments") work the same as top-level ones. Ordering
    must be stable: documents whose order values tie keep a fixed
    relative order when the query also orders by DOCUMENT_ID.
    """

    @abstractmethod
    async def run_query(self, query: Query) -> QueryResult:
        """
        Run a structured query.

        Returns:
            QueryResult holding at most ``query.limit`` documents and
            ``is_last`` telling whether any further document matches.
        """
        pass

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        """Fetch one document, or None if it does not exist."""
        pass

    @abstractmethod
    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        """Create a document with a store-assigned id and return the id."""
        pass

    @abstractmethod
    async def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        """Merge ``data`` into an existing document."""
        pass

    @abstractmethod
    async def increment(self, collection: str, doc_id: str, field: str, amount: int = 1) -> None:
        """Atomically add ``amount`` to a numeric field."""
        pass

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None:
        """Delete a document. Deleting a missing document is not an error."""
        pass

    async def aclose(self) -> None:
        """Release any held resources."""
        return None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.aclose()
