"""
Paginated Fetcher.

Runs one page query for a listing context through the retry layer,
advances that context's cursor on success, and reports the page together
with its end-of-data signal.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Optional

from newsfeed.config import Config, get_config
from newsfeed.cursors.store import Cursor, CursorStore
from newsfeed.listing.context import ListingContext
from newsfeed.listing.query_builder import build
from newsfeed.store.base import DocumentStore
from newsfeed.store.query import Document
from newsfeed.utils.exceptions import FetchFailed, RetryCancelled
from newsfeed.utils.logging_config import get_logger
from newsfeed.utils.retry import RetryHandle, start_with_retry

logger = get_logger("paginated_fetcher")


@dataclass
class Page:
    """
    One batch of items for a context.

    Attributes:
        context_id: Context the page belongs to
        items: Documents in server order
        page_size: The context's page size
        is_last: Store's hint that nothing matches past this page
        reset: Whether this page started the feed over
    """
    context_id: str
    items: List[Document] = field(default_factory=list)
    page_size: int = 6
    is_last: bool = True
    reset: bool = False

    @property
    def is_full(self) -> bool:
        return len(self.items) == self.page_size

    @property
    def has_more(self) -> bool:
        """True when another page may exist (full page and not flagged last)."""
        return self.is_full and not self.is_last

    @property
    def ids(self) -> List[str]:
        return [item.id for item in self.items]

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Document]:
        return iter(self.items)


class PaginatedFetcher:
    """
    Fetches pages for any number of listing contexts.

    Each context has at most one fetch in flight here: a reset cancels the
    context's previous fetch before issuing its own, and a cancelled
    fetch never writes the cursor.

    Args:
        store: Document store to query
        cursor_store: Where per-context cursors live
        config: Config supplying retry settings (defaults to get_config())
        sleep: Awaitable sleep used between retry attempts
    """

    def __init__(
        self,
        store: DocumentStore,
        cursor_store: Optional[CursorStore] = None,
        config: Optional[Config] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self._config = config or get_config()
        self._store = store
        self._cursors = cursor_store if cursor_store is not None else CursorStore()
        self._sleep = sleep
        self._inflight: Dict[str, RetryHandle] = {}

    @property
    def cursor_store(self) -> CursorStore:
        return self._cursors

    def is_fetching(self, context_id: str) -> bool:
        handle = self._inflight.get(context_id)
        return handle is not None and not handle.done()

    def cancel(self, context_id: str) -> bool:
        """
        Cancel the fetch registered for a context.

        A fetch whose query already finished but whose caller has not
        resumed yet is cancelled too, so its page and cursor are dropped.
        Returns True if a fetch was registered.
        """
        handle = self._inflight.pop(context_id, None)
        if handle is None:
            return False
        handle.cancel()
        return True

    async def fetch(self, context: ListingContext, reset: bool = False) -> Page:
        """
        Fetch the next page of ``context`` (or the first, on reset).

        Raises:
            FetchFailed: The query failed after the retry budget; the
                cursor is left where it was.
            RetryCancelled: A reset for the same context superseded this
                fetch.
        """
        context_id = context.context_id

        if reset:
            if self.cancel(context_id):
                logger.info(f"Reset of {context_id} superseded an in-flight fetch")
            self._cursors.clear(context_id)
            cursor = None
        else:
            cursor = self._cursors.get(context_id)

        query = build(context, cursor)
        logger.info(
            f"Fetching {context_id}, reset: {reset}, "
            f"after: {cursor.document_id if cursor else 'none'}"
        )

        handle = start_with_retry(
            lambda: self._store.run_query(query),
            max_attempts=self._config.retry.max_attempts,
            delay=self._config.retry.delay,
            sleep=self._sleep,
            label=context_id,
        )
        self._inflight[context_id] = handle

        try:
            result = await handle.result()
        except RetryCancelled:
            logger.info(f"Discarded superseded fetch for {context_id}")
            raise
        except Exception as e:
            logger.error(f"Fetch failed for {context_id}: {e}")
            raise FetchFailed(context_id, e) from e
        finally:
            if self._inflight.get(context_id) is handle:
                del self._inflight[context_id]

        if result.documents:
            self._cursors.set(context_id, Cursor.after(result.documents[-1], context.sort_field))

        page = Page(
            context_id=context_id,
            items=list(result.documents),
            page_size=context.page_size,
            is_last=result.is_last,
            reset=reset,
        )
        logger.info(f"Found {len(page)} items for {context_id} (last: {page.is_last})")
        return page
