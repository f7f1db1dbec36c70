"""
Comments and replies under an article.

Listing reuses the paginated feed machinery (one context per thread);
posting is a single retried add with a server-assigned timestamp.
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional

from newsfeed.config import Config, get_config
from newsfeed.listing.context import TIMESTAMP, comment_thread, reply_thread
from newsfeed.listing.fetcher import PaginatedFetcher
from newsfeed.listing.renderer import ListRenderer
from newsfeed.listing.session import ListingSession
from newsfeed.store.base import DocumentStore
from newsfeed.store.query import SERVER_TIMESTAMP
from newsfeed.utils.exceptions import ValidationError
from newsfeed.utils.logging_config import get_logger
from newsfeed.utils.retry import with_retry

logger = get_logger("comments")

ANONYMOUS = "Anonymous"


class CommentService:
    """
    Args:
        store: Document store
        fetcher: Paginated fetcher shared with the other feeds
        config: Config instance (defaults to get_config())
        sleep: Awaitable sleep used between retry attempts
    """

    def __init__(
        self,
        store: DocumentStore,
        fetcher: PaginatedFetcher,
        config: Optional[Config] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self._config = config or get_config()
        self._store = store
        self._fetcher = fetcher
        self._sleep = sleep

    def comments_session(self, article_id: str, renderer: ListRenderer) -> ListingSession:
        return ListingSession(comment_thread(article_id, self._config), self._fetcher, renderer)

    def replies_session(self, article_id: str, comment_id: str, renderer: ListRenderer) -> ListingSession:
        return ListingSession(reply_thread(article_id, comment_id, self._config), self._fetcher, renderer)

    async def add_comment(self, article_id: str, text: str) -> str:
        """Post a comment. Returns the new comment id."""
        collection = comment_thread(article_id, self._config).collection
        return await self._post(collection, text)

    async def add_reply(self, article_id: str, comment_id: str, text: str) -> str:
        """Post a reply to a comment. Returns the new reply id."""
        collection = reply_thread(article_id, comment_id, self._config).collection
        return await self._post(collection, text)

    async def _post(self, collection: str, text: str) -> str:
        text = (text or "").strip()
        if not text:
            raise ValidationError("Comment text cannot be empty.", field="text")

        data = {"text": text, TIMESTAMP: SERVER_TIMESTAMP, "author": ANONYMOUS}
        doc_id = await with_retry(
            lambda: self._store.add(collection, data),
            max_attempts=self._config.retry.max_attempts,
            delay=self._config.retry.delay,
            sleep=self._sleep,
            label=f"post to {collection}",
        )
        logger.info(f"Posted {collection}/{doc_id}")
        return doc_id
