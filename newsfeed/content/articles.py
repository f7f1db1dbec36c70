"""
Article Service

Single-article reads, engagement counters and the admin-only write and
search paths. Every store call goes through the same bounded retry as
the listing feeds.

Usage:
    service = ArticleService(store, admin_gate=ClaimAdminGate(get_claims))
    view = await service.open_article("budget-vote", "politics-governance", local_state)
    if view and view.comments_enabled:
        ...
"""

import asyncio
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

from newsfeed.categories import FACT_CHECK, require_category
from newsfeed.config import Config, get_config
from newsfeed.content.local_state import LocalStateStore
from newsfeed.formatting import is_valid_url
from newsfeed.listing.context import CREATED_AT, TITLE_LOWERCASE
from newsfeed.store.base import DocumentStore
from newsfeed.store.query import (
    PREFIX_UPPER_BOUND,
    SERVER_TIMESTAMP,
    Direction,
    Document,
    FieldFilter,
    Operator,
    OrderBy,
    Query,
)
from newsfeed.utils.exceptions import (
    DocumentNotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from newsfeed.utils.logging_config import get_logger
from newsfeed.utils.retry import with_retry

logger = get_logger("articles")

T = TypeVar("T")

MIN_TITLE_LENGTH = 5
MIN_CONTENT_LENGTH = 20

PREVIEW_ID = "preview"

DATE_FORMAT_MESSAGE = "Invalid date format. Please use YYYY-MM-DD (e.g., 2025-09-18)."

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


# =============================================================================
# Admin check
# =============================================================================

class AdminGate(ABC):
    """Answers whether the current user may run admin operations."""

    @abstractmethod
    def is_admin(self) -> bool:
        pass


class ClaimAdminGate(AdminGate):
    """
    Admin check backed by the auth provider's token claims.

    Args:
        claims_provider: Callable returning the signed-in user's claims,
            or None when nobody is signed in
    """

    def __init__(self, claims_provider: Callable[[], Optional[Dict[str, Any]]]):
        self._claims_provider = claims_provider

    def is_admin(self) -> bool:
        claims = self._claims_provider()
        return bool(claims) and claims.get("admin") is True


class _DenyAll(AdminGate):
    def is_admin(self) -> bool:
        return False


# =============================================================================
# Drafts
# =============================================================================

@dataclass
class ArticleDraft:
    """Editable article fields as submitted from the admin form."""
    title: str
    content: str
    category: str
    slug: str
    writer: str = ""
    summary: str = ""
    image: str = ""
    video: str = ""
    breaking_news: bool = False
    verified: bool = False

    def validate(self) -> None:
        """
        Raises:
            ValidationError: On the first field that fails its check
        """
        if len(self.title.strip()) < MIN_TITLE_LENGTH:
            raise ValidationError("Title must be at least 5 characters.", field="title", value=self.title)
        if len(self.content.strip()) < MIN_CONTENT_LENGTH:
            raise ValidationError("Content must be at least 20 characters.", field="content")
        require_category(self.category)
        if not self.slug.strip():
            raise ValidationError("Slug is required.", field="slug")
        if self.image and not is_valid_url(self.image):
            raise ValidationError("Image URL is invalid.", field="image", value=self.image)
        if self.video and not is_valid_url(self.video):
            raise ValidationError("Video URL is invalid.", field="video", value=self.video)

    def to_document(self) -> Dict[str, Any]:
        title = self.title.strip()
        return {
            "title": title,
            TITLE_LOWERCASE: title.lower(),
            "writer": self.writer.strip(),
            "summary": self.summary.strip(),
            "content": self.content.strip(),
            "image": self.image.strip(),
            "video": self.video.strip(),
            "category": self.category,
            "slug": self.slug.strip(),
            "breakingNews": self.breaking_news,
            "verified": self.verified,
        }


@dataclass
class ArticleView:
    """
    An article opened for reading.

    A staged preview is served from local state: it has no stored
    document, so views are not counted and comments stay disabled.
    """
    document: Document
    is_preview: bool = False

    @property
    def comments_enabled(self) -> bool:
        return not self.is_preview


# =============================================================================
# Service
# =============================================================================

class ArticleService:
    """
    Article reads and writes against the articles collection.

    Args:
        store: Document store
        config: Config instance (defaults to get_config())
        admin_gate: Admin check for publish/delete/search (denies if omitted)
        sleep: Awaitable sleep used between retry attempts
    """

    def __init__(
        self,
        store: DocumentStore,
        config: Optional[Config] = None,
        admin_gate: Optional[AdminGate] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self._config = config or get_config()
        self._store = store
        self._admin_gate = admin_gate or _DenyAll()
        self._sleep = sleep
        self.collection = self._config.listing.articles_collection

    async def _call(self, operation: Callable[[], Awaitable[T]], label: str) -> T:
        return await with_retry(
            operation,
            max_attempts=self._config.retry.max_attempts,
            delay=self._config.retry.delay,
            sleep=self._sleep,
            label=label,
        )

    async def _query(self, query: Query, label: str) -> List[Document]:
        result = await self._call(lambda: self._store.run_query(query), label)
        return result.documents

    def _require_admin(self, action: str) -> None:
        if not self._admin_gate.is_admin():
            logger.warning(f"Refused {action}: user is not an admin")
            raise PermissionDeniedError(f"Admin access required to {action}", operation=action)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get(self, article_id: str) -> Document:
        """
        Raises:
            DocumentNotFoundError: No article has this id
        """
        doc = await self._call(lambda: self._store.get(self.collection, article_id), f"get {article_id}")
        if doc is None:
            raise DocumentNotFoundError(self.collection, article_id)
        return doc

    async def get_by_slug(self, slug: str, category: str) -> Optional[Document]:
        """First article matching both slug and category, or None."""
        query = Query(
            collection=self.collection,
            filters=(
                FieldFilter("slug", Operator.EQUAL, slug),
                FieldFilter("category", Operator.EQUAL, category),
            ),
            limit=1,
        )
        docs = await self._query(query, f"slug {category}/{slug}")
        if not docs:
            logger.info(f"No article for slug {category}/{slug}")
            return None
        return docs[0]

    async def open_article(
        self,
        slug: str,
        category: str,
        local_state: Optional[LocalStateStore] = None,
    ) -> Optional[ArticleView]:
        """
        Open an article page by category and slug.

        A preview staged in ``local_state`` for the same category and slug
        wins over the store; otherwise the stored article is looked up and
        its view counter incremented.
        """
        if local_state is not None:
            preview = local_state.get_preview()
            if preview and preview.get("category") == category and preview.get("slug") == slug:
                logger.info(f"Serving staged preview for {category}/{slug}")
                data = {k: v for k, v in preview.items() if k != "id"}
                return ArticleView(Document(str(preview.get("id") or PREVIEW_ID), data), is_preview=True)

        doc = await self.get_by_slug(slug, category)
        if doc is None:
            return None
        await self.record_view(doc.id)
        return ArticleView(doc)

    async def breaking_news(self) -> Optional[Document]:
        """Newest breaking article, else the newest article, else None."""
        newest_first = (OrderBy(CREATED_AT, Direction.DESCENDING),)
        docs = await self._query(
            Query(
                collection=self.collection,
                filters=(FieldFilter("breakingNews", Operator.EQUAL, True),),
                order_by=newest_first,
                limit=1,
            ),
            "breaking news",
        )
        if docs:
            return docs[0]

        logger.info("No breaking news flagged, falling back to newest article")
        docs = await self._query(
            Query(collection=self.collection, order_by=newest_first, limit=1),
            "newest article",
        )
        return docs[0] if docs else None

    async def fact_check_highlights(self, limit: int = 2) -> List[Document]:
        query = Query(
            collection=self.collection,
            filters=(
                FieldFilter("category", Operator.EQUAL, FACT_CHECK),
                FieldFilter("verified", Operator.EQUAL, True),
            ),
            limit=limit,
        )
        return await self._query(query, "fact-check highlights")

    # -------------------------------------------------------------------------
    # Engagement
    # -------------------------------------------------------------------------

    async def record_view(self, article_id: str) -> None:
        await self._call(
            lambda: self._store.increment(self.collection, article_id, "views"),
            f"view {article_id}",
        )

    async def like(self, article_id: str, local_state: LocalStateStore) -> bool:
        """
        Like an article once per client.

        Returns:
            False if this client had already liked it (nothing is written)
        """
        if local_state.is_liked(article_id):
            logger.debug(f"Article {article_id} already liked")
            return False
        await self._call(
            lambda: self._store.increment(self.collection, article_id, "likes"),
            f"like {article_id}",
        )
        local_state.mark_liked(article_id)
        return True

    # -------------------------------------------------------------------------
    # Admin
    # -------------------------------------------------------------------------

    def stage_preview(self, draft: ArticleDraft, local_state: LocalStateStore) -> Dict[str, Any]:
        """
        Validate ``draft`` and stage it as the local preview record.

        Returns:
            The staged record, as open_article() will serve it
        """
        self._require_admin("preview articles")
        draft.validate()
        record = draft.to_document()
        record.update(
            id=PREVIEW_ID,
            writer=record["writer"] or "Anonymous",
            createdAt=datetime.now(timezone.utc),
            likes=0,
            views=0,
        )
        local_state.stage_preview(record)
        logger.info(f"Staged preview for {draft.category}/{record['slug']}")
        return record

    async def publish(
        self,
        draft: ArticleDraft,
        article_id: Optional[str] = None,
        local_state: Optional[LocalStateStore] = None,
    ) -> str:
        """
        Create a new article, or update ``article_id`` in place.

        Updates leave createdAt, likes and views untouched. A staged
        preview in ``local_state`` is cleared once the write succeeds.

        Returns:
            The article id
        """
        self._require_admin("publish articles")
        draft.validate()
        data = draft.to_document()

        if article_id:
            await self._call(
                lambda: self._store.update(self.collection, article_id, data),
                f"update {article_id}",
            )
            logger.info(f"Updated article {article_id}")
        else:
            data.update({CREATED_AT: SERVER_TIMESTAMP, "likes": 0, "views": 0})
            article_id = await self._call(
                lambda: self._store.add(self.collection, data),
                "create article",
            )
            logger.info(f"Created article {article_id}")

        if local_state is not None:
            local_state.clear_preview()
        return article_id

    async def delete(self, article_id: str) -> None:
        self._require_admin("delete articles")
        await self._call(
            lambda: self._store.delete(self.collection, article_id),
            f"delete {article_id}",
        )
        logger.info(f"Deleted article {article_id}")

    async def admin_search(self, text: str = "") -> List[Document]:
        """
        Admin article lookup.

        - empty text: newest articles
        - YYYY-MM-DD: articles created on that UTC day, newest first
        - anything else: title prefix or writer prefix, merged by id

        Raises:
            PermissionDeniedError: Caller is not an admin
            ValidationError: Text looks like a date but is not a real one
        """
        self._require_admin("search articles")
        limit = self._config.listing.admin_search_limit
        text = text.strip()
        newest_first = OrderBy(CREATED_AT, Direction.DESCENDING)

        if not text:
            return await self._query(
                Query(collection=self.collection, order_by=(newest_first,), limit=limit),
                "admin newest",
            )

        if _DATE_RE.match(text):
            start = _parse_day(text)
            query = Query(
                collection=self.collection,
                filters=(
                    FieldFilter(CREATED_AT, Operator.GREATER_THAN_OR_EQUAL, start),
                    FieldFilter(CREATED_AT, Operator.LESS_THAN, start + timedelta(days=1)),
                ),
                order_by=(newest_first,),
                limit=limit,
            )
            return await self._query(query, f"admin date {text}")

        lowered = text.lower()
        by_title, by_writer = await asyncio.gather(
            self._query(_prefix_query(self.collection, TITLE_LOWERCASE, lowered, limit), "admin title"),
            self._query(_prefix_query(self.collection, "writer", text, limit), "admin writer"),
        )

        merged: Dict[str, Document] = {}
        for doc in by_title + by_writer:
            merged.setdefault(doc.id, doc)
        logger.info(f"Admin search {text!r}: {len(by_title)} by title, {len(by_writer)} by writer")
        return list(merged.values())


def _prefix_query(collection: str, field: str, prefix: str, limit: int) -> Query:
    return Query(
        collection=collection,
        filters=(
            FieldFilter(field, Operator.GREATER_THAN_OR_EQUAL, prefix),
            FieldFilter(field, Operator.LESS_THAN_OR_EQUAL, prefix + PREFIX_UPPER_BOUND),
        ),
        order_by=(OrderBy(field), OrderBy(CREATED_AT, Direction.DESCENDING)),
        limit=limit,
    )


def _parse_day(text: str) -> datetime:
    try:
        day = datetime.strptime(text, "%Y-%m-%d")
    except ValueError:
        raise ValidationError(DATE_FORMAT_MESSAGE, field="search", value=text)
    return day.replace(tzinfo=timezone.utc)
