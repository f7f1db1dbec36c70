"""
Shared pytest fixtures for newsfeed tests.

Provides seeded in-memory stores, test configurations, a recording
sleep and a store wrapper that can fail or block on demand.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest

from newsfeed.config import Config, ListingConfig, RetryConfig, StoreConfig, set_config
from newsfeed.cursors import CursorStore
from newsfeed.listing import MemoryListRenderer, PaginatedFetcher
from newsfeed.store import MemoryDocumentStore, Query, QueryResult
from newsfeed.store.base import DocumentStore


BASE_TIME = datetime(2025, 9, 1, 12, 0, tzinfo=timezone.utc)


def make_article(
    n: int,
    category: str = "sports",
    minutes: Optional[int] = None,
    **extra: Any,
) -> Dict[str, Any]:
    """Article document data; newer for larger ``minutes`` (default ``n``)."""
    title = extra.pop("title", f"Article {n:02d}")
    data = {
        "title": title,
        "title_lowercase": title.lower(),
        "writer": f"Writer {n % 3}",
        "summary": "",
        "content": f"Body of article {n}, long enough to read.",
        "image": "",
        "video": "",
        "category": category,
        "slug": f"article-{n:02d}",
        "breakingNews": False,
        "verified": False,
        "createdAt": BASE_TIME + timedelta(minutes=n if minutes is None else minutes),
        "likes": 0,
        "views": 0,
    }
    data.update(extra)
    return data


# =============================================================================
# Configuration Fixtures
# =============================================================================

@pytest.fixture
def test_config() -> Config:
    """Config with small pages and a short retry delay."""
    return Config(
        store=StoreConfig(project_id="test-project", api_key="test-key"),
        listing=ListingConfig(page_size=6, search_page_size=10, admin_search_limit=50),
        retry=RetryConfig(max_attempts=3, delay=0.5),
    )


@pytest.fixture(autouse=True)
def isolated_config(test_config):
    """Make get_config() return the test config for every test."""
    set_config(test_config)
    yield test_config
    set_config(None)


# =============================================================================
# Timing Fixtures
# =============================================================================

class RecordingSleep:
    """Awaitable sleep that records delays and yields to the loop once."""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.calls.append(delay)
        await asyncio.sleep(0)


@pytest.fixture
def fake_sleep() -> RecordingSleep:
    return RecordingSleep()


# =============================================================================
# Store Fixtures
# =============================================================================

class ControlledStore(DocumentStore):
    """
    Wraps a MemoryDocumentStore so tests can make run_query fail or block.

    fail_with() queues exceptions raised by the next run_query calls, in
    order. hold() makes run_query wait until release() is called.
    """

    def __init__(self, inner: MemoryDocumentStore):
        self.inner = inner
        self.failures: List[BaseException] = []
        self.calls = 0
        self._gate: Optional[asyncio.Event] = None
        self.waiting = 0

    def fail_with(self, *errors: BaseException) -> None:
        self.failures.extend(errors)

    def hold(self) -> None:
        self._gate = asyncio.Event()

    def release(self) -> None:
        if self._gate is not None:
            self._gate.set()
            self._gate = None

    async def run_query(self, query: Query) -> QueryResult:
        self.calls += 1
        gate = self._gate
        if gate is not None:
            self.waiting += 1
            try:
                await gate.wait()
            finally:
                self.waiting -= 1
        if self.failures:
            raise self.failures.pop(0)
        return await self.inner.run_query(query)

    async def get(self, collection, doc_id):
        return await self.inner.get(collection, doc_id)

    async def add(self, collection, data):
        return await self.inner.add(collection, data)

    async def update(self, collection, doc_id, data):
        await self.inner.update(collection, doc_id, data)

    async def increment(self, collection, doc_id, field, amount=1):
        await self.inner.increment(collection, doc_id, field, amount)

    async def delete(self, collection, doc_id):
        await self.inner.delete(collection, doc_id)


@pytest.fixture
def article_data():
    """The make_article factory, for tests that seed their own documents."""
    return make_article


@pytest.fixture
def memory_store() -> MemoryDocumentStore:
    """Store with 14 sports articles (s01..s14) and 3 politics ones (p01..p03)."""
    store = MemoryDocumentStore(clock=lambda: BASE_TIME + timedelta(days=1))
    for n in range(1, 15):
        store.seed("articles", f"s{n:02d}", make_article(n, "sports"))
    for n in range(1, 4):
        store.seed("articles", f"p{n:02d}", make_article(100 + n, "politics-governance"))
    return store


@pytest.fixture
def empty_store() -> MemoryDocumentStore:
    return MemoryDocumentStore(clock=lambda: BASE_TIME)


@pytest.fixture
def controlled_store(memory_store) -> ControlledStore:
    return ControlledStore(memory_store)


# =============================================================================
# Listing Fixtures
# =============================================================================

@pytest.fixture
def cursor_store() -> CursorStore:
    return CursorStore()


@pytest.fixture
def fetcher(controlled_store, cursor_store, test_config, fake_sleep) -> PaginatedFetcher:
    return PaginatedFetcher(controlled_store, cursor_store, config=test_config, sleep=fake_sleep)


@pytest.fixture
def renderer() -> MemoryListRenderer:
    return MemoryListRenderer("test")
