"""
Newsfeed Client Package

Cursor-paginated article feeds over a hosted document database, with
per-feed cursors, a cancellable fixed-delay retry layer and a load-more
state machine, plus the article, comment and admin operations of the
news site.

Package Structure:
    newsfeed/
    ├── __init__.py          # This file - package entry point
    ├── config.py            # Configuration management
    ├── main.py              # CLI entry point
    ├── categories.py        # Known category slugs
    ├── formatting.py        # Display helpers
    ├── store/               # Document store layer
    │   ├── query.py         # Query/Document/QueryResult types
    │   ├── base.py          # DocumentStore interface
    │   ├── memory.py        # In-process store
    │   └── firestore.py     # Firestore REST store (httpx)
    ├── cursors/
    │   └── store.py         # Per-context cursor store
    ├── listing/             # Paginated feeds
    │   ├── context.py       # Listing contexts (home, category, search, ...)
    │   ├── query_builder.py # Context + cursor -> Query
    │   ├── fetcher.py       # PaginatedFetcher and Page
    │   ├── controller.py    # Load-more state machine
    │   ├── renderer.py      # Renderer contract
    │   └── session.py       # One listing container end to end
    ├── content/             # Article, comment and local state services
    └── utils/
        ├── logging_config.py
        ├── exceptions.py
        └── retry.py

Usage:
    # From command line:
    python -m newsfeed.main --feed=category --category=sports --pages=2

    # Programmatic usage:
    from newsfeed import (
        FirestoreDocumentStore, PaginatedFetcher, ListingSession,
        MemoryListRenderer, category_page, get_config,
    )

    store = FirestoreDocumentStore(get_config().store)
    session = ListingSession(category_page("sports"), PaginatedFetcher(store), MemoryListRenderer())
    await session.reset()
    await session.load_more()
"""

from newsfeed.config import Config, get_config, load_config, set_config
from newsfeed.cursors import Cursor, CursorStore
from newsfeed.store import DocumentStore, FirestoreDocumentStore, MemoryDocumentStore
from newsfeed.listing import (
    ListingContext,
    ListingSession,
    LoadMoreController,
    LoadMoreState,
    MemoryListRenderer,
    Page,
    PaginatedFetcher,
    RenderMode,
    category_page,
    home_latest,
    politics_feed,
    search_results,
)
from newsfeed.content import ArticleDraft, ArticleService, CommentService, LocalStateStore
from newsfeed.utils import setup_logging, get_logger

__version__ = "1.0.0"

__all__ = [
    "Config",
    "get_config",
    "load_config",
    "set_config",
    "Cursor",
    "CursorStore",
    "DocumentStore",
    "FirestoreDocumentStore",
    "MemoryDocumentStore",
    "ListingContext",
    "ListingSession",
    "LoadMoreController",
    "LoadMoreState",
    "MemoryListRenderer",
    "Page",
    "PaginatedFetcher",
    "RenderMode",
    "category_page",
    "home_latest",
    "politics_feed",
    "search_results",
    "ArticleDraft",
    "ArticleService",
    "CommentService",
    "LocalStateStore",
    "setup_logging",
    "get_logger",
]
