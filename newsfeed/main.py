"""
Main entry point for the newsfeed client.

Pages through one listing feed against the configured Firestore project
and prints what each page added.

Usage:
    # Home page latest news
    python -m newsfeed.main --feed=home

    # One category, three pages
    python -m newsfeed.main --feed=category --category=sports --pages=3

    # Title prefix search
    python -m newsfeed.main --feed=search --term="budget"
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional

from newsfeed.config import Config, load_config
from newsfeed.formatting import format_timestamp
from newsfeed.listing import (
    ListingContext,
    ListingSession,
    MemoryListRenderer,
    PaginatedFetcher,
    category_page,
    home_latest,
    politics_feed,
    search_results,
)
from newsfeed.store.base import DocumentStore
from newsfeed.store.firestore import FirestoreDocumentStore
from newsfeed.utils.exceptions import NewsfeedError
from newsfeed.utils.logging_config import get_logger, setup_logging

logger = get_logger("main")


def build_context(
    feed: str,
    category: Optional[str] = None,
    term: Optional[str] = None,
    config: Optional[Config] = None,
) -> ListingContext:
    """Map CLI feed options to a listing context."""
    if feed == "home":
        return home_latest(category, config)
    if feed == "category":
        return category_page(category or "", config)
    if feed == "politics":
        return politics_feed(config)
    if feed == "search":
        return search_results(term or "", config)
    raise ValueError(f"Unknown feed: {feed}")


async def run_feed(
    store: DocumentStore,
    context: ListingContext,
    pages: int = 1,
    config: Optional[Config] = None,
) -> MemoryListRenderer:
    """
    Load up to ``pages`` pages of a feed.

    Stops early when the feed is exhausted or a fetch fails.

    Returns:
        The renderer holding everything that was shown
    """
    renderer = MemoryListRenderer(context.context_id)
    session = ListingSession(context, PaginatedFetcher(store, config=config), renderer)

    page = await session.reset()
    loaded = 1
    _print_page(renderer, page, loaded)

    while loaded < pages and session.controller.can_trigger() and session.last_error is None:
        page = await session.load_more()
        loaded += 1
        _print_page(renderer, page, loaded)

    await session.close()
    return renderer


def _print_page(renderer: MemoryListRenderer, page, number: int) -> None:
    if renderer.error:
        print(f"\n[error] {renderer.error}")
    if page is None:
        return
    if not page.items and renderer.placeholder:
        print(f"\n{renderer.placeholder}")
        return
    print(f"\n--- Page {number} ({len(page)} items) ---")
    for doc in page:
        print(f"  {format_timestamp(doc.get('createdAt'))}  {doc.get('title', '(untitled)')}")


def main():
    """Main entry point with CLI argument parsing."""
    parser = argparse.ArgumentParser(
        description="Newsfeed client - page through article feeds",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Latest news
    python -m newsfeed.main --feed=home

    # Category page, two pages deep
    python -m newsfeed.main --feed=category --category=sports --pages=2

    # Show resolved configuration
    python -m newsfeed.main --status
        """
    )

    parser.add_argument(
        "--feed",
        choices=["home", "category", "politics", "search"],
        default="home",
        help="Feed to load (default: home)"
    )

    parser.add_argument(
        "--category",
        default=None,
        help="Category slug for the home or category feed"
    )

    parser.add_argument(
        "--term",
        default=None,
        help="Search term for the search feed"
    )

    parser.add_argument(
        "--pages",
        type=int,
        default=1,
        help="Number of pages to load (default: 1)"
    )

    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.json"
    )

    parser.add_argument(
        "--status",
        action="store_true",
        help="Show resolved configuration and exit"
    )

    parser.add_argument(
        "--log-file",
        action="store_true",
        help="Enable file logging to logs/newsfeed.log"
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log at DEBUG level"
    )

    args = parser.parse_args()

    setup_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        file=args.log_file,
    )

    config = load_config(args.config)

    if args.status:
        print("\n=== Newsfeed Configuration ===")
        print(f"Project: {config.store.project_id or '(not set)'}")
        print(f"Database: {config.store.database}")
        print(f"API key: {'set' if config.store.api_key else '(not set)'}")
        print(f"Page size: {config.listing.page_size} (search: {config.listing.search_page_size})")
        print(f"Retry: {config.retry.max_attempts} attempts, {config.retry.delay}s apart")
        print()
        return

    if args.pages < 1:
        parser.error("--pages must be at least 1")

    try:
        context = build_context(args.feed, args.category, args.term, config)
        logger.info(f"Loading {context.context_id}, pages: {args.pages}")
        store = FirestoreDocumentStore(config.store)
        asyncio.run(_run(store, context, args.pages, config))

    except NewsfeedError as e:
        logger.error(str(e))
        sys.exit(2)
    except KeyboardInterrupt:
        print("\n\nInterrupted by user.")
        sys.exit(130)
    except Exception as e:
        logger.exception(f"Feed failed: {e}")
        sys.exit(1)


async def _run(store: DocumentStore, context: ListingContext, pages: int, config: Config) -> None:
    async with store:
        await run_feed(store, context, pages, config)


if __name__ == "__main__":
    main()
