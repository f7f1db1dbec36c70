"""
Listing core: contexts, query building, paginated fetching, the load-more
state machine and the renderer contract.
"""

from newsfeed.listing.context import (
    ListingContext,
    home_latest,
    category_page,
    politics_feed,
    search_results,
    comment_thread,
    reply_thread,
    normalize_search_term,
)
from newsfeed.listing.query_builder import build
from newsfeed.listing.fetcher import Page, PaginatedFetcher
from newsfeed.listing.controller import LoadMoreController, LoadMoreState, TriggerState
from newsfeed.listing.renderer import ListRenderer, MemoryListRenderer, RenderMode
from newsfeed.listing.session import ListingSession

__all__ = [
    "ListingContext",
    "home_latest",
    "category_page",
    "politics_feed",
    "search_results",
    "comment_thread",
    "reply_thread",
    "normalize_search_term",
    "build",
    "Page",
    "PaginatedFetcher",
    "LoadMoreController",
    "LoadMoreState",
    "TriggerState",
    "ListRenderer",
    "MemoryListRenderer",
    "RenderMode",
    "ListingSession",
]
