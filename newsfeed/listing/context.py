"""
Listing contexts: one independently paginated feed each.

A context's filters, sort and page size are fixed for its whole life.
Changing a category or search term means building a new context (and
resetting), never mutating an existing one.
"""

from dataclasses import dataclass
from typing import Any, Optional, Tuple

from newsfeed.categories import POLITICS, is_valid_category, require_category
from newsfeed.config import Config, get_config
from newsfeed.formatting import format_category
from newsfeed.store.query import PREFIX_UPPER_BOUND, Direction, FieldFilter, Operator
from newsfeed.utils.exceptions import ValidationError
from newsfeed.utils.logging_config import get_logger

logger = get_logger("listing_context")

CREATED_AT = "createdAt"
TIMESTAMP = "timestamp"
TITLE_LOWERCASE = "title_lowercase"


@dataclass(frozen=True)
class ListingContext:
    """
    Definition of one feed.

    Attributes:
        context_id: Key for the cursor store, e.g. "category:sports"
        collection: Collection path queried
        sort_field: The single sort key
        sort_direction: Direction of the sort key
        page_size: Items per page
        equality_filters: (field, value) pairs, ANDed, in index order
        range_filters: Range clauses (prefix search only)
        subject: What the feed lists, used in error messages
        empty_message: Placeholder text when the first page is empty
        notice: Inline message shown alongside the first page
    """
    context_id: str
    collection: str
    sort_field: str
    sort_direction: Direction = Direction.DESCENDING
    page_size: int = 6
    equality_filters: Tuple[Tuple[str, Any], ...] = ()
    range_filters: Tuple[FieldFilter, ...] = ()
    subject: str = "articles"
    empty_message: str = "No articles found."
    notice: str = ""

    def __post_init__(self):
        if self.page_size < 1:
            raise ValidationError("page_size must be positive", field="page_size", value=self.page_size)
        fields = [f for f, _ in self.equality_filters]
        if len(fields) != len(set(fields)):
            raise ValidationError("Duplicate equality filter field", field="equality_filters", value=fields)
        for flt in self.range_filters:
            if flt.op == Operator.EQUAL:
                raise ValidationError("Range filters cannot use ==", field=flt.field)


def _listing(config: Optional[Config]):
    return (config or get_config()).listing


def home_latest(category: Optional[str] = None, config: Optional[Config] = None) -> ListingContext:
    """
    The home page "latest news" feed, optionally narrowed to one category.

    An unknown category falls back to the unfiltered feed, carrying a
    notice that says so.
    """
    listing = _listing(config)
    notice = ""
    if category and not is_valid_category(category):
        logger.warning(f"Invalid category provided: {category}. Falling back to all categories.")
        notice = f'Invalid category "{category}". Showing all articles instead.'
        category = None

    if category:
        return ListingContext(
            context_id=f"home-latest:{category}",
            collection=listing.articles_collection,
            sort_field=CREATED_AT,
            page_size=listing.page_size,
            equality_filters=(("category", category),),
            subject=f'articles for "{format_category(category)}"',
            empty_message=f"No {format_category(category)} found.",
        )
    return ListingContext(
        context_id="home-latest",
        collection=listing.articles_collection,
        sort_field=CREATED_AT,
        page_size=listing.page_size,
        empty_message="No articles found.",
        notice=notice,
    )


def category_page(category: str, config: Optional[Config] = None) -> ListingContext:
    """The dedicated category page feed. Unknown categories are rejected."""
    require_category(category)
    listing = _listing(config)
    name = format_category(category)
    return ListingContext(
        context_id=f"category:{category}",
        collection=listing.articles_collection,
        sort_field=CREATED_AT,
        page_size=listing.page_size,
        equality_filters=(("category", category),),
        subject=f'articles for "{name}"',
        empty_message=f"No {name} articles found.",
    )


def politics_feed(config: Optional[Config] = None) -> ListingContext:
    """The politics highlight feed on the home page."""
    listing = _listing(config)
    category = listing.politics_category or POLITICS
    name = format_category(category)
    return ListingContext(
        context_id="politics",
        collection=listing.articles_collection,
        sort_field=CREATED_AT,
        page_size=listing.page_size,
        equality_filters=(("category", category),),
        subject=f"{name} articles",
        empty_message=f"No {name} articles found.",
    )


def normalize_search_term(term: str) -> str:
    return (term or "").strip().lower()


def search_results(term: str, config: Optional[Config] = None) -> ListingContext:
    """Title prefix search, ascending by normalized title."""
    normalized = normalize_search_term(term)
    if not normalized:
        raise ValidationError("Please enter a search query.", field="term")
    listing = _listing(config)
    return ListingContext(
        context_id=f"search:{normalized}",
        collection=listing.articles_collection,
        sort_field=TITLE_LOWERCASE,
        sort_direction=Direction.ASCENDING,
        page_size=listing.search_page_size,
        range_filters=(
            FieldFilter(TITLE_LOWERCASE, Operator.GREATER_THAN_OR_EQUAL, normalized),
            FieldFilter(TITLE_LOWERCASE, Operator.LESS_THAN_OR_EQUAL, normalized + PREFIX_UPPER_BOUND),
        ),
        subject="search results",
        empty_message="No results found.",
    )


def comment_thread(article_id: str, config: Optional[Config] = None) -> ListingContext:
    """Comments under one article, newest first."""
    listing = _listing(config)
    return ListingContext(
        context_id=f"comments:{article_id}",
        collection=f"{listing.articles_collection}/{article_id}/comments",
        sort_field=TIMESTAMP,
        page_size=listing.page_size,
        subject="comments",
        empty_message="No comments yet.",
    )


def reply_thread(article_id: str, comment_id: str, config: Optional[Config] = None) -> ListingContext:
    """Replies under one comment, newest first. Replies do not nest further."""
    listing = _listing(config)
    return ListingContext(
        context_id=f"replies:{article_id}/{comment_id}",
        collection=f"{listing.articles_collection}/{article_id}/comments/{comment_id}/replies",
        sort_field=TIMESTAMP,
        page_size=listing.page_size,
        subject="replies",
        empty_message="No replies yet.",
    )
