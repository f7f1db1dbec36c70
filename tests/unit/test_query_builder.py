"""
Unit tests for listing contexts and the query builder.
"""

import pytest

from newsfeed.cursors import Cursor
from newsfeed.listing import (
    ListingContext,
    build,
    category_page,
    comment_thread,
    home_latest,
    politics_feed,
    reply_thread,
    search_results,
)
from newsfeed.store import DOCUMENT_ID, PREFIX_UPPER_BOUND, Direction, FieldFilter, Operator, OrderBy
from newsfeed.utils.exceptions import ValidationError


class TestContexts:
    """Test the context factories."""

    def test_home_latest_unfiltered(self):
        ctx = home_latest()
        assert ctx.context_id == "home-latest"
        assert ctx.equality_filters == ()
        assert ctx.sort_field == "createdAt"
        assert ctx.sort_direction == Direction.DESCENDING
        assert ctx.page_size == 6

    def test_home_latest_with_category(self):
        ctx = home_latest("sports")
        assert ctx.context_id == "home-latest:sports"
        assert ctx.equality_filters == (("category", "sports"),)

    def test_home_latest_invalid_category_falls_back(self):
        ctx = home_latest("not-a-category")
        assert ctx.context_id == "home-latest"
        assert ctx.equality_filters == ()
        assert ctx.notice == 'Invalid category "not-a-category". Showing all articles instead.'
        assert home_latest().notice == ""

    def test_category_page_rejects_unknown(self):
        with pytest.raises(ValidationError):
            category_page("not-a-category")

    def test_category_page_requires_category(self):
        with pytest.raises(ValidationError, match="Category is required"):
            category_page("")

    def test_politics_feed(self):
        ctx = politics_feed()
        assert ctx.context_id == "politics"
        assert ctx.equality_filters == (("category", "politics-governance"),)

    def test_search_normalizes_term(self):
        ctx = search_results("  Budget ")
        assert ctx.context_id == "search:budget"
        assert ctx.sort_field == "title_lowercase"
        assert ctx.sort_direction == Direction.ASCENDING
        assert ctx.page_size == 10
        assert ctx.range_filters == (
            FieldFilter("title_lowercase", Operator.GREATER_THAN_OR_EQUAL, "budget"),
            FieldFilter("title_lowercase", Operator.LESS_THAN_OR_EQUAL, "budget" + PREFIX_UPPER_BOUND),
        )

    def test_search_rejects_blank_term(self):
        with pytest.raises(ValidationError):
            search_results("   ")

    def test_comment_and_reply_threads(self):
        comments = comment_thread("a1")
        replies = reply_thread("a1", "c1")
        assert comments.collection == "articles/a1/comments"
        assert replies.collection == "articles/a1/comments/c1/replies"
        assert comments.sort_field == replies.sort_field == "timestamp"
        assert comments.context_id != replies.context_id

    def test_duplicate_equality_field_rejected(self):
        with pytest.raises(ValidationError):
            ListingContext(
                context_id="x",
                collection="articles",
                sort_field="createdAt",
                equality_filters=(("category", "a"), ("category", "b")),
            )

    def test_page_size_must_be_positive(self):
        with pytest.raises(ValidationError):
            ListingContext(context_id="x", collection="articles", sort_field="createdAt", page_size=0)


class TestBuild:
    """Test query composition."""

    def test_first_page(self):
        query = build(category_page("sports"))
        assert query.collection == "articles"
        assert query.filters == (FieldFilter("category", Operator.EQUAL, "sports"),)
        assert query.order_by == (
            OrderBy("createdAt", Direction.DESCENDING),
            OrderBy(DOCUMENT_ID, Direction.DESCENDING),
        )
        assert query.start_after is None
        assert query.limit == 6

    def test_cursor_sets_start_after(self):
        query = build(category_page("sports"), Cursor("2025-09-01", "s07"))
        assert query.start_after == ("2025-09-01", "s07")

    def test_equality_filters_precede_range_filters(self):
        ctx = ListingContext(
            context_id="mixed",
            collection="articles",
            sort_field="title_lowercase",
            equality_filters=(("category", "sports"),),
            range_filters=(FieldFilter("title_lowercase", Operator.GREATER_THAN_OR_EQUAL, "a"),),
        )
        query = build(ctx)
        assert [f.op for f in query.filters] == [Operator.EQUAL, Operator.GREATER_THAN_OR_EQUAL]

    def test_tiebreak_follows_sort_direction(self):
        query = build(search_results("x"))
        assert query.order_by[1] == OrderBy(DOCUMENT_ID, Direction.ASCENDING)

    def test_build_is_pure(self):
        ctx = home_latest()
        cursor = Cursor(1, "a")
        assert build(ctx, cursor) == build(ctx, cursor)
