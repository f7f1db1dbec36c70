"""
Query Builder: ListingContext + Cursor -> Query.

Clause order is fixed: equality filters, range filters, the context's sort
key, the document-id tiebreak, the resume position, the page limit.
Equality filters come before range/order clauses to line up with the
store's composite index layout.
"""

from typing import Optional

from newsfeed.cursors.store import Cursor
from newsfeed.listing.context import ListingContext
from newsfeed.store.query import DOCUMENT_ID, FieldFilter, Operator, OrderBy, Query


def build(context: ListingContext, cursor: Optional[Cursor] = None) -> Query:
    """
    Compose the query for one page of ``context``.

    The document id is always ordered after the sort field (same
    direction), so items sharing a sort value keep a fixed order and a
    cursor can resume between them without skipping or repeating.

    Args:
        context: The feed definition
        cursor: Position to resume strictly after, or None for page one

    Returns:
        A Query limited to ``context.page_size`` documents
    """
    filters = tuple(
        FieldFilter(field, Operator.EQUAL, value)
        for field, value in context.equality_filters
    ) + tuple(context.range_filters)

    order_by = (
        OrderBy(context.sort_field, context.sort_direction),
        OrderBy(DOCUMENT_ID, context.sort_direction),
    )

    return Query(
        collection=context.collection,
        filters=filters,
        order_by=order_by,
        start_after=cursor.position() if cursor is not None else None,
        limit=context.page_size,
    )
