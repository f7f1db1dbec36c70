"""
Listing Session

Drives one listing container end to end: pick the context, fetch through
the paginated fetcher, render with replace-or-append semantics, and keep
the load-more controller in step. Failures stay inside the session; they
are shown inline and never raised to the caller, so one broken feed does
not take sibling feeds down with it.

Usage:
    session = ListingSession(category_page("sports"), fetcher, renderer)
    await session.reset()
    while session.controller.can_trigger():
        await session.load_more()
"""

from typing import Optional

from newsfeed.listing.context import ListingContext
from newsfeed.listing.controller import LoadMoreController, LoadMoreState
from newsfeed.listing.fetcher import Page, PaginatedFetcher
from newsfeed.listing.renderer import ListRenderer, RenderMode
from newsfeed.utils.exceptions import FetchFailed, RetryCancelled, user_message
from newsfeed.utils.logging_config import LogContext, get_logger

logger = get_logger("listing_session")

LOADING_MESSAGE = "Loading articles..."


class ListingSession:
    """
    One listing container bound to a context.

    Args:
        context: Initial listing context
        fetcher: Shared PaginatedFetcher (owns the cursor store)
        renderer: Presentation collaborator for this container
        controller: Optional LoadMoreController (one is created if omitted)
    """

    def __init__(
        self,
        context: ListingContext,
        fetcher: PaginatedFetcher,
        renderer: ListRenderer,
        controller: Optional[LoadMoreController] = None,
    ):
        self.context = context
        self.fetcher = fetcher
        self.renderer = renderer
        self.controller = controller or LoadMoreController(context.context_id)
        self.last_error: Optional[FetchFailed] = None

    @property
    def state(self) -> LoadMoreState:
        return self.controller.state

    async def reset(self, context: Optional[ListingContext] = None) -> Optional[Page]:
        """
        Start the feed over, optionally switching to a new context.

        Switching contexts discards the old context's cursor and cancels
        any fetch it still has running.

        Returns:
            The first page, or None if the fetch failed or was superseded
        """
        if context is not None and context.context_id != self.context.context_id:
            old_id = self.context.context_id
            self.fetcher.cancel(old_id)
            self.fetcher.cursor_store.clear(old_id)
            logger.info(f"Switching listing from {old_id} to {context.context_id}")
            self.context = context
            self.controller.context_id = context.context_id
        elif context is not None:
            self.context = context

        self.controller.begin(reset=True)
        self.renderer.dismiss_error()
        self.renderer.show_loading(LOADING_MESSAGE)
        return await self._run(reset=True)

    async def load_more(self) -> Optional[Page]:
        """
        Append the next page if the controller allows a fetch right now.

        Returns:
            The appended page, or None if the trigger was not accepted or
            the fetch failed
        """
        if not self.controller.begin():
            return None
        self.renderer.dismiss_error()
        return await self._run(reset=False)

    async def close(self) -> None:
        """Tear the view down: cancel its fetch and forget its cursor."""
        self.fetcher.cancel(self.context.context_id)
        self.fetcher.cursor_store.clear(self.context.context_id)

    async def _run(self, reset: bool) -> Optional[Page]:
        context = self.context
        with LogContext(context_id=context.context_id):
            try:
                page = await self.fetcher.fetch(context, reset=reset)
            except RetryCancelled:
                # A newer reset owns the controller and renderer now.
                return None
            except FetchFailed as e:
                self.last_error = e
                message = user_message(e.kind, context.subject, context.collection.split("/", 1)[0])
                logger.error(f"Error loading {context.context_id}: {e}")
                if reset:
                    self.renderer.render(
                        Page(context.context_id, page_size=context.page_size, reset=True),
                        RenderMode.REPLACE,
                    )
                self.renderer.show_error(message)
                self.controller.fail(message)
                return None

        if context is not self.context:
            # Context switched while this fetch was running.
            return None

        self.last_error = None
        mode = RenderMode.REPLACE if reset else RenderMode.APPEND
        self.renderer.render(page, mode, empty_message=context.empty_message)
        if reset and context.notice:
            self.renderer.show_error(context.notice)
        self.controller.resolve(page)
        return page
