"""
Load-More Controller

State machine for one "Load More" trigger:

    IDLE --trigger--> LOADING
    LOADING --page has more--> IDLE
    LOADING --short or last page--> EXHAUSTED
    LOADING --failure--> ERROR
    ERROR --trigger--> LOADING
    any --reset--> LOADING

The trigger is disabled for the whole of LOADING, so at most one fetch
per context is ever issued through it.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from newsfeed.listing.fetcher import Page
from newsfeed.utils.logging_config import get_logger

logger = get_logger("load_more")

LOAD_MORE_LABEL = "Load More"
LOADING_LABEL = "Loading..."


class LoadMoreState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    EXHAUSTED = "exhausted"
    ERROR = "error"


@dataclass
class TriggerState:
    """What the trigger control should look like."""
    visible: bool = True
    enabled: bool = True
    busy: bool = False
    label: str = LOAD_MORE_LABEL


class LoadMoreController:
    """
    Gates load-more requests for one listing context and owns the trigger's
    visible/enabled/busy/label state.
    """

    def __init__(
        self,
        context_id: str = "",
        label: str = LOAD_MORE_LABEL,
        loading_label: str = LOADING_LABEL,
    ):
        self.context_id = context_id
        self._label = label
        self._loading_label = loading_label
        self.state = LoadMoreState.IDLE
        self.trigger = TriggerState(label=label)
        self.error_message: Optional[str] = None

    def can_trigger(self) -> bool:
        return self.state in (LoadMoreState.IDLE, LoadMoreState.ERROR)

    def begin(self, reset: bool = False) -> bool:
        """
        Enter LOADING.

        A reset is always accepted and re-initializes the controller; a
        plain trigger is accepted only from IDLE or ERROR.

        Returns:
            True if a fetch should be issued
        """
        if not reset and not self.can_trigger():
            logger.debug(f"Ignoring trigger for {self.context_id} in state {self.state.value}")
            return False

        self.state = LoadMoreState.LOADING
        self.error_message = None
        self.trigger = TriggerState(
            visible=True,
            enabled=False,
            busy=True,
            label=self._loading_label,
        )
        return True

    def resolve(self, page: Page) -> LoadMoreState:
        """Settle LOADING from a fetched page."""
        if self.state != LoadMoreState.LOADING:
            logger.warning(f"resolve() for {self.context_id} outside LOADING ({self.state.value})")

        if page.has_more:
            self.state = LoadMoreState.IDLE
            self.trigger = TriggerState(label=self._label)
        else:
            self.state = LoadMoreState.EXHAUSTED
            self.trigger = TriggerState(visible=False, enabled=False, label=self._label)
            logger.info(f"No more items for {self.context_id}; hiding load more")
        return self.state

    def fail(self, message: str) -> LoadMoreState:
        """Settle LOADING from a failed fetch; the user may try again."""
        self.state = LoadMoreState.ERROR
        self.error_message = message
        self.trigger = TriggerState(label=self._label)
        return self.state

    def reset(self) -> None:
        """Back to IDLE with the trigger visible (new context)."""
        self.state = LoadMoreState.IDLE
        self.error_message = None
        self.trigger = TriggerState(label=self._label)
