"""
List Renderer Contract

The listing core hands each fetched page to a renderer together with a
mode. Presentation is not done here; ListRenderer fixes the contract and
MemoryListRenderer is a reference implementation that keeps the rendered
list as data (used by the CLI and the tests).

Contract:
    - REPLACE clears prior content first; APPEND never clears
    - items are rendered in the order received, never re-sorted
    - rendering is idempotent per item id: an id already on screen is
      not rendered twice
    - a zero-item REPLACE shows the placeholder message
    - nothing is reported back to the caller
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, List, Optional

from newsfeed.listing.fetcher import Page
from newsfeed.store.query import Document
from newsfeed.utils.logging_config import get_logger

logger = get_logger("list_renderer")


class RenderMode(str, Enum):
    REPLACE = "replace"
    APPEND = "append"


class ListRenderer(ABC):
    """Presentation side of a listing container."""

    @abstractmethod
    def render(self, page: Page, mode: RenderMode, empty_message: str = "") -> None:
        """Render a page of items in the given mode."""
        pass

    @abstractmethod
    def show_loading(self, message: str) -> None:
        """Replace the container content with a loading notice."""
        pass

    @abstractmethod
    def show_error(self, message: str) -> None:
        """Show a dismissible inline error scoped to this container."""
        pass

    @abstractmethod
    def dismiss_error(self) -> None:
        pass


class MemoryListRenderer(ListRenderer):
    """
    Keeps the rendered list in memory.

    Attributes:
        items: Rendered documents, in display order
        placeholder: Placeholder or loading text currently shown, if any
        error: Inline error currently shown, if any
    """

    def __init__(self, name: str = "list"):
        self.name = name
        self.items: List[Document] = []
        self.placeholder: Optional[str] = None
        self.error: Optional[str] = None
        self._index: Dict[str, int] = {}

    @property
    def ids(self) -> List[str]:
        return [item.id for item in self.items]

    def clear(self) -> None:
        self.items = []
        self._index = {}
        self.placeholder = None

    def render(self, page: Page, mode: RenderMode, empty_message: str = "") -> None:
        if mode == RenderMode.REPLACE:
            self.clear()
            self.error = None

        items = page.items
        if not items:
            if mode == RenderMode.REPLACE:
                self.placeholder = empty_message or None
            return

        self.placeholder = None
        for item in items:
            position = self._index.get(item.id)
            if position is not None:
                # Same item again: refresh its data in place.
                self.items[position] = item
                continue
            self._index[item.id] = len(self.items)
            self.items.append(item)

        logger.debug(f"{self.name}: rendered {len(items)} items ({mode.value}), total {len(self.items)}")

    def show_loading(self, message: str) -> None:
        self.clear()
        self.placeholder = message

    def show_error(self, message: str) -> None:
        self.error = message

    def dismiss_error(self) -> None:
        self.error = None
