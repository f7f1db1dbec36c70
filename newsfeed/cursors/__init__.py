"""
Cursor management for listing feeds.
"""

from newsfeed.cursors.store import Cursor, CursorStore

__all__ = [
    "Cursor",
    "CursorStore",
]
