"""
Client-side state: liked and saved article ids, plus a single staged
"preview article" record.

Persisted as one JSON file. Every mutation is a read-modify-write of the
whole file, so two stores pointed at the same path see each other's
changes on their next call.
"""

import json
from dataclasses import dataclass, field, asdict
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from newsfeed.config import Config, get_config
from newsfeed.utils.logging_config import get_logger

logger = get_logger("local_state")


@dataclass
class LocalState:
    liked: List[str] = field(default_factory=list)
    saved: List[str] = field(default_factory=list)
    preview: Optional[Dict[str, Any]] = None


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class LocalStateStore:
    """
    JSON-file backed liked/saved/preview state.

    Args:
        state_file: Path to the JSON file (default: next to the package,
            named by config.local_state.filename)
        config: Config instance (defaults to get_config())
    """

    def __init__(self, state_file: Optional[str] = None, config: Optional[Config] = None):
        if state_file is None:
            config = config or get_config()
            self._state_file = Path(__file__).parent.parent / config.local_state.filename
        else:
            self._state_file = Path(state_file)

    @property
    def path(self) -> Path:
        return self._state_file

    def load(self) -> LocalState:
        """Read the state file. Missing or unreadable files give an empty state."""
        if not self._state_file.exists():
            return LocalState()
        try:
            with open(self._state_file, "r", encoding="utf-8") as f:
                data = json.load(f)
            return LocalState(
                liked=[str(i) for i in data.get("liked", [])],
                saved=[str(i) for i in data.get("saved", [])],
                preview=data.get("preview") or None,
            )
        except (json.JSONDecodeError, AttributeError, TypeError) as e:
            logger.warning(f"Could not parse local state file {self._state_file}: {e}")
            return LocalState()

    def save(self, state: LocalState) -> None:
        self._state_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self._state_file, "w", encoding="utf-8") as f:
            json.dump(asdict(state), f, indent=2, default=_json_default)

    # Liked / saved -----------------------------------------------------------

    def is_liked(self, article_id: str) -> bool:
        return article_id in self.load().liked

    def mark_liked(self, article_id: str) -> bool:
        """Record a like. Returns False if the article was already liked."""
        state = self.load()
        if article_id in state.liked:
            return False
        state.liked.append(article_id)
        self.save(state)
        return True

    def is_saved(self, article_id: str) -> bool:
        return article_id in self.load().saved

    def mark_saved(self, article_id: str) -> bool:
        """Record a save. Returns False if the article was already saved."""
        state = self.load()
        if article_id in state.saved:
            return False
        state.saved.append(article_id)
        self.save(state)
        return True

    # Preview -----------------------------------------------------------------

    def stage_preview(self, article: Dict[str, Any]) -> None:
        """Replace the staged preview record."""
        state = self.load()
        state.preview = dict(article)
        self.save(state)

    def get_preview(self) -> Optional[Dict[str, Any]]:
        return self.load().preview

    def clear_preview(self) -> None:
        state = self.load()
        if state.preview is None:
            return
        state.preview = None
        self.save(state)
