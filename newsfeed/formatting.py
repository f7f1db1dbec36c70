"""
Small display helpers shared by listings and content services.
"""

import re
from datetime import datetime
from typing import Any
from urllib.parse import urlparse

from newsfeed.utils.logging_config import get_logger

logger = get_logger("formatting")

DATE_UNAVAILABLE = "Date Unavailable"

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def format_category(category: str) -> str:
    """
    Human-readable category name.

    >>> format_category("politics-governance")
    'Politics & Governance'
    """
    return " & ".join(word[:1].upper() + word[1:] for word in category.split("-"))


def format_timestamp(value: Any) -> str:
    """Render a stored timestamp as M/D/YYYY, or "Date Unavailable"."""
    if value is None:
        logger.warning("Timestamp is null or undefined")
        return DATE_UNAVAILABLE
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            logger.warning(f"Unparseable timestamp: {value!r}")
            return DATE_UNAVAILABLE
    if not isinstance(value, datetime):
        logger.warning(f"Timestamp is not a datetime: {value!r}")
        return DATE_UNAVAILABLE
    return f"{value.month}/{value.day}/{value.year}"


def is_valid_url(value: str) -> bool:
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return bool(parsed.scheme and (parsed.netloc or parsed.path))


def is_valid_email(value: str) -> bool:
    return bool(_EMAIL_RE.match(value or ""))


def summarize(article: dict, length: int = 100) -> str:
    """Summary text for a card: explicit summary, else the content head."""
    if article.get("summary"):
        return article["summary"]
    content = article.get("content")
    if content:
        return content[:length] + "..."
    return "No summary available"
