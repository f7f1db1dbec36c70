"""
Article categories known to the site.
"""

from typing import Optional

from newsfeed.utils.exceptions import ValidationError

VALID_CATEGORIES = (
    "politics-governance",
    "fact-check",
    "sports",
    "entertainment",
    "matoreto-buildline",
    "economy-business",
    "security-justice",
    "society-culture",
    "health-education",
    "techlens",
    "investigations",
    "opinion-editorials",
    "columns",
    "infographics",
    "videos-documentaries",
)

POLITICS = "politics-governance"
FACT_CHECK = "fact-check"


def is_valid_category(category: Optional[str]) -> bool:
    return category in VALID_CATEGORIES


def require_category(category: Optional[str]) -> str:
    """Return ``category`` unchanged, or raise ValidationError if unknown."""
    if not category:
        raise ValidationError("Category is required.", field="category")
    if category not in VALID_CATEGORIES:
        raise ValidationError(f'Invalid category "{category}".', field="category", value=category)
    return category
