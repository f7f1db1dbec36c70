"""
Custom exceptions for the newsfeed client.

Store errors carry an ErrorKind so the retry layer can decide what is
transient and the listing layer can pick a user-facing message.
"""

from enum import Enum
from typing import Optional, Dict, Any

import httpx


class ErrorKind(str, Enum):
    """Best-effort classification of a failed remote operation."""
    UNAVAILABLE = "unavailable"
    PERMISSION_DENIED = "permission-denied"
    INVALID_QUERY = "invalid-query"
    NOT_FOUND = "not-found"
    UNKNOWN = "unknown"


# Kinds worth another attempt; the rest fail the same way every time.
TRANSIENT_KINDS = frozenset({ErrorKind.UNAVAILABLE, ErrorKind.UNKNOWN})


class NewsfeedError(Exception):
    """Base exception for all newsfeed errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        details = {k: v for k, v in self.details.items() if v is not None}
        if details:
            return f"{self.message} | Details: {details}"
        return self.message


# =============================================================================
# Document Store Errors
# =============================================================================

class StoreError(NewsfeedError):
    """Base exception for document store failures."""

    kind = ErrorKind.UNKNOWN

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        endpoint: Optional[str] = None,
        response_body: Optional[str] = None,
        **kwargs
    ):
        details = {
            "kind": self.kind.value,
            "status_code": status_code,
            "endpoint": endpoint,
            "response_body": response_body[:500] if response_body else None,
            **kwargs
        }
        super().__init__(message, details)
        self.status_code = status_code
        self.endpoint = endpoint


class TransportUnavailableError(StoreError):
    """Network failure, deadline exceeded or the store reported UNAVAILABLE."""
    kind = ErrorKind.UNAVAILABLE


class PermissionDeniedError(StoreError):
    """The caller is not allowed to perform the operation."""
    kind = ErrorKind.PERMISSION_DENIED


class InvalidQueryError(StoreError):
    """Malformed filter/sort, or a composite index is missing."""
    kind = ErrorKind.INVALID_QUERY


class DocumentNotFoundError(StoreError):
    """Raised when a requested document does not exist."""
    kind = ErrorKind.NOT_FOUND

    def __init__(self, collection: str, doc_id: str, **kwargs):
        super().__init__(f"Document not found: {collection}/{doc_id}", **kwargs)
        self.collection = collection
        self.doc_id = doc_id
        self.details["document"] = f"{collection}/{doc_id}"


# =============================================================================
# Listing Errors
# =============================================================================

class FetchFailed(NewsfeedError):
    """
    A page fetch failed after the retry budget was spent.

    Attributes:
        context_id: Listing context the fetch belonged to
        cause: The underlying exception from the last attempt
        kind: Classification of ``cause``
    """

    def __init__(self, context_id: str, cause: BaseException):
        self.context_id = context_id
        self.cause = cause
        self.kind = classify_error(cause)
        super().__init__(
            f"Failed to fetch {context_id}: {cause}",
            {"context_id": context_id, "kind": self.kind.value},
        )


class RetryCancelled(NewsfeedError):
    """The retry sequence was cancelled before it produced a result."""

    def __init__(self, message: str = "Retry cancelled", attempts: int = 0):
        super().__init__(message, {"attempts": attempts})
        self.attempts = attempts


# =============================================================================
# Input / Setup Errors
# =============================================================================

class ValidationError(NewsfeedError):
    """Raised when caller input fails validation checks."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None,
        **kwargs
    ):
        details = {
            "field": field,
            "value": str(value)[:100] if value else None,
            **kwargs
        }
        super().__init__(message, details)
        self.field = field
        self.value = value


class ConfigError(NewsfeedError):
    """Raised when configuration values are unusable."""
    pass


# =============================================================================
# Classification
# =============================================================================

def classify_error(exc: BaseException) -> ErrorKind:
    """
    Map any exception to an ErrorKind.

    Store errors carry their own kind; raw httpx transport failures count
    as UNAVAILABLE; everything else is UNKNOWN.
    """
    if isinstance(exc, StoreError):
        return exc.kind
    if isinstance(exc, FetchFailed):
        return exc.kind
    if isinstance(exc, (httpx.TimeoutException, httpx.NetworkError, httpx.RemoteProtocolError)):
        return ErrorKind.UNAVAILABLE
    return ErrorKind.UNKNOWN


def is_transient(exc: BaseException) -> bool:
    """True when ``exc`` is worth retrying."""
    return classify_error(exc) in TRANSIENT_KINDS


def user_message(kind: ErrorKind, subject: str, collection: str = "articles") -> str:
    """
    Build the inline error text shown inside a failing listing container.

    Args:
        kind: Classification of the failure
        subject: What was being loaded, e.g. 'articles for "Sports"'
        collection: Collection name mentioned in the permission hint
    """
    message = f"Failed to load {subject}. "
    if kind == ErrorKind.PERMISSION_DENIED:
        return message + (
            "Check Firestore security rules to ensure public read access "
            f'to the "{collection}" collection.'
        )
    if kind == ErrorKind.UNAVAILABLE:
        return message + "Network issue detected. Check your internet connection and try again."
    if kind == ErrorKind.INVALID_QUERY:
        return message + "The query was rejected by the database; a required index may be missing."
    return message + "Please try again or refresh the page."
