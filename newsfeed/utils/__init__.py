"""
Utils package for the newsfeed client.

Contains shared utilities:
- logging_config: Centralized logging configuration
- exceptions: Exception hierarchy and error classification
- retry: Fixed-delay retry with cancellable handles
"""

from newsfeed.utils.logging_config import get_logger, setup_logging, LogContext
from newsfeed.utils.exceptions import (
    ErrorKind,
    NewsfeedError,
    StoreError,
    TransportUnavailableError,
    PermissionDeniedError,
    InvalidQueryError,
    DocumentNotFoundError,
    FetchFailed,
    RetryCancelled,
    ValidationError,
    ConfigError,
    classify_error,
    is_transient,
    user_message,
)
from newsfeed.utils.retry import with_retry, start_with_retry, RetryHandle

__all__ = [
    # Logging
    "get_logger",
    "setup_logging",
    "LogContext",
    # Exceptions
    "ErrorKind",
    "NewsfeedError",
    "StoreError",
    "TransportUnavailableError",
    "PermissionDeniedError",
    "InvalidQueryError",
    "DocumentNotFoundError",
    "FetchFailed",
    "RetryCancelled",
    "ValidationError",
    "ConfigError",
    "classify_error",
    "is_transient",
    "user_message",
    # Retry
    "with_retry",
    "start_with_retry",
    "RetryHandle",
]
