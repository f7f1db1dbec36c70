"""
Centralized logging configuration for the newsfeed client.

All modules log under the ``newsfeed`` namespace so a single call to
setup_logging() controls console and file output for every listing,
store and content service.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from contextvars import ContextVar
from typing import Any, Dict, Optional


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-26s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ROOT_LOGGER_NAME = "newsfeed"

DEFAULT_LOG_DIR = Path(__file__).parent.parent.parent / "logs"


def setup_logging(
    level: int = logging.INFO,
    log_dir: Optional[Path] = None,
    console: bool = True,
    file: bool = False,
    max_bytes: int = 5 * 1024 * 1024,  # 5 MB
    backup_count: int = 5,
) -> logging.Logger:
    """
    Configure the ``newsfeed`` logger tree.

    Args:
        level: Logging level (default INFO)
        log_dir: Directory for log files (default: ./logs next to the package)
        console: Enable stdout output
        file: Enable rotating file output (newsfeed.log + newsfeed_errors.log)
        max_bytes: Max size per log file before rotation
        backup_count: Number of rotated files to keep

    Returns:
        The root ``newsfeed`` logger
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    if file:
        log_dir = log_dir or DEFAULT_LOG_DIR
        log_dir.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_dir / "newsfeed.log",
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

        error_handler = logging.handlers.RotatingFileHandler(
            log_dir / "newsfeed_errors.log",
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(formatter)
        root_logger.addHandler(error_handler)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a specific module.

    Example:
        >>> logger = get_logger("paginated_fetcher")
        >>> logger.info("Fetched page", extra={"context_id": "home-latest"})
    """
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


_log_context: ContextVar[Dict[str, Any]] = ContextVar("newsfeed_log_context", default={})
_factory_installed = False


def _install_record_factory() -> None:
    global _factory_installed
    if _factory_installed:
        return
    base_factory = logging.getLogRecordFactory()

    def record_factory(*args, **kwargs):
        record = base_factory(*args, **kwargs)
        for key, value in _log_context.get().items():
            setattr(record, key, value)
        return record

    logging.setLogRecordFactory(record_factory)
    _factory_installed = True


class LogContext:
    """
    Context manager that stamps extra attributes onto every log record
    created inside the block.

    Backed by a context variable, so concurrent listing tasks each see
    only their own attributes.

    Example:
        >>> with LogContext(context_id="category:sports"):
        ...     logger.info("Loading more")
    """

    def __init__(self, **context):
        self.context = context
        self._token = None

    def __enter__(self):
        _install_record_factory()
        self._token = _log_context.set({**_log_context.get(), **self.context})
        return self

    def __exit__(self, *args):
        _log_context.reset(self._token)
        self._token = None


def current_log_context() -> Dict[str, Any]:
    """Attributes LogContext is currently stamping onto records."""
    return dict(_log_context.get())
