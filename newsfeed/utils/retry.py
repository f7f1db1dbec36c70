"""
Bounded retry for remote document store calls.

Retries use a fixed delay (no backoff, no jitter). Only transient failures
are retried; permission and query errors fail on the first attempt. A
retry sequence can be started as a cancellable RetryHandle so that a
listing reset can abandon an older fetch instead of racing it.
"""

import asyncio
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

from newsfeed.utils.exceptions import RetryCancelled, is_transient
from newsfeed.utils.logging_config import get_logger

logger = get_logger("retry")

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_DELAY = 1.0


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    delay: float = DEFAULT_DELAY,
    should_retry: Callable[[BaseException], bool] = is_transient,
    on_retry: Optional[Callable[[BaseException, int, float], None]] = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    label: str = "operation",
) -> T:
    """
    Run ``operation`` up to ``max_attempts`` times.

    Args:
        operation: Zero-argument coroutine function to call on every attempt
        max_attempts: Maximum number of attempts (including the first)
        delay: Fixed wait in seconds between attempts
        should_retry: Predicate deciding whether a failure is worth retrying
        on_retry: Optional callback called before each wait with
            (exception, attempt, delay)
        sleep: Awaitable sleep used between attempts (injectable for tests)
        label: Name used in log messages

    Returns:
        Whatever ``operation`` returns on the first successful attempt

    Raises:
        The exception of the final attempt, unchanged, or the first
        exception ``should_retry`` rejects.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    for attempt in range(1, max_attempts + 1):
        try:
            return await operation()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if not should_retry(e):
                logger.error(f"{label} failed with non-retriable error: {e}")
                raise

            if attempt >= max_attempts:
                logger.error(f"All {max_attempts} attempts failed for {label}: {e}")
                raise

            logger.warning(
                f"Attempt {attempt}/{max_attempts} failed for {label}: {e}. "
                f"Retrying in {delay:.2f}s..."
            )

            if on_retry:
                on_retry(e, attempt, delay)

            await sleep(delay)

    # max_attempts >= 1 means the loop always returns or raises
    raise RuntimeError("unreachable")


class RetryHandle(Generic[T]):
    """
    A retry sequence running as its own task.

    cancel() stops further attempts (interrupting a pending delay or an
    in-flight attempt) and makes result() raise RetryCancelled. The
    abandoned sequence never delivers a value to anyone.

    Example:
        >>> handle = start_with_retry(lambda: store.run_query(q), label="home")
        >>> handle.cancel()
        >>> await handle.result()   # raises RetryCancelled
    """

    def __init__(self, task: "asyncio.Task[T]", label: str):
        self._task = task
        self._label = label
        self._cancelled = False
        self.retries = 0

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def done(self) -> bool:
        return self._task.done()

    def cancel(self) -> None:
        """Stop the sequence. Safe to call more than once or after completion."""
        if self._cancelled:
            return
        self._cancelled = True
        if not self._task.done():
            logger.info(f"Cancelling retry sequence for {self._label}")
            self._task.cancel()

    def _count_retry(self, exc: BaseException, attempt: int, delay: float) -> None:
        self.retries += 1

    async def result(self) -> T:
        """Wait for the sequence to finish."""
        if self._cancelled and not self._task.done():
            raise RetryCancelled(f"Retry cancelled for {self._label}", attempts=self.retries + 1)
        try:
            value = await self._task
        except (asyncio.CancelledError, Exception):
            if self._cancelled:
                raise RetryCancelled(
                    f"Retry cancelled for {self._label}", attempts=self.retries + 1
                ) from None
            raise
        if self._cancelled:
            # Finished before the cancel landed; the value is still discarded.
            raise RetryCancelled(f"Retry cancelled for {self._label}", attempts=self.retries + 1)
        return value

    def __await__(self):
        return self.result().__await__()


def start_with_retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    delay: float = DEFAULT_DELAY,
    should_retry: Callable[[BaseException], bool] = is_transient,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    label: str = "operation",
) -> RetryHandle[T]:
    """
    Start with_retry() as a background task and return its handle.

    Must be called from inside a running event loop.
    """
    handle: RetryHandle[T]

    def count(exc: BaseException, attempt: int, wait: float) -> None:
        handle._count_retry(exc, attempt, wait)

    task = asyncio.ensure_future(
        with_retry(
            operation,
            max_attempts=max_attempts,
            delay=delay,
            should_retry=should_retry,
            on_retry=count,
            sleep=sleep,
            label=label,
        )
    )
    handle = RetryHandle(task, label)
    return handle
