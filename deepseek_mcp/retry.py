"""Retrying operations with exponential backoff and jitter."""

from __future__ import annotations

import random
import threading
import time
from collections.abc import Callable
from typing import Optional, TypeVar

from .logger import Logger

T = TypeVar("T")

_TIMEOUT_MARKERS = ("timeout", "deadline", "timed out")
_NETWORK_MARKERS = ("network", "connection", "broken pipe", "reset", "EOF", "closed")


class OperationCancelled(Exception):
    """The wait between attempts was interrupted by cancellation."""


def is_timeout_error(err: Optional[BaseException]) -> bool:
    """Whether the error looks like a timeout."""
    if err is None:
        return False
    if isinstance(err, TimeoutError):
        return True
    message = str(err)
    return any(marker in message for marker in _TIMEOUT_MARKERS)


def is_network_error(err: Optional[BaseException]) -> bool:
    """Whether the error looks like a network failure."""
    if err is None:
        return False
    if isinstance(err, ConnectionError):
        return True
    message = str(err)
    return any(marker in message for marker in _NETWORK_MARKERS)


def is_retryable_error(err: Optional[BaseException]) -> bool:
    """Whether the error is worth another attempt."""
    return is_timeout_error(err) or is_network_error(err)


def retry_with_backoff(
    operation: Callable[[], T],
    max_retries: int,
    initial_backoff: float,
    max_backoff: float,
    classifier: Callable[[BaseException], bool] = is_retryable_error,
    logger: Optional[Logger] = None,
    cancel: Optional[threading.Event] = None,
) -> Optional[T]:
    """Call operation, retrying errors the classifier accepts up to max_retries times.

    Backoffs are in seconds. Setting the cancel event during a wait raises
    OperationCancelled.
    """
    rng = random.Random()
    backoff = initial_backoff

    for attempt in range(max_retries + 1):
        if attempt > 0 and logger is not None:
            logger.info(
                "Retrying operation (attempt %d/%d) after %ss delay",
                attempt,
                max_retries,
                f"{backoff:g}",
            )
        try:
            return operation()
        except Exception as exc:
            if not classifier(exc):
                raise
            if attempt == max_retries:
                if logger is not None:
                    logger.error("Operation failed after %d attempts: %s", max_retries + 1, exc)
                raise

        delay = min(backoff + rng.random() * 0.1 * backoff, max_backoff)
        if cancel is None:
            time.sleep(delay)
        elif cancel.wait(delay):
            raise OperationCancelled("operation cancelled during backoff")

        backoff *= 2.0

    return None