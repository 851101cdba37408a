"""Timing helpers: word counting, clocks, bounded retry and a trailing debouncer."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

from .errors import ConfigurationError

logger = logging.getLogger("transcript_agent.common.utils")

T = TypeVar("T")


def count_words(text: str) -> int:
    return len(text.split())


def now_ms() -> int:
    """Wall-clock epoch milliseconds (message timestamps)."""
    return int(time.time() * 1000)


def monotonic_ms() -> float:
    """Monotonic milliseconds (silence measurement)."""
    return time.monotonic() * 1000


async def retry(
    fn: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    delay: float = 1.0,
    no_retry: Tuple[Type[BaseException], ...] = (ConfigurationError,),
) -> T:
    """Call ``fn`` until it succeeds or ``max_attempts`` is reached.

    The sleep before attempt *i* (counting retries from 1) is ``delay * i``
    seconds: linear, not exponential. Errors in ``no_retry`` are raised
    immediately. The last error is re-raised once attempts run out.
    """
    attempts = max(1, max_attempts)
    last_error: Optional[BaseException] = None

    for attempt in range(1, attempts + 1):
        try:
            return await fn()
        except no_retry:
            raise
        except Exception as e:
            last_error = e
            if attempt < attempts:
                logger.debug("Attempt %d/%d failed (%s), retrying", attempt, attempts, e)
                await asyncio.sleep(delay * attempt)

    raise last_error


class Debouncer:
    """Trailing-edge debounce over a single pending asyncio task.

    Each ``schedule()`` replaces the pending task, so a burst of calls inside
    the window collapses into one ``callback()`` that runs ``wait_ms`` after
    the last call. The callback must not block; it is invoked synchronously
    once the window elapses and is never cancelled once it has started.
    """

    def __init__(self, callback: Callable[[], None], wait_ms: float):
        self._callback = callback
        self._wait = max(0.0, wait_ms) / 1000
        self._task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> Optional[asyncio.Task]:
        if self._task is not None and not self._task.done():
            return self._task
        return None

    def schedule(self) -> None:
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._fire())

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _fire(self) -> None:
        await asyncio.sleep(self._wait)
        self._task = None
        self._callback()
