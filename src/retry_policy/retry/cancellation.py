"""
Cooperative cancellation for retry sequences.

A ``CancellationToken`` is checked by the executor before every attempt and
interrupts the wait between attempts. It is thread-safe and can be shared by
blocking and asyncio code: ``cancel()`` may be called from any thread and
wakes both ``wait`` and ``wait_async`` callers.
"""

import asyncio
import threading
from typing import Optional

import structlog

logger = structlog.get_logger(__name__)


def _timeout(seconds: Optional[float]) -> Optional[float]:
    # threading rejects timeouts above TIMEOUT_MAX (inf included); None means "no timeout"
    if seconds is None or seconds > threading.TIMEOUT_MAX:
        return None
    return seconds


class CancellationToken:
    """
    One-shot cancellation signal.

    Attributes:
        reason: Optional reason given to ``cancel`` (for logs and diagnostics)
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._async_waiters: set[tuple[asyncio.AbstractEventLoop, asyncio.Event]] = set()
        self.reason: Optional[str] = None

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: Optional[str] = None) -> None:
        """Signal cancellation. Idempotent; only the first reason is kept."""
        with self._lock:
            if self._event.is_set():
                return
            self.reason = reason
            self._event.set()
            waiters = list(self._async_waiters)

        for loop, event in waiters:
            try:
                loop.call_soon_threadsafe(event.set)
            except RuntimeError:
                # Loop already closed; nobody is left waiting on it
                pass

        logger.info("Cancellation requested", reason=reason)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until cancelled or ``timeout`` seconds elapse.

        Returns:
            True if the token was cancelled
        """
        return self._event.wait(_timeout(timeout))

    async def wait_async(self, timeout: Optional[float] = None) -> bool:
        """
        Suspend until cancelled or ``timeout`` seconds elapse.

        Returns:
            True if the token was cancelled
        """
        loop = asyncio.get_running_loop()
        event = asyncio.Event()
        entry = (loop, event)

        with self._lock:
            if self._event.is_set():
                return True
            self._async_waiters.add(entry)

        try:
            await asyncio.wait_for(event.wait(), _timeout(timeout))
        except asyncio.TimeoutError:
            return self.is_cancelled
        finally:
            with self._lock:
                self._async_waiters.discard(entry)
        return True

    def __repr__(self) -> str:
        state = "cancelled" if self.is_cancelled else "active"
        return f"CancellationToken({state})"
