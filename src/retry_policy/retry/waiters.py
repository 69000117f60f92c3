"""
Waits between attempts.

The executor delegates the ``WAITING`` state to a waiter so the wait can be
blocking (threads) or suspending (asyncio), and so tests can record waits
instead of sleeping. A waiter never holds a lock while waiting.
"""

import asyncio
import threading
import time
from typing import Optional, Protocol

from retry_policy.retry.cancellation import CancellationToken


class Waiter(Protocol):
    """Protocol for blocking waits."""

    def wait(self, delay_ms: float, cancellation: Optional[CancellationToken]) -> bool:
        """
        Wait ``delay_ms`` milliseconds.

        Returns:
            True if the wait was interrupted by cancellation
        """
        ...


class AsyncWaiter(Protocol):
    """Protocol for asyncio waits."""

    async def wait(self, delay_ms: float, cancellation: Optional[CancellationToken]) -> bool:
        ...


class BlockingWaiter:
    """Waits on the calling thread; wakes early when cancelled."""

    def wait(self, delay_ms: float, cancellation: Optional[CancellationToken]) -> bool:
        seconds = delay_ms / 1000.0
        if cancellation is not None:
            return cancellation.wait(seconds)
        if seconds > threading.TIMEOUT_MAX:
            # Longer than the platform can sleep (inf included): block for good
            threading.Event().wait()
        elif seconds > 0:
            time.sleep(seconds)
        return False


class AsyncioWaiter:
    """Suspends the current task; wakes early when cancelled."""

    async def wait(self, delay_ms: float, cancellation: Optional[CancellationToken]) -> bool:
        seconds = delay_ms / 1000.0
        if cancellation is not None:
            return await cancellation.wait_async(seconds)
        if seconds > threading.TIMEOUT_MAX:
            await asyncio.get_running_loop().create_future()
        else:
            await asyncio.sleep(seconds)
        return False
