"""Unit test fixtures (waiters and executors that never sleep)."""

import pytest

from retry_policy.retry.executor import AsyncRetryExecutor, RetryExecutor


class RecordingWaiter:
    """Blocking waiter that records requested waits instead of sleeping.

    ``on_wait`` is called with the 1-indexed wait number before the waiter
    reports whether the cancellation token was set.
    """

    def __init__(self):
        self.waits: list[float] = []
        self.on_wait = None

    def wait(self, delay_ms, cancellation):
        self.waits.append(delay_ms)
        if self.on_wait is not None:
            self.on_wait(len(self.waits))
        return cancellation is not None and cancellation.is_cancelled


class AsyncRecordingWaiter(RecordingWaiter):
    """Asyncio flavour of RecordingWaiter."""

    async def wait(self, delay_ms, cancellation):
        return RecordingWaiter.wait(self, delay_ms, cancellation)


@pytest.fixture
def recording_waiter() -> RecordingWaiter:
    return RecordingWaiter()


@pytest.fixture
def async_recording_waiter() -> AsyncRecordingWaiter:
    return AsyncRecordingWaiter()


@pytest.fixture
def executor(recording_waiter: RecordingWaiter) -> RetryExecutor:
    """RetryExecutor wired to the recording waiter, metrics disabled."""
    return RetryExecutor(waiter=recording_waiter, metrics_enabled=False)


@pytest.fixture
def async_executor(async_recording_waiter: AsyncRecordingWaiter) -> AsyncRetryExecutor:
    """AsyncRetryExecutor wired to the async recording waiter, metrics disabled."""
    return AsyncRetryExecutor(waiter=async_recording_waiter, metrics_enabled=False)
