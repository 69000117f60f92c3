"""Integration test fixtures.

Integration tests use the real blocking and asyncio waiters, so keep delays
in the tens of milliseconds.
"""

import pytest

from retry_policy.retry.executor import AsyncRetryExecutor, RetryExecutor


@pytest.fixture
def real_executor() -> RetryExecutor:
    return RetryExecutor(metrics_enabled=False)


@pytest.fixture
def real_async_executor() -> AsyncRetryExecutor:
    return AsyncRetryExecutor(metrics_enabled=False)
