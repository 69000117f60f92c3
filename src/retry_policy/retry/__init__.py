"""
Retry executor with multiplicative backoff.

This package implements the retry decision engine:

1. **Attempt**: run the operation; success ends the sequence
2. **Classify**: failures outside the retryable kinds propagate immediately
3. **Back off**: wait d0, d0*m, d0*m^2, ... between attempts
4. **Give up**: after max_attempts, the last failure propagates unchanged

Main Components:
    - RetryExecutor / AsyncRetryExecutor: State machine driving attempts
    - BackoffGenerator / next_delay: Delay sequence
    - CancellationToken: Cooperative cancellation (threads and asyncio)
    - RetryMetadata: Immutable history of one invocation
    - retryable: Decorator for functions, coroutine functions and classes

Usage:
    >>> from retry_policy.retry import RetryExecutor
    >>> from retry_policy.models import RetryConfig
    >>> config = RetryConfig(max_attempts=4, multiplier=2.0, retryable_kinds={ConnectionError})
    >>> value = RetryExecutor().call(fetch, config)
"""

from retry_policy.exceptions import RetryCancelled, RetryConfigError
from retry_policy.retry.backoff import BackoffGenerator, next_delay
from retry_policy.retry.cancellation import CancellationToken
from retry_policy.retry.decorators import retryable
from retry_policy.retry.executor import AsyncRetryExecutor, RetryExecutor
from retry_policy.retry.metadata import RetryMetadata
from retry_policy.retry.waiters import AsyncioWaiter, BlockingWaiter

__all__ = [
    "RetryExecutor",
    "AsyncRetryExecutor",
    "BackoffGenerator",
    "next_delay",
    "CancellationToken",
    "RetryMetadata",
    "RetryCancelled",
    "RetryConfigError",
    "BlockingWaiter",
    "AsyncioWaiter",
    "retryable",
]
