"""Shared test fixtures and configuration for all tests.

This conftest.py provides scripted operations (callables that fail or succeed
in a predetermined order), a private failure taxonomy and test settings.
"""

import pytest

from retry_policy.config import Settings
from retry_policy.failures import FailureKind, FailureTaxonomy


class ScriptedOperation:
    """Zero-argument callable that replays a script of results.

    Each entry is either an exception instance (raised) or a value
    (returned). The last entry repeats once the script runs out.
    """

    def __init__(self, *results):
        if not results:
            raise ValueError("ScriptedOperation needs at least one result")
        self.results = list(results)
        self.calls = 0

    def _next(self):
        self.calls += 1
        result = self.results[min(self.calls, len(self.results)) - 1]
        if isinstance(result, BaseException):
            raise result
        return result

    def __call__(self):
        return self._next()


class AsyncScriptedOperation(ScriptedOperation):
    """Coroutine flavour of ScriptedOperation."""

    async def __call__(self):
        return self._next()


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with safe defaults (no waits, no metrics)."""
    return Settings(
        APP_NAME="retry-policy (Test)",
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",
        DEFAULT_MAX_ATTEMPTS=3,
        DEFAULT_INITIAL_DELAY_MS=0.0,
        DEFAULT_MULTIPLIER=None,
        DEFAULT_JITTER=0.0,
        METRICS_ENABLED=False,
    )


@pytest.fixture
def scripted_operation():
    """Factory fixture for sync scripted operations.

    Usage:
        def test_something(scripted_operation):
            op = scripted_operation(ConnectionError("down"), "ok")
    """
    return ScriptedOperation


@pytest.fixture
def async_scripted_operation():
    """Factory fixture for coroutine scripted operations."""
    return AsyncScriptedOperation


@pytest.fixture
def network_kinds() -> dict[str, FailureKind]:
    """Small kind hierarchy: network > network.connection_reset, plus storage."""
    network = FailureKind("network")
    return {
        "network": network,
        "connection_reset": network.child("network.connection_reset"),
        "timeout": network.child("network.timeout"),
        "storage": FailureKind("storage"),
    }


@pytest.fixture
def taxonomy(network_kinds: dict[str, FailureKind]) -> FailureTaxonomy:
    """Private taxonomy mapping OSError to the network kind.

    ConnectionResetError derives its own kind whose ancestry passes through
    the registered OSError kind.
    """
    taxonomy = FailureTaxonomy()
    taxonomy.register(OSError, network_kinds["network"])
    taxonomy.register(TimeoutError, network_kinds["timeout"])
    return taxonomy
