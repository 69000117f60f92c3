"""
Unit tests for RetryExecutor.

Tests the attempt/evaluate/wait state machine with a recording waiter, so
no test actually sleeps.
"""

import pytest
import structlog

from retry_policy.exceptions import RetryCancelled, RetryConfigError
from retry_policy.failures import FailureKind, FailureTaxonomy, KindSetClassifier
from retry_policy.models import OutcomeStatus, RetryConfig
from retry_policy.retry.cancellation import CancellationToken
from retry_policy.retry.executor import RetryExecutor, operation_name


class StorageBusy(Exception):
    pass


# ============================================================================
# Attempt counts
# ============================================================================


@pytest.mark.parametrize("max_attempts", [1, 2, 3, 5])
def test_always_failing_retryable_invokes_exactly_max_attempts(
    executor, scripted_operation, max_attempts
):
    """The n-th failure is the one surfaced after n invocations."""
    errors = [ConnectionError(f"down #{i}") for i in range(1, max_attempts + 1)]
    operation = scripted_operation(*errors)
    config = RetryConfig(max_attempts=max_attempts, retryable_kinds={ConnectionError})

    outcome = executor.execute(operation, config)

    assert operation.calls == max_attempts
    assert outcome.status is OutcomeStatus.EXHAUSTED
    assert outcome.error is errors[-1]
    assert outcome.failure.attempt == max_attempts


@pytest.mark.parametrize("success_on", [1, 2, 3, 4])
def test_success_on_attempt_k_stops_after_k_invocations(
    executor, recording_waiter, scripted_operation, success_on
):
    script = [ConnectionError("down")] * (success_on - 1) + ["payload"]
    operation = scripted_operation(*script)
    config = RetryConfig(max_attempts=4, initial_delay_ms=10, retryable_kinds={ConnectionError})

    outcome = executor.execute(operation, config)

    assert outcome.status is OutcomeStatus.SUCCEEDED
    assert outcome.value == "payload"
    assert operation.calls == success_on
    assert len(recording_waiter.waits) == success_on - 1
    assert outcome.metadata.total_attempts == success_on


def test_non_retryable_first_failure_invokes_once(executor, recording_waiter, scripted_operation):
    error = ValueError("bad input")
    operation = scripted_operation(error, "never reached")
    config = RetryConfig(max_attempts=10, retryable_kinds={ConnectionError})

    outcome = executor.execute(operation, config)

    assert operation.calls == 1
    assert outcome.status is OutcomeStatus.NON_RETRYABLE
    assert outcome.error is error
    assert recording_waiter.waits == []


def test_non_retryable_after_retryable_failures(executor, recording_waiter, scripted_operation):
    """A non-retryable failure ends the sequence even with budget left."""
    error = KeyError("missing")
    operation = scripted_operation(ConnectionError("down"), error, "never reached")
    config = RetryConfig(max_attempts=5, initial_delay_ms=100, retryable_kinds={ConnectionError})

    outcome = executor.execute(operation, config)

    assert operation.calls == 2
    assert outcome.status is OutcomeStatus.NON_RETRYABLE
    assert outcome.error is error
    assert recording_waiter.waits == [100]


def test_empty_retryable_kinds_retries_nothing(executor, scripted_operation):
    operation = scripted_operation(ConnectionError("down"), "ok")

    outcome = executor.execute(operation, RetryConfig(max_attempts=3))

    assert operation.calls == 1
    assert outcome.status is OutcomeStatus.NON_RETRYABLE


def test_default_config_makes_three_attempts(executor, recording_waiter, scripted_operation):
    operation = scripted_operation(ConnectionError("down"))

    outcome = executor.execute(operation, RetryConfig(retryable_kinds={ConnectionError}))

    assert operation.calls == 3
    assert recording_waiter.waits == [1000.0, 1000.0]
    assert outcome.status is OutcomeStatus.EXHAUSTED


# ============================================================================
# Delays
# ============================================================================


def test_waits_follow_multiplier(executor, recording_waiter, scripted_operation):
    """d0=1000, m=2.0, 4 attempts -> waits of 1000, 2000, 4000."""
    operation = scripted_operation(ConnectionError("down"))
    config = RetryConfig(
        max_attempts=4, initial_delay_ms=1000, multiplier=2.0, retryable_kinds={ConnectionError}
    )

    outcome = executor.execute(operation, config)

    assert recording_waiter.waits == [1000, 2000.0, 4000.0]
    assert outcome.metadata.waits_ms == (1000, 2000.0, 4000.0)


def test_absent_multiplier_means_constant_delay(executor, recording_waiter, scripted_operation):
    operation = scripted_operation(ConnectionError("down"))
    config = RetryConfig.from_options(
        {"maxAttempts": 4, "initialDelay": 300, "retryableKinds": [ConnectionError]}
    )

    executor.execute(operation, config)

    assert recording_waiter.waits == [300.0, 300.0, 300.0]


def test_decreasing_multiplier(executor, recording_waiter, scripted_operation):
    operation = scripted_operation(ConnectionError("down"))
    config = RetryConfig(
        max_attempts=3, initial_delay_ms=800, multiplier=0.5, retryable_kinds={ConnectionError}
    )

    executor.execute(operation, config)

    assert recording_waiter.waits == [800.0, 400.0]


def test_max_attempts_one_never_waits_or_retries(executor, recording_waiter, scripted_operation):
    operation = scripted_operation(ConnectionError("down"), "ok")
    config = RetryConfig(max_attempts=1, multiplier=2.0, retryable_kinds={ConnectionError})

    outcome = executor.execute(operation, config)

    assert operation.calls == 1
    assert recording_waiter.waits == []
    assert outcome.status is OutcomeStatus.EXHAUSTED


def test_no_wait_before_first_attempt_on_success(executor, recording_waiter, scripted_operation):
    operation = scripted_operation("ok")

    outcome = executor.execute(operation, RetryConfig(retryable_kinds={ConnectionError}))

    assert outcome.succeeded
    assert recording_waiter.waits == []


def test_no_wait_after_final_attempt(executor, recording_waiter, scripted_operation):
    operation = scripted_operation(ConnectionError("down"))
    config = RetryConfig(max_attempts=3, initial_delay_ms=5, retryable_kinds={ConnectionError})

    executor.execute(operation, config)

    # Two gaps between three attempts
    assert len(recording_waiter.waits) == 2


def test_jitter_applied_only_when_configured(executor, recording_waiter, scripted_operation):
    operation = scripted_operation(ConnectionError("down"))
    config = RetryConfig(
        max_attempts=3, initial_delay_ms=1000, multiplier=2.0, jitter=0.1,
        retryable_kinds={ConnectionError},
    )

    executor.execute(operation, config)

    first, second = recording_waiter.waits
    assert 900.0 <= first <= 1100.0
    # Growth is computed from the un-jittered delay
    assert 1800.0 <= second <= 2200.0


# ============================================================================
# Classification
# ============================================================================


def test_hierarchical_kind_match(recording_waiter, scripted_operation, taxonomy, network_kinds):
    """Declaring the network kind retries ConnectionResetError (an OSError)."""
    executor = RetryExecutor(taxonomy=taxonomy, waiter=recording_waiter, metrics_enabled=False)
    operation = scripted_operation(ConnectionResetError("reset"), "ok")
    config = RetryConfig(retryable_kinds={network_kinds["network"]})

    outcome = executor.execute(operation, config)

    assert outcome.succeeded
    assert operation.calls == 2
    assert outcome.metadata.failure_kinds == ("ConnectionResetError",)


def test_exception_class_hierarchy_match(executor, scripted_operation):
    """Declaring OSError retries its subclasses through the default taxonomy."""
    operation = scripted_operation(ConnectionRefusedError("refused"), "ok")
    config = RetryConfig(initial_delay_ms=0, retryable_kinds={OSError})

    outcome = executor.execute(operation, config)

    assert outcome.succeeded
    assert operation.calls == 2


def test_declared_class_resolved_through_executor_taxonomy(recording_waiter, scripted_operation):
    """A class registered under its own kind still matches its declaration."""
    taxonomy = FailureTaxonomy()
    taxonomy.register(ConnectionError, FailureKind("network"))
    executor = RetryExecutor(taxonomy=taxonomy, waiter=recording_waiter, metrics_enabled=False)
    operation = scripted_operation(ConnectionError("down"), "ok")

    outcome = executor.execute(operation, RetryConfig(retryable_kinds={ConnectionError}))

    assert outcome.succeeded
    assert operation.calls == 2
    assert outcome.metadata.failure_kinds == ("network",)


def test_registration_after_config_build_is_honoured(recording_waiter, scripted_operation):
    taxonomy = FailureTaxonomy()
    config = RetryConfig(retryable_kinds={StorageBusy})
    taxonomy.register(StorageBusy, FailureKind("storage.busy"))
    executor = RetryExecutor(taxonomy=taxonomy, waiter=recording_waiter, metrics_enabled=False)
    operation = scripted_operation(StorageBusy("locked"), "ok")

    outcome = executor.execute(operation, config)

    assert outcome.succeeded
    assert outcome.metadata.failure_kinds == ("storage.busy",)


def test_declared_base_class_matches_subclass_registered_under_own_kind(
    recording_waiter, scripted_operation
):
    """Registering ConnectionError keeps ConnectionResetError an OSError."""
    taxonomy = FailureTaxonomy()
    taxonomy.register(ConnectionError, FailureKind("network"))
    executor = RetryExecutor(taxonomy=taxonomy, waiter=recording_waiter, metrics_enabled=False)
    operation = scripted_operation(ConnectionResetError("reset"), "ok")

    outcome = executor.execute(operation, RetryConfig(retryable_kinds={OSError}))

    assert outcome.succeeded
    assert operation.calls == 2


def test_explicit_classifier_overrides_config_kinds(executor, scripted_operation):
    operation = scripted_operation(StorageBusy("busy"), "ok")
    config = RetryConfig(retryable_kinds={ConnectionError})
    classifier = KindSetClassifier({FailureKind(f"{__name__}.StorageBusy")})

    outcome = executor.execute(operation, config, classifier=classifier)

    assert outcome.succeeded
    assert operation.calls == 2


def test_custom_classifier_protocol(executor, scripted_operation):
    class RetryEverything:
        def __init__(self):
            self.seen = []

        def is_retryable(self, failure):
            self.seen.append(failure.kind.name)
            return True

    classifier = RetryEverything()
    operation = scripted_operation(ValueError("a"), KeyError("b"), "ok")

    outcome = executor.execute(operation, RetryConfig(), classifier=classifier)

    assert outcome.succeeded
    assert classifier.seen == ["ValueError", "KeyError"]


def test_base_exceptions_propagate_untouched(executor):
    def interrupted():
        raise KeyboardInterrupt

    with pytest.raises(KeyboardInterrupt):
        executor.execute(interrupted, RetryConfig(retryable_kinds={BaseException}))


# ============================================================================
# Cancellation
# ============================================================================


def test_cancelled_before_first_attempt(executor, scripted_operation):
    token = CancellationToken()
    token.cancel("shutdown")
    operation = scripted_operation("ok")

    outcome = executor.execute(operation, RetryConfig(), cancellation=token)

    assert operation.calls == 0
    assert outcome.status is OutcomeStatus.CANCELLED
    assert outcome.failure is None
    assert outcome.metadata.total_attempts == 0


def test_cancel_during_wait_stops_before_next_attempt(
    executor, recording_waiter, scripted_operation
):
    token = CancellationToken()
    recording_waiter.on_wait = lambda n: token.cancel("timeout") if n == 2 else None
    error = ConnectionError("down")
    operation = scripted_operation(error)
    config = RetryConfig(max_attempts=5, retryable_kinds={ConnectionError})

    outcome = executor.execute(operation, config, cancellation=token)

    assert outcome.status is OutcomeStatus.CANCELLED
    assert operation.calls == 2
    assert outcome.failure.error is error
    # The interrupted wait is not counted as applied
    assert outcome.metadata.waits_ms == (1000.0,)


def test_cancelled_outcome_unwrap_raises_retry_cancelled(executor, recording_waiter, scripted_operation):
    token = CancellationToken()
    recording_waiter.on_wait = lambda n: token.cancel()
    operation = scripted_operation(ConnectionError("down"))

    with pytest.raises(RetryCancelled) as exc_info:
        executor.call(operation, RetryConfig(retryable_kinds={ConnectionError}), cancellation=token)

    assert exc_info.value.metadata.total_attempts == 1
    assert isinstance(exc_info.value.last_failure.error, ConnectionError)
    assert "Retry cancelled after 1 attempts" in str(exc_info.value)


# ============================================================================
# call() and error propagation
# ============================================================================


def test_call_returns_value(executor, scripted_operation):
    operation = scripted_operation(ConnectionError("down"), 42)

    assert executor.call(operation, RetryConfig(retryable_kinds={ConnectionError})) == 42


def test_call_raises_last_failure_unwrapped(executor, scripted_operation):
    first = ConnectionError("first")
    last = ConnectionError("last")
    operation = scripted_operation(first, last)

    with pytest.raises(ConnectionError) as exc_info:
        executor.call(operation, RetryConfig(max_attempts=2, retryable_kinds={ConnectionError}))

    assert exc_info.value is last


def test_call_raises_non_retryable_failure(executor, scripted_operation):
    operation = scripted_operation(ValueError("bad"))

    with pytest.raises(ValueError, match="bad"):
        executor.call(operation, RetryConfig(retryable_kinds={ConnectionError}))


# ============================================================================
# Configuration errors
# ============================================================================


def test_invalid_config_rejected_before_any_attempt(executor, scripted_operation):
    operation = scripted_operation("ok")
    config = RetryConfig.model_construct(
        maxAttempts=0, initialDelay=0.0, multiplier=None, retryableKinds=frozenset(), jitter=0.0
    )

    with pytest.raises(RetryConfigError) as exc_info:
        executor.execute(operation, config)

    assert operation.calls == 0
    assert exc_info.value.details["errors"][0]["field"] == "max_attempts"


# ============================================================================
# Determinism and metadata
# ============================================================================


def test_repeated_runs_are_identical(executor, recording_waiter, scripted_operation):
    config = RetryConfig(
        max_attempts=4, initial_delay_ms=100, multiplier=2.0, retryable_kinds={ConnectionError}
    )

    runs = []
    for _ in range(3):
        recording_waiter.waits.clear()
        operation = scripted_operation(ConnectionError("a"), ConnectionError("b"), "ok")
        outcome = executor.execute(operation, config)
        runs.append((operation.calls, outcome.status, tuple(recording_waiter.waits)))

    assert runs[0] == runs[1] == runs[2]
    assert runs[0] == (3, OutcomeStatus.SUCCEEDED, (100, 200.0))


def test_metadata_records_failure_kinds(executor, scripted_operation):
    operation = scripted_operation(ConnectionError("a"), TimeoutError("b"))
    config = RetryConfig(max_attempts=2, retryable_kinds={ConnectionError, TimeoutError})

    outcome = executor.execute(operation, config)

    assert outcome.metadata.failure_kinds == ("ConnectionError", "TimeoutError")
    assert outcome.metadata.final_status is OutcomeStatus.EXHAUSTED
    assert outcome.metadata.retries == 1


def test_executor_is_reusable_across_configs(executor, scripted_operation):
    first = executor.execute(scripted_operation("a"), RetryConfig(max_attempts=1))
    second = executor.execute(
        scripted_operation(ConnectionError("x"), "b"),
        RetryConfig(max_attempts=2, retryable_kinds={ConnectionError}),
    )

    assert first.value == "a"
    assert second.value == "b"
    assert second.metadata.total_attempts == 2


def test_operation_runs_with_retry_context_bound(executor):
    seen = []

    def fetch():
        seen.append(structlog.contextvars.get_contextvars())
        if len(seen) < 2:
            raise ConnectionError("down")
        return "ok"

    outcome = executor.execute(fetch, RetryConfig(retryable_kinds={ConnectionError}))

    assert outcome.succeeded
    assert [ctx["retry_attempt"] for ctx in seen] == [1, 2]
    assert seen[0]["retry_operation"].endswith("fetch")
    assert "retry_operation" not in structlog.contextvars.get_contextvars()
    assert "retry_attempt" not in structlog.contextvars.get_contextvars()


# ============================================================================
# Helpers
# ============================================================================


def test_operation_name_unwraps_partial():
    import functools

    def fetch(url):
        return url

    assert operation_name(functools.partial(fetch, "x")).endswith("fetch")
