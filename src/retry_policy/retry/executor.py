"""
Retry executor.

Runs an operation under a ``RetryConfig`` and decides, after each failure,
whether to retry, how long to wait and when to give up:

    ATTEMPTING ──success──────────────────────────────► SUCCEEDED
        │ failure
        ▼
    EVALUATING_FAILURE ──kind not retryable────────────► NON_RETRYABLE_FAILURE
        │            └──retryable, budget consumed─────► EXHAUSTED
        ▼ retryable, attempts remain
    WAITING ──cancelled────────────────────────────────► CANCELLED
        │ delay elapsed, delay = next_delay(delay, multiplier)
        └──────────────► ATTEMPTING

Cancellation is also checked at the top of ATTEMPTING. The delay is applied
only between attempts, never before the first or after the last one.

Executors hold only immutable collaborators. All per-invocation state lives in
an ``AttemptState`` local to ``execute``, so one executor can serve any number
of concurrent callers without locking.

While an operation runs, ``retry_operation`` and ``retry_attempt`` are bound as
structlog context variables, so the operation's own log events carry them too.

Usage:
    executor = RetryExecutor()
    outcome = executor.execute(fetch, RetryConfig(retryable_kinds={ConnectionError}))
    value = outcome.unwrap()
"""

import time
from typing import Any, Awaitable, Callable, Optional, TypeVar

import structlog

from retry_policy.config import settings
from retry_policy.failures.classifier import FailureClassifier, KindSetClassifier
from retry_policy.failures.taxonomy import FailureTaxonomy, default_taxonomy
from retry_policy.models.attempt_state import AttemptState
from retry_policy.models.config_models import RetryConfig
from retry_policy.models.enums import AttemptPhase
from retry_policy.models.outcome import Failure, Outcome
from retry_policy.monitoring.metrics import (
    retry_attempts_total,
    retry_outcomes_total,
    retry_wait_seconds,
)
from retry_policy.retry.backoff import BackoffGenerator, next_delay
from retry_policy.retry.cancellation import CancellationToken
from retry_policy.retry.metadata import RetryMetadata
from retry_policy.retry.waiters import AsyncioWaiter, AsyncWaiter, BlockingWaiter, Waiter

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def operation_name(operation: Callable[..., Any]) -> str:
    """Best-effort display name of an operation for logs."""
    target = getattr(operation, "func", operation)  # unwrap functools.partial
    return getattr(target, "__qualname__", None) or repr(target)


class _ExecutorCore:
    """
    Decision logic shared by the blocking and asyncio executors.

    Subclasses only differ in how they invoke the operation and how they wait.
    """

    def __init__(
        self,
        taxonomy: Optional[FailureTaxonomy] = None,
        metrics_enabled: Optional[bool] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize executor.

        Args:
            taxonomy: Maps raised exceptions to failure kinds (default taxonomy if None)
            metrics_enabled: Record Prometheus metrics (RETRY_METRICS_ENABLED if None)
            clock: Monotonic clock in seconds, used for latency only
        """
        self.taxonomy = taxonomy or default_taxonomy
        self.metrics_enabled = settings.METRICS_ENABLED if metrics_enabled is None else metrics_enabled
        self.clock = clock

    def _start(
        self, config: RetryConfig, classifier: Optional[FailureClassifier]
    ) -> tuple[AttemptState, FailureClassifier, BackoffGenerator]:
        # Configuration errors surface before any attempt is made
        config.check()
        state = AttemptState(
            max_attempts=config.max_attempts,
            current_delay_ms=config.initial_delay_ms,
        )
        if classifier is None:
            classifier = KindSetClassifier(config.resolve_kinds(self.taxonomy))
        return state, classifier, BackoffGenerator.from_config(config)

    def _attempt_failed(self, state: AttemptState, attempt: int, error: Exception) -> Failure:
        failure = Failure.from_exception(error, attempt, self.taxonomy)
        state.record_failure(failure)
        if self.metrics_enabled:
            retry_attempts_total.labels(result="failure").inc()
        return failure

    def _attempt_succeeded(self) -> None:
        if self.metrics_enabled:
            retry_attempts_total.labels(result="success").inc()

    def _evaluate(
        self, state: AttemptState, failure: Failure, classifier: FailureClassifier
    ) -> AttemptPhase:
        """EVALUATING_FAILURE: pick the next phase for the failure just recorded."""
        # A non-retryable kind ends the sequence regardless of the remaining budget
        if not classifier.is_retryable(failure):
            logger.info(
                "Failure is not retryable, propagating",
                attempt=failure.attempt,
                kind=failure.kind.name,
                error=failure.message,
            )
            return AttemptPhase.NON_RETRYABLE_FAILURE

        if state.attempts_remaining == 0:
            logger.error(
                "Retry attempts exhausted",
                attempts=state.attempts_made,
                kind=failure.kind.name,
                error=failure.message,
            )
            return AttemptPhase.EXHAUSTED

        return AttemptPhase.WAITING

    def _before_wait(
        self, state: AttemptState, failure: Failure, backoff: BackoffGenerator
    ) -> float:
        wait_ms = backoff.apply_jitter(state.current_delay_ms)
        logger.warning(
            "Retrying after failure",
            attempt=state.attempts_made,
            max_attempts=state.max_attempts,
            kind=failure.kind.name,
            error=failure.message,
            wait_ms=wait_ms,
        )
        return wait_ms

    def _after_wait(self, state: AttemptState, wait_ms: float, config: RetryConfig) -> None:
        state.record_wait(wait_ms, next_delay(state.current_delay_ms, config.multiplier))
        if self.metrics_enabled:
            retry_wait_seconds.observe(wait_ms / 1000.0)

    def _finish(
        self,
        phase: AttemptPhase,
        state: AttemptState,
        started: float,
        value: Any = None,
    ) -> Outcome[Any]:
        status = phase.to_status()
        metadata = RetryMetadata(
            total_attempts=state.attempts_made,
            final_status=status,
            total_latency_ms=max(int((self.clock() - started) * 1000), 0),
            waits_ms=tuple(state.waits_ms),
            failure_kinds=tuple(f.kind.name for f in state.failures),
        )

        if self.metrics_enabled:
            retry_outcomes_total.labels(status=status.value).inc()

        if phase is AttemptPhase.SUCCEEDED:
            logger.debug(
                "Operation succeeded",
                attempts=metadata.total_attempts,
                total_latency_ms=metadata.total_latency_ms,
            )
            return Outcome(status=status, metadata=metadata, value=value)

        if phase is AttemptPhase.CANCELLED:
            logger.info(
                "Retry sequence cancelled",
                attempts=metadata.total_attempts,
                total_latency_ms=metadata.total_latency_ms,
            )

        return Outcome(status=status, metadata=metadata, failure=state.last_failure)


class RetryExecutor(_ExecutorCore):
    """
    Blocking retry executor.

    Attributes:
        taxonomy: Failure taxonomy used to classify raised exceptions
        waiter: Performs the wait between attempts
        metrics_enabled: Whether Prometheus metrics are recorded
    """

    def __init__(
        self,
        taxonomy: Optional[FailureTaxonomy] = None,
        waiter: Optional[Waiter] = None,
        metrics_enabled: Optional[bool] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(taxonomy=taxonomy, metrics_enabled=metrics_enabled, clock=clock)
        self.waiter = waiter or BlockingWaiter()

    def execute(
        self,
        operation: Callable[[], T],
        config: RetryConfig,
        classifier: Optional[FailureClassifier] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> Outcome[T]:
        """
        Run ``operation`` under the retry policy.

        Args:
            operation: Zero-argument callable (the unit of work)
            config: Retry policy for this call site
            classifier: Retry eligibility (defaults to config.retryable_kinds)
            cancellation: Optional token checked before each attempt and during waits

        Returns:
            Outcome carrying the value or the last failure, plus retry metadata

        Raises:
            RetryConfigError: If the config is invalid (before any attempt)
        """
        state, classifier, backoff = self._start(config, classifier)
        started = self.clock()

        with structlog.contextvars.bound_contextvars(
            retry_operation=operation_name(operation), retry_attempt=0
        ):
            while True:
                if cancellation is not None and cancellation.is_cancelled:
                    return self._finish(AttemptPhase.CANCELLED, state, started)

                attempt = state.begin_attempt()
                structlog.contextvars.bind_contextvars(retry_attempt=attempt)
                logger.debug("Attempting operation", max_attempts=state.max_attempts)
                try:
                    value = operation()
                except Exception as e:
                    failure = self._attempt_failed(state, attempt, e)
                else:
                    self._attempt_succeeded()
                    return self._finish(AttemptPhase.SUCCEEDED, state, started, value=value)

                phase = self._evaluate(state, failure, classifier)
                if phase is not AttemptPhase.WAITING:
                    return self._finish(phase, state, started)

                wait_ms = self._before_wait(state, failure, backoff)
                if self.waiter.wait(wait_ms, cancellation):
                    return self._finish(AttemptPhase.CANCELLED, state, started)
                self._after_wait(state, wait_ms, config)

    def call(
        self,
        operation: Callable[[], T],
        config: RetryConfig,
        classifier: Optional[FailureClassifier] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> T:
        """
        Run ``operation`` under the retry policy and return its value.

        Raises:
            Exception: The last failure's own exception (exhausted or non-retryable)
            RetryCancelled: The sequence was cancelled
            RetryConfigError: The config is invalid
        """
        return self.execute(operation, config, classifier, cancellation).unwrap()


class AsyncRetryExecutor(_ExecutorCore):
    """
    Asyncio retry executor for coroutine operations.

    Cancelling the surrounding task (``asyncio.CancelledError``) propagates
    unchanged; a ``CancellationToken`` yields a CANCELLED outcome instead.
    """

    def __init__(
        self,
        taxonomy: Optional[FailureTaxonomy] = None,
        waiter: Optional[AsyncWaiter] = None,
        metrics_enabled: Optional[bool] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(taxonomy=taxonomy, metrics_enabled=metrics_enabled, clock=clock)
        self.waiter = waiter or AsyncioWaiter()

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        config: RetryConfig,
        classifier: Optional[FailureClassifier] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> Outcome[T]:
        """Coroutine counterpart of ``RetryExecutor.execute``."""
        state, classifier, backoff = self._start(config, classifier)
        started = self.clock()

        with structlog.contextvars.bound_contextvars(
            retry_operation=operation_name(operation), retry_attempt=0
        ):
            while True:
                if cancellation is not None and cancellation.is_cancelled:
                    return self._finish(AttemptPhase.CANCELLED, state, started)

                attempt = state.begin_attempt()
                structlog.contextvars.bind_contextvars(retry_attempt=attempt)
                logger.debug("Attempting operation", max_attempts=state.max_attempts)
                try:
                    value = await operation()
                except Exception as e:
                    failure = self._attempt_failed(state, attempt, e)
                else:
                    self._attempt_succeeded()
                    return self._finish(AttemptPhase.SUCCEEDED, state, started, value=value)

                phase = self._evaluate(state, failure, classifier)
                if phase is not AttemptPhase.WAITING:
                    return self._finish(phase, state, started)

                wait_ms = self._before_wait(state, failure, backoff)
                if await self.waiter.wait(wait_ms, cancellation):
                    return self._finish(AttemptPhase.CANCELLED, state, started)
                self._after_wait(state, wait_ms, config)

    async def call(
        self,
        operation: Callable[[], Awaitable[T]],
        config: RetryConfig,
        classifier: Optional[FailureClassifier] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> T:
        """Coroutine counterpart of ``RetryExecutor.call``."""
        outcome = await self.execute(operation, config, classifier, cancellation)
        return outcome.unwrap()
