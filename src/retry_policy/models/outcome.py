"""
Outcome of one retry executor invocation.

An outcome is either a success payload or a failure record; there are no
partial states. Failure records keep the operation's own exception so it can
be re-raised unchanged.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, Optional, TypeVar

from retry_policy.exceptions import RetryCancelled
from retry_policy.failures.kinds import FailureKind
from retry_policy.failures.taxonomy import FailureTaxonomy
from retry_policy.models.enums import OutcomeStatus

if TYPE_CHECKING:
    from retry_policy.retry.metadata import RetryMetadata

T = TypeVar("T")


@dataclass(frozen=True)
class Failure:
    """
    Failure record of a single attempt.

    Attributes:
        kind: Classification tag resolved by the failure taxonomy
        message: Human-readable message of the raised exception
        error: The exception raised by the operation
        attempt: Attempt number that produced the failure (1-indexed)
    """

    kind: FailureKind
    message: str
    error: BaseException
    attempt: int

    @classmethod
    def from_exception(
        cls, error: BaseException, attempt: int, taxonomy: FailureTaxonomy
    ) -> "Failure":
        return cls(
            kind=taxonomy.kind_of(error),
            message=str(error) or type(error).__name__,
            error=error,
            attempt=attempt,
        )


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """
    Final result of an executor invocation.

    Attributes:
        status: Terminal path taken (succeeded, exhausted, non-retryable, cancelled)
        metadata: Retry history (attempts, waits, failure kinds, latency)
        value: Success payload (only meaningful when status is SUCCEEDED)
        failure: Last failure observed (required unless SUCCEEDED; optional
            when CANCELLED before any attempt failed)
    """

    status: OutcomeStatus
    metadata: "RetryMetadata"
    value: Optional[T] = None
    failure: Optional[Failure] = None

    def __post_init__(self) -> None:
        """Validate outcome invariants."""
        if self.status is OutcomeStatus.SUCCEEDED and self.failure is not None:
            raise ValueError("a succeeded outcome cannot carry a failure")

        if self.status in (OutcomeStatus.EXHAUSTED, OutcomeStatus.NON_RETRYABLE) and self.failure is None:
            raise ValueError(f"a {self.status.value} outcome requires a failure")

    @property
    def succeeded(self) -> bool:
        return self.status is OutcomeStatus.SUCCEEDED

    @property
    def cancelled(self) -> bool:
        return self.status is OutcomeStatus.CANCELLED

    @property
    def error(self) -> Optional[BaseException]:
        """The operation's exception for failed outcomes, None otherwise."""
        return self.failure.error if self.failure is not None else None

    def unwrap(self) -> T:
        """
        Return the success payload or raise the terminal error.

        Raises:
            BaseException: The last failure's original exception (exhausted or
                non-retryable outcomes)
            RetryCancelled: The sequence was cancelled
        """
        if self.status is OutcomeStatus.SUCCEEDED:
            return self.value  # type: ignore[return-value]

        if self.status is OutcomeStatus.CANCELLED:
            raise RetryCancelled(metadata=self.metadata, last_failure=self.failure)

        if self.failure is None:
            raise RuntimeError(f"{self.status.value} outcome carries no failure")
        raise self.failure.error

    def __repr__(self) -> str:
        detail: Any = self.value if self.succeeded else self.failure
        return f"Outcome(status={self.status.value}, attempts={self.metadata.total_attempts}, {detail!r})"
