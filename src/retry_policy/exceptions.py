"""
Retry policy exceptions.

Failures of the wrapped operation are never wrapped: an exhausted or
non-retryable outcome re-raises the operation's own exception. The
exceptions here cover the two terminal paths that are not the operation's
failure: an invalid configuration and a cancelled retry sequence.
"""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from retry_policy.models.outcome import Failure
    from retry_policy.retry.metadata import RetryMetadata


class RetryConfigError(ValueError):
    """
    Raised when a retry configuration is invalid (e.g. max_attempts < 1).

    Always raised before the first attempt; invalid values are never coerced.

    Attributes:
        message: Human-readable error description
        details: Structured error data (offending fields and reasons)
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class RetryCancelled(Exception):
    """
    Raised by ``Outcome.unwrap`` when the retry sequence was cancelled.

    Distinct from the operation's own failures: cancellation says nothing
    about whether the operation would eventually have succeeded.

    Attributes:
        metadata: Retry history up to the point of cancellation
        last_failure: Most recent failure observed before cancellation, if any
    """

    def __init__(
        self,
        metadata: "RetryMetadata",
        last_failure: "Failure | None" = None,
    ) -> None:
        self.metadata = metadata
        self.last_failure = last_failure

        message = f"Retry cancelled after {metadata.total_attempts} attempts"
        if last_failure is not None:
            message += f". Last failure: {last_failure.kind.name}: {last_failure.message}"
        super().__init__(message)
