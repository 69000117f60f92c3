"""
Retry metadata tracking.

This module defines the RetryMetadata dataclass that captures the retry
history of one executor invocation for logs, diagnostics and metrics.
"""

from dataclasses import dataclass

from retry_policy.models.enums import OutcomeStatus


@dataclass(frozen=True)
class RetryMetadata:
    """
    Retry history of one executor invocation.

    Attributes:
        total_attempts: Number of times the operation was invoked
        final_status: Terminal path taken
        total_latency_ms: Time from the start of the invocation to its outcome (ms)
        waits_ms: Completed waits between attempts, in order (ms)
        failure_kinds: Kind names of every failed attempt, in order
    """

    total_attempts: int
    final_status: OutcomeStatus
    total_latency_ms: int
    waits_ms: tuple[float, ...] = ()
    failure_kinds: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        """Validate metadata invariants."""
        if self.total_attempts < 0:
            raise ValueError("total_attempts must be >= 0")

        if self.total_attempts == 0 and self.final_status is not OutcomeStatus.CANCELLED:
            raise ValueError("only a cancelled invocation can make zero attempts")

        if len(self.waits_ms) > max(self.total_attempts - 1, 0):
            raise ValueError("waits only happen between attempts")

        if len(self.failure_kinds) > self.total_attempts:
            raise ValueError("failure_kinds cannot outnumber attempts")

        if self.total_latency_ms < 0:
            raise ValueError("total_latency_ms must be >= 0")

    @property
    def retries(self) -> int:
        """Attempts made after the first one."""
        return max(self.total_attempts - 1, 0)
