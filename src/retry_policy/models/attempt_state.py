"""
Transient state of one in-flight executor invocation.

An ``AttemptState`` is created at the start of ``execute``, mutated only by
that invocation's loop and discarded when it returns. It is never shared
between invocations.
"""

from dataclasses import dataclass, field
from typing import Optional

from retry_policy.models.outcome import Failure


@dataclass
class AttemptState:
    """
    Mutable bookkeeping for one retry sequence.

    Attributes:
        max_attempts: Attempt budget copied from the config
        current_delay_ms: Wait to apply before the next attempt
        attempts_made: Attempts started so far
        last_failure: Most recent failure record
        waits_ms: Waits completed so far, in order
        failures: Every failure observed, in order
    """

    max_attempts: int
    current_delay_ms: float
    attempts_made: int = 0
    last_failure: Optional[Failure] = None
    waits_ms: list[float] = field(default_factory=list)
    failures: list[Failure] = field(default_factory=list)

    @property
    def attempts_remaining(self) -> int:
        return self.max_attempts - self.attempts_made

    def begin_attempt(self) -> int:
        """Count a new attempt and return its 1-indexed number."""
        if self.attempts_made >= self.max_attempts:
            raise RuntimeError(
                f"attempt budget exceeded ({self.attempts_made}/{self.max_attempts})"
            )
        self.attempts_made += 1
        return self.attempts_made

    def record_failure(self, failure: Failure) -> None:
        self.last_failure = failure
        self.failures.append(failure)

    def record_wait(self, waited_ms: float, next_delay_ms: float) -> None:
        """Record a completed wait and advance the delay for the following one."""
        self.waits_ms.append(waited_ms)
        self.current_delay_ms = next_delay_ms
