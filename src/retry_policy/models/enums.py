"""
Enumerations for retry policy data models.
"""

from enum import Enum


class OutcomeStatus(str, Enum):
    """
    Terminal status of one executor invocation.

    EXHAUSTED and NON_RETRYABLE both surface the last failure; the status only
    records which terminal path was taken.
    """

    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"
    NON_RETRYABLE = "non_retryable"
    CANCELLED = "cancelled"


class AttemptPhase(str, Enum):
    """States of the retry executor's state machine."""

    ATTEMPTING = "attempting"
    EVALUATING_FAILURE = "evaluating_failure"
    WAITING = "waiting"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"
    NON_RETRYABLE_FAILURE = "non_retryable_failure"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_PHASES

    def to_status(self) -> OutcomeStatus:
        """Outcome status for a terminal phase."""
        try:
            return _PHASE_STATUS[self]
        except KeyError:
            raise ValueError(f"{self.value} is not a terminal phase") from None


_PHASE_STATUS = {
    AttemptPhase.SUCCEEDED: OutcomeStatus.SUCCEEDED,
    AttemptPhase.EXHAUSTED: OutcomeStatus.EXHAUSTED,
    AttemptPhase.NON_RETRYABLE_FAILURE: OutcomeStatus.NON_RETRYABLE,
    AttemptPhase.CANCELLED: OutcomeStatus.CANCELLED,
}

_TERMINAL_PHASES = frozenset(_PHASE_STATUS)
