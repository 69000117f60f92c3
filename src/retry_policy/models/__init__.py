"""
Data models for the retry policy.

Includes:
- RetryConfig (frozen pydantic model, one per call site)
- AttemptState (per-invocation bookkeeping)
- Failure and Outcome (frozen dataclasses)
- Enums (OutcomeStatus, AttemptPhase)
"""

from retry_policy.models.enums import AttemptPhase, OutcomeStatus
from retry_policy.models.config_models import RetryConfig
from retry_policy.models.outcome import Failure, Outcome
from retry_policy.models.attempt_state import AttemptState

__all__ = [
    "AttemptPhase",
    "OutcomeStatus",
    "RetryConfig",
    "Failure",
    "Outcome",
    "AttemptState",
]
