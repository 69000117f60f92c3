"""Monitoring and metrics instrumentation for the retry executor."""

from retry_policy.monitoring.metrics import (
    retry_attempts_total,
    retry_outcomes_total,
    retry_wait_seconds,
)

__all__ = [
    "retry_attempts_total",
    "retry_outcomes_total",
    "retry_wait_seconds",
]
