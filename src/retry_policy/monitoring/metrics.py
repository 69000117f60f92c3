"""Prometheus metrics for the retry executor.

Recorded only when ``RETRY_METRICS_ENABLED`` is true. The host application
exposes them through its own /metrics endpoint or push gateway.
"""

from prometheus_client import Counter, Histogram

# === Attempt Metrics ===

retry_attempts_total = Counter(
    "retry_attempts_total",
    "Total operation invocations made by the retry executor",
    ["result"],
)
"""
Operation invocations by result.

Labels:
- result: success, failure
"""

# === Outcome Metrics ===

retry_outcomes_total = Counter(
    "retry_outcomes_total",
    "Total retry executor invocations by terminal status",
    ["status"],
)
"""
Executor invocations by terminal status.

Labels:
- status: succeeded, exhausted, non_retryable, cancelled
"""

# === Wait Metrics ===

retry_wait_seconds = Histogram(
    "retry_wait_seconds",
    "Backoff waits applied between attempts",
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 4.0, 8.0, 16.0, 32.0, 64.0],
)
