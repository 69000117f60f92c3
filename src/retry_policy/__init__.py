"""
Retry policy for fallible units of work.

Re-executes an operation a bounded number of times on failure, waiting an
increasing delay between attempts, but only for a caller-designated set of
failure kinds:

- Backoff generator (constant or multiplicative delay sequence)
- Failure taxonomy and classifiers (exact and hierarchical kind matching)
- Retry executor (sync and asyncio), with cooperative cancellation
- ``retryable`` decorator for explicit composition

Architecture: pure decision engine + pluggable waiters, structlog logging,
pydantic configuration, Prometheus metrics
"""

__version__ = "0.1.0"
