"""
Unit tests for the retry policy.

Test individual components in isolation:
- Backoff generator (sequence, multiplier, jitter, overflow)
- Failure taxonomy and classifiers (exact and hierarchical matching)
- Retry executor state machine (sync and asyncio)
- Cancellation, decorators and models
"""
