"""
Integration tests for the retry policy.

Exercise the executors with real waits, real threads and a real event loop:
- Blocking waits and cancellation from another thread
- Asyncio waits, token cancellation and task cancellation
- Concurrent invocations sharing one executor
- Decorated classes end to end
"""
