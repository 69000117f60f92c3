"""
Backoff generator.

Produces the waits inserted between attempts: d0, d0*m, d0*m^2, ...
``next_delay`` is the pure step function the executor threads its current
delay through; ``BackoffGenerator`` exposes the same sequence as a lazy,
restartable iterable.

No floor or ceiling is enforced. A multiplier of 1.0 (or no multiplier)
yields a constant delay, a multiplier below 1.0 a decreasing one.

Numeric overflow: delays are Python floats in milliseconds. Unbounded growth
saturates to ``math.inf`` instead of raising. A wait of ``inf``, or any wait
longer than ``threading.TIMEOUT_MAX``, blocks until the sequence is cancelled
(or forever without a cancellation token). Callers that need a cap should
bound ``max_attempts`` accordingly.
"""

import math
import random
from typing import TYPE_CHECKING, Iterator, Optional

if TYPE_CHECKING:
    from retry_policy.models.config_models import RetryConfig


def next_delay(previous_delay_ms: float, multiplier: Optional[float]) -> float:
    """
    Delay following ``previous_delay_ms``.

    Args:
        previous_delay_ms: Delay applied before the previous attempt
        multiplier: Growth factor; None keeps the delay constant

    Returns:
        ``previous_delay_ms * multiplier`` (``math.inf`` on overflow)
    """
    if multiplier is None:
        return previous_delay_ms
    try:
        return previous_delay_ms * multiplier
    except OverflowError:
        # int * float raises instead of saturating
        return math.inf


class BackoffGenerator:
    """
    Restartable sequence of backoff delays.

    Each call to ``iter()`` starts again from the initial delay, so one
    generator can be shared by any number of invocations.

    Example:
        >>> list(itertools.islice(BackoffGenerator(1000, 2.0), 3))
        [1000, 2000.0, 4000.0]
    """

    def __init__(
        self,
        initial_delay_ms: float,
        multiplier: Optional[float] = None,
        jitter: float = 0.0,
        rng: Optional[random.Random] = None,
    ):
        self.initial_delay_ms = initial_delay_ms
        self.multiplier = multiplier
        self.jitter = jitter
        self._rng = rng or random.Random()

    @classmethod
    def from_config(cls, config: "RetryConfig") -> "BackoffGenerator":
        return cls(
            initial_delay_ms=config.initial_delay_ms,
            multiplier=config.multiplier,
            jitter=config.jitter,
        )

    def __iter__(self) -> Iterator[float]:
        delay = self.initial_delay_ms
        while True:
            yield delay
            delay = next_delay(delay, self.multiplier)

    def next(self, previous_delay_ms: float) -> float:
        return next_delay(previous_delay_ms, self.multiplier)

    def apply_jitter(self, delay_ms: float) -> float:
        """
        Spread a delay uniformly within +/- ``jitter * delay_ms``.

        Returns the delay unchanged when jitter is disabled. Never negative.
        """
        if not self.jitter or not math.isfinite(delay_ms):
            return delay_ms
        spread = delay_ms * self.jitter
        return max(0.0, delay_ms + self._rng.uniform(-spread, spread))

    def __repr__(self) -> str:
        return (
            f"BackoffGenerator(initial_delay_ms={self.initial_delay_ms}, "
            f"multiplier={self.multiplier}, jitter={self.jitter})"
        )
