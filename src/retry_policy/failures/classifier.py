"""
Failure classifiers.

A classifier answers one question for the retry executor: may this failure
trigger another attempt? ``KindSetClassifier`` implements the standard policy
of a declared set of retryable kinds, matched exactly or through the kind
hierarchy.
"""

from typing import TYPE_CHECKING, Iterable, Protocol

from retry_policy.failures.kinds import FailureKind

if TYPE_CHECKING:
    from retry_policy.models.outcome import Failure


class FailureClassifier(Protocol):
    """
    Protocol for retry eligibility decisions.

    Implementations must be side-effect free; the executor may call
    ``is_retryable`` from many concurrent invocations.
    """

    def is_retryable(self, failure: "Failure") -> bool:
        """
        Report whether ``failure`` qualifies for another attempt.

        Args:
            failure: Failure record of the attempt that just failed

        Returns:
            True if the failure kind is retryable
        """
        ...


class KindSetClassifier:
    """
    Retries failures whose kind (or any ancestor kind) is in a declared set.

    An empty set retries nothing.
    """

    def __init__(self, retryable_kinds: Iterable[FailureKind]):
        self.retryable_kinds = frozenset(retryable_kinds)

    def is_retryable(self, failure: "Failure") -> bool:
        return any(kind in self.retryable_kinds for kind in failure.kind.lineage())

    def __repr__(self) -> str:
        kinds = ", ".join(sorted(kind.name for kind in self.retryable_kinds))
        return f"KindSetClassifier({{{kinds}}})"
