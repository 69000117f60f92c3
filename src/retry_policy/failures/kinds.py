"""
Failure kinds.

A failure kind is the classification tag of an attempt's failure. Kinds form
an explicit hierarchy through ``parent``: a kind declared as retryable also
covers every kind that descends from it (e.g. ``network`` covers
``network.connection_reset``).
"""

from dataclasses import dataclass, field
from typing import Iterator, Optional


@dataclass(frozen=True)
class FailureKind:
    """
    Classification tag for a failure.

    Identity (equality and hashing) is the ``name`` only, so a kind referenced
    by name elsewhere (configuration, settings) compares equal to the kind
    registered in the taxonomy with its full ancestry.

    Attributes:
        name: Unique kind name (e.g. "network.connection_reset")
        parent: Broader kind this one specializes, if any
    """

    name: str
    parent: Optional["FailureKind"] = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("FailureKind name must not be empty")

    def lineage(self) -> Iterator["FailureKind"]:
        """Yield this kind followed by each ancestor, nearest first."""
        kind: Optional[FailureKind] = self
        while kind is not None:
            yield kind
            kind = kind.parent

    def is_a(self, other: "FailureKind") -> bool:
        """True when ``other`` is this kind or one of its ancestors."""
        return any(kind == other for kind in self.lineage())

    def child(self, name: str) -> "FailureKind":
        """Declare a narrower kind below this one."""
        return FailureKind(name=name, parent=self)

    def __str__(self) -> str:
        return self.name
