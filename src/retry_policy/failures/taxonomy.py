"""
Failure taxonomy: maps raised exceptions to failure kinds.

Resolution order for a raised exception:
    1. An explicit ``failure_kind`` on the exception (see ``KindedError``)
    2. A kind registered for its class with ``FailureTaxonomy.register``
    3. A kind derived from the exception class, whose parent is the kind of
       the first exception base class (so registrations on a base class become
       ancestors of every unregistered subclass)

Kinds from steps 1 and 2 keep the class ancestry below their own lineage, so a
declared base exception class still matches a subclass that was registered
under a kind of its own.

Resolved kinds are memoized per class. The memo is guarded by a lock so a
taxonomy can be shared by concurrent executor invocations.
"""

import threading
from typing import Any, Optional, Union

import structlog

from retry_policy.failures.kinds import FailureKind

logger = structlog.get_logger(__name__)

DeclaredKind = Union[FailureKind, type[BaseException]]


def kind_name_for_type(exc_type: type[BaseException]) -> str:
    """Kind name derived from an exception class ("ValueError", "pkg.mod.MyError")."""
    if exc_type.__module__ == "builtins":
        return exc_type.__qualname__
    return f"{exc_type.__module__}.{exc_type.__qualname__}"


def declared_kind(value: Any) -> DeclaredKind:
    """
    Normalize a declared retryable kind without resolving it.

    Kind names become ``FailureKind`` values and a class declaring
    ``failure_kind`` becomes that kind. Other exception classes are returned
    as-is so that a taxonomy can resolve them later.

    Raises:
        TypeError: If the value cannot name a kind
    """
    if isinstance(value, FailureKind):
        return value
    if isinstance(value, str):
        return FailureKind(name=value)
    if isinstance(value, type) and issubclass(value, BaseException):
        explicit = getattr(value, "failure_kind", None)
        if isinstance(explicit, FailureKind):
            return explicit
        return value
    raise TypeError(
        f"Cannot interpret {value!r} as a failure kind "
        "(expected FailureKind, kind name or exception class)"
    )


def _graft(kind: FailureKind, base: Optional[FailureKind]) -> FailureKind:
    """Copy of ``kind`` whose root continues into ``base``'s lineage."""
    if base is None:
        return kind

    own = {k.name for k in kind.lineage()}
    tail = next((k for k in base.lineage() if k.name not in own), None)
    if tail is None:
        return kind
    return _reparent(kind, tail)


def _reparent(kind: FailureKind, tail: FailureKind) -> FailureKind:
    parent = _reparent(kind.parent, tail) if kind.parent is not None else tail
    return FailureKind(name=kind.name, parent=parent)


class FailureTaxonomy:
    """
    Registry that classifies exceptions into failure kinds.

    Example:
        >>> taxonomy = FailureTaxonomy()
        >>> network = taxonomy.register(OSError, FailureKind("network"))
        >>> taxonomy.kind_of(ConnectionResetError()).is_a(network)
        True
    """

    def __init__(self) -> None:
        self._registered: dict[type[BaseException], FailureKind] = {}
        self._resolved: dict[type[BaseException], FailureKind] = {}
        self._lock = threading.RLock()

    def register(self, exc_type: type[BaseException], kind: FailureKind) -> FailureKind:
        """
        Bind an exception class (and, through derivation, its subclasses) to a kind.

        Registering after kinds have been resolved invalidates the memo, so
        subclasses pick up the new ancestor.

        Returns:
            The registered kind, for chaining declarations
        """
        if not (isinstance(exc_type, type) and issubclass(exc_type, BaseException)):
            raise TypeError(f"Expected an exception class, got {exc_type!r}")

        with self._lock:
            self._registered[exc_type] = kind
            self._resolved.clear()

        logger.debug(
            "Failure kind registered",
            exception_type=kind_name_for_type(exc_type),
            kind=kind.name,
        )
        return kind

    def kind_for_type(self, exc_type: type[BaseException]) -> FailureKind:
        """Kind for an exception class (registered or derived)."""
        with self._lock:
            resolved = self._resolved.get(exc_type)
            if resolved is not None:
                return resolved

            base_kind = None
            if exc_type is not BaseException:
                # Only the first exception base is followed on multiple inheritance
                base = next(
                    b for b in exc_type.__mro__[1:] if issubclass(b, BaseException)
                )
                base_kind = self.kind_for_type(base)

            registered = self._registered.get(exc_type)
            if registered is not None:
                resolved = _graft(registered, base_kind)
            else:
                resolved = FailureKind(name=kind_name_for_type(exc_type), parent=base_kind)

            self._resolved[exc_type] = resolved
            return resolved

    def kind_of(self, error: BaseException) -> FailureKind:
        """Kind of a raised exception."""
        explicit = getattr(error, "failure_kind", None)
        if isinstance(explicit, FailureKind):
            return _graft(explicit, self.kind_for_type(type(error)))
        return self.kind_for_type(type(error))

    def coerce(self, value: Any) -> FailureKind:
        """
        Turn a declared retryable kind into a ``FailureKind``.

        Accepts a ``FailureKind``, a kind name, or an exception class (a class
        declaring ``failure_kind`` resolves to that kind, any other class to
        its kind in this taxonomy).

        Raises:
            TypeError: If the value cannot name a kind
        """
        declared = declared_kind(value)
        if isinstance(declared, FailureKind):
            return declared
        return self.kind_for_type(declared)


# Default taxonomy shared by executors that are not given one
default_taxonomy = FailureTaxonomy()
