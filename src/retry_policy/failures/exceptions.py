"""
Base exception for failures that declare their own kind.

Application code can subclass ``KindedError`` and set ``failure_kind`` on the
subclass; the taxonomy then classifies instances by that tag instead of by
their Python class.
"""

from typing import Any, Optional

from retry_policy.failures.kinds import FailureKind


class KindedError(Exception):
    """
    Base exception for failures carrying an explicit failure kind.

    Example:
        >>> NETWORK = FailureKind("network")
        >>> class ConnectionReset(KindedError):
        ...     failure_kind = NETWORK.child("network.connection_reset")

    Attributes:
        message: Human-readable error description
        details: Structured error data for logging
        failure_kind: Kind tag used for retry classification (class attribute,
            can be overridden per instance)
    """

    failure_kind: Optional[FailureKind] = None

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        kind: FailureKind | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if kind is not None:
            self.failure_kind = kind

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message
