"""
Retry configuration model.

A ``RetryConfig`` is created once per call site and never mutated. It accepts
both the Python field names and the option names used by declarative
sources (``maxAttempts``, ``initialDelay``, ``multiplier``,
``retryableKinds``). Unrecognized options are ignored and absent options
take the defaults.
"""

from typing import Any, Mapping, Optional, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field, InstanceOf, field_validator
from pydantic import ValidationError as PydanticValidationError

from retry_policy.config import Settings
from retry_policy.exceptions import RetryConfigError
from retry_policy.failures.kinds import FailureKind
from retry_policy.failures.taxonomy import FailureTaxonomy, declared_kind

logger = structlog.get_logger(__name__)


class RetryConfig(BaseModel):
    """
    Immutable retry policy for one call site.

    Attributes:
        max_attempts: Total attempts including the first (>= 1)
        initial_delay_ms: Wait before the second attempt, in milliseconds
        multiplier: Growth factor applied to the wait after each failed
            attempt. None means constant delay. Values below 1.0 give a
            decreasing sequence.
        retryable_kinds: Failure kinds that may trigger another attempt.
            Accepts FailureKind values, kind names or exception classes.
            Exception classes are kept as declared and resolved against the
            executor's taxonomy on each run (see ``resolve_kinds``).
        jitter: Random spread applied to each wait (0 disables jitter)
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    max_attempts: int = Field(
        default=3, ge=1, alias="maxAttempts", description="Total attempts including the first"
    )
    initial_delay_ms: float = Field(
        default=1000.0, ge=0.0, alias="initialDelay", description="First wait in milliseconds"
    )
    multiplier: Optional[float] = Field(
        default=None, gt=0.0, description="Delay growth factor (None = constant delay)"
    )
    retryable_kinds: frozenset[Union[InstanceOf[FailureKind], type[BaseException]]] = Field(
        default_factory=frozenset,
        alias="retryableKinds",
        description="Failure kinds eligible for retry",
    )
    jitter: float = Field(default=0.0, ge=0.0, le=1.0, description="Random spread factor")

    @field_validator("retryable_kinds", mode="before")
    @classmethod
    def _coerce_kinds(cls, value: Any) -> frozenset[Any]:
        if value is None:
            return frozenset()
        if isinstance(value, (str, FailureKind, type)):
            value = [value]
        try:
            return frozenset(declared_kind(item) for item in value)
        except TypeError as e:
            # pydantic only reports ValueError/AssertionError as validation errors
            raise ValueError(str(e)) from e

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> "RetryConfig":
        """
        Build a config from a plain option mapping.

        Args:
            options: Options keyed by field name or declarative alias

        Returns:
            Validated RetryConfig

        Raises:
            RetryConfigError: If any recognized option is invalid
        """
        ignored = sorted(set(options) - _KNOWN_OPTIONS)
        if ignored:
            logger.debug("Ignoring unrecognized retry options", options=ignored)

        try:
            return cls.model_validate(dict(options))
        except PydanticValidationError as e:
            raise RetryConfigError(
                "Invalid retry configuration",
                details={
                    "errors": [
                        {"field": ".".join(str(p) for p in err["loc"]), "reason": err["msg"]}
                        for err in e.errors()
                    ]
                },
            ) from e

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: Any) -> "RetryConfig":
        """Build a config from process-wide defaults, with per-call-site overrides."""
        options: dict[str, Any] = {
            "max_attempts": settings.DEFAULT_MAX_ATTEMPTS,
            "initial_delay_ms": settings.DEFAULT_INITIAL_DELAY_MS,
            "multiplier": settings.DEFAULT_MULTIPLIER,
            "jitter": settings.DEFAULT_JITTER,
        }
        options.update(overrides)
        return cls.from_options(options)

    def resolve_kinds(self, taxonomy: FailureTaxonomy) -> frozenset[FailureKind]:
        """Retryable kinds with declared exception classes resolved through ``taxonomy``."""
        return frozenset(taxonomy.coerce(kind) for kind in self.retryable_kinds)

    def check(self) -> None:
        """
        Re-check invariants on an already-built config.

        Guards against instances that bypassed validation (``model_construct``).

        Raises:
            RetryConfigError: If an invariant does not hold
        """
        problems = []
        if isinstance(self.max_attempts, bool) or not isinstance(self.max_attempts, int):
            problems.append({"field": "max_attempts", "reason": "must be an integer"})
        elif self.max_attempts < 1:
            problems.append({"field": "max_attempts", "reason": "must be >= 1"})
        if not self.initial_delay_ms >= 0:
            problems.append({"field": "initial_delay_ms", "reason": "must be >= 0"})
        if self.multiplier is not None and not self.multiplier > 0:
            problems.append({"field": "multiplier", "reason": "must be > 0"})
        if not 0.0 <= self.jitter <= 1.0:
            problems.append({"field": "jitter", "reason": "must be within [0, 1]"})

        if problems:
            raise RetryConfigError("Invalid retry configuration", details={"errors": problems})


_KNOWN_OPTIONS = frozenset(
    name
    for field_name, info in RetryConfig.model_fields.items()
    for name in (field_name, info.alias)
    if name
)
