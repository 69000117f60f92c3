"""
Explicit-composition decorator for retryable callables.

``retryable`` wraps a function, coroutine function or class with the retry
executor. The config is built and validated when the decorator is applied,
so configuration errors surface at import time rather than on first call.

Usage:
    @retryable(max_attempts=5, initial_delay_ms=200, multiplier=2.0,
               retryable_kinds={ConnectionError, TimeoutError})
    def fetch(url):
        ...

    @retryable(RetryConfig(retryable_kinds={"storage.busy"}))
    class Repository:
        def save(self, item): ...          # retried
        def _connect(self): ...            # private, not wrapped
"""

import functools
import inspect
from typing import Any, Callable, Optional, TypeVar

import structlog

from retry_policy.failures.classifier import FailureClassifier
from retry_policy.failures.taxonomy import FailureTaxonomy
from retry_policy.models.config_models import RetryConfig
from retry_policy.retry.cancellation import CancellationToken
from retry_policy.retry.executor import AsyncRetryExecutor, RetryExecutor

logger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

RETRY_CONFIG_ATTR = "retry_config"


def retryable(
    config: Optional[RetryConfig] = None,
    *,
    classifier: Optional[FailureClassifier] = None,
    taxonomy: Optional[FailureTaxonomy] = None,
    cancellation: Optional[CancellationToken] = None,
    executor: Optional[RetryExecutor] = None,
    async_executor: Optional[AsyncRetryExecutor] = None,
    **options: Any,
) -> Callable[[F], F]:
    """
    Decorate a callable (or every public method of a class) with a retry policy.

    Args:
        config: Retry policy; built from ``options`` when omitted
        classifier: Retry eligibility (defaults to config.retryable_kinds)
        taxonomy: Failure taxonomy for the default executors
        cancellation: Token shared by every call of the decorated callable
        executor: Executor for plain functions
        async_executor: Executor for coroutine functions
        **options: RetryConfig options (field names or declarative aliases)

    Raises:
        RetryConfigError: If the options do not form a valid config
        TypeError: If both ``config`` and ``options`` are given
    """
    if config is None:
        config = RetryConfig.from_options(options)
    elif options:
        raise TypeError("Pass either a RetryConfig or config options, not both")

    sync_executor = executor or RetryExecutor(taxonomy=taxonomy)
    coro_executor = async_executor or AsyncRetryExecutor(taxonomy=taxonomy)

    def wrap_function(func: F) -> F:
        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                return await coro_executor.call(
                    functools.partial(func, *args, **kwargs), config, classifier, cancellation
                )

            wrapper: Any = async_wrapper
        else:

            @functools.wraps(func)
            def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
                return sync_executor.call(
                    functools.partial(func, *args, **kwargs), config, classifier, cancellation
                )

            wrapper = sync_wrapper

        setattr(wrapper, RETRY_CONFIG_ATTR, config)
        return wrapper

    def decorate(target: F) -> F:
        if isinstance(target, type):
            return _wrap_class(target, wrap_function)  # type: ignore[return-value]
        if not callable(target):
            raise TypeError(f"retryable cannot decorate {target!r}")
        return wrap_function(target)

    return decorate


def _wrap_class(cls: type, wrap_function: Callable[[Any], Any]) -> type:
    """
    Wrap every public method defined directly on ``cls``.

    Methods already carrying their own retry policy keep it. Properties and
    inherited methods are left untouched.
    """
    wrapped = []
    for name, member in list(vars(cls).items()):
        if name.startswith("_"):
            continue

        if isinstance(member, (staticmethod, classmethod)):
            func = member.__func__
            if hasattr(func, RETRY_CONFIG_ATTR):
                continue
            setattr(cls, name, type(member)(wrap_function(func)))
        elif inspect.isfunction(member):
            if hasattr(member, RETRY_CONFIG_ATTR):
                continue
            setattr(cls, name, wrap_function(member))
        else:
            continue
        wrapped.append(name)

    logger.debug("Retry policy applied to class", cls=cls.__qualname__, methods=wrapped)
    return cls
