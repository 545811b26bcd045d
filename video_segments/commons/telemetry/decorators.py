"""Telemetry decorators for pipeline coroutines.

Every stage of the worker is a coroutine, so both decorators wrap
coroutine functions only.
"""

import functools
import logging
import time
from collections.abc import Awaitable, Callable
from contextvars import Token
from typing import Any, ParamSpec, TypeVar, overload

from video_segments.commons.telemetry.logger import (
    get_log_context,
    get_logger,
    log_context_var,
)

P = ParamSpec("P")
R = TypeVar("R")


def failure_fields(error: BaseException) -> dict[str, Any]:
    """Log fields describing an error, including its fatal/transient class."""
    fields: dict[str, Any] = {"exception_type": type(error).__name__}
    for attr in ("stage", "fatal"):
        value = getattr(error, attr, None)
        if value is not None:
            fields[attr] = value
    return fields


@overload
def log_exceptions(
    func: Callable[P, Awaitable[R]],
) -> Callable[P, Awaitable[R]]: ...


@overload
def log_exceptions(
    *,
    logger: logging.Logger | None = None,
    level: int = logging.ERROR,
    message: str | None = None,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]: ...


def log_exceptions(
    func: Callable[P, Awaitable[R]] | None = None,
    *,
    logger: logging.Logger | None = None,
    level: int = logging.ERROR,
    message: str | None = None,
) -> Any:
    """Log an exception escaping a coroutine, then re-raise it.

    Can be used with or without arguments:
        @log_exceptions
        async def serve(): ...

        @log_exceptions(message="Worker stopped unexpectedly")
        async def serve(): ...

    Args:
        func: The coroutine function (when used without parentheses).
        logger: Optional logger. Defaults to the function's module logger.
        level: Log level of the record.
        message: Record message. Defaults to "<qualname> raised".
    """

    def decorator(fn: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        log = logger or get_logger(fn.__module__)

        @functools.wraps(fn)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            try:
                return await fn(*args, **kwargs)
            except Exception as e:
                log.log(
                    level,
                    message or f"{fn.__qualname__} raised",
                    exc_info=True,
                    extra=failure_fields(e),
                )
                raise

        return wrapper

    if func is not None:
        return decorator(func)
    return decorator


@overload
def timed(
    func: Callable[P, Awaitable[R]],
) -> Callable[P, Awaitable[R]]: ...


@overload
def timed(
    *,
    logger: logging.Logger | None = None,
    level: int = logging.DEBUG,
    threshold_ms: float | None = None,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]: ...


def timed(
    func: Callable[P, Awaitable[R]] | None = None,
    *,
    logger: logging.Logger | None = None,
    level: int = logging.DEBUG,
    threshold_ms: float | None = None,
) -> Any:
    """Log how long a coroutine ran, whether it returned or raised.

    The record carries ``duration_ms`` and ``outcome``: ``"ok"`` or the name
    of the exception type.

    Args:
        func: The coroutine function (when used without parentheses).
        logger: Optional logger. Defaults to the function's module logger.
        level: Log level of the record.
        threshold_ms: Only log runs that took at least this long.
    """

    def decorator(fn: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        log = logger or get_logger(fn.__module__)

        @functools.wraps(fn)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            start = time.perf_counter()
            outcome = "ok"
            try:
                return await fn(*args, **kwargs)
            except BaseException as e:
                outcome = type(e).__name__
                raise
            finally:
                elapsed_ms = (time.perf_counter() - start) * 1000
                if threshold_ms is None or elapsed_ms >= threshold_ms:
                    log.log(
                        level,
                        f"{fn.__qualname__} finished",
                        extra={
                            "duration_ms": round(elapsed_ms, 2),
                            "outcome": outcome,
                        },
                    )

        return wrapper

    if func is not None:
        return decorator(func)
    return decorator


class LogContext:
    """Adds fields to the logging context for the duration of a block.

    Example:
        with LogContext(video_id=job.id):
            ...
    """

    def __init__(self, **fields: Any) -> None:
        self.fields = fields
        self._token: Token[dict[str, Any]] | None = None

    def __enter__(self) -> "LogContext":
        self._token = log_context_var.set({**get_log_context(), **self.fields})
        return self

    def __exit__(self, *args: Any) -> None:
        if self._token is not None:
            log_context_var.reset(self._token)
            self._token = None
