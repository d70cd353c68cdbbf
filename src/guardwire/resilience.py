"""Timeout, retry and fallback as composable wrappers.

Each stage takes a callable and returns a callable with the same signature::

    call = with_fallback(
        with_retry(with_timeout(generate, 5.0), max_retries=3, delay=0.1),
        static_fallback("The model is unavailable."),
    )

:func:`fault_tolerant` builds that stack from :class:`FaultToleranceOptions`.
The ``a``-prefixed variants do the same for coroutine functions.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import functools
import inspect
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Options and context
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class FaultToleranceOptions:
    """
    Per-call resilience policy.

    ``timeout`` applies to each attempt separately; ``max_retries`` counts
    attempts after the first, so the defaults allow four calls in total.
    """

    timeout: float | None = 5.0
    max_retries: int = 3
    delay: float = 0.1
    retry_on: tuple[type[BaseException], ...] = (Exception,)
    abort_on: tuple[type[BaseException], ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout!r}")
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries!r}")
        if self.delay < 0:
            raise ValueError(f"delay must be >= 0, got {self.delay!r}")


@dataclass(frozen=True, slots=True)
class ExecutionContext:
    """What a fallback handler knows about the failed call."""

    failure: BaseException
    attempts: int = 1
    args: tuple[Any, ...] = ()
    kwargs: dict[str, Any] = field(default_factory=dict)


type FallbackHandler[R] = Callable[[ExecutionContext], R]


class ServiceTimeoutError(TimeoutError):
    """Raised when a single attempt exceeds its time budget."""


class RetriesExhaustedError(Exception):
    """Raised when every attempt failed with a retryable error."""

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        super().__init__(f"Call failed after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


def static_fallback[R](value: R) -> FallbackHandler[R]:
    def handler(context: ExecutionContext) -> R:
        return value

    return handler


def _should_retry(exc: BaseException, retry_on, abort_on) -> bool:
    if abort_on and isinstance(exc, abort_on):
        return False
    return isinstance(exc, retry_on)


def _attempts_of(exc: BaseException) -> int:
    return exc.attempts if isinstance(exc, RetriesExhaustedError) else 1


def _unwrap(exc: BaseException) -> BaseException:
    return exc.last_error if isinstance(exc, RetriesExhaustedError) else exc


# ---------------------------------------------------------------------------
# Sync stages
# ---------------------------------------------------------------------------


def with_timeout[**P, R](fn: Callable[P, R], timeout: float | None) -> Callable[P, R]:
    """Bound each call of *fn* to *timeout* seconds.

    The call runs on a worker thread.  Python threads cannot be interrupted,
    so a call that times out keeps running in the background; its result is
    discarded.
    """
    if timeout is None:
        return fn

    @functools.wraps(fn)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="guardwire-timeout"
        )
        future = executor.submit(fn, *args, **kwargs)
        try:
            return future.result(timeout=timeout)
        except concurrent.futures.TimeoutError as exc:
            if future.done():
                raise
            future.cancel()
            raise ServiceTimeoutError(f"Call timed out after {timeout}s") from exc
        finally:
            executor.shutdown(wait=False)

    return wrapper


def with_retry[**P, R](
    fn: Callable[P, R],
    *,
    max_retries: int = 3,
    delay: float = 0.1,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    abort_on: tuple[type[BaseException], ...] = (),
    sleep: Callable[[float], None] = time.sleep,
) -> Callable[P, R]:
    """Retry *fn* up to *max_retries* times with a fixed *delay* between calls."""

    @functools.wraps(fn)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        for attempt in range(1 + max_retries):
            try:
                return fn(*args, **kwargs)
            except Exception as exc:
                if not _should_retry(exc, retry_on, abort_on):
                    raise
                logger.warning(
                    "Attempt %d/%d of %s failed: %s",
                    attempt + 1,
                    1 + max_retries,
                    getattr(fn, "__name__", "call"),
                    exc,
                )
                if attempt >= max_retries:
                    raise RetriesExhaustedError(attempt + 1, exc) from exc
                if delay:
                    sleep(delay)
        raise RuntimeError(f"Call failed after {max_retries + 1} attempts")

    return wrapper


def with_fallback[**P, R](fn: Callable[P, R], handler: FallbackHandler[R]) -> Callable[P, R]:
    """Return ``handler(context)`` instead of raising when *fn* fails."""

    @functools.wraps(fn)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return fn(*args, **kwargs)
        except Exception as exc:
            logger.warning("Falling back after failure: %s", exc)
            context = ExecutionContext(
                failure=_unwrap(exc), attempts=_attempts_of(exc), args=args, kwargs=kwargs
            )
            return handler(context)

    return wrapper


def fault_tolerant[**P, R](
    fn: Callable[P, R],
    options: FaultToleranceOptions | None = None,
    *,
    fallback: FallbackHandler[R] | None = None,
) -> Callable[P, R]:
    opts = options or FaultToleranceOptions()
    call = with_retry(
        with_timeout(fn, opts.timeout),
        max_retries=opts.max_retries,
        delay=opts.delay,
        retry_on=opts.retry_on,
        abort_on=opts.abort_on,
    )
    if fallback is not None:
        call = with_fallback(call, fallback)
    return call


# ---------------------------------------------------------------------------
# Async stages
# ---------------------------------------------------------------------------


def awith_timeout[**P, R](
    fn: Callable[P, Awaitable[R]], timeout: float | None
) -> Callable[P, Awaitable[R]]:
    """Async version of :func:`with_timeout`; the timed-out attempt is cancelled."""
    if timeout is None:
        return fn

    @functools.wraps(fn)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return await asyncio.wait_for(fn(*args, **kwargs), timeout=timeout)
        except TimeoutError as exc:
            raise ServiceTimeoutError(f"Call timed out after {timeout}s") from exc

    return wrapper


def awith_retry[**P, R](
    fn: Callable[P, Awaitable[R]],
    *,
    max_retries: int = 3,
    delay: float = 0.1,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    abort_on: tuple[type[BaseException], ...] = (),
) -> Callable[P, Awaitable[R]]:
    """Async version of :func:`with_retry`."""

    @functools.wraps(fn)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        for attempt in range(1 + max_retries):
            try:
                return await fn(*args, **kwargs)
            except Exception as exc:
                if not _should_retry(exc, retry_on, abort_on):
                    raise
                logger.warning(
                    "Attempt %d/%d of %s failed: %s",
                    attempt + 1,
                    1 + max_retries,
                    getattr(fn, "__name__", "call"),
                    exc,
                )
                if attempt >= max_retries:
                    raise RetriesExhaustedError(attempt + 1, exc) from exc
                if delay:
                    await asyncio.sleep(delay)
        raise RuntimeError(f"Call failed after {max_retries + 1} attempts")

    return wrapper


def awith_fallback[**P, R](
    fn: Callable[P, Awaitable[R]],
    handler: Callable[[ExecutionContext], R | Awaitable[R]],
) -> Callable[P, Awaitable[R]]:
    """Async version of :func:`with_fallback`; *handler* may be sync or async."""

    @functools.wraps(fn)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return await fn(*args, **kwargs)
        except Exception as exc:
            logger.warning("Falling back after failure: %s", exc)
            context = ExecutionContext(
                failure=_unwrap(exc), attempts=_attempts_of(exc), args=args, kwargs=kwargs
            )
            result = handler(context)
            if inspect.isawaitable(result):
                return await result
            return result

    return wrapper


def afault_tolerant[**P, R](
    fn: Callable[P, Awaitable[R]],
    options: FaultToleranceOptions | None = None,
    *,
    fallback: Callable[[ExecutionContext], R | Awaitable[R]] | None = None,
) -> Callable[P, Awaitable[R]]:
    opts = options or FaultToleranceOptions()
    call = awith_retry(
        awith_timeout(fn, opts.timeout),
        max_retries=opts.max_retries,
        delay=opts.delay,
        retry_on=opts.retry_on,
        abort_on=opts.abort_on,
    )
    if fallback is not None:
        call = awith_fallback(call, fallback)
    return call


__all__ = [
    "ExecutionContext",
    "FallbackHandler",
    "FaultToleranceOptions",
    "RetriesExhaustedError",
    "ServiceTimeoutError",
    "afault_tolerant",
    "awith_fallback",
    "awith_retry",
    "awith_timeout",
    "fault_tolerant",
    "static_fallback",
    "with_fallback",
    "with_retry",
    "with_timeout",
]
