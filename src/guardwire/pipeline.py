from __future__ import annotations

from collections.abc import Awaitable, Callable

from .resilience import (
    ExecutionContext,
    FallbackHandler,
    FaultToleranceOptions,
    afault_tolerant,
    fault_tolerant,
    static_fallback,
)
from .sanitize import sanitize
from .types import SanitizeResult


def _fallback_handler(fallback: str | FallbackHandler[str] | None) -> FallbackHandler[str] | None:
    if fallback is None or callable(fallback):
        return fallback
    return static_fallback(fallback)


def numeric_pipeline(
    generate: Callable[[str], str],
    *,
    options: FaultToleranceOptions | None = None,
    fallback: str | FallbackHandler[str] | None = None,
) -> Callable[[str], SanitizeResult]:
    """
    Wrap a text generator so that it returns a sanitized number.

    Stages, innermost first: per-attempt timeout, bounded retry with fixed
    delay, fallback text on exhaustion, then :func:`~guardwire.sanitize.sanitize`.
    Without a fallback, exhaustion raises
    :class:`~guardwire.resilience.RetriesExhaustedError`.
    """
    call = fault_tolerant(generate, options, fallback=_fallback_handler(fallback))

    def run(prompt: str) -> SanitizeResult:
        return sanitize(call(prompt))

    return run


def anumeric_pipeline(
    agenerate: Callable[[str], Awaitable[str]],
    *,
    options: FaultToleranceOptions | None = None,
    fallback: str | Callable[[ExecutionContext], str | Awaitable[str]] | None = None,
) -> Callable[[str], Awaitable[SanitizeResult]]:
    """Async version of :func:`numeric_pipeline`."""
    call = afault_tolerant(agenerate, options, fallback=_fallback_handler(fallback))

    async def run(prompt: str) -> SanitizeResult:
        return sanitize(await call(prompt))

    return run


__all__ = ["anumeric_pipeline", "numeric_pipeline"]
