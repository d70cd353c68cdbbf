"""Validation steps applied around a language-model call.

Input guardrails see the user message before it reaches the model; output
guardrails see the raw model text and either accept it (possibly converting
it to a typed value) or reject it.  A rejection may carry a *reprompt*, a
follow-up message asking the model to correct itself.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from pydantic import TypeAdapter, ValidationError

from .sanitize import sanitize
from .types import Failure

_DEFAULT_NUMERIC_REPROMPT = (
    "Your previous answer was not a number. Respond with a single number only, "
    "without units or explanation."
)

# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class GuardrailResult[T]:
    ok: bool
    value: T | None = None
    message: str | None = None
    reprompt: str | None = None
    fatal: bool = False

    @classmethod
    def success(cls, value: T) -> GuardrailResult[T]:
        return cls(ok=True, value=value)

    @classmethod
    def failure(
        cls, message: str, *, reprompt: str | None = None, fatal: bool = False
    ) -> GuardrailResult[T]:
        return cls(ok=False, message=message, reprompt=reprompt, fatal=fatal)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class GuardrailError(Exception):
    """Base exception for rejected model exchanges."""

    def __init__(self, message: str, result: GuardrailResult[Any] | None = None) -> None:
        super().__init__(message)
        self.result = result


class InputGuardrailError(GuardrailError):
    """Raised when an input guardrail rejects the user message."""


class OutputGuardrailError(GuardrailError):
    """Raised when the model output is rejected after all reprompts."""


class FatalGuardrailError(OutputGuardrailError):
    """Output rejection that must not be retried."""


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


class InputGuardrail(Protocol):
    def validate(self, user_message: str) -> GuardrailResult[str]: ...


class OutputGuardrail[T](Protocol):
    def validate(self, text: str) -> GuardrailResult[T]: ...


def run_input_guardrails(user_message: str, guardrails: Sequence[InputGuardrail]) -> str:
    """Apply input guardrails in order, threading any rewritten message through."""
    message = user_message
    for guardrail in guardrails:
        result = guardrail.validate(message)
        if not result.ok:
            raise InputGuardrailError(
                result.message or f"{type(guardrail).__name__} rejected the input", result
            )
        if result.value is not None:
            message = result.value
    return message


def output_guardrail_error(result: GuardrailResult[Any]) -> OutputGuardrailError:
    message = result.message or "Output guardrail rejected the model response"
    if result.fatal:
        return FatalGuardrailError(message, result)
    return OutputGuardrailError(message, result)


# ---------------------------------------------------------------------------
# Numeric output guardrail
# ---------------------------------------------------------------------------


def _target_name(target: Any) -> str:
    if isinstance(target, TypeAdapter):
        return "number"
    return getattr(target, "__name__", None) or repr(target)


@dataclass(slots=True)
class NumericOutputGuardrail[T]:
    """Accept model output that holds a single number.

    The text goes through :func:`~guardwire.sanitize.sanitize`; the recovered
    float is then validated against *target*, so ``int`` rejects ``2.5`` and
    ``Annotated[float, Field(ge=0)]`` rejects negative values.
    """

    target: Any = float
    reprompt: str | None = _DEFAULT_NUMERIC_REPROMPT
    _adapter: TypeAdapter[T] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._adapter = (
            self.target if isinstance(self.target, TypeAdapter) else TypeAdapter(self.target)
        )

    def validate(self, text: str) -> GuardrailResult[T]:
        result = sanitize(text)
        if isinstance(result, Failure):
            return GuardrailResult.failure(
                f"Unable to extract a number from LLM response: {text}",
                reprompt=self.reprompt,
            )
        try:
            value = self._adapter.validate_python(result.value)
        except ValidationError as exc:
            detail = exc.errors()[0].get("msg", str(exc)) if exc.errors() else str(exc)
            return GuardrailResult.failure(
                f"Extracted number {result.matched_text!r} is not a valid "
                f"{_target_name(self.target)}: {detail}",
                reprompt=self.reprompt,
            )
        return GuardrailResult.success(value)


__all__ = [
    "FatalGuardrailError",
    "GuardrailError",
    "GuardrailResult",
    "InputGuardrail",
    "InputGuardrailError",
    "NumericOutputGuardrail",
    "OutputGuardrail",
    "OutputGuardrailError",
    "output_guardrail_error",
    "run_input_guardrails",
]
