"""pydantic-ai integration for numeric model output.

Lets a pydantic-ai ``Agent`` retry through its own mechanism when a model
answers a numeric question with prose that holds no usable number.  The module
is **import-safe**: importing it always succeeds, but the factories raise a
clear :class:`ImportError` when ``pydantic-ai`` is not installed.

Example::

    from pydantic_ai import Agent
    from guardwire.ai import numeric_output_validator

    agent = Agent("openai:gpt-4o-mini", output_type=str)
    agent.output_validator(numeric_output_validator())
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from .guardrails import NumericOutputGuardrail

try:
    from pydantic_ai.exceptions import ModelRetry  # noqa: F401

    _HAS_PYDANTIC_AI = True
except ImportError:
    _HAS_PYDANTIC_AI = False


def _check_pydantic_ai() -> None:
    """Raise ``ImportError`` if ``pydantic-ai`` is not installed."""
    if not _HAS_PYDANTIC_AI:
        raise ImportError("guardwire.ai requires pydantic-ai. Install with: pip install pydantic-ai")


def _get_model_retry() -> type[Exception]:
    from pydantic_ai.exceptions import ModelRetry as _MR

    return _MR


def numeric_text_output(target: Any = float) -> Callable[[str], Any]:
    """Create a processor ``(text) -> number`` for a pydantic-ai text output.

    On failure it raises ``ModelRetry`` with the guardrail message, which
    pydantic-ai sends back to the model as a retry prompt.

    Parameters
    ----------
    target
        ``float`` (default), ``int``, a constrained type such as
        ``Annotated[float, Field(ge=0)]``, or a ``TypeAdapter``.

    Raises
    ------
    ImportError
        If ``pydantic-ai`` is not installed.
    """
    _check_pydantic_ai()
    guardrail = NumericOutputGuardrail(target, reprompt=None)

    def processor(text: str) -> Any:
        result = guardrail.validate(text)
        if not result.ok:
            raise _get_model_retry()(result.message or "Respond with a single number only.")
        return result.value

    return processor


def numeric_output_validator(target: Any = float) -> Callable[[str], str]:
    """Create an ``Agent.output_validator`` for agents with ``output_type=str``.

    The validated output is the number rendered with :class:`str`, so
    ``"It is 42."`` becomes ``"42.0"`` for a ``float`` target.
    """
    _check_pydantic_ai()
    guardrail = NumericOutputGuardrail(target, reprompt=None)

    def validator(output: str) -> str:
        result = guardrail.validate(output)
        if not result.ok:
            raise _get_model_retry()(result.message or "Respond with a single number only.")
        return str(result.value)

    return validator


__all__ = ["numeric_output_validator", "numeric_text_output"]
