"""Explicit composition of an AI service.

An :class:`AiService` wires a text generator together with the stages that a
declarative framework would attach through annotations::

    user message
      -> input guardrails
      -> retrieval augmentation
      -> [timeout -> generate -> output guardrail (+ reprompts)]  x retries
      -> fallback on exhaustion

Conversation state is never resolved implicitly: callers pass a
:class:`~guardwire.memory.ChatSession` into each call.

Example::

    from guardwire import AiService, NumericOutputGuardrail, StaticProvider

    service = AiService(
        generator=StaticProvider(["The total is 42."]),
        system_message="You are a pricing assistant. Today is {current_date}.",
        output_guardrail=NumericOutputGuardrail(float),
    )
    service.chat("How much is it?")  # 42.0
"""

from __future__ import annotations

import asyncio
import datetime as dt
import logging
import os
import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from .guardrails import (
    FatalGuardrailError,
    InputGuardrail,
    OutputGuardrail,
    output_guardrail_error,
    run_input_guardrails,
)
from .memory import ChatMessage, ChatSession, Role, render_transcript
from .providers.base import TextGenerator
from .resilience import (
    ExecutionContext,
    FallbackHandler,
    FaultToleranceOptions,
    afault_tolerant,
    fault_tolerant,
    static_fallback,
)
from .retrieval.augmentor import RetrievalAugmentor

logger = logging.getLogger(__name__)

_DEFAULT_MODEL = "openai:gpt-4o-mini"

DEFAULT_FALLBACK_RESPONSE = (
    "Failed to get a response from the AI Model. "
    "Are you sure it's up and running, and configured correctly?"
)


_PLACEHOLDER = re.compile(r"\{(\w+)\}")


def render_system_message(
    template: str, variables: Mapping[str, Any] | None = None, *, today: dt.date | None = None
) -> str:
    """Fill ``{name}`` placeholders; ``{current_date}`` defaults to today.

    Unknown placeholders and any other braces, such as a JSON example, are
    left untouched.
    """
    values: dict[str, Any] = {"current_date": (today or dt.date.today()).isoformat()}
    values.update(variables or {})

    def substitute(match: re.Match[str]) -> str:
        name = match.group(1)
        return str(values[name]) if name in values else match.group(0)

    return _PLACEHOLDER.sub(substitute, template)


@dataclass(slots=True)
class _Answer:
    value: Any
    raw_text: str
    from_fallback: bool = False


@dataclass(slots=True)
class AiService:
    """
    A language-model call with guardrails, retrieval and fault tolerance.

    ``chat`` returns the output guardrail's value, or the raw text when no
    output guardrail is configured.  When every attempt fails, the fallback
    result is returned instead; with ``fallback=None`` a
    :class:`~guardwire.resilience.RetriesExhaustedError` propagates.
    """

    generator: TextGenerator
    system_message: str | None = None
    input_guardrails: Sequence[InputGuardrail] = ()
    output_guardrail: OutputGuardrail[Any] | None = None
    retriever: RetrievalAugmentor | None = None
    fault_tolerance: FaultToleranceOptions = field(default_factory=FaultToleranceOptions)
    fallback: FallbackHandler[Any] | None = field(
        default_factory=lambda: static_fallback(DEFAULT_FALLBACK_RESPONSE)
    )
    max_reprompts: int = 3
    clock: Callable[[], dt.date] = dt.date.today

    # -- preparation --------------------------------------------------------

    def _options(self) -> FaultToleranceOptions:
        # Fatal guardrail failures are not worth another attempt.
        opts = self.fault_tolerance
        return FaultToleranceOptions(
            timeout=opts.timeout,
            max_retries=opts.max_retries,
            delay=opts.delay,
            retry_on=opts.retry_on,
            abort_on=tuple(opts.abort_on) + (FatalGuardrailError,),
        )

    def _prepare(
        self, user_message: str, session: ChatSession, variables: Mapping[str, Any] | None
    ) -> list[ChatMessage]:
        message = run_input_guardrails(user_message, self.input_guardrails)
        if self.retriever is not None:
            message = self.retriever.augment(message)
        history = session.messages
        if self.system_message is not None:
            # The session only sees the system message once an answer is accepted.
            system = ChatMessage(
                Role.SYSTEM,
                render_system_message(self.system_message, variables, today=self.clock()),
            )
            history = [system] + [m for m in history if m.role is not Role.SYSTEM]
        return history + [ChatMessage(Role.USER, message)]

    def _check(self, messages: list[ChatMessage], text: str, reprompts: int) -> _Answer | None:
        """Validate one model answer.

        Returns the answer, ``None`` when the model should be reprompted (the
        reprompt is appended to *messages*), or raises.
        """
        if self.output_guardrail is None:
            return _Answer(value=text, raw_text=text)
        result = self.output_guardrail.validate(text)
        if result.ok:
            return _Answer(value=result.value, raw_text=text)
        if result.reprompt and not result.fatal and reprompts < self.max_reprompts:
            logger.info("Output guardrail rejected response, reprompting: %s", result.message)
            messages.append(ChatMessage(Role.ASSISTANT, text))
            messages.append(ChatMessage(Role.USER, result.reprompt))
            return None
        raise output_guardrail_error(result)

    def _commit(self, session: ChatSession, messages: list[ChatMessage], answer: _Answer) -> None:
        # Only the system message, the user turn and the accepted answer are remembered.
        if messages[0].role is Role.SYSTEM:
            session.set_system_message(messages[0].content)
        session.add(messages[-1])
        session.add_assistant(answer.raw_text)

    # -- sync ---------------------------------------------------------------

    def _attempt(self, messages: list[ChatMessage]) -> _Answer:
        conversation = list(messages)
        reprompts = 0
        while True:
            text = self.generator.generate(render_transcript(conversation))
            answer = self._check(conversation, text, reprompts)
            if answer is not None:
                return answer
            reprompts += 1

    def chat(
        self,
        user_message: str,
        *,
        session: ChatSession | None = None,
        variables: Mapping[str, Any] | None = None,
    ) -> Any:
        session = session if session is not None else ChatSession()
        messages = self._prepare(user_message, session, variables)

        def fallback(context: ExecutionContext) -> _Answer:
            return _Answer(value=self.fallback(context), raw_text="", from_fallback=True)

        call = fault_tolerant(
            self._attempt,
            self._options(),
            fallback=fallback if self.fallback is not None else None,
        )
        answer = call(messages)
        if not answer.from_fallback:
            self._commit(session, messages, answer)
        return answer.value

    # -- async --------------------------------------------------------------

    async def _aattempt(self, messages: list[ChatMessage]) -> _Answer:
        conversation = list(messages)
        reprompts = 0
        while True:
            prompt = render_transcript(conversation)
            if hasattr(self.generator, "agenerate"):
                text = await self.generator.agenerate(prompt)
            else:
                text = await asyncio.to_thread(self.generator.generate, prompt)
            answer = self._check(conversation, text, reprompts)
            if answer is not None:
                return answer
            reprompts += 1

    async def achat(
        self,
        user_message: str,
        *,
        session: ChatSession | None = None,
        variables: Mapping[str, Any] | None = None,
    ) -> Any:
        """Async version of :meth:`chat`."""
        session = session if session is not None else ChatSession()
        messages = self._prepare(user_message, session, variables)

        def fallback(context: ExecutionContext) -> _Answer:
            return _Answer(value=self.fallback(context), raw_text="", from_fallback=True)

        call = afault_tolerant(
            self._aattempt,
            self._options(),
            fallback=fallback if self.fallback is not None else None,
        )
        answer = await call(messages)
        if not answer.from_fallback:
            self._commit(session, messages, answer)
        return answer.value


def _resolve_model(model: str | Any | None) -> str | Any:
    if model is not None:
        return model
    return os.environ.get("GUARDWIRE_MODEL", _DEFAULT_MODEL)


def create_service(
    model: str | Any | None = None,
    *,
    provider_kwargs: dict[str, Any] | None = None,
    **service_kwargs: Any,
) -> AiService:
    """Build an :class:`AiService` from a model string or a provider instance."""
    resolved = _resolve_model(model)
    if isinstance(resolved, str):
        from .providers.base import ProviderConfig
        from .providers.factory import create_provider

        generator = create_provider(
            ProviderConfig(model_id=resolved, provider_kwargs=provider_kwargs or {})
        )
    else:
        generator = resolved
    return AiService(generator=generator, **service_kwargs)


__all__ = [
    "DEFAULT_FALLBACK_RESPONSE",
    "AiService",
    "create_service",
    "render_system_message",
]
