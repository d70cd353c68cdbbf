"""Text generation through pydantic-ai.

Model ids use pydantic-ai's ``provider:model`` form (``openai:gpt-4o-mini``,
``anthropic:claude-sonnet-4``, ``ollama:llama3.2``); bare ``gpt-``, ``claude-``
and ``gemini-`` names are mapped to their vendor.  Install the extra::

    pip install "guardwire[ai]"
"""

from __future__ import annotations

from dataclasses import dataclass, field
from importlib import import_module
from typing import Any

try:
    from pydantic_ai import Agent

    _HAS_PYDANTIC_AI = True
except ImportError:  # pragma: no cover
    _HAS_PYDANTIC_AI = False

from .registry import register

_VENDORS = ("openai", "anthropic", "gemini", "ollama", "vertex", "mistral", "groq", "bedrock")
_BARE_PREFIXES = {"gpt-": "openai", "claude-": "anthropic", "gemini-": "gemini"}

# vendor -> (model module, model class, provider module, provider class, accepts base_url)
_MODEL_CLASSES: dict[str, tuple[str, str, str, str, bool]] = {
    "openai": ("openai", "OpenAIModel", "openai", "OpenAIProvider", True),
    "ollama": ("openai", "OpenAIModel", "openai", "OpenAIProvider", True),
    "anthropic": ("anthropic", "AnthropicModel", "anthropic", "AnthropicProvider", True),
    "gemini": ("google", "GoogleModel", "google", "GoogleProvider", False),
}


def _parse_model_spec(model_spec: str) -> tuple[str, str]:
    """Return ``(vendor, model_name)``; unknown bare names default to openai."""
    vendor, sep, name = model_spec.partition(":")
    if sep:
        return vendor, name
    for prefix, default_vendor in _BARE_PREFIXES.items():
        if model_spec.startswith(prefix):
            return default_vendor, model_spec
    return "openai", model_spec


def _model_with_credentials(model_spec: str, api_key: str | None, base_url: str | None) -> Any:
    """Build a pydantic-ai model object carrying explicit credentials.

    Vendors without an entry in ``_MODEL_CLASSES`` get the plain string and
    pydantic-ai reads their credentials from the environment.
    """
    vendor, name = _parse_model_spec(model_spec)
    entry = _MODEL_CLASSES.get(vendor)
    if entry is None:
        return model_spec
    model_module, model_cls, provider_module, provider_cls, takes_base_url = entry

    kwargs: dict[str, Any] = {}
    if api_key:
        kwargs["api_key"] = api_key
    if base_url and takes_base_url:
        kwargs["base_url"] = base_url

    try:
        model_type = getattr(import_module(f"pydantic_ai.models.{model_module}"), model_cls)
        provider_type = getattr(
            import_module(f"pydantic_ai.providers.{provider_module}"), provider_cls
        )
    except (ImportError, AttributeError):
        # The vendor SDK is not installed.
        return model_spec
    return model_type(name, provider=provider_type(**kwargs))


@register(rf"^({'|'.join(_VENDORS)}):", *(rf"^{p}" for p in _BARE_PREFIXES), priority=10)
@dataclass(slots=True)
class PydanticAIProvider:
    """Text generator that delegates to a pydantic-ai ``Agent``.

    The agent asks for raw text (``output_type=str``); numeric validation
    happens downstream in guardwire's output guardrails.
    """

    model_id: str | None = None
    api_key: str | None = None
    base_url: str | None = None
    instructions: str | None = None
    _agent: Any = field(default=None, repr=False, init=False)

    def __post_init__(self) -> None:
        if not _HAS_PYDANTIC_AI:
            raise ImportError(
                "pydantic-ai is required for this model. Install with: pip install 'guardwire[ai]'"
            )
        model_spec = self.model_id or "openai:gpt-4o-mini"
        model: Any = model_spec
        if self.api_key or self.base_url:
            model = _model_with_credentials(model_spec, self.api_key, self.base_url)
        self._agent = Agent(model, output_type=str, instructions=self.instructions)

    def generate(self, prompt: str, **kwargs: Any) -> str:
        return self._agent.run_sync(prompt, **kwargs).output

    async def agenerate(self, prompt: str, **kwargs: Any) -> str:
        return (await self._agent.run(prompt, **kwargs)).output
