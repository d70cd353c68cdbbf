from __future__ import annotations

import inspect
import os
import warnings
from typing import Any

from .base import ProviderConfig
from .registry import resolve, resolve_provider

_PROVIDER_KEY_VARS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("openai", "gpt"), "OPENAI_API_KEY"),
    (("anthropic", "claude"), "ANTHROPIC_API_KEY"),
    (("gemini",), "GEMINI_API_KEY"),
)


def _kwargs_with_environment_defaults(
    model_id: str | None, kwargs: dict[str, Any]
) -> dict[str, Any]:
    resolved = dict(kwargs)
    if "api_key" not in resolved:
        env_sources: list[tuple[str, str]] = []
        if model_id:
            lowered = model_id.lower()
            for markers, env_var in _PROVIDER_KEY_VARS:
                value = os.getenv(env_var)
                if value and any(marker in lowered for marker in markers):
                    env_sources.append((env_var, value))
        generic = os.getenv("GUARDWIRE_API_KEY")
        if generic:
            env_sources.append(("GUARDWIRE_API_KEY", generic))

        if env_sources:
            resolved["api_key"] = env_sources[0][1]
            if len(env_sources) > 1:
                keys = ", ".join(k for k, _ in env_sources)
                warnings.warn(
                    f"Multiple API keys detected ({keys}); using {env_sources[0][0]}",
                    stacklevel=2,
                )

    if model_id and "ollama" in model_id.lower() and "base_url" not in resolved:
        resolved["base_url"] = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434/v1")

    return resolved


def create_provider(config: ProviderConfig) -> Any:
    if not config.model_id and not config.provider:
        raise ValueError("Either model_id or provider must be specified")

    if config.provider:
        provider_class = resolve_provider(config.provider)
    else:
        provider_class = resolve(config.model_id or "")

    # Environment defaults only go to providers that accept them.
    accepted = inspect.signature(provider_class).parameters
    kwargs = {
        key: value
        for key, value in _kwargs_with_environment_defaults(
            config.model_id, config.provider_kwargs
        ).items()
        if key in accepted or key in config.provider_kwargs
    }
    if config.model_id:
        kwargs["model_id"] = config.model_id

    return provider_class(**kwargs)
