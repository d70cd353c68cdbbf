from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RegistryEntry:
    patterns: tuple[re.Pattern[str], ...]
    provider: type[Any]
    priority: int

    def matches(self, model_id: str) -> bool:
        return any(p.search(model_id) for p in self.patterns)


@dataclass(slots=True)
class ProviderRegistry:
    """Provider classes keyed by model-id patterns, highest priority first."""

    entries: list[RegistryEntry] = field(default_factory=list)

    def add(self, provider: type[Any], patterns: Iterable[str], priority: int = 0) -> None:
        entry = RegistryEntry(tuple(re.compile(p) for p in patterns), provider, priority)
        # Stable: equal priorities keep registration order.
        index = next(
            (i for i, e in enumerate(self.entries) if e.priority < priority), len(self.entries)
        )
        self.entries.insert(index, entry)

    def for_model(self, model_id: str) -> type[Any]:
        for entry in self.entries:
            if entry.matches(model_id):
                logger.debug("Model %s handled by %s", model_id, entry.provider.__name__)
                return entry.provider
        raise ValueError(f"No provider registered for model_id={model_id!r}")

    def by_name(self, name: str) -> type[Any]:
        """Exact (case-insensitive) class names win over substrings, so
        ``"static"`` finds ``StaticProvider``."""
        wanted = name.lower()
        names = [(entry.provider.__name__.lower(), entry.provider) for entry in self.entries]
        for class_name, provider in names:
            if class_name == wanted:
                return provider
        for class_name, provider in names:
            if wanted in class_name:
                return provider
        raise ValueError(f"No provider registered with name={name!r}")


_REGISTRY = ProviderRegistry()


def register(*patterns: str, priority: int = 0) -> Callable[[type[Any]], type[Any]]:
    """Class decorator routing model ids that match any of *patterns*."""

    def decorator(cls: type[Any]) -> type[Any]:
        _REGISTRY.add(cls, patterns, priority)
        return cls

    return decorator


def registered_providers() -> list[type[Any]]:
    return [entry.provider for entry in _REGISTRY.entries]


def resolve(model_id: str) -> type[Any]:
    return _REGISTRY.for_model(model_id)


def resolve_provider(name: str) -> type[Any]:
    return _REGISTRY.by_name(name)
