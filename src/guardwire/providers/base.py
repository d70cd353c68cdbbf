from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol


class TextGenerator(Protocol):
    """Opaque text-generation call: one prompt in, one completion out."""

    model_id: str | None

    def generate(self, prompt: str, **kwargs: Any) -> str: ...

    async def agenerate(self, prompt: str, **kwargs: Any) -> str: ...


@dataclass(slots=True)
class ProviderConfig:
    model_id: str | None = None
    provider: str | None = None
    provider_kwargs: dict[str, Any] = field(default_factory=dict)
