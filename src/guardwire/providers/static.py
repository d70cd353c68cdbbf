from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from .registry import register


@register(r"^static$", priority=100)
@dataclass(slots=True)
class StaticProvider:
    """Deterministic provider for local demos/tests.

    Successive calls return ``outputs`` in order; once they run out the last
    output is repeated.  With no outputs every call returns ``""``.
    """

    outputs: Sequence[str]
    model_id: str | None = "static"
    calls: int = 0

    def generate(self, prompt: str, **kwargs: Any) -> str:
        index = self.calls
        self.calls += 1
        if not self.outputs:
            return ""
        return self.outputs[min(index, len(self.outputs) - 1)]

    async def agenerate(self, prompt: str, **kwargs: Any) -> str:
        return self.generate(prompt, **kwargs)
