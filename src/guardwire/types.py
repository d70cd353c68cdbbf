from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal


class Stage(str, Enum):
    DIRECT = "direct"
    EXTRACTED = "extracted"


@dataclass(frozen=True, slots=True)
class Success:
    """A number recovered from model output.

    ``matched_text`` is the exact substring that was parsed: the whole input
    for the direct stage, the trailing digit run for the extraction stage.
    """

    matched_text: str
    value: float
    stage: Stage = Stage.DIRECT

    @property
    def ok(self) -> Literal[True]:
        return True


@dataclass(frozen=True, slots=True)
class Failure:
    """No number could be recovered from ``original_text``."""

    original_text: str

    @property
    def ok(self) -> Literal[False]:
        return False

    @property
    def reason(self) -> str:
        return "no_number_found"


type SanitizeResult = Success | Failure
