"""Recover a single number from free-form model output.

Models asked for "just a number" frequently answer with a sentence instead
(``"The answer is 42."``).  :func:`sanitize` uses a two-tier strategy:

1. parse the whole text with :func:`float`;
2. otherwise take the right-most run of digits and ``.`` characters and parse
   that.

Signs are not part of the scanned character class, so ``"maybe -10"``
recovers ``10``.  A run with several dots (``"1.2.3"``) is not repaired.

The function is total: it never raises for string input and reports the only
error condition as a :class:`~guardwire.types.Failure` value.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from .types import Failure, SanitizeResult, Stage, Success

logger = logging.getLogger(__name__)


def _parse_float(text: str) -> float | None:
    try:
        return float(text)
    except ValueError:
        return None


def extract_trailing_number(text: str) -> str | None:
    """Return the right-most run of digits and dots that ends in a digit.

    ``None`` when *text* has no decimal digit at all.
    """
    end = len(text) - 1
    while end >= 0 and not text[end].isdecimal():
        end -= 1
    if end < 0:
        return None

    start = end
    while start >= 0 and (text[start].isdecimal() or text[start] == "."):
        start -= 1
    return text[start + 1 : end + 1]


def sanitize(text: str) -> SanitizeResult:
    """Convert model output expected to hold a single number into a result."""
    value = _parse_float(text)
    if value is not None:
        return Success(matched_text=text, value=value, stage=Stage.DIRECT)

    logger.debug("LLM output for expected numeric result: %s", text)

    candidate = extract_trailing_number(text)
    if candidate is not None:
        logger.info("Extracted number: %s", candidate)
        value = _parse_float(candidate)
        if value is not None:
            return Success(matched_text=candidate, value=value, stage=Stage.EXTRACTED)

    logger.debug("Unable to extract a number from LLM response: %s", text)
    return Failure(original_text=text)


@dataclass(frozen=True, slots=True)
class NumericResponseSanitizer:
    """Callable :func:`sanitize` that reports each result to a listener.

    The listener sees every result, so it can count direct, extracted and
    failed conversions.
    """

    listener: Callable[[SanitizeResult], None] | None = None

    def __call__(self, text: str) -> SanitizeResult:
        return self.sanitize(text)

    def sanitize(self, text: str) -> SanitizeResult:
        result = sanitize(text)
        if self.listener is not None:
            self.listener(result)
        return result


__all__ = [
    "NumericResponseSanitizer",
    "extract_trailing_number",
    "sanitize",
]
