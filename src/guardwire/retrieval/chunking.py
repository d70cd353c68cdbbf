from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass

_WORD_OR_PUNCT = re.compile(r"[\w']+|[^\w\s]+", re.UNICODE)
_SENTENCE_END = re.compile(r"[.!?。！？]$")


@dataclass(slots=True)
class Token:
    text: str
    start: int
    end: int
    first_token_after_newline: bool = False


@dataclass(slots=True)
class TextChunk:
    text: str
    start: int
    end: int


def tokenize(text: str) -> list[Token]:
    tokens: list[Token] = []
    previous_end = 0
    for match in _WORD_OR_PUNCT.finditer(text):
        start, end = match.span()
        gap = text[previous_end:start]
        tokens.append(
            Token(
                text=match.group(0),
                start=start,
                end=end,
                first_token_after_newline="\n" in gap or "\r" in gap,
            )
        )
        previous_end = end
    return tokens


def iter_chunks(
    text: str,
    *,
    max_chars: int | None,
    overlap_chars: int = 0,
) -> Iterator[TextChunk]:
    """Split text into chunks of at most ``max_chars``, preferring sentence and
    line boundaries.  Overlap extends a chunk backwards, so with overlap a chunk
    can reach ``max_chars + overlap_chars``; a single oversized token is
    always yielded whole.

    Parameters
    ----------
    overlap_chars:
        When > 0, each chunk except the first starts up to ``overlap_chars``
        characters before where it would otherwise start.
    """
    if max_chars is None or max_chars <= 0:
        yield TextChunk(text=text, start=0, end=len(text))
        return

    tokens = tokenize(text)
    if not tokens:
        if text.strip():
            yield TextChunk(text=text, start=0, end=len(text))
        return

    is_first_chunk = True
    start_idx = 0
    while start_idx < len(tokens):
        start_char = tokens[start_idx].start
        # A single token longer than the budget becomes its own chunk.
        if tokens[start_idx].end - start_char > max_chars:
            end_char = tokens[start_idx].end
            yield TextChunk(text=text[start_char:end_char], start=start_char, end=end_char)
            start_idx += 1
            is_first_chunk = False
            continue

        end_idx = start_idx
        last_break_idx = None
        while end_idx < len(tokens):
            if tokens[end_idx].end - start_char > max_chars:
                break
            if end_idx > start_idx and tokens[end_idx].first_token_after_newline:
                last_break_idx = end_idx
            if _SENTENCE_END.search(tokens[end_idx].text):
                last_break_idx = end_idx + 1
            end_idx += 1

        if last_break_idx is not None and start_idx < last_break_idx <= end_idx:
            end_idx = last_break_idx

        chunk_start = tokens[start_idx].start
        chunk_end = tokens[end_idx - 1].end
        if not is_first_chunk and overlap_chars > 0:
            chunk_start = max(0, chunk_start - overlap_chars)

        yield TextChunk(text=text[chunk_start:chunk_end], start=chunk_start, end=chunk_end)
        start_idx = end_idx
        is_first_chunk = False
