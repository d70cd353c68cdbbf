from __future__ import annotations

import hashlib
import math
import re
import threading
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol

type Embedding = Sequence[float]


@dataclass(frozen=True, slots=True)
class EmbeddingMatch:
    score: float
    embedding_id: str
    embedding: tuple[float, ...]
    text: str | None


class Embedder(Protocol):
    def embed(self, text: str) -> list[float]: ...


class EmbeddingStore(Protocol):
    def add(self, embedding: Embedding, text: str | None = None) -> str: ...

    def find_relevant(
        self, query: Embedding, max_results: int = 4, min_score: float = 0.0
    ) -> list[EmbeddingMatch]: ...


def cosine_similarity(a: Embedding, b: Embedding) -> float:
    if len(a) != len(b):
        raise ValueError(f"Embedding dimensions differ: {len(a)} != {len(b)}")
    dot = sum(x * y for x, y in zip(a, b, strict=True))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


def relevance_score(a: Embedding, b: Embedding) -> float:
    """Cosine similarity mapped from ``[-1, 1]`` onto ``[0, 1]``."""
    return (cosine_similarity(a, b) + 1) / 2


@dataclass(slots=True)
class InMemoryEmbeddingStore:
    """Brute-force similarity store held in process memory."""

    _entries: dict[str, tuple[tuple[float, ...], str | None]] = field(
        default_factory=dict, repr=False
    )
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def add(self, embedding: Embedding, text: str | None = None) -> str:
        embedding_id = uuid.uuid4().hex
        with self._lock:
            self._entries[embedding_id] = (tuple(float(x) for x in embedding), text)
        return embedding_id

    def add_all(
        self, embeddings: Sequence[Embedding], texts: Sequence[str | None] | None = None
    ) -> list[str]:
        if texts is not None and len(texts) != len(embeddings):
            raise ValueError("embeddings and texts must have the same length")
        texts = texts if texts is not None else [None] * len(embeddings)
        return [self.add(embedding, text) for embedding, text in zip(embeddings, texts)]

    def remove(self, embedding_id: str) -> bool:
        with self._lock:
            return self._entries.pop(embedding_id, None) is not None

    def find_relevant(
        self, query: Embedding, max_results: int = 4, min_score: float = 0.0
    ) -> list[EmbeddingMatch]:
        with self._lock:
            entries = list(self._entries.items())
        matches: list[EmbeddingMatch] = []
        for embedding_id, (embedding, text) in entries:
            score = relevance_score(query, embedding)
            if score >= min_score:
                matches.append(
                    EmbeddingMatch(
                        score=score, embedding_id=embedding_id, embedding=embedding, text=text
                    )
                )
        matches.sort(key=lambda m: m.score, reverse=True)
        return matches[: max(0, max_results)]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


_WORD = re.compile(r"\w+", re.UNICODE)


@dataclass(frozen=True, slots=True)
class HashingEmbedder:
    """Deterministic bag-of-words embedder using the hashing trick.

    Good enough for keyword-level retrieval in demos and tests without
    downloading an embedding model.
    """

    dim: int = 256

    def embed(self, text: str) -> list[float]:
        vector = [0.0] * self.dim
        for word in _WORD.findall(text.lower()):
            digest = hashlib.blake2b(word.encode("utf-8"), digest_size=8).digest()
            bucket = int.from_bytes(digest[:4], "little") % self.dim
            sign = 1.0 if digest[4] & 1 else -1.0
            vector[bucket] += sign
        return vector

