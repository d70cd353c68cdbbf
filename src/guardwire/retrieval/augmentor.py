from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from .chunking import iter_chunks
from .store import Embedder, EmbeddingStore

logger = logging.getLogger(__name__)

_CONTEXT_HEADER = "\n\nAnswer using the following information:\n"


def ingest(
    texts: Iterable[str],
    store: EmbeddingStore,
    embedder: Embedder,
    *,
    max_chars: int | None = 500,
    overlap_chars: int = 0,
) -> list[str]:
    """Chunk, embed and store documents. Returns the ids of the stored chunks."""
    ids: list[str] = []
    for text in texts:
        for chunk in iter_chunks(text, max_chars=max_chars, overlap_chars=overlap_chars):
            ids.append(store.add(embedder.embed(chunk.text), chunk.text))
    logger.debug("Ingested %d chunks", len(ids))
    return ids


@dataclass(slots=True)
class RetrievalAugmentor:
    """Append the most relevant stored text segments to a user message."""

    store: EmbeddingStore
    embedder: Embedder
    max_results: int = 3
    min_score: float = 0.6

    def retrieve(self, query: str) -> list[str]:
        matches = self.store.find_relevant(
            self.embedder.embed(query), max_results=self.max_results, min_score=self.min_score
        )
        return [m.text for m in matches if m.text]

    def augment(self, user_message: str) -> str:
        contents = self.retrieve(user_message)
        if not contents:
            return user_message
        logger.debug("Augmenting message with %d retrieved segments", len(contents))
        return user_message + _CONTEXT_HEADER + "\n\n".join(contents)
