from .augmentor import RetrievalAugmentor, ingest
from .chunking import TextChunk, iter_chunks
from .store import (
    Embedder,
    EmbeddingMatch,
    EmbeddingStore,
    HashingEmbedder,
    InMemoryEmbeddingStore,
    cosine_similarity,
    relevance_score,
)

__all__ = [
    "Embedder",
    "EmbeddingMatch",
    "EmbeddingStore",
    "HashingEmbedder",
    "InMemoryEmbeddingStore",
    "RetrievalAugmentor",
    "TextChunk",
    "cosine_similarity",
    "ingest",
    "iter_chunks",
    "relevance_score",
]
