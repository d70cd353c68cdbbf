"""Retrieval augmentation tests.

Covers: similarity scoring, the in-memory store, chunking, ingestion and
prompt augmentation.
"""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from guardwire.retrieval import (
    HashingEmbedder,
    InMemoryEmbeddingStore,
    RetrievalAugmentor,
    cosine_similarity,
    ingest,
    iter_chunks,
    relevance_score,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@dataclass
class KeywordEmbedder:
    """One dimension per keyword; exact and easy to reason about."""

    keywords: tuple[str, ...] = ("cancel", "office", "car")

    def embed(self, text: str) -> list[float]:
        lowered = text.lower()
        return [1.0 if k in lowered else 0.0 for k in self.keywords]


_DOCS = [
    "You can cancel up to 7 days before.",
    "The office opens at 9.",
    "Car rentals are limited to 30 days.",
]

# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


def test_cosine_similarity():
    assert cosine_similarity([1, 0], [1, 0]) == pytest.approx(1.0)
    assert cosine_similarity([1, 0], [0, 1]) == pytest.approx(0.0)
    assert cosine_similarity([1, 0], [-1, 0]) == pytest.approx(-1.0)


def test_relevance_score_maps_to_unit_interval():
    assert relevance_score([1, 0], [1, 0]) == pytest.approx(1.0)
    assert relevance_score([1, 0], [-1, 0]) == pytest.approx(0.0)
    assert relevance_score([0, 0], [1, 0]) == pytest.approx(0.5)


def test_dimension_mismatch():
    with pytest.raises(ValueError, match="dimensions differ"):
        cosine_similarity([1, 0], [1, 0, 0])


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


def test_find_relevant_orders_by_score():
    store = InMemoryEmbeddingStore()
    best = store.add([1.0, 0.0], "best")
    store.add([0.7, 0.7], "middle")
    store.add([-1.0, 0.0], "opposite")

    matches = store.find_relevant([1.0, 0.0], max_results=3)
    assert [m.text for m in matches] == ["best", "middle", "opposite"]
    assert matches[0].embedding_id == best
    assert matches[0].score == pytest.approx(1.0)
    assert matches[0].embedding == (1.0, 0.0)


def test_find_relevant_limits_and_filters():
    store = InMemoryEmbeddingStore()
    store.add_all([[1.0, 0.0], [0.7, 0.7], [-1.0, 0.0]], ["best", "middle", "opposite"])
    assert [m.text for m in store.find_relevant([1.0, 0.0], max_results=1)] == ["best"]
    assert [m.text for m in store.find_relevant([1.0, 0.0], min_score=0.6)] == [
        "best",
        "middle",
    ]


def test_add_all_length_mismatch():
    with pytest.raises(ValueError):
        InMemoryEmbeddingStore().add_all([[1.0]], ["a", "b"])


def test_remove_and_len():
    store = InMemoryEmbeddingStore()
    embedding_id = store.add([1.0])
    assert len(store) == 1
    assert store.remove(embedding_id) is True
    assert store.remove(embedding_id) is False
    assert len(store) == 0
    assert store.find_relevant([1.0]) == []


def test_hashing_embedder_is_deterministic():
    embedder = HashingEmbedder(dim=64)
    text = "Cars can be rented for a maximum of 30 days"
    a, b = embedder.embed(text), embedder.embed(text)
    assert a == b
    assert len(a) == 64
    assert relevance_score(a, b) == pytest.approx(1.0)


def test_hashing_embedder_is_case_insensitive():
    embedder = HashingEmbedder()
    assert embedder.embed("Booking Policy") == embedder.embed("booking policy")


# ---------------------------------------------------------------------------
# Chunking
# ---------------------------------------------------------------------------


def test_chunks_respect_budget_and_sentences():
    text = "First sentence. Second sentence here. Third."
    chunks = list(iter_chunks(text, max_chars=20))
    assert chunks[0].text == "First sentence."
    assert all(len(c.text) <= 20 for c in chunks)
    assert chunks[1].text == "Second sentence here"


def test_chunk_overlap_shifts_start():
    text = "First sentence. Second sentence here. Third."
    chunks = list(iter_chunks(text, max_chars=20, overlap_chars=5))
    assert chunks[0].start == 0
    assert chunks[1].start == 11


def test_no_budget_yields_whole_text():
    (chunk,) = iter_chunks("anything goes", max_chars=None)
    assert (chunk.text, chunk.start, chunk.end) == ("anything goes", 0, 13)


def test_oversized_token_is_its_own_chunk():
    (chunk,) = iter_chunks("a" * 30, max_chars=10)
    assert chunk.text == "a" * 30


def test_blank_text_yields_nothing():
    assert list(iter_chunks("   \n", max_chars=10)) == []


# ---------------------------------------------------------------------------
# Ingestion and augmentation
# ---------------------------------------------------------------------------


def test_ingest_stores_one_chunk_per_short_document():
    store = InMemoryEmbeddingStore()
    ids = ingest(_DOCS, store, KeywordEmbedder())
    assert len(ids) == 3
    assert len(store) == 3


def test_augmentor_appends_relevant_segments():
    store = InMemoryEmbeddingStore()
    embedder = KeywordEmbedder()
    ingest(_DOCS, store, embedder)
    augmentor = RetrievalAugmentor(store, embedder)

    assert augmentor.retrieve("How do I cancel?") == [_DOCS[0]]
    assert augmentor.augment("How do I cancel?") == (
        "How do I cancel?\n\nAnswer using the following information:\n"
        "You can cancel up to 7 days before."
    )


def test_augmentor_leaves_message_alone_when_nothing_matches():
    store = InMemoryEmbeddingStore()
    embedder = KeywordEmbedder()
    ingest(_DOCS, store, embedder)
    augmentor = RetrievalAugmentor(store, embedder)
    assert augmentor.augment("What is the weather?") == "What is the weather?"


def test_augmentor_with_hashing_embedder_finds_identical_text():
    store = InMemoryEmbeddingStore()
    embedder = HashingEmbedder()
    ingest(_DOCS, store, embedder)
    augmentor = RetrievalAugmentor(store, embedder, max_results=1, min_score=0.99)
    assert augmentor.retrieve(_DOCS[2]) == [_DOCS[2]]


def test_overlap_extends_chunks_by_at_most_overlap_chars():
    text = "First sentence. Second sentence here. Third."
    chunks = list(iter_chunks(text, max_chars=20, overlap_chars=5))
    assert all(len(c.text) <= 25 for c in chunks)
    assert len(chunks[1].text) > 20
