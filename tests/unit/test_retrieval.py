"""Unit tests for the retrieval layer — models, flat store, and MemoryRetriever."""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any

import numpy as np
import pytest

from liam_relay.retrieval.base import VectorStoreBase
from liam_relay.retrieval.flat_store import (
    FlatFileVectorStore,
    MissingIndexError,
    cosine_scores,
    cosine_similarity,
)
from liam_relay.retrieval.models import MemoryRecord, RecallHit
from liam_relay.retrieval.retriever import MemoryRetriever


# ── Fake vector store for deterministic testing ─────────────────────────


class FakeVectorStore(VectorStoreBase):
    """In-memory fake that returns canned results."""

    def __init__(self, hits: list[dict[str, Any]] | None = None) -> None:
        super().__init__("test-store")
        self._hits: list[dict[str, Any]] = hits or []
        self.last_embedding: list[float] | None = None
        self.added: list[MemoryRecord] = []

    def add(self, records: list[MemoryRecord]) -> int:
        self.added.extend(records)
        return len(records)

    def similarity_search(self, query_embedding: list[float], *, k: int = 5) -> list[dict[str, Any]]:
        self.last_embedding = query_embedding
        return self._hits[:k]

    def count(self) -> int:
        return len(self.added)


SAMPLE_HITS: list[dict[str, Any]] = [
    {"content": "We agreed to launch in May.", "score": 0.92, "metadata": {"source": "notes.md", "chunk_index": 3}},
    {"content": "Budget review is on Friday.", "score": 0.87, "metadata": {"source": "cal.txt", "chunk_index": 0}},
    {"content": "Lunch was pizza.", "score": 0.12, "metadata": {}},
]


@pytest.fixture()
def fake_store() -> FakeVectorStore:
    return FakeVectorStore(hits=SAMPLE_HITS)


@pytest.fixture()
def retriever(fake_store: FakeVectorStore, embedder) -> MemoryRetriever:
    return MemoryRetriever(fake_store, embedder=embedder, default_k=5)


# ── cosine_similarity ──────────────────────────────────────────────────


class TestCosineSimilarity:
    def test_identical_vectors_score_one(self) -> None:
        assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == pytest.approx(1.0)

    def test_orthogonal_vectors_score_zero(self) -> None:
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)

    def test_opposite_vectors_score_minus_one(self) -> None:
        assert cosine_similarity([1.0, 1.0], [-1.0, -1.0]) == pytest.approx(-1.0)

    def test_zero_norm_scores_zero(self) -> None:
        assert cosine_similarity([0.0, 0.0], [1.0, 2.0]) == 0.0

    def test_dimension_mismatch_raises(self) -> None:
        with pytest.raises(ValueError, match="Dimension mismatch"):
            cosine_similarity([1.0], [1.0, 2.0])

    def test_scores_against_matrix_rows(self) -> None:
        matrix = np.asarray([[1.0, 0.0], [0.0, 0.0], [1.0, 1.0]], dtype=np.float32)
        scores = cosine_scores(np.asarray([2.0, 0.0], dtype=np.float32), matrix)
        assert scores.tolist() == pytest.approx([1.0, 0.0, 2**-0.5])

    def test_zero_query_scores_every_row_zero(self) -> None:
        matrix = np.asarray([[1.0, 0.0], [0.0, 1.0]], dtype=np.float32)
        scores = cosine_scores(np.zeros(2, dtype=np.float32), matrix)
        assert scores.tolist() == [0.0, 0.0]


# ── RecallHit ──────────────────────────────────────────────────────────


class TestRecallHit:
    def test_short_ref_with_chunk(self) -> None:
        hit = RecallHit(score=0.5, text="x", metadata={"source": "notes.md", "chunk_index": 2})
        assert hit.short_ref() == "[notes.md§2]"

    def test_short_ref_without_metadata(self) -> None:
        assert RecallHit(score=0.5, text="x").short_ref() == "[unknown§?]"

    def test_str_includes_ref_and_text(self) -> None:
        hit = RecallHit(score=0.5, text="launch plan", metadata={"source": "a.md", "chunk_index": 0})
        assert "[a.md§0]" in str(hit)
        assert "launch plan" in str(hit)


# ── FlatFileVectorStore ────────────────────────────────────────────────


class TestFlatFileVectorStore:
    def _store(self, tmp_path: Path) -> FlatFileVectorStore:
        return FlatFileVectorStore(tmp_path / "index.json")

    def test_search_before_any_add_raises(self, tmp_path: Path) -> None:
        with pytest.raises(MissingIndexError):
            self._store(tmp_path).similarity_search([1.0, 0.0])

    def test_missing_index_is_a_file_not_found(self) -> None:
        assert issubclass(MissingIndexError, FileNotFoundError)

    def test_add_persists_embedding_and_content(self, tmp_path: Path) -> None:
        store = self._store(tmp_path)
        written = store.add([MemoryRecord(embedding=[1.0, 0.0], content="alpha")])
        assert written == 1
        raw = json.loads(store.path.read_text(encoding="utf-8"))
        assert raw == [{"embedding": [1.0, 0.0], "content": "alpha", "metadata": {}}]

    def test_add_appends_across_calls(self, tmp_path: Path) -> None:
        store = self._store(tmp_path)
        store.add([MemoryRecord(embedding=[1.0, 0.0], content="a")])
        store.add([MemoryRecord(embedding=[0.0, 1.0], content="b")])
        assert store.count() == 2

    def test_add_empty_is_noop(self, tmp_path: Path) -> None:
        store = self._store(tmp_path)
        assert store.add([]) == 0
        assert not store.path.exists()

    def test_results_sorted_descending_and_limited(self, tmp_path: Path) -> None:
        store = self._store(tmp_path)
        store.add(
            [
                MemoryRecord(embedding=[0.0, 1.0], content="far"),
                MemoryRecord(embedding=[1.0, 0.0], content="exact"),
                MemoryRecord(embedding=[1.0, 1.0], content="close"),
            ]
        )
        hits = store.similarity_search([1.0, 0.0], k=2)
        assert [h["content"] for h in hits] == ["exact", "close"]
        assert hits[0]["score"] >= hits[1]["score"]

    def test_k_larger_than_store_returns_everything(self, tmp_path: Path) -> None:
        store = self._store(tmp_path)
        store.add([MemoryRecord(embedding=[1.0, 0.0], content="only")])
        assert len(store.similarity_search([1.0, 0.0], k=10)) == 1

    def test_mismatched_dimensions_are_skipped(self, tmp_path: Path) -> None:
        store = self._store(tmp_path)
        store.add(
            [
                MemoryRecord(embedding=[1.0, 0.0, 0.0], content="old model"),
                MemoryRecord(embedding=[1.0, 0.0], content="current"),
            ]
        )
        hits = store.similarity_search([1.0, 0.0], k=5)
        assert [h["content"] for h in hits] == ["current"]

    def test_health_check_tracks_file(self, tmp_path: Path) -> None:
        store = self._store(tmp_path)
        assert store.health_check() is False
        store.add([MemoryRecord(embedding=[1.0], content="x")])
        assert store.health_check() is True

    def test_count_of_absent_store_is_zero(self, tmp_path: Path) -> None:
        assert self._store(tmp_path).count() == 0

    def test_concurrent_adds_keep_every_record(self, tmp_path: Path) -> None:
        path = tmp_path / "index.json"
        start = threading.Barrier(8)

        def writer(i: int) -> None:
            store = FlatFileVectorStore(path)
            start.wait()
            store.add([MemoryRecord(embedding=[float(i), 1.0], content=f"fragment {i}")])

        threads = [threading.Thread(target=writer, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        contents = {r.content for r in FlatFileVectorStore(path).load()}
        assert contents == {f"fragment {i}" for i in range(8)}


# ── MemoryRetriever ────────────────────────────────────────────────────


class TestMemoryRetriever:
    def test_recall_returns_hits(self, retriever: MemoryRetriever) -> None:
        hits = retriever.recall("When do we launch?")
        assert len(hits) == 3
        assert all(isinstance(h, RecallHit) for h in hits)
        assert hits[0].text == "We agreed to launch in May."
        assert hits[0].score == 0.92

    def test_query_is_embedded(self, retriever: MemoryRetriever, fake_store: FakeVectorStore, embedder) -> None:
        retriever.recall("launch")
        assert fake_store.last_embedding == embedder.embed_query("launch")

    def test_k_limits_results(self, fake_store: FakeVectorStore, embedder) -> None:
        retriever = MemoryRetriever(fake_store, embedder=embedder, default_k=2)
        assert len(retriever.recall("anything")) == 2

    def test_explicit_k_overrides_default(self, retriever: MemoryRetriever) -> None:
        assert len(retriever.recall("anything", k=1)) == 1

    @pytest.mark.parametrize("k", [0, -3])
    def test_non_positive_k_rejected(self, retriever: MemoryRetriever, k: int) -> None:
        with pytest.raises(ValueError, match="positive"):
            retriever.recall("anything", k=k)

    def test_blank_query_rejected(self, retriever: MemoryRetriever) -> None:
        with pytest.raises(ValueError, match="empty"):
            retriever.recall("   ")

    def test_empty_store_returns_empty(self, embedder) -> None:
        retriever = MemoryRetriever(FakeVectorStore(hits=[]), embedder=embedder)
        assert retriever.recall("anything") == []

    def test_missing_index_propagates(self, tmp_path: Path, embedder) -> None:
        retriever = MemoryRetriever(FlatFileVectorStore(tmp_path / "none.json"), embedder=embedder)
        with pytest.raises(MissingIndexError):
            retriever.recall("anything")

    def test_end_to_end_with_flat_store(self, tmp_path: Path, embedder) -> None:
        store = FlatFileVectorStore(tmp_path / "index.json")
        texts = ["the launch is in May", "pizza for lunch", "quarterly budget"]
        store.add(
            [MemoryRecord(embedding=v, content=t) for t, v in zip(texts, embedder.embed_documents(texts))]
        )
        hits = MemoryRetriever(store, embedder=embedder).recall("pizza for lunch", k=1)
        assert hits[0].text == "pizza for lunch"
        assert hits[0].score == pytest.approx(1.0)
