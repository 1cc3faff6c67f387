"""Flat-file implementation of the vector-store abstraction.

Every record lives in a single JSON array of ``{embedding, content,
metadata}`` objects.  Queries load the whole array into a matrix and score
every row against the query with cosine similarity, a linear scan with no
index structure.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import numpy as np

from liam_relay.config import settings
from liam_relay.retrieval.base import VectorStoreBase
from liam_relay.retrieval.models import MemoryRecord
from liam_relay.storage import path_lock, read_json, write_json

logger = logging.getLogger(__name__)


class MissingIndexError(FileNotFoundError):
    """Raised when a query is issued before any memory has been indexed."""


def cosine_similarity(a: list[float] | np.ndarray, b: list[float] | np.ndarray) -> float:
    """Cosine of the angle between *a* and *b*; 0.0 when either has zero norm."""
    a = np.asarray(a, dtype=np.float32)
    b = np.asarray(b, dtype=np.float32)
    if a.shape != b.shape:
        raise ValueError(f"Dimension mismatch: {a.shape[0]} != {b.shape[0]}")
    na = np.linalg.norm(a)
    nb = np.linalg.norm(b)
    if na == 0 or nb == 0:
        return 0.0
    return float(np.dot(a, b) / (na * nb))


def cosine_scores(query: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """Cosine similarity of *query* against every row of *matrix*.

    Rows (or a query) with zero norm score 0.0.
    """
    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
    dots = matrix @ query
    scores = np.zeros(len(matrix), dtype=np.float32)
    np.divide(dots, norms, out=scores, where=norms != 0)
    return scores


class FlatFileVectorStore(VectorStoreBase):
    """JSON-file backed vector store.

    Parameters
    ----------
    path:
        Location of the JSON array on disk.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        path = Path(path) if path is not None else settings.vector_store_path
        super().__init__(path.name)
        self.path = path

    # -- VectorStoreBase overrides --------------------------------------------

    def add(self, records: list[MemoryRecord]) -> int:
        if not records:
            return 0
        with path_lock(self.path):
            existing = read_json(self.path, default=[])
            existing.extend(r.model_dump() for r in records)
            write_json(self.path, existing)
        logger.info("Appended %d records to %s (total=%d)", len(records), self.path, len(existing))
        return len(records)

    def similarity_search(
        self,
        query_embedding: list[float],
        *,
        k: int = 5,
    ) -> list[dict[str, Any]]:
        records = self.load()
        query = np.asarray(query_embedding, dtype=np.float32)

        candidates = [r for r in records if len(r.embedding) == query.shape[0]]
        if len(candidates) < len(records):
            logger.warning(
                "Skipping %d records whose dimension differs from the query (%d)",
                len(records) - len(candidates),
                query.shape[0],
            )
        if not candidates:
            return []

        matrix = np.asarray([r.embedding for r in candidates], dtype=np.float32)
        scores = cosine_scores(query, matrix)
        order = np.argsort(-scores, kind="stable")[:k]
        return [
            {
                "content": candidates[i].content,
                "score": float(scores[i]),
                "metadata": candidates[i].metadata,
            }
            for i in order
        ]

    def count(self) -> int:
        with path_lock(self.path):
            return len(read_json(self.path, default=[]))

    def health_check(self) -> bool:
        return self.path.exists()

    # -- helpers --------------------------------------------------------------

    def load(self) -> list[MemoryRecord]:
        """Read every stored record; raises :class:`MissingIndexError` if none exist yet."""
        with path_lock(self.path):
            raw = read_json(self.path)
        if raw is None:
            raise MissingIndexError(f"Memory index not found at {self.path}")
        return [MemoryRecord(**item) for item in raw]
