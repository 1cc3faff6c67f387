"""Memory recall — embed a query and rank stored fragments by similarity.

Usage::

    from liam_relay.retrieval.retriever import MemoryRetriever

    retriever = MemoryRetriever()
    for hit in retriever.recall("What did we decide about the launch?", k=3):
        print(hit.short_ref(), hit.score, hit.text[:80])
"""

from __future__ import annotations

import logging
from typing import Any

from langchain_core.embeddings import Embeddings

from liam_relay.config import settings
from liam_relay.retrieval.base import VectorStoreBase
from liam_relay.retrieval.models import RecallHit

logger = logging.getLogger(__name__)


class MemoryRetriever:
    """High-level recall wrapper around any :class:`VectorStoreBase`.

    Parameters
    ----------
    store:
        A concrete vector-store backend.  When *None*, a
        :class:`~liam_relay.retrieval.flat_store.FlatFileVectorStore` at
        ``settings.vector_store_path`` is used.
    embedder:
        Embedding function for queries.  Defaults to
        :func:`~liam_relay.completion.embeddings.get_embeddings`.
    default_k:
        Number of hits returned when :meth:`recall` is called without *k*.
    """

    def __init__(
        self,
        store: VectorStoreBase | None = None,
        *,
        embedder: Embeddings | None = None,
        default_k: int | None = None,
    ) -> None:
        if store is None:
            from liam_relay.retrieval.flat_store import FlatFileVectorStore

            store = FlatFileVectorStore()
        if embedder is None:
            from liam_relay.completion.embeddings import get_embeddings

            embedder = get_embeddings()
        self._store = store
        self._embedder = embedder
        self.default_k = default_k or settings.recall_top_k

    def recall(self, query: str, k: int | None = None) -> list[RecallHit]:
        """Return the *k* stored fragments most similar to *query*.

        Raises
        ------
        ValueError
            If *query* is blank or *k* is not positive.
        MissingIndexError
            If nothing has been indexed yet.
        """
        if not query.strip():
            raise ValueError("Query must not be empty")
        k = self.default_k if k is None else k
        if k <= 0:
            raise ValueError("k must be a positive integer")

        embedding = self._embedder.embed_query(query)
        raw_hits = self._store.similarity_search(embedding, k=k)
        logger.info("recall returned %d hits for %r", len(raw_hits), query)
        return self._to_hits(raw_hits)

    # -- internals ------------------------------------------------------------

    @staticmethod
    def _to_hits(raw_hits: list[dict[str, Any]]) -> list[RecallHit]:
        return [
            RecallHit(
                score=hit.get("score", 0.0),
                text=hit.get("content", ""),
                metadata=hit.get("metadata", {}),
            )
            for hit in raw_hits
        ]
