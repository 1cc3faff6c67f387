"""
Retrieval — the flat embedding store and similarity recall over it.

Public surface
--------------
- :class:`MemoryRetriever` — embed a query and return ranked hits.
- :class:`VectorStoreBase` — abstract backend.
- :class:`FlatFileVectorStore` — default JSON-file backend.
- :class:`MemoryRecord`, :class:`RecallHit` — data models.
"""

from liam_relay.retrieval.base import VectorStoreBase
from liam_relay.retrieval.flat_store import FlatFileVectorStore, MissingIndexError, cosine_similarity
from liam_relay.retrieval.models import MemoryRecord, RecallHit
from liam_relay.retrieval.retriever import MemoryRetriever

__all__ = [
    "FlatFileVectorStore",
    "MemoryRecord",
    "MemoryRetriever",
    "MissingIndexError",
    "RecallHit",
    "VectorStoreBase",
    "cosine_similarity",
]
