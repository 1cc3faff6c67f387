"""Abstract base class for vector-store backends.

The recall path only talks to :class:`VectorStoreBase`, so a different
backend (SQLite, a hosted vector DB, …) only needs to subclass it and
implement the abstract methods.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from liam_relay.retrieval.models import MemoryRecord


class VectorStoreBase(ABC):
    """Backend-agnostic vector-store interface.

    Parameters
    ----------
    name:
        Logical name of the store (used in logs).
    """

    def __init__(self, name: str) -> None:
        self.name = name

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def add(self, records: list[MemoryRecord]) -> int:
        """Persist *records* and return how many were written."""
        ...

    @abstractmethod
    def similarity_search(
        self,
        query_embedding: list[float],
        *,
        k: int = 5,
    ) -> list[dict[str, Any]]:
        """Return the top-*k* records most similar to *query_embedding*.

        Each result dict **must** contain:

        * ``"content"`` – the textual content
        * ``"score"`` – similarity score (higher = more similar)
        * ``"metadata"`` – associated metadata dict
        """
        ...

    @abstractmethod
    def count(self) -> int:
        """Return the number of stored records (0 when the store is empty or absent)."""
        ...

    # -- optional overrides ---------------------------------------------------

    def health_check(self) -> bool:
        """Return ``True`` when the backend is usable."""
        return True
