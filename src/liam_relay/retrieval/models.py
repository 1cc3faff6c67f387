"""Domain models for stored memory fragments and recall results."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class MemoryRecord(BaseModel):
    """One embedded text fragment as persisted in the vector store.

    Attributes
    ----------
    embedding:
        Dense vector returned by the embedding provider.
    content:
        The fragment text that was embedded.
    metadata:
        Provenance: ``archive_id``, ``source`` file and ``chunk_index``.
    """

    embedding: list[float]
    content: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class RecallHit(BaseModel):
    """A single recall result: similarity score plus fragment text."""

    score: float
    text: str
    metadata: dict[str, Any] = Field(default_factory=dict)

    def short_ref(self) -> str:
        """Return a compact ``[source§chunk]`` reference string."""
        source = self.metadata.get("source", "unknown")
        chunk = self.metadata.get("chunk_index", "?")
        return f"[{source}§{chunk}]"

    def __str__(self) -> str:  # noqa: D105
        return f"{self.short_ref()} {self.score:.3f} {self.text[:120]}"
