"""Build the recall index from an extracted memory folder."""

from __future__ import annotations

import logging
from pathlib import Path

from langchain_core.embeddings import Embeddings

from liam_relay.config import settings
from liam_relay.memory.chunker import chunk_documents
from liam_relay.memory.loader import load_directory
from liam_relay.retrieval.base import VectorStoreBase
from liam_relay.retrieval.models import MemoryRecord

logger = logging.getLogger(__name__)


class MemoryIndexer:
    """Load, chunk and embed text files, appending the vectors to a store.

    Parameters
    ----------
    store:
        Destination backend.  Defaults to the flat-file store.
    embedder:
        Embedding function.  Defaults to the configured provider.
    """

    def __init__(
        self,
        store: VectorStoreBase | None = None,
        *,
        embedder: Embeddings | None = None,
        chunk_size: int | None = None,
        chunk_overlap: int | None = None,
    ) -> None:
        if store is None:
            from liam_relay.retrieval.flat_store import FlatFileVectorStore

            store = FlatFileVectorStore()
        if embedder is None:
            from liam_relay.completion.embeddings import get_embeddings

            embedder = get_embeddings()
        self._store = store
        self._embedder = embedder
        self.chunk_size = chunk_size or settings.chunk_size
        self.chunk_overlap = chunk_overlap if chunk_overlap is not None else settings.chunk_overlap

    def index_folder(self, folder: str | Path, *, archive_id: str) -> int:
        """Index every text file under *folder* and return the fragment count.

        Embedding errors propagate; nothing is written to the store unless
        every fragment was embedded.
        """
        folder = Path(folder)
        documents = load_directory(folder)
        chunks = [
            c
            for c in chunk_documents(documents, self.chunk_size, self.chunk_overlap)
            if c.page_content.strip()
        ]
        if not chunks:
            logger.warning("No text fragments found under %s", folder)
            return 0

        vectors = self._embedder.embed_documents([c.page_content for c in chunks])

        records = []
        for chunk, vector in zip(chunks, vectors):
            source = Path(chunk.metadata.get("source", ""))
            try:
                source = source.relative_to(folder)
            except ValueError:
                pass
            records.append(
                MemoryRecord(
                    embedding=vector,
                    content=chunk.page_content,
                    metadata={
                        "archive_id": archive_id,
                        "source": source.as_posix(),
                        "chunk_index": chunk.metadata.get("chunk_index"),
                    },
                )
            )
        written = self._store.add(records)
        logger.info("Indexed %d fragments from %d files in %s", written, len(documents), folder)
        return written
