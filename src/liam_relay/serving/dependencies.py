"""FastAPI providers for the external clients used by the routes.

Tests replace any of these through ``app.dependency_overrides``.
"""

from __future__ import annotations

from collections.abc import Callable

from fastapi import Depends
from langchain_core.embeddings import Embeddings
from langchain_core.language_models import BaseChatModel

from liam_relay.completion.embeddings import get_embeddings
from liam_relay.completion.llm import get_llm
from liam_relay.google.contacts import ContactDirectory
from liam_relay.google.drive import DriveClient
from liam_relay.mail.smtp import Mailer
from liam_relay.memory.archive import ArchiveLog
from liam_relay.memory.indexer import MemoryIndexer
from liam_relay.retrieval.base import VectorStoreBase
from liam_relay.retrieval.flat_store import FlatFileVectorStore
from liam_relay.retrieval.retriever import MemoryRetriever


def get_llm_factory() -> Callable[[], BaseChatModel]:
    """Chat-model builder; routes call it inside their own ``try``."""
    return get_llm


def get_embedder() -> Embeddings:
    return get_embeddings()


def get_contacts() -> ContactDirectory:
    return ContactDirectory()


def get_mailer() -> Mailer:
    return Mailer()


def get_drive() -> DriveClient:
    return DriveClient()


def get_archive_log() -> ArchiveLog:
    return ArchiveLog()


def get_vector_store() -> VectorStoreBase:
    return FlatFileVectorStore()


def get_indexer(
    store: VectorStoreBase = Depends(get_vector_store),
    embedder: Embeddings = Depends(get_embedder),
) -> MemoryIndexer:
    return MemoryIndexer(store, embedder=embedder)


def get_retriever(
    store: VectorStoreBase = Depends(get_vector_store),
    embedder: Embeddings = Depends(get_embedder),
) -> MemoryRetriever:
    return MemoryRetriever(store, embedder=embedder)
