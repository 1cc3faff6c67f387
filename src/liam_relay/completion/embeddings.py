"""Embedding-model factory used by ingestion and recall."""

from __future__ import annotations

import logging

from langchain_core.embeddings import Embeddings

from liam_relay.config import settings

logger = logging.getLogger(__name__)


def get_embeddings(provider: str | None = None, model: str | None = None) -> Embeddings:
    """Return the configured embedding function.

    ``openai`` uses the completion provider's embedding endpoint;
    ``huggingface`` runs a sentence-transformer locally and requires the
    ``local`` extra.
    """
    provider = (provider or settings.embedding_provider).lower()
    model = model or settings.embedding_model

    if provider == "openai":
        from langchain_openai import OpenAIEmbeddings

        kwargs: dict = {"model": model, "api_key": settings.openai_api_key or "EMPTY"}
        if settings.llm_base_url:
            kwargs["base_url"] = settings.llm_base_url
        return OpenAIEmbeddings(**kwargs)

    if provider == "huggingface":
        from langchain_huggingface import HuggingFaceEmbeddings

        logger.info("Using local sentence-transformer: %s", model)
        return HuggingFaceEmbeddings(model_name=model)

    raise ValueError(f"Unsupported embedding provider: {provider!r}")
