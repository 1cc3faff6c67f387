"""Chat-model initialisation — single place to swap providers.

Supports two modes:

1. **OpenAI cloud** (default) — set ``OPENAI_API_KEY``.
2. **OpenAI-compatible endpoint** — set ``LLM_BASE_URL`` to any server that
   exposes ``/v1/chat/completions`` (vLLM, LiteLLM, a local proxy, …).
   ``ChatOpenAI`` works unchanged against it.
"""

from __future__ import annotations

import logging

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage
from langchain_openai import ChatOpenAI

from liam_relay.config import settings

logger = logging.getLogger(__name__)


def get_llm(temperature: float | None = None) -> ChatOpenAI:
    """Return the configured chat model.

    When ``settings.llm_base_url`` is set the client is pointed at that
    endpoint instead of the OpenAI cloud API.  A dummy API key
    (``"EMPTY"``) is used if none is configured, since self-hosted
    servers usually do not check it.
    """
    kwargs: dict = {
        "model": settings.llm_model_name,
        "temperature": settings.llm_temperature if temperature is None else temperature,
    }

    if settings.llm_base_url:
        logger.info("Using OpenAI-compatible endpoint: %s", settings.llm_base_url)
        kwargs["base_url"] = settings.llm_base_url
        kwargs["api_key"] = settings.openai_api_key or "EMPTY"
    else:
        kwargs["api_key"] = settings.openai_api_key

    return ChatOpenAI(**kwargs)


def complete(prompt: str, *, llm: BaseChatModel | None = None) -> str:
    """Send *prompt* as a single user message and return the reply text."""
    llm = llm or get_llm()
    reply = llm.invoke([HumanMessage(content=prompt)])
    logger.info("Completion returned %d chars", len(reply.content))
    return reply.content
