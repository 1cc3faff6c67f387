"""
Completion — chat and embedding clients for the external model provider.

Public API
----------
- :func:`get_llm` — configured chat model.
- :func:`complete` — one prompt in, one reply string out.
- :func:`get_embeddings` — configured embedding function.
"""

from liam_relay.completion.embeddings import get_embeddings
from liam_relay.completion.llm import complete, get_llm

__all__ = ["complete", "get_embeddings", "get_llm"]
