"""Split extracted memory files into recall fragments."""

from __future__ import annotations

from typing import TYPE_CHECKING

from langchain_text_splitters import RecursiveCharacterTextSplitter

if TYPE_CHECKING:
    from langchain_core.documents import Document

# Chat exports and notes: keep conversation turns and sentences whole before
# falling back to clauses and words.
MEMORY_SEPARATORS = ["\n\n", "\n", ". ", "? ", "! ", "; ", ", ", " ", ""]


def chunk_documents(
    documents: list[Document],
    chunk_size: int = 1000,
    chunk_overlap: int = 100,
) -> list[Document]:
    """Cut loaded memory files into fragments for the recall index.

    Each fragment keeps its file's ``source`` metadata and gains a
    ``chunk_index`` numbering the fragments of that file from 0, which
    ``RecallHit.short_ref`` renders as ``[source§chunk]``.
    """
    splitter = RecursiveCharacterTextSplitter(
        chunk_size=chunk_size,
        chunk_overlap=chunk_overlap,
        separators=MEMORY_SEPARATORS,
        keep_separator="end",
    )
    fragments = splitter.split_documents(documents)

    per_source: dict[str, int] = {}
    for fragment in fragments:
        source = fragment.metadata.get("source", "")
        fragment.metadata["chunk_index"] = per_source.get(source, 0)
        per_source[source] = fragment.metadata["chunk_index"] + 1
    return fragments
