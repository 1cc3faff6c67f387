"""Document loaders — thin wrappers around LangChain document loaders."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from langchain_community.document_loaders import DirectoryLoader, TextLoader

if TYPE_CHECKING:
    from langchain_core.documents import Document

TEXT_GLOBS = ("**/*.txt", "**/*.md", "**/*.json")


def load_directory(path: str | Path, globs: tuple[str, ...] = TEXT_GLOBS) -> list[Document]:
    """Recursively load every text file under *path*.

    Parameters
    ----------
    path:
        Root directory, usually a freshly extracted memory archive.
    globs:
        File-matching patterns, each forwarded to a ``DirectoryLoader``.

    Returns
    -------
    list[Document]
        Flat list of LangChain ``Document`` objects.  Files that cannot be
        decoded as UTF-8 are skipped with a warning.
    """
    documents: list[Document] = []
    for pattern in globs:
        loader = DirectoryLoader(
            str(path),
            glob=pattern,
            loader_cls=TextLoader,  # type: ignore[arg-type]
            loader_kwargs={"encoding": "utf-8"},
            silent_errors=True,
        )
        documents.extend(loader.load())
    return documents
