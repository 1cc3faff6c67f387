"""Shared pytest configuration and fixtures."""

from __future__ import annotations

import hashlib
import io
import zipfile
from pathlib import Path

import pytest
from langchain_core.embeddings import Embeddings

from liam_relay.config import settings


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


class DeterministicEmbeddings(Embeddings):
    """Hash-based embeddings: identical text always maps to the identical vector."""

    def __init__(self, dimension: int = 12) -> None:
        self.dimension = dimension
        self.calls: list[str] = []

    def _embed(self, text: str) -> list[float]:
        digest = hashlib.sha256(text.encode("utf-8")).digest()
        return [digest[idx % len(digest)] / 255.0 for idx in range(self.dimension)]

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        self.calls.extend(texts)
        return [self._embed(text) for text in texts]

    def embed_query(self, text: str) -> list[float]:
        self.calls.append(text)
        return self._embed(text)


def _make_zip(files: dict[str, str | bytes]) -> bytes:
    """Build an in-memory ZIP from ``{member name: content}``."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, content in files.items():
            zf.writestr(name, content)
    return buf.getvalue()


@pytest.fixture()
def embedder() -> DeterministicEmbeddings:
    return DeterministicEmbeddings()


@pytest.fixture()
def data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point every on-disk path in ``settings`` at a fresh temp folder."""
    root = tmp_path / "data"
    monkeypatch.setattr(settings, "data_dir", root)
    return root


@pytest.fixture()
def make_zip():
    """Factory fixture: ``make_zip({"a.txt": "hello"}) -> bytes``."""
    return _make_zip
