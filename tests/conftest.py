"""Shared pytest fixtures for mdrag tests."""
from typing import Dict, Iterable, Optional, Sequence

import numpy as np
import pytest
import requests
from unittest.mock import MagicMock

from mdrag.chunking import Chunk
from mdrag.errors import EmbeddingProviderError
from mdrag.store import VectorStore
from mdrag.vectors import encode_vector


def pytest_addoption(parser):
    """Add command line options for integration tests."""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests (requires running Ollama / reranker services)"
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test (requires --run-integration)"
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --run-integration is passed."""
    if config.getoption("--run-integration"):
        return

    skip_integration = pytest.mark.skip(reason="Need --run-integration to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


def build_response(payload=None, status_code: int = 200):
    """Mock requests.Response returning payload from .json()."""
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code} Server Error")
    else:
        response.raise_for_status.return_value = None
    return response


class FakeEmbedder:
    """In-process embedder returning fixed vectors per text."""

    def __init__(
        self,
        vectors: Optional[Dict[str, Sequence[float]]] = None,
        default: Sequence[float] = (1.0, 0.0, 0.0),
        fail_on: Iterable[str] = ()
    ):
        self.vectors = dict(vectors or {})
        self.default = default
        self.fail_on = set(fail_on)
        self.calls = []

    def embed(self, text: str) -> np.ndarray:
        self.calls.append(text)
        if text in self.fail_on:
            raise EmbeddingProviderError(f"provider down for {text!r}", attempts=3)
        return np.array(self.vectors.get(text, self.default), dtype=np.float32)

    def embed_bytes(self, text: str) -> bytes:
        return encode_vector(self.embed(text))


@pytest.fixture
def make_response():
    return build_response


@pytest.fixture
def mock_session():
    """Mock HTTP session standing in for requests.Session."""
    return MagicMock()


@pytest.fixture
def sample_embedding():
    """Sample 768-dimension embedding vector."""
    return [0.1] * 768


@pytest.fixture
def store(tmp_path):
    """File-backed SQLite store, one per test."""
    vector_store = VectorStore(f"sqlite:///{tmp_path / 'rag.db'}")
    yield vector_store
    vector_store.close()


@pytest.fixture
def add_document(store):
    """Persist a document whose chunks carry the given vectors."""
    def _add(path: str, chunks):
        document_id = store.save_document(path, path.rsplit("/", 1)[-1], 1700000000000)
        offset = 0
        for index, (text, vector) in enumerate(chunks):
            chunk = Chunk(index=index, text=text, start_offset=offset, end_offset=offset + len(text))
            data = vector if isinstance(vector, bytes) else encode_vector(vector)
            store.save_chunk(document_id, chunk, data)
            offset += len(text)
        return document_id
    return _add


@pytest.fixture
def make_embedder():
    return FakeEmbedder
