# tests/integration/conftest.py - v8
"""Shared fixtures for integration tests against a real chromadb client.

The chromadb client runs in process (ephemeral or persistent on tmp_path),
so no containers are needed. Each test gets a fresh collection name:
ephemeral clients share state within one process.
"""

from __future__ import annotations

import uuid

import pytest

from recipeai.rag.embeddings.deterministic_embedder import DeterministicEmbedder


def _chromadb_store(**kwargs):
    pytest.importorskip("chromadb")
    from recipeai.rag.vector_store.chromadb_store import ChromaDBStore
    try:
        return ChromaDBStore(**kwargs)
    except RuntimeError as e:
        if "http-only" in str(e).lower():
            pytest.skip("chromadb http-only client; install full: pip install chromadb")
        raise


@pytest.fixture
def chromadb_store():
    return _chromadb_store()


@pytest.fixture
def chromadb_persistent_store(tmp_path):
    return _chromadb_store(persist_path=tmp_path / "vectordb")


@pytest.fixture
def chromadb_collection() -> str:
    return f"test_{uuid.uuid4().hex[:8]}"


@pytest.fixture
def deterministic_embedder() -> DeterministicEmbedder:
    return DeterministicEmbedder(dimensions=64)
