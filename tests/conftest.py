# tests/conftest.py - v2
"""Shared test fixtures for all unit and integration tests.

Provides a stub embedder with fixed vectors, an in-memory vector store and
an embedding service bound to the test collection.
No external dependencies: all I/O stays in process.
"""

from __future__ import annotations

import asyncio

import pytest

from recipeai.config.settings import Settings
from recipeai.rag.embeddings.base_embedder import BaseEmbedder
from recipeai.rag.vector_store.memory_store import MemoryVectorStore
from recipeai.services.embedding_service import EmbeddingService, build_embedding_service

TEST_COLLECTION = "ingredients_test"

# Fixed 3D vectors: tomato texts point along x, baking texts along z.
STUB_VECTORS: dict[str, list[float]] = {
    "tomatoes, cheese, basil": [1.0, 0.2, 0.0],
    "flour, eggs, sugar": [0.0, 0.1, 1.0],
    "tomatoes, onions, garlic": [0.9, 0.4, 0.0],
    "tomatoes, pasta, oregano": [0.95, 0.3, 0.05],
    "tomatoes, bell peppers, olive oil": [0.8, 0.5, 0.1],
    "tomatoes": [1.0, 0.3, 0.0],
    "flour": [0.0, 0.0, 1.0],
}
DEFAULT_VECTOR = [0.1, 0.2, 0.3]


class StubEmbedder(BaseEmbedder):
    """Embedder returning fixed vectors; records every text it was asked for."""

    def __init__(
        self,
        vectors: dict[str, list[float]] | None = None,
        delays: dict[str, float] | None = None,
        fail_on: set[str] | None = None,
    ) -> None:
        self.vectors = dict(STUB_VECTORS if vectors is None else vectors)
        self.delays = delays or {}
        self.fail_on = fail_on or set()
        self.calls: list[str] = []

    async def embed_text(self, text: str) -> list[float]:
        self.calls.append(text)
        if text in self.delays:
            await asyncio.sleep(self.delays[text])
        if text in self.fail_on:
            raise ConnectionError(f"provider unavailable for {text!r}")
        return list(self.vectors.get(text, DEFAULT_VECTOR))

    @property
    def dimensions(self) -> int:
        return 3

    @property
    def provider_name(self) -> str:
        return "stub"

    @property
    def model_name(self) -> str:
        return "stub-model"


# === FIXTURES ===


@pytest.fixture
def stub_embedder() -> StubEmbedder:
    return StubEmbedder()


@pytest.fixture
def memory_store() -> MemoryVectorStore:
    return MemoryVectorStore()


@pytest.fixture
def test_settings() -> Settings:
    """Settings pinned to the test collection and the in-memory store."""
    return Settings(
        _env_file=None,
        environment="test",
        vector_db_type="memory",
        embedding_provider="deterministic",
        embedding_query_instruction="",
    )


@pytest.fixture
def service(
    test_settings: Settings,
    stub_embedder: StubEmbedder,
    memory_store: MemoryVectorStore,
) -> EmbeddingService:
    return build_embedding_service(
        test_settings, embedder=stub_embedder, vector_store=memory_store,
    )


@pytest.fixture
def make_embedder():
    """Factory for StubEmbedder with custom vectors, delays or failures."""
    return StubEmbedder


@pytest.fixture
def make_service(memory_store: MemoryVectorStore):
    """Factory binding any embedder to the shared memory store."""

    def _make(
        embedder: BaseEmbedder,
        concurrency: int = 8,
        query_instruction: str = "",
    ) -> EmbeddingService:
        return EmbeddingService(
            embedder=embedder,
            vector_store=memory_store,
            collection=TEST_COLLECTION,
            query_instruction=query_instruction,
            concurrency=concurrency,
        )

    return _make
