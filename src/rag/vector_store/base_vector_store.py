# src/rag/vector_store/base_vector_store.py - v2
"""Abstract vector store interface.

Every backend (exact in-process or delegated persistent store) implements
the same capability set so one can stand in for the other in tests:

- open_collection is idempotent and never erases existing contents.
- upsert either succeeds for the whole call or raises StoreError.
- query returns at most top_k rows, fewer when the collection is smaller.
- delete ignores ids that are already absent.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from recipeai.rag.models import SearchResult, StoredRecord


class BaseVectorStore(ABC):
    """Unified interface for vector store backends."""

    @abstractmethod
    async def open_collection(self, collection: str) -> None:
        """Create the named collection, or reopen it if it already exists."""

    @abstractmethod
    async def upsert(
        self,
        collection: str,
        ids: list[str],
        embeddings: list[list[float]],
        documents: list[str],
        metadatas: list[dict[str, Any]] | None = None,
    ) -> None:
        """Insert or update vectors with associated documents and metadata."""

    @abstractmethod
    async def get(
        self,
        collection: str,
        where: dict[str, Any] | None = None,
    ) -> list[StoredRecord]:
        """Return stored records whose metadata equals every key in ``where``."""

    @abstractmethod
    async def query(
        self,
        collection: str,
        query_embedding: list[float],
        top_k: int = 10,
    ) -> list[SearchResult]:
        """Query vectors by cosine similarity, best first."""

    @abstractmethod
    async def delete(self, collection: str, ids: list[str]) -> None:
        """Delete vectors by ID."""

    @abstractmethod
    async def delete_all(self, collection: str) -> int:
        """Delete every vector in a collection, returning how many were removed."""

    @abstractmethod
    async def collection_exists(self, collection: str) -> bool:
        """Check if a collection exists."""

    @abstractmethod
    async def count(self, collection: str) -> int:
        """Return number of vectors in a collection."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identifier (memory, chromadb)."""


def check_upsert_lengths(
    ids: list[str],
    embeddings: list[list[float]],
    documents: list[str],
    metadatas: list[dict[str, Any]] | None,
) -> None:
    """Raise ValueError unless all upsert sequences have the same length."""
    lengths = {len(ids), len(embeddings), len(documents)}
    if metadatas is not None:
        lengths.add(len(metadatas))
    if len(lengths) != 1:
        raise ValueError(
            "ids, embeddings, documents and metadatas must have equal length "
            f"(got ids={len(ids)}, embeddings={len(embeddings)}, "
            f"documents={len(documents)}, "
            f"metadatas={'-' if metadatas is None else len(metadatas)})"
        )
