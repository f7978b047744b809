# src/rag/vector_store/memory_store.py - v1
"""Exact in-process vector store (linear scan, cosine similarity).

Used for tests and small deployments. Every query scores all stored
vectors, so results are exact and ranking ties keep insertion order.

Mutations are serialized with an asyncio.Lock and applied copy-on-write:
a collection's record map is replaced wholesale, so readers iterate over a
consistent snapshot without taking the lock.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from recipeai.core.errors import StoreError
from recipeai.core.similarity import cosine_similarities, rank_by_similarity
from recipeai.rag.models import SearchResult, StoredRecord
from recipeai.rag.vector_store.base_vector_store import (
    BaseVectorStore,
    check_upsert_lengths,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Entry:
    embedding: tuple[float, ...]
    document: str
    metadata: dict[str, Any]


@dataclass
class _Collection:
    name: str
    dimensions: int | None = None
    # Insertion-ordered; updates keep the original position.
    records: dict[str, _Entry] = field(default_factory=dict)


class MemoryVectorStore(BaseVectorStore):
    """Vector store kept in process memory."""

    def __init__(self) -> None:
        self._collections: dict[str, _Collection] = {}
        self._lock = asyncio.Lock()

    async def open_collection(self, collection: str) -> None:
        """Create the collection if missing; existing contents are kept."""
        if collection not in self._collections:
            self._collections[collection] = _Collection(name=collection)
            logger.debug("Created in-memory collection %r", collection)

    async def upsert(
        self,
        collection: str,
        ids: list[str],
        embeddings: list[list[float]],
        documents: list[str],
        metadatas: list[dict[str, Any]] | None = None,
    ) -> None:
        """Insert or update vectors. The whole call is validated before any write."""
        try:
            check_upsert_lengths(ids, embeddings, documents, metadatas)
        except ValueError as e:
            raise StoreError(str(e), provider=self.provider_name, operation="upsert") from e
        if not ids:
            return

        async with self._lock:
            col = self._require(collection, "upsert")
            dims = col.dimensions if col.dimensions is not None else len(embeddings[0])
            for doc_id, emb in zip(ids, embeddings):
                if len(emb) != dims:
                    raise StoreError(
                        f"Embedding for {doc_id!r} has {len(emb)} dimensions, "
                        f"collection {collection!r} expects {dims}",
                        provider=self.provider_name,
                        operation="upsert",
                    )

            records = dict(col.records)
            for i, doc_id in enumerate(ids):
                records[doc_id] = _Entry(
                    embedding=tuple(float(x) for x in embeddings[i]),
                    document=documents[i],
                    metadata=dict(metadatas[i]) if metadatas else {},
                )
            col.records = records
            col.dimensions = dims

    async def get(
        self,
        collection: str,
        where: dict[str, Any] | None = None,
    ) -> list[StoredRecord]:
        """Return records whose metadata matches every key of ``where``."""
        records = self._require(collection, "get").records
        matches: list[StoredRecord] = []
        for doc_id, entry in records.items():
            if where and any(entry.metadata.get(k) != v for k, v in where.items()):
                continue
            matches.append(
                StoredRecord(id=doc_id, document=entry.document, metadata=dict(entry.metadata))
            )
        return matches

    async def query(
        self,
        collection: str,
        query_embedding: list[float],
        top_k: int = 10,
    ) -> list[SearchResult]:
        """Score every stored vector against the query and return the best ``top_k``."""
        col = self._require(collection, "query")
        records = col.records
        if not records or top_k <= 0:
            return []

        ids = list(records)
        matrix = np.array([records[i].embedding for i in ids], dtype=np.float64)
        try:
            sims = cosine_similarities(query_embedding, matrix)
        except ValueError as e:
            raise StoreError(str(e), provider=self.provider_name, operation="query") from e

        results: list[SearchResult] = []
        for idx in rank_by_similarity(sims, top_k):
            entry = records[ids[idx]]
            results.append(
                SearchResult(
                    id=ids[idx],
                    document=entry.document,
                    score=float(sims[idx]),
                    metadata=dict(entry.metadata),
                )
            )
        return results

    async def delete(self, collection: str, ids: list[str]) -> None:
        """Delete vectors by ID; unknown ids are ignored."""
        if not ids:
            return
        async with self._lock:
            col = self._require(collection, "delete")
            doomed = set(ids)
            col.records = {k: v for k, v in col.records.items() if k not in doomed}

    async def delete_all(self, collection: str) -> int:
        """Empty the collection, keeping it open."""
        async with self._lock:
            col = self._require(collection, "delete_all")
            removed = len(col.records)
            col.records = {}
            col.dimensions = None
        return removed

    async def collection_exists(self, collection: str) -> bool:
        return collection in self._collections

    async def count(self, collection: str) -> int:
        return len(self._require(collection, "count").records)

    @property
    def provider_name(self) -> str:
        return "memory"

    def _require(self, collection: str, operation: str) -> _Collection:
        col = self._collections.get(collection)
        if col is None:
            raise StoreError(
                f"Collection {collection!r} does not exist",
                provider=self.provider_name,
                operation=operation,
            )
        return col
