# src/rag/vector_store/chromadb_store.py - v3
"""ChromaDB vector store adapter.

Uses the chromadb SDK for local or remote vector storage.
Requires: pip install chromadb.

Collections are created with the cosine distance space, so
``score = 1 - distance`` is the cosine similarity and rankings agree with
MemoryVectorStore. The SDK is synchronous; every call runs in a worker
thread so the event loop never blocks on it.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Callable

from recipeai.core.errors import StoreError
from recipeai.rag.models import SearchResult, StoredRecord
from recipeai.rag.vector_store.base_vector_store import (
    BaseVectorStore,
    check_upsert_lengths,
)

logger = logging.getLogger(__name__)

_COLLECTION_METADATA = {"hnsw:space": "cosine"}


class ChromaDBStore(BaseVectorStore):
    """Vector store backed by ChromaDB."""

    def __init__(
        self,
        persist_path: str | Path | None = None,
        host: str | None = None,
        port: int = 8000,
        ssl: bool = False,
    ) -> None:
        try:
            import chromadb
        except ImportError as e:
            raise ImportError(
                "chromadb package required: pip install chromadb"
            ) from e

        if host:
            self._client = chromadb.HttpClient(host=host, port=port, ssl=ssl)
        elif persist_path:
            self._client = chromadb.PersistentClient(path=str(persist_path))
        else:
            self._client = chromadb.EphemeralClient()
        self._handles: dict[str, Any] = {}
        self._delete_all_lock = asyncio.Lock()

    async def open_collection(self, collection: str) -> None:
        """Get or create the collection (cosine space)."""
        handle = await self._call(
            "open_collection",
            self._client.get_or_create_collection,
            name=collection,
            metadata=_COLLECTION_METADATA,
        )
        self._handles[collection] = handle
        logger.debug("Opened chromadb collection %r", collection)

    async def upsert(
        self,
        collection: str,
        ids: list[str],
        embeddings: list[list[float]],
        documents: list[str],
        metadatas: list[dict[str, Any]] | None = None,
    ) -> None:
        """Insert or update vectors in one SDK call."""
        try:
            check_upsert_lengths(ids, embeddings, documents, metadatas)
        except ValueError as e:
            raise StoreError(str(e), provider=self.provider_name, operation="upsert") from e
        if not ids:
            return
        col = await self._collection(collection)
        await self._call(
            "upsert",
            col.upsert,
            ids=ids,
            embeddings=embeddings,
            documents=documents,
            metadatas=metadatas or None,
        )

    async def get(
        self,
        collection: str,
        where: dict[str, Any] | None = None,
    ) -> list[StoredRecord]:
        """Metadata-filtered get."""
        col = await self._collection(collection)
        kwargs: dict[str, Any] = {"include": ["documents", "metadatas"]}
        if where:
            kwargs["where"] = where
        raw = await self._call("get", col.get, **kwargs)

        ids = raw.get("ids") or []
        docs = raw.get("documents") or [""] * len(ids)
        metas = raw.get("metadatas") or [{}] * len(ids)
        return [
            StoredRecord(id=doc_id, document=docs[i] or "", metadata=dict(metas[i] or {}))
            for i, doc_id in enumerate(ids)
        ]

    async def query(
        self,
        collection: str,
        query_embedding: list[float],
        top_k: int = 10,
    ) -> list[SearchResult]:
        """Query by embedding similarity."""
        col = await self._collection(collection)
        size = await self._call("count", col.count)
        n_results = min(top_k, size)
        if n_results <= 0:
            return []

        results = await self._call(
            "query",
            col.query,
            query_embeddings=[query_embedding],
            n_results=n_results,
            include=["documents", "metadatas", "distances"],
        )

        search_results: list[SearchResult] = []
        if results["ids"] and results["ids"][0]:
            for i, doc_id in enumerate(results["ids"][0]):
                score = 1.0 - (results["distances"][0][i] if results["distances"] else 0)
                doc = results["documents"][0][i] if results["documents"] else ""
                meta = results["metadatas"][0][i] if results["metadatas"] else {}
                search_results.append(
                    SearchResult(
                        id=doc_id,
                        document=doc or "",
                        score=score,
                        metadata=dict(meta or {}),
                    )
                )
        return search_results

    async def delete(self, collection: str, ids: list[str]) -> None:
        """Delete vectors by ID."""
        if not ids:
            return
        col = await self._collection(collection)
        await self._call("delete", col.delete, ids=ids)

    async def delete_all(self, collection: str) -> int:
        """Read every id, then delete them all.

        Serialized per store so concurrent callers never count the same ids.
        """
        col = await self._collection(collection)
        async with self._delete_all_lock:
            raw = await self._call("get", col.get, include=[])
            ids = raw.get("ids") or []
            if ids:
                await self._call("delete", col.delete, ids=ids)
        return len(ids)

    async def collection_exists(self, collection: str) -> bool:
        """Check if a collection exists. Connection failures raise StoreError."""
        listed = await self._call("list_collections", self._client.list_collections)
        # Older clients return Collection objects, newer ones plain names.
        return collection in {getattr(c, "name", c) for c in listed}

    async def count(self, collection: str) -> int:
        """Return number of vectors in a collection."""
        col = await self._collection(collection)
        return await self._call("count", col.count)

    @property
    def provider_name(self) -> str:
        return "chromadb"

    async def _collection(self, collection: str) -> Any:
        handle = self._handles.get(collection)
        if handle is None:
            handle = await self._call(
                "get_collection", self._client.get_collection, collection
            )
            self._handles[collection] = handle
        return handle

    async def _call(self, operation: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Run a blocking SDK call off the event loop, wrapping failures in StoreError."""
        try:
            return await asyncio.to_thread(fn, *args, **kwargs)
        except StoreError:
            raise
        except Exception as e:
            raise StoreError(
                f"chromadb {operation} failed: {e}",
                provider=self.provider_name,
                operation=operation,
            ) from e
