# src/services/embedding_service.py - v2
"""Embedding service: ingestion, similarity search and deletion of ingredient strings.

Composes one embedder and one vector store bound to a single collection.
Usage:
    service = build_embedding_service(load_settings())
    doc_id = await service.add_ingredient("r1", "tomatoes, cheese, basil")
    hits = await service.search_similar_ingredients("tomatoes", limit=3)

Errors:
    ValidationError is raised before any I/O. Embedder failures surface as
    ProviderError and vector store failures as StoreError; nothing is
    retried here.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Union

from recipeai.core.errors import ProviderError, StoreError, ValidationError
from recipeai.core.models import Document, IngredientMatch, IngredientRecord
from recipeai.logging.context import set_operation_context
from recipeai.rag.models import SearchResult

if TYPE_CHECKING:
    from recipeai.config.settings import Settings
    from recipeai.rag.embeddings.base_embedder import BaseEmbedder
    from recipeai.rag.vector_store.base_vector_store import BaseVectorStore

logger = logging.getLogger(__name__)

RecordLike = Union[IngredientRecord, Mapping[str, Any], Sequence[Any]]

DEFAULT_SEARCH_LIMIT = 3


class ServiceState(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"


class EmbeddingService:
    """Owns the recipe_id -> ingredients -> vector mapping for one collection."""

    def __init__(
        self,
        embedder: BaseEmbedder,
        vector_store: BaseVectorStore,
        collection: str,
        query_instruction: str = "",
        concurrency: int = 8,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self._embedder = embedder
        self._store = vector_store
        self._collection = collection
        self._query_instruction = query_instruction
        self._concurrency = concurrency
        self._state = ServiceState.UNINITIALIZED
        self._init_lock = asyncio.Lock()
        # Lookup and delete must not interleave, or two callers report the same ids.
        self._delete_lock = asyncio.Lock()

    @property
    def state(self) -> ServiceState:
        return self._state

    @property
    def collection(self) -> str:
        return self._collection

    @property
    def embedder(self) -> BaseEmbedder:
        return self._embedder

    @property
    def vector_store(self) -> BaseVectorStore:
        return self._store

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """Open (or create) the collection. Safe to call concurrently and repeatedly."""
        if self._state is ServiceState.READY:
            return
        async with self._init_lock:
            if self._state is ServiceState.READY:
                return
            self._state = ServiceState.INITIALIZING
            try:
                await self._store_call(
                    "open_collection", self._store.open_collection, self._collection
                )
            except BaseException:
                self._state = ServiceState.UNINITIALIZED
                raise
            self._state = ServiceState.READY
        logger.info(
            "Embedding service ready: collection=%s store=%s embedder=%s/%s",
            self._collection,
            self._store.provider_name,
            self._embedder.provider_name,
            self._embedder.model_name,
        )

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    async def add_ingredient(self, recipe_id: str, ingredients: str) -> str:
        """Embed and store one ingredient string; return the new document id."""
        record = _validate_record(IngredientRecord.model_construct(
            recipe_id=recipe_id, ingredients=ingredients,
        ))
        await self.initialize()
        set_operation_context("add", self._collection)

        embedding = await self._embed(record.ingredients)
        doc = Document(
            recipe_id=record.recipe_id,
            ingredients=record.ingredients,
            embedding=embedding,
        )
        await self._upsert([doc])
        logger.debug("Added document %s for recipe %s", doc.id, doc.recipe_id)
        return doc.id

    async def add_ingredients_batch(self, records: Sequence[RecordLike]) -> list[str]:
        """Embed all records concurrently, then store them with one upsert.

        Validation is fail-fast: one invalid record rejects the whole batch
        before anything is embedded or written. Returned ids follow input order.
        """
        validated = validate_batch(records)
        await self.initialize()
        set_operation_context("add_batch", self._collection)

        embeddings = await self._embed_all([r.ingredients for r in validated])
        docs = [
            Document(recipe_id=r.recipe_id, ingredients=r.ingredients, embedding=emb)
            for r, emb in zip(validated, embeddings)
        ]
        await self._upsert(docs)
        logger.info("Added batch of %d documents", len(docs))
        return [d.id for d in docs]

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search_similar_ingredients(
        self, query: str, limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> list[IngredientMatch]:
        """Return up to ``limit`` stored ingredient strings closest to ``query``."""
        results = await self.search_with_scores(query, limit)
        return [
            IngredientMatch(recipe_id=r.recipe_id, ingredients=r.document)
            for r in results
        ]

    async def search_with_scores(
        self, query: str, limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> list[SearchResult]:
        """Like search_similar_ingredients, keeping ids, scores and metadata."""
        _require_text(query, "query")
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise ValidationError(f"limit must be a positive integer, got {limit!r}")
        await self.initialize()
        set_operation_context("search", self._collection)

        query_embedding = await self._embed(query, is_query=True)
        results = await self._store_call(
            "query",
            self._store.query,
            self._collection,
            query_embedding,
            top_k=limit,
        )
        return results[:limit]

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    async def delete_ingredients_by_recipe_id(self, recipe_id: str) -> int:
        """Delete every document owned by ``recipe_id``; return how many were removed."""
        _require_text(recipe_id, "recipe_id")
        await self.initialize()
        set_operation_context("delete", self._collection)

        async with self._delete_lock:
            matches = await self._store_call(
                "get", self._store.get, self._collection, where={"recipe_id": recipe_id},
            )
            if not matches:
                logger.debug("No documents found for recipe %s", recipe_id)
                return 0
            await self._store_call(
                "delete", self._store.delete, self._collection, [m.id for m in matches],
            )
        logger.info("Deleted %d documents for recipe %s", len(matches), recipe_id)
        return len(matches)

    async def clear_collection(self) -> int:
        """Remove every document in the collection; return how many were removed."""
        await self.initialize()
        set_operation_context("clear", self._collection)
        async with self._delete_lock:
            removed = await self._store_call(
                "delete_all", self._store.delete_all, self._collection,
            )
        logger.info("Cleared collection %s (%d documents)", self._collection, removed)
        return removed

    async def count(self) -> int:
        """Number of documents currently stored."""
        await self.initialize()
        return await self._store_call("count", self._store.count, self._collection)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _embed(self, text: str, is_query: bool = False) -> list[float]:
        try:
            if is_query:
                return await self._embedder.embed_query(text, self._query_instruction)
            return await self._embedder.embed_text(text)
        except ProviderError:
            raise
        except Exception as e:
            raise ProviderError(
                f"Embedding failed: {e}",
                provider=self._embedder.provider_name,
                model=self._embedder.model_name,
            ) from e

    async def _embed_all(self, texts: list[str]) -> list[list[float]]:
        """Fan out one embedding call per text, at most ``concurrency`` in flight.

        Waits for every call before returning so no work is left running on
        failure; the first error in input order is raised.
        """
        semaphore = asyncio.Semaphore(self._concurrency)

        async def worker(text: str) -> list[float]:
            async with semaphore:
                return await self._embed(text)

        outcomes = await asyncio.gather(
            *(worker(t) for t in texts), return_exceptions=True,
        )
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome
        return outcomes  # type: ignore[return-value]

    async def _upsert(self, docs: list[Document]) -> None:
        await self._store_call(
            "upsert",
            self._store.upsert,
            self._collection,
            ids=[d.id for d in docs],
            embeddings=[d.embedding for d in docs],
            documents=[d.ingredients for d in docs],
            metadatas=[d.metadata() for d in docs],
        )

    async def _store_call(
        self,
        operation: str,
        fn: Callable[..., Awaitable[Any]],
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        try:
            return await fn(*args, **kwargs)
        except StoreError:
            raise
        except Exception as e:
            raise StoreError(
                f"Vector store {operation} failed: {e}",
                provider=self._store.provider_name,
                operation=operation,
            ) from e


# ------------------------------------------------------------------
# Validation
# ------------------------------------------------------------------


def _require_text(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required and must be a non-empty string")
    return value


def _validate_record(record: IngredientRecord) -> IngredientRecord:
    _require_text(record.recipe_id, "recipe_id")
    _require_text(record.ingredients, "ingredients")
    return record


def _coerce_record(raw: RecordLike, index: int) -> IngredientRecord:
    if isinstance(raw, IngredientRecord):
        record = raw
    elif isinstance(raw, Mapping):
        record = IngredientRecord.model_construct(
            recipe_id=raw.get("recipe_id"), ingredients=raw.get("ingredients"),
        )
    elif isinstance(raw, Sequence) and not isinstance(raw, str) and len(raw) == 2:
        record = IngredientRecord.model_construct(recipe_id=raw[0], ingredients=raw[1])
    else:
        raise ValidationError(f"records[{index}] is not a (recipe_id, ingredients) record")
    try:
        return _validate_record(record)
    except ValidationError as e:
        raise ValidationError(f"records[{index}]: {e}") from e


def validate_batch(records: Sequence[RecordLike]) -> list[IngredientRecord]:
    """Validate every record up front; raise on the first invalid one."""
    if isinstance(records, (str, bytes)) or not isinstance(records, Sequence):
        raise ValidationError("records must be a list of ingredient records")
    if not records:
        raise ValidationError("records must contain at least one record")
    return [_coerce_record(raw, i) for i, raw in enumerate(records)]


# ------------------------------------------------------------------
# Construction
# ------------------------------------------------------------------


def build_embedding_service(
    settings: Settings,
    embedder: BaseEmbedder | None = None,
    vector_store: BaseVectorStore | None = None,
) -> EmbeddingService:
    """Build the service from settings; explicit collaborators take precedence.

    The collection follows ``settings.environment`` so test runs use the
    test collection.
    """
    if embedder is None:
        from recipeai.rag.embeddings.embedder_factory import create_embedder
        embedder = create_embedder(settings)
    if vector_store is None:
        from recipeai.rag.vector_store.vector_store_factory import create_vector_store
        vector_store = create_vector_store(settings)

    return EmbeddingService(
        embedder=embedder,
        vector_store=vector_store,
        collection=settings.active_collection,
        query_instruction=settings.embedding_query_instruction,
        concurrency=settings.embedding_concurrency,
    )
