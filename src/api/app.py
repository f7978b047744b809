# src/api/app.py - v2
"""FastAPI adapter over the embedding service.

Usage:
    uvicorn --factory recipeai.api.app:create_app

The service instance is built once per app and injected into handlers;
handlers only translate HTTP bodies to service calls and back.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, FastAPI, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from recipeai.api.models import (
    AddIngredientsBatchRequest,
    AddIngredientsBatchResponse,
    AddIngredientsRequest,
    AddIngredientsResponse,
    DeleteIngredientsResponse,
    ErrorResponse,
    HealthStatus,
    SearchIngredientsRequest,
    SearchIngredientsResponse,
)
from recipeai.config.settings import Settings
from recipeai.core.errors import ProviderError, StoreError, ValidationError
from recipeai.logging.context import clear_context, set_request_context
from recipeai.services.embedding_service import EmbeddingService, build_embedding_service

logger = logging.getLogger(__name__)

DELETE_ALL_SENTINEL = "*"


def get_service(request: Request) -> EmbeddingService:
    return request.app.state.embedding_service


def create_app(
    settings: Settings | None = None,
    service: EmbeddingService | None = None,
) -> FastAPI:
    """Build the app; ``service`` overrides the one built from settings."""
    settings = settings or Settings()
    service = service or build_embedding_service(settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        await service.initialize()
        logger.info("app.startup collection=%s", service.collection)
        yield
        logger.info("app.shutdown")

    app = FastAPI(title="recipe-ai", lifespan=lifespan)
    app.state.settings = settings
    app.state.embedding_service = service

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        set_request_context(request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12])
        try:
            return await call_next(request)
        finally:
            clear_context()

    @app.exception_handler(ValidationError)
    async def validation_error_handler(_: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=ErrorResponse(error=str(exc)).model_dump(),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(
        _: Request, exc: RequestValidationError,
    ) -> JSONResponse:
        fields = ", ".join(".".join(str(p) for p in err["loc"][1:]) for err in exc.errors())
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=ErrorResponse(error=f"Invalid request body: {fields or 'body'}").model_dump(),
        )

    @app.exception_handler(ProviderError)
    async def provider_error_handler(_: Request, exc: ProviderError) -> JSONResponse:
        logger.error("Embedding provider failure: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(error="Embedding provider failure").model_dump(),
        )

    @app.exception_handler(StoreError)
    async def store_error_handler(_: Request, exc: StoreError) -> JSONResponse:
        logger.error("Vector store failure (%s): %s", exc.operation, exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(error="Vector store failure").model_dump(),
        )

    router = APIRouter(prefix="/ingredients", tags=["ingredients"])

    @router.post("", status_code=status.HTTP_201_CREATED, response_model=AddIngredientsResponse)
    async def add_ingredients(
        payload: AddIngredientsRequest,
        svc: EmbeddingService = Depends(get_service),
    ) -> AddIngredientsResponse:
        doc_id = await svc.add_ingredient(payload.recipe_id, payload.ingredients)  # type: ignore[arg-type]
        return AddIngredientsResponse(message="Ingredients added successfully", id=doc_id)

    @router.post(
        "/batch",
        status_code=status.HTTP_201_CREATED,
        response_model=AddIngredientsBatchResponse,
    )
    async def add_ingredients_batch(
        payload: AddIngredientsBatchRequest,
        svc: EmbeddingService = Depends(get_service),
    ) -> AddIngredientsBatchResponse:
        ids = await svc.add_ingredients_batch(payload.records)
        return AddIngredientsBatchResponse(
            message=f"{len(ids)} ingredient records added successfully", ids=ids,
        )

    @router.post("/search", response_model=SearchIngredientsResponse)
    async def search_ingredients(
        payload: SearchIngredientsRequest,
        svc: EmbeddingService = Depends(get_service),
    ) -> SearchIngredientsResponse:
        limit = settings.default_search_limit if payload.limit is None else payload.limit
        results = await svc.search_similar_ingredients(payload.ingredients, limit)  # type: ignore[arg-type]
        return SearchIngredientsResponse(results=results)

    @router.delete("", response_model=DeleteIngredientsResponse)
    async def delete_ingredients(
        recipe_id: str | None = Query(default=None),
        svc: EmbeddingService = Depends(get_service),
    ) -> DeleteIngredientsResponse:
        if not recipe_id:
            raise ValidationError("recipe_id query parameter is required")
        if recipe_id == DELETE_ALL_SENTINEL:
            count = await svc.clear_collection()
            return DeleteIngredientsResponse(
                message="All ingredients deleted successfully", deletedCount=count,
            )
        count = await svc.delete_ingredients_by_recipe_id(recipe_id)
        return DeleteIngredientsResponse(
            message=f"Ingredients for recipe {recipe_id} deleted successfully",
            deletedCount=count,
        )

    app.include_router(router)

    @app.get("/health", response_model=HealthStatus)
    async def health(svc: EmbeddingService = Depends(get_service)) -> HealthStatus:
        documents: int | None = None
        state = "ok"
        try:
            documents = await svc.count()
        except StoreError as exc:
            logger.warning("health.count_failed: %s", exc)
            state = "degraded"
        return HealthStatus(
            status=state,
            timestamp=datetime.now(timezone.utc),
            collection=svc.collection,
            documents=documents,
        )

    @app.get("/")
    async def root() -> dict:
        return {
            "message": "Ingredients API is running",
            "endpoints": [
                "/ingredients (POST)",
                "/ingredients/batch (POST)",
                "/ingredients/search (POST)",
                "/ingredients?recipe_id=<id|*> (DELETE)",
                "/health (GET)",
                "/docs (GET)",
            ],
        }

    return app
