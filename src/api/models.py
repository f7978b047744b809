# src/api/models.py - v2
"""Request and response bodies for the HTTP API.

Request fields are optional at the schema level so that missing values
reach the service and come back with its validation message.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from recipeai.core.models import IngredientMatch


class AddIngredientsRequest(BaseModel):
    recipe_id: str | None = None
    ingredients: str | None = None


class AddIngredientsBatchRequest(BaseModel):
    records: list[dict[str, Any]] = Field(default_factory=list)


class SearchIngredientsRequest(BaseModel):
    ingredients: str | None = None
    limit: int | None = Field(default=None, ge=1)


class AddIngredientsResponse(BaseModel):
    success: bool = True
    message: str
    id: str


class AddIngredientsBatchResponse(BaseModel):
    success: bool = True
    message: str
    ids: list[str]


class SearchIngredientsResponse(BaseModel):
    success: bool = True
    results: list[IngredientMatch]


class DeleteIngredientsResponse(BaseModel):
    success: bool = True
    message: str
    deletedCount: int  # noqa: N815


class ErrorResponse(BaseModel):
    success: bool = False
    error: str


class HealthStatus(BaseModel):
    status: str = "ok"
    timestamp: datetime
    collection: str
    documents: int | None = None
