# src/core/models.py - v1
"""Shared Pydantic domain models used across modules.

No module redefines these types; all imports come from core.models.
"""

from __future__ import annotations

import uuid

from pydantic import BaseModel, Field

# Document ids look like "ing_<32 hex chars>".
DOCUMENT_ID_PREFIX = "ing_"


def generate_document_id() -> str:
    """Return a fresh document id, unique across the process lifetime."""
    return f"{DOCUMENT_ID_PREFIX}{uuid.uuid4().hex}"


# === INGESTION ===


class IngredientRecord(BaseModel):
    """One (recipe_id, ingredients) pair submitted for ingestion."""

    recipe_id: str
    ingredients: str


class Document(BaseModel):
    """Unit of storage: one embedded ingredient string owned by a recipe."""

    id: str = Field(default_factory=generate_document_id)
    recipe_id: str
    ingredients: str
    embedding: list[float]

    def metadata(self) -> dict[str, str]:
        """Metadata attached to the stored vector."""
        return {"recipe_id": self.recipe_id}


# === SEARCH ===


class IngredientMatch(BaseModel):
    """Search hit returned to callers, most similar first."""

    recipe_id: str
    ingredients: str
