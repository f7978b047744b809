# src/rag/models.py - v1
"""Records exchanged between the embedding service and vector stores."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class StoredRecord(BaseModel):
    """A stored vector entry as returned by a metadata-filtered get."""

    id: str
    document: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)


class SearchResult(BaseModel):
    """One ranked hit from a similarity query."""

    id: str
    document: str = ""
    score: float
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def recipe_id(self) -> str:
        return str(self.metadata.get("recipe_id", ""))
