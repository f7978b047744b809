# src/rag/embeddings/deterministic_embedder.py - v2
"""Deterministic offline embedder for local development and tests.

Distributes the UTF-8 bytes of the text over a fixed number of
dimensions and normalizes to unit length. Identical inputs give identical
vectors. Different inputs can share a vector when their bytes land in the
same buckets, and the geometry is lexical, not semantic.
"""

from __future__ import annotations

import math

from recipeai.rag.embeddings.base_embedder import BaseEmbedder


class DeterministicEmbedder(BaseEmbedder):
    """Hash-free byte-distribution embedder; needs no network or API key."""

    def __init__(self, model: str = "deterministic", dimensions: int = 256) -> None:
        if dimensions < 1:
            raise ValueError("dimensions must be >= 1")
        self._model = model
        self._dimensions = dimensions

    async def embed_text(self, text: str) -> list[float]:
        vec = [0.0] * self._dimensions
        for i, ch in enumerate(text.encode("utf-8")):
            vec[(i * 31 + ch) % self._dimensions] += (ch % 97) / 97.0
        # Empty input stays the zero vector, which scores 0.0 against everything.
        norm = math.sqrt(sum(x * x for x in vec)) or 1.0
        return [x / norm for x in vec]

    @property
    def dimensions(self) -> int:
        return self._dimensions

    @property
    def provider_name(self) -> str:
        return "deterministic"

    @property
    def model_name(self) -> str:
        return self._model
