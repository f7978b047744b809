# src/rag/embeddings/base_embedder.py - v2
"""Abstract embeddings interface.

An embedder is stateless from the caller's point of view: one text in,
one fixed-length vector out. Failures surface as ProviderError.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class BaseEmbedder(ABC):
    """Unified interface for all embedding providers."""

    @abstractmethod
    async def embed_text(self, text: str) -> list[float]:
        """Embed a single document text into a vector."""

    async def embed_query(self, query: str, instruction: str = "") -> list[float]:
        """Embed a search query, prefixed with ``instruction`` when given.

        Asymmetric retrieval models (e.g. mxbai-embed-large) rank better when
        queries carry an instruction that documents do not.
        """
        return await self.embed_text(f"{instruction}{query}" if instruction else query)

    @property
    @abstractmethod
    def dimensions(self) -> int:
        """Output vector dimensions."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identifier."""

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Model identifier."""
