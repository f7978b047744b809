# src/rag/embeddings/ollama_embedder.py - v2
"""Ollama embedding adapter (local inference).

Uses the ollama Python SDK's async client.
Models: mxbai-embed-large, nomic-embed-text, etc.
"""

from __future__ import annotations

import logging

from recipeai.core.errors import ProviderError
from recipeai.rag.embeddings.base_embedder import BaseEmbedder

logger = logging.getLogger(__name__)


class OllamaEmbedder(BaseEmbedder):
    """Local embeddings via Ollama API."""

    def __init__(
        self,
        model: str = "mxbai-embed-large",
        base_url: str = "http://localhost:11434",
        dimensions: int = 1024,
        timeout_s: float | None = 30.0,
    ) -> None:
        self._model_name = model
        self._base_url = base_url.rstrip("/")
        self._dimensions = dimensions
        self._timeout_s = timeout_s
        self.__client = None

    @property
    def _client(self):
        if self.__client is None:
            try:
                import ollama
            except ImportError as e:
                raise ImportError(
                    "ollama package required: pip install ollama"
                ) from e
            self.__client = ollama.AsyncClient(host=self._base_url, timeout=self._timeout_s)
        return self.__client

    async def embed_text(self, text: str) -> list[float]:
        """Call the Ollama embed endpoint for a single text."""
        client = self._client
        try:
            response = await client.embed(model=self._model_name, input=text)
        except Exception as e:
            raise ProviderError(
                f"Ollama embedding failed for model {self._model_name}: {e}",
                provider=self.provider_name,
                model=self._model_name,
            ) from e

        embeddings = response["embeddings"]
        if not embeddings:
            raise ProviderError(
                f"Ollama returned no embeddings for model {self._model_name}",
                provider=self.provider_name,
                model=self._model_name,
            )
        return list(embeddings[0])

    @property
    def dimensions(self) -> int:
        return self._dimensions

    @property
    def provider_name(self) -> str:
        return "ollama"

    @property
    def model_name(self) -> str:
        return self._model_name
