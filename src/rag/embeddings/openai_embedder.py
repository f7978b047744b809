# src/rag/embeddings/openai_embedder.py - v2
"""OpenAI embedding adapter.

Uses the openai SDK for embedding generation.
Models: text-embedding-3-small, text-embedding-3-large.
"""

from __future__ import annotations

import logging

from recipeai.core.errors import ProviderError
from recipeai.rag.embeddings.base_embedder import BaseEmbedder

logger = logging.getLogger(__name__)


class OpenAIEmbedder(BaseEmbedder):
    """Embeddings via OpenAI API."""

    def __init__(
        self,
        model: str = "text-embedding-3-small",
        api_key: str | None = None,
        dimensions: int = 1536,
        timeout_s: float | None = 30.0,
    ) -> None:
        self._model = model
        self._api_key = api_key
        self._dimensions = dimensions
        self._timeout_s = timeout_s
        self.__client = None

    @property
    def _client(self):
        if self.__client is None:
            try:
                import openai
            except ImportError as e:
                raise ImportError(
                    "openai package required: pip install openai"
                ) from e
            self.__client = openai.AsyncOpenAI(
                api_key=self._api_key or "", timeout=self._timeout_s
            )
        return self.__client

    async def embed_text(self, text: str) -> list[float]:
        """Embed one text via the embeddings endpoint."""
        client = self._client
        try:
            response = await client.embeddings.create(input=[text], model=self._model)
        except Exception as e:
            raise ProviderError(
                f"OpenAI embedding failed for model {self._model}: {e}",
                provider=self.provider_name,
                model=self._model,
            ) from e
        return list(response.data[0].embedding)

    @property
    def dimensions(self) -> int:
        return self._dimensions

    @property
    def provider_name(self) -> str:
        return "openai"

    @property
    def model_name(self) -> str:
        return self._model
