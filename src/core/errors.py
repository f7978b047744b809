# src/core/errors.py - v1
"""Error taxonomy for the embedding service.

ValidationError is raised before any I/O. ProviderError and StoreError
wrap failures of the embedding provider and the vector store; neither is
retried inside the service.
"""

from __future__ import annotations


class RecipeAIError(Exception):
    """Base class for all recipeai errors."""


class ValidationError(RecipeAIError, ValueError):
    """Malformed or missing input (empty recipe id, empty text, empty batch)."""


class ProviderError(RecipeAIError):
    """Embedding provider call failed (network, model, timeout)."""

    def __init__(self, message: str, provider: str = "unknown", model: str = "") -> None:
        self.provider = provider
        self.model = model
        super().__init__(message)


class StoreError(RecipeAIError):
    """Vector store call failed."""

    def __init__(self, message: str, provider: str = "unknown", operation: str = "") -> None:
        self.provider = provider
        self.operation = operation
        super().__init__(message)
