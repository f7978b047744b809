# src/config/settings.py - v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for all deployment-specific settings.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Instruction mxbai-embed-large expects in front of retrieval queries.
MXBAI_QUERY_INSTRUCTION = "Represent this sentence for searching relevant passages: "


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Deployment ===
    environment: Literal["production", "test"] = "production"

    # === EMBEDDINGS ===
    embedding_provider: Literal["ollama", "openai", "deterministic"] = "ollama"
    embedding_model: str = "mxbai-embed-large"
    embedding_dimensions: int = 1024
    # Empty string disables the query prefix.
    embedding_query_instruction: str = MXBAI_QUERY_INSTRUCTION
    embedding_concurrency: int = 8
    embedding_timeout_s: float = 30.0
    ollama_base_url: str = "http://localhost:11434"
    openai_api_key: str = ""

    # === Vector database ===
    vector_db_type: Literal["memory", "chromadb"] = "chromadb"
    vector_db_path: Path = Path("~/.recipeai/vectordb")
    vector_db_url: str = ""
    collection_name: str = "ingredients"
    test_collection_name: str = "ingredients_test"

    # === HTTP API ===
    api_host: str = "0.0.0.0"
    api_port: int = 3100
    default_search_limit: int = 3

    # === Bulk import ===
    import_source_url: str = "http://localhost:3000"
    import_page_size: int = 50
    import_chunk_size: int = 10
    import_max_retries: int = 3
    import_retry_delay_s: float = 1.0
    import_chunk_pause_s: float = 0.2

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("embedding_concurrency", "import_chunk_size", "import_page_size")
    @classmethod
    def validate_positive(cls, v: int, info) -> int:  # noqa: N805
        if v < 1:
            raise ValueError(f"{info.field_name} must be >= 1")
        return v

    @field_validator("import_max_retries")
    @classmethod
    def validate_max_retries(cls, v: int) -> int:  # noqa: N805
        if v < 0:
            raise ValueError("import_max_retries must be >= 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.embedding_provider == "openai" and not self.openai_api_key:
            errors.append("EMBEDDING_PROVIDER=openai requires OPENAI_API_KEY")

        if self.collection_name == self.test_collection_name:
            errors.append(
                "COLLECTION_NAME and TEST_COLLECTION_NAME must differ"
            )

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def active_collection(self) -> str:
        """Collection used by this deployment; tests never touch production data."""
        if self.environment == "test":
            return self.test_collection_name
        return self.collection_name


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or CLI flags).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
