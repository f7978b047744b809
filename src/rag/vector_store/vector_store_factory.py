# src/rag/vector_store/vector_store_factory.py - v3
"""Factory: instantiate vector store from configuration."""

from __future__ import annotations

import logging
from urllib.parse import urlsplit

from recipeai.config.settings import Settings
from recipeai.rag.vector_store.base_vector_store import BaseVectorStore

logger = logging.getLogger(__name__)

_DEFAULT_PORTS = {"http": 8000, "https": 443}


class UnsupportedVectorStoreError(ValueError):
    """Raised when a vector store type is not supported."""


def create_vector_store(settings: Settings) -> BaseVectorStore:
    """Instantiate the configured vector store.

    Args:
        settings: Application settings (VECTOR_DB_TYPE, VECTOR_DB_URL, VECTOR_DB_PATH).

    Returns:
        Configured BaseVectorStore instance.

    Raises:
        UnsupportedVectorStoreError: If type is not supported.
    """
    db_type = settings.vector_db_type

    if db_type == "memory":
        from recipeai.rag.vector_store.memory_store import MemoryVectorStore
        return MemoryVectorStore()

    if db_type == "chromadb":
        from recipeai.rag.vector_store.chromadb_store import ChromaDBStore
        url = settings.vector_db_url
        if url:
            host, port, ssl = parse_store_url(url)
            logger.debug("Using remote chromadb at %s:%d (ssl=%s)", host, port, ssl)
            return ChromaDBStore(host=host, port=port, ssl=ssl)
        return ChromaDBStore(persist_path=settings.vector_db_path.expanduser())

    raise UnsupportedVectorStoreError(
        f"Unsupported vector store type: {db_type!r}. "
        f"Available: memory, chromadb"
    )


def parse_store_url(url: str) -> tuple[str, int, bool]:
    """Split a store URL into (host, port, ssl).

    A bare 'host' or 'host:port' is treated as http. The port defaults to
    8000 for http and 443 for https.
    """
    if "://" not in url:
        url = f"http://{url}"
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    if scheme not in _DEFAULT_PORTS:
        raise ValueError(f"Unsupported vector store URL scheme: {scheme!r}")
    if not parts.hostname:
        raise ValueError(f"Vector store URL has no host: {url!r}")
    return parts.hostname, parts.port or _DEFAULT_PORTS[scheme], scheme == "https"
