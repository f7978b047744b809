# src/logging/context.py - v2
"""Contextual logging support: attach request_id, operation, collection to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set per request / per operation.
_request_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)
_operation: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "operation", default=None
)
_collection: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "collection", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    request_id: str | None = None
    operation: str | None = None
    collection: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        request_id=_request_id.get(),
        operation=_operation.get(),
        collection=_collection.get(),
    )


def set_request_context(request_id: str) -> None:
    """Set request-level context (called once per HTTP request or CLI command)."""
    _request_id.set(request_id)


def set_operation_context(operation: str, collection: str | None = None) -> None:
    """Set operation-level context (called per service operation)."""
    _operation.set(operation)
    _collection.set(collection)


def clear_context() -> None:
    """Reset all context variables."""
    _request_id.set(None)
    _operation.set(None)
    _collection.set(None)
