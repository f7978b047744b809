# src/importer/retry.py - v2
"""Retry with exponential backoff for bulk import orchestration.

The embedding service never retries; callers that need resilience (bulk
import, upstream fetches) wrap their calls with ``with_retry``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from recipeai.core.errors import ValidationError

logger = logging.getLogger(__name__)


class RetryExhausted(Exception):
    """All attempts failed for a retried call."""

    def __init__(self, label: str, attempts: int, last_error: Exception):
        self.label = label
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"'{label}' failed after {attempts} attempts: {last_error}")


@dataclass(frozen=True)
class RetryConfig:
    """Attempt budget and backoff schedule.

    ``max_attempts`` counts the first call. The delay before attempt n+1 is
    ``base_delay_s * backoff_factor ** (n - 1)``.
    """

    max_attempts: int = 3
    base_delay_s: float = 1.0
    backoff_factor: float = 2.0

    @classmethod
    def from_settings(cls, settings: Any) -> RetryConfig:
        return cls(
            max_attempts=max(1, settings.import_max_retries),
            base_delay_s=settings.import_retry_delay_s,
        )


DEFAULT_RETRY_CONFIG = RetryConfig()


def compute_delay(config: RetryConfig, attempt: int) -> float:
    """Delay after the given failed attempt (1-based)."""
    return config.base_delay_s * (config.backoff_factor ** (attempt - 1))


async def with_retry(
    fn: Callable[..., Awaitable[Any]],
    *args: Any,
    label: str = "call",
    config: RetryConfig | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    **kwargs: Any,
) -> Any:
    """Execute an async function, retrying failures with exponential backoff.

    ValidationError is not retried: the same input would fail again.

    Raises:
        RetryExhausted: If every attempt failed.
    """
    cfg = config or DEFAULT_RETRY_CONFIG
    attempt = 0

    while True:
        attempt += 1
        try:
            return await fn(*args, **kwargs)
        except ValidationError:
            raise
        except Exception as e:
            if attempt >= cfg.max_attempts:
                logger.error("'%s' failed after %d attempts: %s", label, attempt, e)
                raise RetryExhausted(label, attempt, e) from e

            delay = compute_delay(cfg, attempt)
            logger.warning(
                "'%s' failed (attempt %d/%d): %s; retrying in %.1fs",
                label, attempt, cfg.max_attempts, e, delay,
            )
            await sleep(delay)
