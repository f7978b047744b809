# src/importer/importer.py - v1
"""Chunked bulk ingestion with per-chunk retry.

Each chunk is one ``add_ingredients_batch`` call, which is all-or-nothing.
A chunk that exhausts its retries is logged and skipped so the remaining
chunks still proceed; the report lists what failed.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Awaitable, Callable

from recipeai.core.errors import ValidationError
from recipeai.importer.recipes import chunk_records
from recipeai.importer.retry import RetryConfig, RetryExhausted, with_retry

if TYPE_CHECKING:
    from recipeai.core.models import IngredientRecord
    from recipeai.services.embedding_service import EmbeddingService

logger = logging.getLogger(__name__)


@dataclass
class ImportReport:
    """Outcome of a bulk import."""

    ids: list[str] = field(default_factory=list)
    total_records: int = 0
    total_chunks: int = 0
    successful_chunks: int = 0
    failed_chunks: list[int] = field(default_factory=list)
    elapsed_s: float = 0.0

    @property
    def complete(self) -> bool:
        return not self.failed_chunks

    def summary(self) -> str:
        return (
            f"records={self.total_records} uploaded={len(self.ids)} "
            f"chunks={self.successful_chunks}/{self.total_chunks} "
            f"elapsed={self.elapsed_s:.2f}s"
        )


async def import_records(
    service: EmbeddingService,
    records: list[IngredientRecord],
    chunk_size: int = 10,
    retry_config: RetryConfig | None = None,
    pause_s: float = 0.0,
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
) -> ImportReport:
    """Upload ``records`` in chunks through the embedding service.

    Args:
        service: Target embedding service.
        records: Validated ingredient records.
        chunk_size: Records per add_ingredients_batch call.
        retry_config: Backoff policy per chunk.
        pause_s: Pause between chunks to avoid overwhelming the provider.
        sleep: Awaitable sleep, injectable for tests.
    """
    started = time.monotonic()
    report = ImportReport(total_records=len(records))
    if not records:
        logger.warning("No valid records to upload")
        return report

    chunks = chunk_records(records, chunk_size)
    report.total_chunks = len(chunks)
    logger.info("Uploading %d records in %d chunks", len(records), len(chunks))

    for index, chunk in enumerate(chunks):
        label = f"chunk {index + 1}/{len(chunks)}"
        try:
            ids = await with_retry(
                service.add_ingredients_batch, chunk,
                label=label, config=retry_config, sleep=sleep,
            )
        except (RetryExhausted, ValidationError) as e:
            logger.error("Skipping %s: %s", label, e)
            report.failed_chunks.append(index)
        else:
            report.ids.extend(ids)
            report.successful_chunks += 1
            logger.debug("Uploaded %s (%d ids)", label, len(ids))

        if pause_s > 0 and index < len(chunks) - 1:
            await sleep(pause_s)

    report.elapsed_s = time.monotonic() - started
    logger.info("Import finished: %s", report.summary())
    return report
