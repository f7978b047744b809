# src/importer/recipes.py - v1
"""Recipe sources for bulk import and their conversion into ingredient records.

A recipe is a mapping with at least ``id`` and ``ingredients`` (a list of
strings). Sources: a local JSON file, or an upstream recipes API paged by
cursor (``GET /recipes?limit=N&cursor=C`` returning
``{"data": [...], "pagination": {"next_cursor": ..., "has_more": ...}}``).
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable

import httpx

from recipeai.core.models import IngredientRecord
from recipeai.importer.retry import RetryConfig, with_retry

logger = logging.getLogger(__name__)


class RecipeSourceError(Exception):
    """Upstream recipe data could not be read or has an unexpected shape."""


def has_valid_ingredients(recipe: Any) -> bool:
    """True if the recipe carries a non-empty list of ingredients."""
    if not isinstance(recipe, dict):
        return False
    ingredients = recipe.get("ingredients")
    return isinstance(ingredients, list) and len(ingredients) > 0


def prepare_ingredient_records(recipes: list[dict[str, Any]]) -> list[IngredientRecord]:
    """Turn recipes into records, joining each ingredient list with ', '."""
    valid = [r for r in recipes if has_valid_ingredients(r) and r.get("id") is not None]
    if len(valid) < len(recipes):
        logger.warning(
            "Filtered out %d recipes without valid ingredients", len(recipes) - len(valid)
        )
    return [
        IngredientRecord(
            recipe_id=str(r["id"]),
            ingredients=", ".join(str(i) for i in r["ingredients"]),
        )
        for r in valid
    ]


def chunk_records(records: list[Any], chunk_size: int) -> list[list[Any]]:
    """Split records into consecutive chunks of at most ``chunk_size``."""
    if chunk_size < 1:
        raise ValueError("chunk_size must be >= 1")
    return [records[i:i + chunk_size] for i in range(0, len(records), chunk_size)]


def load_recipes_file(path: str | Path) -> list[dict[str, Any]]:
    """Read recipes from a JSON file holding a list or a ``{"data": [...]}`` object."""
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise RecipeSourceError(f"Cannot read recipes from {path}: {e}") from e

    if isinstance(payload, dict):
        payload = payload.get("data")
    if not isinstance(payload, list):
        raise RecipeSourceError(
            f"{path} must contain a JSON list of recipes or an object with a 'data' list"
        )
    return payload


async def fetch_recipes_page(
    client: httpx.AsyncClient,
    limit: int,
    cursor: str | None = None,
) -> tuple[list[dict[str, Any]], str | None, bool]:
    """Fetch one page; return (recipes, next_cursor, has_more)."""
    params: dict[str, Any] = {"limit": limit}
    if cursor:
        params["cursor"] = cursor

    response = await client.get("/recipes", params=params)
    response.raise_for_status()
    body = response.json()

    if not isinstance(body, dict) or not isinstance(body.get("data"), list):
        raise RecipeSourceError("Invalid response format from recipes API")
    pagination = body.get("pagination") or {}
    return body["data"], pagination.get("next_cursor"), bool(pagination.get("has_more", False))


async def fetch_all_recipes(
    base_url: str,
    page_size: int = 50,
    retry_config: RetryConfig | None = None,
    client: httpx.AsyncClient | None = None,
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
) -> list[dict[str, Any]]:
    """Follow the cursor until the API reports no more pages.

    Each page is retried independently; a page that exhausts its retries
    aborts the fetch.
    """
    owns_client = client is None
    http = client or httpx.AsyncClient(base_url=base_url, timeout=30.0)
    recipes: list[dict[str, Any]] = []
    cursor: str | None = None
    page = 0
    try:
        while True:
            page += 1
            batch, cursor, has_more = await with_retry(
                fetch_recipes_page, http, page_size, cursor,
                label=f"fetch recipes page {page}", config=retry_config, sleep=sleep,
            )
            recipes.extend(batch)
            logger.info("Page %d: %d recipes (total %d)", page, len(batch), len(recipes))
            if not has_more or not cursor:
                break
    finally:
        if owns_client:
            await http.aclose()

    logger.info("Fetched %d recipes in %d pages", len(recipes), page)
    return recipes
