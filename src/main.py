# src/main.py - v3
"""CLI entry point: serve, import, search, delete, status commands.

Usage:
    recipeai serve [--host HOST] [--port PORT]
    recipeai import (--file recipes.json | --source-url URL)
    recipeai search <query> [--limit N]
    recipeai delete (--recipe-id ID | --all) [--yes]
    recipeai status
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import uuid
from pathlib import Path

from recipeai.config.settings import Settings, load_settings
from recipeai.logging.context import set_request_context
from recipeai.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    settings = load_settings()
    _setup_logging(settings, args.verbose)
    set_request_context(f"cli-{uuid.uuid4().hex[:8]}")

    try:
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="recipeai",
        description=f"recipe-ai v{__version__}: ingredient similarity search",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- serve ---
    p_serve = subparsers.add_parser("serve", help="Run the HTTP API")
    p_serve.add_argument("--host", default=None, help="Bind address (default: API_HOST)")
    p_serve.add_argument("--port", type=int, default=None, help="Port (default: API_PORT)")
    p_serve.set_defaults(func=_cmd_serve)

    # --- import ---
    p_import = subparsers.add_parser(
        "import", help="Bulk-import recipe ingredients",
    )
    source = p_import.add_mutually_exclusive_group(required=True)
    source.add_argument("--file", type=Path, help="JSON file with recipes")
    source.add_argument(
        "--source-url", default=None,
        help="Upstream recipes API base URL (default: IMPORT_SOURCE_URL)",
        nargs="?", const="",
    )
    p_import.add_argument(
        "--chunk-size", type=int, default=None,
        help="Records per batch call (default: IMPORT_CHUNK_SIZE)",
    )
    p_import.set_defaults(func=_cmd_import)

    # --- search ---
    p_search = subparsers.add_parser("search", help="Search similar ingredients")
    p_search.add_argument("query", help="Ingredient query text")
    p_search.add_argument("--limit", type=int, default=None, help="Max results")
    p_search.set_defaults(func=_cmd_search)

    # --- delete ---
    p_delete = subparsers.add_parser("delete", help="Delete stored ingredients")
    target = p_delete.add_mutually_exclusive_group(required=True)
    target.add_argument("--recipe-id", default=None, help="Delete one recipe's ingredients")
    target.add_argument("--all", action="store_true", help="Delete every document")
    p_delete.add_argument("-y", "--yes", action="store_true", help="Skip confirmation")
    p_delete.set_defaults(func=_cmd_delete)

    # --- status ---
    p_status = subparsers.add_parser("status", help="Show collection status")
    p_status.set_defaults(func=_cmd_status)

    return parser


def _service(settings: Settings):
    from recipeai.services.embedding_service import build_embedding_service
    return build_embedding_service(settings)


async def _cmd_serve(args: argparse.Namespace, settings: Settings) -> int:
    """Run the API under uvicorn until interrupted."""
    import uvicorn

    from recipeai.api.app import create_app

    app = create_app(settings)
    config = uvicorn.Config(
        app,
        host=args.host or settings.api_host,
        port=args.port or settings.api_port,
        log_config=None,
    )
    await uvicorn.Server(config).serve()
    return 0


async def _cmd_import(args: argparse.Namespace, settings: Settings) -> int:
    """Load recipes, convert them to records and upload in chunks."""
    from recipeai.importer.importer import import_records
    from recipeai.importer.recipes import (
        fetch_all_recipes,
        load_recipes_file,
        prepare_ingredient_records,
    )
    from recipeai.importer.retry import RetryConfig

    retry_config = RetryConfig.from_settings(settings)
    if args.file is not None:
        recipes = load_recipes_file(args.file)
    else:
        recipes = await fetch_all_recipes(
            args.source_url or settings.import_source_url,
            page_size=settings.import_page_size,
            retry_config=retry_config,
        )

    if not recipes:
        print("No recipes found to import")
        return 0

    records = prepare_ingredient_records(recipes)
    service = _service(settings)
    report = await import_records(
        service,
        records,
        chunk_size=args.chunk_size or settings.import_chunk_size,
        retry_config=retry_config,
        pause_s=settings.import_chunk_pause_s,
    )

    print("\nImport summary:")
    print(f"  Recipes processed:  {len(recipes)}")
    print(f"  Records uploaded:   {len(report.ids)}")
    print(f"  Chunks:             {report.successful_chunks}/{report.total_chunks} successful")
    print(f"  Duration:           {report.elapsed_s:.2f}s")
    return 0 if report.complete else 1


async def _cmd_search(args: argparse.Namespace, settings: Settings) -> int:
    """Print the closest stored ingredient strings."""
    service = _service(settings)
    results = await service.search_with_scores(
        args.query, settings.default_search_limit if args.limit is None else args.limit,
    )
    if not results:
        print("No matches")
        return 0
    for rank, hit in enumerate(results, start=1):
        print(f"{rank:2d}. [{hit.score:.4f}] {hit.recipe_id}: {hit.document}")
    return 0


async def _cmd_delete(args: argparse.Namespace, settings: Settings) -> int:
    """Delete one recipe's documents, or everything after confirmation."""
    service = _service(settings)
    if args.all:
        if not args.yes and not _confirm(
            f"Delete ALL documents from collection '{service.collection}'? [y/N] "
        ):
            print("Aborted")
            return 1
        removed = await service.clear_collection()
        print(f"Deleted {removed} documents")
        return 0

    removed = await service.delete_ingredients_by_recipe_id(args.recipe_id)
    print(f"Deleted {removed} documents for recipe {args.recipe_id}")
    return 0


async def _cmd_status(args: argparse.Namespace, settings: Settings) -> int:
    """Display collection and provider details."""
    service = _service(settings)
    total = await service.count()
    print(f"\nStatus for collection '{service.collection}':")
    print(f"  Vector store:  {service.vector_store.provider_name}")
    print(f"  Embedder:      {service.embedder.provider_name}/{service.embedder.model_name}")
    print(f"  Documents:     {total}")
    return 0


def _confirm(prompt: str) -> bool:
    return input(prompt).strip().lower() in ("y", "yes")


def _setup_logging(settings: Settings, verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from recipeai.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )
    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
