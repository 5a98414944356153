# src/main.py — v3
"""CLI entry point: get, set, delete, flush, inspect commands.

Usage:
    ttlfilecache [--base-dir DIR | --identifier NAME] get <key>
    ttlfilecache set <key> <value> [--ttl SECONDS]
    ttlfilecache delete <key> [<key> ...]
    ttlfilecache flush
    ttlfilecache inspect <key>

Values given to ``set`` are parsed as JSON when possible and stored as the
raw string otherwise.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

from ttlfilecache.version import __version__

if TYPE_CHECKING:
    from ttlfilecache.cache.file_store import FileCacheStore
    from ttlfilecache.config.settings import Settings

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    from ttlfilecache.cache.cache_factory import create_cache_store

    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        settings = _load_cli_settings(args)
        _setup_logging(settings, args.verbose)
        store = create_cache_store(settings)
        return asyncio.run(args.func(args, store))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="ttlfilecache",
        description=f"ttlfilecache v{__version__}: file-backed TTL cache",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--base-dir", type=Path, default=None,
        help="Cache directory (default: CACHE_BASE_DIRECTORY)",
    )
    parser.add_argument(
        "--identifier", default=None,
        help="Use <tmpdir>/<identifier> as cache directory",
    )
    parser.add_argument(
        "--max-retries", type=int, default=None,
        help="Polling rounds before a read gives up (0 = no waiting)",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- get ---
    p_get = subparsers.add_parser("get", help="Print a cached value")
    p_get.add_argument("cache_key", help="Cache key")
    p_get.set_defaults(func=_cmd_get)

    # --- set ---
    p_set = subparsers.add_parser("set", help="Store a value")
    p_set.add_argument("cache_key", help="Cache key")
    p_set.add_argument("value", help="Value (JSON or plain string)")
    p_set.add_argument(
        "--ttl", type=float, default=None,
        help="Time to live in seconds (default: CACHE_DEFAULT_EXPIRATION_S)",
    )
    p_set.set_defaults(func=_cmd_set)

    # --- delete ---
    p_delete = subparsers.add_parser("delete", help="Remove entries")
    p_delete.add_argument("cache_keys", nargs="+", help="Cache keys")
    p_delete.set_defaults(func=_cmd_delete)

    # --- flush ---
    p_flush = subparsers.add_parser("flush", help="Remove every entry")
    p_flush.set_defaults(func=_cmd_flush)

    # --- inspect ---
    p_inspect = subparsers.add_parser(
        "inspect", help="Show entry status and timestamps without waiting",
    )
    p_inspect.add_argument("cache_key", help="Cache key")
    p_inspect.set_defaults(func=_cmd_inspect)

    return parser


async def _cmd_get(args: argparse.Namespace, store: FileCacheStore) -> int:
    """Print the value stored under a key."""
    value = await store.get(args.cache_key)
    if value is None:
        logger.info("No value for key %s", args.cache_key)
        return 1
    print(_render(value))
    return 0


async def _cmd_set(args: argparse.Namespace, store: FileCacheStore) -> int:
    """Store a value under a key."""
    await store.set(args.cache_key, _parse_value(args.value), args.ttl)
    return 0


async def _cmd_delete(args: argparse.Namespace, store: FileCacheStore) -> int:
    """Delete one or more keys."""
    count = await store.delete(args.cache_keys)
    print(f"Removed {count} of {len(set(args.cache_keys))} entries")
    return 0


async def _cmd_flush(args: argparse.Namespace, store: FileCacheStore) -> int:
    """Remove the whole cache directory."""
    await store.flush()
    print(f"Flushed {store.base_directory}")
    return 0


async def _cmd_inspect(args: argparse.Namespace, store: FileCacheStore) -> int:
    """Display entry status for a key."""
    lookup = await store.lookup(args.cache_key)
    print(f"\nKey:      {args.cache_key}")
    print(f"  File:     {store.path_for(args.cache_key)}")
    print(f"  Status:   {lookup.status}")
    if lookup.entry is not None:
        print(f"  Written:  {_format_ms(lookup.entry.retrieved_at)}")
        print(f"  Expires:  {_format_ms(lookup.entry.expires_at)}")
    return 0 if lookup.is_hit else 1


def _parse_value(raw: str) -> Any:
    """Interpret a CLI value as JSON, falling back to the raw string."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _render(value: Any) -> str:
    """Render a cached value for the terminal."""
    if isinstance(value, str):
        return value
    try:
        return json.dumps(value, ensure_ascii=False, default=repr)
    except ValueError:
        # Circular values
        return repr(value)


def _format_ms(timestamp_ms: int) -> str:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc).isoformat()


def _load_cli_settings(args: argparse.Namespace) -> Settings:
    """Merge CLI flags over environment settings."""
    from ttlfilecache.config.settings import load_settings

    overrides: dict[str, Any] = {}
    if args.base_dir is not None:
        overrides["cache_base_directory"] = args.base_dir
    if args.identifier is not None:
        overrides["cache_identifier"] = args.identifier
    if args.max_retries is not None:
        overrides["cache_max_retries"] = args.max_retries
    if args.verbose:
        overrides["cache_verbose_logging"] = True
    return load_settings(**overrides)


def _setup_logging(settings: Settings, verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from ttlfilecache.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )


if __name__ == "__main__":
    sys.exit(main())
