#!/usr/bin/env python3
"""
Yoga Sequence Builder CLI - catalog maintenance.

    python cli.py seed-lookups
    python cli.py import-catalog poses.json
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional


class Colors:
    """ANSI colors for terminal"""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"


def info(msg):
    print(f"{Colors.BLUE}[INFO]{Colors.RESET} {msg}")


def success(msg):
    print(f"{Colors.GREEN}[OK]{Colors.RESET} {msg}")


def warn(msg):
    print(f"{Colors.YELLOW}[WARN]{Colors.RESET} {msg}")


def error(msg):
    print(f"{Colors.RED}[ERROR]{Colors.RESET} {msg}", file=sys.stderr)


async def seed_lookups() -> int:
    from db.database import AsyncSessionLocal, seed_lookup_tables

    async with AsyncSessionLocal() as session:
        added = await seed_lookup_tables(session)
        await session.commit()

    if added:
        success(f"Added {added} lookup rows")
    else:
        info("Lookup tables already up to date")
    return 0


async def import_catalog(path: Path) -> int:
    from db.database import AsyncSessionLocal
    from services.catalog_import import CatalogImportError, parse_catalog
    from services.catalog_import import import_catalog as run_import

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        error(f"File not found: {path}")
        return 1
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        error(f"{path} is not valid JSON: {e}")
        return 1

    try:
        records = parse_catalog(data)
        info(f"Importing {len(records)} poses from {path}...")
        async with AsyncSessionLocal() as session:
            summary = await run_import(session, records)
    except CatalogImportError as e:
        error(str(e))
        for line in e.errors:
            warn(line)
        return 1

    success(
        f"{summary.created} created, {summary.updated} updated, "
        f"{summary.unchanged} unchanged, {summary.versions_created} new versions"
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="yoga-sequences", description="Yoga Sequence Builder - catalog maintenance"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("seed-lookups", help="Insert missing difficulty levels and pose types")

    import_parser = subparsers.add_parser(
        "import-catalog", help="Upsert poses from a JSON file, versioning changed content"
    )
    import_parser.add_argument("file", type=Path, help="JSON list of pose records")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "seed-lookups":
        return asyncio.run(seed_lookups())
    return asyncio.run(import_catalog(args.file))


if __name__ == "__main__":
    sys.exit(main())
