"""Grape catalog seeding script for WineCellar.

Wines can only be linked to grapes that are in the catalog, and nothing in
the web interface adds to it. This script fills it in.

Usage:
    winecellar-grapes                   Add the built-in list of varietals
    winecellar-grapes Nebbiolo Barbera  Add specific names
    winecellar-grapes --list            Show the current catalog
    winecellar-grapes --dry-run         Show what would be added
"""

import argparse
import asyncio
import sys

from winecellar.config import get_settings
from winecellar.database import close_db, init_db
from winecellar.errors import ConfigurationError
from winecellar.services import cellar_store

COMMON_VARIETIES = (
    "Aglianico",
    "Albariño",
    "Barbera",
    "Cabernet Franc",
    "Cabernet Sauvignon",
    "Carménère",
    "Chardonnay",
    "Chenin Blanc",
    "Corvina",
    "Dolcetto",
    "Gamay",
    "Garnacha",
    "Gewürztraminer",
    "Grenache",
    "Grüner Veltliner",
    "Malbec",
    "Merlot",
    "Mourvèdre",
    "Nebbiolo",
    "Petit Verdot",
    "Pinot Grigio",
    "Pinot Noir",
    "Primitivo",
    "Riesling",
    "Sangiovese",
    "Sauvignon Blanc",
    "Sémillon",
    "Syrah",
    "Tempranillo",
    "Touriga Nacional",
    "Viognier",
    "Zinfandel",
)


async def list_catalog(url: str) -> list[str]:
    """Names currently in the grape catalog."""
    db = await init_db(url)
    try:
        async with db.session() as session:
            grapes = await cellar_store.list_catalog_grapes(session)
    finally:
        await close_db(db)
    return [grape["name"] for grape in grapes]


async def seed_grapes(url: str, names: list[str], dry_run: bool = False) -> list[str]:
    """Add ``names`` to the catalog, skipping those already present.

    Returns:
        The names added, or that would be added on a dry run.
    """
    if dry_run:
        existing = set(await list_catalog(url))
        return [name for name in dict.fromkeys(names) if name not in existing]

    db = await init_db(url)
    try:
        async with db.session() as session:
            return await cellar_store.add_catalog_grapes(session, names)
    finally:
        await close_db(db)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Seed the WineCellar grape catalog",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "names",
        nargs="*",
        metavar="NAME",
        help="Grape names to add (default: built-in list of common varietals)",
    )
    parser.add_argument(
        "--list", "-l",
        action="store_true",
        help="List the current catalog and exit",
    )
    parser.add_argument(
        "--dry-run", "-n",
        action="store_true",
        help="Show what would be added without writing",
    )
    args = parser.parse_args(argv)

    try:
        url = get_settings().database_url
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.list:
        names = asyncio.run(list_catalog(url))
        if not names:
            print("Grape catalog is empty")
        for name in names:
            print(name)
        return 0

    names = [name.strip() for name in args.names if name.strip()] or list(COMMON_VARIETIES)
    added = asyncio.run(seed_grapes(url, names, dry_run=args.dry_run))

    prefix = "[DRY RUN] Would add" if args.dry_run else "Added"
    for name in added:
        print(f"  {prefix}: {name}")
    skipped = len(set(names)) - len(added)
    print(f"{len(added)} added, {skipped} already present")
    return 0


if __name__ == "__main__":
    sys.exit(main())
