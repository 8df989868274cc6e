"""Create the database schema and seed the built-in activity bank.

Usage:
    python scripts/seed_catalog.py                         # Seed from the bundled YAML
    python scripts/seed_catalog.py --file my_bank.yaml     # Seed from a custom file
    python scripts/seed_catalog.py --dry-run               # Only validate the YAML
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections import Counter
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from activitymind.database import async_session_factory, engine, init_db  # noqa: E402
from activitymind.services.catalog_store import CatalogStore  # noqa: E402
from activitymind.services.seed_service import load_builtin_activities, seed_catalog  # noqa: E402

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("seed_catalog")


async def main(args: argparse.Namespace) -> None:
    path = Path(args.file) if args.file else None

    if args.dry_run:
        activities = load_builtin_activities(path)
        by_category = Counter(a.category for a in activities)
        print(f"Loaded {len(activities)} activities")
        for category, n in sorted(by_category.items()):
            print(f"  {category:<15} {n}")
        return

    await init_db()
    store = CatalogStore(async_session_factory)
    inserted = await seed_catalog(store, path)
    total = len(await store.list_all_activities())
    logger.info("Seed complete: %d inserted, %d activities in catalog", inserted, total)
    await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the built-in activity bank")
    parser.add_argument("--file", metavar="PATH", help="YAML file to seed from")
    parser.add_argument("--dry-run", action="store_true", help="Validate the YAML without writing")
    asyncio.run(main(parser.parse_args()))
