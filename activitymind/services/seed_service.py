"""Built-in activity bank: YAML loading and catalog seeding."""
from __future__ import annotations

import logging
from pathlib import Path

import yaml

from activitymind.config import settings
from activitymind.schemas.activity import ActivityCreate
from activitymind.services.catalog_store import CatalogStore
from activitymind.services.recommend.shared import dump_list

logger = logging.getLogger(__name__)


def load_builtin_activities(path: Path | None = None) -> list[ActivityCreate]:
    """Load the built-in bank; steps/materials lists are serialized for storage."""
    seed_file = path or settings.SEED_FILE
    if not seed_file.exists():
        logger.warning("Seed file not found: %s", seed_file)
        return []

    with open(seed_file, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return []

    activities: list[ActivityCreate] = []
    for entry in data.get("activities", []):
        entry = dict(entry)
        entry["steps"] = dump_list(entry.get("steps") or [])
        entry["materials"] = dump_list(entry.get("materials") or [])
        activities.append(ActivityCreate.model_validate(entry))

    logger.info("Loaded %d built-in activities from %s", len(activities), seed_file)
    return activities


async def seed_catalog(store: CatalogStore, path: Path | None = None) -> int:
    return await store.seed_builtin_activities(load_builtin_activities(path))
