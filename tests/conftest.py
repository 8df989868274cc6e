"""Shared fixtures: activity factory, an in-memory store double and a SQLite-backed store."""
from __future__ import annotations

from datetime import datetime, timedelta

import pytest
import pytest_asyncio

from activitymind.database import build_engine, build_session_factory, init_db
from activitymind.schemas.activity import Activity, ActivityCreate, HistoryEntry
from activitymind.services.catalog_store import CatalogStore


def _make_activity(activity_id: int, **overrides) -> Activity:
    fields = {
        "id": activity_id,
        "name": f"Activity {activity_id}",
        "description": "A team activity",
        "category": "Team Bonding",
        "steps": '["Gather", "Play"]',
        "materials": '["None"]',
        "estimated_cost": "Low",
        "duration": "30 min",
        "difficulty": "Easy",
        "prep_time": "None",
        "min_employees": 2,
        "max_employees": 50,
        "indoor_outdoor": "Indoor",
        "remote_compatible": False,
    }
    fields.update(overrides)
    return Activity(**fields)


class FakeCatalogStore:
    """In-memory store double that records generation-log writes."""

    def __init__(self, activities: list[Activity] | None = None, recent_ids: list[int] | None = None):
        self.activities = list(activities or [])
        now = datetime.now()
        self.history = [
            HistoryEntry(id=i + 1, activity_id=aid, scheduled_date=now - timedelta(days=i + 1))
            for i, aid in enumerate(recent_ids or [])
        ]
        self.logged: list[int] = []
        self.inserted: list[ActivityCreate] = []
        self.failing_log_ids: set[int] = set()

    async def list_all_activities(self) -> list[Activity]:
        return list(self.activities)

    async def list_recent_history(self, days: int = 30) -> list[HistoryEntry]:
        return list(self.history)

    async def append_generation_log(self, activity_id: int) -> None:
        if activity_id in self.failing_log_ids:
            raise RuntimeError("database is locked")
        self.logged.append(activity_id)

    async def insert_custom_activity(self, activity: ActivityCreate) -> Activity:
        self.inserted.append(activity)
        return Activity(**activity.model_dump(), id=1000 + len(self.inserted), is_custom=True)


@pytest.fixture
def make_activity():
    return _make_activity


@pytest.fixture
def fake_store_factory():
    return FakeCatalogStore


@pytest_asyncio.fixture
async def store(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'activitymind.db'}")
    await init_db(engine)
    yield CatalogStore(build_session_factory(engine))
    await engine.dispose()
