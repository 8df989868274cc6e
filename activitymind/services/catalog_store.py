"""Activity catalog and history ledger backed by SQLAlchemy async sessions.

Every public method opens its own session, so independent reads (and the
per-activity generation-log writes) can run concurrently. The store returns
rows in a stable documented order and never deduplicates on its own.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from activitymind.models import Activity as ActivityRow
from activitymind.models import ActivityHistory, Favorite, GenerationLog
from activitymind.schemas.activity import (
    Activity,
    ActivityCreate,
    FavoriteActivity,
    GenerationLogEntry,
    HistoryEntry,
    UpcomingActivity,
)
from activitymind.services.recommend.shared import (
    normalize_to_noon,
    start_of_month,
)

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset(ActivityCreate.model_fields)


class CatalogStore:
    """Read/write access to activities, history, favorites and the generation log."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    async def list_all_activities(self) -> list[Activity]:
        async with self._session_factory() as session:
            result = await session.execute(select(ActivityRow).order_by(ActivityRow.id))
            return [Activity.model_validate(row) for row in result.scalars()]

    async def list_activities_by_category(self, category: str) -> list[Activity]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(ActivityRow)
                .where(ActivityRow.category == category)
                .order_by(ActivityRow.id)
            )
            return [Activity.model_validate(row) for row in result.scalars()]

    async def list_categories(self) -> list[str]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(ActivityRow.category).distinct().order_by(ActivityRow.category)
            )
            return list(result.scalars())

    async def get_activity(self, activity_id: int) -> Activity | None:
        async with self._session_factory() as session:
            row = await session.get(ActivityRow, activity_id)
            return Activity.model_validate(row) if row else None

    async def insert_custom_activity(self, activity: ActivityCreate) -> Activity:
        async with self._session_factory() as session:
            row = ActivityRow(**activity.model_dump(), is_custom=True)
            session.add(row)
            await session.commit()
            await session.refresh(row)
            logger.info("Inserted custom activity %d (%s)", row.id, row.name)
            return Activity.model_validate(row)

    async def update_activity(self, activity_id: int, **fields: Any) -> Activity | None:
        """Update the given columns. Returns None when the activity does not exist."""
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown activity fields: {sorted(unknown)}")

        async with self._session_factory() as session:
            row = await session.get(ActivityRow, activity_id)
            if row is None:
                return None

            merged = {name: getattr(row, name) for name in UPDATABLE_FIELDS}
            merged.update(fields)
            # Re-validate so category casing and employee bounds hold after the update
            validated = ActivityCreate.model_validate(merged)
            for name in fields:
                setattr(row, name, getattr(validated, name))

            await session.commit()
            await session.refresh(row)
            return Activity.model_validate(row)

    async def delete_activity(self, activity_id: int) -> bool:
        """Delete an activity together with its history, favorites and log entries."""
        async with self._session_factory() as session:
            await session.execute(delete(Favorite).where(Favorite.activity_id == activity_id))
            await session.execute(
                delete(ActivityHistory).where(ActivityHistory.activity_id == activity_id)
            )
            await session.execute(
                delete(GenerationLog).where(GenerationLog.activity_id == activity_id)
            )
            result = await session.execute(delete(ActivityRow).where(ActivityRow.id == activity_id))
            await session.commit()
            deleted = result.rowcount > 0
        if deleted:
            logger.info("Deleted activity %d and its related records", activity_id)
        return deleted

    async def seed_builtin_activities(self, activities: list[ActivityCreate]) -> int:
        """Insert built-in activities that are not present yet (matched by name).

        Returns the number of inserted rows.
        """
        async with self._session_factory() as session:
            result = await session.execute(
                select(ActivityRow.name).where(ActivityRow.is_custom.is_(False))
            )
            existing = set(result.scalars())
            if len(existing) >= len(activities):
                return 0

            inserted = 0
            for activity in activities:
                if activity.name in existing:
                    continue
                session.add(ActivityRow(**activity.model_dump(), is_custom=False))
                existing.add(activity.name)
                inserted += 1
            await session.commit()

        logger.info("Seeded %d built-in activities (%d already present)",
                    inserted, len(activities) - inserted)
        return inserted

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    async def list_recent_history(self, days: int = 30) -> list[HistoryEntry]:
        """Entries scheduled from *days* ago onwards (future ones included), newest first."""
        threshold = datetime.now() - timedelta(days=days)
        async with self._session_factory() as session:
            result = await session.execute(
                select(ActivityHistory)
                .where(ActivityHistory.scheduled_date >= threshold)
                .order_by(ActivityHistory.scheduled_date.desc(), ActivityHistory.id.desc())
            )
            return [HistoryEntry.model_validate(row) for row in result.scalars()]

    async def save_history(self, activity_id: int, scheduled_date: date | datetime) -> HistoryEntry:
        async with self._session_factory() as session:
            row = ActivityHistory(
                activity_id=activity_id,
                scheduled_date=normalize_to_noon(scheduled_date),
                created_at=datetime.now(),
            )
            session.add(row)
            await session.commit()
            await session.refresh(row)
            return HistoryEntry.model_validate(row)

    async def mark_completed(self, history_id: int, rating: int | None, feedback: str | None) -> bool:
        async with self._session_factory() as session:
            row = await session.get(ActivityHistory, history_id)
            if row is None:
                return False
            row.completed = True
            row.rating = rating
            row.feedback = feedback
            await session.commit()
            return True

    async def unmark_completed(self, history_id: int) -> bool:
        async with self._session_factory() as session:
            row = await session.get(ActivityHistory, history_id)
            if row is None:
                return False
            row.completed = False
            row.rating = None
            row.feedback = None
            await session.commit()
            return True

    async def set_reminder_handle(self, history_id: int, handle: str | None) -> bool:
        async with self._session_factory() as session:
            row = await session.get(ActivityHistory, history_id)
            if row is None:
                return False
            row.reminder_handle = handle
            await session.commit()
            return True

    async def delete_history(self, history_id: int) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(
                delete(ActivityHistory).where(ActivityHistory.id == history_id)
            )
            await session.commit()
            return result.rowcount > 0

    async def get_upcoming_activity(self) -> UpcomingActivity | None:
        """Next pending (not completed) entry scheduled from now on."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(ActivityHistory, ActivityRow)
                .join(ActivityRow, ActivityHistory.activity_id == ActivityRow.id)
                .where(
                    ActivityHistory.scheduled_date >= datetime.now(),
                    ActivityHistory.completed.is_(False),
                )
                .order_by(ActivityHistory.scheduled_date.asc())
                .limit(1)
            )
            pair = result.first()
            if pair is None:
                return None
            history, activity = pair
            return UpcomingActivity(
                **HistoryEntry.model_validate(history).model_dump(),
                name=activity.name,
                category=activity.category,
                duration=activity.duration,
            )

    async def count_completed_this_month(self) -> int:
        async with self._session_factory() as session:
            result = await session.execute(
                select(func.count(ActivityHistory.id)).where(
                    ActivityHistory.scheduled_date >= start_of_month(),
                    ActivityHistory.completed.is_(True),
                )
            )
            return result.scalar_one()

    # ------------------------------------------------------------------
    # Generation log
    # ------------------------------------------------------------------

    async def append_generation_log(self, activity_id: int) -> None:
        async with self._session_factory() as session:
            session.add(GenerationLog(activity_id=activity_id, generated_at=datetime.now()))
            await session.commit()

    async def count_generations_this_month(self) -> int:
        async with self._session_factory() as session:
            result = await session.execute(
                select(func.count(GenerationLog.id)).where(
                    GenerationLog.generated_at >= start_of_month()
                )
            )
            return result.scalar_one()

    async def list_generation_log(self, limit: int = 100) -> list[GenerationLogEntry]:
        """Most recent suggestions first."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(GenerationLog)
                .order_by(GenerationLog.generated_at.desc(), GenerationLog.id.desc())
                .limit(limit)
            )
            return [GenerationLogEntry.model_validate(row) for row in result.scalars()]

    # ------------------------------------------------------------------
    # Favorites
    # ------------------------------------------------------------------

    async def toggle_favorite(self, activity_id: int, notes: str | None = None) -> bool:
        """Flip the favorite flag. Returns True when the activity is now a favorite."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(Favorite).where(Favorite.activity_id == activity_id)
            )
            existing = result.scalar_one_or_none()
            if existing is not None:
                await session.delete(existing)
                await session.commit()
                return False

            session.add(Favorite(activity_id=activity_id, notes=notes, saved_at=datetime.now()))
            await session.commit()
            return True

    async def is_favorite(self, activity_id: int) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Favorite.id).where(Favorite.activity_id == activity_id)
            )
            return result.first() is not None

    async def list_favorites(self) -> list[FavoriteActivity]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Favorite, ActivityRow)
                .join(ActivityRow, Favorite.activity_id == ActivityRow.id)
                .order_by(Favorite.saved_at.desc(), Favorite.id.desc())
            )
            return [
                FavoriteActivity(
                    **Activity.model_validate(activity).model_dump(),
                    favorite_id=fav.id,
                    notes=fav.notes,
                    saved_at=fav.saved_at,
                )
                for fav, activity in result.all()
            ]
