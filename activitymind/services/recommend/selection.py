"""Filter & selection engine for structured activity requests.

Narrows the catalog by the request filters, prefers activities that were not
scheduled in the freshness window, and samples the requested number at random.
"""
from __future__ import annotations

import asyncio
import logging
import random
from collections import Counter
from typing import Protocol

from activitymind.schemas.activity import Activity, HistoryEntry
from activitymind.schemas.recommend import FilterParams, Organization, SelectionResult
from activitymind.services.recommend.shared import FRESHNESS_WINDOW_DAYS, exceeds_budget

logger = logging.getLogger(__name__)

NO_MATCH_MESSAGE = "No activities match these exact filters. Try broadening your criteria."
FALLBACK_MESSAGE = "You've done these recently, but they match your filters best."
DEFAULT_MESSAGE = "Here are some great activities for your team!"


class CatalogReader(Protocol):
    async def list_all_activities(self) -> list[Activity]: ...

    async def list_recent_history(self, days: int = ...) -> list[HistoryEntry]: ...


class GenerationLogWriter(Protocol):
    async def append_generation_log(self, activity_id: int) -> None: ...


def requires_remote(filters: FilterParams, organization: Organization | None) -> bool:
    return filters.remote_compatible or (
        organization is not None and organization.work_type == "Remote"
    )


def matches_filters(activity: Activity, filters: FilterParams, *, remote_required: bool) -> bool:
    if remote_required and not activity.remote_compatible:
        return False
    if filters.category and activity.category != filters.category:
        return False
    if filters.duration and activity.duration != filters.duration:
        return False
    if filters.budget_level and exceeds_budget(activity.estimated_cost, filters.budget_level):
        return False
    if filters.indoor_outdoor:
        if activity.indoor_outdoor != "Both" and activity.indoor_outdoor != filters.indoor_outdoor:
            return False
    # min/max employees are a soft preference only
    return True


def filter_activities(
    activities: list[Activity],
    filters: FilterParams,
    organization: Organization | None = None,
) -> list[Activity]:
    """AND-conjunction of all set filters, preserving catalog order."""
    remote_required = requires_remote(filters, organization)
    return [a for a in activities if matches_filters(a, filters, remote_required=remote_required)]


def compose_message(
    selected: list[Activity],
    filters: FilterParams,
    *,
    fallback_used: bool,
    catalog: list[Activity],
    history: list[HistoryEntry],
) -> str:
    if fallback_used:
        return FALLBACK_MESSAGE
    if filters.category:
        return f"Perfect {filters.category} activities to boost engagement."

    by_id = {a.id: a for a in catalog}
    category_counts = Counter(
        by_id[h.activity_id].category for h in history if h.activity_id in by_id
    )
    if selected:
        suggested_category = selected[0].category
        if category_counts[suggested_category] == 0:
            return f"You haven't tried {suggested_category} activities recently — great time to start!"
    return DEFAULT_MESSAGE


async def select_activities(
    store: CatalogReader,
    organization: Organization | None,
    filters: FilterParams,
    count: int = 3,
    *,
    rng: random.Random | None = None,
) -> SelectionResult:
    """Pick up to *count* distinct activities matching *filters*.

    Store read errors propagate unchanged. An empty match is a normal result
    carrying a "broaden your criteria" message.
    """
    catalog, history = await asyncio.gather(
        store.list_all_activities(),
        store.list_recent_history(FRESHNESS_WINDOW_DAYS),
    )
    recent_ids = {h.activity_id for h in history}

    filtered = filter_activities(catalog, filters, organization)
    fresh = [a for a in filtered if a.id not in recent_ids]

    fallback_used = False
    candidates = fresh
    if not candidates:
        if not filtered:
            logger.info("No catalog activity matches filters %s", filters.model_dump(exclude_defaults=True))
            return SelectionResult(activities=[], message=NO_MATCH_MESSAGE)
        candidates = filtered
        fallback_used = True

    rng = rng or random.Random()
    selected = rng.sample(candidates, k=min(max(count, 0), len(candidates)))

    message = compose_message(
        selected,
        filters,
        fallback_used=fallback_used,
        catalog=catalog,
        history=history,
    )
    logger.info(
        "Selected %d/%d candidates (%d filtered, %d fresh, fallback=%s)",
        len(selected), len(candidates), len(filtered), len(fresh), fallback_used,
    )
    return SelectionResult(activities=selected, message=message, fallback_used=fallback_used)


async def record_generations(store: GenerationLogWriter, activities: list[Activity]) -> int:
    """Write one generation-log entry per activity, concurrently.

    Failures are logged and swallowed. Returns the number of successful writes.
    """
    results = await asyncio.gather(
        *(store.append_generation_log(a.id) for a in activities),
        return_exceptions=True,
    )
    ok = 0
    for activity, result in zip(activities, results):
        if isinstance(result, BaseException):
            logger.warning("Failed to log generation of activity %s: %s", activity.id, result)
        else:
            ok += 1
    return ok
