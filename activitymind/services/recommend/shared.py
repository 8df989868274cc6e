"""Helpers shared by the recommendation modules."""
from __future__ import annotations

import json
import logging
from datetime import date, datetime, time
from typing import Any

logger = logging.getLogger(__name__)

FRESHNESS_WINDOW_DAYS = 30

COST_LEVELS: list[str] = ["Low", "Medium", "High"]

# Categories the model is allowed to emit. The catalog itself also holds
# "Sports" and any user-created category.
MODEL_CATEGORIES: list[str] = [
    "Icebreaker",
    "Team Bonding",
    "Wellness",
    "Recognition",
    "Festival",
    "Training",
]
FALLBACK_CATEGORY = "Team Bonding"

# ---------------------------------------------------------------------------
# Cost ordinal
# ---------------------------------------------------------------------------


def cost_index(cost: str | None) -> int:
    """Position of *cost* on the Low < Medium < High scale, ``-1`` if unknown."""
    try:
        return COST_LEVELS.index(cost)  # type: ignore[arg-type]
    except ValueError:
        return -1


def exceeds_budget(activity_cost: str | None, budget_level: str) -> bool:
    """True when the activity is more expensive than *budget_level* allows.

    An unknown activity cost maps to -1 and therefore never exceeds the budget.
    """
    return cost_index(activity_cost) > cost_index(budget_level)


# ---------------------------------------------------------------------------
# Text normalization
# ---------------------------------------------------------------------------


def to_title_case(text: str) -> str:
    """Lower-case *text*, then upper-case the first letter of each space-separated word.

    Unlike ``str.title`` this leaves letters after apostrophes and digits alone,
    and it is idempotent.
    """
    return " ".join(word[:1].upper() + word[1:] for word in text.lower().split(" "))


def keyword_score(text: str, keywords: list[tuple[str, int]]) -> int:
    """Scan *text* for keyword matches and accumulate weights (case-insensitive)."""
    lower = text.lower()
    score = 0
    for kw, weight in keywords:
        if kw.lower() in lower:
            score += weight
    return score


def contains_any(text: str, needles: list[str]) -> bool:
    lower = text.lower()
    return any(n in lower for n in needles)


# ---------------------------------------------------------------------------
# Serialized string lists (steps / materials)
# ---------------------------------------------------------------------------


def dump_list(items: list[Any] | tuple[Any, ...]) -> str:
    return json.dumps([str(i) for i in items], ensure_ascii=False)


def load_list(raw: str | list[Any] | None) -> list[str]:
    """Decode a stored steps/materials value into ``list[str]``.

    Accepts a JSON array string, an already-decoded list, or a legacy plain
    string (returned as a single item). Never raises.
    """
    if raw is None:
        return []
    if isinstance(raw, list):
        return [str(i) for i in raw]
    text = str(raw).strip()
    if not text:
        return []
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return [text]
    if isinstance(data, list):
        return [str(i) for i in data]
    if data is None:
        return []
    return [str(data)]


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


def normalize_to_noon(value: date | datetime) -> datetime:
    """Pin a scheduled day to 12:00 local time so timezone shifts keep the same date."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone().replace(tzinfo=None)
        day = value.date()
    else:
        day = value
    return datetime.combine(day, time(12, 0))


def start_of_month(now: datetime | None = None) -> datetime:
    now = now or datetime.now()
    return datetime(now.year, now.month, 1)
