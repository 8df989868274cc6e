"""Rule-based intent detection, keyword scoring and the heuristic brainstorm fallback.

Everything here is deterministic and offline. The same scores feed the LLM
prompt (as grounding examples) and the fallback when the model call fails.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, fields

from activitymind.schemas.activity import Activity, ActivityDraft
from activitymind.schemas.recommend import Organization
from activitymind.services.recommend.shared import contains_any, keyword_score

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Intent keyword groups (substring match on the lower-cased input)
# ---------------------------------------------------------------------------

REMOTE_KW = ["remote", "virtual", "online", "zoom", "distributed", "wfh"]
BUDGET_KW = ["cheap", "budget", "free", "low cost", "low-cost", "inexpensive", "affordable"]
SHORT_KW = ["quick", "short", "fast", "15 min", "brief"]
ENERGETIC_KW = ["energy", "energetic", "active", "physical", "sport", "outdoor", "move"]
LEARNING_KW = ["learn", "skill", "training", "productiv", "workshop", "develop"]
CALM_KW = ["calm", "relax", "wellness", "stress", "mindful", "meditat"]

NAME_TOKEN_WEIGHT = 10
DESCRIPTION_TOKEN_WEIGHT = 5
SIGNAL_BONUS = 5
MIN_TOKEN_LEN = 2
TOP_K = 2

VIRTUAL_PREFIX = "[Virtual] "
BUDGET_PREFIX = "[Budget-Friendly] "
HEURISTIC_DRAFT_NAMESPACE = uuid.UUID("6f1c2b7e-8d4a-4f0b-9a3e-2c5d7e9f1a42")


@dataclass(frozen=True)
class IntentSignals:
    remote: bool = False
    budget: bool = False
    short: bool = False
    energetic: bool = False
    learning: bool = False
    calm: bool = False

    def active(self) -> list[str]:
        return [f.name for f in fields(self) if getattr(self, f.name)]


@dataclass(frozen=True)
class ScoredActivity:
    activity: Activity
    score: int


# ===================================================================
# Public API
# ===================================================================


def detect_signals(user_input: str) -> IntentSignals:
    return IntentSignals(
        remote=contains_any(user_input, REMOTE_KW),
        budget=contains_any(user_input, BUDGET_KW),
        short=contains_any(user_input, SHORT_KW),
        energetic=contains_any(user_input, ENERGETIC_KW),
        learning=contains_any(user_input, LEARNING_KW),
        calm=contains_any(user_input, CALM_KW),
    )


def tokenize(user_input: str) -> list[str]:
    return [t for t in user_input.lower().split() if len(t) >= MIN_TOKEN_LEN]


def score_activity(activity: Activity, tokens: list[str], signals: IntentSignals) -> int:
    score = keyword_score(activity.name, [(t, NAME_TOKEN_WEIGHT) for t in tokens])
    score += keyword_score(activity.description, [(t, DESCRIPTION_TOKEN_WEIGHT) for t in tokens])
    if signals.remote and activity.remote_compatible:
        score += SIGNAL_BONUS
    if signals.budget and activity.estimated_cost == "Low":
        score += SIGNAL_BONUS
    return score


def score_activities(
    catalog: list[Activity],
    user_input: str,
    signals: IntentSignals,
) -> list[ScoredActivity]:
    """Score every catalog activity; result keeps catalog order."""
    tokens = tokenize(user_input)
    return [ScoredActivity(a, score_activity(a, tokens, signals)) for a in catalog]


def top_scored(scored: list[ScoredActivity], k: int = TOP_K) -> list[ScoredActivity]:
    """Highest scores first; ties keep catalog order (stable sort)."""
    return sorted(scored, key=lambda s: s.score, reverse=True)[:k]


def adapt_activity(
    activity: Activity,
    signals: IntentSignals,
    organization: Organization | None,
) -> ActivityDraft:
    """Return a draft copy of *activity* adjusted to the request. The original is untouched.

    The draft id is derived from the source activity and the applied
    adaptation, so the same input always yields the same draft.
    """
    company = organization.company_name if organization and organization.company_name else ""
    if signals.remote and not activity.remote_compatible:
        adaptation = "virtual"
    elif signals.budget and activity.estimated_cost != "Low":
        adaptation = "budget"
    else:
        adaptation = "as-is"

    draft_key = uuid.uuid5(HEURISTIC_DRAFT_NAMESPACE, f"{activity.id}:{adaptation}:{company}")
    draft = ActivityDraft(
        **activity.model_dump(exclude={"id", "is_custom"}),
        id=f"draft-{draft_key.hex}",
        source_activity_id=activity.id,
    )

    if adaptation == "virtual":
        draft.name = VIRTUAL_PREFIX + draft.name
        draft.description = f"Remote-adapted version: {draft.description}"
        draft.remote_compatible = True
    elif adaptation == "budget":
        draft.name = BUDGET_PREFIX + draft.name
        draft.estimated_cost = "Low"

    if company:
        draft.description = f"Tailored for {company}: {draft.description}"

    return draft


def fallback_suggest(
    scored: list[ScoredActivity],
    signals: IntentSignals,
    organization: Organization | None,
    catalog: list[Activity] | None = None,
) -> tuple[str, list[ActivityDraft]]:
    """Offline brainstorm answer: up to two adapted catalog activities plus a message."""
    matches = top_scored([s for s in scored if s.score > 0], k=TOP_K)
    picks = [s.activity for s in matches]

    if not picks:
        pool = catalog if catalog is not None else [s.activity for s in scored]
        picks = [a for a in pool if a.remote_compatible or not signals.remote][:TOP_K]

    suggestions = [adapt_activity(a, signals, organization) for a in picks]
    message = compose_fallback_message(suggestions, organization)
    logger.info(
        "Heuristic fallback picked %d activities (signals=%s)",
        len(suggestions), ",".join(signals.active()) or "none",
    )
    return message, suggestions


def compose_fallback_message(
    suggestions: list[ActivityDraft],
    organization: Organization | None,
) -> str:
    company = organization.company_name if organization and organization.company_name else "your team"
    industry = organization.industry if organization and organization.industry else ""
    audience = f"{company} in {industry}" if industry else company

    if not suggestions:
        return (
            f"I couldn't find a close match for {audience} in the activity bank yet. "
            "Try describing the vibe, budget or group size."
        )
    return (
        f"Here are some ideas adapted for {audience}. "
        f"I'd start with \"{suggestions[0].name}\"."
    )
