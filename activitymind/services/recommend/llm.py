"""LLM brainstorm: prompt template, grounding context and response sanitization."""
from __future__ import annotations

import logging
import math
import uuid
from typing import Any

from activitymind.schemas.activity import Activity, ActivityDraft
from activitymind.schemas.recommend import ChatMessage, Organization
from activitymind.services.llm_service import LLMError, parse_json_text
from activitymind.services.recommend.rules import IntentSignals
from activitymind.services.recommend.shared import FALLBACK_CATEGORY, MODEL_CATEGORIES, dump_list

logger = logging.getLogger(__name__)

HISTORY_TURNS = 4
CURRENCY_SYMBOLS = "$€£¥₹"

DEFAULT_MIN_EMPLOYEES = 2
DEFAULT_MAX_EMPLOYEES = 20
DEFAULT_DURATION = "30 min"
DEFAULT_INDOOR_OUTDOOR = "Indoor"

SYSTEM_PROMPT = f"""\
You are the ActivityMind AI Architect. Design or adapt creative team activities \
for the organization described below.
Return valid JSON only, with this shape:
{{
  "message": "Friendly summary incorporating the company name/industry.",
  "suggestedActivities": [
    {{
      "name": "Activity Name",
      "category": "{' | '.join(MODEL_CATEGORIES)}",
      "description": "Short engaging description.",
      "duration": "15 min | 30 min | 1 hour | Half Day",
      "estimated_cost": "Low | Medium | High",
      "min_employees": 2,
      "max_employees": 20,
      "steps": ["Step 1", "Step 2"],
      "materials": ["Item 1", "Item 2"],
      "indoor_outdoor": "Indoor | Outdoor | Both",
      "remote_compatible": 1
    }}
  ]
}}
RULES:
1. "category" MUST be one of the {len(MODEL_CATEGORIES)} options listed in the schema.
2. "estimated_cost" MUST be "Low", "Medium", or "High".
3. "min_employees" and "max_employees" MUST be numbers (e.g. 2 and 20).
4. "remote_compatible" MUST be 1 or 0.
5. Personalize the "message" with the company name."""

_SIGNAL_HINTS = {
    "remote": "works for remote or virtual teams",
    "budget": "low or no cost",
    "short": "short, fits in a quick slot",
    "energetic": "high-energy or physical",
    "learning": "productive or learning-oriented",
    "calm": "calm, wellness-focused",
}


# ---------------------------------------------------------------------------
# Prompt construction
# ---------------------------------------------------------------------------


def describe_organization(organization: Organization | None) -> str:
    if organization is None:
        return "Organization: not configured (use a generic team)."
    parts = [
        f"Company: {organization.company_name or 'unnamed'}",
        f"Industry: {organization.industry or 'unspecified'}",
    ]
    if organization.employee_count:
        parts.append(f"Employees: {organization.employee_count}")
    if organization.work_type:
        parts.append(f"Work type: {organization.work_type}")
    if organization.budget_range:
        parts.append(f"Budget range: {organization.budget_range}")
    return "Organization: " + "; ".join(parts)


def describe_examples(examples: list[Activity]) -> str:
    if not examples:
        return "Reference activities: none."
    lines = ["Reference activities from our bank (for tone and scope):"]
    for a in examples:
        lines.append(
            f"- {a.name} [{a.category}, {a.duration}, cost {a.estimated_cost}, "
            f"{'remote-friendly' if a.remote_compatible else 'in person'}]: {a.description}"
        )
    return "\n".join(lines)


def describe_history(history: list[ChatMessage]) -> str:
    recent = history[-HISTORY_TURNS:]
    if not recent:
        return "Conversation so far: (new conversation)"
    lines = ["Conversation so far:"]
    for m in recent:
        speaker = "User" if m.role == "user" else "Assistant"
        lines.append(f"{speaker}: {m.content}")
    return "\n".join(lines)


def build_prompt(
    user_input: str,
    history: list[ChatMessage],
    organization: Organization | None,
    examples: list[Activity],
    signals: IntentSignals,
) -> str:
    """Concatenate system instruction, context and the raw user request into one prompt."""
    hints = [_SIGNAL_HINTS[name] for name in signals.active()]
    sections = [
        SYSTEM_PROMPT,
        describe_organization(organization),
        f"Preferences hinted by the user: {', '.join(hints)}." if hints else "",
        describe_examples(examples),
        describe_history(history),
        f"User request: {user_input}",
    ]
    return "\n\n".join(s for s in sections if s)


# ---------------------------------------------------------------------------
# Response sanitization
# ---------------------------------------------------------------------------


def _to_int(value: Any, default: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    try:
        number = float(str(value).strip())
    except (TypeError, ValueError):
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return int(number)


def _to_flag(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return 1 if value else 0
    if isinstance(value, str):
        return 1 if value.strip().lower() in {"1", "true", "yes", "y"} else 0
    return 0


def _serialize_list(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        return dump_list(value)
    return "[]"


def _sanitize_cost(value: Any) -> str:
    if value is None or value == "":
        return "Low"
    text = str(value).strip()
    if not text or any(sym in text for sym in CURRENCY_SYMBOLS) or "0" in text.lower():
        return "Low"
    return text


def _text(value: Any, default: str) -> str:
    if value is None:
        return default
    text = str(value).strip()
    return text or default


def sanitize_suggestion(raw: dict[str, Any]) -> ActivityDraft:
    """Coerce one model-suggested activity into a draft with safe defaults."""
    min_employees = _to_int(raw.get("min_employees"), DEFAULT_MIN_EMPLOYEES)
    max_employees = _to_int(raw.get("max_employees"), DEFAULT_MAX_EMPLOYEES)
    if 0 < max_employees < min_employees:
        min_employees, max_employees = max_employees, min_employees

    return ActivityDraft(
        id=f"draft-{uuid.uuid4().hex}",
        name=_text(raw.get("name"), "Untitled Activity"),
        description=_text(raw.get("description"), ""),
        category=_text(raw.get("category"), FALLBACK_CATEGORY),
        steps=_serialize_list(raw.get("steps")),
        materials=_serialize_list(raw.get("materials")),
        estimated_cost=_sanitize_cost(raw.get("estimated_cost")),
        duration=_text(raw.get("duration"), DEFAULT_DURATION),
        difficulty=_text(raw.get("difficulty"), "Medium"),
        prep_time=_text(raw.get("prep_time"), "10 min"),
        min_employees=min_employees,
        max_employees=max_employees,
        indoor_outdoor=_text(raw.get("indoor_outdoor"), DEFAULT_INDOOR_OUTDOOR),
        remote_compatible=_to_flag(raw.get("remote_compatible")),
    )


def parse_llm_response(
    raw_text: str,
    organization: Organization | None,
) -> tuple[str, list[ActivityDraft]]:
    """Strip fences, parse JSON and sanitize every suggestion.

    Raises LLMError when the text is not a JSON object.
    """
    data = parse_json_text(raw_text)
    if not isinstance(data, dict):
        raise LLMError(f"Expected JSON object from LLM, got {type(data).__name__}")

    items = data.get("suggestedActivities")
    if not isinstance(items, list):
        items = []

    suggestions = [sanitize_suggestion(item) for item in items if isinstance(item, dict)]
    skipped = len(items) - len(suggestions)
    if skipped:
        logger.warning("Dropped %d malformed suggestions from LLM response", skipped)

    message = data.get("message")
    if not isinstance(message, str) or not message.strip():
        company = organization.company_name if organization and organization.company_name else "your team"
        message = f"Here are some fresh ideas for {company}."

    return message, suggestions
