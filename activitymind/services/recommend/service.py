"""Recommendation facade used by the UI layer.

Wires the catalog store, the filter & selection engine, the LLM brainstorm
adapter and the heuristic fallback together.
"""
from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable

from activitymind.config import settings
from activitymind.schemas.activity import Activity, ActivityCreate, ActivityDraft
from activitymind.schemas.recommend import (
    BrainstormOutcome,
    ChatMessage,
    FilterParams,
    HeuristicOutcome,
    ModelOutcome,
    Organization,
    SelectionResult,
)
from activitymind.services.catalog_store import CatalogStore
from activitymind.services.llm_service import generate_text
from activitymind.services.recommend import llm, rules, selection
from activitymind.services.recommend.shared import dump_list

logger = logging.getLogger(__name__)

# (prompt, organization company name) -> raw model text
TextGenerator = Callable[[str, str | None], Awaitable[str]]

DEFAULT_SAVED_STEPS = ["Collaborate with your team"]
DEFAULT_SAVED_MATERIALS = ["None"]


class RecommendationService:
    """Entry point for structured generation, conversational brainstorm and saving drafts.

    Generation-log writes run as background tasks owned by this instance;
    call :meth:`drain` before shutdown (or in tests) to wait for them.
    """

    def __init__(
        self,
        store: CatalogStore,
        generator: TextGenerator | None = None,
        *,
        rng: random.Random | None = None,
    ) -> None:
        self.store = store
        self.generator = generator or generate_text
        self._rng = rng
        self._pending: set[asyncio.Task[int]] = set()

    # ------------------------------------------------------------------
    # Structured generation
    # ------------------------------------------------------------------

    async def select_activities(
        self,
        organization: Organization | None,
        filters: FilterParams,
        count: int | None = None,
    ) -> SelectionResult:
        result = await selection.select_activities(
            self.store,
            organization,
            filters,
            count if count is not None else settings.DEFAULT_SUGGESTION_COUNT,
            rng=self._rng,
        )
        if result.activities:
            self._spawn_generation_log(result.activities)
        return result

    def _spawn_generation_log(self, activities: list[Activity]) -> None:
        task = asyncio.create_task(selection.record_generations(self.store, activities))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait for outstanding generation-log writes."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # ------------------------------------------------------------------
    # Conversational brainstorm
    # ------------------------------------------------------------------

    async def converse(
        self,
        user_input: str,
        conversation_history: list[ChatMessage],
        organization: Organization | None,
    ) -> BrainstormOutcome:
        """Answer a brainstorm request. Never raises for model or catalog failures."""
        signals = rules.detect_signals(user_input)

        try:
            catalog = await self.store.list_all_activities()
        except Exception as e:
            logger.error("Catalog unavailable for brainstorm, continuing without grounding: %s", e)
            catalog = []

        scored = rules.score_activities(catalog, user_input, signals)
        examples = [s.activity for s in rules.top_scored(scored)]
        prompt = llm.build_prompt(user_input, conversation_history, organization, examples, signals)
        company = organization.company_name if organization and organization.company_name else None

        try:
            raw_text = await self.generator(prompt, company)
            message, suggestions = llm.parse_llm_response(raw_text, organization)
        except Exception as e:
            logger.warning("LLM brainstorm failed, using heuristic fallback: %s", e)
            message, suggestions = rules.fallback_suggest(scored, signals, organization, catalog)
            return HeuristicOutcome(message=message, suggested_activities=suggestions)

        logger.info("LLM brainstorm returned %d suggestions", len(suggestions))
        return ModelOutcome(message=message, suggested_activities=suggestions)

    async def accept_suggestion(self, draft: ActivityDraft) -> Activity:
        """Persist a brainstorm draft as a custom catalog activity."""
        steps = draft.step_list or DEFAULT_SAVED_STEPS
        materials = draft.material_list or DEFAULT_SAVED_MATERIALS
        payload = ActivityCreate(
            **draft.model_dump(exclude={"id", "source_activity_id", "steps", "materials"}),
            steps=dump_list(steps),
            materials=dump_list(materials),
        )
        return await self.store.insert_custom_activity(payload)
