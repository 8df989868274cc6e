"""Cost, token and audit tracking for LLM API calls."""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from activitymind.config import settings

logger = logging.getLogger(__name__)

# OpenRouter pricing in USD per 1M tokens
PRICING_MAP = {
    "google/gemini-2.0-flash-001": {
        "input": 0.075,
        "output": 0.30,
    },
    "google/gemini-2.5-flash": {
        "input": 0.30,
        "output": 2.50,
    },
    "openai/gpt-4o-mini": {
        "input": 0.15,
        "output": 0.60,
    },
}

_EMPTY_SUMMARY: dict[str, Any] = {"total_calls": 0, "total_cost_usd": 0.0, "models": {}}


class LLMCallTracker:
    """Track LLM API calls with cost, tokens, and audit information.

    Records go to ``calls.jsonl`` (one JSON object per call) and an aggregated
    ``summary.json`` keyed by model name.
    """

    def __init__(self, logs_dir: Path | None = None, enabled: bool = True) -> None:
        self.logs_dir = logs_dir or settings.LOGS_DIR / "llm_calls"
        self.summary_file = self.logs_dir / "summary.json"
        self.calls_log_file = self.logs_dir / "calls.jsonl"
        self.enabled = enabled

    def log_call(
        self,
        *,
        model: str,
        prompt: str,
        system_prompt: str,
        response_text: str,
        input_tokens: int,
        output_tokens: int,
        stage: str = "general",
        organization: str | None = None,
        duration_ms: float | None = None,
        success: bool = True,
        error_message: str | None = None,
    ) -> None:
        """Log a single LLM API call.

        Args:
            model: Model identifier (e.g., 'google/gemini-2.0-flash-001')
            prompt: User prompt sent to LLM
            system_prompt: System instruction
            response_text: Full response text from LLM
            input_tokens: Number of input tokens used
            output_tokens: Number of output tokens used
            stage: Feature name (brainstorm, etc.)
            organization: Company name the call was made for
            duration_ms: API call duration in milliseconds
            success: Whether the call succeeded
            error_message: Error details if call failed
        """
        cost_usd = self._calculate_cost(model, input_tokens, output_tokens)

        if success:
            logger.info(
                "LLM call [%s/%s] model=%s, tokens=%d/%d (%.2f¢), duration=%.1fms",
                stage, organization or "?",
                model.split("/")[-1],
                input_tokens, output_tokens,
                cost_usd * 100,  # Convert to cents
                duration_ms or 0,
            )
        else:
            logger.warning(
                "LLM call failed [%s/%s]: %s",
                stage, organization or "?",
                error_message,
            )

        if not self.enabled:
            return

        call_record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "model": model,
            "stage": stage,
            "organization": organization,
            "input_tokens": input_tokens,
            "output_tokens": output_tokens,
            "total_tokens": input_tokens + output_tokens,
            "cost_usd": round(cost_usd, 6),
            "duration_ms": duration_ms,
            "success": success,
            "error_message": error_message,
            "prompt_length": len(prompt),
            "system_prompt_length": len(system_prompt),
            "response_length": len(response_text),
        }
        self._append_to_log(call_record)
        self._update_summary(model, input_tokens, output_tokens, cost_usd, success)

    @staticmethod
    def _calculate_cost(model: str, input_tokens: int, output_tokens: int) -> float:
        """Calculate API cost in USD."""
        pricing = PRICING_MAP.get(model)
        if not pricing:
            logger.debug("Unknown model pricing: %s", model)
            return 0.0

        input_cost = (input_tokens / 1_000_000) * pricing["input"]
        output_cost = (output_tokens / 1_000_000) * pricing["output"]
        return input_cost + output_cost

    def _append_to_log(self, call_record: dict[str, Any]) -> None:
        try:
            self.logs_dir.mkdir(parents=True, exist_ok=True)
            with open(self.calls_log_file, "a", encoding="utf-8") as f:
                f.write(json.dumps(call_record, ensure_ascii=False) + "\n")
        except OSError as e:
            logger.error("Failed to write LLM call log: %s", e)

    def _update_summary(
        self,
        model: str,
        input_tokens: int,
        output_tokens: int,
        cost_usd: float,
        success: bool,
    ) -> None:
        try:
            summary = self.get_summary() if self.summary_file.exists() else {}
            summary.setdefault("models", {})

            model_key = model.split("/")[-1]
            model_stats = summary["models"].setdefault(model_key, {
                "call_count": 0,
                "success_count": 0,
                "error_count": 0,
                "total_input_tokens": 0,
                "total_output_tokens": 0,
                "total_cost_usd": 0.0,
            })
            model_stats["call_count"] += 1
            if success:
                model_stats["success_count"] += 1
            else:
                model_stats["error_count"] += 1
            model_stats["total_input_tokens"] += input_tokens
            model_stats["total_output_tokens"] += output_tokens
            model_stats["total_cost_usd"] = round(model_stats["total_cost_usd"] + cost_usd, 6)

            summary["last_updated"] = datetime.now(timezone.utc).isoformat()
            summary["total_calls"] = sum(m["call_count"] for m in summary["models"].values())
            summary["total_cost_usd"] = round(
                sum(m["total_cost_usd"] for m in summary["models"].values()),
                6,
            )

            self.logs_dir.mkdir(parents=True, exist_ok=True)
            with open(self.summary_file, "w", encoding="utf-8") as f:
                json.dump(summary, f, ensure_ascii=False, indent=2)

        except OSError as e:
            logger.error("Failed to update LLM summary: %s", e)

    def get_summary(self) -> dict[str, Any]:
        """Get current LLM usage summary."""
        if not self.summary_file.exists():
            return dict(_EMPTY_SUMMARY, models={})
        try:
            with open(self.summary_file, encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError):
            return dict(_EMPTY_SUMMARY, models={})

    def iter_calls(self) -> list[dict[str, Any]]:
        """All call records, skipping malformed lines."""
        if not self.calls_log_file.exists():
            return []
        calls = []
        try:
            with open(self.calls_log_file, encoding="utf-8") as f:
                for line in f:
                    try:
                        calls.append(json.loads(line.strip()))
                    except json.JSONDecodeError:
                        continue
        except OSError:
            pass
        return calls

    def get_calls_by_stage(self, stage: str) -> list[dict[str, Any]]:
        return [c for c in self.iter_calls() if c.get("stage") == stage]

    def get_calls_by_organization(self, organization: str) -> list[dict[str, Any]]:
        return [c for c in self.iter_calls() if c.get("organization") == organization]

    def export_audit_trail(
        self,
        limit: int = 100,
        stage: str | None = None,
        start_date: str | None = None,
    ) -> list[dict[str, Any]]:
        """Export audit trail of LLM calls for review.

        Args:
            limit: Maximum number of records to return
            stage: Filter by stage
            start_date: ISO format date to filter from (YYYY-MM-DD)

        Returns:
            List of call records, newest first
        """
        calls = [
            c for c in self.iter_calls()
            if (not stage or c.get("stage") == stage)
            and (not start_date or c.get("timestamp", "")[:10] >= start_date)
        ]
        return sorted(calls, key=lambda x: x.get("timestamp", ""), reverse=True)[:limit]


_tracker: LLMCallTracker | None = None


def get_tracker() -> LLMCallTracker:
    """Get the global LLM call tracker."""
    global _tracker
    if _tracker is None:
        _tracker = LLMCallTracker(enabled=settings.LLM_TRACKING_ENABLED)
    return _tracker
