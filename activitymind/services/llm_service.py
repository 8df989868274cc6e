"""OpenRouter LLM service for brainstorm generation."""
from __future__ import annotations

import asyncio
import json
import logging
import re
import time
from typing import Any

import httpx

from activitymind.config import settings
from activitymind.services.llm_call_tracker import get_tracker

logger = logging.getLogger(__name__)

OPENROUTER_API_URL = "https://openrouter.ai/api/v1/chat/completions"

_FENCED_BLOCK_RE = re.compile(r"^```[a-zA-Z]*\s*(.*?)\s*```$", re.DOTALL)


async def call_llm(
    prompt: str,
    system_prompt: str = "",
    model: str | None = None,
    temperature: float | None = None,
    max_tokens: int | None = None,
    json_mode: bool = False,
    *,
    stage: str = "general",
    organization: str | None = None,
) -> str:
    """
    Call OpenRouter API for LLM completion.

    Args:
        prompt: User message content.
        system_prompt: System instruction.
        model: Model ID (defaults to settings.OPENROUTER_MODEL).
        temperature: Sampling temperature (defaults to settings.LLM_TEMPERATURE).
        max_tokens: Maximum response tokens (defaults to settings.LLM_MAX_TOKENS).
        json_mode: If True, request JSON output format.
        stage: Feature name for tracking (brainstorm, etc.).
        organization: Company name the call was made for, for the audit trail.

    Returns:
        The assistant's response text.

    Raises:
        LLMError: If the API key is missing or the call fails after
            settings.LLM_MAX_ATTEMPTS attempts.
    """
    api_key = settings.OPENROUTER_API_KEY
    if not api_key:
        raise LLMError("OPENROUTER_API_KEY not configured")

    model = model or settings.OPENROUTER_MODEL
    temperature = settings.LLM_TEMPERATURE if temperature is None else temperature
    max_tokens = max_tokens or settings.LLM_MAX_TOKENS
    tracker = get_tracker()
    start_time = time.time()

    messages: list[dict[str, str]] = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": prompt})

    payload: dict[str, Any] = {
        "model": model,
        "messages": messages,
        "temperature": temperature,
        "max_tokens": max_tokens,
    }
    if json_mode:
        payload["response_format"] = {"type": "json_object"}

    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
        "HTTP-Referer": "https://activitymind.local",
        "X-Title": "ActivityMind",
    }

    def _track_failure(error_msg: str) -> None:
        tracker.log_call(
            model=model,
            prompt=prompt,
            system_prompt=system_prompt,
            response_text="",
            input_tokens=0,
            output_tokens=0,
            stage=stage,
            organization=organization,
            duration_ms=(time.time() - start_time) * 1000,
            success=False,
            error_message=error_msg,
        )

    attempts = max(1, settings.LLM_MAX_ATTEMPTS)
    last_error: Exception | None = None

    for attempt in range(attempts):
        try:
            async with httpx.AsyncClient(timeout=settings.LLM_TIMEOUT_SECONDS) as client:
                resp = await client.post(
                    OPENROUTER_API_URL,
                    json=payload,
                    headers=headers,
                )
                resp.raise_for_status()
                data = resp.json()

                choice = data.get("choices", [{}])[0]
                content = choice.get("message", {}).get("content", "")
                if not content:
                    raise LLMError(f"Empty response from model {model}")

                usage = data.get("usage", {})
                tracker.log_call(
                    model=model,
                    prompt=prompt,
                    system_prompt=system_prompt,
                    response_text=content,
                    input_tokens=usage.get("prompt_tokens", 0),
                    output_tokens=usage.get("completion_tokens", 0),
                    stage=stage,
                    organization=organization,
                    duration_ms=(time.time() - start_time) * 1000,
                    success=True,
                )

                return content

        except httpx.HTTPStatusError as e:
            last_error = e
            if e.response.status_code == 429 and attempt + 1 < attempts:
                wait = 2 ** attempt
                logger.warning("Rate limited, waiting %ds...", wait)
                await asyncio.sleep(wait)
                continue
            error_msg = f"HTTP {e.response.status_code}: {e.response.text}"
            _track_failure(error_msg)
            raise LLMError(error_msg) from e

        except httpx.RequestError as e:
            last_error = e
            logger.warning("Request error (attempt %d/%d): %s", attempt + 1, attempts, e)
            if attempt + 1 < attempts:
                await asyncio.sleep(1)

    error_msg = f"Failed after {attempts} attempt(s): {last_error}"
    _track_failure(error_msg)
    raise LLMError(error_msg)


def strip_code_fences(raw: str) -> str:
    """Remove a ```json ... ``` wrapper (single- or multi-line) if present."""
    text = raw.strip()
    if not text.startswith("```"):
        return text
    m = _FENCED_BLOCK_RE.match(text)
    if m:
        return m.group(1).strip()
    lines = text.split("\n")
    lines = [l for l in lines if not l.strip().startswith("```")]
    return "\n".join(lines).strip()


def parse_json_text(raw: str) -> Any:
    """Parse model text as JSON after stripping markdown code fences."""
    text = strip_code_fences(raw)
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise LLMError(f"Failed to parse LLM response as JSON: {e}\nRaw: {text[:500]}") from e


async def generate_text(prompt: str, organization: str | None = None) -> str:
    """Default brainstorm text generator: one concatenated prompt in, raw JSON text out."""
    return await call_llm(prompt, json_mode=True, stage="brainstorm", organization=organization)


class LLMError(Exception):
    """Raised when LLM service call fails."""
