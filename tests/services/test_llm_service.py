"""Tests for the OpenRouter client helpers and the call tracker."""
import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from activitymind.services import llm_service
from activitymind.services.llm_call_tracker import LLMCallTracker
from activitymind.services.llm_service import LLMError, parse_json_text, strip_code_fences


@pytest.mark.parametrize(
    "raw,expected",
    [
        ('{"a": 1}', '{"a": 1}'),
        ('```json\n{"a": 1}\n```', '{"a": 1}'),
        ('```\n{"a": 1}\n```', '{"a": 1}'),
        ('```json {"a": 1}```', '{"a": 1}'),
        ('  ```JSON\n{"a": 1}\n```  ', '{"a": 1}'),
    ],
)
def test_strip_code_fences(raw, expected):
    """Test fenced and unfenced JSON text is unwrapped."""
    assert strip_code_fences(raw) == expected


def test_parse_json_text_raises_llm_error():
    """Test unparseable text becomes LLMError."""
    with pytest.raises(LLMError):
        parse_json_text("Here you go: {oops")


def _mock_client(response: httpx.Response) -> MagicMock:
    client = MagicMock()
    client.post = AsyncMock(return_value=response)
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=False)
    return client


def _response(status: int, body: dict) -> httpx.Response:
    request = httpx.Request("POST", llm_service.OPENROUTER_API_URL)
    return httpx.Response(status, json=body, request=request)


@pytest.mark.asyncio
async def test_call_llm_requires_api_key():
    """Test a missing key fails fast without a network call."""
    with patch.object(llm_service.settings, "OPENROUTER_API_KEY", ""):
        with pytest.raises(LLMError, match="OPENROUTER_API_KEY"):
            await llm_service.call_llm("hi")


@pytest.mark.asyncio
async def test_call_llm_returns_content_and_tracks(tmp_path):
    """Test a successful call returns the content and records usage."""
    tracker = LLMCallTracker(logs_dir=tmp_path)
    client = _mock_client(_response(200, {
        "choices": [{"message": {"content": "hello"}}],
        "usage": {"prompt_tokens": 12, "completion_tokens": 3},
    }))

    with patch.object(llm_service.settings, "OPENROUTER_API_KEY", "test-key"), \
         patch("activitymind.services.llm_service.get_tracker", return_value=tracker), \
         patch("activitymind.services.llm_service.httpx.AsyncClient", return_value=client):
        text = await llm_service.call_llm("hi", stage="brainstorm", organization="Acme")

    assert text == "hello"
    [record] = tracker.iter_calls()
    assert record["stage"] == "brainstorm"
    assert record["organization"] == "Acme"
    assert record["input_tokens"] == 12
    assert tracker.get_summary()["total_calls"] == 1


@pytest.mark.asyncio
async def test_call_llm_single_attempt_on_rate_limit(tmp_path):
    """Test a 429 is not retried when only one attempt is configured."""
    tracker = LLMCallTracker(logs_dir=tmp_path)
    client = _mock_client(_response(429, {"error": "slow down"}))

    with patch.object(llm_service.settings, "OPENROUTER_API_KEY", "test-key"), \
         patch.object(llm_service.settings, "LLM_MAX_ATTEMPTS", 1), \
         patch("activitymind.services.llm_service.get_tracker", return_value=tracker), \
         patch("activitymind.services.llm_service.httpx.AsyncClient", return_value=client):
        with pytest.raises(LLMError, match="HTTP 429"):
            await llm_service.call_llm("hi")

    assert client.post.await_count == 1
    [record] = tracker.iter_calls()
    assert record["success"] is False


def test_tracker_disabled_writes_nothing(tmp_path):
    """Test a disabled tracker logs but does not persist records."""
    tracker = LLMCallTracker(logs_dir=tmp_path, enabled=False)

    tracker.log_call(
        model="google/gemini-2.0-flash-001",
        prompt="p",
        system_prompt="",
        response_text="r",
        input_tokens=1_000_000,
        output_tokens=0,
    )

    assert not tracker.calls_log_file.exists()
    assert tracker.get_summary()["total_calls"] == 0


def test_tracker_cost_and_filters(tmp_path):
    """Test pricing is applied and records can be filtered by stage and organization."""
    tracker = LLMCallTracker(logs_dir=tmp_path)
    for stage, org in [("brainstorm", "Acme"), ("brainstorm", "Globex"), ("general", "Acme")]:
        tracker.log_call(
            model="google/gemini-2.0-flash-001",
            prompt="p",
            system_prompt="",
            response_text="r",
            input_tokens=1_000_000,
            output_tokens=1_000_000,
            stage=stage,
            organization=org,
        )

    assert len(tracker.get_calls_by_stage("brainstorm")) == 2
    assert len(tracker.get_calls_by_organization("Acme")) == 2
    summary = json.loads(tracker.summary_file.read_text(encoding="utf-8"))
    assert summary["total_calls"] == 3
    assert summary["total_cost_usd"] == pytest.approx(3 * (0.075 + 0.30))
    assert len(tracker.export_audit_trail(limit=2)) == 2
