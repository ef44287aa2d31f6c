"""Tests for AI subtask generation."""
import json

import httpx
import pytest

from planko.config import AIConfig
from planko.services.ai_breakdown import (
    AiBreakdownError,
    AiBreakdownService,
    build_prompt,
    parse_subtask_titles,
)


def make_service(handler, **config) -> AiBreakdownService:
    service = AiBreakdownService(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
    service.config = AIConfig(**{"enabled": True, "api_key": "test-key", **config})
    return service


def gemini_reply(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def test_prompt_mentions_title_and_description():
    prompt = build_prompt("Plan offsite", "For 20 people")

    assert "'Plan offsite'" in prompt
    assert "(Description: For 20 people)" in prompt
    assert "Description" not in build_prompt("Plan offsite")


def test_parse_strips_code_fences():
    text = '```json\n["Book venue", " ", "Send invites"]\n```'

    assert parse_subtask_titles(text) == ["Book venue", "Send invites"]


def test_parse_rejects_bad_replies():
    with pytest.raises(AiBreakdownError, match="valid JSON"):
        parse_subtask_titles("Sure! Here are some subtasks")

    with pytest.raises(AiBreakdownError, match="not an array"):
        parse_subtask_titles('{"subtasks": []}')

    with pytest.raises(AiBreakdownError, match="array of strings"):
        parse_subtask_titles('[1, {"a": 2}]')

    assert parse_subtask_titles("") == []


@pytest.mark.asyncio
async def test_generate_sends_prompt_and_key():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json=gemini_reply('["One", "Two", "Three"]'))

    service = make_service(handler, model="gemini-test")
    titles = await service.generate_subtask_titles("Ship release", "v2.0")
    await service.close()

    assert titles == ["One", "Two", "Three"]
    request = requests[0]
    assert request.url.path.endswith("/models/gemini-test:generateContent")
    assert request.url.params["key"] == "test-key"
    body = json.loads(request.content)
    assert "Ship release" in body["contents"][0]["parts"][0]["text"]


@pytest.mark.asyncio
async def test_rate_limit():
    service = make_service(lambda request: httpx.Response(429, json={"error": {"message": "quota"}}))

    with pytest.raises(AiBreakdownError) as exc_info:
        await service.generate_subtask_titles("Task")

    assert exc_info.value.status_code == 429
    assert str(exc_info.value) == "AI is busy (Rate Limit). Please try again in a minute."


@pytest.mark.asyncio
async def test_api_error_message_is_passed_on():
    service = make_service(
        lambda request: httpx.Response(400, json={"error": {"message": "API key not valid"}})
    )

    with pytest.raises(AiBreakdownError, match="Gemini API Error: API key not valid") as exc_info:
        await service.generate_subtask_titles("Task")

    assert exc_info.value.status_code == 502


@pytest.mark.asyncio
async def test_unreachable_service():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    service = make_service(handler)

    with pytest.raises(AiBreakdownError, match="unreachable"):
        await service.generate_subtask_titles("Task")


@pytest.mark.asyncio
async def test_missing_candidates_yield_no_subtasks():
    service = make_service(lambda request: httpx.Response(200, json={"candidates": []}))

    assert await service.generate_subtask_titles("Task") == []


@pytest.mark.asyncio
async def test_not_configured():
    service = make_service(lambda request: httpx.Response(200), enabled=False)

    with pytest.raises(AiBreakdownError) as exc_info:
        await service.generate_subtask_titles("Task")

    assert exc_info.value.status_code == 503
