import asyncio
import json
from unittest.mock import AsyncMock

import aiohttp
import pytest

from custom_components.moodflow.errors import TextGenerationError
from custom_components.moodflow.runtime import ai_generator
from custom_components.moodflow.runtime.ai_client import ChatCompletionsClient
from custom_components.moodflow.runtime.contracts import (
    ActionKind,
    Contact,
    Priority,
    SuggestionCategory,
)


def _payload(*suggestions):
    return json.dumps({"suggestions": list(suggestions)})


def test_parse_response_builds_suggestions(make_context):
    text = "Here you go:\n" + _payload(
        {
            "title": "Breathe",
            "description": "A short breathing break",
            "type": "therapeutic",
            "priority": "high",
            "actions": [
                {
                    "type": "THERAPEUTIC_ACTIVITY",
                    "displayText": "Start breathing",
                    "parameters": {"duration": 5, "steps": ["in", "out"]},
                }
            ],
            "reasoning": "Slows the heart rate",
            "duration": 5,
        }
    ) + "\nTake care!"
    result = ai_generator.parse_response(text, make_context(["anxious"]))
    assert result.ok
    suggestion = result.suggestions[0]
    assert suggestion.category is SuggestionCategory.THERAPEUTIC
    assert suggestion.priority is Priority.HIGH
    assert suggestion.estimated_duration == "5"
    action = suggestion.actions[0]
    assert action.kind is ActionKind.THERAPEUTIC_ACTIVITY
    assert action.parameters == {"duration": "5", "steps": '["in", "out"]'}


def test_parse_response_applies_defaults(make_context):
    result = ai_generator.parse_response(
        _payload({"title": "Rest", "description": "Lie down"}), make_context([])
    )
    suggestion = result.suggestions[0]
    assert suggestion.category is SuggestionCategory.WELLNESS
    assert suggestion.priority is Priority.MEDIUM
    assert suggestion.rationale == "AI-generated suggestion"
    assert suggestion.estimated_duration == "5-10 minutes"
    assert [a.kind for a in suggestion.actions] == [ActionKind.REMINDER]
    assert suggestion.actions[0].display_text == "Take action"


def test_parse_response_skips_invalid_items(make_context):
    text = _payload(
        {"title": "", "description": "no title"},
        {"title": "Odd", "description": "unknown type", "type": "ASTROLOGY"},
        {"title": "Walk", "description": "Go outside"},
    )
    result = ai_generator.parse_response(text, make_context([]))
    assert [item.title for item in result.suggestions] == ["Walk"]


def test_parse_response_caps_at_three(make_context):
    items = [{"title": f"S{i}", "description": "d"} for i in range(5)]
    result = ai_generator.parse_response(_payload(*items), make_context([]))
    assert len(result.suggestions) == 3


def test_parse_response_failures(make_context):
    context = make_context([])
    assert not ai_generator.parse_response("no json here", context).ok
    assert not ai_generator.parse_response("{not json}", context).ok
    assert not ai_generator.parse_response('{"items": []}', context).ok
    assert not ai_generator.parse_response('{"suggestions": []}', context).ok


def test_call_contact_binds_known_contact(make_context):
    friend = Contact(name="Sam", phone_number="555-0100")
    text = _payload(
        {
            "title": "Call a friend",
            "description": "Talk it through",
            "actions": [
                {
                    "type": "CALL_CONTACT",
                    "displayText": "Call Sam",
                    "parameters": {"phoneNumber": "000", "contactName": "Nobody"},
                }
            ],
        }
    )
    action = ai_generator.parse_response(text, make_context([], contacts=[friend])).suggestions[0].actions[0]
    assert action.kind is ActionKind.CALL_CONTACT
    assert action.target_device_id == friend.contact_id
    assert action.parameters == {"phone_number": "555-0100", "contact_name": "Sam"}


def test_call_contact_without_contacts_is_dropped(make_context):
    text = _payload(
        {
            "title": "Call a friend",
            "description": "Talk it through",
            "actions": [{"type": "CALL_CONTACT", "displayText": "Call"}],
        }
    )
    suggestion = ai_generator.parse_response(text, make_context([])).suggestions[0]
    assert [a.kind for a in suggestion.actions] == [ActionKind.REMINDER]


def test_build_prompt_includes_context(make_context, home_devices):
    friend = Contact(name="Sam", phone_number="555-0100", relationship="friend")
    prompt = ai_generator.build_prompt(
        make_context(["anxious"], "long day", devices=home_devices, contacts=[friend])
    )
    assert "Current emotions: anxious" in prompt
    assert "Thoughts: long day" in prompt
    assert "Time of day: morning" in prompt
    assert "Sam (friend)" in prompt
    assert "- Lights: 2 (dimmable) (color capable)" in prompt
    assert "555-0100" not in prompt


def test_build_prompt_without_devices(make_context):
    assert "No smart home devices detected" in ai_generator.build_prompt(make_context([]))


@pytest.mark.asyncio
async def test_async_generate_without_client_fails(make_context):
    result = await ai_generator.async_generate(make_context([]), None)
    assert not result.ok
    assert result.error.source == "ai"


@pytest.mark.asyncio
async def test_async_generate_maps_client_error(make_context):
    client = AsyncMock()
    client.async_generate.side_effect = TextGenerationError("Timeout after 20s")
    result = await ai_generator.async_generate(make_context([]), client)
    assert not result.ok
    assert "Timeout" in result.error.message


@pytest.mark.asyncio
async def test_async_generate_parses_client_text(make_context):
    client = AsyncMock()
    client.async_generate.return_value = _payload({"title": "Rest", "description": "Lie down"})
    result = await ai_generator.async_generate(make_context([]), client)
    assert [item.title for item in result.suggestions] == ["Rest"]


class _FakeResponse:
    def __init__(self, status, body):
        self.status = status
        self._body = body

    async def text(self):
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class _FakeSession:
    def __init__(self, response=None, error=None):
        self._response = response
        self._error = error
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self._error is not None:
            raise self._error
        return self._response


def _client(session):
    return ChatCompletionsClient(
        session, endpoint="https://llm.local/", model="gpt-4o-mini", api_key="secret", timeout_s=5
    )


@pytest.mark.asyncio
async def test_client_returns_message_content():
    body = json.dumps({"choices": [{"message": {"content": "hello"}}]})
    session = _FakeSession(_FakeResponse(200, body))
    assert await _client(session).async_generate("prompt") == "hello"
    url, kwargs = session.calls[0]
    assert url == "https://llm.local/v1/chat/completions"
    assert kwargs["headers"]["Authorization"] == "Bearer secret"
    assert kwargs["json"]["model"] == "gpt-4o-mini"
    assert kwargs["timeout"].total == 5


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "session",
    [
        _FakeSession(_FakeResponse(500, "boom")),
        _FakeSession(_FakeResponse(200, "not json")),
        _FakeSession(_FakeResponse(200, json.dumps({"choices": []}))),
        _FakeSession(error=asyncio.TimeoutError()),
        _FakeSession(error=aiohttp.ClientConnectionError("refused")),
    ],
)
async def test_client_errors_become_text_generation_errors(session):
    with pytest.raises(TextGenerationError):
        await _client(session).async_generate("prompt")
