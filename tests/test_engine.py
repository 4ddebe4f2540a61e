from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from custom_components.moodflow.errors import MoodflowError, SuggestionNotFoundError
from custom_components.moodflow.runtime.engine import MoodflowEngine

ENGINE = "custom_components.moodflow.runtime.engine"


def _hass(tmp_path):
    hass = MagicMock()
    hass.config.path.side_effect = lambda name: str(tmp_path / name)
    hass.async_add_executor_job = AsyncMock(side_effect=lambda func, *args: func(*args))
    hass.services.async_call = AsyncMock()
    return hass


def _events(hass):
    return [call.args[1]["type"] for call in hass.bus.async_fire.call_args_list]


@pytest.fixture
def engine_factory(tmp_path, store, home_devices):
    def _make(**options):
        hass = _hass(tmp_path)
        entry = SimpleNamespace(entry_id="entry1", options={"ambient_effects": False, **options})
        updates = []
        with patch("custom_components.moodflow.runtime.repository.Store", return_value=store):
            engine = MoodflowEngine(hass, entry, on_update=lambda: updates.append(True))
        return engine, hass, updates

    with patch(f"{ENGINE}.async_snapshot_inventory", return_value=home_devices):
        yield _make


@pytest.mark.asyncio
async def test_initialize_builds_default_state(engine_factory):
    engine, _, _ = engine_factory()
    await engine.async_initialize()
    assert engine.health.ok is True
    assert engine.state.get_sensor("moodflow_active_suggestions") == 0
    assert engine.state.get_sensor("moodflow_execution_status") == "idle"
    assert engine.state.get_binary("moodflow_executing") is False
    assert "moodflow_suggestion_sources" not in engine.state.sensors


@pytest.mark.asyncio
async def test_check_in_generates_and_publishes(engine_factory):
    engine, hass, updates = engine_factory()
    await engine.async_initialize()

    check_in, suggestions = await engine.async_check_in([" Anxious ", "sad", "angry"], "  ")

    assert check_in.emotion_tags == ("anxious", "sad", "angry")
    assert check_in.free_text is None
    assert suggestions
    assert engine.snapshot.check_in_id == check_in.check_in_id
    assert engine.state.get_sensor("moodflow_sentiment") == "negative"
    assert engine.state.get_sensor("moodflow_support_level") == "high"
    assert engine.state.get_binary("moodflow_support_recommended") is True
    assert engine.state.get_binary("moodflow_crisis_support") is True
    assert engine.state.get_sensor("moodflow_active_suggestions") == len(suggestions)
    assert _events(hass) == ["check_in.saved", "support.crisis", "suggestions.generated"]
    assert updates


@pytest.mark.asyncio
async def test_generation_failure_keeps_check_in(engine_factory):
    engine, _, _ = engine_factory()
    await engine.async_initialize()
    with patch(
        "custom_components.moodflow.runtime.orchestrator.SuggestionOrchestrator.async_run",
        AsyncMock(side_effect=OSError("disk")),
    ):
        check_in, suggestions = await engine.async_check_in(["sad"])

    assert suggestions == []
    assert engine.repository.get_check_in(check_in.check_in_id) is not None
    assert engine.health.ok is False


@pytest.mark.asyncio
async def test_execute_updates_status_sensors(engine_factory):
    engine, hass, _ = engine_factory()
    await engine.async_initialize()
    _, suggestions = await engine.async_check_in(["anxious"])
    target = next(item for item in suggestions if item.title == "Calming Light Environment")

    record = await engine.async_execute_suggestion(target.suggestion_id)

    assert record.completion_status == "SUCCESS"
    assert engine.state.get_sensor("moodflow_last_execution") == "SUCCESS"
    assert engine.state.get_sensor("moodflow_execution_status") == "executed"
    assert engine.state.get_attributes("moodflow_execution_status")["log"][-1] == "✓ Completed"
    assert engine.state.get_binary("moodflow_executing") is False
    assert engine.repository.get_suggestion(target.suggestion_id).is_executed
    assert "suggestion.executed" in _events(hass)


@pytest.mark.asyncio
async def test_execute_refused_when_disabled(engine_factory):
    engine, _, _ = engine_factory(engine_enabled=False)
    await engine.async_initialize()
    _, suggestions = await engine.async_check_in(["anxious"])
    with pytest.raises(MoodflowError):
        await engine.async_execute_suggestion(suggestions[0].suggestion_id)


@pytest.mark.asyncio
async def test_dismiss_and_unknown_suggestion(engine_factory):
    engine, hass, _ = engine_factory()
    await engine.async_initialize()
    _, suggestions = await engine.async_check_in(["happy"])
    before = engine.state.get_sensor("moodflow_active_suggestions")

    await engine.async_dismiss_suggestion(suggestions[0].suggestion_id)
    assert engine.state.get_sensor("moodflow_active_suggestions") == before - 1
    assert "suggestion.dismissed" in _events(hass)

    with pytest.raises(SuggestionNotFoundError):
        await engine.async_dismiss_suggestion("missing")


@pytest.mark.asyncio
async def test_delete_check_in_clears_assessment(engine_factory):
    engine, _, _ = engine_factory()
    await engine.async_initialize()
    check_in, _ = await engine.async_check_in(["sad"])

    await engine.async_delete_check_in(check_in.check_in_id)
    assert engine.state.get_sensor("moodflow_sentiment") is None
    assert engine.state.get_sensor("moodflow_active_suggestions") == 0


@pytest.mark.asyncio
async def test_contacts_and_regeneration(engine_factory):
    engine, _, _ = engine_factory()
    await engine.async_initialize()
    contact = await engine.async_add_contact(" Sam ", "555-0100", "Friend")
    assert contact.name == "Sam"
    assert contact.relationship == "friend"

    check_in, _ = await engine.async_check_in(["sad", "angry"])
    regenerated = await engine.async_generate_suggestions(check_in.check_in_id)
    assert any(item.title == "Gentle Check-in" for item in regenerated)

    await engine.async_remove_contact(contact.contact_id)
    assert engine.repository.contacts() == []


@pytest.mark.asyncio
async def test_unexpected_generation_error_keeps_check_in(engine_factory):
    engine, _, _ = engine_factory()
    await engine.async_initialize()
    with patch(f"{ENGINE}.async_snapshot_inventory", side_effect=KeyError("area_id")):
        check_in, suggestions = await engine.async_check_in(["sad"])

    assert suggestions == []
    assert engine.repository.get_check_in(check_in.check_in_id) is not None
    assert engine.health.ok is False
    assert engine.health.reason.startswith("generation_failed:")
