from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from custom_components.moodflow.runtime.classifier import classify
from custom_components.moodflow.runtime.contracts import CheckIn, GenerationContext
from custom_components.moodflow.runtime.devices import DeviceSnapshot, aggregate_capabilities
from custom_components.moodflow.runtime.orchestrator import priority_hint
from custom_components.moodflow.runtime.repository import MoodflowRepository

MORNING = datetime(2024, 5, 6, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def home_devices():
    return [
        DeviceSnapshot("light.living_room", "Living Room", "extended_color_light", room="Living Room"),
        DeviceSnapshot("light.desk", "Desk", "dimmable_light", room="Office"),
        DeviceSnapshot("climate.hallway", "Hallway", "thermostat"),
        DeviceSnapshot("binary_sensor.hall_motion", "Hall Motion", "occupancy_sensor"),
    ]


@pytest.fixture
def make_context():
    def _make(tags, text=None, devices=(), contacts=(), now=MORNING, crisis_line="988"):
        check_in = CheckIn(emotion_tags=tuple(tags), free_text=text)
        assessment = classify(check_in.emotion_tags, check_in.free_text)
        return GenerationContext(
            check_in=check_in,
            assessment=assessment,
            capabilities=aggregate_capabilities(devices),
            priority_hint=priority_hint(assessment),
            devices=tuple(devices),
            contacts=tuple(contacts),
            now=now,
            crisis_line=crisis_line,
        )

    return _make


@pytest.fixture
def store():
    store = MagicMock()
    store.async_load = AsyncMock(return_value=None)
    store.async_save = AsyncMock()
    return store


@pytest.fixture
def repository(store):
    with patch("custom_components.moodflow.runtime.repository.Store", return_value=store):
        return MoodflowRepository(MagicMock())
