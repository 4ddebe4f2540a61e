"""Entity registry builders for Moodflow canonical entities."""

from __future__ import annotations

from dataclasses import dataclass

from homeassistant.config_entries import ConfigEntry

from ..models import MoodflowOptions

KEY_SENTIMENT = "moodflow_sentiment"
KEY_INTENSITY = "moodflow_intensity"
KEY_SUPPORT_LEVEL = "moodflow_support_level"
KEY_RISK_LEVEL = "moodflow_risk_level"
KEY_DOMINANT_EMOTIONS = "moodflow_dominant_emotions"
KEY_LAST_CHECK_IN = "moodflow_last_check_in"
KEY_ACTIVE_SUGGESTIONS = "moodflow_active_suggestions"
KEY_LAST_EXECUTION = "moodflow_last_execution"
KEY_EXECUTION_STATUS = "moodflow_execution_status"
KEY_SUGGESTION_SOURCES = "moodflow_suggestion_sources"

KEY_SUPPORT_RECOMMENDED = "moodflow_support_recommended"
KEY_CRISIS_SUPPORT = "moodflow_crisis_support"
KEY_EXECUTING = "moodflow_executing"


@dataclass(frozen=True)
class MoodflowEntityDescription:
    key: str
    name: str
    icon: str | None = None


@dataclass(frozen=True)
class MoodflowRegistry:
    sensors: list[MoodflowEntityDescription]
    binary_sensors: list[MoodflowEntityDescription]


def build_registry(entry: ConfigEntry) -> MoodflowRegistry:
    options = MoodflowOptions.from_entry(entry)

    sensors: list[MoodflowEntityDescription] = []
    binaries: list[MoodflowEntityDescription] = []

    # Assessment of the latest check-in
    sensors.append(_s(KEY_SENTIMENT, "Moodflow Sentiment", "mdi:emoticon-outline"))
    sensors.append(_s(KEY_INTENSITY, "Moodflow Intensity", "mdi:gauge"))
    sensors.append(_s(KEY_SUPPORT_LEVEL, "Moodflow Support Level", "mdi:hand-heart"))
    sensors.append(_s(KEY_RISK_LEVEL, "Moodflow Risk Level", "mdi:shield-alert-outline"))
    sensors.append(_s(KEY_DOMINANT_EMOTIONS, "Moodflow Dominant Emotions"))
    sensors.append(_s(KEY_LAST_CHECK_IN, "Moodflow Last Check-in", "mdi:notebook-heart-outline"))
    binaries.append(_b(KEY_SUPPORT_RECOMMENDED, "Moodflow Support Recommended"))
    binaries.append(_b(KEY_CRISIS_SUPPORT, "Moodflow Crisis Support"))

    # Suggestions
    sensors.append(_s(KEY_ACTIVE_SUGGESTIONS, "Moodflow Active Suggestions", "mdi:lightbulb-on-outline"))
    if options.ai_enabled:
        sensors.append(_s(KEY_SUGGESTION_SOURCES, "Moodflow Suggestion Sources"))

    # Execution
    sensors.append(_s(KEY_LAST_EXECUTION, "Moodflow Last Execution", "mdi:play-circle-outline"))
    sensors.append(_s(KEY_EXECUTION_STATUS, "Moodflow Execution Status", "mdi:format-list-checks"))
    binaries.append(_b(KEY_EXECUTING, "Moodflow Executing"))

    return MoodflowRegistry(sensors=sensors, binary_sensors=binaries)


def _k(key: str) -> str:
    return key if key.startswith("moodflow_") else f"moodflow_{key}"


def _s(key: str, name: str, icon: str | None = None) -> MoodflowEntityDescription:
    return MoodflowEntityDescription(key=_k(key), name=name, icon=icon)


def _b(key: str, name: str) -> MoodflowEntityDescription:
    return MoodflowEntityDescription(key=_k(key), name=name)
