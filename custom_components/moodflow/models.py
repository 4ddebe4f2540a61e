"""Typed models for Moodflow configuration and runtime state."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from homeassistant.config_entries import ConfigEntry

from .const import (
    CONF_AI_API_KEY,
    CONF_AI_ENABLED,
    CONF_AI_ENDPOINT,
    CONF_AI_MODEL,
    CONF_AI_TIMEOUT,
    CONF_AMBIENT_EFFECTS,
    CONF_CRISIS_LINE,
    CONF_ENGINE_ENABLED,
    CONF_RESTORE_ENVIRONMENT,
    DEFAULT_AI_ENABLED,
    DEFAULT_AI_ENDPOINT,
    DEFAULT_AI_MODEL,
    DEFAULT_AI_TIMEOUT,
    DEFAULT_AMBIENT_EFFECTS,
    DEFAULT_CRISIS_LINE,
    DEFAULT_ENGINE_ENABLED,
    DEFAULT_RESTORE_ENVIRONMENT,
)


@dataclass(frozen=True)
class MoodflowOptions:
    """Normalized options stored in the config entry."""

    engine_enabled: bool
    ai_enabled: bool
    ai_endpoint: str
    ai_model: str
    ai_api_key: str
    ai_timeout: float
    ambient_effects: bool
    restore_environment: bool
    crisis_line: str

    @property
    def ai_configured(self) -> bool:
        return self.ai_enabled and bool(self.ai_endpoint)

    @classmethod
    def from_entry(cls, entry: ConfigEntry) -> "MoodflowOptions":
        options: dict[str, Any] = dict(entry.options)
        try:
            timeout = float(options.get(CONF_AI_TIMEOUT, DEFAULT_AI_TIMEOUT))
        except (TypeError, ValueError):
            timeout = float(DEFAULT_AI_TIMEOUT)
        return cls(
            engine_enabled=bool(options.get(CONF_ENGINE_ENABLED, DEFAULT_ENGINE_ENABLED)),
            ai_enabled=bool(options.get(CONF_AI_ENABLED, DEFAULT_AI_ENABLED)),
            ai_endpoint=str(options.get(CONF_AI_ENDPOINT, DEFAULT_AI_ENDPOINT) or "").rstrip("/"),
            ai_model=str(options.get(CONF_AI_MODEL, DEFAULT_AI_MODEL) or DEFAULT_AI_MODEL),
            ai_api_key=str(options.get(CONF_AI_API_KEY, "") or ""),
            ai_timeout=timeout if timeout > 0 else float(DEFAULT_AI_TIMEOUT),
            ambient_effects=bool(options.get(CONF_AMBIENT_EFFECTS, DEFAULT_AMBIENT_EFFECTS)),
            restore_environment=bool(
                options.get(CONF_RESTORE_ENVIRONMENT, DEFAULT_RESTORE_ENVIRONMENT)
            ),
            crisis_line=str(options.get(CONF_CRISIS_LINE, DEFAULT_CRISIS_LINE) or DEFAULT_CRISIS_LINE),
        )


@dataclass(frozen=True)
class MoodflowRuntimeState:
    """Minimal runtime state surfaced to entity platforms."""

    health_ok: bool
    health_reason: str
    last_check_in_id: str
    last_decision: str
    last_action: str
