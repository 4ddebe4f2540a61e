"""Diagnostics support for Moodflow."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.redact import async_redact_data

from .const import DIAGNOSTICS_REDACT_KEYS, DOMAIN


async def async_get_config_entry_diagnostics(
    hass: HomeAssistant, entry: ConfigEntry
) -> dict[str, Any]:
    data = hass.data.get(DOMAIN, {}).get(entry.entry_id, {})
    coordinator = data.get("coordinator")
    engine = getattr(coordinator, "engine", None)

    runtime: dict[str, Any] = {
        "data": asdict(coordinator.data) if coordinator is not None and coordinator.data else None,
    }
    if engine is not None:
        repository = engine.repository
        runtime.update(
            {
                "health": asdict(engine.health),
                "last_cycle": engine.snapshot.as_dict(),
                "sensors": dict(engine.state.sensors),
                "binary_sensors": dict(engine.state.binary_sensors),
                "journal": {
                    "check_ins": len(repository.check_ins()),
                    "active_suggestions": [
                        item.as_dict() for item in repository.active_suggestions()
                    ],
                    "recent_executions": [
                        item.as_dict() for item in repository.recent_executions(5)
                    ],
                    "contacts": [item.as_dict() for item in repository.contacts()],
                },
            }
        )

    payload = {
        "entry": {
            "title": entry.title,
            "version": entry.version,
            "minor_version": getattr(entry, "minor_version", None),
            "options": dict(entry.options),
        },
        "runtime": runtime,
    }

    return async_redact_data(payload, DIAGNOSTICS_REDACT_KEYS)
