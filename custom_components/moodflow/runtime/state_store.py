"""Canonical state store for Moodflow entities."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class CanonicalState:
    """In-memory canonical state for entities."""

    binary_sensors: dict[str, bool | None] = field(default_factory=dict)
    sensors: dict[str, Any] = field(default_factory=dict)
    attributes: dict[str, dict[str, Any]] = field(default_factory=dict)

    def get_binary(self, key: str) -> bool | None:
        return self.binary_sensors.get(key)

    def get_sensor(self, key: str) -> Any:
        return self.sensors.get(key)

    def get_attributes(self, key: str) -> dict[str, Any]:
        return self.attributes.get(key, {})

    def set_binary(self, key: str, value: bool | None) -> None:
        self.binary_sensors[key] = value

    def set_sensor(self, key: str, value: Any, attributes: dict[str, Any] | None = None) -> None:
        self.sensors[key] = value
        if attributes is not None:
            self.attributes[key] = attributes
