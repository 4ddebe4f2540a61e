"""Moodflow sensors."""

from __future__ import annotations

from homeassistant.components.sensor import SensorEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from ..const import DOMAIN
from ..coordinator import MoodflowCoordinator
from .base import MoodflowEntity
from .registry import build_registry


async def async_setup_entry(
    hass: HomeAssistant, entry: ConfigEntry, async_add_entities: AddEntitiesCallback
) -> None:
    data = hass.data[DOMAIN][entry.entry_id]
    coordinator: MoodflowCoordinator = data["coordinator"]
    registry = build_registry(entry)
    async_add_entities(
        MoodflowSensor(coordinator, entry, desc.key, desc.name, desc.icon)
        for desc in registry.sensors
    )


class MoodflowSensor(MoodflowEntity, SensorEntity):
    """Canonical sensor backed by the engine state."""

    def __init__(
        self,
        coordinator: MoodflowCoordinator,
        entry: ConfigEntry,
        key: str,
        name: str,
        icon: str | None = None,
    ) -> None:
        super().__init__(coordinator, entry, key, name)
        self._attr_icon = icon

    @property
    def native_value(self):
        return self.coordinator.engine.state.get_sensor(self._key)
