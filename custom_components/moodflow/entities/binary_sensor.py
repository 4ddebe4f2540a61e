"""Moodflow binary sensors."""

from __future__ import annotations

from homeassistant.components.binary_sensor import BinarySensorEntity
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
        MoodflowBinarySensor(coordinator, entry, desc.key, desc.name)
        for desc in registry.binary_sensors
    )


class MoodflowBinarySensor(MoodflowEntity, BinarySensorEntity):
    """Canonical binary sensor backed by the engine state."""

    @property
    def is_on(self):
        return self.coordinator.engine.state.get_binary(self._key)
