"""Base entities for Moodflow."""

from __future__ import annotations

from homeassistant.config_entries import ConfigEntry
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from ..const import DOMAIN
from ..coordinator import MoodflowCoordinator


class MoodflowEntity(CoordinatorEntity[MoodflowCoordinator]):
    """Base class for Moodflow entities."""

    def __init__(
        self, coordinator: MoodflowCoordinator, entry: ConfigEntry, key: str, name: str
    ) -> None:
        super().__init__(coordinator)
        self._entry = entry
        self._key = key
        self._attr_name = name
        self._attr_unique_id = f"{entry.entry_id}_{key}"
        self._attr_suggested_object_id = key

    @property
    def device_info(self):
        return {
            "identifiers": {(DOMAIN, self._entry.entry_id)},
            "name": "Moodflow",
            "manufacturer": "Moodflow",
            "model": "Moodflow Engine",
        }

    @property
    def extra_state_attributes(self):
        attributes = self.coordinator.engine.state.get_attributes(self._key)
        return dict(attributes) if attributes else None
