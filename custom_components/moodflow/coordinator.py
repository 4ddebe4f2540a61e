"""Coordinator for Moodflow runtime."""

from __future__ import annotations

import logging

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator

from .const import DOMAIN
from .models import MoodflowRuntimeState
from .runtime.engine import MoodflowEngine

_LOGGER = logging.getLogger(__name__)


class MoodflowCoordinator(DataUpdateCoordinator[MoodflowRuntimeState]):
    """Owns the Moodflow runtime engine instance."""

    def __init__(self, hass: HomeAssistant, entry: ConfigEntry) -> None:
        super().__init__(
            hass=hass,
            logger=_LOGGER,
            name=DOMAIN,
            update_interval=None,  # push-based
        )
        self.entry = entry
        self.engine = MoodflowEngine(hass, entry, on_update=self._handle_engine_update)
        self._unsub_repository = None
        self._last_decision = "booting"
        self._last_action = ""
        self.data = MoodflowRuntimeState(
            health_ok=True,
            health_reason="booting",
            last_check_in_id="",
            last_decision="",
            last_action="",
        )

    async def _async_update_data(self) -> MoodflowRuntimeState:
        """Return current runtime state for coordinator refreshes.

        Moodflow is push-driven: state updates are produced by service calls.
        """
        return self.data

    async def async_initialize(self) -> None:
        """Initialize runtime and publish base state."""
        await self.engine.async_initialize()
        self._unsub_repository = self.engine.repository.async_add_listener(
            self._handle_engine_update
        )
        self._last_decision = "initialized"
        self._publish()
        await self.async_refresh()

    def record_action(self, decision: str, action: str = "") -> None:
        """Remember the last service-level decision for entities and diagnostics."""
        self._last_decision = decision
        self._last_action = action
        self._publish()

    async def async_shutdown(self) -> None:
        """Shutdown runtime."""
        if self._unsub_repository:
            self._unsub_repository()
            self._unsub_repository = None
        await self.engine.async_shutdown()
        await super().async_shutdown()
        _LOGGER.debug("Moodflow runtime shutdown")

    @callback
    def _handle_engine_update(self) -> None:
        self._publish()

    @callback
    def _publish(self) -> None:
        self.async_set_updated_data(
            MoodflowRuntimeState(
                health_ok=self.engine.health.ok,
                health_reason=self.engine.health.reason,
                last_check_in_id=self.engine.snapshot.check_in_id,
                last_decision=self._last_decision,
                last_action=self._last_action,
            )
        )
