"""Moodflow: turns emotional check-ins into device-aware wellbeing automations.

One config entry owns a coordinator, which owns the engine and its journal of
check-ins, suggestions, executions and contacts. Services are domain wide and
resolve the entry per call.
"""

from __future__ import annotations

import logging

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.typing import ConfigType

from .const import DOMAIN, PLATFORMS
from .coordinator import MoodflowCoordinator
from .services import async_register_services

_LOGGER = logging.getLogger(__name__)


async def async_setup(hass: HomeAssistant, config: ConfigType) -> bool:
    """Register the check-in, suggestion and contact services once per domain."""
    hass.data.setdefault(DOMAIN, {})

    if not hass.data[DOMAIN].get("services_registered"):
        await async_register_services(hass)
        hass.data[DOMAIN]["services_registered"] = True

    return True


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Load the journal, build the engine and publish the mood sensors."""
    hass.data.setdefault(DOMAIN, {})

    coordinator = MoodflowCoordinator(hass=hass, entry=entry)
    await coordinator.async_initialize()

    hass.data[DOMAIN][entry.entry_id] = {"coordinator": coordinator}

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    entry.async_on_unload(entry.add_update_listener(_async_entry_updated))

    _LOGGER.info(
        "Set up %s (entry_id=%s, check_ins=%s, contacts=%s)",
        DOMAIN,
        entry.entry_id,
        len(coordinator.engine.repository.check_ins()),
        len(coordinator.engine.repository.contacts()),
    )
    return True


async def _async_entry_updated(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Handle options update.

    The entity set depends on options (the AI source sensor), so the entry is
    reloaded rather than patched in place.
    """
    _LOGGER.debug("Options updated for %s, reloading entry %s", DOMAIN, entry.entry_id)
    await hass.config_entries.async_reload(entry.entry_id)


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Tear down the entities, then cancel any running execution and light effect."""
    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if unload_ok:
        data = hass.data[DOMAIN].pop(entry.entry_id, None)
        if data and "coordinator" in data:
            coordinator: MoodflowCoordinator = data["coordinator"]
            await coordinator.async_shutdown()
    return unload_ok
