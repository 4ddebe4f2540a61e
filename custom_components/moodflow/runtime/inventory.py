"""Home Assistant device inventory provider."""

from __future__ import annotations

import logging
from typing import Any

from homeassistant.const import STATE_UNAVAILABLE, STATE_UNKNOWN
from homeassistant.core import HomeAssistant, State, callback
from homeassistant.helpers import area_registry as ar
from homeassistant.helpers import device_registry as dr
from homeassistant.helpers import entity_registry as er

from .devices import Connectivity, DeviceSnapshot

_LOGGER = logging.getLogger(__name__)

_COLOR_MODES = {"hs", "xy", "rgb", "rgbw", "rgbww"}
_OCCUPANCY_CLASSES = {"occupancy", "motion", "presence"}
_CONTACT_CLASSES = {"door", "window", "opening", "garage_door"}


def declared_type_for_state(state: State) -> tuple[str, tuple[str, ...]] | None:
    """Return (declared type, traits) for an entity state, or None when unsupported."""
    domain = state.domain
    attributes: dict[str, Any] = dict(state.attributes)

    if domain == "light":
        modes = {str(mode) for mode in attributes.get("supported_color_modes") or ()}
        if modes & _COLOR_MODES:
            return "extended_color_light", ("on_off", "brightness", "color_temperature", "color")
        if "color_temp" in modes:
            return "color_temperature_light", ("on_off", "brightness", "color_temperature")
        if modes & {"brightness", "white"}:
            return "dimmable_light", ("on_off", "brightness")
        return "on_off_light", ("on_off",)

    if domain == "climate":
        return "thermostat", ("temperature_setting",)

    if domain == "media_player":
        return "speaker", ("on_off", "volume")

    if domain == "binary_sensor":
        device_class = attributes.get("device_class")
        if device_class in _OCCUPANCY_CLASSES:
            return "occupancy_sensor", ("occupancy_sensing",)
        if device_class in _CONTACT_CLASSES:
            return "contact_sensor", ("open_close",)
        return None

    if domain == "switch":
        if attributes.get("device_class") == "outlet":
            return "on_off_plugin_unit", ("on_off",)
        return "on_off_light_switch", ("on_off",)

    return None


def connectivity_for_state(state: State) -> Connectivity:
    if state.state == STATE_UNAVAILABLE:
        return Connectivity.OFFLINE
    if state.state == STATE_UNKNOWN:
        return Connectivity.UNKNOWN
    return Connectivity.ONLINE


def snapshot_from_state(state: State, room: str | None = None) -> DeviceSnapshot | None:
    declared = declared_type_for_state(state)
    if declared is None:
        return None
    device_type, traits = declared
    return DeviceSnapshot(
        device_id=state.entity_id,
        name=str(state.name or state.entity_id),
        device_type=device_type,
        traits=traits,
        connectivity=connectivity_for_state(state),
        room=room,
    )


@callback
def async_snapshot_inventory(hass: HomeAssistant) -> list[DeviceSnapshot]:
    """Snapshot every supported entity, resolving rooms from the area registry."""
    entity_registry = er.async_get(hass)
    device_registry = dr.async_get(hass)
    area_registry = ar.async_get(hass)

    devices: list[DeviceSnapshot] = []
    for state in hass.states.async_all():
        room = _resolve_room(state.entity_id, entity_registry, device_registry, area_registry)
        snapshot = snapshot_from_state(state, room)
        if snapshot is not None:
            devices.append(snapshot)

    _LOGGER.debug("Inventory snapshot: %s devices", len(devices))
    return devices


def _resolve_room(
    entity_id: str,
    entity_registry: er.EntityRegistry,
    device_registry: dr.DeviceRegistry,
    area_registry: ar.AreaRegistry,
) -> str | None:
    entry = entity_registry.async_get(entity_id)
    if entry is None:
        return None

    area_id = entry.area_id
    if not area_id and entry.device_id:
        device = device_registry.async_get(entry.device_id)
        area_id = device.area_id if device else None
    if not area_id:
        return None

    area = area_registry.async_get_area(area_id)
    return area.name if area else None
