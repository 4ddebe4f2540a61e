"""Device categories and capability aggregation."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import StrEnum
from typing import Any, Iterable


class DeviceKind(StrEnum):
    LIGHT = "light"
    THERMOSTAT = "thermostat"
    SPEAKER = "speaker"
    OCCUPANCY_SENSOR = "occupancy_sensor"
    CONTACT_SENSOR = "contact_sensor"
    SWITCH = "switch"
    OUTLET = "outlet"
    UNKNOWN = "unknown"


class Connectivity(StrEnum):
    ONLINE = "online"
    PARTIALLY_ONLINE = "partially_online"
    OFFLINE = "offline"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class DeviceCategory:
    """Closed classification of a declared device type."""

    kind: DeviceKind
    dimmable: bool = False
    color: bool = False

    @property
    def is_light(self) -> bool:
        return self.kind is DeviceKind.LIGHT

    @property
    def is_sensor(self) -> bool:
        return self.kind in (DeviceKind.OCCUPANCY_SENSOR, DeviceKind.CONTACT_SENSOR)

    @property
    def supports_on_off(self) -> bool:
        return self.kind in (
            DeviceKind.LIGHT,
            DeviceKind.SWITCH,
            DeviceKind.OUTLET,
            DeviceKind.SPEAKER,
        )

    @property
    def actionable(self) -> bool:
        return not self.is_sensor and self.kind is not DeviceKind.UNKNOWN


UNKNOWN_CATEGORY = DeviceCategory(DeviceKind.UNKNOWN)

_DECLARED_TYPES: dict[str, DeviceCategory] = {
    "on_off_light": DeviceCategory(DeviceKind.LIGHT),
    "dimmable_light": DeviceCategory(DeviceKind.LIGHT, dimmable=True),
    "color_temperature_light": DeviceCategory(DeviceKind.LIGHT, dimmable=True, color=True),
    "extended_color_light": DeviceCategory(DeviceKind.LIGHT, dimmable=True, color=True),
    "thermostat": DeviceCategory(DeviceKind.THERMOSTAT),
    "speaker": DeviceCategory(DeviceKind.SPEAKER),
    "occupancy_sensor": DeviceCategory(DeviceKind.OCCUPANCY_SENSOR),
    "contact_sensor": DeviceCategory(DeviceKind.CONTACT_SENSOR),
    "generic_switch": DeviceCategory(DeviceKind.SWITCH),
    "on_off_light_switch": DeviceCategory(DeviceKind.SWITCH),
    "on_off_plugin_unit": DeviceCategory(DeviceKind.OUTLET),
}


def categorize(device_type: str | None) -> DeviceCategory:
    """Map a declared device type onto its category."""
    if not device_type:
        return UNKNOWN_CATEGORY
    return _DECLARED_TYPES.get(str(device_type).strip().lower(), UNKNOWN_CATEGORY)


@dataclass(frozen=True)
class DeviceSnapshot:
    """Read-only view of one inventory device."""

    device_id: str
    name: str
    device_type: str
    traits: tuple[str, ...] = ()
    connectivity: Connectivity = Connectivity.ONLINE
    room: str | None = None
    category: DeviceCategory = field(init=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "category", categorize(self.device_type))

    @property
    def is_online(self) -> bool:
        return self.connectivity is Connectivity.ONLINE

    @property
    def domain(self) -> str:
        return self.device_id.split(".", 1)[0]


@dataclass(frozen=True)
class DeviceCapabilitySummary:
    """What the current inventory can do, for one generation cycle."""

    light_count: int = 0
    color_light_count: int = 0
    dimmable_lights: bool = False
    color_lights: bool = False
    thermostat_count: int = 0
    speaker_count: int = 0
    sensor_count: int = 0
    has_switches: bool = False
    has_outlets: bool = False
    has_motion_sensors: bool = False
    has_contact_sensors: bool = False
    rooms: frozenset[str] = frozenset()

    @property
    def controllable_count(self) -> int:
        return self.light_count + self.thermostat_count + self.speaker_count

    @property
    def has_controllable_devices(self) -> bool:
        return self.controllable_count > 0

    @property
    def device_count(self) -> int:
        return self.controllable_count + self.sensor_count

    def describe(self) -> str:
        lines = [
            f"- Lights: {self.light_count}"
            + (" (dimmable)" if self.dimmable_lights else "")
            + (" (color capable)" if self.color_lights else ""),
            f"- Thermostats: {self.thermostat_count}",
            f"- Speakers: {self.speaker_count}",
            f"- Sensors: {self.sensor_count}",
        ]
        if self.has_switches:
            lines.append("- Smart switches available")
        if self.has_outlets:
            lines.append("- Smart outlets available")
        if self.rooms:
            lines.append(f"- Rooms: {', '.join(sorted(self.rooms))}")
        return "\n".join(lines)

    def as_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["rooms"] = sorted(self.rooms)
        return data


def aggregate_capabilities(devices: Iterable[DeviceSnapshot] | None) -> DeviceCapabilitySummary:
    """Summarize the online part of an inventory. None counts as empty."""
    light_count = 0
    color_light_count = 0
    thermostat_count = 0
    speaker_count = 0
    sensor_count = 0
    dimmable = False
    color = False
    switches = False
    outlets = False
    motion = False
    contact = False
    rooms: set[str] = set()

    for device in devices or ():
        category = device.category
        if category.kind is DeviceKind.UNKNOWN or not device.is_online:
            continue
        if device.room:
            rooms.add(device.room)

        if category.kind is DeviceKind.LIGHT:
            light_count += 1
            dimmable = dimmable or category.dimmable
            color = color or category.color
            color_light_count += int(category.color)
        elif category.kind is DeviceKind.THERMOSTAT:
            thermostat_count += 1
        elif category.kind is DeviceKind.SPEAKER:
            speaker_count += 1
        elif category.kind is DeviceKind.OCCUPANCY_SENSOR:
            sensor_count += 1
            motion = True
        elif category.kind is DeviceKind.CONTACT_SENSOR:
            sensor_count += 1
            contact = True
        elif category.kind is DeviceKind.SWITCH:
            switches = True
        elif category.kind is DeviceKind.OUTLET:
            outlets = True

    return DeviceCapabilitySummary(
        light_count=light_count,
        color_light_count=color_light_count,
        dimmable_lights=dimmable,
        color_lights=color,
        thermostat_count=thermostat_count,
        speaker_count=speaker_count,
        sensor_count=sensor_count,
        has_switches=switches,
        has_outlets=outlets,
        has_motion_sensors=motion,
        has_contact_sensors=contact,
        rooms=frozenset(rooms),
    )


def devices_of(devices: Iterable[DeviceSnapshot] | None, kind: DeviceKind) -> list[DeviceSnapshot]:
    return [
        device for device in devices or () if device.is_online and device.category.kind is kind
    ]
