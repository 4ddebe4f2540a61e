from types import SimpleNamespace

from custom_components.moodflow.runtime.devices import (
    Connectivity,
    DeviceKind,
    DeviceSnapshot,
    aggregate_capabilities,
    categorize,
    devices_of,
)
from custom_components.moodflow.runtime.inventory import (
    connectivity_for_state,
    declared_type_for_state,
    snapshot_from_state,
)


def _state(entity_id, state="on", **attributes):
    return SimpleNamespace(
        entity_id=entity_id,
        domain=entity_id.split(".", 1)[0],
        state=state,
        name=attributes.pop("friendly_name", entity_id),
        attributes=attributes,
    )


def test_categorize_known_and_unknown_types():
    assert categorize("Dimmable_Light").dimmable is True
    assert categorize("extended_color_light").color is True
    assert categorize("on_off_plugin_unit").kind is DeviceKind.OUTLET
    assert categorize("robot_vacuum").kind is DeviceKind.UNKNOWN
    assert categorize(None).kind is DeviceKind.UNKNOWN


def test_sensors_are_not_actionable():
    assert categorize("occupancy_sensor").actionable is False
    assert categorize("contact_sensor").actionable is False
    assert categorize("speaker").actionable is True
    assert categorize("speaker").supports_on_off is True
    assert categorize("thermostat").supports_on_off is False


def test_aggregate_capabilities_counts_by_kind():
    devices = [
        DeviceSnapshot("light.desk", "Desk", "dimmable_light", room="Office"),
        DeviceSnapshot("light.strip", "Strip", "extended_color_light", room="Living Room"),
        DeviceSnapshot("climate.hall", "Hall", "thermostat"),
        DeviceSnapshot("binary_sensor.motion", "Motion", "occupancy_sensor"),
        DeviceSnapshot("binary_sensor.door", "Door", "contact_sensor"),
        DeviceSnapshot("switch.fan", "Fan", "generic_switch"),
        DeviceSnapshot("vacuum.robot", "Robot", "robot_vacuum", room="Hall"),
    ]
    summary = aggregate_capabilities(devices)
    assert summary.light_count == 2
    assert summary.dimmable_lights is True
    assert summary.color_lights is True
    assert summary.thermostat_count == 1
    assert summary.sensor_count == 2
    assert summary.has_motion_sensors is True
    assert summary.has_contact_sensors is True
    assert summary.has_switches is True
    assert summary.has_outlets is False
    assert summary.controllable_count == 3
    assert summary.device_count == 5
    assert summary.rooms == frozenset({"Office", "Living Room"})


def test_aggregate_capabilities_empty_and_none():
    assert aggregate_capabilities(None) == aggregate_capabilities([])
    assert aggregate_capabilities(None).has_controllable_devices is False


def test_sensors_only_inventory_has_no_controllable_devices():
    summary = aggregate_capabilities(
        [DeviceSnapshot("binary_sensor.motion", "Motion", "occupancy_sensor")]
    )
    assert summary.has_controllable_devices is False
    assert summary.device_count == 1


def test_describe_mentions_capabilities():
    summary = aggregate_capabilities(
        [DeviceSnapshot("light.desk", "Desk", "dimmable_light", room="Office")]
    )
    text = summary.describe()
    assert "- Lights: 1 (dimmable)" in text
    assert "- Rooms: Office" in text


def test_devices_of_filters_kind():
    devices = [
        DeviceSnapshot("light.desk", "Desk", "dimmable_light"),
        DeviceSnapshot("climate.hall", "Hall", "thermostat"),
    ]
    assert [d.device_id for d in devices_of(devices, DeviceKind.THERMOSTAT)] == ["climate.hall"]
    assert devices_of(None, DeviceKind.LIGHT) == []


def test_declared_type_for_lights():
    assert declared_type_for_state(_state("light.a", supported_color_modes=["hs", "color_temp"]))[0] == (
        "extended_color_light"
    )
    assert declared_type_for_state(_state("light.b", supported_color_modes=["color_temp"]))[0] == (
        "color_temperature_light"
    )
    assert declared_type_for_state(_state("light.c", supported_color_modes=["brightness"]))[0] == (
        "dimmable_light"
    )
    assert declared_type_for_state(_state("light.d"))[0] == "on_off_light"


def test_declared_type_for_binary_sensors():
    assert declared_type_for_state(_state("binary_sensor.m", device_class="motion"))[0] == "occupancy_sensor"
    assert declared_type_for_state(_state("binary_sensor.w", device_class="window"))[0] == "contact_sensor"
    assert declared_type_for_state(_state("binary_sensor.smoke", device_class="smoke")) is None


def test_unsupported_domain_is_skipped():
    assert snapshot_from_state(_state("sun.sun", "above_horizon")) is None


def test_connectivity_from_state():
    assert connectivity_for_state(_state("light.a", "unavailable")) is Connectivity.OFFLINE
    assert connectivity_for_state(_state("light.a", "unknown")) is Connectivity.UNKNOWN
    assert connectivity_for_state(_state("light.a", "off")) is Connectivity.ONLINE


def test_snapshot_from_state_builds_device():
    snapshot = snapshot_from_state(
        _state("switch.plug", "off", device_class="outlet", friendly_name="Plug"), room="Kitchen"
    )
    assert snapshot.name == "Plug"
    assert snapshot.category.kind is DeviceKind.OUTLET
    assert snapshot.room == "Kitchen"
    assert snapshot.is_online is True
    assert snapshot.domain == "switch"


def test_offline_devices_are_not_counted():
    devices = [
        DeviceSnapshot("light.desk", "Desk", "dimmable_light", connectivity=Connectivity.OFFLINE),
        DeviceSnapshot("climate.hall", "Hall", "thermostat", connectivity=Connectivity.UNKNOWN),
    ]
    summary = aggregate_capabilities(devices)
    assert summary.light_count == 0
    assert summary.thermostat_count == 0
    assert summary.has_controllable_devices is False
    assert devices_of(devices, DeviceKind.LIGHT) == []


def test_color_light_count_only_counts_color_lights():
    summary = aggregate_capabilities(
        [
            DeviceSnapshot("light.desk", "Desk", "dimmable_light"),
            DeviceSnapshot("light.strip", "Strip", "extended_color_light"),
        ]
    )
    assert summary.light_count == 2
    assert summary.color_light_count == 1
