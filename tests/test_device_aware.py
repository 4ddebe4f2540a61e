from custom_components.moodflow.runtime import device_aware
from custom_components.moodflow.runtime.contracts import ActionKind, Priority, SuggestionCategory
from custom_components.moodflow.runtime.devices import Connectivity, DeviceSnapshot


def _titles(result):
    return [item.title for item in result.suggestions]


def test_classify_needs_matches_substrings_in_order():
    assert device_aware.classify_needs(("stressed", "tired")) == ["calming", "energy"]
    assert device_aware.classify_needs(("happy",)) == ["wellness"]
    assert device_aware.classify_needs(()) == ["wellness"]


def test_anxious_with_dimmable_lights_and_thermostat(make_context, home_devices):
    result = device_aware.generate(make_context(["anxious"], devices=home_devices))
    assert result.ok
    assert _titles(result) == [
        "Calming Light Environment",
        "Comfort Temperature",
        "Gentle Movement Response",
    ]
    calming = result.suggestions[0]
    assert calming.category is SuggestionCategory.SMART_ENVIRONMENT
    assert calming.actions[0].kind is ActionKind.SMART_HOME_ENVIRONMENT
    assert calming.actions[0].parameters["environment"] == "anxiety_relief"
    assert "Dim Living Room, Desk to 30%" in calming.actions[0].display_text
    assert result.suggestions[1].actions[0].parameters["target_temp"] == "22"


def test_every_matched_need_contributes(make_context, home_devices):
    result = device_aware.generate(make_context(["anxious", "tired"], devices=home_devices))
    assert "Energizing Light Boost" not in _titles(result)
    assert len(result.suggestions) == device_aware.MAX_SUGGESTIONS

    result = device_aware.generate(make_context(["tired", "distracted"], devices=home_devices))
    assert _titles(result)[:2] == ["Energizing Light Boost", "Optimal Focus Environment"]


def test_wellness_uses_all_controllable_devices(make_context, home_devices):
    result = device_aware.generate(make_context(["happy"], devices=home_devices))
    wellness = result.suggestions[0]
    assert wellness.title == "Adaptive Wellness Environment"
    assert wellness.actions[0].parameters["device_count"] == "3"
    assert wellness.priority is Priority.LOW


def test_color_therapy_pulses(make_context):
    devices = [DeviceSnapshot("light.strip", "Strip", "extended_color_light")]
    result = device_aware.generate(make_context(["happy"], devices=devices))
    color = next(item for item in result.suggestions if item.title == "Color Therapy Lighting")
    assert color.actions[0].kind is ActionKind.COLOR_THERAPY
    assert color.actions[0].parameters["transition"] == "pulse"


def test_no_devices_yields_nothing_but_fallback(make_context):
    context = make_context(["anxious"])
    assert device_aware.generate(context).suggestions == []
    fallback = device_aware.fallback_suggestions(context)
    assert [item.title for item in fallback] == ["Manual Environment Optimization"]
    assert fallback[0].category is SuggestionCategory.MANUAL_SUGGESTION
    assert fallback[0].actions[0].kind is ActionKind.MANUAL_GUIDANCE


def test_fallback_skipped_with_controllable_devices(make_context, home_devices):
    assert device_aware.fallback_suggestions(make_context(["sad"], devices=home_devices)) == []


def test_sensor_only_home_gets_fallback(make_context):
    devices = [DeviceSnapshot("binary_sensor.door", "Door", "contact_sensor")]
    context = make_context(["happy"], devices=devices)
    assert device_aware.generate(context).suggestions == []
    assert len(device_aware.fallback_suggestions(context)) == 1


def test_suggestions_reference_check_in(make_context, home_devices):
    context = make_context(["lonely"], devices=home_devices)
    result = device_aware.generate(context)
    assert result.suggestions
    assert all(item.check_in_id == context.check_in_id for item in result.suggestions)


def test_color_therapy_counts_only_color_lights(make_context, home_devices):
    result = device_aware.generate(make_context(["happy"], devices=home_devices))
    color = next(item for item in result.suggestions if item.title == "Color Therapy Lighting")
    assert color.actions[0].parameters["color_light_count"] == "1"


def test_offline_lights_are_not_offered(make_context):
    devices = [
        DeviceSnapshot("light.desk", "Desk", "dimmable_light", connectivity=Connectivity.OFFLINE)
    ]
    context = make_context(["anxious"], devices=devices)
    assert device_aware.generate(context).suggestions == []
    assert [item.title for item in device_aware.fallback_suggestions(context)] == [
        "Manual Environment Optimization"
    ]
