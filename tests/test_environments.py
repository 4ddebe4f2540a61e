from custom_components.moodflow.runtime.environments import (
    ANXIETY_RELIEF,
    BEDTIME_ROUTINE,
    DEFAULT_ENVIRONMENT,
    MOOD_BOOST,
    Transition,
    resolve_environment,
    resolve_transition,
    to_native_brightness,
)


def test_resolve_environment_known_profile():
    profile = resolve_environment(ANXIETY_RELIEF)
    assert profile.light_level == 30
    assert profile.color_temp_k == 2700
    assert profile.duration_minutes == 15
    assert profile.transition is Transition.BREATHING


def test_resolve_environment_is_case_insensitive():
    assert resolve_environment(" Mood_Boost ").name == MOOD_BOOST


def test_resolve_environment_unknown_falls_back_to_default():
    assert resolve_environment("disco") is DEFAULT_ENVIRONMENT
    assert resolve_environment(None) is DEFAULT_ENVIRONMENT


def test_bedtime_routine_profile():
    profile = resolve_environment(BEDTIME_ROUTINE)
    assert profile.light_level == 5
    assert profile.duration_minutes == 45


def test_resolve_transition_override_wins():
    profile = resolve_environment(MOOD_BOOST)
    assert resolve_transition("pulse", profile) is Transition.PULSE


def test_resolve_transition_unknown_uses_profile():
    profile = resolve_environment(ANXIETY_RELIEF)
    assert resolve_transition("strobe", profile) is Transition.BREATHING
    assert resolve_transition(None, profile) is Transition.BREATHING


def test_to_native_brightness_rounds_half_up():
    assert to_native_brightness(30) == 77
    assert to_native_brightness(50) == 128
    assert to_native_brightness(100) == 255
    assert to_native_brightness(0) == 0


def test_to_native_brightness_clamps():
    assert to_native_brightness(150) == 255
    assert to_native_brightness(-5) == 0
