"""Therapeutic environment profiles shared by generators and the compiler."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class Transition(StrEnum):
    SMOOTH = "smooth"
    BREATHING = "breathing"
    PULSE = "pulse"


@dataclass(frozen=True)
class EnvironmentProfile:
    """Target light/climate settings for one named environment."""

    name: str
    title: str
    light_level: int
    color_temp_k: int
    target_temp_c: float
    duration_minutes: int
    transition: Transition = Transition.SMOOTH


ANXIETY_RELIEF = "anxiety_relief"
MOOD_BOOST = "mood_boost"
FOCUS_CLARITY = "focus_clarity"
DEEP_RELAXATION = "deep_relaxation"
SOCIAL_PREPARATION = "social_preparation"
BEDTIME_ROUTINE = "bedtime_routine"

DEFAULT_ENVIRONMENT = EnvironmentProfile(
    name="default",
    title="Balanced",
    light_level=50,
    color_temp_k=3000,
    target_temp_c=22,
    duration_minutes=15,
)

ENVIRONMENTS: dict[str, EnvironmentProfile] = {
    profile.name: profile
    for profile in (
        EnvironmentProfile(ANXIETY_RELIEF, "Anxiety Relief", 30, 2700, 22, 15, Transition.BREATHING),
        EnvironmentProfile(MOOD_BOOST, "Mood Boost", 85, 5000, 21, 20),
        EnvironmentProfile(FOCUS_CLARITY, "Focus & Clarity", 75, 6500, 20, 25),
        EnvironmentProfile(DEEP_RELAXATION, "Deep Relaxation", 20, 2200, 23, 30, Transition.BREATHING),
        EnvironmentProfile(SOCIAL_PREPARATION, "Social Preparation", 70, 3500, 23, 10),
        EnvironmentProfile(BEDTIME_ROUTINE, "Bedtime Routine", 5, 2200, 19, 45, Transition.BREATHING),
    )
}

# Restoration target once an environment's duration has elapsed.
NEUTRAL_LIGHT_LEVEL = 70


def resolve_environment(name: str | None) -> EnvironmentProfile:
    """Look up a profile, falling back to the default for unknown names."""
    if not name:
        return DEFAULT_ENVIRONMENT
    return ENVIRONMENTS.get(str(name).strip().lower(), DEFAULT_ENVIRONMENT)


def resolve_transition(value: str | None, profile: EnvironmentProfile) -> Transition:
    """Explicit transition override wins over the profile's own."""
    normalized = str(value or "").strip().lower()
    for transition in Transition:
        if transition.value == normalized:
            return transition
    return profile.transition


def to_native_brightness(level: int | float) -> int:
    """Scale a 0-100 level to Home Assistant's 0-255 brightness, rounding half up."""
    clamped = max(0.0, min(100.0, float(level)))
    return int(clamped * 255 / 100 + 0.5)
