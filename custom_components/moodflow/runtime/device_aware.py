"""Suggestions that name the devices actually present in the home."""

from __future__ import annotations

import logging
from collections.abc import Callable

from ..const import MAX_GENERATOR_SUGGESTIONS
from .contracts import (
    ActionKind,
    ActionSpec,
    GenerationContext,
    GenerationResult,
    Priority,
    Suggestion,
    SuggestionCategory,
    dedupe_by_title,
)
from .devices import DeviceKind, devices_of
from .environments import (
    ANXIETY_RELIEF,
    DEEP_RELAXATION,
    FOCUS_CLARITY,
    MOOD_BOOST,
    Transition,
    resolve_environment,
)

_LOGGER = logging.getLogger(__name__)

SOURCE = "device_aware"
MAX_SUGGESTIONS = MAX_GENERATOR_SUGGESTIONS
MAX_NAMED_DEVICES = 3

NEED_CALMING = "calming"
NEED_ENERGY = "energy"
NEED_FOCUS = "focus"
NEED_COMFORT = "comfort"
NEED_WELLNESS = "wellness"

_NEED_MARKERS: tuple[tuple[str, tuple[str, ...]], ...] = (
    (NEED_CALMING, ("anxious", "stress")),
    (NEED_ENERGY, ("sad", "tired")),
    (NEED_FOCUS, ("distracted", "overwhelmed")),
    (NEED_COMFORT, ("lonely", "down")),
)


def classify_needs(tags: tuple[str, ...]) -> list[str]:
    """Needs matched by tag substring, in fixed order. General wellness when none match."""
    lowered = [tag.lower() for tag in tags]
    needs = [
        need
        for need, markers in _NEED_MARKERS
        if any(marker in tag for tag in lowered for marker in markers)
    ]
    return needs or [NEED_WELLNESS]


def generate(context: GenerationContext) -> GenerationResult:
    """Environment suggestions per matched need, plus sensor/color extras."""
    suggestions: list[Suggestion] = []
    for need in classify_needs(context.check_in.emotion_tags):
        suggestions.extend(_NEED_BUILDERS[need](context))
    suggestions.extend(_device_specific(context))

    result = dedupe_by_title(suggestions)[:MAX_SUGGESTIONS]
    _LOGGER.debug("Device-aware generator produced %s suggestions", len(result))
    return GenerationResult.success(result)


def _environment_suggestion(
    context: GenerationContext,
    *,
    title: str,
    description: str,
    environment: str,
    display_text: str,
    rationale: str,
    extra: dict[str, str] | None = None,
) -> Suggestion:
    profile = resolve_environment(environment)
    parameters = {"environment": environment, "duration": str(profile.duration_minutes)}
    parameters.update(extra or {})
    return Suggestion(
        check_in_id=context.check_in_id,
        title=title,
        description=description,
        category=SuggestionCategory.SMART_ENVIRONMENT,
        priority=context.priority_hint,
        actions=(
            ActionSpec(
                kind=ActionKind.SMART_HOME_ENVIRONMENT,
                display_text=display_text,
                parameters=parameters,
            ),
        ),
        rationale=rationale,
        estimated_duration=f"{profile.duration_minutes} minutes",
    )


def _calming(context: GenerationContext) -> list[Suggestion]:
    suggestions: list[Suggestion] = []
    capabilities = context.capabilities

    lights = devices_of(context.devices, DeviceKind.LIGHT)
    if capabilities.dimmable_lights and lights:
        names = ", ".join(light.name for light in lights[:MAX_NAMED_DEVICES])
        more = f" and {len(lights) - MAX_NAMED_DEVICES} more" if len(lights) > MAX_NAMED_DEVICES else ""
        profile = resolve_environment(ANXIETY_RELIEF)
        suggestions.append(
            _environment_suggestion(
                context,
                title="Calming Light Environment",
                description=f"Dim lights for relaxation: {names}{more}",
                environment=ANXIETY_RELIEF,
                display_text=f"Dim {names} to {profile.light_level}% for calming effect",
                rationale="Warm, dim lighting creates a soothing environment that eases anxiety and stress",
                extra={"device_count": str(capabilities.light_count), "device_names": names},
            )
        )

    thermostats = devices_of(context.devices, DeviceKind.THERMOSTAT)
    if thermostats:
        names = ", ".join(thermostat.name for thermostat in thermostats)
        profile = resolve_environment(ANXIETY_RELIEF)
        target = f"{profile.target_temp_c:g}"
        suggestion = _environment_suggestion(
            context,
            title="Comfort Temperature",
            description=f"Set comfortable temperature on: {names}",
            environment=ANXIETY_RELIEF,
            display_text=f"Set {names} to {target}°C for comfort",
            rationale="Comfortable temperature supports emotional regulation and physical comfort",
            extra={"target_temp": target, "device_names": names},
        )
        suggestions.append(suggestion)

    return suggestions


def _energizing(context: GenerationContext) -> list[Suggestion]:
    capabilities = context.capabilities
    if capabilities.light_count == 0:
        return []
    profile = resolve_environment(MOOD_BOOST)
    return [
        _environment_suggestion(
            context,
            title="Energizing Light Boost",
            description=f"Brighten {capabilities.light_count} lights to boost energy and mood",
            environment=MOOD_BOOST,
            display_text="Activate energizing lighting",
            rationale=(
                f"Bright, cool lighting across {capabilities.light_count} devices helps "
                "combat low energy and improves alertness"
            ),
            extra={"brightness": str(profile.light_level)},
        )
    ]


def _focus(context: GenerationContext) -> list[Suggestion]:
    capabilities = context.capabilities
    if capabilities.light_count == 0 or capabilities.thermostat_count == 0:
        return []
    return [
        _environment_suggestion(
            context,
            title="Optimal Focus Environment",
            description=(
                f"Create ideal conditions for concentration using {capabilities.light_count} "
                f"lights and {capabilities.thermostat_count} thermostats"
            ),
            environment=FOCUS_CLARITY,
            display_text="Activate focus environment",
            rationale="Bright, cool lighting and a steady temperature help concentration",
        )
    ]


def _comfort(context: GenerationContext) -> list[Suggestion]:
    capabilities = context.capabilities
    if capabilities.light_count == 0 and capabilities.thermostat_count == 0:
        return []

    parts: list[str] = []
    if capabilities.light_count:
        parts.append(f"{capabilities.light_count} lights")
    if capabilities.thermostat_count:
        parts.append(f"{capabilities.thermostat_count} thermostats")
    if capabilities.speaker_count:
        parts.append(f"{capabilities.speaker_count} speakers")

    return [
        _environment_suggestion(
            context,
            title="Cozy Comfort Environment",
            description=f"Create a warm, comforting atmosphere using {', '.join(parts)}",
            environment=DEEP_RELAXATION,
            display_text="Activate comfort environment",
            rationale="A comfort environment across several device types addresses emotional needs holistically",
        )
    ]


def _wellness(context: GenerationContext) -> list[Suggestion]:
    count = context.capabilities.controllable_count
    if count == 0:
        return []
    return [
        _environment_suggestion(
            context,
            title="Adaptive Wellness Environment",
            description=f"Optimize your environment using all {count} available smart devices",
            environment=MOOD_BOOST,
            display_text="Optimize all smart devices for wellness",
            rationale=f"Using all {count} available devices supports overall well-being",
            extra={"adaptive": "true", "device_count": str(count)},
        )
    ]


def _device_specific(context: GenerationContext) -> list[Suggestion]:
    suggestions: list[Suggestion] = []
    capabilities = context.capabilities

    if capabilities.has_motion_sensors and capabilities.light_count:
        suggestions.append(
            Suggestion(
                check_in_id=context.check_in_id,
                title="Gentle Movement Response",
                description="Set lights to respond gently to movement for comfort",
                category=SuggestionCategory.SMART_ENVIRONMENT,
                priority=Priority.LOW,
                actions=(
                    ActionSpec(
                        kind=ActionKind.CREATE_MOTION_AUTOMATION,
                        display_text="Create gentle motion-activated lighting",
                        parameters={
                            "environment": DEEP_RELAXATION,
                            "trigger": "motion_detected",
                            "response": "gentle_lighting",
                            "sensor_count": str(capabilities.sensor_count),
                        },
                    ),
                ),
                rationale="Gentle motion-activated lighting provides comfort without being jarring",
                estimated_duration="Setup: 2 minutes",
            )
        )

    if capabilities.color_lights:
        suggestions.append(
            Suggestion(
                check_in_id=context.check_in_id,
                title="Color Therapy Lighting",
                description="Use color-changing lights for mood enhancement",
                category=SuggestionCategory.SMART_ENVIRONMENT,
                priority=context.priority_hint,
                actions=(
                    ActionSpec(
                        kind=ActionKind.COLOR_THERAPY,
                        display_text="Activate therapeutic color lighting",
                        parameters={
                            "environment": MOOD_BOOST,
                            "transition": Transition.PULSE.value,
                            "emotions": ",".join(context.check_in.emotion_tags),
                            "color_light_count": str(capabilities.color_light_count),
                        },
                    ),
                ),
                rationale="Color-changing lights can positively influence mood",
                estimated_duration="15 minutes",
            )
        )

    return suggestions


_NEED_BUILDERS: dict[str, Callable[[GenerationContext], list[Suggestion]]] = {
    NEED_CALMING: _calming,
    NEED_ENERGY: _energizing,
    NEED_FOCUS: _focus,
    NEED_COMFORT: _comfort,
    NEED_WELLNESS: _wellness,
}


def fallback_suggestions(context: GenerationContext) -> list[Suggestion]:
    """Manual guidance when no lights, thermostats or speakers exist."""
    if context.capabilities.has_controllable_devices:
        return []
    return [
        Suggestion(
            check_in_id=context.check_in_id,
            title="Manual Environment Optimization",
            description="Simple steps to improve your environment without smart devices",
            category=SuggestionCategory.MANUAL_SUGGESTION,
            priority=Priority.MEDIUM,
            actions=(
                ActionSpec(
                    kind=ActionKind.MANUAL_GUIDANCE,
                    display_text="View environment optimization tips",
                    parameters={"suggestion": "manual_environment_tips"},
                ),
            ),
            rationale="Simple environmental changes can lift mood even without smart devices",
            estimated_duration="5 minutes",
        )
    ]
