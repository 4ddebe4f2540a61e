"""Compile a suggestion into a Home Assistant automation graph."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from ..const import AUTOMATION_ID_PREFIX, EVENT_MOODFLOW_RUN, MAX_ACTION_DEVICES
from ..errors import AutomationEngineError
from .contracts import ActionKind, Suggestion
from .devices import DeviceKind, DeviceSnapshot
from .environments import (
    EnvironmentProfile,
    Transition,
    resolve_environment,
    resolve_transition,
    to_native_brightness,
)

_LOGGER = logging.getLogger(__name__)

DEVICE_ACTION_KINDS = {
    ActionKind.SMART_HOME_ENVIRONMENT,
    ActionKind.CREATE_MOTION_AUTOMATION,
    ActionKind.COLOR_THERAPY,
}

MANUAL_TRIGGER_ID = "manual"


@dataclass(frozen=True)
class ServiceStep:
    """One service call inside a sequence."""

    domain: str
    service: str
    data: dict[str, Any] = field(default_factory=dict)
    entity_id: str | None = None

    def as_action(self) -> dict[str, Any]:
        action: dict[str, Any] = {"action": f"{self.domain}.{self.service}"}
        if self.entity_id:
            action["target"] = {"entity_id": self.entity_id}
        if self.data:
            action["data"] = dict(self.data)
        return action

    def describe(self) -> str:
        target = f" {self.entity_id}" if self.entity_id else ""
        extra = f" {self.data}" if self.data and self.entity_id else ""
        return f"{self.domain}.{self.service}{target}{extra}"


@dataclass(frozen=True)
class ActionSequence:
    """Ordered steps for one device. Sequences run in parallel."""

    name: str
    steps: tuple[ServiceStep, ...]
    device_id: str | None = None


@dataclass(frozen=True)
class Starter:
    kind: str
    trigger: dict[str, Any]
    condition: dict[str, Any] | None = None
    entity_id: str | None = None


@dataclass(frozen=True)
class AutomationGraph:
    """Starters plus a parallel block of per-device sequences."""

    automation_id: str
    alias: str
    description: str
    profile: EnvironmentProfile
    transition: Transition
    starters: tuple[Starter, ...]
    sequences: tuple[ActionSequence, ...]

    @property
    def light_entities(self) -> list[str]:
        return [
            sequence.device_id
            for sequence in self.sequences
            if sequence.device_id and sequence.device_id.startswith("light.")
        ]

    def as_config(self) -> dict[str, Any]:
        """Automation config as stored in automations.yaml."""
        conditions: list[dict[str, Any]] = []
        device_conditions = [starter.condition for starter in self.starters if starter.condition]
        if device_conditions:
            conditions.append(
                {
                    "condition": "or",
                    "conditions": [{"condition": "trigger", "id": MANUAL_TRIGGER_ID}, *device_conditions],
                }
            )

        return {
            "id": self.automation_id,
            "alias": self.alias,
            "description": self.description,
            "mode": "single",
            "triggers": [dict(starter.trigger) for starter in self.starters],
            "conditions": conditions,
            "actions": [
                {
                    "parallel": [
                        {"sequence": [step.as_action() for step in sequence.steps]}
                        for sequence in self.sequences
                    ]
                }
            ],
        }


def automation_id_for(suggestion: Suggestion) -> str:
    return f"{AUTOMATION_ID_PREFIX}{suggestion.suggestion_id}"


def manual_starter(automation_id: str) -> Starter:
    return Starter(
        kind=MANUAL_TRIGGER_ID,
        trigger={
            "trigger": "event",
            "event_type": EVENT_MOODFLOW_RUN,
            "event_data": {"automation_id": automation_id},
            "id": MANUAL_TRIGGER_ID,
        },
    )


def select_device_starter(devices: list[DeviceSnapshot]) -> Starter | None:
    """Occupancy sensor, then contact sensor, then any on/off device."""
    online = [device for device in devices if device.is_online]

    for kind, starter_kind in (
        (DeviceKind.OCCUPANCY_SENSOR, "occupancy"),
        (DeviceKind.CONTACT_SENSOR, "contact"),
    ):
        sensor = next((device for device in online if device.category.kind is kind), None)
        if sensor is not None:
            return Starter(
                kind=starter_kind,
                entity_id=sensor.device_id,
                trigger={
                    "trigger": "state",
                    "entity_id": sensor.device_id,
                    "to": "on",
                    "id": starter_kind,
                },
                condition={"condition": "state", "entity_id": sensor.device_id, "state": "on"},
            )

    switchable = next((device for device in online if device.category.supports_on_off), None)
    if switchable is not None:
        return Starter(
            kind="state",
            entity_id=switchable.device_id,
            trigger={
                "trigger": "state",
                "entity_id": switchable.device_id,
                "to": "on",
                "id": "state",
            },
        )
    return None


def select_action_devices(devices: list[DeviceSnapshot]) -> list[DeviceSnapshot]:
    return [
        device for device in devices if device.is_online and device.category.actionable
    ][:MAX_ACTION_DEVICES]


def build_device_sequence(device: DeviceSnapshot, profile: EnvironmentProfile) -> ActionSequence:
    category = device.category
    steps: list[ServiceStep] = []

    if category.is_light:
        steps.append(ServiceStep("light", "turn_on", entity_id=device.device_id))
        if category.dimmable:
            steps.append(
                ServiceStep(
                    "light",
                    "turn_on",
                    {"brightness": to_native_brightness(profile.light_level)},
                    entity_id=device.device_id,
                )
            )
        if category.color:
            steps.append(
                ServiceStep(
                    "light",
                    "turn_on",
                    {"color_temp_kelvin": profile.color_temp_k},
                    entity_id=device.device_id,
                )
            )
    elif category.kind is DeviceKind.THERMOSTAT:
        steps.append(
            ServiceStep(
                "climate",
                "set_temperature",
                {"temperature": profile.target_temp_c},
                entity_id=device.device_id,
            )
        )
    else:
        steps.append(ServiceStep(device.domain, "turn_on", entity_id=device.device_id))

    return ActionSequence(name=device.name, steps=tuple(steps), device_id=device.device_id)


def build_notification_sequence(suggestion: Suggestion, automation_id: str) -> ActionSequence:
    lines = [f"- {action.display_text}" for action in suggestion.actions if action.kind not in DEVICE_ACTION_KINDS]
    message = "\n".join([suggestion.description, "", *lines]) if lines else suggestion.description
    return ActionSequence(
        name="notification",
        steps=(
            ServiceStep(
                "persistent_notification",
                "create",
                {"title": suggestion.title, "message": message, "notification_id": automation_id},
            ),
        ),
    )


def compile_suggestion(
    suggestion: Suggestion,
    devices: list[DeviceSnapshot] | None,
    log: Callable[[str], None] | None = None,
) -> AutomationGraph:
    """Build the automation graph for a suggestion against the live inventory.

    Device sequences are built when the suggestion carries a device action;
    other actions become a persistent notification. Raises
    AutomationEngineError when a device action has no online device to drive.
    """
    inventory = list(devices or ())
    first = suggestion.actions[0] if suggestion.actions else None
    profile = resolve_environment(suggestion.environment)
    transition = resolve_transition(first.parameters.get("transition") if first else None, profile)
    automation_id = automation_id_for(suggestion)

    sequences: list[ActionSequence] = []
    if any(action.kind in DEVICE_ACTION_KINDS for action in suggestion.actions):
        targets = select_action_devices(inventory)
        if not targets:
            raise AutomationEngineError("no online devices available to control")
        sequences.extend(build_device_sequence(device, profile) for device in targets)

    if any(action.kind not in DEVICE_ACTION_KINDS for action in suggestion.actions):
        sequences.append(build_notification_sequence(suggestion, automation_id))
    if not sequences:
        raise AutomationEngineError("suggestion has no actions")

    starters = [manual_starter(automation_id)]
    try:
        device_starter = select_device_starter(inventory)
    except Exception as err:
        _LOGGER.warning("Device starter selection failed, using manual only: %s", err)
        device_starter = None
    if device_starter is not None:
        starters.append(device_starter)

    if log is not None:
        log(
            f"Compiled '{profile.name}' environment: {len(sequences)} sequence(s), "
            f"starters: {', '.join(starter.kind for starter in starters)}"
        )

    return AutomationGraph(
        automation_id=automation_id,
        alias=f"🧠 {suggestion.title}",
        description=suggestion.description,
        profile=profile,
        transition=transition,
        starters=tuple(starters),
        sequences=tuple(sequences),
    )
