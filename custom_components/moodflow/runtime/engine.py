"""Moodflow runtime engine."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any
from uuid import uuid4

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.aiohttp_client import async_get_clientsession

from ..const import EVENT_MOODFLOW_EVENT
from ..entities.registry import (
    KEY_ACTIVE_SUGGESTIONS,
    KEY_CRISIS_SUPPORT,
    KEY_DOMINANT_EMOTIONS,
    KEY_EXECUTING,
    KEY_EXECUTION_STATUS,
    KEY_INTENSITY,
    KEY_LAST_CHECK_IN,
    KEY_LAST_EXECUTION,
    KEY_RISK_LEVEL,
    KEY_SENTIMENT,
    KEY_SUGGESTION_SOURCES,
    KEY_SUPPORT_LEVEL,
    KEY_SUPPORT_RECOMMENDED,
    build_registry,
)
from ..errors import CheckInNotFoundError, MoodflowError, SuggestionNotFoundError
from ..models import MoodflowOptions
from .ai_client import ChatCompletionsClient
from .classifier import normalize_tags
from .contracts import CheckIn, Contact, ExecutionRecord, MoodflowEvent, Suggestion
from .effects import AmbientEffects
from .executor import ExecutionContext, HomeAssistantAutomationEngine, SuggestionExecutor
from .inventory import async_snapshot_inventory
from .orchestrator import CycleResult, SuggestionOrchestrator
from .repository import MoodflowRepository
from .snapshot import CycleSnapshot
from .state_store import CanonicalState

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineHealth:
    """Health status for the runtime engine."""

    ok: bool
    reason: str


class MoodflowEngine:
    """Check-in, suggestion and execution pipeline behind the integration."""

    def __init__(
        self,
        hass: HomeAssistant,
        entry: ConfigEntry,
        on_update: Callable[[], None] | None = None,
    ) -> None:
        self._hass = hass
        self._entry = entry
        self._options = MoodflowOptions.from_entry(entry)
        self._on_update = on_update
        self._health = EngineHealth(ok=True, reason="initialized")
        self._snapshot = CycleSnapshot.empty()
        self._state = CanonicalState()
        self._repository = MoodflowRepository(hass)
        self._effects: AmbientEffects | None = None
        self._orchestrator: SuggestionOrchestrator | None = None
        self._executor: SuggestionExecutor | None = None
        self._execution: ExecutionContext | None = None

    @property
    def health(self) -> EngineHealth:
        return self._health

    @property
    def snapshot(self) -> CycleSnapshot:
        return self._snapshot

    @property
    def state(self) -> CanonicalState:
        return self._state

    @property
    def repository(self) -> MoodflowRepository:
        return self._repository

    @property
    def options(self) -> MoodflowOptions:
        return self._options

    async def async_initialize(self) -> None:
        _LOGGER.debug("Moodflow engine initialize")
        self._options = MoodflowOptions.from_entry(self._entry)
        await self._repository.async_load()
        self._build_components()
        self._build_default_state()
        self._publish_suggestions()
        self._health = EngineHealth(ok=True, reason="initialized")

    async def async_shutdown(self) -> None:
        _LOGGER.debug("Moodflow engine shutdown")
        if self._execution is not None:
            self._execution.cancel()
        if self._effects is not None:
            self._effects.async_cancel()
        self._health = EngineHealth(ok=True, reason="shutdown")

    def _build_components(self) -> None:
        options = self._options
        ai_client: ChatCompletionsClient | None = None
        if options.ai_configured:
            ai_client = ChatCompletionsClient(
                async_get_clientsession(self._hass),
                endpoint=options.ai_endpoint,
                model=options.ai_model,
                api_key=options.ai_api_key,
                timeout_s=options.ai_timeout,
            )
        self._orchestrator = SuggestionOrchestrator(
            self._repository, ai_client=ai_client, crisis_line=options.crisis_line
        )
        self._effects = AmbientEffects(self._hass) if options.ambient_effects else None
        self._executor = SuggestionExecutor(
            self._repository,
            HomeAssistantAutomationEngine(self._hass),
            self._effects,
            restore_environment=options.restore_environment,
        )

    # ---- Check-ins ----
    async def async_check_in(
        self, emotion_tags: Iterable[str], free_text: str | None = None
    ) -> tuple[CheckIn, list[Suggestion]]:
        """Save a check-in, then generate suggestions for it.

        A failed save propagates. A failed generation is logged and leaves the
        check-in in place with no suggestions.
        """
        check_in = await self._repository.async_insert_check_in(
            CheckIn(emotion_tags=normalize_tags(emotion_tags), free_text=_clean_text(free_text))
        )
        self._state.set_sensor(
            KEY_LAST_CHECK_IN,
            check_in.timestamp.isoformat(),
            {"check_in_id": check_in.check_in_id, "emotion_tags": list(check_in.emotion_tags)},
        )
        self._fire_event(
            "check_in.saved",
            "info",
            "Check-in saved",
            f"Check-in with {len(check_in.emotion_tags)} emotion tags",
            {"check_in_id": check_in.check_in_id},
        )

        try:
            result = await self._async_run_cycle(check_in)
        except Exception as err:
            _LOGGER.exception("Suggestion generation for check-in %s failed", check_in.check_in_id)
            self._health = EngineHealth(ok=False, reason=f"generation_failed:{err}")
            self._notify()
            return check_in, []
        return check_in, result.suggestions

    async def async_edit_check_in(
        self, check_in_id: str, emotion_tags: Iterable[str], free_text: str | None = None
    ) -> CheckIn:
        current = self._require_check_in(check_in_id)
        updated = await self._repository.async_update_check_in(
            current.edited(normalize_tags(emotion_tags), _clean_text(free_text))
        )
        _LOGGER.debug("Edited check-in %s", check_in_id)
        return updated

    async def async_delete_check_in(self, check_in_id: str) -> None:
        await self._repository.async_delete_check_in(check_in_id)
        _LOGGER.debug("Deleted check-in %s", check_in_id)
        if self._snapshot.check_in_id == check_in_id:
            self._snapshot = CycleSnapshot.empty()
            self._apply_snapshot_to_canonical_state(self._snapshot)
        self._publish_suggestions()

    async def async_generate_suggestions(self, check_in_id: str) -> list[Suggestion]:
        """Run a fresh generation cycle for an existing check-in."""
        result = await self._async_run_cycle(self._require_check_in(check_in_id))
        return result.suggestions

    async def _async_run_cycle(self, check_in: CheckIn) -> CycleResult:
        assert self._orchestrator is not None
        devices = async_snapshot_inventory(self._hass)
        result = await self._orchestrator.async_run(check_in, devices)

        self._snapshot = CycleSnapshot(
            snapshot_id=str(uuid4()),
            ts=result.check_in.timestamp.isoformat(),
            check_in_id=check_in.check_in_id,
            sentiment=result.assessment.sentiment.value,
            intensity=result.assessment.intensity.value,
            support_level=result.assessment.support_level.value,
            risk_level=result.assessment.risk_level.value,
            dominant_emotions=list(result.assessment.dominant_emotions),
            capabilities=result.capabilities.as_dict(),
            sources=list(result.sources),
            errors=list(result.errors),
            suggestion_ids=[item.suggestion_id for item in result.suggestions],
        )
        self._apply_snapshot_to_canonical_state(self._snapshot)
        self._publish_suggestions()
        self._health = EngineHealth(
            ok=not result.errors or bool(result.suggestions),
            reason="cycle_ok" if not result.errors else "cycle_degraded",
        )

        if result.assessment.needs_crisis_support:
            self._fire_event(
                "support.crisis",
                "critical",
                "Crisis support suggested",
                "Immediate support options were added to the suggestions",
                {"check_in_id": check_in.check_in_id},
            )
        self._fire_event(
            "suggestions.generated",
            "info",
            "Suggestions generated",
            f"{len(result.suggestions)} suggestions from {', '.join(result.sources) or 'none'}",
            {
                "check_in_id": check_in.check_in_id,
                "suggestion_ids": self._snapshot.suggestion_ids,
                "errors": list(result.errors),
            },
        )
        self._notify()
        return result

    # ---- Suggestions ----
    async def async_execute_suggestion(self, suggestion_id: str) -> ExecutionRecord:
        if not self._options.engine_enabled:
            raise MoodflowError("Suggestion execution is disabled in the Moodflow options")
        assert self._executor is not None

        suggestion = self._require_suggestion(suggestion_id)
        if self._execution is not None:
            self._execution.cancel()

        context = ExecutionContext(suggestion_id, on_log=self._handle_execution_log)
        self._execution = context
        self._state.set_binary(KEY_EXECUTING, True)
        self._state.set_sensor(
            KEY_EXECUTION_STATUS,
            context.phase.value,
            {"suggestion_id": suggestion_id, "title": suggestion.title, "log": []},
        )
        self._notify()

        try:
            record = await self._executor.async_execute(
                suggestion, async_snapshot_inventory(self._hass), context
            )
        finally:
            if self._execution is context:
                self._execution = None
            self._state.set_binary(KEY_EXECUTING, False)

        self._state.set_sensor(
            KEY_EXECUTION_STATUS,
            context.phase.value,
            {"suggestion_id": suggestion_id, "title": suggestion.title, "log": context.log},
        )
        self._state.set_sensor(
            KEY_LAST_EXECUTION,
            record.completion_status,
            {
                "execution_id": record.execution_id,
                "suggestion_id": record.suggestion_id,
                "title": suggestion.title,
                "executed_at": record.executed_at.isoformat(),
            },
        )
        self._publish_suggestions()
        self._fire_event(
            "suggestion.executed" if record.succeeded else "suggestion.failed",
            "info" if record.succeeded else "warning",
            suggestion.title,
            record.completion_status,
            {"suggestion_id": suggestion_id, "execution_id": record.execution_id},
        )
        self._notify()
        return record

    async def async_dismiss_suggestion(self, suggestion_id: str) -> Suggestion:
        self._require_suggestion(suggestion_id)
        dismissed = await self._repository.async_dismiss_suggestion(suggestion_id)
        self._publish_suggestions()
        self._fire_event(
            "suggestion.dismissed",
            "info",
            dismissed.title,
            "Suggestion dismissed",
            {"suggestion_id": suggestion_id},
        )
        self._notify()
        return dismissed

    # ---- Contacts ----
    async def async_add_contact(
        self,
        name: str,
        phone_number: str,
        relationship: str = "",
        is_frequent: bool = True,
    ) -> Contact:
        contact = await self._repository.async_add_contact(
            Contact(
                name=name.strip(),
                phone_number=phone_number.strip(),
                relationship=relationship.strip().lower(),
                is_frequent=is_frequent,
            )
        )
        _LOGGER.debug("Added contact %s", contact.contact_id)
        return contact

    async def async_remove_contact(self, contact_id: str) -> None:
        await self._repository.async_remove_contact(contact_id)
        _LOGGER.debug("Removed contact %s", contact_id)

    # ---- State ----
    def _require_check_in(self, check_in_id: str) -> CheckIn:
        check_in = self._repository.get_check_in(check_in_id)
        if check_in is None:
            raise CheckInNotFoundError(f"Unknown check-in '{check_in_id}'")
        return check_in

    def _require_suggestion(self, suggestion_id: str) -> Suggestion:
        suggestion = self._repository.get_suggestion(suggestion_id)
        if suggestion is None:
            raise SuggestionNotFoundError(f"Unknown suggestion '{suggestion_id}'")
        return suggestion

    def _handle_execution_log(self, message: str) -> None:
        context = self._execution
        if context is None:
            return
        attributes = dict(self._state.get_attributes(KEY_EXECUTION_STATUS))
        attributes["log"] = context.log
        self._state.set_sensor(KEY_EXECUTION_STATUS, context.phase.value, attributes)
        self._notify()

    def _build_default_state(self) -> None:
        registry = build_registry(self._entry)
        self._state.binary_sensors = {desc.key: False for desc in registry.binary_sensors}
        self._state.sensors = {desc.key: None for desc in registry.sensors}
        self._state.attributes = {}
        self._state.set_sensor(KEY_ACTIVE_SUGGESTIONS, 0, {"suggestions": []})
        self._state.set_sensor(KEY_EXECUTION_STATUS, "idle", {"log": []})

    def _apply_snapshot_to_canonical_state(self, snapshot: CycleSnapshot) -> None:
        has_cycle = bool(snapshot.check_in_id)
        self._state.set_sensor(KEY_SENTIMENT, snapshot.sentiment if has_cycle else None)
        self._state.set_sensor(KEY_INTENSITY, snapshot.intensity if has_cycle else None)
        self._state.set_sensor(KEY_SUPPORT_LEVEL, snapshot.support_level if has_cycle else None)
        self._state.set_sensor(KEY_RISK_LEVEL, snapshot.risk_level if has_cycle else None)
        self._state.set_sensor(
            KEY_DOMINANT_EMOTIONS,
            ", ".join(snapshot.dominant_emotions) if has_cycle else None,
        )
        self._state.set_binary(
            KEY_SUPPORT_RECOMMENDED, snapshot.support_level in ("high", "urgent")
        )
        self._state.set_binary(KEY_CRISIS_SUPPORT, snapshot.risk_level in ("concern", "urgent"))
        if KEY_SUGGESTION_SOURCES in self._state.sensors:
            self._state.set_sensor(
                KEY_SUGGESTION_SOURCES,
                ",".join(snapshot.sources) or None,
                {"errors": list(snapshot.errors)},
            )

    def _publish_suggestions(self) -> None:
        active = self._repository.active_suggestions()
        self._state.set_sensor(
            KEY_ACTIVE_SUGGESTIONS,
            len(active),
            {"suggestions": [_suggestion_summary(item) for item in active]},
        )

    def _fire_event(
        self,
        event_type: str,
        severity: str,
        title: str,
        message: str,
        context: dict[str, Any],
    ) -> None:
        event = MoodflowEvent(
            type=event_type,
            key=f"{event_type}:{context.get('suggestion_id') or context.get('check_in_id', '')}",
            severity=severity,
            title=title,
            message=message,
            context=context,
        )
        self._hass.bus.async_fire(EVENT_MOODFLOW_EVENT, event.as_dict())

    def _notify(self) -> None:
        if self._on_update is not None:
            self._on_update()


def _clean_text(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _suggestion_summary(suggestion: Suggestion) -> dict[str, Any]:
    return {
        "suggestion_id": suggestion.suggestion_id,
        "title": suggestion.title,
        "description": suggestion.description,
        "category": suggestion.category.value,
        "priority": suggestion.priority.value,
        "estimated_duration": suggestion.estimated_duration,
        "actions": [action.display_text for action in suggestion.actions],
    }
