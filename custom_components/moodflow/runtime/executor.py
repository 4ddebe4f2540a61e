"""Register and run compiled automation graphs, recording every attempt."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from enum import StrEnum
from pathlib import Path
from typing import Any

import yaml
from homeassistant.core import HomeAssistant

from ..const import AUTOMATIONS_FILE
from ..errors import AutomationEngineError, MoodflowError, SuggestionStateError
from .compiler import ActionSequence, AutomationGraph, compile_suggestion
from .contracts import (
    STATUS_SUCCESS,
    ActionKind,
    ExecutionRecord,
    Suggestion,
    failed_status,
)
from .devices import DeviceSnapshot
from .effects import AmbientEffects
from .repository import MoodflowRepository

_LOGGER = logging.getLogger(__name__)


class ExecutionPhase(StrEnum):
    PENDING = "pending"
    COMPILING = "compiling"
    EXECUTING = "executing"
    EXECUTED = "executed"
    FAILED = "failed"


class ExecutionCancelledError(MoodflowError):
    """The execution was cancelled before it finished."""


class ExecutionContext:
    """Per-execution status log and cancellation flag."""

    def __init__(
        self,
        suggestion_id: str,
        on_log: Callable[[str], None] | None = None,
    ) -> None:
        self.suggestion_id = suggestion_id
        self.phase = ExecutionPhase.PENDING
        self._log: list[str] = []
        self._on_log = on_log
        self._cancelled = asyncio.Event()

    @property
    def log(self) -> list[str]:
        return list(self._log)

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()

    def raise_if_cancelled(self) -> None:
        if self._cancelled.is_set():
            raise ExecutionCancelledError("execution cancelled")

    def append(self, message: str) -> None:
        self._log.append(message)
        _LOGGER.debug("[%s] %s", self.suggestion_id, message)
        if self._on_log is not None:
            self._on_log(message)


def upsert_automation(path: Path, config: dict[str, Any]) -> None:
    """Replace or append the automation with config['id'] in an automations file."""
    existing: list[dict[str, Any]] = []
    if path.exists():
        content = path.read_text(encoding="utf-8")
        if content.strip():
            parsed = yaml.safe_load(content)
            if not isinstance(parsed, list):
                raise AutomationEngineError(f"{path.name} does not contain a list of automations")
            existing = parsed

    kept = [item for item in existing if not (isinstance(item, dict) and item.get("id") == config["id"])]
    kept.append(config)
    path.write_text(
        yaml.dump(kept, default_flow_style=False, allow_unicode=True, sort_keys=False),
        encoding="utf-8",
    )


class HomeAssistantAutomationEngine:
    """Automation engine backed by automations.yaml and service calls."""

    def __init__(self, hass: HomeAssistant) -> None:
        self._hass = hass

    async def async_create_automation(self, graph: AutomationGraph) -> None:
        path = Path(self._hass.config.path(AUTOMATIONS_FILE))
        try:
            await self._hass.async_add_executor_job(upsert_automation, path, graph.as_config())
        except (OSError, yaml.YAMLError) as err:
            raise AutomationEngineError(f"Could not write {AUTOMATIONS_FILE}: {err}") from err
        await self._hass.services.async_call("automation", "reload", {}, blocking=True)

    async def async_run(self, graph: AutomationGraph, context: ExecutionContext) -> None:
        """Run every sequence concurrently, steps within a sequence in order.

        The first failing sequence cancels the others before its error is raised.
        """
        tasks = [
            asyncio.create_task(self._async_run_sequence(sequence, context))
            for sequence in graph.sequences
        ]
        if not tasks:
            return
        try:
            await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        finally:
            pending = [task for task in tasks if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        for task in tasks:
            if not task.cancelled() and task.exception() is not None:
                raise task.exception()

    async def _async_run_sequence(self, sequence: ActionSequence, context: ExecutionContext) -> None:
        for step in sequence.steps:
            context.raise_if_cancelled()
            data = dict(step.data)
            if step.entity_id:
                data["entity_id"] = step.entity_id
            await self._hass.services.async_call(step.domain, step.service, data, blocking=True)
            context.append(f"✓ {sequence.name}: {step.describe()}")


class SuggestionExecutor:
    """pending -> compiling -> executing -> executed | failed."""

    def __init__(
        self,
        repository: MoodflowRepository,
        engine: HomeAssistantAutomationEngine,
        effects: AmbientEffects | None = None,
        *,
        restore_environment: bool = True,
    ) -> None:
        self._repository = repository
        self._engine = engine
        self._effects = effects
        self._restore_environment = restore_environment

    async def async_execute(
        self,
        suggestion: Suggestion,
        devices: list[DeviceSnapshot] | None,
        context: ExecutionContext,
    ) -> ExecutionRecord:
        if suggestion.is_terminal:
            raise SuggestionStateError(
                f"Suggestion '{suggestion.suggestion_id}' is already {suggestion.state}"
            )

        if self._effects is not None:
            self._effects.async_cancel()

        context.append(f"Starting '{suggestion.title}'")
        try:
            context.phase = ExecutionPhase.COMPILING
            graph = compile_suggestion(suggestion, devices, log=context.append)
            context.raise_if_cancelled()

            context.phase = ExecutionPhase.EXECUTING
            await self._engine.async_create_automation(graph)
            context.append(f"Registered automation '{graph.alias}'")
            await self._engine.async_run(graph, context)
        except Exception as err:
            return await self._async_record_failure(suggestion, context, err)

        context.phase = ExecutionPhase.EXECUTED
        await self._repository.async_mark_executed(suggestion.suggestion_id)
        await self._async_touch_contacts(suggestion)
        record = await self._repository.async_insert_execution(
            ExecutionRecord(
                suggestion_id=suggestion.suggestion_id,
                check_in_id=suggestion.check_in_id,
                completion_status=STATUS_SUCCESS,
            )
        )
        self._start_ambient(graph, context)
        context.append("✓ Completed")
        _LOGGER.info("Executed suggestion %s (%s)", suggestion.suggestion_id, suggestion.title)
        return record

    async def _async_record_failure(
        self, suggestion: Suggestion, context: ExecutionContext, err: Exception
    ) -> ExecutionRecord:
        reason = str(err) or type(err).__name__
        context.phase = ExecutionPhase.FAILED
        context.append(f"✗ Failed: {reason}")
        _LOGGER.warning("Executing suggestion %s failed: %s", suggestion.suggestion_id, reason)
        return await self._repository.async_insert_execution(
            ExecutionRecord(
                suggestion_id=suggestion.suggestion_id,
                check_in_id=suggestion.check_in_id,
                completion_status=failed_status(reason),
            )
        )

    async def _async_touch_contacts(self, suggestion: Suggestion) -> None:
        for action in suggestion.actions:
            if action.kind is not ActionKind.CALL_CONTACT or not action.target_device_id:
                continue
            if action.target_device_id not in {c.contact_id for c in self._repository.contacts()}:
                continue
            await self._repository.async_touch_contact(action.target_device_id)

    def _start_ambient(self, graph: AutomationGraph, context: ExecutionContext) -> None:
        if self._effects is None:
            return
        lights = graph.light_entities
        if self._effects.async_start_effect(graph.transition, lights, graph.profile.light_level):
            context.append(f"Started {graph.transition.value} light effect")
        if self._restore_environment and lights:
            self._effects.async_schedule_restoration(lights, graph.profile.duration_minutes * 60)
            context.append(f"Environment restores in {graph.profile.duration_minutes} minutes")
