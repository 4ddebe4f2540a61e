"""One suggestion-generation cycle for a check-in."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime

from ..const import MAX_SUGGESTIONS, RECENT_EXECUTIONS_FOR_PROMPT
from . import ai_generator, device_aware, templates
from .ai_client import ChatCompletionsClient
from .classifier import EmotionAssessment, SupportLevel, classify
from .contracts import (
    CheckIn,
    GenerationContext,
    GenerationResult,
    Priority,
    Suggestion,
    dedupe_by_title,
    utcnow,
)
from .devices import DeviceCapabilitySummary, DeviceSnapshot, aggregate_capabilities
from .repository import MoodflowRepository

_LOGGER = logging.getLogger(__name__)


def priority_hint(assessment: EmotionAssessment) -> Priority:
    if assessment.support_level in (SupportLevel.HIGH, SupportLevel.URGENT):
        return Priority.HIGH
    if assessment.support_level is SupportLevel.MEDIUM:
        return Priority.MEDIUM
    return Priority.LOW


@dataclass(frozen=True)
class CycleResult:
    """What one generation cycle produced and which path it took."""

    check_in: CheckIn
    assessment: EmotionAssessment
    capabilities: DeviceCapabilitySummary
    suggestions: list[Suggestion]
    sources: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


class SuggestionOrchestrator:
    """Runs the generator fallback chain and persists the survivors."""

    def __init__(
        self,
        repository: MoodflowRepository,
        *,
        ai_client: ChatCompletionsClient | None = None,
        crisis_line: str = "988",
    ) -> None:
        self._repository = repository
        self._ai_client = ai_client
        self._crisis_line = crisis_line

    async def async_run(
        self,
        check_in: CheckIn,
        devices: list[DeviceSnapshot] | None,
        now: datetime | None = None,
    ) -> CycleResult:
        assessment = classify(check_in.emotion_tags, check_in.free_text)
        capabilities = aggregate_capabilities(devices)
        context = GenerationContext(
            check_in=check_in,
            assessment=assessment,
            capabilities=capabilities,
            priority_hint=priority_hint(assessment),
            devices=tuple(devices or ()),
            contacts=tuple(self._repository.frequent_contacts()),
            recent_executions=tuple(
                self._repository.recent_executions(RECENT_EXECUTIONS_FOR_PROMPT)
            ),
            now=now or utcnow(),
            crisis_line=self._crisis_line,
        )

        sources: list[str] = []
        errors: list[str] = []

        def _collect(result: GenerationResult, source: str) -> list[Suggestion]:
            if not result.ok and result.error is not None:
                errors.append(f"{result.error.source}: {result.error.message}")
            if result.suggestions:
                sources.append(source)
            return result.suggestions

        generated: list[Suggestion] = []
        generated += _collect(
            await _guarded(device_aware.SOURCE, _sync(device_aware.generate), context),
            device_aware.SOURCE,
        )

        ai_result = await _guarded(
            ai_generator.SOURCE,
            lambda ctx: ai_generator.async_generate(ctx, self._ai_client),
            context,
        )
        if ai_result.ok and ai_result.suggestions:
            generated += _collect(ai_result, ai_generator.SOURCE)
        else:
            _collect(ai_result, ai_generator.SOURCE)
            _LOGGER.debug("Falling back to template suggestions")
            generated += _collect(
                await _guarded(templates.SOURCE, _sync(templates.generate), context),
                templates.SOURCE,
            )

        # Crisis suggestions lead regardless of which generators ran.
        crisis = templates.crisis_suggestions(context)
        crisis_titles = {item.title for item in crisis}
        ordered = dedupe_by_title(
            crisis + [item for item in generated if item.title not in crisis_titles]
        )

        # Manual guidance always survives the cap when nothing is controllable.
        ordered_titles = {item.title for item in ordered}
        fallback = [
            item
            for item in device_aware.fallback_suggestions(context)
            if item.title not in ordered_titles
        ]
        if fallback:
            sources.append("fallback")
        suggestions = ordered[: MAX_SUGGESTIONS - len(fallback)] + fallback

        for suggestion in suggestions:
            await self._repository.async_insert_suggestion(suggestion)

        _LOGGER.info(
            "Generated %s suggestions for check-in %s (risk=%s, support=%s, sources=%s)",
            len(suggestions),
            check_in.check_in_id,
            assessment.risk_level,
            assessment.support_level,
            ",".join(sources) or "none",
        )
        return CycleResult(
            check_in=check_in,
            assessment=assessment,
            capabilities=capabilities,
            suggestions=suggestions,
            sources=sources,
            errors=errors,
        )


def _sync(
    generate: Callable[[GenerationContext], GenerationResult],
) -> Callable[[GenerationContext], Awaitable[GenerationResult]]:
    async def _run(context: GenerationContext) -> GenerationResult:
        return generate(context)

    return _run


async def _guarded(
    source: str,
    generate: Callable[[GenerationContext], Awaitable[GenerationResult]],
    context: GenerationContext,
) -> GenerationResult:
    """Run one generator; an unexpected error means it produced nothing."""
    try:
        return await generate(context)
    except Exception as err:
        _LOGGER.exception("Suggestion generator '%s' failed", source)
        return GenerationResult.failure(source, str(err) or type(err).__name__)
