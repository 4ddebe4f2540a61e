"""AI-backed suggestion generation.

Model output is untrusted text. The JSON object between the first ``{`` and
the last ``}`` is decoded and validated with voluptuous. Suggestions failing
validation are logged and dropped; an unusable envelope yields a failed
:class:`GenerationResult`, never an exception.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import voluptuous as vol

from ..const import MAX_GENERATOR_SUGGESTIONS
from ..errors import TextGenerationError
from .ai_client import ChatCompletionsClient
from .contracts import (
    ActionKind,
    ActionSpec,
    GenerationContext,
    GenerationResult,
    Priority,
    Suggestion,
    SuggestionCategory,
)
from .templates import time_of_day

_LOGGER = logging.getLogger(__name__)

SOURCE = "ai"
MAX_SUGGESTIONS = MAX_GENERATOR_SUGGESTIONS
MAX_PROMPT_CONTACTS = 3

DEFAULT_TYPE = "WELLNESS"
DEFAULT_PRIORITY = "MEDIUM"
DEFAULT_REASONING = "AI-generated suggestion"
DEFAULT_DURATION = "5-10 minutes"
DEFAULT_ACTION_TYPE = "REMINDER"
DEFAULT_DISPLAY_TEXT = "Take action"

CATEGORY_TYPES: dict[str, SuggestionCategory] = {
    "SOCIAL_SUPPORT": SuggestionCategory.SOCIAL_SUPPORT,
    "SMART_ENVIRONMENT": SuggestionCategory.SMART_ENVIRONMENT,
    "WELLNESS": SuggestionCategory.WELLNESS,
    "THERAPEUTIC": SuggestionCategory.THERAPEUTIC,
    "EMERGENCY": SuggestionCategory.EMERGENCY,
}

ACTION_TYPES: dict[str, ActionKind] = {
    "CALL_CONTACT": ActionKind.CALL_CONTACT,
    "SMART_HOME_ENVIRONMENT": ActionKind.SMART_HOME_ENVIRONMENT,
    "THERAPEUTIC_ACTIVITY": ActionKind.THERAPEUTIC_ACTIVITY,
    "REMINDER": ActionKind.REMINDER,
    "AI_CHAT": ActionKind.AI_CHAT,
    "MANUAL_GUIDANCE": ActionKind.MANUAL_GUIDANCE,
}

PRIORITIES: dict[str, Priority] = {priority.name: priority for priority in Priority}


def _parameter_value(value: Any) -> str:
    """Scalars become strings; nested values are kept intact as JSON."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, sort_keys=True)
    return str(value)


def _parameters(value: Any) -> dict[str, str]:
    if not isinstance(value, dict):
        raise vol.Invalid("parameters must be an object")
    return {str(key): _parameter_value(item) for key, item in value.items()}


def _enum_name(choices: dict[str, Any]) -> vol.All:
    return vol.All(str, vol.Strip, vol.Upper, vol.In(list(choices)))


ACTION_SCHEMA = vol.Schema(
    {
        vol.Optional("type", default=DEFAULT_ACTION_TYPE): _enum_name(ACTION_TYPES),
        vol.Optional("displayText", default=DEFAULT_DISPLAY_TEXT): vol.All(str, vol.Strip),
        vol.Optional("parameters", default={}): _parameters,
    },
    extra=vol.ALLOW_EXTRA,
)

SUGGESTION_SCHEMA = vol.Schema(
    {
        vol.Required("title"): vol.All(str, vol.Strip, vol.Length(min=1)),
        vol.Required("description"): vol.All(str, vol.Strip),
        vol.Optional("type", default=DEFAULT_TYPE): _enum_name(CATEGORY_TYPES),
        vol.Optional("priority", default=DEFAULT_PRIORITY): _enum_name(PRIORITIES),
        vol.Optional("actions", default=[]): [ACTION_SCHEMA],
        vol.Optional("reasoning", default=DEFAULT_REASONING): vol.All(str, vol.Strip),
        vol.Optional("duration", default=DEFAULT_DURATION): vol.All(vol.Coerce(str), vol.Strip),
    },
    extra=vol.ALLOW_EXTRA,
)

ENVELOPE_SCHEMA = vol.Schema({vol.Required("suggestions"): list}, extra=vol.ALLOW_EXTRA)


async def async_generate(
    context: GenerationContext, client: ChatCompletionsClient | None
) -> GenerationResult:
    if client is None:
        return GenerationResult.failure(SOURCE, "AI generation is disabled")

    prompt = build_prompt(context)
    try:
        text = await client.async_generate(prompt)
    except TextGenerationError as err:
        _LOGGER.warning("AI suggestion request failed: %s", err)
        return GenerationResult.failure(SOURCE, str(err))

    return parse_response(text, context)


def parse_response(text: str, context: GenerationContext) -> GenerationResult:
    start = text.find("{")
    end = text.rfind("}")
    if start < 0 or end <= start:
        return GenerationResult.failure(SOURCE, "no JSON object in response")

    try:
        payload = json.loads(text[start : end + 1])
    except ValueError as err:
        return GenerationResult.failure(SOURCE, f"invalid JSON: {err}")

    try:
        envelope = ENVELOPE_SCHEMA(payload)
    except vol.Invalid as err:
        return GenerationResult.failure(SOURCE, f"invalid envelope: {err}")

    suggestions: list[Suggestion] = []
    for index, raw in enumerate(envelope["suggestions"]):
        try:
            item = SUGGESTION_SCHEMA(raw)
        except vol.Invalid as err:
            _LOGGER.warning("Rejected AI suggestion #%s: %s", index, err)
            continue
        suggestions.append(_build_suggestion(item, context))
        if len(suggestions) >= MAX_SUGGESTIONS:
            break

    if not suggestions:
        return GenerationResult.failure(SOURCE, "no usable suggestions in response")
    return GenerationResult.success(suggestions)


def _build_suggestion(item: dict[str, Any], context: GenerationContext) -> Suggestion:
    actions: list[ActionSpec] = []
    for raw_action in item["actions"]:
        action = _build_action(raw_action, context)
        if action is not None:
            actions.append(action)
    if not actions:
        actions.append(
            ActionSpec(kind=ACTION_TYPES[DEFAULT_ACTION_TYPE], display_text=DEFAULT_DISPLAY_TEXT)
        )

    return Suggestion(
        check_in_id=context.check_in_id,
        title=item["title"],
        description=item["description"],
        category=CATEGORY_TYPES[item["type"]],
        priority=PRIORITIES[item["priority"]],
        actions=tuple(actions),
        rationale=item["reasoning"] or DEFAULT_REASONING,
        estimated_duration=item["duration"] or DEFAULT_DURATION,
    )


def _build_action(raw: dict[str, Any], context: GenerationContext) -> ActionSpec | None:
    kind = ACTION_TYPES[raw["type"]]
    parameters = dict(raw["parameters"])
    display_text = raw["displayText"] or DEFAULT_DISPLAY_TEXT

    if kind is not ActionKind.CALL_CONTACT:
        return ActionSpec(kind=kind, display_text=display_text, parameters=parameters)

    # Contact details never come from model output.
    if not context.contacts:
        _LOGGER.debug("Dropping CALL_CONTACT action: no known contacts")
        return None
    contact = context.contacts[0]
    parameters.pop("phoneNumber", None)
    parameters.pop("contactName", None)
    parameters["phone_number"] = contact.phone_number
    parameters["contact_name"] = contact.name
    return ActionSpec(
        kind=kind,
        display_text=display_text,
        parameters=parameters,
        target_device_id=contact.contact_id,
    )


def build_prompt(context: GenerationContext) -> str:
    check_in = context.check_in
    contacts = ", ".join(
        f"{contact.name} ({contact.relationship or 'contact'})"
        for contact in context.contacts[:MAX_PROMPT_CONTACTS]
    )
    history = "; ".join(
        f"Previous suggestion: {record.completion_status}" for record in context.recent_executions
    )

    capabilities = context.capabilities
    if capabilities.has_controllable_devices or capabilities.sensor_count:
        devices = capabilities.describe()
    else:
        devices = "- No smart home devices detected"

    return f"""You are a compassionate wellbeing assistant helping someone who just completed an emotional check-in.
Provide 1-3 specific, actionable suggestions for immediate support.

EMOTIONAL STATE:
- Current emotions: {', '.join(check_in.emotion_tags) or 'Not provided'}
- Thoughts: {check_in.free_text or 'Not provided'}
- Time of day: {time_of_day(context.now)}
- Available contacts: {contacts or 'None'}
- Recent patterns: {history or 'None'}

AVAILABLE SMART HOME DEVICES:
{devices}

SMART HOME AUTOMATION GUIDELINES:
- If lights are available: suggest calming or energizing lighting based on emotions
- If thermostats are available: optimize temperature for comfort
- If no devices: focus on manual environment tips and social or wellness suggestions
- Use specific device counts in descriptions (e.g. "across your 3 lights")

RESPONSE FORMAT (JSON):
{{
  "suggestions": [
    {{
      "title": "Brief, caring title",
      "description": "Empathetic explanation mentioning specific devices if available",
      "type": "{'|'.join(CATEGORY_TYPES)}",
      "priority": "{'|'.join(PRIORITIES)}",
      "actions": [
        {{
          "type": "{'|'.join(ACTION_TYPES)}",
          "displayText": "What the user sees",
          "parameters": {{
            "environment": "anxiety_relief|mood_boost|focus_clarity|deep_relaxation",
            "duration": "15"
          }}
        }}
      ],
      "reasoning": "Brief rationale explaining device choice",
      "duration": "estimated time"
    }}
  ]
}}

GUIDELINES:
- Prioritize safety: for severe distress include the crisis line ({context.crisis_line}) regardless of devices
- Match lighting and temperature to emotional needs
- Use warm, non-clinical language
- Limit to 3 suggestions maximum

Respond with valid JSON only."""
