"""Static suggestion catalog keyed by support level, sentiment and time of day."""

from __future__ import annotations

import logging
from datetime import datetime

from homeassistant.util import dt as dt_util

from ..const import MAX_GENERATOR_SUGGESTIONS
from .classifier import Sentiment, SupportLevel
from .contracts import (
    ActionKind,
    ActionSpec,
    Contact,
    GenerationContext,
    GenerationResult,
    Priority,
    Suggestion,
    SuggestionCategory,
)
from .environments import (
    ANXIETY_RELIEF,
    BEDTIME_ROUTINE,
    DEEP_RELAXATION,
    FOCUS_CLARITY,
    MOOD_BOOST,
)

_LOGGER = logging.getLogger(__name__)

SOURCE = "template"
MAX_SUGGESTIONS = MAX_GENERATOR_SUGGESTIONS
EMERGENCY_RELATIONSHIP = "emergency"

MORNING = "morning"
AFTERNOON = "afternoon"
EVENING = "evening"
NIGHT = "night"

# activity key, display text, environment
_SELF_CARE_ACTIVITIES: dict[str, tuple[str, str, str]] = {
    MORNING: ("energizing_playlist", "Start your day with uplifting music", MOOD_BOOST),
    AFTERNOON: ("short_walk_reminder", "Take a refreshing 10-minute walk", FOCUS_CLARITY),
    EVENING: ("relaxing_routine", "Wind down with gentle lighting and soft music", DEEP_RELAXATION),
    NIGHT: ("bedtime_routine", "Prepare for restful sleep", BEDTIME_ROUTINE),
}


def time_of_day(now: datetime) -> str:
    hour = dt_util.as_local(now).hour
    if 6 <= hour <= 11:
        return MORNING
    if 12 <= hour <= 17:
        return AFTERNOON
    if 18 <= hour <= 22:
        return EVENING
    return NIGHT


def generate(context: GenerationContext) -> GenerationResult:
    assessment = context.assessment
    period = time_of_day(context.now)

    if assessment.support_level in (SupportLevel.HIGH, SupportLevel.URGENT):
        suggestions = _high_support(context)
    elif assessment.support_level is SupportLevel.MEDIUM:
        suggestions = _medium_support(context)
    elif assessment.support_level is SupportLevel.LOW:
        suggestions = _low_support(context, period)
    elif assessment.sentiment is Sentiment.POSITIVE:
        suggestions = _positive(context)
    elif assessment.sentiment is Sentiment.NEUTRAL:
        suggestions = _neutral(context)
    else:
        suggestions = _basic_support(context)

    suggestions.extend(crisis_suggestions(context))
    _LOGGER.debug(
        "Template generator: support=%s sentiment=%s period=%s -> %s",
        assessment.support_level,
        assessment.sentiment,
        period,
        len(suggestions),
    )
    return GenerationResult.success(suggestions[:MAX_SUGGESTIONS])


def crisis_suggestions(context: GenerationContext) -> list[Suggestion]:
    """Urgent suggestions for concern/urgent risk. Empty otherwise."""
    if not context.assessment.needs_crisis_support:
        return []

    line = context.crisis_line
    suggestions = [
        Suggestion(
            check_in_id=context.check_in_id,
            title="🚨 Immediate Support Available",
            description="You don't have to go through this alone. Professional help is available right now.",
            category=SuggestionCategory.EMERGENCY,
            priority=Priority.URGENT,
            actions=(
                ActionSpec(
                    kind=ActionKind.CALL_CONTACT,
                    display_text=f"Call {line} - Suicide & Crisis Lifeline (24/7 support)",
                    parameters={"phone_number": line, "contact_name": "Crisis Lifeline"},
                ),
            ),
            rationale="Crisis-level distress detected. Immediate professional support recommended.",
            estimated_duration="Available now",
        )
    ]

    emergency = next(
        (c for c in context.contacts if c.relationship.lower() == EMERGENCY_RELATIONSHIP),
        None,
    )
    if emergency is not None:
        suggestions.append(
            Suggestion(
                check_in_id=context.check_in_id,
                title="Emergency Contact",
                description="Call your designated emergency contact",
                category=SuggestionCategory.EMERGENCY,
                priority=Priority.URGENT,
                actions=(_call_action(emergency, f"Call {emergency.name} (your emergency contact)"),),
                rationale="An emergency contact can provide immediate personal support",
                estimated_duration="Immediate",
            )
        )
    return suggestions


def _call_action(contact: Contact, display_text: str, script: str | None = None) -> ActionSpec:
    parameters = {"phone_number": contact.phone_number, "contact_name": contact.name}
    if script:
        parameters["suggested_script"] = script
    return ActionSpec(
        kind=ActionKind.CALL_CONTACT,
        display_text=display_text,
        parameters=parameters,
        target_device_id=contact.contact_id,
    )


def _environment_action(environment: str, display_text: str, **extra: str) -> ActionSpec:
    return ActionSpec(
        kind=ActionKind.SMART_HOME_ENVIRONMENT,
        display_text=display_text,
        parameters={"environment": environment, **extra},
    )


def _high_support(context: GenerationContext) -> list[Suggestion]:
    suggestions: list[Suggestion] = []
    if context.contacts:
        contact = context.contacts[0]
        suggestions.append(
            Suggestion(
                check_in_id=context.check_in_id,
                title="Reach Out for Support",
                description="Connect with someone who cares about you",
                category=SuggestionCategory.SOCIAL_SUPPORT,
                priority=Priority.HIGH,
                actions=(
                    _call_action(
                        contact,
                        f"Call {contact.name}",
                        "I'm going through a tough time and could use some support.",
                    ),
                ),
                rationale="Social connection is crucial during difficult emotional moments",
                estimated_duration="10-30 minutes",
            )
        )

    suggestions.append(
        Suggestion(
            check_in_id=context.check_in_id,
            title="Anxiety Relief Environment",
            description="Create a calming space and guide you through breathing exercises",
            category=SuggestionCategory.SMART_ENVIRONMENT,
            priority=Priority.HIGH,
            actions=(
                _environment_action(ANXIETY_RELIEF, "Activate anxiety relief environment"),
                ActionSpec(
                    kind=ActionKind.THERAPEUTIC_ACTIVITY,
                    display_text="Start 5-minute breathing exercise",
                    parameters={"activity": "breathing_exercise", "duration": "5"},
                ),
            ),
            rationale="Environmental changes combined with breathing exercises can quickly reduce distress",
            estimated_duration="5-15 minutes",
        )
    )
    return suggestions


def _medium_support(context: GenerationContext) -> list[Suggestion]:
    suggestions: list[Suggestion] = []
    if context.contacts:
        contact = context.contacts[0]
        suggestions.append(
            Suggestion(
                check_in_id=context.check_in_id,
                title="Gentle Check-in",
                description="A light conversation might help lift your spirits",
                category=SuggestionCategory.SOCIAL_SUPPORT,
                priority=Priority.MEDIUM,
                actions=(
                    _call_action(
                        contact,
                        f"Call {contact.name} for a chat",
                        "Hey, just wanted to catch up. How are you doing?",
                    ),
                ),
                rationale="Light social connection can provide support without feeling overwhelming",
                estimated_duration="10-20 minutes",
            )
        )

    suggestions.append(
        Suggestion(
            check_in_id=context.check_in_id,
            title="Mood Boost Environment",
            description="Brighten your space to help lift your spirits",
            category=SuggestionCategory.SMART_ENVIRONMENT,
            priority=Priority.MEDIUM,
            actions=(_environment_action(MOOD_BOOST, "Activate mood boost environment"),),
            rationale="A comfortable physical environment can help improve emotional well-being",
            estimated_duration="Immediate",
        )
    )
    return suggestions


def _low_support(context: GenerationContext, period: str) -> list[Suggestion]:
    activity, text, environment = _SELF_CARE_ACTIVITIES[period]
    return [
        Suggestion(
            check_in_id=context.check_in_id,
            title="Self-Care Moment",
            description=text,
            category=SuggestionCategory.WELLNESS,
            priority=Priority.LOW,
            actions=(
                _environment_action(environment, text, activity=activity),
                ActionSpec(
                    kind=ActionKind.REMINDER,
                    display_text="Mindfulness reminder",
                    parameters={
                        "message": "Take a few deep breaths and appreciate this moment",
                        "when": "now",
                    },
                ),
            ),
            rationale="Gentle self-care activities can help maintain emotional balance",
            estimated_duration="5-10 minutes",
        )
    ]


def _positive(context: GenerationContext) -> list[Suggestion]:
    return [
        Suggestion(
            check_in_id=context.check_in_id,
            title="Amplify Your Good Vibes",
            description="Let's make this positive moment even better",
            category=SuggestionCategory.SMART_ENVIRONMENT,
            priority=Priority.MEDIUM,
            actions=(
                _environment_action(MOOD_BOOST, "Set vibrant lighting"),
                ActionSpec(
                    kind=ActionKind.REMINDER,
                    display_text="Consider sharing your joy",
                    parameters={
                        "message": "Share this positive energy with someone you love",
                        "when": "now",
                    },
                ),
            ),
            rationale="Amplifying positive emotions can create lasting mood improvements",
            estimated_duration="15-30 minutes",
        )
    ]


def _neutral(context: GenerationContext) -> list[Suggestion]:
    return [
        Suggestion(
            check_in_id=context.check_in_id,
            title="Gentle Energy Boost",
            description="Add a little spark to your day",
            category=SuggestionCategory.WELLNESS,
            priority=Priority.LOW,
            actions=(
                _environment_action(MOOD_BOOST, "Brighten the lights"),
                ActionSpec(
                    kind=ActionKind.THERAPEUTIC_ACTIVITY,
                    display_text="10-minute mood boost activity",
                    parameters={"activity": "mood_boost_playlist", "duration": "10"},
                ),
            ),
            rationale="Small environmental changes can shift neutral moods toward positive ones",
            estimated_duration="10 minutes",
        )
    ]


def _basic_support(context: GenerationContext) -> list[Suggestion]:
    return [
        Suggestion(
            check_in_id=context.check_in_id,
            title="Comfort & Connection",
            description="Create a supportive environment for yourself",
            category=SuggestionCategory.WELLNESS,
            priority=Priority.MEDIUM,
            actions=(
                _environment_action(DEEP_RELAXATION, "Set soft, warm lighting"),
                ActionSpec(
                    kind=ActionKind.REMINDER,
                    display_text="Gentle reminder about support",
                    parameters={
                        "message": "It's okay to reach out to someone if you need support",
                        "when": "in_30_minutes",
                    },
                ),
            ),
            rationale="A supportive environment plus a gentle nudge toward connection can help",
            estimated_duration="5 minutes",
        )
    ]
