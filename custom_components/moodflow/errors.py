"""Exceptions raised by Moodflow."""

from __future__ import annotations

from homeassistant.exceptions import HomeAssistantError


class MoodflowError(HomeAssistantError):
    """Base error for Moodflow."""


class CheckInNotFoundError(MoodflowError):
    """No check-in with the requested id."""


class SuggestionNotFoundError(MoodflowError):
    """No suggestion with the requested id."""


class SuggestionStateError(MoodflowError):
    """Transition not allowed from the suggestion's current state."""


class ContactNotFoundError(MoodflowError):
    """No contact with the requested id."""


class TextGenerationError(MoodflowError):
    """The text-generation service failed or returned nothing usable."""


class AutomationEngineError(MoodflowError):
    """Registering or running an automation failed."""
