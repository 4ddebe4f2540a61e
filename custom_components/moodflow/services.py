"""Service registration for Moodflow."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

import voluptuous as vol
from homeassistant.core import HomeAssistant, ServiceCall, ServiceResponse, SupportsResponse
from homeassistant.exceptions import ServiceValidationError
from homeassistant.helpers import config_validation as cv

from .const import (
    DOMAIN,
    SERVICE_ADD_CONTACT,
    SERVICE_CHECK_IN,
    SERVICE_DELETE_CHECK_IN,
    SERVICE_DISMISS_SUGGESTION,
    SERVICE_EDIT_CHECK_IN,
    SERVICE_EXECUTE_SUGGESTION,
    SERVICE_GENERATE_SUGGESTIONS,
    SERVICE_REMOVE_CONTACT,
)
from .coordinator import MoodflowCoordinator
from .errors import (
    CheckInNotFoundError,
    ContactNotFoundError,
    SuggestionNotFoundError,
    SuggestionStateError,
)
from .runtime.contracts import Suggestion

_LOGGER = logging.getLogger(__name__)

ATTR_ENTRY_ID = "entry_id"

_TAGS = vol.All(cv.ensure_list, [cv.string])

CHECK_IN_SCHEMA = vol.Schema(
    {
        vol.Required("emotion_tags"): _TAGS,
        vol.Optional("free_text"): cv.string,
        vol.Optional(ATTR_ENTRY_ID): cv.string,
    }
)

EDIT_CHECK_IN_SCHEMA = vol.Schema(
    {
        vol.Required("check_in_id"): cv.string,
        vol.Required("emotion_tags"): _TAGS,
        vol.Optional("free_text"): cv.string,
        vol.Optional(ATTR_ENTRY_ID): cv.string,
    }
)

CHECK_IN_ID_SCHEMA = vol.Schema(
    {
        vol.Required("check_in_id"): cv.string,
        vol.Optional(ATTR_ENTRY_ID): cv.string,
    }
)

SUGGESTION_ID_SCHEMA = vol.Schema(
    {
        vol.Required("suggestion_id"): cv.string,
        vol.Optional(ATTR_ENTRY_ID): cv.string,
    }
)

ADD_CONTACT_SCHEMA = vol.Schema(
    {
        vol.Required("name"): vol.All(cv.string, vol.Length(min=1)),
        vol.Required("phone_number"): vol.All(cv.string, vol.Length(min=1)),
        vol.Optional("relationship", default=""): cv.string,
        vol.Optional("is_frequent", default=True): cv.boolean,
        vol.Optional(ATTR_ENTRY_ID): cv.string,
    }
)

REMOVE_CONTACT_SCHEMA = vol.Schema(
    {
        vol.Required("contact_id"): cv.string,
        vol.Optional(ATTR_ENTRY_ID): cv.string,
    }
)

# Domain errors caused by the caller's input rather than the runtime.
_INPUT_ERRORS = (
    CheckInNotFoundError,
    SuggestionNotFoundError,
    SuggestionStateError,
    ContactNotFoundError,
)


def _get_coordinator(hass: HomeAssistant, entry_id: str | None) -> MoodflowCoordinator:
    entries: dict[str, Any] = {
        key: value
        for key, value in hass.data.get(DOMAIN, {}).items()
        if isinstance(value, dict) and "coordinator" in value
    }
    if entry_id:
        data = entries.get(entry_id)
        if data is None:
            raise ServiceValidationError(f"Unknown Moodflow entry '{entry_id}'")
        return data["coordinator"]
    if not entries:
        raise ServiceValidationError("Moodflow is not set up")
    return next(iter(entries.values()))["coordinator"]


def _suggestions_response(suggestions: list[Suggestion]) -> list[dict[str, Any]]:
    return [item.as_dict() for item in suggestions]


async def _guard(call: Callable[[], Awaitable[Any]]) -> Any:
    try:
        return await call()
    except _INPUT_ERRORS as err:
        raise ServiceValidationError(str(err)) from err


async def async_register_services(hass: HomeAssistant) -> None:
    async def _handle_check_in(call: ServiceCall) -> ServiceResponse:
        coordinator = _get_coordinator(hass, call.data.get(ATTR_ENTRY_ID))
        check_in, suggestions = await coordinator.engine.async_check_in(
            call.data["emotion_tags"], call.data.get("free_text")
        )
        coordinator.record_action("check_in", check_in.check_in_id)
        if not call.return_response:
            return None
        return {
            "check_in": check_in.as_dict(),
            "suggestions": _suggestions_response(suggestions),
        }

    async def _handle_edit_check_in(call: ServiceCall) -> None:
        coordinator = _get_coordinator(hass, call.data.get(ATTR_ENTRY_ID))
        await _guard(
            lambda: coordinator.engine.async_edit_check_in(
                call.data["check_in_id"], call.data["emotion_tags"], call.data.get("free_text")
            )
        )
        coordinator.record_action("edit_check_in", call.data["check_in_id"])

    async def _handle_delete_check_in(call: ServiceCall) -> None:
        coordinator = _get_coordinator(hass, call.data.get(ATTR_ENTRY_ID))
        await _guard(lambda: coordinator.engine.async_delete_check_in(call.data["check_in_id"]))
        coordinator.record_action("delete_check_in", call.data["check_in_id"])

    async def _handle_generate_suggestions(call: ServiceCall) -> ServiceResponse:
        coordinator = _get_coordinator(hass, call.data.get(ATTR_ENTRY_ID))
        suggestions = await _guard(
            lambda: coordinator.engine.async_generate_suggestions(call.data["check_in_id"])
        )
        coordinator.record_action("generate_suggestions", call.data["check_in_id"])
        if not call.return_response:
            return None
        return {"suggestions": _suggestions_response(suggestions)}

    async def _handle_execute_suggestion(call: ServiceCall) -> None:
        coordinator = _get_coordinator(hass, call.data.get(ATTR_ENTRY_ID))
        record = await _guard(
            lambda: coordinator.engine.async_execute_suggestion(call.data["suggestion_id"])
        )
        coordinator.record_action("execute_suggestion", record.completion_status)

    async def _handle_dismiss_suggestion(call: ServiceCall) -> None:
        coordinator = _get_coordinator(hass, call.data.get(ATTR_ENTRY_ID))
        await _guard(lambda: coordinator.engine.async_dismiss_suggestion(call.data["suggestion_id"]))
        coordinator.record_action("dismiss_suggestion", call.data["suggestion_id"])

    async def _handle_add_contact(call: ServiceCall) -> None:
        coordinator = _get_coordinator(hass, call.data.get(ATTR_ENTRY_ID))
        contact = await coordinator.engine.async_add_contact(
            call.data["name"],
            call.data["phone_number"],
            call.data["relationship"],
            call.data["is_frequent"],
        )
        coordinator.record_action("add_contact", contact.contact_id)

    async def _handle_remove_contact(call: ServiceCall) -> None:
        coordinator = _get_coordinator(hass, call.data.get(ATTR_ENTRY_ID))
        await _guard(lambda: coordinator.engine.async_remove_contact(call.data["contact_id"]))
        coordinator.record_action("remove_contact", call.data["contact_id"])

    hass.services.async_register(
        DOMAIN,
        SERVICE_CHECK_IN,
        _handle_check_in,
        schema=CHECK_IN_SCHEMA,
        supports_response=SupportsResponse.OPTIONAL,
    )
    hass.services.async_register(
        DOMAIN, SERVICE_EDIT_CHECK_IN, _handle_edit_check_in, schema=EDIT_CHECK_IN_SCHEMA
    )
    hass.services.async_register(
        DOMAIN, SERVICE_DELETE_CHECK_IN, _handle_delete_check_in, schema=CHECK_IN_ID_SCHEMA
    )
    hass.services.async_register(
        DOMAIN,
        SERVICE_GENERATE_SUGGESTIONS,
        _handle_generate_suggestions,
        schema=CHECK_IN_ID_SCHEMA,
        supports_response=SupportsResponse.OPTIONAL,
    )
    hass.services.async_register(
        DOMAIN, SERVICE_EXECUTE_SUGGESTION, _handle_execute_suggestion, schema=SUGGESTION_ID_SCHEMA
    )
    hass.services.async_register(
        DOMAIN, SERVICE_DISMISS_SUGGESTION, _handle_dismiss_suggestion, schema=SUGGESTION_ID_SCHEMA
    )
    hass.services.async_register(
        DOMAIN, SERVICE_ADD_CONTACT, _handle_add_contact, schema=ADD_CONTACT_SCHEMA
    )
    hass.services.async_register(
        DOMAIN, SERVICE_REMOVE_CONTACT, _handle_remove_contact, schema=REMOVE_CONTACT_SCHEMA
    )
    _LOGGER.debug("Registered %s services", DOMAIN)
