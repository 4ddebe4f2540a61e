"""Config flow for Moodflow."""

from __future__ import annotations

import logging
import re
from typing import Any

import voluptuous as vol

from homeassistant import config_entries
from homeassistant.data_entry_flow import FlowResult
from homeassistant.helpers import config_validation as cv
from homeassistant.helpers.selector import selector

from .const import (
    CONF_AI_API_KEY,
    CONF_AI_ENABLED,
    CONF_AI_ENDPOINT,
    CONF_AI_MODEL,
    CONF_AI_TIMEOUT,
    CONF_AMBIENT_EFFECTS,
    CONF_CRISIS_LINE,
    CONF_ENGINE_ENABLED,
    CONF_RESTORE_ENVIRONMENT,
    DEFAULT_AI_ENABLED,
    DEFAULT_AI_ENDPOINT,
    DEFAULT_AI_MODEL,
    DEFAULT_AI_TIMEOUT,
    DEFAULT_AMBIENT_EFFECTS,
    DEFAULT_CRISIS_LINE,
    DEFAULT_ENGINE_ENABLED,
    DEFAULT_RESTORE_ENVIRONMENT,
    DOMAIN,
)

_LOGGER = logging.getLogger(__name__)

_PHONE_RE = re.compile(r"^\+?[0-9][0-9 ()-]*$")

MIN_AI_TIMEOUT = 1
MAX_AI_TIMEOUT = 120


def _password_selector() -> dict[str, Any]:
    return selector({"text": {"type": "password"}})


def _is_valid_phone(value: str) -> bool:
    return bool(_PHONE_RE.match(value.strip()))


def _is_valid_endpoint(value: str) -> bool:
    try:
        cv.url(value)
        return True
    except vol.Invalid:
        return False


class MoodflowConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Handle a config flow for Moodflow."""

    VERSION = 1
    MINOR_VERSION = 1

    async def async_step_user(self, user_input=None) -> FlowResult:
        await self.async_set_unique_id(DOMAIN)
        self._abort_if_unique_id_configured()

        schema = vol.Schema(
            {
                vol.Optional(CONF_ENGINE_ENABLED, default=DEFAULT_ENGINE_ENABLED): bool,
                vol.Optional(CONF_CRISIS_LINE, default=DEFAULT_CRISIS_LINE): cv.string,
            }
        )
        if user_input is None:
            return self.async_show_form(step_id="user", data_schema=schema)

        crisis_line = str(user_input.get(CONF_CRISIS_LINE, DEFAULT_CRISIS_LINE))
        if not _is_valid_phone(crisis_line):
            return self.async_show_form(
                step_id="user", data_schema=schema, errors={CONF_CRISIS_LINE: "invalid_phone"}
            )

        options = {
            CONF_ENGINE_ENABLED: user_input.get(CONF_ENGINE_ENABLED, DEFAULT_ENGINE_ENABLED),
            CONF_CRISIS_LINE: crisis_line.strip(),
        }
        return self.async_create_entry(title="Moodflow", data={}, options=options)

    @staticmethod
    def async_get_options_flow(config_entry: config_entries.ConfigEntry):
        return MoodflowOptionsFlowHandler(config_entry)


class MoodflowOptionsFlowHandler(config_entries.OptionsFlow):
    """Handle Moodflow options."""

    def __init__(self, config_entry: config_entries.ConfigEntry) -> None:
        self.options = dict(config_entry.options)

    async def async_step_init(self, user_input=None) -> FlowResult:
        return await self.async_step_general(user_input)

    async def async_step_general(self, user_input=None) -> FlowResult:
        schema = vol.Schema(
            {
                vol.Optional(
                    CONF_ENGINE_ENABLED,
                    default=self.options.get(CONF_ENGINE_ENABLED, DEFAULT_ENGINE_ENABLED),
                ): bool,
                vol.Optional(
                    CONF_AMBIENT_EFFECTS,
                    default=self.options.get(CONF_AMBIENT_EFFECTS, DEFAULT_AMBIENT_EFFECTS),
                ): bool,
                vol.Optional(
                    CONF_RESTORE_ENVIRONMENT,
                    default=self.options.get(CONF_RESTORE_ENVIRONMENT, DEFAULT_RESTORE_ENVIRONMENT),
                ): bool,
                vol.Optional(
                    CONF_CRISIS_LINE,
                    default=self.options.get(CONF_CRISIS_LINE, DEFAULT_CRISIS_LINE),
                ): cv.string,
            }
        )
        if user_input is None:
            return self.async_show_form(step_id="general", data_schema=schema)

        crisis_line = str(user_input.get(CONF_CRISIS_LINE, DEFAULT_CRISIS_LINE))
        if not _is_valid_phone(crisis_line):
            return self.async_show_form(
                step_id="general", data_schema=schema, errors={CONF_CRISIS_LINE: "invalid_phone"}
            )

        self.options[CONF_ENGINE_ENABLED] = user_input.get(
            CONF_ENGINE_ENABLED, DEFAULT_ENGINE_ENABLED
        )
        self.options[CONF_AMBIENT_EFFECTS] = user_input.get(
            CONF_AMBIENT_EFFECTS, DEFAULT_AMBIENT_EFFECTS
        )
        self.options[CONF_RESTORE_ENVIRONMENT] = user_input.get(
            CONF_RESTORE_ENVIRONMENT, DEFAULT_RESTORE_ENVIRONMENT
        )
        self.options[CONF_CRISIS_LINE] = crisis_line.strip()
        return await self.async_step_ai()

    async def async_step_ai(self, user_input=None) -> FlowResult:
        _LOGGER.debug("Options flow: ai user_input=%s", bool(user_input))
        schema = self._ai_schema(user_input)
        if user_input is None:
            return self.async_show_form(step_id="ai", data_schema=schema)

        errors: dict[str, str] = {}
        endpoint = str(user_input.get(CONF_AI_ENDPOINT, "")).strip()
        enabled = bool(user_input.get(CONF_AI_ENABLED, DEFAULT_AI_ENABLED))
        if enabled and not _is_valid_endpoint(endpoint):
            errors[CONF_AI_ENDPOINT] = "invalid_url"

        timeout = user_input.get(CONF_AI_TIMEOUT, DEFAULT_AI_TIMEOUT)
        if not MIN_AI_TIMEOUT <= int(timeout) <= MAX_AI_TIMEOUT:
            errors[CONF_AI_TIMEOUT] = "invalid_timeout"

        if errors:
            return self.async_show_form(step_id="ai", data_schema=schema, errors=errors)

        self.options[CONF_AI_ENABLED] = enabled
        self.options[CONF_AI_ENDPOINT] = endpoint.rstrip("/")
        self.options[CONF_AI_MODEL] = user_input.get(CONF_AI_MODEL, DEFAULT_AI_MODEL)
        self.options[CONF_AI_TIMEOUT] = int(timeout)
        # An empty field keeps the stored key.
        api_key = str(user_input.get(CONF_AI_API_KEY, "") or "")
        if api_key:
            self.options[CONF_AI_API_KEY] = api_key
        return self.async_create_entry(title="", data=self.options)

    def _ai_schema(self, user_input: dict[str, Any] | None = None) -> vol.Schema:
        values = user_input or self.options
        return vol.Schema(
            {
                vol.Optional(
                    CONF_AI_ENABLED,
                    default=values.get(CONF_AI_ENABLED, DEFAULT_AI_ENABLED),
                ): bool,
                vol.Optional(
                    CONF_AI_ENDPOINT,
                    default=values.get(CONF_AI_ENDPOINT, DEFAULT_AI_ENDPOINT),
                ): cv.string,
                vol.Optional(
                    CONF_AI_MODEL,
                    default=values.get(CONF_AI_MODEL, DEFAULT_AI_MODEL),
                ): cv.string,
                vol.Optional(CONF_AI_API_KEY): _password_selector(),
                vol.Optional(
                    CONF_AI_TIMEOUT,
                    default=values.get(CONF_AI_TIMEOUT, DEFAULT_AI_TIMEOUT),
                ): vol.Coerce(int),
            }
        )
