"""Constants for the Moodflow integration."""

from __future__ import annotations

from homeassistant.const import Platform

DOMAIN = "moodflow"
PLATFORMS: list[Platform] = [
    Platform.SENSOR,
    Platform.BINARY_SENSOR,
]

# Options keys (v1)
CONF_ENGINE_ENABLED = "engine_enabled"
CONF_AI_ENABLED = "ai_enabled"
CONF_AI_ENDPOINT = "ai_endpoint"
CONF_AI_MODEL = "ai_model"
CONF_AI_API_KEY = "ai_api_key"
CONF_AI_TIMEOUT = "ai_timeout"
CONF_AMBIENT_EFFECTS = "ambient_effects"
CONF_RESTORE_ENVIRONMENT = "restore_environment"
CONF_CRISIS_LINE = "crisis_line"

DEFAULT_ENGINE_ENABLED = True
DEFAULT_AI_ENABLED = False
DEFAULT_AI_ENDPOINT = "https://api.openai.com"
DEFAULT_AI_MODEL = "gpt-4o-mini"
DEFAULT_AI_TIMEOUT = 20
DEFAULT_AMBIENT_EFFECTS = True
DEFAULT_RESTORE_ENVIRONMENT = True
DEFAULT_CRISIS_LINE = "988"

# Storage
STORAGE_VERSION = 1
STORAGE_KEY = f"{DOMAIN}.journal"

# Generation limits
MAX_SUGGESTIONS = 5
MAX_GENERATOR_SUGGESTIONS = 3
MAX_ACTIVE_SUGGESTIONS = 5
MAX_ACTION_DEVICES = 3
RECENT_EXECUTIONS_FOR_PROMPT = 5

# Automation engine
AUTOMATION_ID_PREFIX = "moodflow_"
AUTOMATIONS_FILE = "automations.yaml"
EVENT_MOODFLOW_RUN = "moodflow_run"

# Services
SERVICE_CHECK_IN = "check_in"
SERVICE_EDIT_CHECK_IN = "edit_check_in"
SERVICE_DELETE_CHECK_IN = "delete_check_in"
SERVICE_GENERATE_SUGGESTIONS = "generate_suggestions"
SERVICE_EXECUTE_SUGGESTION = "execute_suggestion"
SERVICE_DISMISS_SUGGESTION = "dismiss_suggestion"
SERVICE_ADD_CONTACT = "add_contact"
SERVICE_REMOVE_CONTACT = "remove_contact"

# Events
EVENT_MOODFLOW_EVENT = "moodflow_event"

DIAGNOSTICS_REDACT_KEYS = {
    CONF_AI_API_KEY,
    "phone_number",
    "free_text",
    "entity_id",
    "target_device_id",
}
