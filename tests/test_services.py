from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from homeassistant.exceptions import ServiceValidationError

from custom_components.moodflow.const import DOMAIN
from custom_components.moodflow.errors import SuggestionStateError
from custom_components.moodflow.runtime.contracts import CheckIn
from custom_components.moodflow.services import (
    ADD_CONTACT_SCHEMA,
    CHECK_IN_SCHEMA,
    async_register_services,
)


async def _registered(coordinator):
    hass = MagicMock()
    hass.data = {DOMAIN: {"services_registered": True, "entry1": {"coordinator": coordinator}}}
    await async_register_services(hass)
    return {call.args[1]: call.args[2] for call in hass.services.async_register.call_args_list}


def _coordinator():
    coordinator = MagicMock()
    coordinator.engine = AsyncMock()
    return coordinator


def test_check_in_schema_accepts_single_tag():
    data = CHECK_IN_SCHEMA({"emotion_tags": "sad"})
    assert data["emotion_tags"] == ["sad"]


def test_add_contact_schema_defaults():
    data = ADD_CONTACT_SCHEMA({"name": "Sam", "phone_number": "555-0100"})
    assert data["relationship"] == ""
    assert data["is_frequent"] is True


@pytest.mark.asyncio
async def test_all_services_registered():
    handlers = await _registered(_coordinator())
    assert set(handlers) == {
        "check_in",
        "edit_check_in",
        "delete_check_in",
        "generate_suggestions",
        "execute_suggestion",
        "dismiss_suggestion",
        "add_contact",
        "remove_contact",
    }


@pytest.mark.asyncio
async def test_check_in_returns_suggestions():
    coordinator = _coordinator()
    check_in = CheckIn(emotion_tags=("sad",), check_in_id="c1")
    coordinator.engine.async_check_in.return_value = (check_in, [])
    handlers = await _registered(coordinator)

    response = await handlers["check_in"](
        SimpleNamespace(data={"emotion_tags": ["sad"]}, return_response=True)
    )
    assert response == {"check_in": check_in.as_dict(), "suggestions": []}
    coordinator.record_action.assert_called_once_with("check_in", "c1")


@pytest.mark.asyncio
async def test_domain_errors_become_validation_errors():
    coordinator = _coordinator()
    coordinator.engine.async_dismiss_suggestion.side_effect = SuggestionStateError("already executed")
    handlers = await _registered(coordinator)

    with pytest.raises(ServiceValidationError):
        await handlers["dismiss_suggestion"](
            SimpleNamespace(data={"suggestion_id": "s1"}, return_response=False)
        )


@pytest.mark.asyncio
async def test_unknown_entry_is_rejected():
    handlers = await _registered(_coordinator())
    with pytest.raises(ServiceValidationError):
        await handlers["delete_check_in"](
            SimpleNamespace(data={"check_in_id": "c1", "entry_id": "nope"}, return_response=False)
        )
