"""Persistence for check-ins, suggestions, executions and contacts.

Backed by Home Assistant's Store API. Every write holds one lock and is
saved before the call returns.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime
from typing import Any

from homeassistant.core import CALLBACK_TYPE, HomeAssistant, callback
from homeassistant.helpers.storage import Store

from ..const import MAX_ACTIVE_SUGGESTIONS, STORAGE_KEY, STORAGE_VERSION
from ..errors import (
    CheckInNotFoundError,
    ContactNotFoundError,
    SuggestionNotFoundError,
    SuggestionStateError,
)
from .contracts import CheckIn, Contact, ExecutionRecord, Suggestion, utcnow

_LOGGER = logging.getLogger(__name__)


class MoodflowRepository:
    """In-memory view over the persisted journal."""

    def __init__(self, hass: HomeAssistant, key: str = STORAGE_KEY) -> None:
        self._store: Store[dict[str, Any]] = Store(hass, STORAGE_VERSION, key)
        self._lock = asyncio.Lock()
        self._check_ins: dict[str, CheckIn] = {}
        self._suggestions: dict[str, Suggestion] = {}
        self._executions: list[ExecutionRecord] = []
        self._contacts: dict[str, Contact] = {}
        self._listeners: list[Callable[[], None]] = []

    async def async_load(self) -> None:
        data = await self._store.async_load()
        if not isinstance(data, dict):
            _LOGGER.debug("No stored journal, starting empty")
            return

        self._check_ins = {
            item.check_in_id: item
            for item in (CheckIn.from_dict(raw) for raw in data.get("check_ins", []))
        }
        self._suggestions = {
            item.suggestion_id: item
            for item in (Suggestion.from_dict(raw) for raw in data.get("suggestions", []))
        }
        self._executions = [ExecutionRecord.from_dict(raw) for raw in data.get("executions", [])]
        self._contacts = {
            item.contact_id: item
            for item in (Contact.from_dict(raw) for raw in data.get("contacts", []))
        }
        _LOGGER.debug(
            "Loaded journal: %s check-ins, %s suggestions, %s executions, %s contacts",
            len(self._check_ins),
            len(self._suggestions),
            len(self._executions),
            len(self._contacts),
        )

    @callback
    def async_add_listener(self, update_callback: Callable[[], None]) -> CALLBACK_TYPE:
        """Call update_callback after every committed write."""
        self._listeners.append(update_callback)

        @callback
        def _remove() -> None:
            if update_callback in self._listeners:
                self._listeners.remove(update_callback)

        return _remove

    def _as_data(self) -> dict[str, Any]:
        return {
            "check_ins": [item.as_dict() for item in self._check_ins.values()],
            "suggestions": [item.as_dict() for item in self._suggestions.values()],
            "executions": [item.as_dict() for item in self._executions],
            "contacts": [item.as_dict() for item in self._contacts.values()],
        }

    async def _async_commit(self) -> None:
        await self._store.async_save(self._as_data())
        for listener in list(self._listeners):
            listener()

    # ---- Check-ins ----
    def get_check_in(self, check_in_id: str) -> CheckIn | None:
        return self._check_ins.get(check_in_id)

    def check_ins(self) -> list[CheckIn]:
        return sorted(self._check_ins.values(), key=lambda item: item.timestamp, reverse=True)

    async def async_insert_check_in(self, check_in: CheckIn) -> CheckIn:
        async with self._lock:
            self._check_ins[check_in.check_in_id] = check_in
            await self._async_commit()
        return check_in

    async def async_update_check_in(self, check_in: CheckIn) -> CheckIn:
        async with self._lock:
            if check_in.check_in_id not in self._check_ins:
                raise CheckInNotFoundError(f"Unknown check-in '{check_in.check_in_id}'")
            self._check_ins[check_in.check_in_id] = check_in
            await self._async_commit()
        return check_in

    async def async_delete_check_in(self, check_in_id: str) -> None:
        """Delete a check-in and its suggestions. Execution records are kept."""
        async with self._lock:
            if self._check_ins.pop(check_in_id, None) is None:
                raise CheckInNotFoundError(f"Unknown check-in '{check_in_id}'")
            self._suggestions = {
                key: item for key, item in self._suggestions.items() if item.check_in_id != check_in_id
            }
            await self._async_commit()

    # ---- Suggestions ----
    def get_suggestion(self, suggestion_id: str) -> Suggestion | None:
        return self._suggestions.get(suggestion_id)

    def active_suggestions(self, limit: int = MAX_ACTIVE_SUGGESTIONS) -> list[Suggestion]:
        """Pending suggestions, highest priority first, newest first within a priority."""
        pending = [item for item in self._suggestions.values() if not item.is_terminal]
        pending.sort(key=lambda item: (item.priority.rank, item.created_at), reverse=True)
        return pending[:limit]

    def suggestions_for_check_in(self, check_in_id: str) -> list[Suggestion]:
        return sorted(
            (item for item in self._suggestions.values() if item.check_in_id == check_in_id),
            key=lambda item: item.created_at,
        )

    async def async_insert_suggestion(self, suggestion: Suggestion) -> Suggestion:
        async with self._lock:
            self._suggestions[suggestion.suggestion_id] = suggestion
            await self._async_commit()
        return suggestion

    async def async_update_suggestion(self, suggestion: Suggestion) -> Suggestion:
        async with self._lock:
            current = self._require_suggestion(suggestion.suggestion_id)
            if current.is_terminal:
                raise SuggestionStateError(
                    f"Suggestion '{suggestion.suggestion_id}' is already {current.state}"
                )
            if suggestion.is_executed and suggestion.is_dismissed:
                raise SuggestionStateError("A suggestion cannot be both executed and dismissed")
            self._suggestions[suggestion.suggestion_id] = suggestion
            await self._async_commit()
        return suggestion

    async def async_mark_executed(
        self, suggestion_id: str, executed_at: datetime | None = None
    ) -> Suggestion:
        current = self._require_suggestion(suggestion_id)
        return await self.async_update_suggestion(
            replace(current, is_executed=True, executed_at=executed_at or utcnow())
        )

    async def async_dismiss_suggestion(self, suggestion_id: str) -> Suggestion:
        current = self._require_suggestion(suggestion_id)
        if current.is_dismissed:
            return current
        return await self.async_update_suggestion(replace(current, is_dismissed=True))

    def _require_suggestion(self, suggestion_id: str) -> Suggestion:
        suggestion = self._suggestions.get(suggestion_id)
        if suggestion is None:
            raise SuggestionNotFoundError(f"Unknown suggestion '{suggestion_id}'")
        return suggestion

    # ---- Executions ----
    async def async_insert_execution(self, record: ExecutionRecord) -> ExecutionRecord:
        async with self._lock:
            self._executions.append(record)
            await self._async_commit()
        return record

    def recent_executions(self, limit: int) -> list[ExecutionRecord]:
        ordered = sorted(self._executions, key=lambda item: item.executed_at, reverse=True)
        return ordered[: max(0, limit)]

    def executions_for_suggestion(self, suggestion_id: str) -> list[ExecutionRecord]:
        return [item for item in self._executions if item.suggestion_id == suggestion_id]

    # ---- Contacts ----
    def contacts(self) -> list[Contact]:
        return sorted(self._contacts.values(), key=lambda item: item.name.lower())

    def frequent_contacts(self) -> list[Contact]:
        """Frequent contacts, most recently contacted first, never-contacted last."""
        frequent = [item for item in self._contacts.values() if item.is_frequent]
        frequent.sort(
            key=lambda item: (item.last_contacted_at is not None, item.last_contacted_at or utcnow()),
            reverse=True,
        )
        return frequent

    async def async_add_contact(self, contact: Contact) -> Contact:
        async with self._lock:
            self._contacts[contact.contact_id] = contact
            await self._async_commit()
        return contact

    async def async_remove_contact(self, contact_id: str) -> None:
        async with self._lock:
            if self._contacts.pop(contact_id, None) is None:
                raise ContactNotFoundError(f"Unknown contact '{contact_id}'")
            await self._async_commit()

    async def async_touch_contact(self, contact_id: str, when: datetime | None = None) -> Contact:
        async with self._lock:
            contact = self._contacts.get(contact_id)
            if contact is None:
                raise ContactNotFoundError(f"Unknown contact '{contact_id}'")
            contact = replace(contact, last_contacted_at=when or utcnow())
            self._contacts[contact_id] = contact
            await self._async_commit()
        return contact
