"""Cancellable ambient lighting effects and environment restoration."""

from __future__ import annotations

import asyncio
import logging

from homeassistant.core import CALLBACK_TYPE, HomeAssistant, callback
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.event import async_call_later

from .environments import NEUTRAL_LIGHT_LEVEL, Transition, to_native_brightness

_LOGGER = logging.getLogger(__name__)

BREATHING_CYCLES = 5
BREATHING_INHALE_S = 4.0
BREATHING_EXHALE_S = 4.0
BREATHING_LOW_RATIO = 0.3

PULSE_COUNT = 3
PULSE_PERIOD_S = 1.0
PULSE_LOW_RATIO = 0.5

SETTLE_TRANSITION_S = 1.0


class AmbientEffects:
    """Owns at most one running light animation and one pending restoration."""

    def __init__(self, hass: HomeAssistant) -> None:
        self._hass = hass
        self._effect_task: asyncio.Task | None = None
        self._cancel_restore: CALLBACK_TYPE | None = None

    @property
    def effect_running(self) -> bool:
        return self._effect_task is not None and not self._effect_task.done()

    @property
    def restoration_pending(self) -> bool:
        return self._cancel_restore is not None

    @callback
    def async_cancel(self) -> None:
        """Cancel the running effect and any pending restoration."""
        if self._effect_task is not None and not self._effect_task.done():
            _LOGGER.debug("Cancelling running light effect")
            self._effect_task.cancel()
        self._effect_task = None
        if self._cancel_restore is not None:
            _LOGGER.debug("Cancelling pending environment restoration")
            self._cancel_restore()
            self._cancel_restore = None

    @callback
    def async_start_effect(self, transition: Transition, entity_ids: list[str], level: int) -> bool:
        if not entity_ids or transition is Transition.SMOOTH:
            return False
        if transition is Transition.BREATHING:
            coro = self._async_breathing(entity_ids, level)
        else:
            coro = self._async_pulse(entity_ids, level)
        self._effect_task = self._hass.async_create_background_task(
            coro, name=f"moodflow_{transition.value}_effect"
        )
        return True

    @callback
    def async_schedule_restoration(self, entity_ids: list[str], delay_s: float) -> None:
        if not entity_ids:
            return

        async def _restore(_now) -> None:
            self._cancel_restore = None
            _LOGGER.info("Restoring %s lights to neutral level", len(entity_ids))
            try:
                await self._async_set_level(entity_ids, NEUTRAL_LIGHT_LEVEL, SETTLE_TRANSITION_S)
            except HomeAssistantError as err:
                _LOGGER.warning("Environment restoration failed: %s", err)

        self._cancel_restore = async_call_later(self._hass, delay_s, _restore)

    async def _async_breathing(self, entity_ids: list[str], level: int) -> None:
        low = level * BREATHING_LOW_RATIO
        try:
            for _ in range(BREATHING_CYCLES):
                await self._async_set_level(entity_ids, level, BREATHING_INHALE_S)
                await asyncio.sleep(BREATHING_INHALE_S)
                await self._async_set_level(entity_ids, low, BREATHING_EXHALE_S)
                await asyncio.sleep(BREATHING_EXHALE_S)
            await self._async_set_level(entity_ids, level, SETTLE_TRANSITION_S)
        except HomeAssistantError as err:
            _LOGGER.warning("Breathing light effect stopped: %s", err)

    async def _async_pulse(self, entity_ids: list[str], level: int) -> None:
        half = PULSE_PERIOD_S / 2
        try:
            for _ in range(PULSE_COUNT):
                await self._async_set_level(entity_ids, level, half)
                await asyncio.sleep(half)
                await self._async_set_level(entity_ids, level * PULSE_LOW_RATIO, half)
                await asyncio.sleep(half)
            await self._async_set_level(entity_ids, level, SETTLE_TRANSITION_S)
        except HomeAssistantError as err:
            _LOGGER.warning("Pulse light effect stopped: %s", err)

    async def _async_set_level(self, entity_ids: list[str], level: float, transition_s: float) -> None:
        await self._hass.services.async_call(
            "light",
            "turn_on",
            {
                "entity_id": entity_ids,
                "brightness": to_native_brightness(level),
                "transition": transition_s,
            },
            blocking=True,
        )
