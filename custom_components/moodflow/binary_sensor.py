"""Binary sensor platform for Moodflow."""

from __future__ import annotations

from .entities.binary_sensor import async_setup_entry

__all__ = ["async_setup_entry"]
