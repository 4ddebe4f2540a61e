"""Generation cycle snapshot models."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class CycleSnapshot:
    """What the last suggestion cycle saw and decided."""

    snapshot_id: str
    ts: str
    check_in_id: str
    sentiment: str
    intensity: str
    support_level: str
    risk_level: str
    dominant_emotions: list[str] = field(default_factory=list)
    capabilities: dict[str, Any] = field(default_factory=dict)
    sources: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    suggestion_ids: list[str] = field(default_factory=list)
    notes: str | None = None

    @classmethod
    def empty(cls) -> "CycleSnapshot":
        now = datetime.now(timezone.utc).isoformat()
        return cls(
            snapshot_id="",
            ts=now,
            check_in_id="",
            sentiment="neutral",
            intensity="low",
            support_level="none",
            risk_level="safe",
            notes=None,
        )

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)
