"""Core runtime contracts for check-ins, suggestions and executions."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any
from uuid import uuid4

from .classifier import EmotionAssessment
from .devices import DeviceCapabilitySummary, DeviceSnapshot


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid4())


def _parse_ts(value: Any) -> datetime | None:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _format_ts(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


STATUS_SUCCESS = "SUCCESS"


def failed_status(reason: str) -> str:
    return f"FAILED: {reason}"


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {Priority.LOW: 1, Priority.MEDIUM: 2, Priority.HIGH: 3, Priority.URGENT: 4}


class SuggestionCategory(StrEnum):
    SOCIAL_SUPPORT = "social_support"
    SMART_ENVIRONMENT = "smart_environment"
    WELLNESS = "wellness"
    THERAPEUTIC = "therapeutic"
    EMERGENCY = "emergency"
    MANUAL_SUGGESTION = "manual_suggestion"


class ActionKind(StrEnum):
    CALL_CONTACT = "call_contact"
    SMART_HOME_ENVIRONMENT = "smart_home_environment"
    THERAPEUTIC_ACTIVITY = "therapeutic_activity"
    REMINDER = "reminder"
    AI_CHAT = "ai_chat"
    MANUAL_GUIDANCE = "manual_guidance"
    CREATE_MOTION_AUTOMATION = "create_motion_automation"
    COLOR_THERAPY = "color_therapy"


class SuggestionState(StrEnum):
    PENDING = "pending"
    EXECUTED = "executed"
    DISMISSED = "dismissed"


@dataclass(frozen=True)
class CheckIn:
    """A user-submitted emotional check-in."""

    emotion_tags: tuple[str, ...]
    free_text: str | None = None
    check_in_id: str = field(default_factory=_new_id)
    timestamp: datetime = field(default_factory=utcnow)

    def edited(self, emotion_tags: tuple[str, ...], free_text: str | None) -> "CheckIn":
        return replace(self, emotion_tags=emotion_tags, free_text=free_text)

    def as_dict(self) -> dict[str, Any]:
        return {
            "check_in_id": self.check_in_id,
            "emotion_tags": list(self.emotion_tags),
            "free_text": self.free_text,
            "timestamp": _format_ts(self.timestamp),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CheckIn":
        return cls(
            check_in_id=str(data["check_in_id"]),
            emotion_tags=tuple(data.get("emotion_tags") or ()),
            free_text=data.get("free_text"),
            timestamp=_parse_ts(data.get("timestamp")) or utcnow(),
        )


@dataclass(frozen=True)
class Contact:
    """A person the user may reach out to."""

    name: str
    phone_number: str
    relationship: str = ""
    is_frequent: bool = True
    contact_id: str = field(default_factory=_new_id)
    last_contacted_at: datetime | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "contact_id": self.contact_id,
            "name": self.name,
            "phone_number": self.phone_number,
            "relationship": self.relationship,
            "is_frequent": self.is_frequent,
            "last_contacted_at": _format_ts(self.last_contacted_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Contact":
        return cls(
            contact_id=str(data["contact_id"]),
            name=str(data.get("name", "")),
            phone_number=str(data.get("phone_number", "")),
            relationship=str(data.get("relationship", "") or ""),
            is_frequent=bool(data.get("is_frequent", True)),
            last_contacted_at=_parse_ts(data.get("last_contacted_at")),
        )


@dataclass(frozen=True)
class ActionSpec:
    """Declarative instruction, not yet bound to the automation engine."""

    kind: ActionKind
    display_text: str
    parameters: dict[str, str] = field(default_factory=dict)
    target_device_id: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "display_text": self.display_text,
            "parameters": dict(self.parameters),
            "target_device_id": self.target_device_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ActionSpec":
        return cls(
            kind=ActionKind(data["kind"]),
            display_text=str(data.get("display_text", "")),
            parameters={str(k): str(v) for k, v in (data.get("parameters") or {}).items()},
            target_device_id=data.get("target_device_id"),
        )


@dataclass(frozen=True)
class Suggestion:
    """A proposed action derived from a check-in.

    pending -> executed | dismissed. Both transitions are terminal.
    """

    check_in_id: str
    title: str
    description: str
    category: SuggestionCategory
    priority: Priority
    actions: tuple[ActionSpec, ...]
    rationale: str | None = None
    estimated_duration: str | None = None
    suggestion_id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=utcnow)
    is_executed: bool = False
    executed_at: datetime | None = None
    is_dismissed: bool = False

    @property
    def state(self) -> SuggestionState:
        if self.is_executed:
            return SuggestionState.EXECUTED
        if self.is_dismissed:
            return SuggestionState.DISMISSED
        return SuggestionState.PENDING

    @property
    def is_terminal(self) -> bool:
        return self.state is not SuggestionState.PENDING

    @property
    def environment(self) -> str | None:
        if not self.actions:
            return None
        return self.actions[0].parameters.get("environment")

    def as_dict(self) -> dict[str, Any]:
        return {
            "suggestion_id": self.suggestion_id,
            "check_in_id": self.check_in_id,
            "title": self.title,
            "description": self.description,
            "category": self.category.value,
            "priority": self.priority.value,
            "actions": [action.as_dict() for action in self.actions],
            "rationale": self.rationale,
            "estimated_duration": self.estimated_duration,
            "created_at": _format_ts(self.created_at),
            "is_executed": self.is_executed,
            "executed_at": _format_ts(self.executed_at),
            "is_dismissed": self.is_dismissed,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Suggestion":
        return cls(
            suggestion_id=str(data["suggestion_id"]),
            check_in_id=str(data["check_in_id"]),
            title=str(data.get("title", "")),
            description=str(data.get("description", "")),
            category=SuggestionCategory(data["category"]),
            priority=Priority(data["priority"]),
            actions=tuple(ActionSpec.from_dict(item) for item in data.get("actions") or ()),
            rationale=data.get("rationale"),
            estimated_duration=data.get("estimated_duration"),
            created_at=_parse_ts(data.get("created_at")) or utcnow(),
            is_executed=bool(data.get("is_executed", False)),
            executed_at=_parse_ts(data.get("executed_at")),
            is_dismissed=bool(data.get("is_dismissed", False)),
        )


@dataclass(frozen=True)
class ExecutionRecord:
    """Append-only audit entry, one per execution attempt."""

    suggestion_id: str
    check_in_id: str
    completion_status: str
    execution_id: str = field(default_factory=_new_id)
    executed_at: datetime = field(default_factory=utcnow)

    @property
    def succeeded(self) -> bool:
        return self.completion_status == STATUS_SUCCESS

    def as_dict(self) -> dict[str, Any]:
        return {
            "execution_id": self.execution_id,
            "suggestion_id": self.suggestion_id,
            "check_in_id": self.check_in_id,
            "completion_status": self.completion_status,
            "executed_at": _format_ts(self.executed_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExecutionRecord":
        return cls(
            execution_id=str(data["execution_id"]),
            suggestion_id=str(data["suggestion_id"]),
            check_in_id=str(data.get("check_in_id", "")),
            completion_status=str(data.get("completion_status", "")),
            executed_at=_parse_ts(data.get("executed_at")) or utcnow(),
        )


@dataclass(frozen=True)
class GenerationContext:
    """Everything a generator may read for one cycle."""

    check_in: CheckIn
    assessment: EmotionAssessment
    capabilities: DeviceCapabilitySummary
    priority_hint: Priority = Priority.LOW
    devices: tuple[DeviceSnapshot, ...] = ()
    contacts: tuple[Contact, ...] = ()
    recent_executions: tuple[ExecutionRecord, ...] = ()
    now: datetime = field(default_factory=utcnow)
    crisis_line: str = "988"

    @property
    def check_in_id(self) -> str:
        return self.check_in.check_in_id


@dataclass(frozen=True)
class GenerationError:
    source: str
    message: str


@dataclass(frozen=True)
class GenerationResult:
    """Generator output: suggestions, or the reason there are none."""

    suggestions: list[Suggestion] = field(default_factory=list)
    error: GenerationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, suggestions: list[Suggestion]) -> "GenerationResult":
        return cls(suggestions=list(suggestions))

    @classmethod
    def failure(cls, source: str, message: str) -> "GenerationResult":
        return cls(suggestions=[], error=GenerationError(source=source, message=message))


@dataclass(frozen=True)
class MoodflowEvent:
    """Canonical event payload fired on the bus."""

    type: str
    key: str
    severity: str
    title: str
    message: str
    context: dict[str, Any] = field(default_factory=dict)
    event_id: str = field(default_factory=_new_id)
    ts: str = field(default_factory=lambda: utcnow().isoformat())

    def as_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "key": self.key,
            "severity": self.severity,
            "title": self.title,
            "message": self.message,
            "context": dict(self.context),
            "event_id": self.event_id,
            "ts": self.ts,
        }


def dedupe_by_title(suggestions: list[Suggestion]) -> list[Suggestion]:
    """Keep the first suggestion per title, preserving order."""
    seen: set[str] = set()
    unique: list[Suggestion] = []
    for suggestion in suggestions:
        if suggestion.title in seen:
            continue
        seen.add(suggestion.title)
        unique.append(suggestion)
    return unique
