"""Emotion and risk classification over lexical markers."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import StrEnum
from typing import Any, Iterable


class Sentiment(StrEnum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class Intensity(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    EXTREME = "extreme"


class SupportLevel(StrEnum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class RiskLevel(StrEnum):
    SAFE = "safe"
    MONITOR = "monitor"
    CONCERN = "concern"
    URGENT = "urgent"


POSITIVE_EMOTIONS = frozenset({"happy", "great", "confident", "loved", "calm"})
NEGATIVE_EMOTIONS = frozenset({"sad", "angry", "anxious", "upset", "tired"})
SUPPORT_EMOTIONS = frozenset({"sad", "angry", "anxious", "upset"})
SEVERE_EMOTIONS = frozenset({"angry", "sad", "anxious", "upset"})

CONCERNING_MARKERS = ("hopeless", "alone", "worthless", "trapped", "overwhelmed")
CRISIS_KEYWORDS = ("harm", "hurt", "end", "suicide", "die", "kill")
CONCERN_KEYWORDS = ("hopeless", "trapped", "worthless", "burden")
INTENSITY_WORDS = ("very", "extremely", "completely", "totally", "absolutely")

MAX_DOMINANT_EMOTIONS = 3


@dataclass(frozen=True)
class EmotionAssessment:
    """Derived view of a check-in. Never persisted."""

    sentiment: Sentiment
    intensity: Intensity
    support_level: SupportLevel
    risk_level: RiskLevel
    dominant_emotions: tuple[str, ...] = ()

    @property
    def needs_support(self) -> bool:
        return self.support_level in (SupportLevel.HIGH, SupportLevel.URGENT)

    @property
    def needs_crisis_support(self) -> bool:
        return self.risk_level in (RiskLevel.CONCERN, RiskLevel.URGENT)

    def as_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["dominant_emotions"] = list(self.dominant_emotions)
        return data


def normalize_tags(tags: Iterable[str] | None) -> tuple[str, ...]:
    """Lower-case, strip and de-duplicate tags keeping first occurrence order."""
    seen: list[str] = []
    for tag in tags or ():
        value = str(tag).strip().lower()
        if value and value not in seen:
            seen.append(value)
    return tuple(seen)


def classify(tags: Iterable[str] | None, text: str | None = None) -> EmotionAssessment:
    """Classify emotion tags plus optional free text.

    Deterministic and total: any input, including empty tags and no text,
    yields an assessment.
    """
    normalized = normalize_tags(tags)
    lowered = (text or "").lower()
    return EmotionAssessment(
        sentiment=classify_sentiment(normalized),
        intensity=classify_intensity(normalized, lowered),
        support_level=classify_support_level(normalized, lowered),
        risk_level=classify_risk_level(normalized, lowered),
        dominant_emotions=normalized[:MAX_DOMINANT_EMOTIONS],
    )


def classify_sentiment(tags: tuple[str, ...]) -> Sentiment:
    positive = sum(1 for tag in tags if tag in POSITIVE_EMOTIONS)
    negative = sum(1 for tag in tags if tag in NEGATIVE_EMOTIONS)
    if positive > negative:
        return Sentiment.POSITIVE
    if negative > positive:
        return Sentiment.NEGATIVE
    return Sentiment.NEUTRAL


def classify_support_level(tags: tuple[str, ...], text: str) -> SupportLevel:
    emotion_score = sum(1 for tag in tags if tag in SUPPORT_EMOTIONS)
    text_score = sum(1 for marker in CONCERNING_MARKERS if marker in text)

    if text_score >= 2 or emotion_score >= 3:
        return SupportLevel.HIGH
    if text_score >= 1 or emotion_score >= 2:
        return SupportLevel.MEDIUM
    if emotion_score >= 1:
        return SupportLevel.LOW
    return SupportLevel.NONE


def classify_risk_level(tags: tuple[str, ...], text: str) -> RiskLevel:
    if any(keyword in text for keyword in CRISIS_KEYWORDS):
        return RiskLevel.URGENT
    if sum(1 for keyword in CONCERN_KEYWORDS if keyword in text) >= 2:
        return RiskLevel.CONCERN
    if sum(1 for tag in tags if tag in SEVERE_EMOTIONS) >= 3:
        return RiskLevel.CONCERN
    return RiskLevel.SAFE


def classify_intensity(tags: tuple[str, ...], text: str) -> Intensity:
    adverbs = sum(1 for word in INTENSITY_WORDS if word in text)
    count = len(tags)

    if adverbs >= 3 or count >= 5:
        return Intensity.EXTREME
    if adverbs >= 2 or count >= 4:
        return Intensity.HIGH
    if adverbs >= 1 or count >= 2:
        return Intensity.MEDIUM
    return Intensity.LOW
