"""
Record types flowing through the pipeline.

Inputs (CheckIn, Event, Participant, SocialCircle) are read-only snapshots
supplied by the caller. Outputs (Pattern, Prediction, Insight,
Recommendation, PatternStatistic) are derived and disposable.

from_dict accepts the snake_case or camelCase keys the storage layer emits;
to_dict returns JSON-ready dicts.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import pandas as pd


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """First present key wins."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def parse_timestamp(value: Union[str, datetime, None]) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    return pd.Timestamp(value).to_pydatetime()


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def rescale_signed_energy(level: float) -> int:
    """Map a legacy signed energy level (-5..5) onto the 1..10 check-in scale."""
    return int(round((level + 5) * 9.0 / 10.0 + 1))


def normalize_intensity(value: Union[str, int, None]) -> Optional[str]:
    """Categorical intensity. 1..5 integers map 1-2 low, 3 moderate, 4-5 high."""
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if value >= 4:
            return "high"
        if value >= 3:
            return "moderate"
        return "low"
    return str(value).lower()


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CheckIn:
    id: Any
    user_id: Any
    energy_level: float
    mood: Union[float, str, None]
    created_at: datetime
    activity_type: Optional[str] = None
    social_interaction_level: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], signed_scale: bool = False) -> "CheckIn":
        energy = _pick(data, "energy_level", "energyLevel", "energy")
        if energy is None:
            raise ValueError(f"Check-in {data.get('id')!r} has no energy level")
        if signed_scale:
            energy = rescale_signed_energy(energy)
        created_at = parse_timestamp(_pick(data, "created_at", "createdAt", "timestamp"))
        if created_at is None:
            raise ValueError(f"Check-in {data.get('id')!r} has no created_at")
        return cls(
            id=data.get("id"),
            user_id=_pick(data, "user_id", "userId"),
            energy_level=energy,
            mood=data.get("mood"),
            created_at=created_at,
            activity_type=_pick(data, "activity_type", "activityType"),
            social_interaction_level=_pick(
                data, "social_interaction_level", "socialInteractionLevel"
            ),
        )


@dataclass(frozen=True)
class Participant:
    id: Any
    social_circle_id: Any = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Participant":
        return cls(
            id=data.get("id"),
            social_circle_id=_pick(data, "social_circle_id", "socialCircleId"),
        )


@dataclass(frozen=True)
class Event:
    id: Any
    user_id: Any
    event_type: str
    date: datetime
    duration: Optional[float] = None
    participants: Sequence[Participant] = ()
    energy_impact: Optional[float] = None
    intensity: Optional[str] = None
    social_circle_id: Any = None

    @property
    def circle_ids(self) -> List[Any]:
        """Circles this event belongs to, event-level tag first."""
        if self.social_circle_id is not None:
            return [self.social_circle_id]
        seen: List[Any] = []
        for p in self.participants:
            if p.social_circle_id is not None and p.social_circle_id not in seen:
                seen.append(p.social_circle_id)
        return seen

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Event":
        date = parse_timestamp(_pick(data, "date", "start_date", "startDate"))
        if date is None:
            raise ValueError(f"Event {data.get('id')!r} has no date")
        participants = tuple(
            p if isinstance(p, Participant) else Participant.from_dict(p)
            for p in (data.get("participants") or ())
        )
        return cls(
            id=data.get("id"),
            user_id=_pick(data, "user_id", "userId"),
            event_type=_pick(data, "event_type", "eventType", default="other"),
            date=date,
            duration=data.get("duration"),
            participants=participants,
            energy_impact=_pick(data, "energy_impact", "energyImpact"),
            intensity=normalize_intensity(data.get("intensity")),
            social_circle_id=_pick(data, "social_circle_id", "socialCircleId"),
        )


@dataclass(frozen=True)
class SocialCircle:
    id: Any
    name: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SocialCircle":
        return cls(id=data.get("id"), name=data.get("name", ""))


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

class PatternType(str, Enum):
    # Produced by PatternAnalyzer.analyze
    ENERGY_TIME_OF_DAY = "energy_time_of_day"
    EVENT_ENERGY_IMPACT = "event_energy_impact"
    SOCIAL_CIRCLE_IMPACT = "social_circle_impact"
    MOOD_ENERGY_CORRELATION = "mood_energy_correlation"

    # Recommendation signals
    SOCIAL_IMPACT = "social_impact"
    TIME_PREFERENCE = "time_preference"
    ENERGY_IMPACT = "energy_impact"


@dataclass(frozen=True)
class Pattern:
    type: PatternType
    payload: Dict[str, Any]
    confidence: float

    @property
    def value(self) -> Optional[float]:
        return self.payload.get("value")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Pattern":
        """Flat mappings ({type, value, confidence, ...}) are accepted too."""
        payload = data.get("payload")
        if payload is None:
            payload = {k: v for k, v in data.items() if k not in ("type", "confidence")}
        return cls(
            type=PatternType(data["type"]),
            payload=dict(payload),
            confidence=float(data.get("confidence", 0.0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "payload": self.payload,
            "confidence": round(self.confidence, 4),
        }


@dataclass(frozen=True)
class PatternStatistic:
    """Best-effort record written after each analysis run."""

    user_id: Any
    timestamp: datetime
    metrics: Dict[str, Any]
    energy_level: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "timestamp": _iso(self.timestamp),
            "metrics": self.metrics,
            "energy_level": self.energy_level,
        }


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------

class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}


class RecommendationType(str, Enum):
    SOCIAL = "social"
    TIMING = "timing"
    RECOVERY = "recovery"
    BALANCE = "balance"
    ENERGY_MANAGEMENT = "energy_management"


@dataclass(frozen=True)
class Recommendation:
    type: RecommendationType
    description: str
    priority: Priority

    def to_dict(self) -> Dict[str, str]:
        return {
            "type": self.type.value,
            "description": self.description,
            "priority": self.priority.value,
        }


# ---------------------------------------------------------------------------
# Prediction
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Prediction:
    energy_impact: float
    confidence_score: float
    recovery_period: Optional[Dict[str, Any]] = None
    recommendations: List[Recommendation] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "energy_impact": round(self.energy_impact, 4),
            "confidence_score": round(self.confidence_score, 4),
            "recovery_period": self.recovery_period,
            "recommendations": [r.to_dict() for r in self.recommendations],
        }


# ---------------------------------------------------------------------------
# Insights
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Insight:
    id: str
    title: str
    description: str
    priority: int
    recommendations: List[str]
    confidence: float
    category: str
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "priority": self.priority,
            "recommendations": list(self.recommendations),
            "confidence": self.confidence,
            "category": self.category,
            "timestamp": _iso(self.timestamp),
        }
