"""
Centralized configuration for all thresholds, weights, and heuristic tables.

Every tunable constant lives here. One EbbConfig instance is shared by the
pattern analyzer, the insight generator and the recommendation engine, so
the recovery ladder and impact weights cannot drift between them.

Scales:
    check-in energy_level   1..10
    event energy_impact     -5..5 (signed delta)
"""

from dataclasses import dataclass, field
from typing import Dict, Tuple


# ---------------------------------------------------------------------------
# Impact prediction weights
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ImpactWeights:
    """Weights and match windows for the three predicted-impact factors."""

    social_circle: float = 0.4
    time_of_day: float = 0.3
    duration: float = 0.3

    # Historical events within +/- hour_window of the candidate's hour match
    hour_window: int = 2
    # Historical events within +/- this many minutes of the candidate match
    duration_window_minutes: int = 30

    def __post_init__(self):
        total = self.social_circle + self.time_of_day + self.duration
        if abs(total - 1.0) > 1e-9:
            raise ValueError(f"Impact weights must sum to 1.0, got {total}")


# ---------------------------------------------------------------------------
# Recovery ladder
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RecoveryPattern:
    """One rung of the recovery ladder, keyed on an energy impact threshold."""

    name: str
    threshold: float
    recommended_recovery: str
    notification_frequency: str

    @property
    def recovery_label(self) -> str:
        return self.recommended_recovery.replace("_", " ")

    def to_dict(self) -> Dict[str, object]:
        return {
            "threshold": self.threshold,
            "recommended_recovery": self.recommended_recovery,
            "notification_frequency": self.notification_frequency,
        }


@dataclass(frozen=True)
class RecoveryTiers:
    """Ordered recovery thresholds. Impacts at or below a threshold match it."""

    high_impact: RecoveryPattern = RecoveryPattern(
        name="high_impact",
        threshold=-3.0,
        recommended_recovery="24_hours",
        notification_frequency="increased",
    )
    moderate_impact: RecoveryPattern = RecoveryPattern(
        name="moderate_impact",
        threshold=-2.0,
        recommended_recovery="12_hours",
        notification_frequency="normal",
    )

    def __post_init__(self):
        if self.high_impact.threshold > self.moderate_impact.threshold:
            raise ValueError(
                "high_impact threshold must not exceed moderate_impact threshold"
            )

    @property
    def tiers(self) -> Tuple[RecoveryPattern, ...]:
        """Most severe first; first match wins."""
        return (self.high_impact, self.moderate_impact)


# ---------------------------------------------------------------------------
# Confidence models
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PredictionConfidenceParams:
    """
    Confidence of an impact prediction, from history coverage.

    confidence = w_events * min(events / event_saturation, 1)
               + w_check_ins * min(check_ins / check_in_saturation, 1)
    """

    event_weight: float = 0.6
    check_in_weight: float = 0.4
    event_saturation: int = 10
    check_in_saturation: int = 20

    def __post_init__(self):
        total = self.event_weight + self.check_in_weight
        if abs(total - 1.0) > 1e-9:
            raise ValueError(f"Prediction confidence weights must sum to 1.0, got {total}")


@dataclass(frozen=True)
class SampleConfidenceParams:
    """Linear ramp from 0 at min_samples to 1 at max_samples."""

    min_samples: int = 5
    max_samples: int = 50


# ---------------------------------------------------------------------------
# Time-of-day buckets
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TimeOfDayBucket:
    """Half-open hour range [start_hour, end_hour). Wraps past midnight."""

    name: str
    start_hour: int
    end_hour: int

    def contains(self, hour: int) -> bool:
        if self.start_hour <= self.end_hour:
            return self.start_hour <= hour < self.end_hour
        return hour >= self.start_hour or hour < self.end_hour


DEFAULT_TIME_BUCKETS: tuple = (
    TimeOfDayBucket("morning", 5, 12),
    TimeOfDayBucket("afternoon", 12, 17),
    TimeOfDayBucket("evening", 17, 21),
    TimeOfDayBucket("night", 21, 5),
)


# ---------------------------------------------------------------------------
# Insight thresholds
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class InsightThresholds:
    """Trigger conditions for the category detectors."""

    # Energy (check-in scale 1..10)
    energy_dispersion: float = 2.0
    low_energy_average: float = 3.0

    # Social
    social_ratio: float = 0.2
    min_events: int = 5
    circle_coverage: float = 0.5

    # Activities
    min_event_types: int = 3
    high_intensity_share: float = 0.7


# ---------------------------------------------------------------------------
# Recommendation parameters
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RecommendationParams:
    """Thresholds and output bounds for the recommendation engine."""

    history_limit: int = 30
    max_recommendations: int = 5

    # Social impact thresholds (event impact scale -5..5)
    social_boost: float = 2.0
    social_drain: float = -2.0

    timing_min_confidence: float = 0.7

    # Share of recent events above which one event type is over-represented
    balance_share: float = 0.4


@dataclass(frozen=True)
class HistoryParams:
    """How much stored history feeds an impact prediction."""

    prediction_events: int = 10
    prediction_check_ins: int = 20


# ---------------------------------------------------------------------------
# Categorical moods (mapped onto the 1..10 check-in scale)
# ---------------------------------------------------------------------------

MOOD_SCORES: Dict[str, float] = {
    "terrible": 1.0,
    "awful": 1.0,
    "bad": 3.0,
    "low": 3.0,
    "sad": 3.0,
    "anxious": 4.0,
    "tired": 4.0,
    "okay": 5.0,
    "neutral": 5.0,
    "calm": 6.0,
    "good": 7.0,
    "happy": 8.0,
    "great": 9.0,
    "excellent": 10.0,
}


# ---------------------------------------------------------------------------
# Top-level config aggregate
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EbbConfig:
    """Complete engine configuration. Pass to each component to override defaults."""

    impact: ImpactWeights = field(default_factory=ImpactWeights)
    recovery: RecoveryTiers = field(default_factory=RecoveryTiers)
    prediction_confidence: PredictionConfidenceParams = field(
        default_factory=PredictionConfidenceParams
    )
    sample_confidence: SampleConfidenceParams = field(default_factory=SampleConfidenceParams)
    insights: InsightThresholds = field(default_factory=InsightThresholds)
    recommendations: RecommendationParams = field(default_factory=RecommendationParams)
    history: HistoryParams = field(default_factory=HistoryParams)
    time_buckets: tuple = DEFAULT_TIME_BUCKETS
    mood_scores: Dict[str, float] = field(default_factory=lambda: dict(MOOD_SCORES))
