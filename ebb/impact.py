"""
Impact factor scoring for a candidate event.

Each factor is the mean observed energy_impact over the historical events
that resemble the candidate on one axis (shared participants, hour of day,
duration). Factors are blended with the configured weights. Missing
observed impacts count as 0. No I/O here.
"""

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

from ebb import stats
from ebb.config import EbbConfig, RecoveryPattern, RecoveryTiers
from ebb.models import (
    CheckIn,
    Event,
    Participant,
    Priority,
    Recommendation,
    RecommendationType,
)


def _mean_impact(events: Sequence[Event]) -> float:
    if not events:
        return 0.0
    return stats.mean(e.energy_impact or 0.0 for e in events)


# ---------------------------------------------------------------------------
# Factor scores
# ---------------------------------------------------------------------------

def social_circle_factor(
    participants: Optional[Iterable[Participant]],
    historical_events: Sequence[Event],
) -> float:
    """Mean impact of past events sharing at least one participant."""
    if not participants or not historical_events:
        return 0.0
    ids = {p.id for p in participants}
    relevant = [
        e for e in historical_events
        if any(p.id in ids for p in e.participants)
    ]
    return _mean_impact(relevant)


def time_of_day_factor(
    date: Optional[datetime],
    historical_events: Sequence[Event],
    cfg: EbbConfig,
) -> float:
    """Mean impact of past events starting within the hour window."""
    if date is None or not historical_events:
        return 0.0
    hour = date.hour
    window = cfg.impact.hour_window
    similar = [e for e in historical_events if abs(e.date.hour - hour) <= window]
    return _mean_impact(similar)


def duration_factor(
    duration: Optional[float],
    historical_events: Sequence[Event],
    cfg: EbbConfig,
) -> float:
    """Mean impact of past events with a duration inside the minute window."""
    if not duration or not historical_events:
        return 0.0
    window = cfg.impact.duration_window_minutes
    similar = [
        e for e in historical_events
        if e.duration is not None and abs(e.duration - duration) <= window
    ]
    return _mean_impact(similar)


def blend_factors(factors: Dict[str, float], cfg: EbbConfig) -> float:
    """Weighted sum: social 0.4, time of day 0.3, duration 0.3 by default."""
    w = cfg.impact
    return (
        factors["social_circle"] * w.social_circle
        + factors["time_of_day"] * w.time_of_day
        + factors["duration"] * w.duration
    )


# ---------------------------------------------------------------------------
# Recovery ladder
# ---------------------------------------------------------------------------

def determine_recovery_period(
    energy_impact: float,
    recovery: RecoveryTiers,
) -> Optional[RecoveryPattern]:
    """First tier whose threshold the impact reaches, most severe first."""
    for tier in recovery.tiers:
        if energy_impact <= tier.threshold:
            return tier
    return None


# ---------------------------------------------------------------------------
# Confidence
# ---------------------------------------------------------------------------

def prediction_confidence(
    historical_events: Sequence[Event],
    historical_check_ins: Sequence[CheckIn],
    cfg: EbbConfig,
) -> float:
    pc = cfg.prediction_confidence
    event_cov = min(len(historical_events) / pc.event_saturation, 1.0)
    check_in_cov = min(len(historical_check_ins) / pc.check_in_saturation, 1.0)
    return event_cov * pc.event_weight + check_in_cov * pc.check_in_weight


# ---------------------------------------------------------------------------
# Prediction notes
# ---------------------------------------------------------------------------

def prediction_recommendations(
    energy_impact: float,
    recovery_period: Optional[RecoveryPattern],
    cfg: EbbConfig,
) -> List[Recommendation]:
    recs: List[Recommendation] = []

    if recovery_period is not None:
        severe = recovery_period.threshold <= cfg.recovery.high_impact.threshold
        recs.append(Recommendation(
            type=RecommendationType.RECOVERY,
            description=f"Plan for {recovery_period.recovery_label} recovery period",
            priority=Priority.HIGH if severe else Priority.MEDIUM,
        ))

    if energy_impact < cfg.recovery.moderate_impact.threshold:
        recs.append(Recommendation(
            type=RecommendationType.ENERGY_MANAGEMENT,
            description=(
                "Consider scheduling this event when energy levels are typically higher"
            ),
            priority=Priority.MEDIUM,
        ))

    return recs
