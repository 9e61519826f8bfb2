"""
Recommendation engine: patterns + insights + recent history -> at most
max_recommendations prioritized suggestions.

Rules consume three signal pattern types (social_impact, time_preference,
energy_impact). Analyzer patterns are expanded into signals first, so the
engine can be fed PatternAnalyzer.analyze() output directly.
"""

import logging
from typing import Any, Iterable, List, Mapping, Sequence, Union

import pandas as pd

from ebb.config import EbbConfig
from ebb.impact import determine_recovery_period
from ebb.models import (
    CheckIn,
    Event,
    Insight,
    Pattern,
    PatternType,
    Priority,
    Recommendation,
    RecommendationType,
)
from ebb.store import HistoryStore

logger = logging.getLogger(__name__)

PatternLike = Union[Pattern, Mapping[str, Any]]

_SIGNAL_TYPES = {
    PatternType.SOCIAL_IMPACT,
    PatternType.TIME_PREFERENCE,
    PatternType.ENERGY_IMPACT,
}


# ---------------------------------------------------------------------------
# Signal expansion
# ---------------------------------------------------------------------------

def _coerce(pattern: PatternLike) -> Pattern | None:
    if isinstance(pattern, Pattern):
        return pattern
    try:
        return Pattern.from_dict(pattern)
    except (KeyError, ValueError):
        logger.debug("Ignoring unrecognized pattern %r", pattern)
        return None


def expand_signals(patterns: Iterable[PatternLike]) -> List[Pattern]:
    """Signal patterns pass through; analyzer patterns are translated."""
    signals: List[Pattern] = []
    for raw in patterns or ():
        p = _coerce(raw)
        if p is None:
            continue

        if p.type in _SIGNAL_TYPES:
            signals.append(p)

        elif p.type is PatternType.SOCIAL_CIRCLE_IMPACT:
            signals.append(Pattern(
                type=PatternType.SOCIAL_IMPACT,
                payload={
                    "value": p.payload.get("impact", 0.0),
                    "social_circle_id": p.payload.get("social_circle_id"),
                    "social_circle_name": (
                        p.payload.get("social_circle_name")
                        or p.payload.get("social_circle_id")
                    ),
                },
                confidence=p.confidence,
            ))

        elif p.type is PatternType.ENERGY_TIME_OF_DAY:
            for bucket in p.payload.get("buckets", ()):
                signals.append(Pattern(
                    type=PatternType.TIME_PREFERENCE,
                    payload={"value": bucket["energy_level"], "time_of_day": bucket["time_of_day"]},
                    confidence=p.confidence,
                ))

        elif p.type is PatternType.EVENT_ENERGY_IMPACT:
            for row in p.payload.get("by_event_type", ()):
                signals.append(Pattern(
                    type=PatternType.ENERGY_IMPACT,
                    payload={"value": row["average_impact"], "event_type": row["event_type"]},
                    confidence=p.confidence,
                ))

    return signals


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

def social_recommendations(signals: Sequence[Pattern], cfg: EbbConfig) -> List[Recommendation]:
    rp = cfg.recommendations
    recs = []
    for s in signals:
        if s.type is not PatternType.SOCIAL_IMPACT or s.value is None:
            continue
        name = s.payload.get("social_circle_name") or "this group"
        if s.value > rp.social_boost:
            recs.append(Recommendation(
                type=RecommendationType.SOCIAL,
                description=(
                    f"Consider scheduling more events with {name}. "
                    "These interactions appear to boost your energy levels."
                ),
                priority=Priority.HIGH,
            ))
        elif s.value < rp.social_drain:
            recs.append(Recommendation(
                type=RecommendationType.SOCIAL,
                description=(
                    f"Consider shorter or less frequent interactions with {name} "
                    "to better manage your energy levels."
                ),
                priority=Priority.MEDIUM,
            ))
    return recs


def timing_recommendations(signals: Sequence[Pattern], cfg: EbbConfig) -> List[Recommendation]:
    """At most one: the highest-value confident time_preference."""
    candidates = [
        s for s in signals
        if s.type is PatternType.TIME_PREFERENCE
        and s.confidence > cfg.recommendations.timing_min_confidence
        and s.value is not None
    ]
    if not candidates:
        return []

    best = max(candidates, key=lambda s: s.value)
    return [Recommendation(
        type=RecommendationType.TIMING,
        description=(
            f"Your energy levels tend to be highest during {best.payload.get('time_of_day')}. "
            "Consider scheduling important activities during this time."
        ),
        priority=Priority.HIGH,
    )]


def recovery_recommendations(signals: Sequence[Pattern], cfg: EbbConfig) -> List[Recommendation]:
    high = cfg.recovery.high_impact
    recs = []
    for s in signals:
        if s.type is not PatternType.ENERGY_IMPACT or s.value is None:
            continue
        tier = determine_recovery_period(s.value, cfg.recovery)
        if tier is None:
            continue
        if tier is high:
            recs.append(Recommendation(
                type=RecommendationType.RECOVERY,
                description=(
                    f"After high-impact activities, schedule at least "
                    f"{tier.recovery_label} for recovery."
                ),
                priority=Priority.HIGH,
            ))
        else:
            recs.append(Recommendation(
                type=RecommendationType.RECOVERY,
                description=(
                    f"Consider taking {tier.recovery_label} between "
                    "moderately demanding activities."
                ),
                priority=Priority.MEDIUM,
            ))
    return recs


def balance_recommendations(recent_events: Sequence[Event], cfg: EbbConfig) -> List[Recommendation]:
    """One 'diversify' note per event type above the configured share."""
    if not recent_events:
        return []

    shares = pd.Series([e.event_type for e in recent_events]).value_counts(
        normalize=True, sort=False
    )
    return [
        Recommendation(
            type=RecommendationType.BALANCE,
            description=(
                f"Your schedule shows a high concentration of {event_type} activities. "
                "Consider diversifying your activities for better energy management."
            ),
            priority=Priority.MEDIUM,
        )
        for event_type, share in shares.items()
        if share > cfg.recommendations.balance_share
    ]


def prioritize_recommendations(
    recommendations: Iterable[Recommendation],
    limit: int,
) -> List[Recommendation]:
    """Stable sort by priority rank, then cap at `limit`."""
    return sorted(recommendations, key=lambda r: r.priority.rank)[:limit]


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class RecommendationEngine:
    def __init__(self, store: HistoryStore, cfg: EbbConfig | None = None):
        self.store = store
        self.cfg = cfg or EbbConfig()

    def generate_recommendations(
        self,
        patterns: Iterable[PatternLike],
        insights: Sequence[Insight] | None,
        user_id: Any,
    ) -> List[Recommendation]:
        """
        Fetch recent history, run the four rule groups and return at most
        max_recommendations items, high priority first.

        Store failures propagate unchanged.
        """
        rp = self.cfg.recommendations
        recent_events: Sequence[Event] = self.store.recent_events(user_id, rp.history_limit)
        recent_check_ins: Sequence[CheckIn] = self.store.recent_check_ins(
            user_id, rp.history_limit
        )

        signals = expand_signals(patterns)

        candidates: List[Recommendation] = []
        candidates.extend(social_recommendations(signals, self.cfg))
        candidates.extend(timing_recommendations(signals, self.cfg))
        candidates.extend(recovery_recommendations(signals, self.cfg))
        candidates.extend(balance_recommendations(recent_events, self.cfg))

        logger.debug(
            "User %s: %d candidate recommendations from %d signals, %d events, %d check-ins",
            user_id, len(candidates), len(signals), len(recent_events), len(recent_check_ins),
        )
        return prioritize_recommendations(candidates, rp.max_recommendations)
