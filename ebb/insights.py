"""
Threshold-triggered insights over check-ins, events and social circles.

Detectors are keyed by InsightCategory; unknown category names are a
no-op. Wording, priority and confidence of every insight are declared in
INSIGHT_TEMPLATES, thresholds in config.InsightThresholds.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from ebb import stats
from ebb.clock import Clock, utc_now
from ebb.config import EbbConfig
from ebb.errors import InsightGenerationError, InvalidInputError
from ebb.models import CheckIn, Event, Insight, SocialCircle

logger = logging.getLogger(__name__)


class InsightCategory(str, Enum):
    ENERGY = "energy"
    SOCIAL = "social"
    ACTIVITIES = "activities"


# ---------------------------------------------------------------------------
# Insight templates (declarative)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class InsightTemplate:
    key: str
    category: InsightCategory
    title: str
    description: str
    priority: int
    confidence: float
    recommendations: Tuple[str, ...]

    def build(self, now: datetime) -> Insight:
        return Insight(
            id=f"{self.key}_{int(now.timestamp() * 1000)}",
            title=self.title,
            description=self.description,
            priority=self.priority,
            recommendations=list(self.recommendations),
            confidence=self.confidence,
            category=self.category.value,
            timestamp=now,
        )


ENERGY_FLUCTUATION = InsightTemplate(
    key="energy_variance",
    category=InsightCategory.ENERGY,
    title="Energy Level Fluctuation Detected",
    description="Your energy levels show significant variation",
    priority=1,
    confidence=0.8,
    recommendations=(
        "Consider maintaining a more consistent daily routine",
        "Track activities that might be causing energy spikes or drops",
        "Focus on stabilizing sleep patterns",
    ),
)

LOW_ENERGY = InsightTemplate(
    key="low_energy",
    category=InsightCategory.ENERGY,
    title="Low Energy Pattern Detected",
    description="Your average energy levels are lower than optimal",
    priority=1,
    confidence=0.85,
    recommendations=(
        "Schedule more recovery time between activities",
        "Review your sleep habits",
        "Consider reducing high-impact activities temporarily",
    ),
)

SOCIAL_ISOLATION = InsightTemplate(
    key="social_isolation",
    category=InsightCategory.SOCIAL,
    title="Limited Social Interaction Detected",
    description="Your social engagement has been lower than usual",
    priority=2,
    confidence=0.75,
    recommendations=(
        "Consider scheduling more group activities",
        "Reach out to friends or family members",
        "Join social events within your comfort zone",
    ),
)

SOCIAL_DIVERSITY = InsightTemplate(
    key="social_diversity",
    category=InsightCategory.SOCIAL,
    title="Social Circle Engagement Opportunity",
    description="Some of your social circles have been less active",
    priority=3,
    confidence=0.7,
    recommendations=(
        "Consider reconnecting with less active social circles",
        "Plan activities that involve different groups",
        "Balance time across your social networks",
    ),
)

LIMITED_VARIETY = InsightTemplate(
    key="activity_variety",
    category=InsightCategory.ACTIVITIES,
    title="Limited Activity Variety Detected",
    description="Your activities have been less diverse than optimal",
    priority=2,
    confidence=0.8,
    recommendations=(
        "Try incorporating new types of activities",
        "Balance different categories of events",
        "Explore activities that align with your interests",
    ),
)

HIGH_INTENSITY = InsightTemplate(
    key="high_intensity",
    category=InsightCategory.ACTIVITIES,
    title="High Intensity Activity Pattern",
    description="Your schedule shows a high proportion of intense activities",
    priority=2,
    confidence=0.85,
    recommendations=(
        "Consider incorporating more low-intensity activities",
        "Balance high-intensity activities with recovery periods",
        "Monitor energy levels during intense periods",
    ),
)

INSIGHT_TEMPLATES: tuple = (
    ENERGY_FLUCTUATION,
    LOW_ENERGY,
    SOCIAL_ISOLATION,
    SOCIAL_DIVERSITY,
    LIMITED_VARIETY,
    HIGH_INTENSITY,
)


# ---------------------------------------------------------------------------
# Category detectors
# ---------------------------------------------------------------------------

def detect_energy_insights(
    check_ins: Sequence[CheckIn],
    events: Sequence[Event],
    social_circles: Sequence[SocialCircle],
    cfg: EbbConfig,
    now: datetime,
) -> List[Insight]:
    """Fluctuation (dispersion > 2) and low average (< 3). Both may fire."""
    if not check_ins:
        return []

    t = cfg.insights
    levels = [c.energy_level for c in check_ins]
    insights = []

    if stats.variance(levels) > t.energy_dispersion:
        insights.append(ENERGY_FLUCTUATION.build(now))
    if stats.mean(levels) < t.low_energy_average:
        insights.append(LOW_ENERGY.build(now))

    return insights


def detect_social_insights(
    check_ins: Sequence[CheckIn],
    events: Sequence[Event],
    social_circles: Sequence[SocialCircle],
    cfg: EbbConfig,
    now: datetime,
) -> List[Insight]:
    if not events or not social_circles:
        return []

    t = cfg.insights
    insights = []

    social_events = [e for e in events if e.participants]
    social_ratio = len(social_events) / len(events)
    if social_ratio < t.social_ratio and len(events) > t.min_events:
        insights.append(SOCIAL_ISOLATION.build(now))

    active_circles = {
        p.social_circle_id
        for e in social_events
        for p in e.participants
        if p.social_circle_id is not None
    }
    if len(active_circles) < len(social_circles) * t.circle_coverage:
        insights.append(SOCIAL_DIVERSITY.build(now))

    return insights


def detect_activity_insights(
    check_ins: Sequence[CheckIn],
    events: Sequence[Event],
    social_circles: Sequence[SocialCircle],
    cfg: EbbConfig,
    now: datetime,
) -> List[Insight]:
    if not events:
        return []

    t = cfg.insights
    insights = []

    distinct_types = {e.event_type for e in events}
    if len(distinct_types) < t.min_event_types and len(events) > t.min_events:
        insights.append(LIMITED_VARIETY.build(now))

    high_share = sum(1 for e in events if e.intensity == "high") / len(events)
    if high_share > t.high_intensity_share:
        insights.append(HIGH_INTENSITY.build(now))

    return insights


DETECTORS = {
    InsightCategory.ENERGY: detect_energy_insights,
    InsightCategory.SOCIAL: detect_social_insights,
    InsightCategory.ACTIVITIES: detect_activity_insights,
}


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------

def prioritize_insights(insights: Iterable[Insight]) -> List[Insight]:
    """Priority ascending, then confidence descending, then newest first. Stable."""
    return sorted(
        insights,
        key=lambda i: (i.priority, -i.confidence, -i.timestamp.timestamp()),
    )


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------

def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


class InsightGenerator:
    def __init__(self, cfg: EbbConfig | None = None, clock: Clock = utc_now):
        self.cfg = cfg or EbbConfig()
        self.clock = clock

    def generate(
        self,
        check_ins: Sequence[CheckIn],
        events: Sequence[Event],
        social_circles: Sequence[SocialCircle],
        categories: Sequence[str],
        timeframe: Optional[int] = None,
    ) -> List[Insight]:
        """
        Run the detector of each requested category and return the
        prioritized insights.

        Raises:
            InvalidInputError: one of the four collections is not a list/tuple.
            InsightGenerationError: a detector failed; nothing partial is returned.
        """
        collections = {
            "check_ins": check_ins,
            "events": events,
            "social_circles": social_circles,
            "categories": categories,
        }
        bad = [name for name, value in collections.items() if not _is_sequence(value)]
        if bad:
            raise InvalidInputError(f"Expected sequences for: {', '.join(bad)}")

        now = self.clock()
        insights: List[Insight] = []
        try:
            for name in categories:
                try:
                    category = InsightCategory(name)
                except ValueError:
                    logger.debug("Skipping unknown insight category %r", name)
                    continue
                insights.extend(
                    DETECTORS[category](check_ins, events, social_circles, self.cfg, now)
                )
        except Exception as exc:
            logger.exception("Insight detectors failed (timeframe=%s)", timeframe)
            raise InsightGenerationError() from exc

        return prioritize_insights(insights)
