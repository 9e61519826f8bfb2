"""
Pattern detection and impact prediction.

Detectors are pure functions over check-in / event frames. PatternAnalyzer
wires them to the requested metrics and performs the one best-effort write
(pattern statistics) per analysis run.
"""

import logging
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import pandas as pd

from ebb import stats
from ebb.clock import Clock, utc_now
from ebb.config import EbbConfig, TimeOfDayBucket
from ebb.impact import (
    blend_factors,
    determine_recovery_period,
    duration_factor,
    prediction_confidence,
    prediction_recommendations,
    social_circle_factor,
    time_of_day_factor,
)
from ebb.models import (
    CheckIn,
    Event,
    Participant,
    Pattern,
    PatternStatistic,
    PatternType,
    Prediction,
    SocialCircle,
    parse_timestamp,
)
from ebb.store import HistoryStore

logger = logging.getLogger(__name__)


class Metric(str, Enum):
    ENERGY = "energy"
    SOCIAL_INTERACTION = "social_interaction"
    MOOD = "mood"


# ---------------------------------------------------------------------------
# Frames
# ---------------------------------------------------------------------------

CHECK_IN_COLUMNS = ["day", "hour", "energy_level", "mood_score"]


def mood_score(mood: Any, cfg: EbbConfig) -> Optional[float]:
    """Numeric moods pass through; labels go through cfg.mood_scores."""
    if mood is None or isinstance(mood, bool):
        return None
    if isinstance(mood, (int, float)):
        return float(mood)
    label = str(mood).strip().lower()
    if label in cfg.mood_scores:
        return cfg.mood_scores[label]
    try:
        return float(label)
    except ValueError:
        return None


def check_ins_frame(check_ins: Iterable[CheckIn], cfg: EbbConfig) -> pd.DataFrame:
    rows = [
        {
            "day": c.created_at.date(),
            "hour": c.created_at.hour,
            "energy_level": float(c.energy_level),
            "mood_score": mood_score(c.mood, cfg),
        }
        for c in check_ins
    ]
    return pd.DataFrame(rows, columns=CHECK_IN_COLUMNS)


def bucket_for_hour(hour: int, buckets: Sequence[TimeOfDayBucket]) -> Optional[str]:
    for bucket in buckets:
        if bucket.contains(hour):
            return bucket.name
    return None


# ---------------------------------------------------------------------------
# Energy detectors
# ---------------------------------------------------------------------------

def analyze_time_of_day_energy(df: pd.DataFrame, cfg: EbbConfig) -> Dict[str, Any]:
    """
    Average energy per time-of-day bucket.

    Check-ins are first averaged per (bucket, calendar day); a bucket's
    energy is the mean of those daily values, so a day with many
    check-ins weighs the same as a day with one.
    """
    if df.empty:
        return {"buckets": [], "days_observed": 0}

    df = df.assign(time_of_day=df["hour"].map(lambda h: bucket_for_hour(h, cfg.time_buckets)))
    df = df.dropna(subset=["time_of_day"])

    daily = df.groupby(["time_of_day", "day"])["energy_level"].mean()
    per_bucket = daily.groupby(level="time_of_day")
    bucket_energy = per_bucket.mean()
    bucket_days = per_bucket.size()
    samples = df.groupby("time_of_day").size()

    buckets = []
    for bucket in cfg.time_buckets:
        if bucket.name not in bucket_energy.index:
            continue
        buckets.append({
            "time_of_day": bucket.name,
            "energy_level": round(float(bucket_energy[bucket.name]), 3),
            "samples": int(samples[bucket.name]),
            "days": int(bucket_days[bucket.name]),
        })

    return {"buckets": buckets, "days_observed": int(df["day"].nunique())}


def analyze_event_impact(events: Sequence[Event], check_in_df: pd.DataFrame) -> Dict[str, Any]:
    """
    Observed impact per event type, plus how event impact tracks same-day energy.

    check_in_correlation is Pearson r between each event's energy_impact and
    the mean check-in energy of its calendar day; None with fewer than two pairs.
    """
    observed = [e for e in events if e.energy_impact is not None]
    if not observed:
        return {"by_event_type": [], "check_in_correlation": None}

    ev = pd.DataFrame([
        {"event_type": e.event_type, "day": e.date.date(), "energy_impact": float(e.energy_impact)}
        for e in observed
    ])

    grouped = ev.groupby("event_type")["energy_impact"].agg(["mean", "count"])
    by_type = [
        {
            "event_type": event_type,
            "average_impact": round(float(row["mean"]), 3),
            "occurrences": int(row["count"]),
        }
        for event_type, row in grouped.iterrows()
    ]

    correlation = None
    if not check_in_df.empty:
        day_energy = check_in_df.groupby("day")["energy_level"].mean().rename("day_energy")
        paired = ev.join(day_energy, on="day", how="inner")
        if len(paired) >= 2:
            correlation = round(
                stats.correlation(paired["energy_impact"], paired["day_energy"]), 4
            )

    return {"by_event_type": by_type, "check_in_correlation": correlation}


def average_bucket_energy(pattern: Pattern) -> Optional[float]:
    """Mean bucket energy of an energy_time_of_day pattern, else None."""
    if pattern.type is not PatternType.ENERGY_TIME_OF_DAY:
        return None
    buckets = pattern.payload.get("buckets") or []
    if not buckets:
        return None
    return round(stats.mean(b["energy_level"] for b in buckets), 3)


# ---------------------------------------------------------------------------
# Social detector
# ---------------------------------------------------------------------------

def analyze_social_circles(
    events: Sequence[Event],
    circle_names: Mapping[Any, str],
    cfg: EbbConfig,
) -> List[Pattern]:
    """One social_circle_impact pattern per circle with at least one event."""
    rows = [
        {"social_circle_id": circle_id, "energy_impact": float(e.energy_impact or 0.0)}
        for e in events
        for circle_id in e.circle_ids
    ]
    if not rows:
        return []

    sc = cfg.sample_confidence
    grouped = pd.DataFrame(rows).groupby("social_circle_id", sort=False)["energy_impact"]
    patterns = []
    for circle_id, impacts in grouped:
        patterns.append(Pattern(
            type=PatternType.SOCIAL_CIRCLE_IMPACT,
            payload={
                "social_circle_id": circle_id,
                "social_circle_name": circle_names.get(circle_id),
                "impact": round(stats.mean(impacts), 3),
                "event_count": int(len(impacts)),
            },
            confidence=stats.confidence_from_sample_size(
                len(impacts), sc.min_samples, sc.max_samples
            ),
        ))
    return patterns


# ---------------------------------------------------------------------------
# Mood detector
# ---------------------------------------------------------------------------

def analyze_mood_energy(df: pd.DataFrame, cfg: EbbConfig) -> Optional[Pattern]:
    """Mood/energy Pearson correlation. Needs two or more scored moods."""
    paired = df.dropna(subset=["mood_score"])
    if len(paired) < 2:
        return None

    sc = cfg.sample_confidence
    r = stats.correlation(paired["mood_score"].astype(float), paired["energy_level"])
    return Pattern(
        type=PatternType.MOOD_ENERGY_CORRELATION,
        payload={"correlation": round(r, 4), "samples": int(len(paired))},
        confidence=stats.confidence_from_sample_size(len(df), sc.min_samples, sc.max_samples),
    )


# ---------------------------------------------------------------------------
# Analyzer
# ---------------------------------------------------------------------------

class PatternAnalyzer:
    """
    Detects energy, social and mood patterns and predicts event impact.

    The store is optional; without one the statistics write is skipped.
    """

    def __init__(
        self,
        cfg: EbbConfig | None = None,
        store: HistoryStore | None = None,
        clock: Clock = utc_now,
    ):
        self.cfg = cfg or EbbConfig()
        self.store = store
        self.clock = clock
        self._detectors = {
            Metric.ENERGY: self._energy_patterns,
            Metric.SOCIAL_INTERACTION: self._social_patterns,
            Metric.MOOD: self._mood_patterns,
        }

    def analyze(
        self,
        check_ins: Sequence[CheckIn],
        events: Sequence[Event],
        metrics: Iterable[str],
        event_types: Optional[Iterable[str]] = None,
        social_circles: Sequence[SocialCircle] = (),
    ) -> List[Pattern]:
        """Run one detector per requested metric. Unknown metric names are skipped."""
        if event_types:
            wanted = set(event_types)
            events = [e for e in events if e.event_type in wanted]

        df = check_ins_frame(check_ins, self.cfg)
        circle_names = {c.id: c.name for c in social_circles}

        patterns: List[Pattern] = []
        seen = set()
        for name in metrics:
            try:
                metric = Metric(name)
            except ValueError:
                logger.debug("Skipping unknown metric %r", name)
                continue
            if metric in seen:
                continue
            seen.add(metric)
            patterns.extend(self._detectors[metric](df, check_ins, events, circle_names))

        self._store_pattern_statistics(patterns, _resolve_user_id(check_ins, events))
        return patterns

    def predict_impact(
        self,
        event_type: str,
        date: Any,
        duration: Optional[float],
        participants: Optional[Iterable[Any]],
        historical_events: Sequence[Event],
        historical_check_ins: Sequence[CheckIn],
    ) -> Prediction:
        """Weighted blend of social, time-of-day and duration factors."""
        cfg = self.cfg
        when = parse_timestamp(date)
        people = [
            p if isinstance(p, Participant) else Participant.from_dict(p)
            for p in (participants or ())
        ]

        factors = {
            "social_circle": social_circle_factor(people, historical_events),
            "time_of_day": time_of_day_factor(when, historical_events, cfg),
            "duration": duration_factor(duration, historical_events, cfg),
        }
        energy_impact = blend_factors(factors, cfg)
        recovery = determine_recovery_period(energy_impact, cfg.recovery)

        logger.debug(
            "Predicted %s impact %.3f from factors %s", event_type, energy_impact, factors
        )

        return Prediction(
            energy_impact=energy_impact,
            confidence_score=prediction_confidence(
                historical_events, historical_check_ins, cfg
            ),
            recovery_period=recovery.to_dict() if recovery else None,
            recommendations=prediction_recommendations(energy_impact, recovery, cfg),
        )

    # -- detectors ------------------------------------------------------------

    def _energy_patterns(self, df, check_ins, events, circle_names) -> List[Pattern]:
        sc = self.cfg.sample_confidence
        return [
            Pattern(
                type=PatternType.ENERGY_TIME_OF_DAY,
                payload=analyze_time_of_day_energy(df, self.cfg),
                confidence=stats.confidence_from_sample_size(
                    len(check_ins), sc.min_samples, sc.max_samples
                ),
            ),
            Pattern(
                type=PatternType.EVENT_ENERGY_IMPACT,
                payload=analyze_event_impact(events, df),
                confidence=stats.confidence_from_sample_size(
                    len(events), sc.min_samples, sc.max_samples
                ),
            ),
        ]

    def _social_patterns(self, df, check_ins, events, circle_names) -> List[Pattern]:
        return analyze_social_circles(events, circle_names, self.cfg)

    def _mood_patterns(self, df, check_ins, events, circle_names) -> List[Pattern]:
        pattern = analyze_mood_energy(df, self.cfg)
        return [pattern] if pattern is not None else []

    # -- side effect ----------------------------------------------------------

    def _store_pattern_statistics(self, patterns: Sequence[Pattern], user_id: Any) -> None:
        if self.store is None or user_id is None or not patterns:
            return

        timestamp = self.clock()
        records = [
            PatternStatistic(
                user_id=user_id,
                timestamp=timestamp,
                metrics=p.to_dict(),
                energy_level=average_bucket_energy(p),
            )
            for p in patterns
        ]
        try:
            self.store.save_pattern_statistics(records)
        except Exception:
            logger.warning(
                "Could not store pattern statistics for user %s", user_id, exc_info=True
            )


def _resolve_user_id(check_ins: Sequence[CheckIn], events: Sequence[Event]) -> Any:
    for record in list(check_ins[:1]) + list(events[:1]):
        if record.user_id is not None:
            return record.user_id
    return None
