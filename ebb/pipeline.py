"""
Pipeline orchestration: load → patterns → insights → recommendations → report.

This is the only module with file I/O (JSON loading, report formatting).
All analytical logic is delegated to patterns, insights, recommendations.

Entry points:
    analyze(filepath)        → CLI mode
    build_report(...)        → backend mode, records already fetched
    predict_event_impact(...) → prediction over stored history
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Sequence, Union

from ebb.clock import Clock, utc_now
from ebb.config import EbbConfig
from ebb.insights import InsightCategory, InsightGenerator
from ebb.models import CheckIn, Event, Prediction, SocialCircle
from ebb.patterns import Metric, PatternAnalyzer
from ebb.recommendations import RecommendationEngine
from ebb.store import HistoryStore, InMemoryHistoryStore

logger = logging.getLogger(__name__)

SECTIONS = ("patterns", "insights", "recommendations")
DEFAULT_METRICS = tuple(m.value for m in Metric)
DEFAULT_CATEGORIES = tuple(c.value for c in InsightCategory)
DEFAULT_TIMEFRAME_DAYS = 30


# ---------------------------------------------------------------------------
# Data loading (CLI mode only)
# ---------------------------------------------------------------------------

def parse_records(data: Dict[str, Any]) -> Dict[str, List]:
    """
    Build typed records from a {"check_ins", "events", "social_circles"} document.

    "energy_scale": "signed" marks check-in energy on the legacy -5..5 scale.
    """
    if not isinstance(data, dict):
        raise ValueError("Expected a JSON object with check_ins/events/social_circles")

    signed = data.get("energy_scale") == "signed"
    return {
        "check_ins": [CheckIn.from_dict(c, signed_scale=signed) for c in data.get("check_ins", [])],
        "events": [Event.from_dict(e) for e in data.get("events", [])],
        "social_circles": [SocialCircle.from_dict(s) for s in data.get("social_circles", [])],
    }


def load_data(filepath: Union[str, Path]) -> Dict[str, List]:
    """Load and validate tracking records from a JSON file."""
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")

    with open(path, "r") as f:
        data = json.load(f)

    if not data:
        raise ValueError("Data file is empty")

    records = parse_records(data)
    if not records["check_ins"] and not records["events"]:
        raise ValueError("Data file has no check-ins or events")
    return records


# ---------------------------------------------------------------------------
# Report building (records already fetched)
# ---------------------------------------------------------------------------

def build_report(
    check_ins: Sequence[CheckIn],
    events: Sequence[Event],
    social_circles: Sequence[SocialCircle],
    user_id: Any,
    store: HistoryStore,
    cfg: EbbConfig | None = None,
    sections: Iterable[str] = SECTIONS,
    timeframe: int = DEFAULT_TIMEFRAME_DAYS,
    clock: Clock = utc_now,
) -> Dict[str, List[Dict[str, Any]]]:
    """
    Merge the requested sections into one JSON-ready report.

    Recommendations are derived from the patterns and insights of the same
    run; when those sections are not requested they are computed anyway
    but left out of the result.
    """
    if cfg is None:
        cfg = EbbConfig()

    wanted = set(sections)
    unknown = wanted - set(SECTIONS)
    if unknown:
        raise ValueError(f"Unknown report sections: {sorted(unknown)}")

    analyzer = PatternAnalyzer(cfg=cfg, store=store, clock=clock)
    generator = InsightGenerator(cfg=cfg, clock=clock)
    engine = RecommendationEngine(store=store, cfg=cfg)

    report: Dict[str, List[Dict[str, Any]]] = {}
    patterns = insights = None

    if wanted & {"patterns", "recommendations"}:
        patterns = analyzer.analyze(
            list(check_ins), list(events), DEFAULT_METRICS, social_circles=list(social_circles)
        )
    if wanted & {"insights", "recommendations"}:
        insights = generator.generate(
            list(check_ins), list(events), list(social_circles),
            list(DEFAULT_CATEGORIES), timeframe=timeframe,
        )

    if "patterns" in wanted:
        report["patterns"] = [p.to_dict() for p in patterns]
    if "insights" in wanted:
        report["insights"] = [i.to_dict() for i in insights]
    if "recommendations" in wanted:
        recs = engine.generate_recommendations(patterns, insights, user_id)
        report["recommendations"] = [r.to_dict() for r in recs]

    logger.info(
        "Built report for user %s: %s",
        user_id, {name: len(rows) for name, rows in report.items()},
    )
    return report


def predict_event_impact(
    store: HistoryStore,
    user_id: Any,
    event_type: str,
    date: Any,
    duration: float | None,
    participants: Sequence[Any] | None,
    cfg: EbbConfig | None = None,
) -> Prediction:
    """Fetch same-type event history and recent check-ins, then predict."""
    if cfg is None:
        cfg = EbbConfig()

    h = cfg.history
    historical_events = store.recent_events(user_id, h.prediction_events, event_type=event_type)
    historical_check_ins = store.recent_check_ins(user_id, h.prediction_check_ins)

    return PatternAnalyzer(cfg=cfg).predict_impact(
        event_type=event_type,
        date=date,
        duration=duration,
        participants=participants,
        historical_events=historical_events,
        historical_check_ins=historical_check_ins,
    )


# ---------------------------------------------------------------------------
# Public CLI entry point
# ---------------------------------------------------------------------------

def analyze(
    filepath: Union[str, Path],
    user_id: Any = None,
    cfg: EbbConfig | None = None,
) -> Dict[str, List[Dict[str, Any]]]:
    """
    CLI-compatible entry point.
    Reads a JSON file, backs an in-memory store with it and builds the report.
    """
    records = load_data(filepath)

    if user_id is None:
        first = (records["check_ins"] or records["events"])[0]
        user_id = first.user_id

    store = InMemoryHistoryStore(records["events"], records["check_ins"])
    return build_report(
        records["check_ins"],
        records["events"],
        records["social_circles"],
        user_id=user_id,
        store=store,
        cfg=cfg,
    )


# ---------------------------------------------------------------------------
# Report generation
# ---------------------------------------------------------------------------

def _describe_pattern(pattern: Dict[str, Any]) -> str:
    kind = pattern["type"]
    payload = pattern["payload"]

    if kind == "energy_time_of_day":
        parts = [f"{b['time_of_day']} {b['energy_level']}" for b in payload["buckets"]]
        return ", ".join(parts) or "no check-ins"
    if kind == "event_energy_impact":
        parts = [f"{r['event_type']} {r['average_impact']:+}" for r in payload["by_event_type"]]
        return ", ".join(parts) or "no observed impacts"
    if kind == "social_circle_impact":
        name = payload.get("social_circle_name") or payload["social_circle_id"]
        return f"{name} {payload['impact']:+} over {payload['event_count']} events"
    if kind == "mood_energy_correlation":
        return f"r = {payload['correlation']}"
    return str(payload)


def generate_report(result: Dict[str, List[Dict[str, Any]]]) -> str:
    """Format a built report as human-readable text."""
    lines = [
        "EBB ENERGY REPORT",
        "=" * 58,
    ]

    if "patterns" in result:
        lines.append("")
        lines.append("  Patterns:")
        for p in result["patterns"]:
            label = p["type"].replace("_", " ").title()
            lines.append(
                f"    {label:26s} : {_describe_pattern(p)}  (confidence {p['confidence']})"
            )

    if "insights" in result:
        lines.append("")
        lines.append("  Insights:")
        if not result["insights"]:
            lines.append("    - none")
        for i in result["insights"]:
            lines.append(f"    [P{i['priority']}] {i['title']} ({i['confidence']})")

    if "recommendations" in result:
        lines.append("")
        lines.append("  Recommendations:")
        if not result["recommendations"]:
            lines.append("    - none")
        for r in result["recommendations"]:
            lines.append(f"    ({r['priority']:6s}) {r['description']}")

    lines.append("")
    lines.append("=" * 58)
    return "\n".join(lines)
