"""
EBB — Deterministic Energy Pattern Engine

Analyzes logged check-ins and events and produces behavioral patterns,
threshold-triggered insights and bounded, prioritized recommendations.

Architecture:
    config          — Thresholds, weights, recovery ladder (single source of truth)
    stats           — mean, dispersion, Pearson correlation, sample confidence
    models          — Input and output records
    impact          — Impact factor scoring for a candidate event
    patterns        — Pattern detectors + PatternAnalyzer (analyze, predict_impact)
    insights        — Category detectors + InsightGenerator
    recommendations — Signal expansion, rules, RecommendationEngine
    store           — HistoryStore protocol (external reads / best-effort write)
    pipeline        — Orchestration: load → patterns → insights → recommendations → report

Public API:
    analyze(filepath)        → CLI mode
    build_report(...)        → backend mode
    generate_report(result)  → formatted report
"""

from ebb.config import EbbConfig
from ebb.insights import InsightGenerator, prioritize_insights
from ebb.patterns import PatternAnalyzer
from ebb.pipeline import analyze, build_report, generate_report, predict_event_impact
from ebb.recommendations import RecommendationEngine
from ebb.store import HistoryStore, InMemoryHistoryStore

__version__ = "1.0.0"

__all__ = [
    "EbbConfig",
    "PatternAnalyzer",
    "InsightGenerator",
    "RecommendationEngine",
    "HistoryStore",
    "InMemoryHistoryStore",
    "prioritize_insights",
    "analyze",
    "build_report",
    "generate_report",
    "predict_event_impact",
]
