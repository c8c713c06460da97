"""Pattern recognition over historical drift logs."""

from aegis.learning.event_log import DriftLogReader, append_events
from aegis.learning.models import EventRecord, Insight, Pattern, PatternAnalysis, Prediction
from aegis.learning.pattern_store import PatternStore

__all__ = [
    "DriftLogReader",
    "EventRecord",
    "Insight",
    "Pattern",
    "PatternAnalysis",
    "PatternStore",
    "Prediction",
    "append_events",
]
