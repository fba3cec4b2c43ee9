"""Core impulse scoring: scoring function, classifier, history and engine."""

from impulsesense.core.engine import ImpulseEngine, is_high_risk_hour
from impulsesense.core.history import HistoryBuffer
from impulsesense.core.levels import classify
from impulsesense.core.scoring import (
    InteractionKind,
    ScoringSignals,
    clamp_score,
    score_delta,
)
from impulsesense.core.session import ImpulseSession

__all__ = [
    "ImpulseEngine",
    "ImpulseSession",
    "HistoryBuffer",
    "InteractionKind",
    "ScoringSignals",
    "classify",
    "clamp_score",
    "is_high_risk_hour",
    "score_delta",
]
