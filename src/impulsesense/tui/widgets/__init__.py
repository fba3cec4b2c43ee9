"""TUI widgets."""

from .gating import InterventionPanel, TriggerDetail
from .history import HistoryChart
from .score import ScoreBar

__all__ = [
    "HistoryChart",
    "InterventionPanel",
    "ScoreBar",
    "TriggerDetail",
]
