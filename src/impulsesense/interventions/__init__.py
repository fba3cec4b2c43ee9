"""
Intervention Gating

Turns intervention levels into what the UI must show, and user
acknowledgments into score reductions.

Provides:
- InterventionManager: Per-level gating state machine (L0-L5)
- BreathingRoutine: Cancellable guided breathing countdown for L3
- GatingSettings: Injected camera / vibration settings
"""

from impulsesense.interventions.breathing import BreathingPhase, BreathingRoutine
from impulsesense.interventions.manager import (
    ActiveIntervention,
    GatingSettings,
    InterventionKind,
    InterventionManager,
)

__all__ = [
    "ActiveIntervention",
    "BreathingPhase",
    "BreathingRoutine",
    "GatingSettings",
    "InterventionKind",
    "InterventionManager",
]
