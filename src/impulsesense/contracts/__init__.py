"""Contracts - pydantic models shared by the engine, gating and UI."""

from impulsesense.contracts.events import EngineEvent, EventKind
from impulsesense.contracts.state import (
    EventDetail,
    HistorySample,
    ImpulseState,
    InterventionEvent,
    InterventionLevel,
    ProductContext,
    TriggerInfo,
)

__all__ = [
    "EngineEvent",
    "EventKind",
    "EventDetail",
    "HistorySample",
    "ImpulseState",
    "InterventionEvent",
    "InterventionLevel",
    "ProductContext",
    "TriggerInfo",
]
