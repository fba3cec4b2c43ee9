"""Event definitions - everything the engine and gating layer report."""

from enum import Enum
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


class EventKind(str, Enum):
    """All event kinds in the system.

    Organized by lifecycle stage for clarity.
    """

    # ─────────────────────────────────────────────────────────────────────
    # Session
    # ─────────────────────────────────────────────────────────────────────
    SESSION_STARTED = "session_started"
    SESSION_ENDED = "session_ended"

    # ─────────────────────────────────────────────────────────────────────
    # Engine
    # ─────────────────────────────────────────────────────────────────────
    ENGINE_TICK = "engine_tick"
    INTERACTION_APPLIED = "interaction_applied"
    INTERACTION_IGNORED = "interaction_ignored"
    PRODUCT_VIEWED = "product_viewed"
    ESCALATION_DETECTED = "escalation_detected"
    SCORE_REDUCED = "score_reduced"

    # ─────────────────────────────────────────────────────────────────────
    # Interventions
    # ─────────────────────────────────────────────────────────────────────
    INTERVENTION_SHOWN = "intervention_shown"
    INTERVENTION_CLEARED = "intervention_cleared"
    INTERVENTION_ACKNOWLEDGED = "intervention_acknowledged"
    ROUTINE_STARTED = "routine_started"
    ROUTINE_CANCELLED = "routine_cancelled"

    # ─────────────────────────────────────────────────────────────────────
    # Error
    # ─────────────────────────────────────────────────────────────────────
    ERROR = "error"


class EngineEvent(BaseModel):
    """Immutable event envelope.

    Every event has:
    - session_id: Which session this belongs to
    - seq: Monotonically increasing within the session
    - ts_monotonic: time.monotonic() for duration calculations
    - ts_wall: Wall clock time for display
    - kind: Event type from EventKind enum
    - payload: Data specific to event kind
    """

    session_id: str = Field(description="Session identifier (UUID)")
    seq: int = Field(ge=0, description="Sequence number within session")
    ts_monotonic: float = Field(description="time.monotonic() timestamp")
    ts_wall: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Wall clock timestamp"
    )
    kind: EventKind = Field(description="Event type")
    payload: dict[str, Any] = Field(
        default_factory=dict,
        description="Event-specific data"
    )

    model_config = {"frozen": True}


# ─────────────────────────────────────────────────────────────────────────────
# Payload Type Hints (for documentation, not runtime enforcement)
# ─────────────────────────────────────────────────────────────────────────────

"""
Payload schemas by event kind:

ENGINE_TICK:
    tick: int
    score: float
    level: int
    frozen: bool

INTERACTION_APPLIED / INTERACTION_IGNORED:
    kind: str  # "view_product", "scroll", "click", "add_to_cart"
    score: float
    level: int

PRODUCT_VIEWED:
    product_id: int | str
    title: str
    brand: str

ESCALATION_DETECTED:
    id: str
    from_level: int
    level: int
    reason: str
    product_context: str

SCORE_REDUCED:
    amount: float
    score: float
    level: int

INTERVENTION_SHOWN / INTERVENTION_CLEARED:
    kind: str  # "reflection_notice", "grayscale", "breathing", "micro_lock", "safe_mode"
    level: int

INTERVENTION_ACKNOWLEDGED:
    kind: str  # "breathing", "micro_lock", "safe_mode"
    amount: float

ROUTINE_STARTED / ROUTINE_CANCELLED:
    duration: float
    elapsed: float

ERROR:
    source: str
    error: str
"""
