"""State contracts - impulse snapshot, history samples, triggers."""

from enum import IntEnum

from pydantic import BaseModel, Field


class InterventionLevel(IntEnum):
    """Intervention levels from normal browsing to full lock."""

    L0_NORMAL = 0  # No gating
    L1_REFLECTION = 1  # Transient notice
    L2_GRAYSCALE = 2  # Visual degradation only
    L3_BREATHING = 3  # Guided breathing routine
    L4_MICRO_LOCK = 4  # Confirmation phrase required
    L5_SAFE_MODE = 5  # Full lock

    @property
    def display_name(self) -> str:
        """Short user-facing state name."""
        return _DISPLAY_NAMES[self]

    @property
    def event_label(self) -> str:
        """Label used on trigger detail cards (L5 folds into L4)."""
        return _EVENT_LABELS[self]


_DISPLAY_NAMES = {
    InterventionLevel.L0_NORMAL: "Calm",
    InterventionLevel.L1_REFLECTION: "Alert",
    InterventionLevel.L2_GRAYSCALE: "Distracted",
    InterventionLevel.L3_BREATHING: "Impulsive",
    InterventionLevel.L4_MICRO_LOCK: "High Risk",
    InterventionLevel.L5_SAFE_MODE: "Locked",
}

_EVENT_LABELS = {
    InterventionLevel.L0_NORMAL: "L0",
    InterventionLevel.L1_REFLECTION: "L1 (Mild)",
    InterventionLevel.L2_GRAYSCALE: "L2 (Moderate)",
    InterventionLevel.L3_BREATHING: "L3 (High Risk)",
    InterventionLevel.L4_MICRO_LOCK: "L4 (Extreme)",
    InterventionLevel.L5_SAFE_MODE: "L4 (Extreme)",
}


class ProductContext(BaseModel):
    """The product the user is currently looking at."""

    id: int | str
    title: str
    brand: str = ""

    model_config = {"frozen": True}


class ImpulseState(BaseModel):
    """Current impulse snapshot.

    Only the engine creates new snapshots; `level` always equals
    `classify(score)`.
    """

    score: float = Field(
        default=0.1,
        ge=0.0, le=1.0,
        description="[0, 1] calm → impulsive"
    )
    level: InterventionLevel = Field(
        default=InterventionLevel.L0_NORMAL,
        description="Discrete classification of score"
    )
    is_shopping: bool = Field(
        default=False,
        description="Catalog view is active"
    )
    session_high_risk: bool = Field(
        default=False,
        description="Session started between 22:00 and 04:59"
    )

    model_config = {"frozen": True}

    @property
    def excitement(self) -> float:
        """Score rescaled to [0, 10] for charts."""
        return self.score * 10


class TriggerInfo(BaseModel):
    """Why a history sample was marked as a trigger point."""

    level: InterventionLevel
    product_context: str = Field(description="Product title or 'Browsing'")
    reason: str
    display_time: str = Field(description="HH:MM of the sample")

    model_config = {"frozen": True}


class HistorySample(BaseModel):
    """One point of the excitement curve."""

    timestamp: int = Field(description="Epoch milliseconds")
    excitement: float = Field(ge=0.0, le=10.0)
    trigger: TriggerInfo | None = None

    model_config = {"frozen": True}


class InterventionEvent(BaseModel):
    """Escalation edge record for analytics."""

    id: str
    timestamp: str = Field(description="ISO-8601 wall clock time")
    level: InterventionLevel

    model_config = {"frozen": True}


class EventDetail(BaseModel):
    """Trigger selected for the event-detail display."""

    timestamp: int
    trigger: TriggerInfo
    level_label: str
    vibrate: bool = Field(description="Level is L4 or above")

    model_config = {"frozen": True}

    @classmethod
    def from_sample(cls, sample: HistorySample) -> "EventDetail":
        """Build a detail card from a triggered sample."""
        trigger = sample.trigger
        if trigger is None:
            raise ValueError("sample carries no trigger")
        return cls(
            timestamp=sample.timestamp,
            trigger=trigger,
            level_label=trigger.level.event_label,
            vibrate=trigger.level >= InterventionLevel.L4_MICRO_LOCK,
        )
