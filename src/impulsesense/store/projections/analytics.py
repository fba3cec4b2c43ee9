"""InterventionAnalyticsProjection - escalation and acknowledgment metrics."""

from dataclasses import dataclass, field
from typing import Any

from impulsesense.contracts.events import EngineEvent, EventKind
from impulsesense.contracts.state import InterventionLevel
from impulsesense.store.projections.base import Projection

# Insights buckets; safe mode is reported together with micro lock
ANALYTICS_BUCKETS = {
    InterventionLevel.L1_REFLECTION: "L1 Mild",
    InterventionLevel.L2_GRAYSCALE: "L2 Moderate",
    InterventionLevel.L3_BREATHING: "L3 High",
    InterventionLevel.L4_MICRO_LOCK: "L4 Extreme",
    InterventionLevel.L5_SAFE_MODE: "L4 Extreme",
}


@dataclass
class InterventionAnalyticsProjection(Projection):
    """Tracks how often and how high the session escalated.

    Feeds the insights view: level distribution, per-day counts and how
    interventions were resolved.
    """

    escalations_by_level: dict[int, int] = field(default_factory=dict)
    escalations_by_day: dict[str, int] = field(default_factory=dict)
    acknowledgments: dict[str, int] = field(default_factory=dict)
    total_reduction: float = 0.0
    routines_cancelled: int = 0
    peak_level: int = 0

    KINDS = frozenset({
        EventKind.ESCALATION_DETECTED,
        EventKind.INTERVENTION_ACKNOWLEDGED,
        EventKind.ROUTINE_CANCELLED,
    })

    def reset(self) -> None:
        """Reset to initial state."""
        self.escalations_by_level.clear()
        self.escalations_by_day.clear()
        self.acknowledgments.clear()
        self.total_reduction = 0.0
        self.routines_cancelled = 0
        self.peak_level = 0

    def apply(self, event: EngineEvent) -> None:
        """Apply event to update analytics."""
        match event.kind:
            case EventKind.ESCALATION_DETECTED:
                level = int(event.payload.get("level", 0))
                self.escalations_by_level[level] = self.escalations_by_level.get(level, 0) + 1

                day = event.ts_wall.date().isoformat()
                self.escalations_by_day[day] = self.escalations_by_day.get(day, 0) + 1

                self.peak_level = max(self.peak_level, level)

            case EventKind.INTERVENTION_ACKNOWLEDGED:
                kind = event.payload.get("kind", "unknown")
                self.acknowledgments[kind] = self.acknowledgments.get(kind, 0) + 1
                self.total_reduction += float(event.payload.get("amount", 0.0))

            case EventKind.ROUTINE_CANCELLED:
                self.routines_cancelled += 1

    def level_distribution(self) -> dict[str, int]:
        """Escalation counts grouped into the insights buckets."""
        distribution = {label: 0 for label in dict.fromkeys(ANALYTICS_BUCKETS.values())}
        for level, count in self.escalations_by_level.items():
            label = ANALYTICS_BUCKETS.get(InterventionLevel(level))
            if label:
                distribution[label] += count
        return distribution

    def get_summary(self) -> dict[str, Any]:
        """Get analytics summary."""
        return {
            "escalations": sum(self.escalations_by_level.values()),
            "peak_level": InterventionLevel(self.peak_level).name,
            "distribution": self.level_distribution(),
            "acknowledgments": dict(self.acknowledgments),
            "total_reduction": round(self.total_reduction, 3),
            "routines_cancelled": self.routines_cancelled,
        }
