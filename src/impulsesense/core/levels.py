"""Level classifier - maps an impulse score to an intervention level.

L5 Safe mode:     score >= 0.85
L4 Micro lock:    0.70 <= score < 0.85
L3 Breathing:     0.60 <= score < 0.70
L2 Grayscale:     0.40 <= score < 0.60
L1 Reflection:    0.20 <= score < 0.40
L0 Normal:        score < 0.20
"""

from impulsesense.contracts.state import InterventionLevel

# Lower bounds, checked from the most severe level down
LEVEL_THRESHOLDS: tuple[tuple[float, InterventionLevel], ...] = (
    (0.85, InterventionLevel.L5_SAFE_MODE),
    (0.70, InterventionLevel.L4_MICRO_LOCK),
    (0.60, InterventionLevel.L3_BREATHING),
    (0.40, InterventionLevel.L2_GRAYSCALE),
    (0.20, InterventionLevel.L1_REFLECTION),
)


def classify(score: float) -> InterventionLevel:
    """Determine the intervention level for a score.

    Total over [0, 1]; each range is closed on its lower edge.
    """
    for threshold, level in LEVEL_THRESHOLDS:
        if score >= threshold:
            return level
    return InterventionLevel.L0_NORMAL


def level_range(level: InterventionLevel) -> tuple[float, float]:
    """Return the half-open score range [low, high) covered by a level.

    L5 reports an upper bound of 1.0 even though 1.0 itself belongs to it.
    """
    lower_bounds = {lvl: low for low, lvl in LEVEL_THRESHOLDS}
    lower_bounds[InterventionLevel.L0_NORMAL] = 0.0

    if level == InterventionLevel.L5_SAFE_MODE:
        return lower_bounds[level], 1.0
    return lower_bounds[level], lower_bounds[InterventionLevel(level + 1)]
