"""
TUI Color Theme

Calm-to-alarm palette keyed by intervention level.
"""

from impulsesense.contracts.state import InterventionLevel

# Level colors, calm green through to lock red
LEVEL_COLORS = {
    InterventionLevel.L0_NORMAL: "#7ED321",
    InterventionLevel.L1_REFLECTION: "#B8E986",
    InterventionLevel.L2_GRAYSCALE: "#F8E71C",
    InterventionLevel.L3_BREATHING: "#F5A623",
    InterventionLevel.L4_MICRO_LOCK: "#FF6B6B",
    InterventionLevel.L5_SAFE_MODE: "#FF4757",
}

COLOR_MUTED = "#6B7280"  # Gray - muted/inactive
COLOR_TRIGGER = "#BD10E0"  # Magenta - trigger markers

# Bar visualization characters
BAR_FILLED = "█"
BAR_EMPTY = "░"

# Sparkline blocks, lowest to highest
SPARK_BLOCKS = " ▁▂▃▄▅▆▇█"


def make_bar(value: float, width: int = 10, min_val: float = 0.0, max_val: float = 1.0) -> str:
    """Create a text-based bar visualization."""
    normalized = (value - min_val) / (max_val - min_val) if max_val > min_val else 0
    normalized = max(0, min(1, normalized))
    filled = int(normalized * width)
    return BAR_FILLED * filled + BAR_EMPTY * (width - filled)


def sparkline(values: list[float], max_val: float = 10.0) -> str:
    """One block character per value, scaled against `max_val`."""
    top = len(SPARK_BLOCKS) - 1
    chars = []
    for value in values:
        normalized = max(0.0, min(1.0, value / max_val)) if max_val > 0 else 0.0
        chars.append(SPARK_BLOCKS[round(normalized * top)])
    return "".join(chars)


def level_color(level: InterventionLevel) -> str:
    return LEVEL_COLORS.get(level, COLOR_MUTED)
