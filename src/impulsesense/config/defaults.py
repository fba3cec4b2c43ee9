"""Default configuration values for ImpulseSense."""

from typing import Literal

# Engine
TICK_INTERVAL: float = 1.0
HISTORY_CAPACITY: int = 300
VIEW_WINDOW: int = 30
INITIAL_SCORE: float = 0.1
RANDOM_SEED: int | None = None

# Late-night high-risk window (inclusive hours, wraps past midnight)
HIGH_RISK_START_HOUR: int = 22
HIGH_RISK_END_HOUR: int = 4

# Gating
ENABLE_CAMERA: bool = True
ENABLE_VIBRATION: bool = True
UNLOCK_PHRASE: str = "I can wait"
TOAST_DURATION: float = 5.0
BREATHING_DURATION: int = 25

# Logging
LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

# All configurable keys (for validation)
CONFIG_KEYS = {
    "TICK_INTERVAL",
    "HISTORY_CAPACITY",
    "VIEW_WINDOW",
    "INITIAL_SCORE",
    "RANDOM_SEED",
    "HIGH_RISK_START_HOUR",
    "HIGH_RISK_END_HOUR",
    "ENABLE_CAMERA",
    "ENABLE_VIBRATION",
    "UNLOCK_PHRASE",
    "TOAST_DURATION",
    "BREATHING_DURATION",
    "LOG_LEVEL",
}
