"""
ImpulseSense Configuration

Copy this file to config.py and adjust the values.
Any key left out falls back to its default.
"""

# =============================================================================
# Engine
# =============================================================================

TICK_INTERVAL = 1.0                   # Seconds between engine ticks
HISTORY_CAPACITY = 300                # Samples kept (5 minutes at 1 tick/s)
VIEW_WINDOW = 30                      # Samples shown in the history chart
INITIAL_SCORE = 0.1                   # Score a new session starts from
RANDOM_SEED = None                    # Set an int for reproducible noise

# =============================================================================
# Late-night window
# =============================================================================

HIGH_RISK_START_HOUR = 22             # Inclusive, wraps past midnight
HIGH_RISK_END_HOUR = 4

# =============================================================================
# Gating
# =============================================================================

ENABLE_CAMERA = True                  # Camera overlay on blocking interventions
ENABLE_VIBRATION = True               # Haptic pulses during breathing
UNLOCK_PHRASE = "I can wait"          # Micro-lock phrase (case-insensitive)
TOAST_DURATION = 5.0                  # Seconds the L1 notice stays visible
BREATHING_DURATION = 25               # Seconds of the L3 breathing routine

# =============================================================================
# Logging
# =============================================================================

LOG_LEVEL = "INFO"                    # DEBUG, INFO, WARNING, ERROR
