"""Scoring function - behavioral signals to impulse score deltas."""

import math
import random
from dataclasses import dataclass
from enum import Enum


class InteractionKind(str, Enum):
    """Discrete interaction events fed in by the catalog UI."""

    VIEW_PRODUCT = "view_product"
    SCROLL = "scroll"
    CLICK = "click"
    ADD_TO_CART = "add_to_cart"


@dataclass(frozen=True)
class ScoringSignals:
    """Behavioral signals for one scoring step."""
    scroll_fast: bool = False
    click_rapid: bool = False
    intervention_active: bool = False


# Per-tick increments
SCROLL_FAST_DELTA = 0.005
CLICK_RAPID_DELTA = 0.02

# Passive decay (faster while an intervention is showing)
DECAY_INTERVENTION = 0.01
DECAY_NATURAL = 0.001

# Noise: applied on ~30% of steps, uniform in [-NOISE_AMPLITUDE, +NOISE_AMPLITUDE]
NOISE_PROBABILITY = 0.3
NOISE_AMPLITUDE = 0.005

# Discrete-event increments
EVENT_DELTAS: dict[InteractionKind, float] = {
    InteractionKind.VIEW_PRODUCT: 0.05,
    InteractionKind.ADD_TO_CART: 0.25,
    InteractionKind.SCROLL: 0.002,
    InteractionKind.CLICK: 0.05,
}

# Scores are rounded so that sums like 0.1 + 3 * 0.25 land exactly on thresholds
SCORE_PRECISION = 9


def clamp_score(value: float) -> float:
    """Clamp a score into [0, 1]. Non-finite input collapses to a bound."""
    if math.isnan(value):
        return 0.0
    return round(max(0.0, min(1.0, value)), SCORE_PRECISION)


def score_delta(
    current: float,
    signals: ScoringSignals,
    rng: random.Random | None = None,
) -> float:
    """Compute the score change for one engine tick.

    Args:
        current: Current score (unused by the deterministic terms)
        signals: Behavioral signals for this step
        rng: Random source for the noise term; seed it for reproducible runs

    Returns:
        Delta to add to the current score (not clamped)
    """
    rng = rng or random
    delta = deterministic_delta(signals)

    # Noise stands in for micro-expression / heart-rate fluctuation
    if rng.random() < NOISE_PROBABILITY:
        delta += rng.uniform(-NOISE_AMPLITUDE, NOISE_AMPLITUDE)

    return delta


def deterministic_delta(signals: ScoringSignals) -> float:
    """The noise-free part of `score_delta`."""
    delta = 0.0
    if signals.scroll_fast:
        delta += SCROLL_FAST_DELTA
    if signals.click_rapid:
        delta += CLICK_RAPID_DELTA
    if not signals.scroll_fast and not signals.click_rapid:
        delta -= DECAY_INTERVENTION if signals.intervention_active else DECAY_NATURAL
    return delta


def event_delta(kind: InteractionKind) -> float:
    """Score increment for a discrete interaction event."""
    return EVENT_DELTAS[kind]
