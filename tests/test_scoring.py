"""Tests for scoring function and level classifier."""

import math

import pytest

from impulsesense.contracts.state import InterventionLevel
from impulsesense.core.levels import LEVEL_THRESHOLDS, classify, level_range
from impulsesense.core.scoring import (
    InteractionKind,
    ScoringSignals,
    clamp_score,
    deterministic_delta,
    event_delta,
    score_delta,
)


class MockRng:
    """Random source with scripted draws."""

    def __init__(self, draw: float = 0.99, noise: float = 0.0):
        self.draw = draw
        self.noise = noise
        self.uniform_calls = []

    def random(self):
        return self.draw

    def uniform(self, a, b):
        self.uniform_calls.append((a, b))
        return self.noise


class TestClassify:
    @pytest.mark.parametrize(
        "score,level",
        [
            (0.0, InterventionLevel.L0_NORMAL),
            (0.19, InterventionLevel.L0_NORMAL),
            (0.199999, InterventionLevel.L0_NORMAL),
            (0.2, InterventionLevel.L1_REFLECTION),
            (0.39, InterventionLevel.L1_REFLECTION),
            (0.399999, InterventionLevel.L1_REFLECTION),
            (0.4, InterventionLevel.L2_GRAYSCALE),
            (0.59, InterventionLevel.L2_GRAYSCALE),
            (0.599999, InterventionLevel.L2_GRAYSCALE),
            (0.6, InterventionLevel.L3_BREATHING),
            (0.69, InterventionLevel.L3_BREATHING),
            (0.699999, InterventionLevel.L3_BREATHING),
            (0.7, InterventionLevel.L4_MICRO_LOCK),
            (0.84, InterventionLevel.L4_MICRO_LOCK),
            (0.849999, InterventionLevel.L4_MICRO_LOCK),
            (0.85, InterventionLevel.L5_SAFE_MODE),
            (1.0, InterventionLevel.L5_SAFE_MODE),
        ],
    )
    def test_boundaries(self, score, level):
        assert classify(score) == level

    def test_monotonic(self):
        levels = [classify(i / 100) for i in range(101)]
        assert levels == sorted(levels)

    def test_thresholds_descend(self):
        bounds = [threshold for threshold, _ in LEVEL_THRESHOLDS]
        assert bounds == sorted(bounds, reverse=True)

    def test_level_range(self):
        assert level_range(InterventionLevel.L0_NORMAL) == (0.0, 0.2)
        assert level_range(InterventionLevel.L3_BREATHING) == (0.6, 0.7)
        assert level_range(InterventionLevel.L5_SAFE_MODE) == (0.85, 1.0)


class TestClampScore:
    def test_within_range_unchanged(self):
        assert clamp_score(0.42) == 0.42

    def test_clamps_to_bounds(self):
        assert clamp_score(-0.3) == 0.0
        assert clamp_score(1.7) == 1.0
        assert clamp_score(math.inf) == 1.0

    def test_nan_collapses_to_zero(self):
        assert clamp_score(math.nan) == 0.0

    def test_threshold_sums_land_exactly(self):
        assert clamp_score(0.1 + 0.25 + 0.25 + 0.25) == 0.85
        assert classify(clamp_score(0.1 + 0.25 + 0.25)) == InterventionLevel.L3_BREATHING


class TestScoreDelta:
    def test_scroll_fast(self):
        signals = ScoringSignals(scroll_fast=True)
        assert deterministic_delta(signals) == pytest.approx(0.005)

    def test_click_rapid(self):
        signals = ScoringSignals(click_rapid=True)
        assert deterministic_delta(signals) == pytest.approx(0.02)

    def test_both_signals_add(self):
        signals = ScoringSignals(scroll_fast=True, click_rapid=True)
        assert deterministic_delta(signals) == pytest.approx(0.025)

    def test_natural_decay(self):
        assert deterministic_delta(ScoringSignals()) == pytest.approx(-0.001)

    def test_intervention_decay(self):
        signals = ScoringSignals(intervention_active=True)
        assert deterministic_delta(signals) == pytest.approx(-0.01)

    def test_no_decay_while_active(self):
        signals = ScoringSignals(scroll_fast=True, intervention_active=True)
        assert deterministic_delta(signals) == pytest.approx(0.005)

    def test_noise_skipped_above_probability(self):
        rng = MockRng(draw=0.5, noise=0.004)
        delta = score_delta(0.3, ScoringSignals(), rng)

        assert delta == pytest.approx(-0.001)
        assert rng.uniform_calls == []

    def test_noise_applied_below_probability(self):
        rng = MockRng(draw=0.1, noise=0.004)
        delta = score_delta(0.3, ScoringSignals(), rng)

        assert delta == pytest.approx(0.003)
        assert rng.uniform_calls == [(-0.005, 0.005)]

    def test_noise_bounded(self):
        import random

        rng = random.Random(42)
        for _ in range(500):
            delta = score_delta(0.5, ScoringSignals(scroll_fast=True), rng)
            assert 0.0 <= delta <= 0.01


class TestEventDelta:
    def test_event_deltas(self):
        assert event_delta(InteractionKind.VIEW_PRODUCT) == 0.05
        assert event_delta(InteractionKind.ADD_TO_CART) == 0.25
        assert event_delta(InteractionKind.SCROLL) == 0.002
        assert event_delta(InteractionKind.CLICK) == 0.05
