"""Tests for contracts module."""

import pytest

from impulsesense.contracts import (
    EngineEvent,
    EventDetail,
    EventKind,
    HistorySample,
    ImpulseState,
    InterventionLevel,
    ProductContext,
    TriggerInfo,
)


def make_trigger(level: InterventionLevel) -> TriggerInfo:
    return TriggerInfo(
        level=level,
        product_context="Air Max 90",
        reason="rapid add to cart + high interest",
        display_time="23:41",
    )


class TestEngineEvent:
    def test_event_creation(self):
        event = EngineEvent(
            session_id="test-session",
            seq=0,
            ts_monotonic=1000.0,
            kind=EventKind.ENGINE_TICK,
            payload={"tick": 1},
        )
        assert event.session_id == "test-session"
        assert event.kind == EventKind.ENGINE_TICK
        assert event.ts_wall is not None

    def test_event_immutable(self):
        event = EngineEvent(
            session_id="test",
            seq=0,
            ts_monotonic=1000.0,
            kind=EventKind.ENGINE_TICK,
        )
        with pytest.raises(Exception):  # ValidationError for frozen
            event.seq = 2

    def test_negative_seq_rejected(self):
        with pytest.raises(ValueError):
            EngineEvent(session_id="test", seq=-1, ts_monotonic=0.0, kind=EventKind.ERROR)

    def test_all_event_kinds_exist(self):
        """Ensure key event kinds are defined."""
        assert EventKind.ESCALATION_DETECTED.value == "escalation_detected"
        assert EventKind.SCORE_REDUCED.value == "score_reduced"
        assert EventKind.INTERVENTION_ACKNOWLEDGED.value == "intervention_acknowledged"


class TestImpulseState:
    def test_defaults(self):
        state = ImpulseState()

        assert state.score == 0.1
        assert state.level == InterventionLevel.L0_NORMAL
        assert state.excitement == pytest.approx(1.0)

    def test_score_bounds(self):
        with pytest.raises(ValueError):
            ImpulseState(score=1.2)
        with pytest.raises(ValueError):
            ImpulseState(score=-0.1)

    def test_immutable(self):
        state = ImpulseState()
        with pytest.raises(Exception):
            state.score = 0.5


class TestInterventionLevel:
    def test_ordering(self):
        assert InterventionLevel.L0_NORMAL < InterventionLevel.L3_BREATHING < InterventionLevel.L5_SAFE_MODE

    def test_display_names(self):
        assert [level.display_name for level in InterventionLevel] == [
            "Calm", "Alert", "Distracted", "Impulsive", "High Risk", "Locked",
        ]

    def test_event_labels(self):
        assert InterventionLevel.L1_REFLECTION.event_label == "L1 (Mild)"
        assert InterventionLevel.L3_BREATHING.event_label == "L3 (High Risk)"
        assert InterventionLevel.L5_SAFE_MODE.event_label == "L4 (Extreme)"


class TestProductContext:
    def test_brand_optional(self):
        product = ProductContext(id="sku-9", title="Chuck Taylor")
        assert product.brand == ""

    def test_title_required(self):
        with pytest.raises(ValueError):
            ProductContext.model_validate({"id": 1})


class TestEventDetail:
    def test_from_sample(self):
        sample = HistorySample(
            timestamp=1714600000000,
            excitement=8.5,
            trigger=make_trigger(InterventionLevel.L4_MICRO_LOCK),
        )

        detail = EventDetail.from_sample(sample)

        assert detail.timestamp == sample.timestamp
        assert detail.level_label == "L4 (Extreme)"
        assert detail.vibrate is True

    def test_no_vibration_below_l4(self):
        sample = HistorySample(
            timestamp=1,
            excitement=6.0,
            trigger=make_trigger(InterventionLevel.L3_BREATHING),
        )

        assert EventDetail.from_sample(sample).vibrate is False

    def test_requires_trigger(self):
        sample = HistorySample(timestamp=1, excitement=1.0)

        with pytest.raises(ValueError):
            EventDetail.from_sample(sample)
