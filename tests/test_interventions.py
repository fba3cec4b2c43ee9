"""Tests for the gating layer: intervention manager and breathing routine."""

import asyncio

import pytest

from impulsesense.contracts.events import EventKind
from impulsesense.contracts.state import InterventionLevel
from impulsesense.core.engine import ImpulseEngine
from impulsesense.interventions.breathing import (
    HOLD_PULSE_MS,
    INHALE_PULSE_MS,
    BreathingPhase,
    BreathingRoutine,
)
from impulsesense.interventions.manager import (
    GatingSettings,
    InterventionKind,
    InterventionManager,
)
from impulsesense.store.event_log import EventLog


class MockReducer:
    """Records reduce_score calls."""

    def __init__(self):
        self.amounts = []

    def __call__(self, amount):
        self.amounts.append(amount)


class MockClock:
    """Monotonic clock under test control."""

    def __init__(self):
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def make_manager(**kwargs):
    reducer = MockReducer()
    kwargs.setdefault("breathing_time_scale", 0.0)
    manager = InterventionManager(reduce_score=reducer, **kwargs)
    return manager, reducer


class TestLevelTracking:
    def test_starts_with_no_intervention(self):
        manager, _ = make_manager()

        assert manager.level == InterventionLevel.L0_NORMAL
        assert manager.current().kind == InterventionKind.NONE

    def test_grayscale_is_visual_only(self):
        manager, _ = make_manager()
        active = manager.update(InterventionLevel.L2_GRAYSCALE)

        assert active.kind == InterventionKind.GRAYSCALE
        assert active.blocking is False

    def test_blocking_levels(self):
        manager, _ = make_manager()

        manager.update(InterventionLevel.L4_MICRO_LOCK)
        assert manager.current().blocking is True

        manager.update(InterventionLevel.L5_SAFE_MODE)
        active = manager.current()
        assert active.blocking is True
        assert active.title == "Safe Mode Activated"
        assert active.action_label == "Emergency Unlock"

    def test_transitions_recorded(self):
        log = EventLog()
        manager, _ = make_manager(event_log=log, session_id="s1")

        manager.update(InterventionLevel.L2_GRAYSCALE)
        manager.update(InterventionLevel.L4_MICRO_LOCK)

        assert [e.kind for e in log] == [
            EventKind.INTERVENTION_SHOWN,
            EventKind.INTERVENTION_CLEARED,
            EventKind.INTERVENTION_SHOWN,
        ]
        assert log.last().payload["kind"] == "micro_lock"

    def test_same_level_is_noop(self):
        log = EventLog()
        manager, _ = make_manager(event_log=log)

        manager.update(InterventionLevel.L2_GRAYSCALE)
        manager.update(InterventionLevel.L2_GRAYSCALE)

        assert len(log) == 1

    def test_camera_overlay_setting(self):
        manager, _ = make_manager(settings=GatingSettings(enable_camera=False))
        assert manager.show_camera_overlay is False


class TestReflectionNotice:
    def test_notice_auto_dismisses(self):
        clock = MockClock()
        manager, _ = make_manager(clock=clock)

        manager.update(InterventionLevel.L1_REFLECTION)
        assert manager.notice_visible
        assert manager.current().kind == InterventionKind.REFLECTION_NOTICE

        clock.now += 4.9
        assert manager.notice_visible

        clock.now += 0.2
        assert not manager.notice_visible
        assert manager.current().kind == InterventionKind.NONE

    def test_notice_dismissed_early(self):
        manager, _ = make_manager(clock=MockClock())

        manager.update(InterventionLevel.L1_REFLECTION)
        manager.dismiss_notice()

        assert not manager.notice_visible

    def test_notice_reshown_on_reentry(self):
        clock = MockClock()
        manager, _ = make_manager(clock=clock)

        manager.update(InterventionLevel.L1_REFLECTION)
        clock.now += 10
        manager.update(InterventionLevel.L0_NORMAL)
        manager.update(InterventionLevel.L1_REFLECTION)

        assert manager.notice_visible


class TestMicroLock:
    def test_phrase_is_case_insensitive(self):
        manager, reducer = make_manager()
        manager.update(InterventionLevel.L4_MICRO_LOCK)

        assert manager.enter_phrase("i CAN wait") is True
        assert manager.current().action_enabled is True
        assert manager.unlock() is True
        assert reducer.amounts == [0.2]

    def test_wrong_phrase_keeps_lock(self):
        manager, reducer = make_manager()
        manager.update(InterventionLevel.L4_MICRO_LOCK)

        assert manager.enter_phrase("I can't wait") is False
        assert manager.unlock() is False
        assert reducer.amounts == []

    def test_phrase_only_counts_at_l4(self):
        manager, reducer = make_manager()
        manager.update(InterventionLevel.L2_GRAYSCALE)

        assert manager.enter_phrase("I can wait") is False
        assert manager.unlock() is False

    def test_phrase_reset_on_reentry(self):
        manager, _ = make_manager()
        manager.update(InterventionLevel.L4_MICRO_LOCK)
        manager.enter_phrase("I can wait")
        manager.update(InterventionLevel.L5_SAFE_MODE)
        manager.update(InterventionLevel.L4_MICRO_LOCK)

        assert manager.can_unlock is False

    def test_custom_phrase(self):
        manager, reducer = make_manager(unlock_phrase="Not today")
        manager.update(InterventionLevel.L4_MICRO_LOCK)
        manager.enter_phrase("not today")

        assert manager.unlock() is True


class TestSafeMode:
    def test_emergency_unlock(self):
        log = EventLog()
        manager, reducer = make_manager(event_log=log)
        manager.update(InterventionLevel.L5_SAFE_MODE)

        assert manager.emergency_unlock() is True
        assert reducer.amounts == [0.5]

        ack = log.last(EventKind.INTERVENTION_ACKNOWLEDGED)
        assert ack.payload == {"kind": "safe_mode", "amount": 0.5}

    def test_emergency_unlock_only_in_safe_mode(self):
        manager, reducer = make_manager()
        manager.update(InterventionLevel.L4_MICRO_LOCK)

        assert manager.emergency_unlock() is False
        assert reducer.amounts == []


class TestBreathingGate:
    def test_no_loop_leaves_routine_unstarted(self):
        manager, _ = make_manager()
        manager.update(InterventionLevel.L3_BREATHING)

        assert manager.breathing is not None
        assert not manager.breathing.is_running

    def test_pending_routine_starts_once_loop_runs(self):
        log = EventLog()
        manager, reducer = make_manager(breathing_duration=3, event_log=log)
        manager.update(InterventionLevel.L3_BREATHING)
        manager.update(InterventionLevel.L3_BREATHING)
        routine = manager.breathing
        assert not routine.started

        async def resume():
            manager.update(InterventionLevel.L3_BREATHING)
            return await routine.wait()

        assert asyncio.run(resume()) is True
        assert reducer.amounts == [0.15]
        assert len(log.query(EventKind.ROUTINE_STARTED)) == 1

    def test_engine_leaves_l3_after_sync_ticks(self):
        engine = ImpulseEngine(initial_score=0.65)
        manager = InterventionManager(
            reduce_score=engine.reduce_score,
            breathing_duration=3,
            breathing_time_scale=0.0,
        )
        engine.add_listener(manager.on_state)

        for _ in range(30):
            engine.tick()
        assert engine.level == InterventionLevel.L3_BREATHING
        routine = manager.breathing

        async def tick_in_loop():
            engine.tick()
            return await routine.wait()

        assert asyncio.run(tick_in_loop()) is True
        assert engine.score == 0.5
        assert engine.level == InterventionLevel.L2_GRAYSCALE
        assert manager.breathing is None

    @pytest.mark.asyncio
    async def test_completion_reduces_score(self):
        log = EventLog()
        manager, reducer = make_manager(breathing_duration=3, event_log=log)
        manager.update(InterventionLevel.L3_BREATHING)

        completed = await manager.breathing.wait()

        assert completed is True
        assert reducer.amounts == [0.15]
        assert log.query(EventKind.ROUTINE_STARTED)

    @pytest.mark.asyncio
    async def test_leaving_l3_cancels_routine(self):
        log = EventLog()
        manager, reducer = make_manager(
            breathing_duration=3, breathing_time_scale=0.05, event_log=log,
        )
        manager.update(InterventionLevel.L3_BREATHING)
        routine = manager.breathing

        await asyncio.sleep(0.01)
        manager.update(InterventionLevel.L5_SAFE_MODE)
        await asyncio.sleep(0.2)

        assert routine.cancelled
        assert not routine.completed
        assert reducer.amounts == []
        assert manager.breathing is None
        assert len(log.query(EventKind.ROUTINE_CANCELLED)) == 1

    @pytest.mark.asyncio
    async def test_close_cancels_routine(self):
        manager, reducer = make_manager(breathing_duration=3, breathing_time_scale=0.05)
        manager.update(InterventionLevel.L3_BREATHING)
        routine = manager.breathing

        await manager.aclose()
        await manager.aclose()

        assert manager.closed
        assert routine.cancelled
        assert not routine.is_running
        assert reducer.amounts == []

    @pytest.mark.asyncio
    async def test_closed_manager_ignores_updates(self):
        manager, _ = make_manager()
        await manager.aclose()

        manager.update(InterventionLevel.L5_SAFE_MODE)
        assert manager.level == InterventionLevel.L0_NORMAL

    @pytest.mark.asyncio
    async def test_haptics_respect_setting(self):
        pulses = []
        manager, _ = make_manager(
            breathing_duration=9,
            haptics=pulses.append,
            settings=GatingSettings(enable_vibration=False),
        )
        manager.update(InterventionLevel.L3_BREATHING)
        await manager.breathing.wait()

        assert pulses == []


class TestBreathingRoutine:
    def test_phase_cycle(self):
        routine = BreathingRoutine(on_complete=lambda: None)

        assert [routine.phase_at(s) for s in range(10)] == (
            [BreathingPhase.INHALE] * 4
            + [BreathingPhase.EXHALE] * 4
            + [BreathingPhase.HOLD]
            + [BreathingPhase.INHALE]
        )

    def test_countdown_label(self):
        routine = BreathingRoutine(on_complete=lambda: None)

        assert routine.duration == 25
        assert routine.countdown_label == "00:25"

    @pytest.mark.asyncio
    async def test_completes_once(self):
        calls = []
        routine = BreathingRoutine(on_complete=lambda: calls.append(1), duration=3, time_scale=0)

        routine.start()
        routine.start()
        assert await routine.wait() is True

        assert calls == [1]
        assert routine.time_left == 0
        assert routine.countdown_label == "00:00"

    @pytest.mark.asyncio
    async def test_phases_and_pulses(self):
        phases = []
        pulses = []
        routine = BreathingRoutine(
            on_complete=lambda: None,
            duration=9,
            time_scale=0,
            on_phase=phases.append,
            vibrate=pulses.append,
        )

        routine.start()
        await routine.wait()

        assert phases == [BreathingPhase.INHALE, BreathingPhase.EXHALE, BreathingPhase.HOLD]
        assert pulses == [INHALE_PULSE_MS] * 4 + [HOLD_PULSE_MS]

    @pytest.mark.asyncio
    async def test_cancel_prevents_completion(self):
        calls = []
        routine = BreathingRoutine(on_complete=lambda: calls.append(1), duration=3, time_scale=0.05)

        routine.start()
        await asyncio.sleep(0.01)
        routine.cancel()

        assert await routine.wait() is False
        await asyncio.sleep(0.2)
        assert calls == []

    @pytest.mark.asyncio
    async def test_failing_callback_is_contained(self):
        def broken():
            raise RuntimeError("boom")

        routine = BreathingRoutine(on_complete=broken, duration=1, time_scale=0)
        routine.start()

        assert await routine.wait() is True
