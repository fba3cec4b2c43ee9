"""Tests for the engine daemon."""

import asyncio

import pytest

from impulsesense.contracts.events import EventKind
from impulsesense.core.engine import ImpulseEngine
from impulsesense.daemon.ticker import EngineDaemon
from impulsesense.store.event_log import EventLog


class MockEngine:
    """Engine stand-in counting ticks; optionally failing."""

    def __init__(self, fail_first: int = 0):
        self.ticks = 0
        self.fail_first = fail_first
        self.emitted = []

    def tick(self):
        self.ticks += 1
        if self.ticks <= self.fail_first:
            raise RuntimeError("tick failed")
        return self.ticks

    def emit(self, kind, payload):
        self.emitted.append((kind, payload))


class TestEngineDaemon:
    @pytest.mark.asyncio
    async def test_daemon_starts_and_stops(self):
        engine = MockEngine()
        daemon = EngineDaemon(engine, tick_interval=0.05)

        await daemon.start()
        assert daemon.is_running

        await asyncio.sleep(0.2)
        await daemon.stop()

        assert not daemon.is_running
        assert engine.ticks >= 2

    @pytest.mark.asyncio
    async def test_no_ticks_after_stop(self):
        engine = MockEngine()
        daemon = EngineDaemon(engine, tick_interval=0.05)

        await daemon.start()
        await asyncio.sleep(0.12)
        await daemon.stop()
        ticks = engine.ticks

        await asyncio.sleep(0.15)
        assert engine.ticks == ticks

    @pytest.mark.asyncio
    async def test_daemon_does_not_start_twice(self):
        daemon = EngineDaemon(MockEngine(), tick_interval=0.1)

        await daemon.start()
        task1 = daemon._task
        await daemon.start()
        task2 = daemon._task

        assert task1 is task2

        await daemon.stop()

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self):
        daemon = EngineDaemon(MockEngine(), tick_interval=0.1)

        await daemon.stop()
        await daemon.start()
        await daemon.stop()
        await daemon.stop()

        assert not daemon.is_running

    @pytest.mark.asyncio
    async def test_tick_errors_do_not_stop_loop(self):
        engine = MockEngine(fail_first=1)
        daemon = EngineDaemon(engine, tick_interval=0.05)

        await daemon.start()
        await asyncio.sleep(0.2)
        await daemon.stop()

        assert engine.ticks >= 2
        assert engine.emitted[0][0] == EventKind.ERROR
        assert engine.emitted[0][1]["source"] == "daemon"

    @pytest.mark.asyncio
    async def test_daemon_calls_async_callback(self):
        samples = []

        async def callback(sample):
            samples.append(sample)

        daemon = EngineDaemon(MockEngine(), tick_interval=0.05, tick_callback=callback)

        await daemon.start()
        await asyncio.sleep(0.2)
        await daemon.stop()

        assert samples[:2] == [1, 2]

    @pytest.mark.asyncio
    async def test_failing_callback_keeps_ticking(self):
        def callback(sample):
            raise ValueError("bad callback")

        engine = MockEngine()
        daemon = EngineDaemon(engine, tick_interval=0.05, tick_callback=callback)

        await daemon.start()
        await asyncio.sleep(0.2)
        await daemon.stop()

        assert engine.ticks >= 2

    @pytest.mark.asyncio
    async def test_daemon_get_status(self):
        daemon = EngineDaemon(MockEngine(), tick_interval=0.5)

        status = daemon.get_status()
        assert status["running"] is False
        assert status["tick_count"] == 0

        await daemon.start()
        status = daemon.get_status()
        assert status["running"] is True
        assert status["started_at"] is not None

        await daemon.stop()

    @pytest.mark.asyncio
    async def test_drives_real_engine(self):
        log = EventLog()
        engine = ImpulseEngine(event_log=log, session_id="s1")
        daemon = EngineDaemon(engine, tick_interval=0.05)

        await daemon.start()
        await asyncio.sleep(0.2)
        await daemon.stop()

        assert engine.tick_count >= 2
        assert len(engine.history) == engine.tick_count
        assert len(log.query(EventKind.ENGINE_TICK)) == engine.tick_count
