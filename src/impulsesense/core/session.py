"""Impulse session - wires engine, tick daemon, gating and event log."""

import logging
import random
import uuid
from datetime import datetime
from typing import Any, Callable, Optional

from impulsesense.config import Config
from impulsesense.contracts.events import EventKind
from impulsesense.core.engine import ImpulseEngine
from impulsesense.daemon.ticker import EngineDaemon
from impulsesense.interventions.manager import GatingSettings, InterventionManager
from impulsesense.store.event_log import EventLog

logger = logging.getLogger(__name__)


class ImpulseSession:
    """One shopping session.

    The engine state is process-local: a new session starts from the
    configured initial score with an empty history.
    """

    def __init__(
        self,
        config: Config | None = None,
        settings: GatingSettings | None = None,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], datetime]] = None,
        haptics: Optional[Callable[[int], Any]] = None,
        event_log: Optional[EventLog] = None,
        tick_interval: float | None = None,
        breathing_time_scale: float = 1.0,
    ):
        """Initialize the session.

        Args:
            config: Configuration (defaults when omitted)
            settings: Gating settings; built from config when omitted
            rng: Random source for the scoring noise
            clock: Wall clock for sample timestamps
            haptics: Vibration hook for the gating layer
            event_log: Event log (a fresh one when omitted)
            tick_interval: Override for the configured tick interval
            breathing_time_scale: Wall-clock seconds per breathing second
        """
        self.config = config or Config()
        self.session_id = str(uuid.uuid4())
        self.event_log = event_log or EventLog()

        if rng is None and self.config.RANDOM_SEED is not None:
            rng = random.Random(self.config.RANDOM_SEED)

        self.engine = ImpulseEngine(
            initial_score=self.config.INITIAL_SCORE,
            history_capacity=self.config.HISTORY_CAPACITY,
            rng=rng,
            clock=clock,
            event_log=self.event_log,
            session_id=self.session_id,
            high_risk_hours=self.config.high_risk_hours,
        )

        self.interventions = InterventionManager(
            reduce_score=self.engine.reduce_score,
            settings=settings or GatingSettings(
                enable_camera=self.config.ENABLE_CAMERA,
                enable_vibration=self.config.ENABLE_VIBRATION,
            ),
            unlock_phrase=self.config.UNLOCK_PHRASE,
            notice_duration=self.config.TOAST_DURATION,
            breathing_duration=self.config.BREATHING_DURATION,
            breathing_time_scale=breathing_time_scale,
            haptics=haptics,
            event_log=self.event_log,
            session_id=self.session_id,
        )
        self.engine.add_listener(self.interventions.on_state)

        self.daemon = EngineDaemon(
            self.engine,
            tick_interval=tick_interval or self.config.TICK_INTERVAL,
        )

        self._started = False
        self._ended = False

    async def start(self) -> None:
        """Start ticking. No-op if already started or already ended."""
        if self._started or self._ended:
            return
        self._started = True

        self.event_log.record(
            self.session_id,
            EventKind.SESSION_STARTED,
            {
                "score": self.engine.score,
                "high_risk": self.engine.get_state().session_high_risk,
            },
        )
        self.interventions.update(self.engine.level)
        await self.daemon.start()
        logger.info(f"Session {self.session_id[:8]} started")

    async def stop(self) -> None:
        """Tear down: stop ticking and cancel gating timers. Idempotent."""
        if self._ended:
            return
        self._ended = True

        await self.daemon.stop()
        await self.interventions.aclose()
        self.engine.remove_listener(self.interventions.on_state)

        if self._started:
            self.event_log.record(
                self.session_id,
                EventKind.SESSION_ENDED,
                {"score": self.engine.score, "ticks": self.engine.tick_count},
            )
            logger.info(f"Session {self.session_id[:8]} ended")

    async def __aenter__(self) -> "ImpulseSession":
        await self.start()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.stop()

    @property
    def is_running(self) -> bool:
        """False means the state is frozen at its last snapshot."""
        return self.daemon.is_running

    def get_status(self) -> dict:
        """Get session status for diagnostics."""
        return {
            "session_id": self.session_id,
            "running": self.is_running,
            "ended": self._ended,
            "engine": self.engine.get_status(),
            "daemon": self.daemon.get_status(),
            "intervention": self.interventions.current().kind.value,
        }
