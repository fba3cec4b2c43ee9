"""Engine daemon - background tick loop driving the impulse engine."""

import asyncio
import logging
import time
from datetime import datetime
from typing import Callable, Optional, Any, TYPE_CHECKING

from impulsesense.contracts.events import EventKind
from impulsesense.contracts.state import HistorySample

if TYPE_CHECKING:
    from impulsesense.core.engine import ImpulseEngine

logger = logging.getLogger(__name__)


class EngineDaemon:
    """Periodic driver for `ImpulseEngine.tick()`.

    Runs on the event loop as a single task; ticks never overlap with
    discrete events because both run on the same loop. Stopping cancels the
    task and waits for it, so no tick can fire after `stop()` returns.
    """

    DEFAULT_TICK_INTERVAL = 1.0  # seconds
    SLOW_TICK_SECONDS = 0.25

    def __init__(
        self,
        engine: "ImpulseEngine",
        tick_interval: float = DEFAULT_TICK_INTERVAL,
        tick_callback: Optional[Callable[[HistorySample], Any]] = None,
    ):
        """Initialize the daemon.

        Args:
            engine: Engine to drive
            tick_interval: Seconds between ticks
            tick_callback: Optional callback receiving each tick's sample
        """
        self.engine = engine
        self.tick_interval = tick_interval
        self.tick_callback = tick_callback

        self._running = False
        self._task: Optional[asyncio.Task] = None
        self._tick_count = 0
        self._started_at: datetime | None = None

    async def start(self) -> None:
        """Start the background tick loop (no-op if already running)."""
        if self._running:
            return

        self._running = True
        self._tick_count = 0
        self._started_at = datetime.now()
        self._task = asyncio.create_task(self._tick_loop())
        logger.debug(f"Engine daemon started ({self.tick_interval}s interval)")

    async def stop(self) -> None:
        """Stop the background tick loop. Safe to call repeatedly."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
            logger.debug(f"Engine daemon stopped after {self._tick_count} ticks")

    async def _tick_loop(self) -> None:
        """Main daemon loop."""
        while self._running:
            try:
                await asyncio.sleep(self.tick_interval)
                if not self._running:
                    break
                await self._tick()
            except asyncio.CancelledError:
                break
            except Exception as e:
                # Log error but keep running
                logger.error(f"Engine tick failed: {e}", exc_info=True)
                self.engine.emit(
                    EventKind.ERROR,
                    {"source": "daemon", "error": str(e), "tick": self._tick_count},
                )

    async def _tick(self) -> None:
        """Execute a single tick."""
        self._tick_count += 1
        tick_start = time.monotonic()

        sample = self.engine.tick()

        if self.tick_callback:
            try:
                await self._call_callback(sample)
            except Exception as e:
                logger.warning(f"Tick callback failed: {e}", exc_info=True)

        tick_duration = time.monotonic() - tick_start
        if tick_duration > self.SLOW_TICK_SECONDS:
            logger.warning(f"Slow tick: {int(tick_duration * 1000)}ms")

    async def _call_callback(self, sample: HistorySample) -> None:
        """Call the tick callback, handling sync and async."""
        if asyncio.iscoroutinefunction(self.tick_callback):
            await self.tick_callback(sample)
        else:
            self.tick_callback(sample)

    @property
    def is_running(self) -> bool:
        """Check if daemon is running."""
        return self._running and self._task is not None

    def get_status(self) -> dict:
        """Get daemon status for diagnostics."""
        return {
            "running": self.is_running,
            "tick_count": self._tick_count,
            "tick_interval": self.tick_interval,
            "started_at": self._started_at.isoformat() if self._started_at else None,
        }
