"""Guided breathing routine shown at L3.

The routine cycles inhale (4s), exhale (4s), hold (1s) for a fixed total
duration, then fires its completion callback exactly once. Cancelling the
routine guarantees the callback never fires afterwards.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class BreathingPhase(str, Enum):
    """Phases of one breathing cycle."""

    INHALE = "inhale"
    EXHALE = "exhale"
    HOLD = "hold"


DEFAULT_CYCLE: tuple[tuple[BreathingPhase, int], ...] = (
    (BreathingPhase.INHALE, 4),
    (BreathingPhase.EXHALE, 4),
    (BreathingPhase.HOLD, 1),
)
DEFAULT_DURATION = 25  # seconds

# Haptic patterns (ms): a light tick every inhale second, one tick on hold
INHALE_PULSE_MS = 50
HOLD_PULSE_MS = 80


class BreathingRoutine:
    """Timed breathing exercise with a cancellable countdown.

    Time advances in whole seconds; `time_scale` stretches or compresses the
    wall-clock length of one second (tests and fast-forward playback use
    small values).
    """

    def __init__(
        self,
        on_complete: Callable[[], Any],
        duration: int = DEFAULT_DURATION,
        cycle: tuple[tuple[BreathingPhase, int], ...] = DEFAULT_CYCLE,
        time_scale: float = 1.0,
        on_phase: Optional[Callable[[BreathingPhase], Any]] = None,
        vibrate: Optional[Callable[[int], Any]] = None,
    ):
        """Initialize the routine.

        Args:
            on_complete: Called once when the full duration has elapsed
            duration: Total length in seconds
            cycle: (phase, seconds) steps repeated until the duration ends
            time_scale: Wall-clock seconds per routine second
            on_phase: Optional callback on every phase change
            vibrate: Optional haptics hook taking a pulse length in ms
        """
        self.on_complete = on_complete
        self.duration = max(0, int(duration))
        self.cycle = cycle
        self.time_scale = max(0.0, time_scale)
        self.on_phase = on_phase
        self.vibrate = vibrate

        self._cycle_length = sum(seconds for _, seconds in cycle)
        self._elapsed = 0
        self._phase = cycle[0][0]
        self._task: Optional[asyncio.Task] = None
        self._completed = False
        self._cancelled = False

    def phase_at(self, second: int) -> BreathingPhase:
        """Phase active during the given second of the routine."""
        position = second % self._cycle_length
        for phase, seconds in self.cycle:
            if position < seconds:
                return phase
            position -= seconds
        return self.cycle[-1][0]

    @property
    def phase(self) -> BreathingPhase:
        return self._phase

    @property
    def elapsed(self) -> int:
        return self._elapsed

    @property
    def time_left(self) -> int:
        """Seconds remaining on the countdown."""
        return max(0, self.duration - self._elapsed)

    @property
    def countdown_label(self) -> str:
        """Countdown as MM:SS."""
        minutes, seconds = divmod(self.time_left, 60)
        return f"{minutes:02d}:{seconds:02d}"

    @property
    def completed(self) -> bool:
        return self._completed

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def started(self) -> bool:
        return self._task is not None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        """Schedule the routine on the running event loop (idempotent)."""
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self.run())
        return self._task

    async def wait(self) -> bool:
        """Wait for the routine to finish; returns True if it completed."""
        if self._task is None:
            return self._completed
        try:
            await asyncio.shield(self._task)
        except asyncio.CancelledError:
            if not self._cancelled:
                raise
        return self._completed

    async def run(self) -> None:
        """Run the countdown and phase cycle to completion."""
        current: BreathingPhase | None = None

        while self._elapsed < self.duration:
            if self._cancelled:
                return

            phase = self.phase_at(self._elapsed)
            if phase != current:
                current = phase
                self._enter_phase(phase)
            if phase == BreathingPhase.INHALE:
                self._pulse(INHALE_PULSE_MS)

            await asyncio.sleep(self.time_scale)
            self._elapsed += 1

        if self._cancelled or self._completed:
            return

        self._completed = True
        logger.info(f"Breathing routine completed ({self.duration}s)")
        try:
            self.on_complete()
        except Exception:
            logger.error("Breathing completion callback failed", exc_info=True)

    def _enter_phase(self, phase: BreathingPhase) -> None:
        self._phase = phase
        if phase == BreathingPhase.HOLD:
            self._pulse(HOLD_PULSE_MS)
        if self.on_phase:
            try:
                self.on_phase(phase)
            except Exception:
                logger.warning("Breathing phase callback failed", exc_info=True)

    def _pulse(self, ms: int) -> None:
        if self.vibrate:
            try:
                self.vibrate(ms)
            except Exception:
                logger.warning("Haptics call failed", exc_info=True)

    def cancel(self) -> None:
        """Cancel without waiting. The completion callback will not fire."""
        if self._completed or self._cancelled:
            return
        self._cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
        logger.debug(f"Breathing routine cancelled at {self._elapsed}s")

    async def aclose(self) -> None:
        """Cancel and wait until the routine task has fully stopped."""
        self.cancel()
        if self._task is not None:
            try:
                await self._task
            except asyncio.CancelledError:
                pass
