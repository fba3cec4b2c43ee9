"""
Intervention Manager

Maps the current intervention level to the gating the UI must show and
turns user acknowledgments into score reductions.

L0 Normal:      no gating
L1 Reflection:  non-blocking notice, auto-dismissed after 5s
L2 Grayscale:   visual-only degradation, no modal
L3 Breathing:   blocking guided breathing; completion reduces score by 0.15
L4 Micro lock:  blocking; typing the confirmation phrase enables unlock (-0.2)
L5 Safe mode:   full lock; only emergency unlock (-0.5), no timeout

The manager never sets the level. It only calls `reduce_score(amount)` and
waits for the engine to report the resulting level through `update()`.
"""

import asyncio
import logging
import time
from enum import Enum
from typing import Any, Callable, Optional

from pydantic import BaseModel, Field

from impulsesense.contracts.events import EventKind
from impulsesense.contracts.state import ImpulseState, InterventionLevel
from impulsesense.interventions.breathing import DEFAULT_DURATION, BreathingRoutine
from impulsesense.store.event_log import EventLog

logger = logging.getLogger(__name__)


class InterventionKind(str, Enum):
    """What the gating layer is currently showing."""

    NONE = "none"
    REFLECTION_NOTICE = "reflection_notice"
    GRAYSCALE = "grayscale"
    BREATHING = "breathing"
    MICRO_LOCK = "micro_lock"
    SAFE_MODE = "safe_mode"


LEVEL_INTERVENTIONS = {
    InterventionLevel.L0_NORMAL: InterventionKind.NONE,
    InterventionLevel.L1_REFLECTION: InterventionKind.REFLECTION_NOTICE,
    InterventionLevel.L2_GRAYSCALE: InterventionKind.GRAYSCALE,
    InterventionLevel.L3_BREATHING: InterventionKind.BREATHING,
    InterventionLevel.L4_MICRO_LOCK: InterventionKind.MICRO_LOCK,
    InterventionLevel.L5_SAFE_MODE: InterventionKind.SAFE_MODE,
}


class GatingSettings(BaseModel):
    """Injected user settings relevant to gating."""

    enable_camera: bool = Field(default=True, description="Show the camera overlay")
    enable_vibration: bool = Field(default=True, description="Use haptic pulses")


class ActiveIntervention(BaseModel):
    """What the UI should render right now."""

    kind: InterventionKind
    level: InterventionLevel
    blocking: bool = False
    title: str = ""
    message: str = ""
    action_label: str | None = None
    action_enabled: bool = False

    model_config = {"frozen": True}


class InterventionManager:
    """Per-level gating state machine.

    Transient UI state (notice shown time, phrase input, breathing routine)
    lives here; the level itself is always the engine's.
    """

    BREATHING_REDUCTION = 0.15
    MICRO_LOCK_REDUCTION = 0.2
    SAFE_MODE_REDUCTION = 0.5

    DEFAULT_UNLOCK_PHRASE = "I can wait"
    DEFAULT_NOTICE_DURATION = 5.0  # seconds

    def __init__(
        self,
        reduce_score: Callable[[float], Any],
        settings: GatingSettings | None = None,
        unlock_phrase: str = DEFAULT_UNLOCK_PHRASE,
        notice_duration: float = DEFAULT_NOTICE_DURATION,
        breathing_duration: int = DEFAULT_DURATION,
        breathing_time_scale: float = 1.0,
        haptics: Optional[Callable[[int], Any]] = None,
        clock: Callable[[], float] = time.monotonic,
        event_log: Optional[EventLog] = None,
        session_id: str = "",
    ):
        """Initialize the manager.

        Args:
            reduce_score: Engine entry point for acknowledgments
            settings: Camera / vibration settings
            unlock_phrase: Phrase the user types at L4 (case-insensitive)
            notice_duration: Seconds the L1 notice stays visible
            breathing_duration: Total seconds of the L3 routine
            breathing_time_scale: Wall-clock seconds per routine second
            haptics: Hook taking a vibration length in ms
            clock: Monotonic clock for the notice timeout
            event_log: Optional log receiving gating events
            session_id: Session ID stamped on emitted events
        """
        self.reduce_score = reduce_score
        self.settings = settings or GatingSettings()
        self.unlock_phrase = unlock_phrase
        self.notice_duration = notice_duration
        self.breathing_duration = breathing_duration
        self.breathing_time_scale = breathing_time_scale
        self.haptics = haptics
        self._clock = clock
        self.event_log = event_log
        self.session_id = session_id

        self._level = InterventionLevel.L0_NORMAL
        self._notice_shown_at: float | None = None
        self._notice_dismissed = False
        self._phrase_input = ""
        self._breathing: BreathingRoutine | None = None
        self._closed = False

    # ─────────────────────────────────────────────────────────────────────
    # Level tracking
    # ─────────────────────────────────────────────────────────────────────

    @property
    def level(self) -> InterventionLevel:
        return self._level

    def on_state(self, state: ImpulseState) -> None:
        """Engine listener adapter."""
        self.update(state.level)

    def update(self, level: InterventionLevel) -> ActiveIntervention:
        """Follow the engine's level, entering and leaving gating states."""
        level = InterventionLevel(level)
        if self._closed:
            return self.current()
        if level == self._level:
            if level == InterventionLevel.L3_BREATHING:
                self.start_breathing()
            return self.current()

        previous = self._level
        self._leave(previous)
        self._level = level
        self._enter(level)

        logger.info(f"Intervention {previous.name} -> {level.name}")
        return self.current()

    def _enter(self, level: InterventionLevel) -> None:
        kind = LEVEL_INTERVENTIONS[level]

        if level == InterventionLevel.L1_REFLECTION:
            self._notice_shown_at = self._clock()
            self._notice_dismissed = False
        elif level == InterventionLevel.L3_BREATHING:
            self._begin_breathing()
        elif level == InterventionLevel.L4_MICRO_LOCK:
            self._phrase_input = ""

        if kind != InterventionKind.NONE:
            self._emit(EventKind.INTERVENTION_SHOWN, {"kind": kind.value, "level": int(level)})

    def _leave(self, level: InterventionLevel) -> None:
        kind = LEVEL_INTERVENTIONS[level]

        if level == InterventionLevel.L1_REFLECTION:
            self._notice_shown_at = None
        elif level == InterventionLevel.L3_BREATHING:
            self._stop_breathing()
        elif level == InterventionLevel.L4_MICRO_LOCK:
            self._phrase_input = ""

        if kind != InterventionKind.NONE:
            self._emit(EventKind.INTERVENTION_CLEARED, {"kind": kind.value, "level": int(level)})

    # ─────────────────────────────────────────────────────────────────────
    # Rendering contract
    # ─────────────────────────────────────────────────────────────────────

    def current(self) -> ActiveIntervention:
        """The intervention to render for the current level."""
        level = self._level

        if level == InterventionLevel.L1_REFLECTION and self.notice_visible:
            return ActiveIntervention(
                kind=InterventionKind.REFLECTION_NOTICE,
                level=level,
                title="Impulse Alert",
                message="Consider checking your budget before adding more.",
            )

        if level == InterventionLevel.L2_GRAYSCALE:
            return ActiveIntervention(kind=InterventionKind.GRAYSCALE, level=level)

        if level == InterventionLevel.L3_BREATHING:
            return ActiveIntervention(
                kind=InterventionKind.BREATHING,
                level=level,
                blocking=True,
                title="Breathe with me",
                message="Inhale 4s, exhale 4s, hold 1s.",
            )

        if level == InterventionLevel.L4_MICRO_LOCK:
            return ActiveIntervention(
                kind=InterventionKind.MICRO_LOCK,
                level=level,
                blocking=True,
                title="Pause for a moment",
                message=f"Type '{self.unlock_phrase}' to unlock.",
                action_label="Unlock",
                action_enabled=self.can_unlock,
            )

        if level == InterventionLevel.L5_SAFE_MODE:
            return ActiveIntervention(
                kind=InterventionKind.SAFE_MODE,
                level=level,
                blocking=True,
                title="Safe Mode Activated",
                message="Impulse levels are critically high. Shopping is disabled.",
                action_label="Emergency Unlock",
                action_enabled=True,
            )

        return ActiveIntervention(kind=InterventionKind.NONE, level=level)

    @property
    def show_camera_overlay(self) -> bool:
        return self.settings.enable_camera

    # ─────────────────────────────────────────────────────────────────────
    # L1: reflection notice
    # ─────────────────────────────────────────────────────────────────────

    @property
    def notice_visible(self) -> bool:
        """Whether the L1 notice is still on screen."""
        if self._level != InterventionLevel.L1_REFLECTION:
            return False
        if self._notice_dismissed or self._notice_shown_at is None:
            return False
        return self._clock() - self._notice_shown_at < self.notice_duration

    def dismiss_notice(self) -> None:
        """User closed the L1 notice early."""
        self._notice_dismissed = True

    # ─────────────────────────────────────────────────────────────────────
    # L3: breathing
    # ─────────────────────────────────────────────────────────────────────

    @property
    def breathing(self) -> BreathingRoutine | None:
        """Routine for the current L3 episode, if one is active."""
        return self._breathing

    def _begin_breathing(self) -> None:
        self._stop_breathing()
        routine = BreathingRoutine(
            on_complete=self._on_breathing_complete,
            duration=self.breathing_duration,
            time_scale=self.breathing_time_scale,
            vibrate=self._vibrate,
        )
        self._breathing = routine

        if not self.start_breathing():
            logger.warning("No running event loop; breathing routine waits for the next update")

    def start_breathing(self) -> bool:
        """Start the pending L3 routine if an event loop is running.

        Returns True only when this call scheduled the routine.
        """
        routine = self._breathing
        if routine is None or routine.started or routine.cancelled:
            return False

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return False

        routine.start()
        self._emit(
            EventKind.ROUTINE_STARTED,
            {"duration": float(routine.duration), "elapsed": 0.0},
        )
        return True

    def _stop_breathing(self) -> None:
        routine = self._breathing
        self._breathing = None
        if routine is None or routine.completed:
            return
        routine.cancel()
        self._emit(
            EventKind.ROUTINE_CANCELLED,
            {"duration": float(routine.duration), "elapsed": float(routine.elapsed)},
        )

    def _on_breathing_complete(self) -> None:
        if self._level != InterventionLevel.L3_BREATHING or self._closed:
            return
        self._acknowledge(InterventionKind.BREATHING, self.BREATHING_REDUCTION)

    # ─────────────────────────────────────────────────────────────────────
    # L4: micro lock
    # ─────────────────────────────────────────────────────────────────────

    def enter_phrase(self, text: str) -> bool:
        """Update the confirmation input; returns whether unlock is enabled."""
        self._phrase_input = text or ""
        return self.can_unlock

    @property
    def can_unlock(self) -> bool:
        """Input matches the confirmation phrase, ignoring case."""
        return (
            self._level == InterventionLevel.L4_MICRO_LOCK
            and self._phrase_input.lower() == self.unlock_phrase.lower()
        )

    def unlock(self) -> bool:
        """Unlock the micro lock if the phrase was typed correctly."""
        if not self.can_unlock:
            return False
        self._phrase_input = ""
        self._acknowledge(InterventionKind.MICRO_LOCK, self.MICRO_LOCK_REDUCTION)
        return True

    # ─────────────────────────────────────────────────────────────────────
    # L5: safe mode
    # ─────────────────────────────────────────────────────────────────────

    def emergency_unlock(self) -> bool:
        """The only way out of safe mode."""
        if self._level != InterventionLevel.L5_SAFE_MODE:
            return False
        self._acknowledge(InterventionKind.SAFE_MODE, self.SAFE_MODE_REDUCTION)
        return True

    # ─────────────────────────────────────────────────────────────────────
    # Teardown
    # ─────────────────────────────────────────────────────────────────────

    def close(self) -> None:
        """Cancel pending timers. Idempotent."""
        if self._closed:
            return
        self._stop_breathing()
        self._notice_shown_at = None
        self._closed = True

    async def aclose(self) -> None:
        """Close and wait for the breathing task to finish unwinding."""
        routine = self._breathing
        self.close()
        if routine is not None:
            await routine.aclose()

    @property
    def closed(self) -> bool:
        return self._closed

    # ─────────────────────────────────────────────────────────────────────
    # Internals
    # ─────────────────────────────────────────────────────────────────────

    def _acknowledge(self, kind: InterventionKind, amount: float) -> None:
        self._emit(EventKind.INTERVENTION_ACKNOWLEDGED, {"kind": kind.value, "amount": amount})
        logger.info(f"{kind.value} acknowledged, reducing score by {amount}")
        self.reduce_score(amount)

    def _vibrate(self, ms: int) -> None:
        if self.settings.enable_vibration and self.haptics:
            self.haptics(ms)

    def _emit(self, kind: EventKind, payload: dict) -> None:
        if self.event_log is not None:
            self.event_log.record(self.session_id, kind, payload)
