"""Impulse engine - sole owner and mutator of the impulse state.

All mutation goes through three entry points:
- tick(): one periodic step (score drift, reclassification, history sample)
- apply_event(kind): discrete interaction events from the catalog UI
- reduce_score(amount): acknowledgments from the intervention layer
"""

import logging
import math
import random
import uuid
from datetime import datetime
from typing import Any, Callable, Optional

from pydantic import ValidationError

from impulsesense.contracts.events import EventKind
from impulsesense.contracts.state import (
    EventDetail,
    HistorySample,
    ImpulseState,
    InterventionEvent,
    InterventionLevel,
    ProductContext,
    TriggerInfo,
)
from impulsesense.core.history import DEFAULT_CAPACITY, DEFAULT_WINDOW, HistoryBuffer
from impulsesense.core.levels import classify
from impulsesense.core.scoring import (
    InteractionKind,
    ScoringSignals,
    clamp_score,
    event_delta,
    score_delta,
)
from impulsesense.store.event_log import EventLog

logger = logging.getLogger(__name__)

StateListener = Callable[[ImpulseState], Any]

DEFAULT_INITIAL_SCORE = 0.1
DEFAULT_HIGH_RISK_HOURS = (22, 4)


def is_high_risk_hour(hour: int, start: int = 22, end: int = 4) -> bool:
    """Late-night window check, wrapping past midnight (22:00-04:59 by default)."""
    if start <= end:
        return start <= hour <= end
    return hour >= start or hour <= end


class ImpulseEngine:
    """Owns ImpulseState, the history buffer and the escalation bookkeeping.

    Consumers only ever receive frozen snapshots. The engine never raises on
    numeric input: out-of-range and non-finite values are clamped or ignored.
    """

    DEFAULT_PRODUCT_CONTEXT = "Browsing"
    DEFAULT_BRAND = "Brand"
    CART_REASON = "rapid add to cart + high interest"
    CART_TRIGGER_FLOOR = InterventionLevel.L2_GRAYSCALE

    # Off the catalog, drift stops once the score has settled this low
    IDLE_SCORE_FLOOR = 0.05

    # Interactions ignored while an intervention at or above L3 is showing
    GATED_INTERACTIONS = frozenset({
        InteractionKind.VIEW_PRODUCT,
        InteractionKind.SCROLL,
        InteractionKind.CLICK,
    })

    def __init__(
        self,
        initial_score: float = DEFAULT_INITIAL_SCORE,
        history_capacity: int = DEFAULT_CAPACITY,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], datetime]] = None,
        event_log: Optional[EventLog] = None,
        session_id: str = "",
        high_risk_hours: tuple[int, int] = DEFAULT_HIGH_RISK_HOURS,
    ):
        """Initialize the engine.

        Args:
            initial_score: Starting score (clamped to [0, 1])
            history_capacity: Maximum history samples kept
            rng: Random source for the scoring noise term
            clock: Wall clock used for sample timestamps
            event_log: Optional log receiving engine events
            session_id: Session ID stamped on emitted events
            high_risk_hours: (start, end) hours of the late-night window
        """
        self._rng = rng or random.Random()
        self._clock = clock or datetime.now
        self.event_log = event_log
        self.session_id = session_id

        score = clamp_score(self._finite(initial_score, DEFAULT_INITIAL_SCORE))
        started_at = self._clock()
        self._state = ImpulseState(
            score=score,
            level=classify(score),
            session_high_risk=is_high_risk_hour(started_at.hour, *high_risk_hours),
        )

        self.history = HistoryBuffer(history_capacity)

        # Carried-forward escalation state
        self._previous_level = self._state.level
        self._product: ProductContext | None = None

        self._active_trigger: EventDetail | None = None
        self._intervention_events: list[InterventionEvent] = []
        self._listeners: list[StateListener] = []
        self._tick_count = 0

    # ─────────────────────────────────────────────────────────────────────
    # Read side
    # ─────────────────────────────────────────────────────────────────────

    def get_state(self) -> ImpulseState:
        """Current snapshot (immutable)."""
        return self._state

    @property
    def score(self) -> float:
        return self._state.score

    @property
    def level(self) -> InterventionLevel:
        return self._state.level

    @property
    def product_context(self) -> ProductContext | None:
        """Last viewed product, if any."""
        return self._product

    @property
    def intervention_events(self) -> list[InterventionEvent]:
        """Escalation edges observed so far, oldest first."""
        return list(self._intervention_events)

    @property
    def tick_count(self) -> int:
        return self._tick_count

    def get_history_window(
        self, offset: int = 0, window_size: int = DEFAULT_WINDOW
    ) -> list[HistorySample]:
        """Samples in the viewing window `offset` samples back from live."""
        return self.history.window(offset, window_size)

    def get_active_trigger(self) -> EventDetail | None:
        """Trigger currently selected for the event-detail display."""
        return self._active_trigger

    def select_trigger(self, timestamp: int) -> EventDetail | None:
        """Select a past trigger by sample timestamp (chart dot click).

        Returns None and leaves the selection unchanged if no triggered
        sample with that timestamp is still in history.
        """
        sample = self.history.find(timestamp)
        if sample is None or sample.trigger is None:
            return None
        self._active_trigger = EventDetail.from_sample(sample)
        return self._active_trigger

    def dismiss_trigger(self) -> None:
        """Close the event-detail display."""
        self._active_trigger = None

    def get_status(self) -> dict:
        """Get engine status for diagnostics."""
        return {
            "score": self._state.score,
            "level": self._state.level.name,
            "tick_count": self._tick_count,
            "history_length": len(self.history),
            "interventions": len(self._intervention_events),
            "session_id": self.session_id,
        }

    # ─────────────────────────────────────────────────────────────────────
    # Listeners
    # ─────────────────────────────────────────────────────────────────────

    def add_listener(self, listener: StateListener) -> None:
        """Call `listener(state)` after every mutation."""
        self._listeners.append(listener)

    def remove_listener(self, listener: StateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        state = self._state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                logger.warning("State listener failed", exc_info=True)
                self.emit(EventKind.ERROR, {"source": "listener", "error": str(e)})

    # ─────────────────────────────────────────────────────────────────────
    # Periodic tick
    # ─────────────────────────────────────────────────────────────────────

    def tick(self) -> HistorySample:
        """Advance the engine by one period.

        Below L3 the score drifts by `score_delta`, except off the catalog
        once it has settled at IDLE_SCORE_FLOOR or lower. At L3 and above it
        is frozen until an acknowledgment reduces it.

        Returns:
            The history sample appended for this tick
        """
        self._tick_count += 1
        state = self._state
        frozen = state.level >= InterventionLevel.L3_BREATHING
        idle = not state.is_shopping and state.score <= self.IDLE_SCORE_FLOOR

        if not frozen and not idle:
            signals = ScoringSignals(
                scroll_fast=state.is_shopping,
                click_rapid=False,
                intervention_active=state.level > InterventionLevel.L0_NORMAL,
            )
            delta = score_delta(state.score, signals, self._rng)
            self._set_score(state.score + delta)

        level = self._state.level
        now = self._clock()

        trigger = None
        if level > self._previous_level and level > InterventionLevel.L0_NORMAL:
            trigger = self._build_trigger(level, self._tick_reason(level), now)
            self._record_escalation(self._previous_level, trigger, now)

        sample = self._append_sample(now, trigger)
        self._previous_level = level

        self.emit(
            EventKind.ENGINE_TICK,
            {
                "tick": self._tick_count,
                "score": self._state.score,
                "level": int(level),
                "frozen": frozen,
            },
        )
        self._notify()
        return sample

    def _tick_reason(self, level: InterventionLevel) -> str:
        product = self._product_title()
        if level >= InterventionLevel.L4_MICRO_LOCK:
            return f"rapid browsing + repeated visits to {self._product_brand()}"
        if level >= InterventionLevel.L3_BREATHING:
            return f"high intensity interaction with {product}"
        return f"extended viewing of {product}"

    # ─────────────────────────────────────────────────────────────────────
    # Discrete events
    # ─────────────────────────────────────────────────────────────────────

    def set_shopping(self, active: bool) -> ImpulseState:
        """Mark the catalog view as active or inactive."""
        if self._state.is_shopping != bool(active):
            self._state = self._state.model_copy(update={"is_shopping": bool(active)})
            self._notify()
        return self._state

    def clear_product_context(self) -> None:
        """Forget the current product (user navigated away from the catalog)."""
        self._product = None

    def notify_product_viewed(
        self, product: ProductContext | dict[str, Any]
    ) -> ImpulseState:
        """Record the viewed product as trigger context and apply its delta."""
        context = self._coerce_product(product)
        if context is None:
            return self._state

        self._product = context
        self.emit(
            EventKind.PRODUCT_VIEWED,
            {"product_id": context.id, "title": context.title, "brand": context.brand},
        )
        return self.apply_event(InteractionKind.VIEW_PRODUCT)

    def notify_scroll(self) -> ImpulseState:
        return self.apply_event(InteractionKind.SCROLL)

    def notify_click(self) -> ImpulseState:
        return self.apply_event(InteractionKind.CLICK)

    def notify_add_to_cart(
        self, product: ProductContext | dict[str, Any] | None = None
    ) -> ImpulseState:
        """Apply the add-to-cart spike.

        `product` names only this cart sample's trigger; later tick triggers
        still report the last viewed product.
        """
        cart_product = self._coerce_product(product) if product is not None else None
        return self.apply_event(InteractionKind.ADD_TO_CART, cart_product=cart_product)

    def _coerce_product(
        self, product: ProductContext | dict[str, Any]
    ) -> ProductContext | None:
        if isinstance(product, ProductContext):
            return product
        try:
            return ProductContext.model_validate(product)
        except ValidationError:
            logger.warning(f"Ignoring malformed product context: {product!r}")
            return None

    def apply_event(
        self,
        kind: InteractionKind | str,
        cart_product: ProductContext | None = None,
    ) -> ImpulseState:
        """Apply a discrete interaction event.

        View, scroll and click are ignored at L3 and above. Add-to-cart is
        always applied and appends its own history sample.

        Returns:
            The resulting state snapshot
        """
        try:
            kind = InteractionKind(kind)
        except ValueError:
            logger.warning(f"Ignoring unknown interaction: {kind!r}")
            return self._state

        if (
            kind in self.GATED_INTERACTIONS
            and self._state.level >= InterventionLevel.L3_BREATHING
        ):
            self.emit(
                EventKind.INTERACTION_IGNORED,
                {"kind": kind.value, "score": self._state.score, "level": int(self._state.level)},
            )
            return self._state

        self._set_score(self._state.score + event_delta(kind))

        payload = {"kind": kind.value, "score": self._state.score, "level": int(self._state.level)}
        if kind == InteractionKind.ADD_TO_CART:
            product = cart_product or self._product
            self._record_cart_sample(product)
            if product is not None:
                payload["product_id"] = product.id
                payload["brand"] = product.brand

        self.emit(EventKind.INTERACTION_APPLIED, payload)
        self._notify()
        return self._state

    def _record_cart_sample(self, product: ProductContext | None) -> None:
        """Append the immediate cart-add sample.

        The reported trigger level is floored to L2; the score is not.
        """
        level = self._state.level
        now = self._clock()
        trigger = self._build_trigger(
            max(level, self.CART_TRIGGER_FLOOR), self.CART_REASON, now, product=product
        )

        if level > self._previous_level and level > InterventionLevel.L0_NORMAL:
            self._record_escalation(self._previous_level, trigger, now, level=level)

        self._append_sample(now, trigger)
        self._previous_level = level

    # ─────────────────────────────────────────────────────────────────────
    # Acknowledgments
    # ─────────────────────────────────────────────────────────────────────

    def reduce_score(self, amount: float) -> ImpulseState:
        """Lower the score by `amount` and reclassify immediately.

        Negative or non-finite amounts are treated as zero.
        """
        amount = max(0.0, self._finite(amount, 0.0))
        self._set_score(self._state.score - amount)

        self.emit(
            EventKind.SCORE_REDUCED,
            {"amount": amount, "score": self._state.score, "level": int(self._state.level)},
        )
        logger.info(
            f"Score reduced by {amount:.2f} -> {self._state.score:.2f} "
            f"({self._state.level.name})"
        )
        self._notify()
        return self._state

    # ─────────────────────────────────────────────────────────────────────
    # Internals
    # ─────────────────────────────────────────────────────────────────────

    def _set_score(self, value: float) -> None:
        score = clamp_score(self._finite(value, self._state.score))
        self._state = self._state.model_copy(
            update={"score": score, "level": classify(score)}
        )

    @staticmethod
    def _finite(value: float, fallback: float) -> float:
        try:
            value = float(value)
        except (TypeError, ValueError):
            return fallback
        if not math.isfinite(value):
            return fallback
        return value

    def _product_title(self) -> str:
        return self._product.title if self._product else self.DEFAULT_PRODUCT_CONTEXT

    def _product_brand(self) -> str:
        if self._product and self._product.brand:
            return self._product.brand
        return self.DEFAULT_BRAND

    def _build_trigger(
        self,
        level: InterventionLevel,
        reason: str,
        now: datetime,
        product: ProductContext | None = None,
    ) -> TriggerInfo:
        return TriggerInfo(
            level=level,
            product_context=product.title if product else self._product_title(),
            reason=reason,
            display_time=now.strftime("%H:%M"),
        )

    def _append_sample(
        self, now: datetime, trigger: TriggerInfo | None
    ) -> HistorySample:
        sample = HistorySample(
            timestamp=int(now.timestamp() * 1000),
            excitement=min(10.0, self._state.excitement),
            trigger=trigger,
        )
        self.history.append(sample)
        if trigger is not None:
            self._active_trigger = EventDetail.from_sample(sample)
        return sample

    def _record_escalation(
        self,
        from_level: InterventionLevel,
        trigger: TriggerInfo,
        now: datetime,
        level: InterventionLevel | None = None,
    ) -> None:
        level = trigger.level if level is None else level
        event = InterventionEvent(
            id=str(uuid.uuid4()),
            timestamp=now.isoformat(),
            level=level,
        )
        self._intervention_events.append(event)

        logger.info(
            f"Escalation {from_level.name} -> {level.name}: {trigger.reason}"
        )
        self.emit(
            EventKind.ESCALATION_DETECTED,
            {
                "id": event.id,
                "from_level": int(from_level),
                "level": int(level),
                "reason": trigger.reason,
                "product_context": trigger.product_context,
            },
        )

    def emit(self, kind: EventKind, payload: dict) -> None:
        """Record an event in the attached log, if any."""
        if self.event_log is not None:
            self.event_log.record(self.session_id, kind, payload)
