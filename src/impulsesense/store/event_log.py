"""Event log - in-memory record of everything a session reported."""

import logging
import time
from typing import Any, Callable, Iterator

from impulsesense.contracts.events import EngineEvent, EventKind

logger = logging.getLogger(__name__)

EventSubscriber = Callable[[EngineEvent], Any]


class EventLog:
    """Single-writer append-only event log.

    Session state is never persisted; the log lives for the lifetime of
    the process and feeds projections (analytics, browsing).

    Invariants:
    - seq is monotonically increasing across the whole log
    - Events are never deleted or modified
    """

    def __init__(self) -> None:
        self._events: list[EngineEvent] = []
        self._seq = 0
        self._subscribers: list[EventSubscriber] = []

    def record(
        self,
        session_id: str,
        kind: EventKind,
        payload: dict[str, Any] | None = None,
    ) -> EngineEvent:
        """Create an event with the next sequence number and append it."""
        event = EngineEvent(
            session_id=session_id,
            seq=self._seq,
            ts_monotonic=time.monotonic(),
            kind=kind,
            payload=payload or {},
        )
        self.append(event)
        return event

    def append(self, event: EngineEvent) -> None:
        """Append a prebuilt event and notify subscribers."""
        self._events.append(event)
        self._seq = max(self._seq, event.seq + 1)

        for subscriber in list(self._subscribers):
            try:
                subscriber(event)
            except Exception:
                logger.warning(
                    f"Event subscriber failed on {event.kind.value}", exc_info=True
                )

    def subscribe(self, subscriber: EventSubscriber) -> None:
        """Call `subscriber` for every event appended from now on."""
        self._subscribers.append(subscriber)

    def unsubscribe(self, subscriber: EventSubscriber) -> None:
        """Stop notifying a subscriber."""
        if subscriber in self._subscribers:
            self._subscribers.remove(subscriber)

    def query(
        self,
        kind: EventKind | None = None,
        session_id: str | None = None,
    ) -> list[EngineEvent]:
        """Get events, optionally filtered by kind and session."""
        return [
            e for e in self._events
            if (kind is None or e.kind == kind)
            and (session_id is None or e.session_id == session_id)
        ]

    def last(self, kind: EventKind | None = None) -> EngineEvent | None:
        """Most recent event, optionally of one kind."""
        for event in reversed(self._events):
            if kind is None or event.kind == kind:
                return event
        return None

    def count_by_kind(self) -> dict[str, int]:
        """Get event counts by kind."""
        counts: dict[str, int] = {}
        for event in self._events:
            counts[event.kind.value] = counts.get(event.kind.value, 0) + 1
        return counts

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[EngineEvent]:
        return iter(list(self._events))
