"""Shared plumbing for event-log projections."""

from abc import ABC, abstractmethod
from typing import Iterable

from impulsesense.contracts.events import EngineEvent, EventKind
from impulsesense.store.event_log import EventLog


class Projection(ABC):
    """Derived view over the session event log.

    Subclasses list the event kinds they read in KINDS and fold one event at
    a time in apply(). Any other kind is skipped before apply() is called.
    """

    KINDS: frozenset[EventKind] = frozenset()

    @abstractmethod
    def apply(self, event: EngineEvent) -> None:
        """Fold a single event into the view."""

    @abstractmethod
    def reset(self) -> None:
        """Return to the empty view."""

    def feed(self, event: EngineEvent) -> bool:
        """Apply the event if this projection reads its kind."""
        if event.kind not in self.KINDS:
            return False
        self.apply(event)
        return True

    def rebuild_from(self, events: Iterable[EngineEvent]) -> None:
        """Replay a finished or in-progress session from scratch."""
        self.reset()
        for event in events:
            self.feed(event)

    def follow(self, log: EventLog) -> None:
        """Catch up on `log` and keep applying events as they are appended."""
        self.rebuild_from(log)
        log.subscribe(self.feed)
