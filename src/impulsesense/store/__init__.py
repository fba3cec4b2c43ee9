"""ImpulseSense Store - in-memory event log and projections."""

from impulsesense.store.event_log import EventLog
from impulsesense.store.projections.base import Projection
from impulsesense.store.projections.analytics import InterventionAnalyticsProjection
from impulsesense.store.projections.browsing import BrowsingProjection

__all__ = [
    "EventLog",
    "Projection",
    "InterventionAnalyticsProjection",
    "BrowsingProjection",
]
