"""Projections - derived views from the event log."""

from impulsesense.store.projections.base import Projection
from impulsesense.store.projections.analytics import (
    ANALYTICS_BUCKETS,
    InterventionAnalyticsProjection,
)
from impulsesense.store.projections.browsing import BrowsingProjection

__all__ = [
    "Projection",
    "ANALYTICS_BUCKETS",
    "InterventionAnalyticsProjection",
    "BrowsingProjection",
]
