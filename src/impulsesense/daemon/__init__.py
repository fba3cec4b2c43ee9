"""Engine daemon - periodic background ticking."""

from impulsesense.daemon.ticker import EngineDaemon

__all__ = ["EngineDaemon"]
