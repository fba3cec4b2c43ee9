"""Input adapters - scripted interaction playback."""

from impulsesense.adapters.scenario import (
    Scenario,
    ScenarioError,
    ScenarioPlayer,
    ScenarioResult,
    ScenarioStep,
)

__all__ = [
    "Scenario",
    "ScenarioError",
    "ScenarioPlayer",
    "ScenarioResult",
    "ScenarioStep",
]
