"""
Scenario Playback

Reads YAML scenario files and plays them against an ImpulseSession in
fast-forward mode: ticks are executed back to back instead of once per
second, and the breathing routine runs with a zero time scale.

Scenario YAML format:
```yaml
name: late night spree
seed: 7
steps:
  - shopping: true
  - view: {id: 1, title: "Air Max 90", brand: "Nike"}
  - scroll: 20
  - tick: 5
  - add_to_cart
  - breathe
  - type_phrase: "i can wait"   # bare `type_phrase` types the configured phrase
  - unlock
```
"""

import logging
import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from impulsesense.contracts.state import HistorySample, ImpulseState, ProductContext
from impulsesense.core.session import ImpulseSession

logger = logging.getLogger(__name__)


class ScenarioError(ValueError):
    """Raised when a scenario file cannot be parsed."""


# Products used by random walks and the dashboard's view/cart keys
DEMO_CATALOG = [
    ProductContext(id=1, title="Air Max 90", brand="Nike"),
    ProductContext(id=2, title="Ultraboost 22", brand="Adidas"),
    ProductContext(id=3, title="Classic Leather", brand="Reebok"),
    ProductContext(id=4, title="Chuck Taylor", brand="Converse"),
    ProductContext(id=5, title="Gel-Kayano 30", brand="Asics"),
]

# Relative weights of random-walk steps between ticks
RANDOM_WALK_WEIGHTS = {
    "view": 6,
    "scroll": 10,
    "click": 4,
    "add_to_cart": 1,
    "breathe": 1,
    "unlock": 1,
    "emergency_unlock": 1,
}


ACTIONS = frozenset({
    "tick",
    "view",
    "scroll",
    "click",
    "add_to_cart",
    "shopping",
    "home",
    "breathe",
    "type_phrase",
    "unlock",
    "emergency_unlock",
})


@dataclass
class ScenarioStep:
    """A single step from a scenario file."""

    action: str
    value: Any = None
    index: int = 0

    @classmethod
    def from_raw(cls, raw: Any, index: int) -> "ScenarioStep":
        """Parse a step written either as `action` or `{action: value}`."""
        if isinstance(raw, str):
            action, value = raw, None
        elif isinstance(raw, dict) and len(raw) == 1:
            action, value = next(iter(raw.items()))
        else:
            raise ScenarioError(f"Step {index}: expected 'action' or {{action: value}}, got {raw!r}")

        if action not in ACTIONS:
            raise ScenarioError(f"Step {index}: unknown action '{action}'")

        if action == "view" and not isinstance(value, dict):
            raise ScenarioError(f"Step {index}: 'view' needs a product mapping")

        return cls(action=action, value=value, index=index)

    @property
    def count(self) -> int:
        """Repeat count for tick / scroll / click steps."""
        if self.value is None:
            return 1
        return max(0, int(self.value))


@dataclass
class Scenario:
    """A parsed scenario."""

    name: str
    steps: list[ScenarioStep]
    seed: int | None = None

    @classmethod
    def from_dict(cls, data: dict, default_name: str = "scenario") -> "Scenario":
        if not isinstance(data, dict):
            raise ScenarioError("Scenario must be a mapping with a 'steps' list")

        raw_steps = data.get("steps")
        if not isinstance(raw_steps, list):
            raise ScenarioError("Scenario must contain a 'steps' list")

        return cls(
            name=str(data.get("name", default_name)),
            steps=[ScenarioStep.from_raw(raw, i + 1) for i, raw in enumerate(raw_steps)],
            seed=data.get("seed"),
        )

    @classmethod
    def load(cls, path: str | Path) -> "Scenario":
        """Load a scenario from a YAML file."""
        path = Path(path)
        try:
            data = yaml.safe_load(path.read_text())
        except yaml.YAMLError as e:
            raise ScenarioError(f"Invalid YAML in {path}: {e}") from e
        return cls.from_dict(data, default_name=path.stem)

    @classmethod
    def random_walk(cls, ticks: int, seed: int | None = None) -> "Scenario":
        """Generate a shopping session of `ticks` seconds with random interactions.

        Acknowledgment steps are mixed in; they do nothing unless the
        matching intervention is showing.
        """
        rng = random.Random(seed)
        actions = list(RANDOM_WALK_WEIGHTS)
        weights = list(RANDOM_WALK_WEIGHTS.values())

        raw_steps: list[Any] = [{"shopping": True}]
        for _ in range(max(0, ticks)):
            # Roughly one interaction every other second
            if rng.random() < 0.5:
                action = rng.choices(actions, weights)[0]
                if action == "view":
                    raw_steps.append({"view": rng.choice(DEMO_CATALOG).model_dump()})
                elif action == "unlock":
                    raw_steps.append("type_phrase")
                    raw_steps.append("unlock")
                else:
                    raw_steps.append(action)
            raw_steps.append("tick")

        return cls.from_dict(
            {"name": f"random-{ticks}", "seed": seed, "steps": raw_steps}
        )


@dataclass
class ScenarioResult:
    """Outcome of a scenario run."""

    name: str
    steps_run: int = 0
    final_state: ImpulseState | None = None
    triggers: list[HistorySample] = field(default_factory=list)
    outcomes: list[str] = field(default_factory=list)


class ScenarioPlayer:
    """Plays a scenario against a session in fast-forward mode."""

    def __init__(self, scenario: Scenario, session: ImpulseSession | None = None):
        self.scenario = scenario
        self.session = session or ImpulseSession(
            rng=random.Random(scenario.seed) if scenario.seed is not None else None,
            breathing_time_scale=0.0,
        )

    async def run(self) -> ScenarioResult:
        """Execute every step, then tear the session's gating down."""
        session = self.session
        engine = session.engine
        gating = session.interventions
        result = ScenarioResult(name=self.scenario.name)

        gating.update(engine.level)

        try:
            for step in self.scenario.steps:
                outcome = await self._run_step(step)
                result.steps_run += 1
                result.outcomes.append(
                    f"{step.index:>3} {step.action:<16} {outcome} "
                    f"score={engine.score:.3f} level={engine.level.name}"
                )
                logger.debug(result.outcomes[-1])
        finally:
            await session.stop()

        result.final_state = engine.get_state()
        result.triggers = engine.history.triggers()
        return result

    async def _run_step(self, step: ScenarioStep) -> str:
        engine = self.session.engine
        gating = self.session.interventions

        match step.action:
            case "tick":
                for _ in range(step.count):
                    engine.tick()
                return f"x{step.count}"

            case "view":
                engine.notify_product_viewed(step.value)
                return str(step.value.get("title", ""))

            case "scroll":
                for _ in range(step.count):
                    engine.notify_scroll()
                return f"x{step.count}"

            case "click":
                for _ in range(step.count):
                    engine.notify_click()
                return f"x{step.count}"

            case "add_to_cart":
                engine.notify_add_to_cart(step.value if isinstance(step.value, dict) else None)
                return "added"

            case "shopping":
                engine.set_shopping(bool(step.value))
                return "on" if step.value else "off"

            case "home":
                engine.set_shopping(False)
                engine.clear_product_context()
                return "home"

            case "breathe":
                routine = gating.breathing
                if routine is None:
                    return "no routine"
                gating.start_breathing()
                completed = await routine.wait()
                return "completed" if completed else "cancelled"

            case "type_phrase":
                # Without a value, type the configured phrase
                text = gating.unlock_phrase if step.value is None else str(step.value)
                enabled = gating.enter_phrase(text)
                return "unlock enabled" if enabled else "unlock disabled"

            case "unlock":
                return "unlocked" if gating.unlock() else "locked"

            case "emergency_unlock":
                return "unlocked" if gating.emergency_unlock() else "not in safe mode"

        return "skipped"
