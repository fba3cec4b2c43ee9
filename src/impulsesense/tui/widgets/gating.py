"""Gating panel - renders the active intervention and trigger detail."""

from rich.text import Text
from textual.widgets import Static

from impulsesense.contracts.state import EventDetail
from impulsesense.interventions.breathing import BreathingRoutine
from impulsesense.interventions.manager import ActiveIntervention, InterventionKind
from impulsesense.tui.theme import COLOR_MUTED, level_color


class InterventionPanel(Static):
    """What the gating layer is showing right now."""

    DEFAULT_CSS = """
    InterventionPanel {
        height: auto;
        min-height: 5;
        border: solid $warning;
        padding: 0 1;
    }
    """

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.border_title = "INTERVENTION"
        self._active: ActiveIntervention | None = None
        self._breathing: BreathingRoutine | None = None
        self._camera = False

    def set_intervention(
        self,
        active: ActiveIntervention,
        breathing: BreathingRoutine | None = None,
        camera: bool = False,
    ) -> None:
        self._active = active
        self._breathing = breathing
        self._camera = camera
        self.refresh()

    def render(self) -> Text:
        active = self._active
        text = Text()

        if active is None or active.kind == InterventionKind.NONE:
            text.append("No intervention", style=COLOR_MUTED)
            return text

        style = level_color(active.level)

        if active.kind == InterventionKind.GRAYSCALE:
            text.append("Display desaturated", style=f"italic {style}")
            return text

        if active.blocking:
            text.append("■ ", style=f"bold {style}")
        text.append(active.title, style=f"bold {style}")
        if active.message:
            text.append(f"\n{active.message}")

        breathing = self._breathing
        if active.kind == InterventionKind.BREATHING and breathing is not None:
            text.append(f"\n{breathing.phase.value.upper():<8}", style="bold")
            text.append(f" {breathing.countdown_label}")

        if active.action_label:
            action_style = "bold reverse" if active.action_enabled else "dim"
            text.append(f"\n[ {active.action_label} ]", style=action_style)

        if self._camera and active.blocking:
            text.append("\n(camera overlay)", style=COLOR_MUTED)

        return text


class TriggerDetail(Static):
    """Event detail card for the selected trigger."""

    DEFAULT_CSS = """
    TriggerDetail {
        height: auto;
        min-height: 4;
        border: solid $accent;
        padding: 0 1;
    }
    """

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.border_title = "TRIGGER"
        self._detail: EventDetail | None = None

    def set_detail(self, detail: EventDetail | None) -> None:
        self._detail = detail
        self.refresh()

    def render(self) -> Text:
        detail = self._detail
        text = Text()

        if detail is None:
            text.append("No trigger selected", style=COLOR_MUTED)
            return text

        trigger = detail.trigger
        text.append(f"{detail.level_label}", style=f"bold {level_color(trigger.level)}")
        text.append(f"  {trigger.display_time}\n", style=COLOR_MUTED)
        text.append(f"{trigger.product_context}\n", style="bold")
        text.append(trigger.reason)
        if detail.vibrate:
            text.append("  (haptic)", style=COLOR_MUTED)

        return text
