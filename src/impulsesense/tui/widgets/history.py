"""History chart widget - excitement sparkline over the viewing window."""

from rich.text import Text
from textual.widgets import Static

from impulsesense.contracts.state import HistorySample
from impulsesense.tui.theme import COLOR_MUTED, COLOR_TRIGGER, level_color, sparkline


class HistoryChart(Static):
    """Excitement history for the current window, with trigger markers."""

    DEFAULT_CSS = """
    HistoryChart {
        height: 6;
        border: solid $secondary;
        padding: 0 1;
    }
    """

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.border_title = "HISTORY"
        self._samples: list[HistorySample] = []
        self._offset = 0
        self._max_offset = 0

    def set_window(
        self, samples: list[HistorySample], offset: int = 0, max_offset: int = 0
    ) -> None:
        """Show a window of samples `offset` samples back from live."""
        self._samples = list(samples)
        self._offset = offset
        self._max_offset = max_offset
        self.refresh()

    def render(self) -> Text:
        """Render sparkline, trigger markers and window position."""
        text = Text()

        if not self._samples:
            text.append("No samples yet", style=COLOR_MUTED)
            return text

        text.append(sparkline([s.excitement for s in self._samples]))
        text.append("\n")

        for sample in self._samples:
            if sample.trigger is None:
                text.append(" ")
            else:
                text.append("●", style=level_color(sample.trigger.level))
        text.append("\n")

        if self._offset == 0:
            text.append("LIVE", style="bold green")
        else:
            text.append(f"-{self._offset}s", style="bold yellow")
        text.append(f"  (scroll 0..{self._max_offset})", style=COLOR_MUTED)

        triggers = sum(1 for s in self._samples if s.trigger is not None)
        if triggers:
            text.append(f"  {triggers} trigger(s)", style=COLOR_TRIGGER)

        return text
