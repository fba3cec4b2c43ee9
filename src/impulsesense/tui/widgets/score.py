"""Score display widget - impulse score bar with level badge."""

from rich.text import Text
from textual.widgets import Static

from impulsesense.contracts.state import ImpulseState
from impulsesense.tui.theme import BAR_EMPTY, BAR_FILLED, level_color


class ScoreBar(Static):
    """Impulse score as a progress bar, colored by level."""

    DEFAULT_CSS = """
    ScoreBar {
        height: 3;
        border: solid $primary;
        padding: 0 1;
    }
    """

    def __init__(self, state: ImpulseState | None = None, bar_width: int = 30, **kwargs):
        super().__init__(**kwargs)
        self.border_title = "IMPULSE"
        self.bar_width = bar_width
        self._state = state or ImpulseState()

    def set_state(self, state: ImpulseState) -> None:
        """Show a new snapshot."""
        self._state = state
        self.refresh()

    def render(self) -> Text:
        """Render the score bar."""
        state = self._state
        style = level_color(state.level)
        filled = int(state.score * self.bar_width)
        empty = self.bar_width - filled

        text = Text()
        text.append(f"{state.level.display_name:<10}", style=f"bold {style}")
        text.append(" [")
        text.append(BAR_FILLED * filled, style=style)
        text.append(BAR_EMPTY * empty, style="dim")
        text.append("] ")
        text.append(f"{state.score:.2f}", style=style)
        text.append(f"  L{int(state.level)}", style="bold")

        if state.is_shopping:
            text.append("  shopping", style="dim")
        if state.session_high_risk:
            text.append("  late night", style="bold red")

        return text
