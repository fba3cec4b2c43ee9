"""ImpulseSense TUI - live dashboard over a running session.

Layout:
- Left: score bar, excitement history, active intervention, phrase input
- Right: selected trigger detail and the session event log
"""

from __future__ import annotations

import random

from textual import on
from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Footer, Header, Input, RichLog

from impulsesense.adapters.scenario import DEMO_CATALOG
from impulsesense.contracts.events import EngineEvent, EventKind
from impulsesense.core.history import DEFAULT_WINDOW
from impulsesense.core.session import ImpulseSession
from impulsesense.tui.widgets import HistoryChart, InterventionPanel, ScoreBar, TriggerDetail

# Events not worth a log line
QUIET_EVENTS = {EventKind.ENGINE_TICK, EventKind.INTERACTION_IGNORED}


def format_event(event: EngineEvent) -> str:
    """One log line for an event."""
    payload = event.payload
    match event.kind:
        case EventKind.ESCALATION_DETECTED:
            return f"[bold red]escalation[/] L{payload.get('from_level')} -> L{payload.get('level')}: {payload.get('reason', '')}"
        case EventKind.PRODUCT_VIEWED:
            return f"viewed {payload.get('title', '?')} ({payload.get('brand') or 'no brand'})"
        case EventKind.INTERACTION_APPLIED:
            return f"{payload.get('kind')} -> {payload.get('score', 0.0):.2f}"
        case EventKind.SCORE_REDUCED:
            return f"[green]score -{payload.get('amount', 0.0):.2f}[/] -> {payload.get('score', 0.0):.2f}"
        case EventKind.INTERVENTION_SHOWN | EventKind.INTERVENTION_CLEARED:
            verb = "shown" if event.kind == EventKind.INTERVENTION_SHOWN else "cleared"
            return f"{payload.get('kind')} {verb}"
        case _:
            return f"{event.kind.value} {payload}"


class ImpulseTUI(App):
    """Live impulse dashboard with keyboard-driven interactions."""

    TITLE = "ImpulseSense"

    CSS = """
    #body {
        height: 1fr;
        padding: 1;
    }

    #left-pane {
        width: 2fr;
        margin-right: 1;
    }

    #right-pane {
        width: 1fr;
    }

    #phrase-input {
        margin-top: 1;
    }

    #event-log {
        height: 1fr;
        border: round $surface;
        background: $panel;
    }
    """

    BINDINGS = [
        ("s", "toggle_shopping", "Shop"),
        ("v", "view_product", "View"),
        ("r", "scroll", "Scroll"),
        ("c", "click", "Click"),
        ("a", "add_to_cart", "Cart"),
        ("h", "home", "Home"),
        ("u", "unlock", "Unlock"),
        ("e", "emergency_unlock", "Emergency"),
        ("d", "dismiss", "Dismiss"),
        ("left", "older", "Older"),
        ("right", "newer", "Newer"),
        ("l", "live", "Live"),
        ("t", "select_trigger", "Trigger"),
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(
        self,
        session: ImpulseSession | None = None,
        rng: random.Random | None = None,
        refresh_interval: float = 0.25,
    ) -> None:
        super().__init__()
        self.session = session or ImpulseSession()
        self.rng = rng or random.Random()
        self.refresh_interval = refresh_interval
        self.window_size = self.session.config.VIEW_WINDOW
        self.history_offset = 0

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)

        with Horizontal(id="body"):
            with Vertical(id="left-pane"):
                yield ScoreBar(id="score-bar")
                yield HistoryChart(id="history-chart")
                yield InterventionPanel(id="intervention-panel")
                yield Input(placeholder=f"Type '{self.session.interventions.unlock_phrase}' to unlock", id="phrase-input")
            with Vertical(id="right-pane"):
                yield TriggerDetail(id="trigger-detail")
                yield RichLog(id="event-log", wrap=True, markup=True)

        yield Footer()

    async def on_mount(self) -> None:
        self.session.event_log.subscribe(self._on_event)
        await self.session.start()
        self.set_interval(self.refresh_interval, self.refresh_view)
        # Keys drive interactions until the phrase input is clicked
        self.set_focus(None)
        self.refresh_view()

    async def on_unmount(self) -> None:
        self.session.event_log.unsubscribe(self._on_event)
        await self.session.stop()

    def _on_event(self, event: EngineEvent) -> None:
        if event.kind in QUIET_EVENTS:
            return
        self.query_one("#event-log", RichLog).write(format_event(event))

    def refresh_view(self) -> None:
        """Redraw every widget from the current session state."""
        engine = self.session.engine
        gating = self.session.interventions

        self.history_offset = engine.history.clamp_offset(self.history_offset)
        window_size = self.window_size or DEFAULT_WINDOW

        self.query_one("#score-bar", ScoreBar).set_state(engine.get_state())
        self.query_one("#history-chart", HistoryChart).set_window(
            engine.get_history_window(self.history_offset, window_size),
            offset=self.history_offset,
            max_offset=engine.history.max_offset(window_size),
        )
        self.query_one("#intervention-panel", InterventionPanel).set_intervention(
            gating.current(),
            breathing=gating.breathing,
            camera=gating.show_camera_overlay,
        )
        self.query_one("#trigger-detail", TriggerDetail).set_detail(engine.get_active_trigger())

    # ─────────────────────────────────────────────────────────────────────
    # Interactions
    # ─────────────────────────────────────────────────────────────────────

    def action_toggle_shopping(self) -> None:
        engine = self.session.engine
        engine.set_shopping(not engine.get_state().is_shopping)
        self.refresh_view()

    def action_view_product(self) -> None:
        self.session.engine.notify_product_viewed(self.rng.choice(DEMO_CATALOG))
        self.refresh_view()

    def action_scroll(self) -> None:
        self.session.engine.notify_scroll()
        self.refresh_view()

    def action_click(self) -> None:
        self.session.engine.notify_click()
        self.refresh_view()

    def action_add_to_cart(self) -> None:
        self.session.engine.notify_add_to_cart()
        self.refresh_view()

    def action_home(self) -> None:
        engine = self.session.engine
        engine.set_shopping(False)
        engine.clear_product_context()
        self.refresh_view()

    @on(Input.Changed, "#phrase-input")
    def on_phrase_changed(self, event: Input.Changed) -> None:
        self.session.interventions.enter_phrase(event.value)
        self.refresh_view()

    @on(Input.Submitted, "#phrase-input")
    def on_phrase_submitted(self, event: Input.Submitted) -> None:
        self.action_unlock()

    def action_unlock(self) -> None:
        if self.session.interventions.unlock():
            self.query_one("#phrase-input", Input).value = ""
        else:
            self.notify("Type the confirmation phrase first", severity="warning")
        self.refresh_view()

    def action_emergency_unlock(self) -> None:
        if not self.session.interventions.emergency_unlock():
            self.notify("Emergency unlock is only available in safe mode", severity="warning")
        self.refresh_view()

    def action_dismiss(self) -> None:
        self.session.interventions.dismiss_notice()
        self.session.engine.dismiss_trigger()
        self.refresh_view()

    # ─────────────────────────────────────────────────────────────────────
    # History navigation
    # ─────────────────────────────────────────────────────────────────────

    def action_older(self) -> None:
        self.history_offset = self.session.engine.history.clamp_offset(self.history_offset + 1)
        self.refresh_view()

    def action_newer(self) -> None:
        self.history_offset = self.session.engine.history.clamp_offset(self.history_offset - 1)
        self.refresh_view()

    def action_live(self) -> None:
        self.history_offset = 0
        self.refresh_view()

    def action_select_trigger(self) -> None:
        """Select the newest trigger in the visible window."""
        engine = self.session.engine
        window = engine.get_history_window(self.history_offset, self.window_size)
        for sample in reversed(window):
            if sample.trigger is not None:
                engine.select_trigger(sample.timestamp)
                break
        else:
            self.notify("No trigger in this window")
        self.refresh_view()
