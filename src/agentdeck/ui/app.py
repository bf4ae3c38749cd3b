"""
agentdeck UI — Textual application shell.

Launched by ``agentdeck ui``.  The app owns the session registry for the
lifetime of the process; the dashboard is a screen toggled over an idle
placeholder with ``ctrl+d``.
"""

from __future__ import annotations

from collections.abc import Sequence
from importlib.resources import files

import structlog
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.screen import ModalScreen
from textual.widgets import Footer, Header, Static

from agentdeck import __version__
from agentdeck.core.config import AgentDeckConfig, load_config_or_default
from agentdeck.core.profile import ProfileStore
from agentdeck.core.session.manager import SessionRegistry
from agentdeck.ui.dashboard import Dashboard
from agentdeck.ui.screens.dashboard import DashboardScreen
from agentdeck.ui.services import Action

logger = structlog.get_logger()

_CSS_TEXT: str = files("agentdeck.ui.css").joinpath("agentdeck.tcss").read_text("utf-8")

_IDLE_TEXT = (
    "[b]agentdeck[/b]\n\n"
    "Press [b]ctrl+d[/b] to open the session dashboard, [b]ctrl+c[/b] to quit."
)


class AgentDeckApp(App):  # type: ignore[type-arg]
    """agentdeck interactive terminal UI."""

    TITLE = f"agentdeck {__version__}"
    CSS = _CSS_TEXT

    BINDINGS = [
        Binding("ctrl+c", "app.quit", "Quit", show=False, priority=True),
        Binding("ctrl+d", "toggle_dashboard", "Dashboard", show=True, priority=True),
    ]

    def __init__(
        self,
        config: AgentDeckConfig | None = None,
        *,
        registry: SessionRegistry | None = None,
        profiles: ProfileStore | None = None,
        start_profiles: Sequence[str] = (),
    ) -> None:
        super().__init__()
        self.config = config or load_config_or_default()
        self.registry = registry if registry is not None else SessionRegistry()
        self.profiles = profiles if profiles is not None else ProfileStore()
        self.dashboard = Dashboard(self.registry, self.profiles, config=self.config)
        self._start_profiles = list(start_profiles)

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static(_IDLE_TEXT, id="idle")
        yield Footer()

    def on_mount(self) -> None:
        self.registry.set_call_later(lambda delay, callback: self.set_timer(delay, callback))
        for name in self._start_profiles:
            result = self.dashboard.dispatch(Action.CREATE, value=name)
            if result.message:
                self.notify(result.message, severity=result.severity)  # type: ignore[arg-type]
        if self._start_profiles:
            self.action_toggle_dashboard()

    def on_unmount(self) -> None:
        self.dashboard.close()
        self.registry.set_call_later(None)
        destroyed = self.registry.shutdown()
        logger.info("app_exit", sessions_destroyed=destroyed)

    def action_toggle_dashboard(self) -> None:
        if not self.dashboard.is_open:
            self.push_screen(DashboardScreen(self.dashboard))
            return
        self.dashboard.close()
        while isinstance(self.screen, ModalScreen):
            self.pop_screen()
        if isinstance(self.screen, DashboardScreen):
            self.pop_screen()


def run(
    config: AgentDeckConfig | None = None,
    start_profiles: Sequence[str] = (),
) -> None:
    """Entry point called from the CLI."""
    AgentDeckApp(config, start_profiles=start_profiles).run()
