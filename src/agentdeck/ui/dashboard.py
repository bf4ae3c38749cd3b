"""
Dashboard — one open (or closed) dashboard view over a session registry.

Owns the refresh scheduler and the action dispatcher, so nothing about the
dashboard lives in module-level state.  Textual-free: the screen passes in
its ``set_interval`` as the timer factory and a renderer callback.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

import structlog

from agentdeck.core.config import AgentDeckConfig
from agentdeck.core.profile import ProfileStore
from agentdeck.core.session.manager import SessionBackend
from agentdeck.ui.polling import build_entries
from agentdeck.ui.scheduler import Scheduler, TimerFactory
from agentdeck.ui.services import Action, ActionResult, SessionActions
from agentdeck.ui.state import Entry

logger = structlog.get_logger()

Renderer = Callable[[list[Entry]], None]


class Dashboard:
    def __init__(
        self,
        registry: SessionBackend,
        profiles: ProfileStore | None = None,
        *,
        config: AgentDeckConfig | None = None,
        renderer: Renderer | None = None,
        confirm: Callable[[str], bool] | None = None,
        call_later: Callable[[float, Callable[[], object]], object] | None = None,
    ) -> None:
        self.config = config or AgentDeckConfig()
        self.registry = registry
        self.profiles = profiles if profiles is not None else ProfileStore()
        self.entries: list[Entry] = []
        self._renderer = renderer
        self._open = False
        self.scheduler = Scheduler(self.tick, interval=self.config.dashboard.poll_interval_seconds)
        self.actions = SessionActions(
            registry,
            self.profiles,
            refresh=self.tick,
            confirm=confirm,
            call_later=call_later,
            config=self.config,
        )

    @property
    def is_open(self) -> bool:
        return self._open

    def set_renderer(self, renderer: Renderer | None) -> None:
        self._renderer = renderer

    def set_call_later(self, call_later: Callable[[float, Callable[[], object]], object]) -> None:
        self.actions.set_call_later(call_later)

    # ------------------------------------------------------------------
    # View lifecycle
    # ------------------------------------------------------------------

    def open(self, timer_factory: TimerFactory) -> None:
        """Render once and start the recurring refresh."""
        if self._open:
            return
        self._open = True
        self.tick()
        self.scheduler.start(timer_factory)
        logger.info("dashboard_opened", sessions=len(self.entries))

    def close(self) -> None:
        if not self._open:
            return
        self._open = False
        self.scheduler.stop()
        logger.info("dashboard_closed")

    def toggle(self, timer_factory: TimerFactory) -> bool:
        """Open if closed, close if open. Returns the new open state."""
        if self._open:
            self.close()
        else:
            self.open(timer_factory)
        return self._open

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    def refresh(self) -> list[Entry]:
        """Current rows, killed last. Reads only."""
        return build_entries(self.registry)

    def tick(self) -> list[Entry]:
        """Refresh and hand the rows to the renderer."""
        entries = self.refresh()
        self.entries = entries
        if self._renderer is not None:
            self._renderer(entries)
        return entries

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def dispatch(
        self,
        action: Action,
        handle: str | None = None,
        *,
        confirmed: bool | None = None,
        value: str | None = None,
        targets: Sequence[str] | None = None,
    ) -> ActionResult:
        return self.actions.dispatch(
            action, handle, confirmed=confirmed, value=value, targets=targets
        )
