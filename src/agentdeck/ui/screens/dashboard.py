"""
DashboardScreen — live table of every tracked agent session.

Widget tree::

    Header
    #dashboard-root  (Vertical)
      #dashboard-summary  (Label)
      #sessions-table     (DataTable, one row per session, killed last)
      #session-views      (Vertical of SessionView panels)
    Footer

Keybindings:
  enter   — open the selected session in a view
  g       — refresh now
  k       — kill (end the transport's input)
  c       — create a session from a profile
  R       — restart with the resolved profile
  D       — delete all killed sessions
  m / v   — set mode / set model
  i       — interrupt the current turn
  t       — view logged traffic
  l       — toggle traffic logging
  q, esc  — close the dashboard

The screen owns no refresh logic: it hands its ``set_interval`` to the
:class:`~agentdeck.ui.dashboard.Dashboard` and redraws whatever rows come back.
"""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import Screen
from textual.widgets import DataTable, Footer, Header, Label
from textual.widgets.data_table import CellDoesNotExist, RowDoesNotExist

from agentdeck.core.exceptions import StaleHandleError
from agentdeck.core.session.models import SessionSnapshot
from agentdeck.ui.components.session_view import SessionView
from agentdeck.ui.dashboard import Dashboard
from agentdeck.ui.placement import PlacementKind, choose_placement
from agentdeck.ui.polling import count_killed, summarize
from agentdeck.ui.screens.modals import ChoiceModal, ConfirmModal, TrafficModal
from agentdeck.ui.services import Action, ActionResult
from agentdeck.ui.state import Entry, category_label, category_severity, severity_style

_COLUMNS = ("Name", "Status", "Mode", "Model", "Perms", "Path")


def _status_text(entry: Entry) -> Text:
    style = severity_style(category_severity(entry.category))
    return Text(category_label(entry.category), style=style)


def _summary_line(entries: list[Entry], logging_on: bool) -> str:
    if not entries:
        text = "No sessions.  Press [b]c[/b] to start one."
    else:
        counts = summarize(entries)
        parts = [f"{counts['total']} session(s)"]
        for key in ("working", "waiting", "ready"):
            if counts.get(key):
                parts.append(f"{counts[key]} {key}")
        killed = count_killed(entries)
        if killed:
            parts.append(f"[red]{killed} killed[/red]")
        text = "  ·  ".join(parts)
    logging_state = "[green]on[/green]" if logging_on else "[dim]off[/dim]"
    return f"{text}    traffic logging: {logging_state}"


class DashboardScreen(Screen):
    """Session dashboard. Opening the screen opens the dashboard; leaving closes it."""

    BINDINGS = [
        Binding("enter", "goto", "Open", show=True),
        Binding("g", "refresh", "Refresh", show=True),
        Binding("k", "kill", "Kill", show=True),
        Binding("c", "create", "Create", show=True),
        Binding("R", "restart", "Restart", show=True),
        Binding("D", "delete_killed", "Delete killed", show=True),
        Binding("m", "set_mode", "Mode", show=True),
        Binding("v", "set_model", "Model", show=True),
        Binding("i", "interrupt", "Interrupt", show=True),
        Binding("t", "view_traffic", "Traffic", show=True),
        Binding("l", "toggle_logging", "Logging", show=False),
        Binding("q", "close", "Close", show=True),
        Binding("escape", "close", "Close", show=False),
    ]

    def __init__(self, dashboard: Dashboard) -> None:
        super().__init__()
        self.dashboard = dashboard

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Vertical(id="dashboard-root"):
            yield Label("", id="dashboard-summary")
            table: DataTable = DataTable(id="sessions-table", cursor_type="row")
            table.add_columns(*_COLUMNS)
            yield table
            yield Vertical(id="session-views")
        yield Footer()

    def on_mount(self) -> None:
        self.dashboard.set_renderer(self.render_entries)
        self.dashboard.set_call_later(lambda delay, callback: self.set_timer(delay, callback))
        self.dashboard.open(self.set_interval)
        self.query_one("#sessions-table", DataTable).focus()

    def on_unmount(self) -> None:
        self.dashboard.close()
        self.dashboard.set_renderer(None)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render_entries(self, entries: list[Entry]) -> None:
        table = self.query_one("#sessions-table", DataTable)
        selected = self.selected_handle()
        table.clear()
        for entry in entries:
            table.add_row(
                entry.name,
                _status_text(entry),
                entry.mode,
                entry.model,
                entry.pending_display,
                entry.path,
                key=entry.handle,
            )
        if selected is not None:
            try:
                table.move_cursor(row=table.get_row_index(selected))
            except RowDoesNotExist:
                pass
        self.query_one("#dashboard-summary", Label).update(
            _summary_line(entries, self.dashboard.registry.logging_enabled)
        )
        self._refresh_views()

    def _refresh_views(self) -> None:
        registry = self.dashboard.registry
        for view in list(self.query(SessionView)):
            if view.handle is None:
                continue
            if not registry.is_live(view.handle):
                view.remove()
                continue
            view.render_snapshot(registry.snapshot(view.handle))

    def selected_handle(self) -> str | None:
        table = self.query_one("#sessions-table", DataTable)
        if table.row_count == 0:
            return None
        try:
            row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        except CellDoesNotExist:
            return None
        return row_key.value

    def _open_view(self, snapshot: SessionSnapshot) -> None:
        views = list(self.query(SessionView))
        placement = choose_placement(snapshot.handle, [v.handle for v in views])
        if placement.kind == PlacementKind.NEW:
            view = SessionView(snapshot.handle)
            self.query_one("#session-views", Vertical).mount(view)
        else:
            view = views[placement.index or 0]
            view.show(snapshot.handle)
        view.render_snapshot(snapshot)
        view.focus()

    # ------------------------------------------------------------------
    # Dispatch helpers
    # ------------------------------------------------------------------

    def _dispatch(
        self,
        action: Action,
        handle: str | None = None,
        *,
        confirmed: bool | None = None,
        value: str | None = None,
        targets: list[str] | None = None,
    ) -> ActionResult:
        result = self.dashboard.dispatch(
            action, handle, confirmed=confirmed, value=value, targets=targets
        )
        if result.stale:
            self.dashboard.tick()
        if result.ok and not result.cancelled:
            if action == Action.GOTO and result.payload is not None:
                self._open_view(result.payload)
            elif action == Action.VIEW_TRAFFIC and handle is not None:
                self.app.push_screen(
                    TrafficModal(
                        self._name_for(handle),
                        result.payload or [],
                        self.dashboard.registry.logging_enabled,
                    )
                )
        if result.message:
            self.notify(result.message, severity=result.severity)  # type: ignore[arg-type]
        return result

    def _confirm_then(self, action: Action, handle: str | None = None) -> None:
        """Ask first when the action needs it, then dispatch with the answer."""
        if handle is not None and not self.dashboard.registry.is_live(handle):
            self._dispatch(action, handle)
            return
        actions = self.dashboard.actions
        # The answer covers exactly the killed sessions counted in the question
        targets = actions.killed_handles() if action == Action.DELETE_KILLED else None
        prompt = actions.confirmation_prompt(action, handle, targets=targets)
        if prompt is None:
            self._dispatch(action, handle, confirmed=True, targets=targets)
            return

        def _answered(ok: bool | None) -> None:
            self._dispatch(action, handle, confirmed=bool(ok), targets=targets)

        self.app.push_screen(ConfirmModal(prompt), _answered)

    def _choose_then(
        self,
        action: Action,
        handle: str | None,
        title: str,
        choices: list[tuple[str, str]],
        current: str | None,
    ) -> None:
        def _chosen(value: str | None) -> None:
            if value is not None:
                self._dispatch(action, handle, value=value)

        self.app.push_screen(ChoiceModal(title, choices, current), _chosen)

    def _target(self) -> str | None:
        handle = self.selected_handle()
        if handle is None:
            self.notify("No session selected", severity="warning")
        return handle

    def _name_for(self, handle: str) -> str:
        return self.dashboard.registry.snapshot(handle).display_name or handle[:8]

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        self._dispatch(Action.GOTO, event.row_key.value)

    def action_goto(self) -> None:
        if (handle := self._target()) is not None:
            self._dispatch(Action.GOTO, handle)

    def action_refresh(self) -> None:
        self.dashboard.tick()

    def action_kill(self) -> None:
        if (handle := self._target()) is not None:
            self._confirm_then(Action.KILL, handle)

    def action_restart(self) -> None:
        if (handle := self._target()) is not None:
            self._confirm_then(Action.RESTART, handle)

    def action_delete_killed(self) -> None:
        self._confirm_then(Action.DELETE_KILLED)

    def action_create(self) -> None:
        choices = self.dashboard.actions.profile_choices()
        if len(choices) <= 1:
            self._dispatch(Action.CREATE, value=choices[0][0] if choices else None)
            return
        current = self.dashboard.config.default_profile or self.dashboard.profiles.get_default()
        self._choose_then(Action.CREATE, None, "Start agent", choices, current)

    def action_set_mode(self) -> None:
        handle = self._target()
        if handle is None:
            return
        try:
            choices = self.dashboard.actions.mode_choices(handle)
        except StaleHandleError:
            self._dispatch(Action.SET_MODE, handle)
            return
        if not choices:
            self.notify("This session offers no modes", severity="warning")
            return
        meta = self.dashboard.registry.snapshot(handle).meta
        self._choose_then(
            Action.SET_MODE, handle, "Mode", choices, meta.mode_id if meta else None
        )

    def action_set_model(self) -> None:
        handle = self._target()
        if handle is None:
            return
        try:
            choices = self.dashboard.actions.model_choices(handle)
        except StaleHandleError:
            self._dispatch(Action.SET_MODEL, handle)
            return
        if not choices:
            self.notify("This session offers no models", severity="warning")
            return
        meta = self.dashboard.registry.snapshot(handle).meta
        self._choose_then(
            Action.SET_MODEL, handle, "Model", choices, meta.model_id if meta else None
        )

    def action_interrupt(self) -> None:
        if (handle := self._target()) is not None:
            self._dispatch(Action.INTERRUPT, handle)

    def action_view_traffic(self) -> None:
        if (handle := self._target()) is not None:
            self._dispatch(Action.VIEW_TRAFFIC, handle)

    def action_toggle_logging(self) -> None:
        self._dispatch(Action.TOGGLE_LOGGING)

    def action_close(self) -> None:
        self.dashboard.close()
        self.app.pop_screen()
