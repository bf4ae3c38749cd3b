"""
SessionView — detail panel for one tracked session.

The dashboard mounts these under ``#session-views`` when a row is opened.
A view whose session has been destroyed keeps its place but shows nothing
until it is pointed at another session.
"""

from __future__ import annotations

from rich.table import Table
from rich.text import Text
from textual.widgets import Static

from agentdeck.core.constants import EMPTY_FIELD
from agentdeck.core.session.models import SessionSnapshot
from agentdeck.core.session.status import categorize, count_pending_permissions
from agentdeck.ui.state import category_label, category_severity, severity_style


def _liveness_text(value: object) -> str:
    return str(value) if value else EMPTY_FIELD


class SessionView(Static, can_focus=True):
    """Shows the latest snapshot of the session behind ``handle``."""

    DEFAULT_CSS = """
    SessionView {
        height: auto;
        padding: 0 1;
        border: round $panel-lighten-1;
    }
    SessionView:focus { border: round $accent; }
    """

    def __init__(self, handle: str | None = None) -> None:
        super().__init__(classes="session-view")
        self.handle = handle

    def show(self, handle: str | None) -> None:
        self.handle = handle
        if handle is None:
            self.update(Text("No session", style="dim"))

    def render_snapshot(self, snapshot: SessionSnapshot) -> None:
        if snapshot.handle != self.handle:
            return
        category = categorize(snapshot)
        style = severity_style(category_severity(category))
        self.border_title = snapshot.display_name or snapshot.handle[:8]

        grid = Table.grid(padding=(0, 2))
        grid.add_column(style="bold")
        grid.add_column()
        grid.add_row("Status", Text(category_label(category), style=style))
        grid.add_row("Handle", snapshot.handle)
        grid.add_row("Session", snapshot.session_id or EMPTY_FIELD)
        grid.add_row("Path", snapshot.cwd or EMPTY_FIELD)
        grid.add_row("Control", _liveness_text(snapshot.control_liveness))
        grid.add_row("Transport", _liveness_text(snapshot.transport_liveness))
        if snapshot.meta is not None:
            grid.add_row("Mode", snapshot.meta.mode_name() or EMPTY_FIELD)
            grid.add_row("Model", snapshot.meta.model_name() or EMPTY_FIELD)
        pending = count_pending_permissions(snapshot.tool_calls)
        if pending:
            grid.add_row("Permissions", Text(f"{pending} awaiting approval", style="yellow"))
        for call in snapshot.tool_calls.values():
            if call.is_pending and call.title:
                grid.add_row("", Text(f"• {call.title}", style="dim"))
        self.update(grid)
