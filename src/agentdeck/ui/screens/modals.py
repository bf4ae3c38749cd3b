"""
Modal dialogs used by the dashboard.

  ConfirmModal  — yes/no before destructive actions (kill, restart, delete)
  ChoiceModal   — pick one of (id, label) pairs (mode, model, profile)
  TrafficModal  — read-only list of logged protocol messages
"""

from __future__ import annotations

from collections.abc import Sequence

from rich.text import Text
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Label, OptionList, RichLog, Static
from textual.widgets.option_list import Option

from agentdeck.core.session.models import TrafficRecord


def _choice_prompt(choice_id: str, label: str) -> Text:
    if label == choice_id:
        return Text(label)
    return Text.assemble(label, (f"  ({choice_id})", "dim"))


class ConfirmModal(ModalScreen[bool]):
    BINDINGS = [
        Binding("y", "confirm", "Confirm"),
        Binding("n", "cancel", "Cancel"),
        Binding("escape", "cancel", "Cancel"),
    ]

    def __init__(self, body_text: str, confirm_text: str = "Yes (Y)") -> None:
        super().__init__()
        self.body_text = body_text
        self.confirm_text = confirm_text

    def compose(self) -> ComposeResult:
        with Container(id="confirm-dialog", classes="dialog"):
            yield Static(self.body_text, id="confirm-body")
            with Horizontal(id="confirm-actions"):
                yield Button("Cancel (N)", id="cancel")
                yield Button(self.confirm_text, id="confirm", variant="error")

    def action_confirm(self) -> None:
        self.dismiss(True)

    def action_cancel(self) -> None:
        self.dismiss(False)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "confirm")


class ChoiceModal(ModalScreen[str | None]):
    BINDINGS = [Binding("escape", "cancel", "Cancel")]

    def __init__(self, title: str, choices: Sequence[tuple[str, str]], current: str | None = None):
        super().__init__()
        self.title_text = title
        self.choices = list(choices)
        self.current = current

    def compose(self) -> ComposeResult:
        with Container(id="choice-dialog", classes="dialog"):
            yield Label(self.title_text, id="choice-title")
            options = [
                Option(_choice_prompt(choice_id, label), id=choice_id)
                for choice_id, label in self.choices
            ]
            yield OptionList(*options, id="choice-list")

    def on_mount(self) -> None:
        option_list = self.query_one("#choice-list", OptionList)
        ids = [choice_id for choice_id, _ in self.choices]
        if self.current in ids:
            option_list.highlighted = ids.index(self.current)
        option_list.focus()

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        self.dismiss(event.option.id)

    def action_cancel(self) -> None:
        self.dismiss(None)


class TrafficModal(ModalScreen[None]):
    BINDINGS = [
        Binding("escape", "close", "Close"),
        Binding("q", "close", "Close"),
    ]

    def __init__(self, session_name: str, records: Sequence[TrafficRecord], logging_on: bool):
        super().__init__()
        self.session_name = session_name
        self.records = list(records)
        self.logging_on = logging_on

    def compose(self) -> ComposeResult:
        with Container(id="traffic-dialog", classes="dialog"):
            yield Label(f"Traffic — {self.session_name}", id="traffic-title")
            yield RichLog(id="traffic-log", wrap=True, markup=True)

    def on_mount(self) -> None:
        log = self.query_one("#traffic-log", RichLog)
        if not self.records:
            hint = "" if self.logging_on else "  (logging is off — press [b]l[/b] to enable)"
            log.write(f"[dim]No traffic recorded.{hint}[/dim]")
            return
        for record in self.records:
            outgoing = record.direction == "out"
            line = Text(f"  {record.at[11:19]}  ")
            line.append("→" if outgoing else "←", style="cyan" if outgoing else "green")
            line.append(f"  {record.message}")
            log.write(line)

    def action_close(self) -> None:
        self.dismiss(None)
