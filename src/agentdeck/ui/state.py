"""
UI state types — pure Python dataclasses, no Textual imports.

These can be constructed and tested without a running Textual app.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from agentdeck.core.constants import EMPTY_FIELD
from agentdeck.core.session.status import DisplayCategory


@dataclass(frozen=True)
class Entry:
    """One dashboard row, rebuilt on every refresh."""

    handle: str
    name: str
    category: DisplayCategory
    mode: str = EMPTY_FIELD
    model: str = EMPTY_FIELD
    pending_permissions: int = 0
    path: str = EMPTY_FIELD

    @property
    def is_killed(self) -> bool:
        return self.category == DisplayCategory.KILLED

    @property
    def pending_display(self) -> str:
        return format_pending(self.pending_permissions)


# ---------------------------------------------------------------------------
# Presentation: category to label, severity and style
# ---------------------------------------------------------------------------


class Severity(StrEnum):
    ERROR = "error"
    WARN = "warn"
    INFO = "info"
    SUCCESS = "success"
    NEUTRAL = "neutral"


_CATEGORY_LABELS: dict[DisplayCategory, str] = {
    DisplayCategory.KILLED: "Killed",
    DisplayCategory.STARTING: "Starting",
    DisplayCategory.NO_SESSION: "No Session",
    DisplayCategory.READY: "Ready",
    DisplayCategory.WORKING: "Working",
    DisplayCategory.WAITING: "Waiting",
    DisplayCategory.UNKNOWN: "Unknown",
}

_CATEGORY_SEVERITY: dict[DisplayCategory, Severity] = {
    DisplayCategory.KILLED: Severity.ERROR,
    DisplayCategory.STARTING: Severity.INFO,
    DisplayCategory.NO_SESSION: Severity.WARN,
    DisplayCategory.READY: Severity.SUCCESS,
    DisplayCategory.WORKING: Severity.INFO,
    DisplayCategory.WAITING: Severity.WARN,
    DisplayCategory.UNKNOWN: Severity.NEUTRAL,
}

_SEVERITY_STYLES: dict[Severity, str] = {
    Severity.ERROR: "bold red",
    Severity.WARN: "yellow",
    Severity.INFO: "cyan",
    Severity.SUCCESS: "green",
    Severity.NEUTRAL: "dim",
}


def category_label(category: DisplayCategory) -> str:
    return _CATEGORY_LABELS.get(category, "Unknown")


def category_severity(category: DisplayCategory) -> Severity:
    return _CATEGORY_SEVERITY.get(category, Severity.NEUTRAL)


def severity_style(severity: Severity) -> str:
    return _SEVERITY_STYLES[severity]


def format_pending(count: int) -> str:
    """Render a permission count; zero shows as ``"-"`` to keep the column quiet."""
    return str(count) if count > 0 else EMPTY_FIELD


__all__ = [
    "Entry",
    "Severity",
    "category_label",
    "category_severity",
    "format_pending",
    "severity_style",
]
