"""Tests for dashboard row state and presentation helpers (no Textual needed)."""

from __future__ import annotations

import pytest

from agentdeck.core.session.status import DisplayCategory
from agentdeck.ui.state import (
    Entry,
    Severity,
    category_label,
    category_severity,
    format_pending,
    severity_style,
)


class TestEntry:
    def test_defaults(self) -> None:
        e = Entry(handle="h", name="n", category=DisplayCategory.READY)
        assert (e.mode, e.model, e.path) == ("-", "-", "-")
        assert e.pending_permissions == 0
        assert not e.is_killed

    def test_killed(self) -> None:
        assert Entry(handle="h", name="n", category=DisplayCategory.KILLED).is_killed

    def test_frozen(self) -> None:
        e = Entry(handle="h", name="n", category=DisplayCategory.READY)
        with pytest.raises(AttributeError):
            e.name = "other"  # type: ignore[misc]


class TestPresentation:
    @pytest.mark.parametrize(
        ("category", "label", "severity"),
        [
            (DisplayCategory.KILLED, "Killed", Severity.ERROR),
            (DisplayCategory.STARTING, "Starting", Severity.INFO),
            (DisplayCategory.NO_SESSION, "No Session", Severity.WARN),
            (DisplayCategory.READY, "Ready", Severity.SUCCESS),
            (DisplayCategory.WORKING, "Working", Severity.INFO),
            (DisplayCategory.WAITING, "Waiting", Severity.WARN),
            (DisplayCategory.UNKNOWN, "Unknown", Severity.NEUTRAL),
        ],
    )
    def test_category_mapping(
        self, category: DisplayCategory, label: str, severity: Severity
    ) -> None:
        assert category_label(category) == label
        assert category_severity(category) == severity

    def test_every_severity_has_a_style(self) -> None:
        for severity in Severity:
            assert severity_style(severity)

    @pytest.mark.parametrize(("count", "shown"), [(0, "-"), (1, "1"), (12, "12")])
    def test_format_pending(self, count: int, shown: str) -> None:
        assert format_pending(count) == shown
