"""Tests for build_entries(): one row per session, killed sessions last."""

from __future__ import annotations

from agentdeck.core.session.manager import SessionRegistry
from agentdeck.core.session.models import (
    AgentSession,
    Liveness,
    SessionMeta,
    SessionModel,
    ToolCall,
)
from agentdeck.core.session.status import DisplayCategory
from agentdeck.ui.polling import (
    build_entries,
    count_killed,
    stable_partition_killed_last,
    summarize,
)
from agentdeck.ui.state import Entry
from fakes import FakeProcess

_READY = SessionMeta(id="s1")


def _names(entries: list[Entry]) -> list[str]:
    return [e.name for e in entries]


class TestBuildEntries:
    def test_empty_registry(self, registry) -> None:
        assert build_entries(registry) == []

    def test_killed_session_moves_last(self, registry, add_session) -> None:
        add_session("A", meta=_READY)
        add_session("B", control=Liveness.EXIT)
        add_session("C", busy=True)
        entries = build_entries(registry)
        assert _names(entries) == ["A", "C", "B"]
        assert [e.category for e in entries] == [
            DisplayCategory.READY,
            DisplayCategory.WORKING,
            DisplayCategory.KILLED,
        ]

    def test_killed_moves_behind_waiting_session(self, registry, add_session) -> None:
        add_session("A", meta=_READY)
        add_session("B", control=Liveness.EXIT)
        add_session("C", tool_calls={"t1": ToolCall(permission_request_id="p1")})
        entries = build_entries(registry)
        assert _names(entries) == ["A", "C", "B"]
        assert [e.category for e in entries] == [
            DisplayCategory.READY,
            DisplayCategory.WAITING,
            DisplayCategory.KILLED,
        ]
        assert entries[1].pending_permissions == 1

    def test_partition_is_stable(self, registry, add_session) -> None:
        add_session("k1", control=Liveness.EXIT)
        add_session("a1")
        add_session("k2", control=Liveness.SIGNAL)
        add_session("a2", busy=True)
        add_session("k3", transport=Liveness.CLOSED)
        add_session("a3", meta=_READY)
        assert _names(build_entries(registry)) == ["a1", "a2", "a3", "k1", "k2", "k3"]

    def test_refresh_is_idempotent(self, registry, add_session) -> None:
        add_session("A", meta=_READY)
        add_session("B", control=Liveness.EXIT)
        assert build_entries(registry) == build_entries(registry)

    def test_row_fields(self, registry, add_session) -> None:
        meta = SessionMeta(
            id="s1",
            mode_id="plan",
            model_id="haiku",
            models=(SessionModel("haiku", "Haiku"),),
            modes={"plan": "Plan"},
        )
        s = add_session(
            "Claude Agent @ /repo",
            cwd="/repo",
            meta=meta,
            tool_calls={
                "t1": ToolCall(permission_request_id="p1"),
                "t2": ToolCall(permission_request_id="p2"),
                "t3": ToolCall(),
            },
        )
        (entry,) = build_entries(registry)
        assert entry.handle == s.handle
        assert entry.name == "Claude Agent @ /repo"
        assert entry.category == DisplayCategory.WAITING
        assert entry.mode == "Plan"
        assert entry.model == "Haiku"
        assert entry.pending_permissions == 2
        assert entry.pending_display == "2"
        assert entry.path == "/repo"

    def test_missing_fields_show_placeholder(self, registry, add_session) -> None:
        add_session("", cwd="")
        (entry,) = build_entries(registry)
        assert (entry.name, entry.mode, entry.model, entry.path) == ("-", "-", "-", "-")
        assert entry.pending_display == "-"

    def test_destroyed_sessions_are_skipped(self, registry, add_session) -> None:
        add_session("A")
        gone = add_session("B")
        registry.destroy_session(gone.handle)
        assert _names(build_entries(registry)) == ["A"]

    def test_handle_list_lagging_teardown(self) -> None:
        class _LaggingRegistry(SessionRegistry):
            def handles(self) -> list[str]:
                return [*super().handles(), "already-gone"]

        registry = _LaggingRegistry()
        registry.register(AgentSession(display_name="A", cwd="/"))
        assert _names(build_entries(registry)) == ["A"]

    def test_unreadable_session_shows_unknown(self, registry, add_session) -> None:
        class _Broken(FakeProcess):
            def liveness(self) -> Liveness:
                raise OSError("procfs gone")

        add_session("A", meta=_READY)
        broken = add_session("B")
        broken.control = _Broken()
        entries = build_entries(registry)
        assert _names(entries) == ["A", "B"]
        assert entries[1].category == DisplayCategory.UNKNOWN

    def test_failed_row_is_degraded_not_dropped(self) -> None:
        class _ExplodingRegistry(SessionRegistry):
            def snapshot(self, handle):
                if handle == self.bad:
                    raise RuntimeError("boom")
                return super().snapshot(handle)

        registry = _ExplodingRegistry()
        good = AgentSession(display_name="good", cwd="/g", control=FakeProcess())
        bad = AgentSession(display_name="bad", cwd="/b")
        registry.register(good)
        registry.register(bad)
        registry.bad = bad.handle
        entries = build_entries(registry)
        assert [e.handle for e in entries] == [good.handle, bad.handle]
        assert entries[1].category == DisplayCategory.UNKNOWN
        assert entries[1].name == "-"


class TestHelpers:
    def _entry(self, name: str, category: DisplayCategory) -> Entry:
        return Entry(handle=name, name=name, category=category)

    def test_partition_keeps_order_within_groups(self) -> None:
        rows = [
            self._entry("x", DisplayCategory.KILLED),
            self._entry("y", DisplayCategory.READY),
            self._entry("z", DisplayCategory.KILLED),
        ]
        assert _names(stable_partition_killed_last(rows)) == ["y", "x", "z"]

    def test_count_and_summary(self) -> None:
        rows = [
            self._entry("a", DisplayCategory.WORKING),
            self._entry("b", DisplayCategory.WORKING),
            self._entry("c", DisplayCategory.KILLED),
        ]
        assert count_killed(rows) == 1
        assert summarize(rows) == {"total": 3, "working": 2, "killed": 1}
