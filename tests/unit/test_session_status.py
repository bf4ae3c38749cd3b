"""Tests for session status resolution, status combination, and the permission counter."""

from __future__ import annotations

from types import MappingProxyType

import pytest

from agentdeck.core.session.models import (
    LIVE_STATES,
    Liveness,
    SessionMeta,
    SessionSnapshot,
    ToolCall,
)
from agentdeck.core.session.status import (
    BaseStatus,
    DisplayCategory,
    SessionPresence,
    categorize,
    combine_status,
    count_pending_permissions,
    resolve_status,
    session_presence,
)

DEAD_STATES = sorted(set(Liveness) - LIVE_STATES)


def _snap(**kwargs) -> SessionSnapshot:
    kwargs.setdefault("handle", "h-1")
    kwargs.setdefault("control_liveness", Liveness.RUN)
    if "tool_calls" in kwargs:
        kwargs["tool_calls"] = MappingProxyType(kwargs["tool_calls"])
    return SessionSnapshot(**kwargs)


_ACTIVE = SessionMeta(id="sess-1")
_PERMISSION = ToolCall(permission_request_id="perm-1", title="Write file")
_PLAIN = ToolCall(title="Read file")


# ---------------------------------------------------------------------------
# resolve_status — liveness checks
# ---------------------------------------------------------------------------


class TestLiveness:
    @pytest.mark.parametrize("state", DEAD_STATES)
    def test_dead_control_is_killed(self, state: Liveness) -> None:
        assert resolve_status(_snap(control_liveness=state, meta=_ACTIVE)) == BaseStatus.KILLED

    @pytest.mark.parametrize("state", sorted(LIVE_STATES))
    def test_live_control_is_not_killed(self, state: Liveness) -> None:
        assert resolve_status(_snap(control_liveness=state, meta=_ACTIVE)) == BaseStatus.READY

    def test_killed_dominates_tool_calls(self) -> None:
        snap = _snap(
            control_liveness=Liveness.EXIT,
            tool_calls={"t1": _PERMISSION},
            busy=True,
            meta=_ACTIVE,
        )
        assert resolve_status(snap) == BaseStatus.KILLED

    def test_declared_client_without_transport_is_killed(self) -> None:
        snap = _snap(client_declared=True, transport_liveness=None, meta=_ACTIVE)
        assert resolve_status(snap) == BaseStatus.KILLED

    @pytest.mark.parametrize("state", DEAD_STATES)
    def test_declared_client_with_dead_transport_is_killed(self, state: Liveness) -> None:
        snap = _snap(client_declared=True, transport_liveness=state, busy=True)
        assert resolve_status(snap) == BaseStatus.KILLED

    def test_declared_client_with_live_transport_proceeds(self) -> None:
        snap = _snap(client_declared=True, transport_liveness=Liveness.OPEN, meta=_ACTIVE)
        assert resolve_status(snap) == BaseStatus.READY

    def test_dead_transport_ignored_without_client(self) -> None:
        snap = _snap(client_declared=False, transport_liveness=Liveness.EXIT, busy=True)
        assert resolve_status(snap) == BaseStatus.WORKING


# ---------------------------------------------------------------------------
# resolve_status — activity checks
# ---------------------------------------------------------------------------


class TestActivity:
    def test_permission_request_means_waiting(self) -> None:
        snap = _snap(tool_calls={"a": _PLAIN, "b": _PERMISSION})
        assert resolve_status(snap) == BaseStatus.WAITING

    def test_tool_calls_without_permission_mean_working(self) -> None:
        assert resolve_status(_snap(tool_calls={"a": _PLAIN})) == BaseStatus.WORKING

    def test_tool_calls_beat_session_id(self) -> None:
        assert resolve_status(_snap(tool_calls={"a": _PLAIN}, meta=_ACTIVE)) == BaseStatus.WORKING

    def test_busy_means_working(self) -> None:
        assert resolve_status(_snap(busy=True, meta=_ACTIVE)) == BaseStatus.WORKING

    def test_session_id_means_ready(self) -> None:
        assert resolve_status(_snap(meta=_ACTIVE, initialized=True)) == BaseStatus.READY

    def test_meta_without_id_is_not_ready(self) -> None:
        assert resolve_status(_snap(meta=SessionMeta(), initialized=True)) == BaseStatus.UNKNOWN

    def test_uninitialized_means_initializing(self) -> None:
        assert resolve_status(_snap(initialized=False)) == BaseStatus.INITIALIZING

    def test_initialized_idle_without_session_is_unknown(self) -> None:
        assert resolve_status(_snap(initialized=True)) == BaseStatus.UNKNOWN

    def test_unreadable_snapshot_is_unknown(self) -> None:
        assert resolve_status(SessionSnapshot.unreadable("h-1")) == BaseStatus.UNKNOWN

    def test_resolution_is_deterministic(self) -> None:
        snap = _snap(tool_calls={"a": _PERMISSION}, meta=_ACTIVE)
        assert {resolve_status(snap) for _ in range(5)} == {BaseStatus.WAITING}


# ---------------------------------------------------------------------------
# combine_status
# ---------------------------------------------------------------------------


class TestCombineStatus:
    @pytest.mark.parametrize(
        ("base", "presence", "expected"),
        [
            (BaseStatus.KILLED, SessionPresence.ACTIVE, DisplayCategory.KILLED),
            (BaseStatus.KILLED, SessionPresence.NONE, DisplayCategory.KILLED),
            (BaseStatus.INITIALIZING, SessionPresence.NONE, DisplayCategory.STARTING),
            (BaseStatus.INITIALIZING, SessionPresence.ACTIVE, DisplayCategory.UNKNOWN),
            (BaseStatus.READY, SessionPresence.NONE, DisplayCategory.NO_SESSION),
            (BaseStatus.READY, SessionPresence.ACTIVE, DisplayCategory.READY),
            (BaseStatus.WORKING, SessionPresence.NONE, DisplayCategory.WORKING),
            (BaseStatus.WORKING, SessionPresence.ACTIVE, DisplayCategory.WORKING),
            (BaseStatus.WAITING, SessionPresence.NONE, DisplayCategory.WAITING),
            (BaseStatus.WAITING, SessionPresence.ACTIVE, DisplayCategory.WAITING),
            (BaseStatus.UNKNOWN, SessionPresence.NONE, DisplayCategory.UNKNOWN),
            (BaseStatus.UNKNOWN, SessionPresence.ACTIVE, DisplayCategory.UNKNOWN),
        ],
    )
    def test_mapping(
        self, base: BaseStatus, presence: SessionPresence, expected: DisplayCategory
    ) -> None:
        assert combine_status(base, presence) == expected

    def test_presence_is_none_for_killed_session(self) -> None:
        snap = _snap(control_liveness=Liveness.EXIT, meta=_ACTIVE)
        assert session_presence(snap, BaseStatus.KILLED) == SessionPresence.NONE

    def test_presence_active_with_session_id(self) -> None:
        assert session_presence(_snap(meta=_ACTIVE), BaseStatus.READY) == SessionPresence.ACTIVE

    def test_categorize_fresh_session_is_starting(self) -> None:
        assert categorize(_snap()) == DisplayCategory.STARTING

    def test_categorize_waiting(self) -> None:
        assert categorize(_snap(tool_calls={"a": _PERMISSION})) == DisplayCategory.WAITING


# ---------------------------------------------------------------------------
# count_pending_permissions
# ---------------------------------------------------------------------------


class TestPendingPermissions:
    def test_empty(self) -> None:
        assert count_pending_permissions({}) == 0

    def test_counts_only_pending_permission_requests(self) -> None:
        calls = {
            "a": _PERMISSION,
            "b": ToolCall(permission_request_id="perm-2"),
            "c": _PLAIN,
            "d": ToolCall(status="completed", permission_request_id="perm-3"),
        }
        assert count_pending_permissions(calls) == 2

    def test_empty_request_id_is_not_a_request(self) -> None:
        assert count_pending_permissions({"a": ToolCall(permission_request_id="")}) == 0
