"""Tests for session models: liveness, tool calls, metadata, snapshots."""

from __future__ import annotations

import pytest

from agentdeck.core.session.models import (
    AgentSession,
    Liveness,
    SessionMeta,
    SessionModel,
    SessionSnapshot,
    ToolCall,
    is_live,
)


class TestIsLive:
    @pytest.mark.parametrize(
        "state", [Liveness.RUN, Liveness.OPEN, Liveness.LISTEN, Liveness.CONNECT, Liveness.STOP]
    )
    def test_live(self, state: Liveness) -> None:
        assert is_live(state)

    @pytest.mark.parametrize(
        "state", [Liveness.EXIT, Liveness.SIGNAL, Liveness.CLOSED, Liveness.FAILED, Liveness.NONE]
    )
    def test_not_live(self, state: Liveness) -> None:
        assert not is_live(state)

    def test_absent_is_not_live(self) -> None:
        assert not is_live(None)


class TestToolCall:
    def test_default_is_pending_without_permission(self) -> None:
        call = ToolCall()
        assert call.is_pending
        assert not call.wants_permission

    def test_permission_request(self) -> None:
        assert ToolCall(permission_request_id="p1").wants_permission

    def test_completed_is_not_pending(self) -> None:
        assert not ToolCall(status="completed").is_pending


class TestSessionMeta:
    _META = SessionMeta(
        id="s1",
        mode_id="code",
        model_id="sonnet",
        models=(SessionModel("sonnet", "Sonnet"), SessionModel("haiku", "Haiku")),
        modes={"code": "Code", "plan": "Plan"},
    )

    def test_current_names(self) -> None:
        assert self._META.model_name() == "Sonnet"
        assert self._META.mode_name() == "Code"

    def test_named_lookup(self) -> None:
        assert self._META.model_name("haiku") == "Haiku"
        assert self._META.mode_name("plan") == "Plan"

    def test_unlisted_model_falls_back_to_id(self) -> None:
        assert self._META.model_name("opus") == "opus"

    def test_unlisted_mode_is_none(self) -> None:
        assert self._META.mode_name("ask") is None

    def test_no_current_selection(self) -> None:
        meta = SessionMeta()
        assert meta.model_name() is None
        assert meta.mode_name() is None


class TestSnapshot:
    def test_unreadable(self) -> None:
        snap = SessionSnapshot.unreadable("h1", display_name="X Agent @ /", cwd="/")
        assert not snap.readable
        assert snap.display_name == "X Agent @ /"
        assert snap.control_liveness == Liveness.NONE

    def test_session_id_from_meta(self) -> None:
        assert SessionSnapshot(handle="h", meta=SessionMeta(id="s1")).session_id == "s1"
        assert SessionSnapshot(handle="h", meta=SessionMeta()).session_id is None
        assert SessionSnapshot(handle="h").session_id is None

    def test_tool_calls_are_read_only(self) -> None:
        snap = SessionSnapshot(handle="h")
        with pytest.raises(TypeError):
            snap.tool_calls["x"] = ToolCall()  # type: ignore[index]


class TestAgentSession:
    def test_handles_are_unique(self) -> None:
        a = AgentSession(display_name="a", cwd="/")
        b = AgentSession(display_name="b", cwd="/")
        assert a.handle != b.handle
        assert a.short_handle() == a.handle[:8]
