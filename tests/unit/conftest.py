"""Shared fixtures for unit tests: an isolated data dir, fake processes, and registries."""

from __future__ import annotations

from pathlib import Path

import pytest

from agentdeck.core.profile import AgentProfile, ProfileStore
from agentdeck.core.session.manager import SessionRegistry
from agentdeck.core.session.models import AgentSession, Liveness, SessionMeta, ToolCall
from agentdeck.core.session.process import ProcessHandle
from fakes import FakeProcess

_ENV_VARS = (
    "AGENTDECK_CONFIG",
    "AGENTDECK_LOG_LEVEL",
    "AGENTDECK_POLL_INTERVAL",
    "AGENTDECK_DEFAULT_PROFILE",
)


@pytest.fixture(autouse=True)
def isolated_data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the agentdeck data dir at a temp home and clear AGENTDECK_* overrides."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    return home


def _fake(state: Liveness | None) -> FakeProcess | None:
    return FakeProcess(state) if state is not None else None


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry()


@pytest.fixture
def add_session(registry: SessionRegistry):
    """Factory: register a session backed by FakeProcess objects."""

    def _add(
        name: str = "Claude Agent @ /work",
        *,
        cwd: str = "/work",
        control: Liveness | None = Liveness.RUN,
        transport: Liveness | None = None,
        client_declared: bool | None = None,
        tool_calls: dict[str, ToolCall] | None = None,
        meta: SessionMeta | None = None,
        initialized: bool = False,
        busy: bool = False,
    ) -> AgentSession:
        session = AgentSession(
            display_name=name,
            cwd=cwd,
            control=_fake(control),
            transport=_fake(transport),
            client_declared=transport is not None if client_declared is None else client_declared,
            tool_calls=dict(tool_calls or {}),
            meta=meta,
            initialized=initialized,
            busy=busy,
        )
        registry.register(session)
        return session

    return _add


@pytest.fixture
def spawned(monkeypatch: pytest.MonkeyPatch) -> list[dict]:
    """Replace ProcessHandle.spawn with FakeProcess; returns the recorded spawns."""
    calls: list[dict] = []

    def _fake_spawn(cls, command, *, cwd, env=None, name=""):
        calls.append({"command": list(command), "cwd": cwd, "env": env, "name": name})
        return FakeProcess(Liveness.RUN, pid=5000 + len(calls), command=command)

    monkeypatch.setattr(ProcessHandle, "spawn", classmethod(_fake_spawn))
    return calls


@pytest.fixture
def profiles(tmp_path: Path) -> ProfileStore:
    return ProfileStore(tmp_path / "profiles")


@pytest.fixture
def claude_profile(profiles: ProfileStore) -> AgentProfile:
    profile = AgentProfile(
        name="claude",
        agent_name="Claude",
        command=["claude"],
        transport_command=["claude-acp"],
    )
    profiles.save(profile)
    return profile
