"""
Session registry.

The SessionRegistry owns every tracked AgentSession and is the only thing
that mutates them.  It plays two roles:

  * the backend the dashboard reads from and forwards actions to
    (see :class:`SessionBackend`), and
  * the sink for the protocol layer, which reports metadata, tool calls and
    busy state through the ``attach_transport`` / ``set_meta`` /
    ``upsert_tool_call`` / ... methods.

Invariants:
  - Handles are unique UUID strings and are never reused.
  - Registration order is preserved; ``handles()`` enumerates in that order.
  - A destroyed session is removed from the registry and flagged
    ``destroyed`` so a stale reference can still tell it is gone.
  - ``snapshot()`` never raises for a registered handle.
"""

from __future__ import annotations

import os
import signal
import time
from collections.abc import Callable
from dataclasses import replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Protocol

import structlog

from agentdeck.core.constants import TERMINATE_TIMEOUT_SECONDS
from agentdeck.core.exceptions import SessionError, StaleHandleError
from agentdeck.core.session.models import (
    AgentSession,
    Liveness,
    SessionMeta,
    SessionSnapshot,
    ToolCall,
    TrafficRecord,
    is_live,
)
from agentdeck.core.session.naming import format_display_name
from agentdeck.core.session.process import ProcessHandle

if TYPE_CHECKING:
    from agentdeck.core.profile import AgentProfile
    from agentdeck.core.session.models import SessionClient

logger = structlog.get_logger()

CallLater = Callable[[float, Callable[[], object]], object]


class SessionBackend(Protocol):
    """What the dashboard needs from whoever owns the sessions."""

    @property
    def logging_enabled(self) -> bool: ...

    def handles(self) -> list[str]: ...

    def is_live(self, handle: str) -> bool: ...

    def snapshot(self, handle: str) -> SessionSnapshot: ...

    def liveness(self, process: ProcessHandle | None) -> Liveness: ...

    def send_graceful_end(self, handle: str) -> bool: ...

    def force_terminate(self, handle: str) -> bool: ...

    def destroy_session(self, handle: str) -> None: ...

    def create_session(self, profile: AgentProfile, cwd: str) -> str: ...

    def interrupt(self, handle: str) -> None: ...

    def set_mode(self, handle: str, mode_id: str) -> None: ...

    def set_model(self, handle: str, model_id: str) -> None: ...

    def view_traffic(self, handle: str) -> list[TrafficRecord]: ...

    def toggle_logging(self) -> bool: ...


class SessionRegistry:
    """
    In-memory session registry.

    Single-threaded: all public methods are synchronous, never wait on
    process I/O, and must be called from the UI event loop thread.
    ``shutdown()`` is the one exception and is only called on exit.

    Destroyed sessions' processes get SIGTERM straight away and are kept in
    a stopping list until ``reap()`` SIGKILLs whatever outlived its grace
    period.  Once ``set_call_later()`` is wired (the app passes
    ``set_timer``), each destroy schedules a reap; otherwise survivors wait
    for the next ``reap()`` or ``shutdown()``.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, AgentSession] = {}
        self._logging_enabled = False
        self._stopping: list[tuple[float, ProcessHandle]] = []
        self._call_later: CallLater | None = None

    def set_call_later(self, call_later: CallLater | None) -> None:
        self._call_later = call_later

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, session: AgentSession) -> str:
        """Add a session to the registry and return its handle."""
        if session.handle in self._sessions:
            raise ValueError(f"Session {session.handle!r} already registered")
        self._sessions[session.handle] = session
        logger.info(
            "session_registered",
            handle=session.short_handle(),
            name=session.display_name,
        )
        return session.handle

    def get(self, handle: str) -> AgentSession:
        """Return the live session; raise StaleHandleError if it is gone."""
        session = self._sessions.get(handle)
        if session is None or session.destroyed:
            raise StaleHandleError(handle)
        return session

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def handles(self) -> list[str]:
        return list(self._sessions)

    def is_live(self, handle: str) -> bool:
        """True while the session resource exists (its processes may be dead)."""
        session = self._sessions.get(handle)
        return session is not None and not session.destroyed

    def __len__(self) -> int:
        return len(self._sessions)

    @property
    def logging_enabled(self) -> bool:
        return self._logging_enabled

    def liveness(self, process: ProcessHandle | None) -> Liveness:
        if process is None:
            return Liveness.NONE
        return process.liveness()

    def snapshot(self, handle: str) -> SessionSnapshot:
        """
        Read a frozen view of one session.

        Each process is sampled once.  If anything about the session cannot
        be read, an unreadable snapshot is returned instead of raising.
        """
        session = self._sessions.get(handle)
        if session is None:
            return SessionSnapshot.unreadable(handle)
        try:
            control = self.liveness(session.control)
            transport = self.liveness(session.transport) if session.transport else None
            return SessionSnapshot(
                handle=handle,
                display_name=session.display_name,
                cwd=session.cwd,
                control_liveness=control,
                transport_liveness=transport,
                client_declared=session.client_declared,
                tool_calls=MappingProxyType(dict(session.tool_calls)),
                meta=session.meta,
                initialized=session.initialized,
                busy=session.busy,
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("snapshot_unreadable", handle=handle[:8], error=str(exc))
            return SessionSnapshot.unreadable(
                handle,
                display_name=getattr(session, "display_name", ""),
                cwd=getattr(session, "cwd", ""),
            )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def create_session(self, profile: AgentProfile, cwd: str) -> str:
        """Spawn the profile's processes and register the new session."""
        if not profile.command:
            raise SessionError(f"Profile {profile.name!r} has no command")
        env = {**os.environ, **profile.env} if profile.env else None
        session = AgentSession(
            display_name=format_display_name(profile.display_agent_name, cwd),
            cwd=cwd,
            profile_name=profile.name,
        )
        try:
            session.control = ProcessHandle.spawn(
                profile.command, cwd=cwd, env=env, name="control"
            )
            if profile.transport_command:
                session.transport = ProcessHandle.spawn(
                    profile.transport_command, cwd=cwd, env=env, name="transport"
                )
                session.client_declared = True
        except OSError as exc:
            if session.control is not None:
                self._stop([session.control])
            raise SessionError(f"Cannot start profile {profile.name!r}: {exc}") from exc

        self.register(session)
        logger.info(
            "session_created",
            handle=session.short_handle(),
            profile=profile.name,
            cwd=cwd,
            control_pid=session.control.pid,
            transport_pid=session.transport.pid if session.transport else None,
        )
        return session.handle

    def destroy_session(self, handle: str) -> None:
        """
        Drop the session from the registry and SIGTERM its live processes.

        Returns without waiting for them to exit; see ``reap()``.
        """
        session = self.get(handle)
        session.destroyed = True
        del self._sessions[handle]
        stopping = self._stop(
            [p for p in (session.transport, session.control) if p is not None]
        )
        logger.info("session_destroyed", handle=session.short_handle(), stopping=stopping)

    def reap(self, now: float | None = None) -> int:
        """SIGKILL stopping processes whose grace period is over. Returns how many."""
        now = time.monotonic() if now is None else now
        pending: list[tuple[float, ProcessHandle]] = []
        killed = 0
        for deadline, process in self._stopping:
            if not is_live(process.liveness()):
                continue
            if deadline > now:
                pending.append((deadline, process))
                continue
            if process.kill():
                killed += 1
                logger.warning("process_killed_after_grace", name=process.name, pid=process.pid)
        self._stopping = pending
        return killed

    def shutdown(self) -> int:
        """
        Destroy every tracked session and make sure its processes are gone.

        Blocks for at most one grace period in total, then SIGKILLs
        survivors.  Returns how many sessions were torn down.
        """
        handles = self.handles()
        for handle in handles:
            self.destroy_session(handle)
        for deadline, process in self._stopping:
            process.wait(deadline - time.monotonic())
        self.reap(now=float("inf"))
        return len(handles)

    def _stop(self, processes: list[ProcessHandle]) -> int:
        deadline = time.monotonic() + TERMINATE_TIMEOUT_SECONDS
        stopping = 0
        for process in processes:
            if is_live(process.liveness()) and process.request_stop():
                self._stopping.append((deadline, process))
                stopping += 1
        if stopping and self._call_later is not None:
            self._call_later(TERMINATE_TIMEOUT_SECONDS, lambda: self.reap(now=deadline))
        return stopping

    # ------------------------------------------------------------------
    # Forwarded controls
    # ------------------------------------------------------------------

    def send_graceful_end(self, handle: str) -> bool:
        """Send end-of-input to a live transport. Returns False when there was nothing to end."""
        session = self.get(handle)
        transport = session.transport
        if transport is None or not is_live(transport.liveness()):
            return False
        sent = transport.send_eof()
        logger.info("transport_eof_sent", handle=session.short_handle(), sent=sent)
        return sent

    def force_terminate(self, handle: str) -> bool:
        """SIGKILL a live transport process."""
        session = self.get(handle)
        transport = session.transport
        if transport is None or not is_live(transport.liveness()):
            return False
        killed = transport.kill()
        logger.info("transport_killed", handle=session.short_handle(), killed=killed)
        return killed

    def interrupt(self, handle: str) -> None:
        """Cancel the current turn through the client, or SIGINT the control process."""
        session = self.get(handle)
        if session.client is not None:
            session.client.cancel()
        elif session.control is None or not session.control.send_signal(signal.SIGINT):
            raise SessionError(f"Session {session.short_handle()} has no process to interrupt")
        logger.info("session_interrupted", handle=session.short_handle())

    def set_mode(self, handle: str, mode_id: str) -> None:
        session = self.get(handle)
        meta = session.meta
        if meta is None or mode_id not in meta.modes:
            raise SessionError(f"Mode {mode_id!r} is not offered by this session")
        if session.client is not None:
            session.client.set_mode(mode_id)
        session.meta = replace(meta, mode_id=mode_id)
        logger.info("session_mode_set", handle=session.short_handle(), mode=mode_id)

    def set_model(self, handle: str, model_id: str) -> None:
        session = self.get(handle)
        meta = session.meta
        if meta is None or all(m.model_id != model_id for m in meta.models):
            raise SessionError(f"Model {model_id!r} is not offered by this session")
        if session.client is not None:
            session.client.set_model(model_id)
        session.meta = replace(meta, model_id=model_id)
        logger.info("session_model_set", handle=session.short_handle(), model=model_id)

    def view_traffic(self, handle: str) -> list[TrafficRecord]:
        return list(self.get(handle).traffic)

    def toggle_logging(self) -> bool:
        """Flip process-wide traffic logging. Returns the new state."""
        self._logging_enabled = not self._logging_enabled
        logger.info("traffic_logging_toggled", enabled=self._logging_enabled)
        return self._logging_enabled

    # ------------------------------------------------------------------
    # Protocol-layer updates
    # ------------------------------------------------------------------

    def attach_transport(
        self,
        handle: str,
        transport: ProcessHandle,
        client: SessionClient | None = None,
    ) -> None:
        session = self.get(handle)
        session.transport = transport
        session.client = client
        session.client_declared = True

    def set_meta(self, handle: str, meta: SessionMeta | None) -> None:
        self.get(handle).meta = meta

    def mark_initialized(self, handle: str, initialized: bool = True) -> None:
        self.get(handle).initialized = initialized

    def set_busy(self, handle: str, busy: bool) -> None:
        self.get(handle).busy = busy

    def upsert_tool_call(self, handle: str, call_id: str, call: ToolCall) -> None:
        self.get(handle).tool_calls[call_id] = call

    def remove_tool_call(self, handle: str, call_id: str) -> None:
        self.get(handle).tool_calls.pop(call_id, None)

    def record_traffic(self, handle: str, direction: str, message: str) -> None:
        """Keep a protocol message for later viewing, only while logging is enabled."""
        if not self._logging_enabled:
            return
        self.get(handle).traffic.append(TrafficRecord(direction=direction, message=message))
