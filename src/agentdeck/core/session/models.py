"""
Session domain models.

An AgentSession is one agent instance tracked by the registry.  It is backed
by a control process (the interactive front end) and, once a protocol client
has been attached, a transport process.  The registry owns and mutates
AgentSession objects; everything downstream works on SessionSnapshot, a
frozen view read at one point in time.
"""

from __future__ import annotations

import uuid
from collections import deque
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING, Protocol

from agentdeck.core.constants import TRAFFIC_HISTORY_LIMIT

if TYPE_CHECKING:
    from agentdeck.core.session.process import ProcessHandle


class Liveness(StrEnum):
    """Observed state of one OS process or connection."""

    RUN = "run"
    STOP = "stop"  # suspended, resumable
    EXIT = "exit"
    SIGNAL = "signal"
    OPEN = "open"
    CLOSED = "closed"
    CONNECT = "connect"
    FAILED = "failed"
    LISTEN = "listen"
    NONE = "none"  # no process at all


LIVE_STATES: frozenset[Liveness] = frozenset(
    {Liveness.RUN, Liveness.OPEN, Liveness.LISTEN, Liveness.CONNECT, Liveness.STOP}
)


def is_live(liveness: Liveness | None) -> bool:
    return liveness is not None and liveness in LIVE_STATES


TOOL_CALL_PENDING = "pending"


@dataclass(frozen=True)
class ToolCall:
    """One in-progress unit of agent work, possibly awaiting a permission grant."""

    status: str = TOOL_CALL_PENDING
    permission_request_id: str | None = None
    title: str = ""

    @property
    def wants_permission(self) -> bool:
        return bool(self.permission_request_id)

    @property
    def is_pending(self) -> bool:
        return self.status == TOOL_CALL_PENDING


@dataclass(frozen=True)
class SessionModel:
    model_id: str
    name: str


@dataclass(frozen=True)
class SessionMeta:
    """Protocol-level session metadata reported by the transport."""

    id: str | None = None
    mode_id: str | None = None
    model_id: str | None = None
    models: tuple[SessionModel, ...] = ()
    modes: Mapping[str, str] = field(default_factory=dict)

    def model_name(self, model_id: str | None = None) -> str | None:
        """Human name for *model_id* (default: current model), raw id if unlisted."""
        wanted = model_id if model_id is not None else self.model_id
        if not wanted:
            return None
        for model in self.models:
            if model.model_id == wanted:
                return model.name
        return wanted

    def mode_name(self, mode_id: str | None = None) -> str | None:
        wanted = mode_id if mode_id is not None else self.mode_id
        if not wanted:
            return None
        return self.modes.get(wanted)


@dataclass(frozen=True)
class TrafficRecord:
    """One logged protocol message, kept only while traffic logging is on."""

    direction: str  # "in" | "out"
    message: str
    at: str = field(default_factory=lambda: datetime.now(UTC).isoformat())


class SessionClient(Protocol):
    """Protocol client attached to a session's transport process."""

    def set_mode(self, mode_id: str) -> None: ...

    def set_model(self, model_id: str) -> None: ...

    def cancel(self) -> None: ...


@dataclass
class AgentSession:
    """Mutable registry record for one tracked session."""

    display_name: str
    cwd: str
    handle: str = field(default_factory=lambda: str(uuid.uuid4()))
    control: ProcessHandle | None = None
    transport: ProcessHandle | None = None
    client_declared: bool = False
    tool_calls: dict[str, ToolCall] = field(default_factory=dict)
    meta: SessionMeta | None = None
    initialized: bool = False
    busy: bool = False
    destroyed: bool = False
    client: SessionClient | None = None
    profile_name: str = ""
    traffic: deque[TrafficRecord] = field(
        default_factory=lambda: deque(maxlen=TRAFFIC_HISTORY_LIMIT)
    )

    def short_handle(self) -> str:
        """First 8 chars of the handle for display and logs."""
        return self.handle[:8]


@dataclass(frozen=True)
class SessionSnapshot:
    """
    Frozen view of one session's observable state.

    ``transport_liveness`` is None when no transport is attached; whether that
    matters is decided by ``client_declared``.  An unreadable snapshot
    (``readable=False``) carries identity fields only.
    """

    handle: str
    display_name: str = ""
    cwd: str = ""
    control_liveness: Liveness = Liveness.NONE
    transport_liveness: Liveness | None = None
    client_declared: bool = False
    tool_calls: Mapping[str, ToolCall] = field(default_factory=lambda: MappingProxyType({}))
    meta: SessionMeta | None = None
    initialized: bool = False
    busy: bool = False
    readable: bool = True

    @classmethod
    def unreadable(cls, handle: str, display_name: str = "", cwd: str = "") -> SessionSnapshot:
        return cls(handle=handle, display_name=display_name, cwd=cwd, readable=False)

    @property
    def session_id(self) -> str | None:
        return self.meta.id if self.meta is not None and self.meta.id else None
