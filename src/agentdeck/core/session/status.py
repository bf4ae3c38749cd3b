"""
Session status resolution.

Three pure functions turn a SessionSnapshot into what the dashboard shows:

  resolve_status()            — snapshot → BaseStatus (liveness checks first)
  combine_status()            — BaseStatus + session presence → DisplayCategory
  count_pending_permissions() — tool calls → number awaiting a grant

None of them raise or touch the registry; the same snapshot always yields the
same answer.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum

from agentdeck.core.session.models import SessionSnapshot, ToolCall, is_live


class BaseStatus(StrEnum):
    INITIALIZING = "initializing"
    READY = "ready"
    WORKING = "working"
    WAITING = "waiting"
    KILLED = "killed"
    UNKNOWN = "unknown"


class SessionPresence(StrEnum):
    ACTIVE = "active"
    NONE = "none"


class DisplayCategory(StrEnum):
    KILLED = "killed"
    STARTING = "starting"
    NO_SESSION = "no_session"
    READY = "ready"
    WORKING = "working"
    WAITING = "waiting"
    UNKNOWN = "unknown"


def resolve_status(snapshot: SessionSnapshot) -> BaseStatus:
    """
    Classify a session.  First matching rule wins:

      1. control process not live                     → KILLED
      2. client declared and transport not live       → KILLED
      3. tool calls present: any permission request   → WAITING, else WORKING
      4. busy                                         → WORKING
      5. protocol session id present                  → READY
      6. not initialized                              → INITIALIZING
      7.                                              → UNKNOWN

    Killed always wins, even over tool calls that were still in flight.
    """
    if not snapshot.readable:
        return BaseStatus.UNKNOWN

    if not is_live(snapshot.control_liveness):
        return BaseStatus.KILLED
    if snapshot.client_declared and not is_live(snapshot.transport_liveness):
        return BaseStatus.KILLED

    if snapshot.tool_calls:
        if any(call.wants_permission for call in snapshot.tool_calls.values()):
            return BaseStatus.WAITING
        return BaseStatus.WORKING
    if snapshot.busy:
        return BaseStatus.WORKING
    if snapshot.session_id:
        return BaseStatus.READY
    if not snapshot.initialized:
        return BaseStatus.INITIALIZING
    return BaseStatus.UNKNOWN


def session_presence(snapshot: SessionSnapshot, base: BaseStatus) -> SessionPresence:
    if snapshot.session_id and base != BaseStatus.KILLED:
        return SessionPresence.ACTIVE
    return SessionPresence.NONE


def combine_status(base: BaseStatus, presence: SessionPresence) -> DisplayCategory:
    if base == BaseStatus.KILLED:
        return DisplayCategory.KILLED
    if base == BaseStatus.INITIALIZING and presence == SessionPresence.NONE:
        return DisplayCategory.STARTING
    if base == BaseStatus.READY and presence == SessionPresence.NONE:
        # Handshake done but no protocol session yet
        return DisplayCategory.NO_SESSION
    if base == BaseStatus.READY and presence == SessionPresence.ACTIVE:
        return DisplayCategory.READY
    if base == BaseStatus.WORKING:
        return DisplayCategory.WORKING
    if base == BaseStatus.WAITING:
        return DisplayCategory.WAITING
    return DisplayCategory.UNKNOWN


def categorize(snapshot: SessionSnapshot) -> DisplayCategory:
    """resolve_status + combine_status in one call."""
    base = resolve_status(snapshot)
    return combine_status(base, session_presence(snapshot, base))


def count_pending_permissions(tool_calls: Mapping[str, ToolCall]) -> int:
    """Number of tool calls that carry a permission request and are still pending."""
    return sum(1 for call in tool_calls.values() if call.wants_permission and call.is_pending)
