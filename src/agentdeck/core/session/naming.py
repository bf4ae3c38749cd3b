"""
Session display-name convention.

Sessions are labelled ``"<agent name> Agent @ <cwd>"``.  The agent name is
recovered from that label to find the profile a session was started from.
"""

from __future__ import annotations

import re

from agentdeck.core.constants import AGENT_NAME_SEPARATOR, EMPTY_FIELD

_DISPLAY_NAME_RE = re.compile(
    r"^(?P<agent>.+?)" + re.escape(AGENT_NAME_SEPARATOR) + r"(?P<cwd>.*)$"
)


def format_display_name(agent_name: str, cwd: str) -> str:
    return f"{agent_name}{AGENT_NAME_SEPARATOR}{cwd}"


def agent_name_of(display_name: str) -> str:
    """Agent name part of *display_name*, or ``"-"`` when it does not follow the convention."""
    m = _DISPLAY_NAME_RE.match(display_name or "")
    if m is None:
        return EMPTY_FIELD
    return m.group("agent").strip() or EMPTY_FIELD
