"""agentdeck exception hierarchy."""

from __future__ import annotations


class AgentDeckError(Exception):
    """Base exception for all agentdeck errors."""


class ConfigError(AgentDeckError):
    """Raised when the configuration is invalid or cannot be read."""


class ConfigNotFoundError(ConfigError):
    """Raised when the configuration file does not exist."""


class ProfileError(AgentDeckError):
    """Raised when an agent profile is invalid or cannot be stored."""


class SessionError(AgentDeckError):
    """Raised when a session operation fails."""


class StaleHandleError(SessionError):
    """Raised when a session handle no longer refers to a live session.

    The handle was usually selected in the dashboard before the session was
    torn down elsewhere. Callers report it and leave the dashboard intact.
    """

    def __init__(self, handle: str) -> None:
        super().__init__(f"Session {handle!r} no longer exists")
        self.handle = handle
