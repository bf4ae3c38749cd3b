"""
Agent profile schema and YAML-file-backed storage.

A profile is a named recipe for starting a session: the control command,
the optional transport command, and the agent name used in the session's
display name (``"<agent_name> Agent @ <cwd>"``).  Profiles live as individual
YAML files in ``<agentdeck_dir>/profiles/<name>.yaml``.

Usage::

    store = ProfileStore()
    store.save(AgentProfile(name="claude", agent_name="Claude", command=["claude"]))
    profile = store.resolve("Claude")
"""

from __future__ import annotations

import re
from pathlib import Path

import structlog
import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from agentdeck.core.config import agentdeck_dir
from agentdeck.core.constants import PROFILES_DIR_NAME
from agentdeck.core.exceptions import ProfileError

# ---------------------------------------------------------------------------
# Model
# ---------------------------------------------------------------------------

_NAME_RE = re.compile(r"^[a-z0-9][a-z0-9_\-]{0,63}$")


class AgentProfile(BaseModel):
    """Named agent profile — how to start one kind of agent session."""

    name: str = Field(..., description="File stem under profiles/; also what --new takes.")
    agent_name: str = ""
    description: str = ""
    command: list[str] = Field(default_factory=list)
    transport_command: list[str] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not _NAME_RE.fullmatch(v):
            raise ValueError(
                f"Invalid profile name {v!r}: use up to 64 lowercase letters, digits, "
                "'-' or '_', starting with a letter or digit"
            )
        return v

    @field_validator("agent_name")
    @classmethod
    def validate_agent_name(cls, v: str) -> str:
        if " Agent @ " in v:
            raise ValueError("agent_name must not contain ' Agent @ '")
        return v.strip()

    @property
    def display_agent_name(self) -> str:
        """Agent name shown in session names; defaults to the capitalised profile name."""
        return self.agent_name or self.name.capitalize()


# Used when no profile is configured or none matches a restarted session.
BUILTIN_DEFAULT_PROFILE = AgentProfile(
    name="default",
    agent_name="Default",
    description="Interactive shell session",
    command=["/bin/sh", "-i"],
)


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------

logger = structlog.get_logger()


class ProfileStore:
    """
    One YAML file per profile, plus a ``.default`` marker holding the name of
    the default profile.  Unreadable files are logged and left out of
    listings; ``get()`` on one raises.
    """

    MARKER = ".default"

    def __init__(self, profiles_dir: Path | None = None) -> None:
        self._dir = profiles_dir or (agentdeck_dir() / PROFILES_DIR_NAME)
        self._dir.mkdir(mode=0o700, parents=True, exist_ok=True)

    @property
    def profiles_dir(self) -> Path:
        return self._dir

    @property
    def _marker(self) -> Path:
        return self._dir / self.MARKER

    # -- CRUD ---------------------------------------------------------------

    def list_profiles(self) -> list[AgentProfile]:
        """Every readable profile, ordered by file name."""
        loaded = []
        for path in sorted(self._dir.glob("*.yaml")):
            try:
                loaded.append(self._read(path))
            except (ProfileError, ValidationError, yaml.YAMLError, OSError) as exc:
                logger.warning("profile_unreadable", path=str(path), error=str(exc))
        return loaded

    def get(self, name: str) -> AgentProfile | None:
        path = self._path_for(name)
        return self._read(path) if path.is_file() else None

    def save(self, profile: AgentProfile) -> Path:
        """Create or replace *profile*; only non-default fields are written."""
        path = self._path_for(profile.name)
        body = {"name": profile.name, **profile.model_dump(exclude_defaults=True)}
        tmp = path.with_suffix(".tmp")
        try:
            tmp.write_text(yaml.safe_dump(body, default_flow_style=False, sort_keys=False))
            tmp.replace(path)
        except OSError as exc:
            tmp.unlink(missing_ok=True)
            raise ProfileError(f"Cannot write profile {profile.name!r}: {exc}") from exc
        logger.debug("profile_saved", name=profile.name, path=str(path))
        return path

    def delete(self, name: str) -> bool:
        """Remove *name*; clears the default marker if it pointed there."""
        path = self._path_for(name)
        if not path.is_file():
            return False
        was_default = self.get_default() == name
        path.unlink()
        if was_default:
            self._marker.unlink(missing_ok=True)
        logger.debug("profile_deleted", name=name, was_default=was_default)
        return True

    # -- Lookup -------------------------------------------------------------

    def resolve(self, agent_name: str) -> AgentProfile | None:
        """First profile (by file name) whose display agent name is exactly *agent_name*."""
        if not agent_name:
            return None
        return next(
            (p for p in self.list_profiles() if p.display_agent_name == agent_name),
            None,
        )

    # -- Default profile ----------------------------------------------------

    def get_default(self) -> str | None:
        if not self._marker.is_file():
            return None
        return self._marker.read_text().strip() or None

    def set_default(self, name: str) -> None:
        if not self._path_for(name).is_file():
            raise ProfileError(f"Profile {name!r} does not exist")
        self._marker.write_text(name)

    def default_profile(self, preferred: str = "") -> AgentProfile:
        """
        Profile used when nothing more specific applies.

        *preferred* (from config) wins, then the ``.default`` marker, then
        the built-in shell profile.  Missing or unreadable candidates are
        skipped.
        """
        for name in filter(None, (preferred, self.get_default())):
            try:
                profile = self.get(name)
            except (ProfileError, ValidationError, yaml.YAMLError, OSError) as exc:
                logger.warning("default_profile_unreadable", name=name, error=str(exc))
                continue
            if profile is not None:
                return profile
        return BUILTIN_DEFAULT_PROFILE

    # -- Internals ----------------------------------------------------------

    def _path_for(self, name: str) -> Path:
        return self._dir / f"{name}.yaml"

    @staticmethod
    def _read(path: Path) -> AgentProfile:
        data = yaml.safe_load(path.read_text())
        if not isinstance(data, dict):
            raise ProfileError(f"{path.name}: expected a YAML mapping")
        return AgentProfile.model_validate(data)
