"""agentdeck configuration: Pydantic model, load, save, and env overrides."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from agentdeck.core.constants import (
    CONFIG_FILENAME,
    KILL_GRACE_SECONDS,
    LOG_FILENAME,
    POLL_INTERVAL_SECONDS,
    _default_data_dir,
)
from agentdeck.core.exceptions import ConfigError, ConfigNotFoundError


def agentdeck_dir() -> Path:
    """
    Return the agentdeck data directory, creating it if needed.

    macOS : ~/Library/Application Support/agentdeck
    Linux : ~/.config/agentdeck  (or $XDG_CONFIG_HOME/agentdeck)
    Other : ~/.agentdeck
    """
    d = _default_data_dir()
    d.mkdir(mode=0o700, parents=True, exist_ok=True)
    return d


# ---------------------------------------------------------------------------
# Sub-models
# ---------------------------------------------------------------------------


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "text"  # "text" | "json"

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"log level must be one of {sorted(allowed)}")
        return v.upper()

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        if v not in ("text", "json"):
            raise ValueError("log format must be 'text' or 'json'")
        return v


class DashboardConfig(BaseModel):
    poll_interval_seconds: float = POLL_INTERVAL_SECONDS
    kill_grace_seconds: float = KILL_GRACE_SECONDS
    confirm_destructive: bool = True

    @field_validator("poll_interval_seconds")
    @classmethod
    def validate_poll_interval(cls, v: float) -> float:
        if not 0.5 <= v <= 60.0:
            raise ValueError("poll_interval_seconds must be between 0.5 and 60")
        return v

    @field_validator("kill_grace_seconds")
    @classmethod
    def validate_kill_grace(cls, v: float) -> float:
        if not 0.0 <= v <= 5.0:
            raise ValueError("kill_grace_seconds must be between 0 and 5")
        return v


class AgentDeckConfig(BaseModel):
    """Root configuration model."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    dashboard: DashboardConfig = Field(default_factory=DashboardConfig)
    default_profile: str = ""
    default_cwd: str = ""

    @property
    def log_path(self) -> Path:
        return agentdeck_dir() / LOG_FILENAME

    def session_cwd(self) -> str:
        """Working directory for newly created sessions."""
        if self.default_cwd:
            return str(Path(self.default_cwd).expanduser())
        return os.getcwd()


# ---------------------------------------------------------------------------
# Load / save
# ---------------------------------------------------------------------------


def _config_file_path() -> Path:
    env_path = os.environ.get("AGENTDECK_CONFIG")
    if env_path:
        return Path(env_path)
    return _default_data_dir() / CONFIG_FILENAME


def load_config(path: Path | str | None = None) -> AgentDeckConfig:
    """
    Load and validate configuration from a TOML file.

    Environment variables (``AGENTDECK_*``) override file values.

    Raises:
        ConfigNotFoundError: the file does not exist.
        ConfigError: the file cannot be parsed or fails validation.
    """
    import tomllib

    cfg_path = Path(path) if path else _config_file_path()
    if not cfg_path.exists():
        raise ConfigNotFoundError(f"Config file not found: {cfg_path}")

    try:
        with open(cfg_path, "rb") as f:
            data: dict[str, Any] = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Cannot read config {cfg_path}: {exc}") from exc

    return _validate(data, source=str(cfg_path))


def load_config_or_default(path: Path | str | None = None) -> AgentDeckConfig:
    """Like :func:`load_config` but returns defaults when no file exists."""
    try:
        return load_config(path)
    except ConfigNotFoundError:
        return _validate({}, source="defaults")


def _validate(data: dict[str, Any], *, source: str) -> AgentDeckConfig:
    _apply_env_overrides(data)
    try:
        return AgentDeckConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration ({source}): {exc}") from exc


def _apply_env_overrides(data: dict[str, Any]) -> None:
    """Apply ``AGENTDECK_*`` environment variables on top of file values (in-place)."""
    if level := os.environ.get("AGENTDECK_LOG_LEVEL", "").strip():
        data.setdefault("logging", {})["level"] = level
    if interval := os.environ.get("AGENTDECK_POLL_INTERVAL", "").strip():
        try:
            data.setdefault("dashboard", {})["poll_interval_seconds"] = float(interval)
        except ValueError:
            raise ConfigError(
                f"AGENTDECK_POLL_INTERVAL must be a number, got {interval!r}"
            ) from None
    if profile := os.environ.get("AGENTDECK_DEFAULT_PROFILE", "").strip():
        data["default_profile"] = profile


def save_config(config_data: dict[str, Any], path: Path | None = None) -> Path:
    """Write config dict to TOML file with secure permissions (0600)."""
    import copy

    import tomli_w

    cfg_path = path or _config_file_path()
    cfg_path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

    # Validate before touching the file
    _validate(copy.deepcopy(config_data), source="save")

    tmp_path = cfg_path.with_suffix(".tmp")
    try:
        with open(tmp_path, "wb") as f:
            tomli_w.dump(config_data, f)
        tmp_path.rename(cfg_path)
    except Exception as exc:
        tmp_path.unlink(missing_ok=True)
        raise ConfigError(f"Cannot write config to {cfg_path}: {exc}") from exc

    cfg_path.chmod(0o600)
    return cfg_path
