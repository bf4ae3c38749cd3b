"""agentdeck constants: filesystem layout, timing, and display sentinels."""

from __future__ import annotations

import os
import sys
from enum import IntEnum
from pathlib import Path

# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------


class ExitCode(IntEnum):
    SUCCESS = 0
    ERROR = 1
    CONFIG_ERROR = 2
    ENV_ERROR = 3


# ---------------------------------------------------------------------------
# Platform-specific data directory
# ---------------------------------------------------------------------------


def _default_data_dir() -> Path:
    """
    Return the platform-appropriate agentdeck data directory.

    macOS : ~/Library/Application Support/agentdeck
    Linux : ~/.config/agentdeck  (or $XDG_CONFIG_HOME/agentdeck)
    Other : ~/.agentdeck
    """
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "agentdeck"
    if sys.platform.startswith("linux"):
        xdg = Path(os.environ.get("XDG_CONFIG_HOME", str(Path.home() / ".config")))
        return xdg / "agentdeck"
    return Path.home() / ".agentdeck"


# ---------------------------------------------------------------------------
# Filesystem layout
# ---------------------------------------------------------------------------

CONFIG_FILENAME = "config.toml"
LOG_FILENAME = "agentdeck.log"
PROFILES_DIR_NAME = "profiles"

# ---------------------------------------------------------------------------
# Timing
# ---------------------------------------------------------------------------

POLL_INTERVAL_SECONDS = 2.0  # dashboard refresh period
KILL_GRACE_SECONDS = 0.1  # delay before re-reading state after a kill
TERMINATE_TIMEOUT_SECONDS = 3.0  # wait for a destroyed session's processes

# ---------------------------------------------------------------------------
# Display
# ---------------------------------------------------------------------------

EMPTY_FIELD = "-"
AGENT_NAME_SEPARATOR = " Agent @ "
TRAFFIC_HISTORY_LIMIT = 500
