"""
agentdeck — live terminal dashboard for agent sessions.

Every tracked agent session is backed by two cooperating processes: an
interactive control process and an optional transport process that speaks
the agent protocol. agentdeck samples both, folds their liveness and the
session's activity signals into one status per session, and renders the
sessions as a stably ordered table that pushes dead sessions to the bottom.

Package layout (src/agentdeck/):
  core/          — constants, config, logging, exceptions, profiles
  core/session/  — session models, process liveness, registry, status logic
  ui/            — entry aggregation, scheduler, actions, Textual screens
  cli/           — Click CLI entry point
"""

__version__ = "0.4.0"
__all__ = ["__version__"]
