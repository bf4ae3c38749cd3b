"""
UI service layer — user commands forwarded to the session registry.

``SessionActions.dispatch()`` is the one entry point.  Every action either
succeeds and triggers a refresh, or comes back as a recoverable
:class:`ActionResult`; nothing raised by the registry reaches the screen.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

import structlog

from agentdeck.core.config import AgentDeckConfig
from agentdeck.core.constants import EMPTY_FIELD
from agentdeck.core.exceptions import AgentDeckError, ProfileError, StaleHandleError
from agentdeck.core.profile import AgentProfile, ProfileStore
from agentdeck.core.session.manager import SessionBackend
from agentdeck.core.session.models import is_live
from agentdeck.core.session.naming import agent_name_of
from agentdeck.ui.polling import build_entries

logger = structlog.get_logger()


class Action(StrEnum):
    GOTO = "goto"
    KILL = "kill"
    CREATE = "create"
    RESTART = "restart"
    DELETE_KILLED = "delete_killed"
    SET_MODE = "set_mode"
    SET_MODEL = "set_model"
    INTERRUPT = "interrupt"
    VIEW_TRAFFIC = "view_traffic"
    TOGGLE_LOGGING = "toggle_logging"


CONFIRM_ACTIONS = frozenset({Action.KILL, Action.RESTART, Action.DELETE_KILLED})
_GLOBAL_ACTIONS = frozenset({Action.CREATE, Action.DELETE_KILLED, Action.TOGGLE_LOGGING})


@dataclass
class ActionResult:
    ok: bool
    message: str = ""
    severity: str = "information"  # Textual notify severity
    stale: bool = False
    cancelled: bool = False
    payload: Any = None


def _call_now(_delay: float, callback: Callable[[], object]) -> object:
    return callback()


class SessionActions:
    """Dispatches dashboard commands to a :class:`SessionBackend`."""

    def __init__(
        self,
        registry: SessionBackend,
        profiles: ProfileStore,
        *,
        refresh: Callable[[], object],
        confirm: Callable[[str], bool] | None = None,
        call_later: Callable[[float, Callable[[], object]], object] | None = None,
        config: AgentDeckConfig | None = None,
    ) -> None:
        self._registry = registry
        self._profiles = profiles
        self._refresh = refresh
        self._confirm = confirm
        self._call_later = call_later or _call_now
        self._config = config or AgentDeckConfig()

    def set_call_later(self, call_later: Callable[[float, Callable[[], object]], object]) -> None:
        self._call_later = call_later

    # ------------------------------------------------------------------
    # Confirmation
    # ------------------------------------------------------------------

    def confirmation_prompt(
        self,
        action: Action,
        handle: str | None = None,
        *,
        targets: Sequence[str] | None = None,
    ) -> str | None:
        """
        Question to put to the user before *action*, or None if none is needed.

        For DELETE_KILLED, *targets* is the list the answer will apply to;
        it defaults to the sessions killed right now.
        """
        if action not in CONFIRM_ACTIONS or not self._config.dashboard.confirm_destructive:
            return None
        if action == Action.DELETE_KILLED:
            killed = self.killed_handles() if targets is None else targets
            if not killed:
                return None
            return f"Delete {len(killed)} killed session(s)?"
        name = self._name_of(handle)
        if action == Action.KILL:
            return f"Kill {name}?"
        return f"Restart {name}?"

    def killed_handles(self) -> list[str]:
        """Handles of registered sessions whose transport has ended."""
        return [e.handle for e in build_entries(self._registry) if e.is_killed]

    def _confirmed(self, prompt: Callable[[], str | None], confirmed: bool | None) -> bool:
        if confirmed is not None:
            return confirmed
        question = prompt()
        if question is None:
            return True
        if self._confirm is None:
            return False
        return bool(self._confirm(question))

    # ------------------------------------------------------------------
    # Choices for set-mode / set-model / create
    # ------------------------------------------------------------------

    def mode_choices(self, handle: str | None) -> list[tuple[str, str]]:
        meta = self._registry.snapshot(self._require_live(handle)).meta
        if meta is None:
            return []
        return list(meta.modes.items())

    def model_choices(self, handle: str | None) -> list[tuple[str, str]]:
        meta = self._registry.snapshot(self._require_live(handle)).meta
        if meta is None:
            return []
        return [(m.model_id, m.name) for m in meta.models]

    def profile_choices(self) -> list[tuple[str, str]]:
        return [(p.name, p.display_agent_name) for p in self._profiles.list_profiles()]

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(
        self,
        action: Action,
        handle: str | None = None,
        *,
        confirmed: bool | None = None,
        value: str | None = None,
        targets: Sequence[str] | None = None,
    ) -> ActionResult:
        """
        Run *action* on *handle*.

        *confirmed* carries the answer to ``confirmation_prompt()`` when the
        caller asked already; None means ask through the ``confirm``
        callback.  *targets* pins the sessions DELETE_KILLED removes to the
        ones the user was asked about.
        """
        log = logger.bind(action=str(action), handle=(handle or "")[:8])
        try:
            if action not in _GLOBAL_ACTIONS:
                self._require_live(handle)
            if action == Action.DELETE_KILLED:
                result = self._delete_killed(targets, confirmed)
            else:
                if action in CONFIRM_ACTIONS and not self._confirmed(
                    lambda: self.confirmation_prompt(action, handle), confirmed
                ):
                    return ActionResult(ok=True, message="Cancelled", cancelled=True)
                result = self._handlers()[action](handle, value, confirmed)
        except StaleHandleError as exc:
            log.warning("action_stale_handle")
            return ActionResult(ok=False, message=str(exc), severity="warning", stale=True)
        except AgentDeckError as exc:
            log.warning("action_failed", error=str(exc))
            return ActionResult(ok=False, message=str(exc), severity="error")
        log.info("action_dispatched", ok=result.ok, cancelled=result.cancelled)
        return result

    def _handlers(self) -> dict[Action, Callable[[Any, Any, Any], ActionResult]]:
        return {
            Action.GOTO: self._goto,
            Action.KILL: self._kill,
            Action.CREATE: self._create,
            Action.RESTART: self._restart,
            Action.SET_MODE: self._set_mode,
            Action.SET_MODEL: self._set_model,
            Action.INTERRUPT: self._interrupt,
            Action.VIEW_TRAFFIC: self._view_traffic,
            Action.TOGGLE_LOGGING: self._toggle_logging,
        }

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _goto(self, handle: str, _value: Any, _confirmed: Any) -> ActionResult:
        snapshot = self._registry.snapshot(handle)
        return ActionResult(ok=True, payload=snapshot)

    def _kill(self, handle: str, _value: Any, _confirmed: Any) -> ActionResult:
        snapshot = self._registry.snapshot(handle)
        ended = False
        if is_live(snapshot.transport_liveness):
            ended = self._registry.send_graceful_end(handle)
        # Let the transport's exit land before the next read
        self._call_later(self._config.dashboard.kill_grace_seconds, self._refresh)
        if ended:
            return ActionResult(ok=True, message=f"Killed {snapshot.display_name}")
        return ActionResult(
            ok=True,
            message=f"{snapshot.display_name} has no live transport to end",
            severity="warning",
        )

    def _create(self, _handle: Any, value: str | None, _confirmed: Any) -> ActionResult:
        profile = self._profile_named(value) if value else self._default_profile()
        new_handle = self._registry.create_session(profile, self._config.session_cwd())
        self._refresh()
        return ActionResult(
            ok=True,
            message=f"Started {profile.display_agent_name} agent",
            payload=new_handle,
        )

    def _restart(self, handle: str, _value: Any, _confirmed: Any) -> ActionResult:
        snapshot = self._registry.snapshot(handle)
        agent_name = agent_name_of(snapshot.display_name)
        profile = None
        if agent_name != EMPTY_FIELD:
            profile = self._profiles.resolve(agent_name)
        if profile is None:
            profile = self._default_profile()

        if is_live(snapshot.transport_liveness):
            self._registry.force_terminate(handle)
        self._registry.destroy_session(handle)
        new_handle = self._registry.create_session(
            profile, snapshot.cwd or self._config.session_cwd()
        )
        self._refresh()
        logger.info(
            "session_restarted",
            old_handle=handle[:8],
            new_handle=new_handle[:8],
            profile=profile.name,
        )
        return ActionResult(
            ok=True,
            message=f"Restarted {snapshot.display_name} with profile {profile.name!r}",
            payload=new_handle,
        )

    def _delete_killed(
        self, targets: Sequence[str] | None, confirmed: bool | None
    ) -> ActionResult:
        killed = self.killed_handles() if targets is None else list(targets)
        # Sessions already removed since the question was asked are skipped
        killed = [h for h in killed if self._registry.is_live(h)]
        if not killed:
            return ActionResult(ok=True, message="No killed sessions")
        if not self._confirmed(
            lambda: self.confirmation_prompt(Action.DELETE_KILLED, targets=killed), confirmed
        ):
            return ActionResult(ok=True, message="Cancelled", cancelled=True)
        for handle in killed:
            self._registry.destroy_session(handle)
        self._refresh()
        return ActionResult(ok=True, message=f"Deleted {len(killed)} killed session(s)")

    def _set_mode(self, handle: str, value: str | None, _confirmed: Any) -> ActionResult:
        if not value:
            return ActionResult(ok=False, message="No mode selected", severity="warning")
        self._registry.set_mode(handle, value)
        self._refresh()
        return ActionResult(ok=True, message=f"Mode set to {value}")

    def _set_model(self, handle: str, value: str | None, _confirmed: Any) -> ActionResult:
        if not value:
            return ActionResult(ok=False, message="No model selected", severity="warning")
        self._registry.set_model(handle, value)
        self._refresh()
        return ActionResult(ok=True, message=f"Model set to {value}")

    def _interrupt(self, handle: str, _value: Any, _confirmed: Any) -> ActionResult:
        self._registry.interrupt(handle)
        self._refresh()
        return ActionResult(ok=True, message=f"Interrupted {self._name_of(handle)}")

    def _view_traffic(self, handle: str, _value: Any, _confirmed: Any) -> ActionResult:
        records = self._registry.view_traffic(handle)
        self._refresh()
        return ActionResult(ok=True, payload=records)

    def _toggle_logging(self, _handle: Any, _value: Any, _confirmed: Any) -> ActionResult:
        enabled = self._registry.toggle_logging()
        self._refresh()
        state = "enabled" if enabled else "disabled"
        return ActionResult(ok=True, message=f"Traffic logging {state}", payload=enabled)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_live(self, handle: str | None) -> str:
        if not handle or not self._registry.is_live(handle):
            raise StaleHandleError(handle or "")
        return handle

    def _name_of(self, handle: str | None) -> str:
        if not handle:
            return EMPTY_FIELD
        return self._registry.snapshot(handle).display_name or handle[:8]

    def _default_profile(self) -> AgentProfile:
        return self._profiles.default_profile(self._config.default_profile)

    def _profile_named(self, name: str) -> AgentProfile:
        try:
            profile = self._profiles.get(name)
        except ProfileError:
            raise
        except Exception as exc:  # noqa: BLE001  yaml or validation errors
            raise ProfileError(f"Profile {name!r} cannot be loaded: {exc}") from exc
        if profile is None:
            raise ProfileError(f"Profile {name!r} not found")
        return profile
