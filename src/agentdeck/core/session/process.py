"""
Process handles and liveness sampling.

A ProcessHandle wraps a spawned ``subprocess.Popen`` (or an adopted pid) and
reports its state as a :class:`Liveness`.  Sampling never blocks: it polls
the child for a return code and otherwise asks psutil for the status.
"""

from __future__ import annotations

import signal
import subprocess

import psutil
import structlog

from agentdeck.core.session.models import Liveness

logger = structlog.get_logger()

_STOPPED_STATUSES = frozenset({psutil.STATUS_STOPPED, psutil.STATUS_TRACING_STOP})
_GONE_STATUSES = frozenset({psutil.STATUS_ZOMBIE, psutil.STATUS_DEAD})


class ProcessHandle:
    """One control or transport process."""

    def __init__(
        self,
        pid: int | None,
        *,
        popen: subprocess.Popen[bytes] | None = None,
        name: str = "",
    ) -> None:
        self.pid = pid
        self.name = name
        self._popen = popen
        self._proc: psutil.Process | None = None
        if pid is not None:
            try:
                # psutil.Process pins create_time, so a recycled pid reads as gone
                self._proc = psutil.Process(pid)
            except psutil.Error:
                self._proc = None

    @classmethod
    def spawn(
        cls,
        command: list[str],
        *,
        cwd: str,
        env: dict[str, str] | None = None,
        name: str = "",
    ) -> ProcessHandle:
        """Start *command* with a piped stdin so it can later receive EOF."""
        popen = subprocess.Popen(  # noqa: S603
            command,
            cwd=cwd,
            env=env,
            stdin=subprocess.PIPE,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
        logger.debug("process_spawned", name=name, pid=popen.pid, command=command[0])
        return cls(popen.pid, popen=popen, name=name)

    # ------------------------------------------------------------------
    # Sampling
    # ------------------------------------------------------------------

    def liveness(self) -> Liveness:
        if self.pid is None:
            return Liveness.NONE

        if self._popen is not None:
            code = self._popen.poll()
            if code is not None:
                return Liveness.SIGNAL if code < 0 else Liveness.EXIT

        if self._proc is None:
            return Liveness.EXIT
        try:
            if not self._proc.is_running():
                return Liveness.EXIT
            status = self._proc.status()
        except psutil.NoSuchProcess:
            return Liveness.EXIT
        except psutil.AccessDenied:
            # Exists but belongs to someone else; it is still running
            return Liveness.RUN

        if status in _STOPPED_STATUSES:
            return Liveness.STOP
        if status in _GONE_STATUSES:
            return Liveness.EXIT
        return Liveness.RUN

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def send_eof(self) -> bool:
        """Close the process's stdin. Returns False when there is no pipe to close."""
        if self._popen is None or self._popen.stdin is None or self._popen.stdin.closed:
            return False
        try:
            self._popen.stdin.close()
        except OSError:
            return False
        return True

    def send_signal(self, sig: signal.Signals) -> bool:
        if self._proc is None:
            return False
        try:
            self._proc.send_signal(sig)
        except psutil.NoSuchProcess:
            return False
        return True

    def kill(self) -> bool:
        """Forcibly terminate the process (SIGKILL)."""
        if self._popen is not None and self._popen.poll() is None:
            self._popen.kill()
            return True
        if self._proc is None:
            return False
        try:
            self._proc.kill()
        except psutil.NoSuchProcess:
            return False
        return True

    def request_stop(self) -> bool:
        """
        Close stdin and send SIGTERM without waiting for the process to exit.

        Returns False when the process was already gone.  Callers that need
        the process dead follow up with :meth:`kill` once a grace period has
        passed.
        """
        if self._popen is not None:
            self.send_eof()
            if self._popen.poll() is not None:
                return False
            self._popen.terminate()
            return True
        if self._proc is None:
            return False
        try:
            self._proc.terminate()
        except psutil.NoSuchProcess:
            return False
        return True

    def wait(self, timeout: float) -> bool:
        """Block up to *timeout* seconds for the process to exit. True once it has."""
        if self._popen is not None:
            try:
                self._popen.wait(timeout=max(timeout, 0))
            except subprocess.TimeoutExpired:
                return False
            return True
        if self._proc is None:
            return True
        try:
            self._proc.wait(timeout=max(timeout, 0))
        except psutil.TimeoutExpired:
            return False
        except psutil.NoSuchProcess:
            pass
        return True

    def __repr__(self) -> str:
        return f"ProcessHandle(name={self.name!r}, pid={self.pid})"
