"""
Real implementations of protocol interfaces.

These are production implementations that use libtmux for tmux operations
and the `sandbox` command line tool for sandboxes.
"""

import os
import subprocess
import time
from typing import Optional, List, Dict, Any

import libtmux
from libtmux.exc import LibTmuxException

from .logging_config import StructuredLogger, get_structured_logger
from .protocols import CommandError, ProbeError, SandboxInterface, TmuxInterface

SANDBOX_BINARY = "sandbox"
# Timeout for quick sandbox queries (list/delete)
SANDBOX_COMMAND_TIMEOUT = 30


class RealTmux:
    """Production implementation of TmuxInterface using libtmux."""

    def __init__(self, socket_name: Optional[str] = None, logger: Optional[StructuredLogger] = None):
        """Initialize with optional socket name for test isolation.

        If no socket_name is provided, checks SBS_TMUX_SOCKET env var.
        """
        self._socket_name = socket_name or os.environ.get("SBS_TMUX_SOCKET")
        self._server: Optional[libtmux.Server] = None
        self._log = logger or get_structured_logger("commands")

    @property
    def server(self) -> libtmux.Server:
        """Lazy-load the tmux server connection."""
        if self._server is None:
            if self._socket_name:
                self._server = libtmux.Server(socket_name=self._socket_name)
            else:
                self._server = libtmux.Server()
        return self._server

    def has_session(self, name: str) -> bool:
        start = time.monotonic()
        try:
            exists = bool(self.server.has_session(name))
        except (LibTmuxException, OSError) as e:
            self._log.debug("tmux has-session failed", session=name, error=e)
            raise ProbeError(f"could not query tmux for session {name}: {e}") from e
        self._log.info(
            "tmux has-session",
            session=name,
            exists=exists,
            duration_ms=int((time.monotonic() - start) * 1000),
        )
        return exists

    def kill_session(self, name: str) -> None:
        try:
            self.server.kill_session(name)
        except (LibTmuxException, OSError) as e:
            self._log.debug("tmux kill-session failed", session=name, error=e)
            raise CommandError(f"failed to kill tmux session {name}: {e}") from e
        self._log.info("tmux kill-session", session=name)

    def list_sessions(self) -> List[Dict[str, Any]]:
        try:
            sessions = []
            for sess in self.server.sessions:
                sessions.append({
                    "name": sess.session_name,
                    "created": sess.session_created,
                    "last_attached": sess.session_last_attached,
                })
            return sessions
        except LibTmuxException:
            # No server running means no sessions
            return []

    def attach(self, name: str) -> None:
        cmd = ["tmux"]
        if self._socket_name:
            cmd += ["-L", self._socket_name]
        cmd += ["attach-session", "-t", name]
        self._log.info("tmux attach-session", session=name)
        try:
            result = subprocess.run(cmd)
        except OSError as e:
            raise CommandError(f"failed to run tmux attach: {e}") from e
        if result.returncode != 0:
            raise CommandError(
                f"tmux attach-session -t {name} exited with {result.returncode}",
                exit_code=result.returncode,
            )


class RealSandbox:
    """Production implementation of SandboxInterface using the sandbox CLI."""

    def __init__(self, binary: str = SANDBOX_BINARY, logger: Optional[StructuredLogger] = None):
        self.binary = binary
        self._log = logger or get_structured_logger("commands")

    def _run(self, args: List[str]) -> subprocess.CompletedProcess:
        """Run a sandbox command, logging the invocation and its outcome.

        Raises:
            ProbeError: if the binary could not be started or timed out
        """
        cmd = [self.binary] + args
        start = time.monotonic()
        try:
            result = subprocess.run(
                cmd, capture_output=True, text=True, timeout=SANDBOX_COMMAND_TIMEOUT
            )
        except (OSError, subprocess.SubprocessError) as e:
            self._log.debug("command failed to run", command=" ".join(cmd), error=e)
            raise ProbeError(f"failed to run {' '.join(cmd)}: {e}") from e
        self._log.info(
            "command finished",
            command=" ".join(cmd),
            exit_code=result.returncode,
            duration_ms=int((time.monotonic() - start) * 1000),
        )
        return result

    def list_sandboxes(self) -> List[str]:
        """Names of all sandboxes reported by `sandbox list`."""
        result = self._run(["list"])
        if result.returncode != 0:
            # sandbox exits non-zero when there is nothing to list
            return []
        names = []
        for line in result.stdout.splitlines():
            parts = line.split()
            if parts:
                names.append(parts[0])
        return names

    def sandbox_exists(self, name: str) -> bool:
        return name in self.list_sandboxes()

    def delete_sandbox(self, name: str) -> None:
        try:
            if not self.sandbox_exists(name):
                return
            result = self._run(["delete", name, "-y"])
        except ProbeError as e:
            raise CommandError(f"failed to delete sandbox {name}: {e}") from e
        if result.returncode != 0:
            raise CommandError(
                f"failed to delete sandbox {name}: {result.stderr.strip() or 'exit ' + str(result.returncode)}",
                exit_code=result.returncode,
            )


class TmuxSessionProbe:
    """ExistenceProbe adapter over TmuxInterface.has_session."""

    def __init__(self, tmux: TmuxInterface):
        self.tmux = tmux

    def exists(self, name: str) -> bool:
        return self.tmux.has_session(name)


class SandboxProbe:
    """ExistenceProbe adapter over SandboxInterface.sandbox_exists."""

    def __init__(self, sandbox: SandboxInterface):
        self.sandbox = sandbox

    def exists(self, name: str) -> bool:
        return self.sandbox.sandbox_exists(name)
