"""
Protocol definitions for external dependencies.

These interfaces allow dependency injection for testing, enabling us to
swap real implementations (tmux via libtmux, the sandbox CLI, the JSON
session file) with in-memory mocks in tests.
"""

from typing import Protocol, Optional, List, Dict, Any, runtime_checkable, TYPE_CHECKING

if TYPE_CHECKING:
    from .session_store import SessionRecord


class ProbeError(Exception):
    """An external tool could not be queried at all (e.g. binary missing).

    Distinct from "resource not found": a probe that ran and found nothing
    returns False instead of raising.
    """


class CommandError(Exception):
    """An external command ran but failed."""

    def __init__(self, message: str, exit_code: Optional[int] = None):
        super().__init__(message)
        self.exit_code = exit_code


@runtime_checkable
class ExistenceProbe(Protocol):
    """Read-only existence check against one external collaborator."""

    def exists(self, name: str) -> bool:
        """Check whether the named resource exists.

        Returns:
            True if present, False if absent

        Raises:
            ProbeError: if the collaborator could not be queried
        """
        ...


@runtime_checkable
class TmuxInterface(Protocol):
    """Interface for tmux operations"""

    def has_session(self, name: str) -> bool:
        """Check if a tmux session exists.

        Raises:
            ProbeError: if tmux could not be queried
        """
        ...

    def kill_session(self, name: str) -> None:
        """Kill a tmux session.

        Raises:
            CommandError: if the session could not be killed
        """
        ...

    def list_sessions(self) -> List[Dict[str, Any]]:
        """List tmux sessions.

        Returns:
            List of dicts with 'name', 'created', 'last_attached'
        """
        ...

    def attach(self, name: str) -> None:
        """Attach the current terminal to a session (blocks until detach).

        Raises:
            CommandError: if attaching failed
        """
        ...


@runtime_checkable
class SandboxInterface(Protocol):
    """Interface for sandbox operations"""

    def sandbox_exists(self, name: str) -> bool:
        """Check if a sandbox exists.

        Raises:
            ProbeError: if the sandbox tool could not be queried
        """
        ...

    def delete_sandbox(self, name: str) -> None:
        """Delete a sandbox (no-op if it does not exist).

        Raises:
            CommandError: if deletion failed
        """
        ...


@runtime_checkable
class SessionStoreInterface(Protocol):
    """Interface for the session metadata store"""

    def load_all_sessions(self) -> List["SessionRecord"]:
        ...

    def get_session(self, namespaced_id: str) -> Optional["SessionRecord"]:
        ...

    def remove_session(self, namespaced_id: str) -> bool:
        ...

    def touch_session(self, namespaced_id: str, when: Optional[str] = None) -> bool:
        ...
