"""
In-memory implementations of the protocol interfaces for tests.

MockTmux and MockSandbox keep their state in plain sets, record every call
so tests can assert on them, and support failure injection for the probe
and teardown paths.
"""

from typing import Any, Dict, List, Optional, Set

from .protocols import CommandError, ProbeError


class MockTmux:
    """Mock implementation of TmuxInterface for testing"""

    def __init__(self, sessions: Optional[Set[str]] = None):
        self.sessions: Set[str] = set(sessions or ())
        self.killed: List[str] = []
        self.attached: List[str] = []
        self.has_session_calls: List[str] = []
        # Failure injection
        self.probe_error: Optional[Exception] = None
        self.kill_errors: Dict[str, Exception] = {}
        self.attach_error: Optional[Exception] = None

    def new_session(self, name: str) -> bool:
        if name in self.sessions:
            return False
        self.sessions.add(name)
        return True

    def has_session(self, name: str) -> bool:
        self.has_session_calls.append(name)
        if self.probe_error is not None:
            raise self.probe_error
        return name in self.sessions

    def kill_session(self, name: str) -> None:
        if name in self.kill_errors:
            raise self.kill_errors[name]
        if name not in self.sessions:
            raise CommandError(f"can't find session: {name}", exit_code=1)
        self.sessions.discard(name)
        self.killed.append(name)

    def list_sessions(self) -> List[Dict[str, Any]]:
        return [
            {"name": name, "created": None, "last_attached": None}
            for name in sorted(self.sessions)
        ]

    def attach(self, name: str) -> None:
        if self.attach_error is not None:
            raise self.attach_error
        if name not in self.sessions:
            raise CommandError(f"can't find session: {name}", exit_code=1)
        self.attached.append(name)


class MockSandbox:
    """Mock implementation of SandboxInterface for testing"""

    def __init__(self, sandboxes: Optional[Set[str]] = None):
        self.sandboxes: Set[str] = set(sandboxes or ())
        self.deleted: List[str] = []
        self.exists_calls: List[str] = []
        self.probe_error: Optional[Exception] = None
        self.delete_errors: Dict[str, Exception] = {}

    def create(self, name: str) -> None:
        self.sandboxes.add(name)

    def sandbox_exists(self, name: str) -> bool:
        self.exists_calls.append(name)
        if self.probe_error is not None:
            raise self.probe_error
        return name in self.sandboxes

    def delete_sandbox(self, name: str) -> None:
        if name in self.delete_errors:
            raise self.delete_errors[name]
        if name in self.sandboxes:
            self.sandboxes.discard(name)
            self.deleted.append(name)


class FailingProbe:
    """ExistenceProbe that always fails to query its collaborator."""

    def __init__(self, error: Optional[Exception] = None):
        self.error = error or ProbeError("collaborator unavailable")
        self.calls = 0

    def exists(self, name: str) -> bool:
        self.calls += 1
        raise self.error


class StaticProbe:
    """ExistenceProbe answering from a fixed set of names."""

    def __init__(self, present: Optional[Set[str]] = None):
        self.present: Set[str] = set(present or ())
        self.calls: List[str] = []

    def exists(self, name: str) -> bool:
        self.calls.append(name)
        return name in self.present
