"""
Messages carrying background work results back to the TUI.

Worker threads never touch app state; each finishes by posting exactly one
of these to the app, which handles it on the event loop thread.
"""

from typing import Dict, List, Optional

from textual.message import Message

from .cleanup import CleanupResult
from .log_executor import LogScriptError
from .session_store import SessionRecord
from .status_detector import SessionStatus


class SessionsRefreshed(Message):
    """Session list reloaded and reconciled for one view."""

    def __init__(
        self,
        view: str,
        records: List[SessionRecord],
        statuses: Dict[str, SessionStatus],
        error: Optional[str] = None,
    ):
        super().__init__()
        self.view = view
        self.records = records
        self.statuses = statuses
        self.error = error


class StaleSessionsIdentified(Message):
    """Cleanup candidates computed for the c key."""

    def __init__(self, candidates: List[SessionRecord], error: Optional[str] = None):
        super().__init__()
        self.candidates = candidates
        self.error = error


class CleanupFinished(Message):
    """Outcome of a confirmed cleanup; `error` is set when it could not run at all."""

    def __init__(self, result: CleanupResult, error: Optional[str] = None):
        super().__init__()
        self.result = result
        self.error = error


class StopFinished(Message):
    def __init__(self, session_id: str, actions: List[str], error: Optional[str] = None):
        super().__init__()
        self.session_id = session_id
        self.actions = actions
        self.error = error


class AttachFinished(Message):
    def __init__(self, session_id: str, error: Optional[str] = None):
        super().__init__()
        self.session_id = session_id
        self.error = error


class LogRefreshed(Message):
    """One run of a session's log script completed.

    `generation` identifies the log view visit that requested it.
    """

    def __init__(
        self,
        session_id: str,
        generation: int,
        output: str,
        error: Optional[LogScriptError] = None,
    ):
        super().__init__()
        self.session_id = session_id
        self.generation = generation
        self.output = output
        self.error = error
