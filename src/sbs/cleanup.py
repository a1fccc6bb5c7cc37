"""
Cleanup engine for stale sessions.

Identifies stale sessions via the StatusDetector and tears down every
resource a session owns (tmux session, sandbox, optionally the worktree)
before removing its metadata record. Each record is processed
independently: a failure is recorded against that record and processing
moves on to the next one.

Everything is re-checked immediately before it is torn down, because the
candidate set may have been computed minutes earlier (e.g. while a
confirmation dialog was open) and the user may have changed things in
another terminal since.
"""

import os
import shutil
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .logging_config import StructuredLogger, get_structured_logger
from .protocols import (
    CommandError,
    ProbeError,
    SandboxInterface,
    SessionStoreInterface,
    TmuxInterface,
)
from .session_store import SessionRecord, filter_for_repository, resolve_sandbox_name
from .status_detector import StatusDetector

# Substrings a worktree path must contain before we agree to delete it
WORKTREE_PATH_MARKERS = ("sbs", "worktree")

STEP_STORE = "store"
STEP_TMUX = "tmux"
STEP_SANDBOX = "sandbox"
STEP_WORKTREE = "worktree"


class ViewScope(Enum):
    """Which sessions a view (and therefore a cleanup) covers."""

    REPOSITORY = "repository"
    GLOBAL = "global"


class CleanupError(Exception):
    """One step of tearing down one session failed."""

    def __init__(self, namespaced_id: str, step: str, cause: object):
        self.namespaced_id = namespaced_id
        self.step = step
        self.cause = cause
        super().__init__(f"{namespaced_id}: {step}: {cause}")


@dataclass
class CleanupOptions:
    dry_run: bool = False
    clean_worktrees: bool = False

    @classmethod
    def for_tui(cls) -> "CleanupOptions":
        """TUI cleanup removes tmux sessions and sandboxes, never worktrees."""
        return cls()

    @classmethod
    def for_cli(cls, dry_run: bool = False, worktrees: bool = False) -> "CleanupOptions":
        return cls(dry_run=dry_run, clean_worktrees=worktrees)


@dataclass
class CleanupResult:
    """Aggregate outcome of cleanup_sessions."""

    cleaned_count: int = 0
    errors: List[CleanupError] = field(default_factory=list)
    details: List[str] = field(default_factory=list)
    cleaned_ids: List[str] = field(default_factory=list)
    would_clean: int = 0

    @property
    def ok(self) -> bool:
        return not self.errors

    def summary(self) -> str:
        """One-line summary for status lines."""
        if self.would_clean and not self.cleaned_count:
            return f"Would clean {self.would_clean} stale session(s)"
        text = f"Cleaned {self.cleaned_count} stale session(s)"
        if self.errors:
            text += f", {len(self.errors)} error(s)"
        return text


def is_safe_worktree_path(path: str) -> bool:
    """Check that a path looks like an sbs worktree before deleting it."""
    return any(marker in path for marker in WORKTREE_PATH_MARKERS)


class CleanupManager:
    """Finds stale sessions and tears them down."""

    def __init__(
        self,
        tmux: TmuxInterface,
        sandbox: SandboxInterface,
        store: SessionStoreInterface,
        detector: StatusDetector,
        logger: Optional[StructuredLogger] = None,
    ):
        self.tmux = tmux
        self.sandbox = sandbox
        self.store = store
        self.detector = detector
        self.log = logger or get_structured_logger("cleanup")

    def identify_stale_sessions(
        self,
        records: List[SessionRecord],
        scope: ViewScope,
        repository_root: Optional[str] = None,
    ) -> List[SessionRecord]:
        """Select the stale sessions visible in the given scope."""
        if scope is ViewScope.REPOSITORY:
            records = filter_for_repository(records, repository_root)
        return [
            r for r in records
            if self.detector.detect_session_status(r).is_stale
        ]

    def cleanup_sessions(
        self, records: List[SessionRecord], options: Optional[CleanupOptions] = None
    ) -> CleanupResult:
        """Tear down each session and remove its record.

        A record is removed from the store only when every teardown step
        for it succeeded.
        """
        options = options or CleanupOptions()
        result = CleanupResult()

        if options.dry_run:
            result.would_clean = len(records)
            for record in records:
                result.details.append(self._describe(record))
            return result

        for record in records:
            log = self.log.with_context(session_id=record.namespaced_id)
            try:
                cleaned = self._cleanup_one(record, options, result.details)
            except CleanupError as e:
                log.warning("cleanup failed", step=e.step, error=e.cause)
                result.errors.append(e)
                continue
            if cleaned:
                log.info("session cleaned")
                result.cleaned_count += 1
                result.cleaned_ids.append(record.namespaced_id)
        return result

    def _describe(self, record: SessionRecord) -> str:
        text = f"Would clean {record.display_id}: {record.issue_title}"
        if record.worktree_path:
            text += f"\n    Worktree: {record.worktree_path}"
        text += f"\n    Sandbox: {resolve_sandbox_name(record)}"
        return text

    def _cleanup_one(self, record: SessionRecord, options: CleanupOptions, details: List[str]) -> bool:
        """Clean a single session.

        Returns:
            True if the session was cleaned, False if it was already gone

        Raises:
            CleanupError: on the first failing step
        """
        sid = record.namespaced_id
        try:
            current = self.store.get_session(sid)
        except (OSError, ValueError) as e:
            raise CleanupError(sid, STEP_STORE, e) from e
        if current is None:
            details.append(f"{record.display_id} already removed")
            return False

        if current.tmux_session:
            try:
                if self.tmux.has_session(current.tmux_session):
                    self.tmux.kill_session(current.tmux_session)
                    details.append(f"Killed tmux session: {current.tmux_session}")
            except (ProbeError, CommandError, OSError) as e:
                raise CleanupError(sid, STEP_TMUX, e) from e

        sandbox_name = resolve_sandbox_name(current)
        try:
            if self.sandbox.sandbox_exists(sandbox_name):
                self.sandbox.delete_sandbox(sandbox_name)
                details.append(f"Removed sandbox: {sandbox_name}")
        except (ProbeError, CommandError, OSError) as e:
            raise CleanupError(sid, STEP_SANDBOX, e) from e

        if options.clean_worktrees and current.worktree_path:
            self._remove_worktree(sid, current.worktree_path, details)

        try:
            self.store.remove_session(sid)
        except (OSError, ValueError) as e:
            raise CleanupError(sid, STEP_STORE, e) from e
        return True

    def _remove_worktree(self, sid: str, path: str, details: List[str]) -> None:
        if not os.path.exists(path):
            details.append(f"Worktree already gone: {path}")
            return
        if not is_safe_worktree_path(path):
            raise CleanupError(sid, STEP_WORKTREE, f"path doesn't appear to be a worktree: {path}")
        try:
            shutil.rmtree(path)
        except OSError as e:
            raise CleanupError(sid, STEP_WORKTREE, e) from e
        details.append(f"Removed worktree: {path}")

    def stop_session(self, record: SessionRecord) -> List[str]:
        """Stop a session without forgetting it.

        Kills the tmux session and deletes the sandbox when present, then
        bumps last_activity. The worktree and the metadata record are kept
        so the session can be resumed.

        Returns:
            Human-readable list of actions taken

        Raises:
            CleanupError: if tmux or the sandbox could not be torn down, or
                the store could not be updated
        """
        sid = record.namespaced_id
        log = self.log.with_context(session_id=sid)
        actions: List[str] = []

        if record.tmux_session:
            try:
                if self.tmux.has_session(record.tmux_session):
                    self.tmux.kill_session(record.tmux_session)
                    actions.append(f"Killed tmux session: {record.tmux_session}")
            except (ProbeError, CommandError, OSError) as e:
                log.warning("stop failed", step=STEP_TMUX, error=e)
                raise CleanupError(sid, STEP_TMUX, e) from e

        sandbox_name = resolve_sandbox_name(record)
        try:
            if self.sandbox.sandbox_exists(sandbox_name):
                self.sandbox.delete_sandbox(sandbox_name)
                actions.append(f"Removed sandbox: {sandbox_name}")
        except (ProbeError, CommandError, OSError) as e:
            log.warning("stop failed", step=STEP_SANDBOX, error=e)
            raise CleanupError(sid, STEP_SANDBOX, e) from e

        try:
            self.store.touch_session(sid)
        except (OSError, ValueError) as e:
            log.warning("stop failed", step=STEP_STORE, error=e)
            raise CleanupError(sid, STEP_STORE, e) from e
        log.info("session stopped", actions=len(actions))
        return actions
