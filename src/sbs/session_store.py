"""
Session metadata store.

Sessions are kept in a flat JSON file (a list of objects). The store is
small and cheap to read, so every operation re-reads the file rather than
caching; callers always get fresh copies and never share state with it.
"""

import json
import threading
from dataclasses import dataclass, fields, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from .logging_config import get_logger

logger = get_logger("session_store")


def now_rfc3339() -> str:
    """Current UTC time as an RFC 3339 string (second precision)."""
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


@dataclass
class SessionRecord:
    """Persisted record of one work session.

    A session pairs a git worktree, a tmux session and a sandbox under a
    single namespaced ID (e.g. "repo-42" or "test:quick").
    """

    namespaced_id: str
    issue_number: int = 0
    issue_title: str = ""
    repository_name: str = ""
    repository_root: str = ""
    branch: str = ""
    worktree_path: str = ""
    tmux_session: str = ""
    sandbox_name: str = ""
    last_activity: str = ""
    created_at: str = ""

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dict (snake_case keys)."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: dict) -> "SessionRecord":
        """Create a record from a dict, ignoring unknown keys.

        Raises:
            ValueError: if the entry has no namespaced_id
        """
        namespaced_id = data.get("namespaced_id") or ""
        if not namespaced_id:
            # Legacy entries only carried an issue number
            issue_number = data.get("issue_number") or 0
            if not issue_number:
                raise ValueError("session entry has no namespaced_id")
            namespaced_id = str(issue_number)

        issue_number = data.get("issue_number", 0)
        if not isinstance(issue_number, int) or isinstance(issue_number, bool):
            issue_number = 0

        def text(key: str) -> str:
            value = data.get(key, "")
            return value if isinstance(value, str) else ""

        return cls(
            namespaced_id=namespaced_id,
            issue_number=issue_number,
            issue_title=text("issue_title"),
            repository_name=text("repository_name"),
            repository_root=text("repository_root"),
            branch=text("branch"),
            worktree_path=text("worktree_path"),
            tmux_session=text("tmux_session"),
            sandbox_name=text("sandbox_name"),
            last_activity=text("last_activity"),
            created_at=text("created_at"),
        )

    @property
    def display_id(self) -> str:
        """Label used in dialogs and titles."""
        if self.namespaced_id:
            return f"Work Item {self.namespaced_id}"
        return f"Issue #{self.issue_number}"


def resolve_sandbox_name(record: SessionRecord) -> str:
    """Get the sandbox name for a session.

    Uses the stored name when present, otherwise the deterministic name
    sbs would have generated when creating the session.
    """
    if record.sandbox_name:
        return record.sandbox_name
    if record.repository_name:
        return f"sbs-{record.namespaced_id}"
    # Sessions created before repository-aware naming
    return f"work-issue-{record.namespaced_id}"


def filter_for_repository(records: List[SessionRecord], repository_root: Optional[str]) -> List[SessionRecord]:
    """Keep only sessions belonging to the given repository root.

    With no repository root, all records are returned (global view).
    """
    if not repository_root:
        return list(records)
    return [r for r in records if r.repository_root == repository_root]


class SessionStore:
    """JSON-file backed store of SessionRecord entries.

    Owns the on-disk records exclusively. All reads return new objects,
    all mutations go through load -> modify -> atomic write.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        # Serializes read-modify-write cycles from worker threads
        self._lock = threading.Lock()

    def load_all_sessions(self) -> List[SessionRecord]:
        """Load every session record.

        Returns:
            List of records; empty if the file does not exist

        Raises:
            ValueError: if the file exists but is not a JSON list
        """
        if not self.path.exists():
            return []
        with open(self.path) as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"invalid sessions file {self.path}: {e}") from e

        if not isinstance(data, list):
            raise ValueError(f"invalid sessions file {self.path}: expected a list")

        records = []
        for entry in data:
            if not isinstance(entry, dict):
                logger.warning(f"Skipping malformed session entry in {self.path}")
                continue
            try:
                records.append(SessionRecord.from_dict(entry))
            except ValueError as e:
                logger.warning(f"Skipping session entry: {e}")
        return records

    def save_sessions(self, records: List[SessionRecord]) -> None:
        """Replace the stored sessions atomically (temp file + rename)."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.path.with_suffix(".tmp")
        with open(temp_path, "w") as f:
            json.dump([r.to_dict() for r in records], f, indent=2)
        temp_path.replace(self.path)

    def get_session(self, namespaced_id: str) -> Optional[SessionRecord]:
        for record in self.load_all_sessions():
            if record.namespaced_id == namespaced_id:
                return record
        return None

    def upsert_session(self, record: SessionRecord) -> None:
        """Add a new session or update the existing one with the same ID."""
        with self._lock:
            records = self.load_all_sessions()
            for i, existing in enumerate(records):
                if existing.namespaced_id == record.namespaced_id:
                    records[i] = replace(record)
                    break
            else:
                if not record.created_at:
                    record = replace(record, created_at=now_rfc3339())
                records.append(replace(record))
            self.save_sessions(records)

    def remove_session(self, namespaced_id: str) -> bool:
        """Remove a session record.

        Returns:
            True if a record was removed, False if it was already gone
        """
        with self._lock:
            records = self.load_all_sessions()
            remaining = [r for r in records if r.namespaced_id != namespaced_id]
            if len(remaining) == len(records):
                return False
            self.save_sessions(remaining)
            return True

    def touch_session(self, namespaced_id: str, when: Optional[str] = None) -> bool:
        """Update a session's last_activity timestamp.

        Returns:
            True if the session exists and was updated
        """
        with self._lock:
            records = self.load_all_sessions()
            for i, record in enumerate(records):
                if record.namespaced_id == namespaced_id:
                    records[i] = replace(record, last_activity=when or now_rfc3339())
                    self.save_sessions(records)
                    return True
            return False
