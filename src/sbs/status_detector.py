"""
Session status detection.

Reconciles a session record with live probes of tmux and the sandbox
manager into one status:

- both present -> active
- exactly one present -> stopped (partially torn down, recoverable)
- neither present -> stale

A probe that cannot be queried counts as "absent". Marking a session stale
by mistake is preferred to leaking resources nobody notices.
"""

import logging
import subprocess
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from .formatters import format_since
from .logging_config import get_logger
from .protocols import ExistenceProbe, ProbeError
from .session_store import SessionRecord, resolve_sandbox_name
from .status_constants import STATUS_ACTIVE, STATUS_STALE, STATUS_STOPPED

# Errors a probe may raise that mean "could not tell"
PROBE_FAILURES = (ProbeError, OSError, subprocess.SubprocessError)


@dataclass(frozen=True)
class SessionStatus:
    """Derived status of a session. Never persisted."""

    status: str
    time_delta: str

    @property
    def is_active(self) -> bool:
        return self.status == STATUS_ACTIVE

    @property
    def is_stale(self) -> bool:
        return self.status == STATUS_STALE


class StatusDetector:
    """Computes SessionStatus from a record plus tmux and sandbox probes.

    Detection is read-only and safe to call from several threads at once.
    """

    def __init__(
        self,
        tmux_probe: ExistenceProbe,
        sandbox_probe: ExistenceProbe,
        logger: Optional[logging.Logger] = None,
    ):
        self.tmux_probe = tmux_probe
        self.sandbox_probe = sandbox_probe
        self.logger = logger or get_logger("status_detector")

    def _probe(self, probe: ExistenceProbe, kind: str, name: str) -> bool:
        if not name:
            return False
        try:
            return bool(probe.exists(name))
        except PROBE_FAILURES as e:
            self.logger.debug(f"{kind} probe failed for {name}, treating as absent: {e}")
            return False

    def tmux_exists(self, record: SessionRecord) -> bool:
        return self._probe(self.tmux_probe, "tmux", record.tmux_session)

    def sandbox_exists(self, record: SessionRecord) -> bool:
        return self._probe(self.sandbox_probe, "sandbox", resolve_sandbox_name(record))

    def detect_session_status(
        self, record: SessionRecord, now: Optional[datetime] = None
    ) -> SessionStatus:
        """Determine the current status of a session."""
        tmux_present = self.tmux_exists(record)
        sandbox_present = self.sandbox_exists(record)

        if tmux_present and sandbox_present:
            return SessionStatus(STATUS_ACTIVE, "now")

        status = STATUS_STOPPED if (tmux_present or sandbox_present) else STATUS_STALE
        return SessionStatus(status, format_since(record.last_activity, now))

    def detect_many(
        self,
        records: List[SessionRecord],
        max_workers: int = 8,
        now: Optional[datetime] = None,
    ) -> Dict[str, SessionStatus]:
        """Detect status for many sessions in parallel.

        Returns:
            Dict mapping namespaced_id to SessionStatus
        """
        if not records:
            return {}
        workers = max(1, min(max_workers, len(records)))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            statuses = list(pool.map(lambda r: self.detect_session_status(r, now), records))
        return {r.namespaced_id: s for r, s in zip(records, statuses)}
