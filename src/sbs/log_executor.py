"""
Secure execution of a session's log script.

Each worktree may provide an executable at .hooks/log that prints recent
logs for the session (e.g. by tailing a file inside its sandbox). The TUI
log view and `sbs log` run it on demand. Because worktree paths and the
scripts themselves are outside our control, every run goes through:

1. path validation (absolute, no "..", script stays inside the worktree)
2. an existence check
3. security validation (regular file, executable; foreign owner is only
   warned about)
4. execution in the worktree with a hard wall-clock timeout, killing the
   whole process group on expiry
5. output capture into a size-capped buffer
6. an AUDIT log record, whatever the outcome

Errors come back as values in LogScriptResult rather than being raised, so
callers always get whatever output was captured alongside the error.
"""

import os
import signal
import stat
import subprocess
import threading
import time
from typing import Any, Callable, NamedTuple, Optional

from .logging_config import StructuredLogger, get_structured_logger
from .session_store import SessionRecord

LOG_SCRIPT_SUBPATH = (".hooks", "log")
DEFAULT_TIMEOUT_SECONDS = 10
DEFAULT_MAX_OUTPUT_BYTES = 1024 * 1024
TRUNCATION_MARKER = "\n[Output truncated - exceeded size limit]"

READ_CHUNK_SIZE = 4096
# How long to wait for the readers once the process itself has exited
READER_JOIN_TIMEOUT = 2.0


class LogScriptError(Exception):
    """Base class for log script failures.

    `terminal` errors cannot fix themselves, so auto-refresh stops on them
    until the user retries by hand.
    """

    terminal = False


class PathValidationError(LogScriptError):
    terminal = True

    def __init__(self, detail: str):
        super().__init__(f"path validation failed: {detail}")
        self.detail = detail


class ScriptNotFoundError(LogScriptError):
    terminal = True

    def __init__(self, script_path: str):
        super().__init__(f"log script not found at {script_path}")
        self.script_path = script_path


class ScriptSecurityError(LogScriptError):
    def __init__(self, script_path: str, detail: str):
        super().__init__(f"security validation failed for {script_path}: {detail}")
        self.script_path = script_path


class ScriptTimeoutError(LogScriptError):
    def __init__(self, script_path: str, timeout_seconds: float):
        super().__init__(f"log script {script_path} timed out after {timeout_seconds:g} seconds")
        self.timeout_seconds = timeout_seconds


class ScriptExecutionError(LogScriptError):
    def __init__(self, message: str, exit_code: Optional[int] = None):
        super().__init__(message)
        self.exit_code = exit_code


class LogScriptResult(NamedTuple):
    output: str
    error: Optional[LogScriptError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def log_script_path(worktree_path: str) -> str:
    """Path of the log script for a worktree (no validation)."""
    return os.path.join(worktree_path, *LOG_SCRIPT_SUBPATH)


def validate_log_script_path(worktree_path: str) -> str:
    """Build and validate the log script path for a worktree.

    Returns:
        The normalized script path

    Raises:
        PathValidationError: if the worktree path is relative, contains a
            ".." segment, or the script would land outside the worktree
    """
    if not worktree_path or not os.path.isabs(worktree_path):
        raise PathValidationError(f"worktree path must be absolute: {worktree_path!r}")

    clean_root = os.path.normpath(worktree_path)
    for path in (worktree_path, clean_root):
        if ".." in path.split(os.sep):
            raise PathValidationError(f"path traversal detected in worktree path: {worktree_path}")

    script = os.path.normpath(os.path.join(clean_root, *LOG_SCRIPT_SUBPATH))
    if os.path.commonpath([clean_root, script]) != clean_root:
        raise PathValidationError(f"log script path is outside worktree: {script}")
    return script


class _CappedBuffer:
    """Thread-safe byte buffer that stops growing at a size limit.

    Bytes past the limit are dropped; the truncation marker is added once.
    """

    def __init__(self, max_bytes: int):
        self.max_bytes = max(0, max_bytes)
        self.truncated = False
        self._chunks = bytearray()
        self._lock = threading.Lock()

    def write(self, data: bytes) -> None:
        with self._lock:
            if self.truncated:
                return
            room = self.max_bytes - len(self._chunks)
            if len(data) <= room:
                self._chunks += data
                return
            self._chunks += data[:room]
            self._chunks += TRUNCATION_MARKER.encode()
            self.truncated = True

    def getvalue(self) -> str:
        with self._lock:
            return bytes(self._chunks).decode("utf-8", errors="replace")


def _drain(stream, buffer: _CappedBuffer) -> None:
    """Read a pipe to EOF into the buffer.

    Keeps reading after the buffer is full so the child never blocks
    writing to a full pipe.
    """
    try:
        while True:
            chunk = stream.read1(READ_CHUNK_SIZE)
            if not chunk:
                break
            buffer.write(chunk)
    except (OSError, ValueError):
        # Pipe closed underneath us after the process group was killed
        pass
    finally:
        try:
            stream.close()
        except OSError:
            pass


class LogScriptExecutor:
    """Runs .hooks/log for a session with validation, limits and auditing."""

    def __init__(
        self,
        logger: Optional[StructuredLogger] = None,
        popen: Callable[..., Any] = subprocess.Popen,
    ):
        self.log = logger or get_structured_logger("log_executor")
        self.popen = popen

    def _audit(
        self,
        record: SessionRecord,
        script_path: str,
        started: float,
        exit_code: int = 0,
        output_size: int = 0,
        timed_out: bool = False,
        error: Optional[Exception] = None,
    ) -> None:
        fields = dict(
            session_id=record.namespaced_id,
            script_path=script_path,
            working_dir=record.worktree_path,
            duration_ms=int((time.monotonic() - started) * 1000),
            exit_code=exit_code,
            output_size=output_size,
            timed_out=timed_out,
        )
        if error is None:
            self.log.info("AUDIT: log script execution", **fields)
        else:
            self.log.warning("AUDIT: log script execution", error=error, **fields)

    def _check_security(self, script_path: str) -> None:
        try:
            st = os.lstat(script_path)
        except OSError as e:
            raise ScriptSecurityError(script_path, f"failed to stat script: {e}") from e

        if not stat.S_ISREG(st.st_mode):
            raise ScriptSecurityError(script_path, "not a regular file")
        if not os.access(script_path, os.X_OK):
            raise ScriptSecurityError(script_path, "permission denied: script is not executable")

        uid = os.getuid()
        if st.st_uid != uid:
            # Relaxed policy: a foreign owner is reported, not refused
            self.log.warning(
                "log script is not owned by current user",
                script_path=script_path,
                uid=uid,
                script_uid=st.st_uid,
            )

    def execute(
        self,
        record: SessionRecord,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES,
    ) -> LogScriptResult:
        """Run the session's log script once.

        Returns:
            LogScriptResult(output, error). On timeout or non-zero exit the
            output captured so far is still returned.
        """
        started = time.monotonic()

        try:
            script = validate_log_script_path(record.worktree_path)
        except PathValidationError as e:
            self._audit(record, "invalid_path", started, error=e)
            return LogScriptResult("", e)

        if not os.path.lexists(script):
            err = ScriptNotFoundError(script)
            self._audit(record, script, started, error=err)
            return LogScriptResult(f"No log script found at {script}", err)

        try:
            self._check_security(script)
        except ScriptSecurityError as e:
            self._audit(record, script, started, error=e)
            return LogScriptResult("", e)

        try:
            proc = self.popen(
                [script],
                cwd=record.worktree_path,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                start_new_session=True,
            )
        except OSError as e:
            err = ScriptExecutionError(f"failed to start log script {script}: {e}")
            self._audit(record, script, started, exit_code=-1, error=err)
            return LogScriptResult("", err)

        buffer = _CappedBuffer(max_output_bytes)
        readers = [
            threading.Thread(target=_drain, args=(stream, buffer), daemon=True)
            for stream in (proc.stdout, proc.stderr)
        ]
        for reader in readers:
            reader.start()

        timed_out = False
        try:
            proc.wait(timeout=timeout_seconds)
        except subprocess.TimeoutExpired:
            timed_out = True
            self._kill_group(proc)
            proc.wait()

        for reader in readers:
            reader.join(READER_JOIN_TIMEOUT)

        output = buffer.getvalue()
        exit_code = proc.returncode

        error: Optional[LogScriptError] = None
        if timed_out:
            error = ScriptTimeoutError(script, timeout_seconds)
            exit_code = -1
        elif exit_code != 0:
            error = ScriptExecutionError(
                f"log script {script} exited with code {exit_code}", exit_code=exit_code
            )

        self._audit(
            record,
            script,
            started,
            exit_code=exit_code,
            output_size=len(output),
            timed_out=timed_out,
            error=error,
        )
        return LogScriptResult(output, error)

    @staticmethod
    def _kill_group(proc) -> None:
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except ProcessLookupError:
            # Exited between the timeout and the kill
            pass
        except PermissionError:
            proc.kill()


def execute_log_script(
    record: SessionRecord,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES,
    logger: Optional[StructuredLogger] = None,
) -> LogScriptResult:
    """Convenience wrapper around LogScriptExecutor.execute."""
    return LogScriptExecutor(logger).execute(record, timeout_seconds, max_output_bytes)
