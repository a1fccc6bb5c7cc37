"""
Session action methods for TUI.

Handles attaching to and stopping individual sessions.
"""

from typing import List

from textual import work
from textual.app import SuspendNotSupported

from ..cleanup import CleanupError
from ..protocols import CommandError
from ..session_store import SessionRecord
from ..tui_messages import AttachFinished, StopFinished


class SessionActionsMixin:
    """Mixin providing session actions for SessionsTUI."""

    def action_attach_session(self) -> None:
        """Attach to the selected session's tmux session.

        The app is suspended while tmux owns the terminal and resumes when
        the user detaches.
        """
        record = self.selected_record()
        if record is None:
            return
        if not record.tmux_session:
            self.set_status(f"{record.display_id} has no tmux session")
            return

        error = None
        try:
            with self.suspend():
                self.ctx.tmux.attach(record.tmux_session)
        except SuspendNotSupported:
            error = "attaching is not supported in this terminal"
        except CommandError as e:
            error = str(e)
        self.post_message(AttachFinished(record.namespaced_id, error))

    def on_attach_finished(self, message: AttachFinished) -> None:
        if message.error:
            self.set_status(f"Attach failed: {message.error} (press r to retry)", error=True)
        self.refresh_sessions()

    def action_stop_session(self) -> None:
        """Stop the selected session (kill tmux, delete sandbox, keep worktree)."""
        record = self.selected_record()
        if record is None:
            return
        self.set_status(f"Stopping {record.display_id}...")
        self._stop_session_worker(record)

    @work(thread=True, group="stop")
    def _stop_session_worker(self, record: SessionRecord) -> None:
        actions: List[str] = []
        error = None
        try:
            actions = self.ctx.cleanup.stop_session(record)
        except CleanupError as e:
            error = str(e)
        except Exception as e:
            self.logger.exception("stop failed", session_id=record.namespaced_id)
            error = str(e)
        self.post_message(StopFinished(record.namespaced_id, actions, error))

    def on_stop_finished(self, message: StopFinished) -> None:
        if message.error:
            self.set_status(f"Stop failed: {message.error} (press r to retry)", error=True)
        else:
            self.set_status(f"Stopped Work Item {message.session_id}")
        self.refresh_sessions()
