"""
Cleanup action methods for TUI.

The c key identifies stale sessions in a worker; a non-empty result opens
the confirmation dialog, and confirming hands the candidates to the
CleanupManager, which re-checks each one before tearing it down.
"""

from typing import List, Optional

from textual import work
from textual.css.query import NoMatches

from ..cleanup import CleanupOptions, CleanupResult, ViewScope
from ..session_store import SessionRecord
from ..status_constants import VIEW_LOG, VIEW_REPOSITORY
from ..tui_logic import build_confirmation_message
from ..tui_messages import CleanupFinished, StaleSessionsIdentified


class CleanupActionsMixin:
    """Mixin providing cleanup actions for SessionsTUI."""

    @property
    def dialog_open(self) -> bool:
        return self.pending_cleanup is not None

    def _dialog(self):
        from ..tui_widgets import ConfirmationDialog
        try:
            return self.query_one("#confirm-dialog", ConfirmationDialog)
        except NoMatches:
            return None

    def action_clean_stale(self) -> None:
        """Look for stale sessions in the current view."""
        if self.view_mode == VIEW_LOG or self.dialog_open:
            return
        scope = ViewScope.REPOSITORY if self.view_mode == VIEW_REPOSITORY else ViewScope.GLOBAL
        self.set_status("Checking for stale sessions...")
        self._identify_stale_worker(list(self.records), scope, self.repository_root)

    @work(thread=True, exclusive=True, group="identify_stale")
    def _identify_stale_worker(
        self,
        records: List[SessionRecord],
        scope: ViewScope,
        repository_root: Optional[str],
    ) -> None:
        try:
            candidates = self.ctx.cleanup.identify_stale_sessions(records, scope, repository_root)
        except Exception as e:
            self.logger.exception("identifying stale sessions failed", scope=scope.value)
            self.post_message(StaleSessionsIdentified([], error=str(e)))
            return
        self.post_message(StaleSessionsIdentified(candidates))

    def on_stale_sessions_identified(self, message: StaleSessionsIdentified) -> None:
        if self.view_mode == VIEW_LOG or self.dialog_open:
            # The user moved on while we were probing
            return
        if message.error:
            self.set_status(f"Error: {message.error} (press r to retry)", error=True)
            return
        if not message.candidates:
            self.set_status("No stale sessions to clean")
            return
        self.pending_cleanup = list(message.candidates)
        dialog = self._dialog()
        if dialog is not None:
            dialog.show(build_confirmation_message(self.pending_cleanup))
        self.set_status("")

    def action_confirm_cleanup(self) -> None:
        candidates = self.pending_cleanup
        if candidates is None:
            return
        self._close_dialog()
        self.set_status(f"Cleaning {len(candidates)} stale session(s)...")
        self._cleanup_worker(candidates)

    def action_cancel_cleanup(self) -> None:
        self._close_dialog()
        self.set_status("Cleanup cancelled")

    def _close_dialog(self) -> None:
        self.pending_cleanup = None
        dialog = self._dialog()
        if dialog is not None:
            dialog.hide()

    @work(thread=True, group="cleanup")
    def _cleanup_worker(self, candidates: List[SessionRecord]) -> None:
        try:
            result = self.ctx.cleanup.cleanup_sessions(candidates, CleanupOptions.for_tui())
        except Exception as e:
            self.logger.exception("cleanup failed", candidates=len(candidates))
            self.post_message(CleanupFinished(CleanupResult(), error=str(e)))
            return
        self.post_message(CleanupFinished(result))

    def on_cleanup_finished(self, message: CleanupFinished) -> None:
        result = message.result
        if message.error:
            self.set_status(f"Cleanup failed: {message.error} (press r to retry)", error=True)
        elif result.errors:
            self.set_status(
                f"{result.summary()}: {result.errors[0]} (press r to retry)", error=True
            )
        else:
            self.set_status(result.summary())
        self.refresh_sessions()
