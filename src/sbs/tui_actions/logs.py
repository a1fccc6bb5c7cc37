"""
Log view action methods for TUI.

Entering the log view runs the session's log script immediately and then
on a re-scheduled one-shot timer. At most one script run is in flight at
a time: `_log_in_flight` is guarded by `_log_lock` because a tick can fire
before the previous run's LogRefreshed message has been handled. A tick
that finds a run in flight just schedules the next tick.
"""

from textual import work

from ..log_executor import DEFAULT_MAX_OUTPUT_BYTES, ScriptExecutionError
from ..session_store import SessionRecord
from ..status_constants import VIEW_LOG
from ..tui_logic import (
    LogView,
    apply_log_size_limit,
    is_terminal_log_error,
    log_view_title,
    max_log_scroll,
    scroll_log,
)
from ..tui_messages import LogRefreshed


class LogActionsMixin:
    """Mixin providing log view actions for SessionsTUI."""

    def action_open_log(self) -> None:
        """Enter the log view for the selected session."""
        record = self.selected_record()
        if record is None or self.view_mode == VIEW_LOG:
            return
        self._log_generation += 1
        self.previous_view = self.view_mode
        self.view_mode = VIEW_LOG
        self._log_record = record
        self.log_view = LogView(
            session_id=record.namespaced_id,
            title=log_view_title(record),
            generation=self._log_generation,
            max_size_bytes=DEFAULT_MAX_OUTPUT_BYTES,
        )
        self._request_log_refresh()
        self._schedule_log_tick()
        self.update_display()

    def action_close_log(self) -> None:
        """Leave the log view, restoring the previous table view."""
        if self.view_mode != VIEW_LOG:
            return
        self._stop_log_timer()
        self.log_view = None
        self._log_record = None
        self.view_mode = self.previous_view
        self.update_display()

    def action_log_scroll_up(self) -> None:
        self._scroll_log(-1)

    def action_log_scroll_down(self) -> None:
        self._scroll_log(1)

    def action_log_page_up(self) -> None:
        self._scroll_log(-self._log_visible_lines())

    def action_log_page_down(self) -> None:
        self._scroll_log(self._log_visible_lines())

    def _scroll_log(self, delta: int) -> None:
        view = self.log_view
        if view is None:
            return
        view.scroll_offset = scroll_log(
            view.scroll_offset, delta, view.content, self._log_visible_lines()
        )
        self.update_display()

    def action_log_refresh(self) -> None:
        """Refresh now and re-enable auto-refresh (also the retry after errors)."""
        view = self.log_view
        if view is None:
            return
        view.auto_refresh = True
        self._request_log_refresh()
        if self._log_timer is None:
            self._schedule_log_tick()
        self.update_display()

    def _request_log_refresh(self) -> bool:
        """Start a log script run for the current view.

        Returns:
            False if a run is already in flight (nothing started)
        """
        view = self.log_view
        record = self._log_record
        if view is None or record is None:
            return False
        with self._log_lock:
            if self._log_in_flight:
                return False
            self._log_in_flight = True
        view.refreshing = True
        self._run_log_script(record, view.session_id, view.generation)
        return True

    @work(thread=True, group="log")
    def _run_log_script(self, record: SessionRecord, session_id: str, generation: int) -> None:
        try:
            output, error = self.ctx.log_executor.execute(
                record,
                timeout_seconds=self.ctx.config.log_script_timeout,
                max_output_bytes=DEFAULT_MAX_OUTPUT_BYTES,
            )
        except Exception as e:
            self.logger.exception("log script run failed", session_id=session_id)
            output, error = "", ScriptExecutionError(f"error running log script: {e}")
        self.post_message(LogRefreshed(session_id, generation, output, error))

    def _schedule_log_tick(self) -> None:
        self._stop_log_timer()
        view = self.log_view
        if view is None or not view.auto_refresh:
            return
        self._log_timer = self.set_timer(self.ctx.config.log_refresh_interval, self._on_log_tick)

    def _stop_log_timer(self) -> None:
        if self._log_timer is not None:
            self._log_timer.stop()
            self._log_timer = None

    def _on_log_tick(self) -> None:
        self._log_timer = None
        view = self.log_view
        if view is None or not view.auto_refresh:
            return
        self._request_log_refresh()
        self._schedule_log_tick()

    def on_log_refreshed(self, message: LogRefreshed) -> None:
        with self._log_lock:
            self._log_in_flight = False

        view = self.log_view
        if view is None or not view.matches(message.session_id, message.generation):
            # Result for a log view we have since left
            if view is not None and view.loading:
                self._request_log_refresh()
            return

        view.loading = False
        view.refreshing = False
        if message.output or message.error is None:
            view.content = apply_log_size_limit(message.output, view.max_size_bytes)
            view.scroll_offset = min(
                view.scroll_offset, max_log_scroll(view.content, self._log_visible_lines())
            )

        if message.error is not None:
            view.error_message = f"refresh failed: {message.error}"
            if is_terminal_log_error(message.error):
                view.auto_refresh = False
                self._stop_log_timer()
        else:
            view.error_message = ""
        self.update_display()

    def _log_visible_lines(self) -> int:
        from ..tui_widgets import LogPane
        from textual.css.query import NoMatches
        try:
            return self.query_one("#log-pane", LogPane).visible_lines
        except NoMatches:
            return 20
