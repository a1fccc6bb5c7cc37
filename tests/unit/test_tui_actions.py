"""
Unit tests for TUI action mixins.

The mixin methods are called with a MagicMock standing in for the app,
so these tests need no running Textual app.
"""

import threading
from unittest.mock import MagicMock

from sbs.cleanup import CleanupError, CleanupResult, ViewScope
from sbs.log_executor import ScriptNotFoundError, ScriptTimeoutError
from sbs.status_constants import VIEW_GLOBAL, VIEW_LOG, VIEW_REPOSITORY
from sbs.tui_actions.cleanup import CleanupActionsMixin
from sbs.tui_actions.logs import LogActionsMixin
from sbs.tui_actions.navigation import NavigationActionsMixin
from sbs.tui_actions.session import SessionActionsMixin
from sbs.tui_actions.view import ViewActionsMixin
from sbs.tui_logic import LogView
from sbs.tui_messages import (
    CleanupFinished,
    LogRefreshed,
    StaleSessionsIdentified,
    StopFinished,
)


def mock_log_tui(view=None):
    mock_tui = MagicMock()
    mock_tui._log_lock = threading.Lock()
    mock_tui._log_in_flight = True
    mock_tui.log_view = view
    mock_tui._log_visible_lines.return_value = 20
    return mock_tui


class TestNavigationActions:
    def test_selected_record_empty(self):
        mock_tui = MagicMock()
        mock_tui.records = []
        assert NavigationActionsMixin.selected_record(mock_tui) is None

    def test_selected_record_clamps(self, make_record):
        records = [make_record("a"), make_record("b")]
        mock_tui = MagicMock()
        mock_tui.records = records
        mock_tui.cursor_index = 7
        assert NavigationActionsMixin.selected_record(mock_tui) is records[1]

    def test_cursor_down_stops_at_end(self, make_record):
        mock_tui = MagicMock()
        mock_tui.records = [make_record("a"), make_record("b")]
        mock_tui.cursor_index = 1

        NavigationActionsMixin.action_cursor_down(mock_tui)

        assert mock_tui.cursor_index == 1
        mock_tui.update_display.assert_called_once()


class TestViewActions:
    def test_toggle_resets_cursor_and_refreshes(self):
        mock_tui = MagicMock()
        mock_tui.view_mode = VIEW_REPOSITORY
        mock_tui.repository_root = "/repo"
        mock_tui.cursor_index = 3

        ViewActionsMixin.action_toggle_view(mock_tui)

        assert mock_tui.view_mode == VIEW_GLOBAL
        assert mock_tui.cursor_index == 0
        assert mock_tui.records == []
        mock_tui.refresh_sessions.assert_called_once()

    def test_toggle_ignored_in_log_view(self):
        mock_tui = MagicMock()
        mock_tui.view_mode = VIEW_LOG

        ViewActionsMixin.action_toggle_view(mock_tui)

        assert mock_tui.view_mode == VIEW_LOG
        mock_tui.refresh_sessions.assert_not_called()

    def test_manual_refresh(self):
        mock_tui = MagicMock()
        ViewActionsMixin.action_manual_refresh(mock_tui)
        mock_tui.set_status.assert_called_once_with("Refreshing...")
        mock_tui.refresh_sessions.assert_called_once()


class TestCleanupActions:
    def test_clean_stale_uses_view_scope(self, make_record):
        mock_tui = MagicMock()
        mock_tui.view_mode = VIEW_GLOBAL
        mock_tui.dialog_open = False
        mock_tui.records = [make_record("a")]
        mock_tui.repository_root = "/repo"

        CleanupActionsMixin.action_clean_stale(mock_tui)

        args = mock_tui._identify_stale_worker.call_args.args
        assert args[1] is ViewScope.GLOBAL

    def test_clean_stale_ignored_while_dialog_open(self):
        mock_tui = MagicMock()
        mock_tui.view_mode = VIEW_REPOSITORY
        mock_tui.dialog_open = True

        CleanupActionsMixin.action_clean_stale(mock_tui)

        mock_tui._identify_stale_worker.assert_not_called()

    def test_empty_candidates_no_dialog(self):
        mock_tui = MagicMock()
        mock_tui.view_mode = VIEW_REPOSITORY
        mock_tui.dialog_open = False
        mock_tui.pending_cleanup = None

        CleanupActionsMixin.on_stale_sessions_identified(mock_tui, StaleSessionsIdentified([]))

        mock_tui.set_status.assert_called_once_with("No stale sessions to clean")
        assert mock_tui.pending_cleanup is None
        mock_tui._dialog.return_value.show.assert_not_called()

    def test_candidates_open_dialog(self, make_record):
        mock_tui = MagicMock()
        mock_tui.view_mode = VIEW_REPOSITORY
        mock_tui.dialog_open = False
        candidates = [make_record("a"), make_record("b")]

        CleanupActionsMixin.on_stale_sessions_identified(mock_tui, StaleSessionsIdentified(candidates))

        assert mock_tui.pending_cleanup == candidates
        message = mock_tui._dialog.return_value.show.call_args.args[0]
        assert message.startswith("Clean 2 stale sessions?")

    def test_candidates_ignored_after_entering_log_view(self, make_record):
        mock_tui = MagicMock()
        mock_tui.view_mode = VIEW_LOG
        mock_tui.dialog_open = False

        CleanupActionsMixin.on_stale_sessions_identified(
            mock_tui, StaleSessionsIdentified([make_record("a")])
        )

        mock_tui._dialog.return_value.show.assert_not_called()

    def test_finished_with_errors(self):
        mock_tui = MagicMock()
        result = CleanupResult(cleaned_count=1, errors=[CleanupError("b", "tmux", "boom")])

        CleanupActionsMixin.on_cleanup_finished(mock_tui, CleanupFinished(result))

        mock_tui.set_status.assert_called_once_with(
            "Cleaned 1 stale session(s), 1 error(s): b: tmux: boom (press r to retry)", error=True
        )
        mock_tui.refresh_sessions.assert_called_once()

    def test_finished_without_running(self):
        mock_tui = MagicMock()

        CleanupActionsMixin.on_cleanup_finished(
            mock_tui, CleanupFinished(CleanupResult(), error="store unreadable")
        )

        mock_tui.set_status.assert_called_once_with(
            "Cleanup failed: store unreadable (press r to retry)", error=True
        )

    def test_identify_error_opens_no_dialog(self):
        mock_tui = MagicMock()
        mock_tui.view_mode = VIEW_REPOSITORY
        mock_tui.dialog_open = False

        CleanupActionsMixin.on_stale_sessions_identified(
            mock_tui, StaleSessionsIdentified([], error="probe crashed")
        )

        mock_tui.set_status.assert_called_once_with(
            "Error: probe crashed (press r to retry)", error=True
        )
        mock_tui._dialog.return_value.show.assert_not_called()


class TestSessionActions:
    def test_stop_finished_error(self):
        mock_tui = MagicMock()
        SessionActionsMixin.on_stop_finished(mock_tui, StopFinished("a", [], error="a: tmux: nope"))
        assert mock_tui.set_status.call_args.kwargs == {"error": True}
        mock_tui.refresh_sessions.assert_called_once()

    def test_attach_without_tmux_session(self, make_record):
        mock_tui = MagicMock()
        mock_tui.selected_record.return_value = make_record("a", tmux_session="")

        SessionActionsMixin.action_attach_session(mock_tui)

        mock_tui.suspend.assert_not_called()
        mock_tui.set_status.assert_called_once_with("Work Item a has no tmux session")


class TestLogActions:
    def test_request_refused_while_in_flight(self, make_record):
        mock_tui = mock_log_tui(LogView("a", "t", 1))
        mock_tui._log_record = make_record("a")

        assert LogActionsMixin._request_log_refresh(mock_tui) is False
        mock_tui._run_log_script.assert_not_called()

    def test_request_starts_run(self, make_record):
        mock_tui = mock_log_tui(LogView("a", "t", 4))
        mock_tui._log_in_flight = False
        record = make_record("a")
        mock_tui._log_record = record

        assert LogActionsMixin._request_log_refresh(mock_tui) is True
        assert mock_tui._log_in_flight
        mock_tui._run_log_script.assert_called_once_with(record, "a", 4)

    def test_terminal_error_stops_auto_refresh(self):
        view = LogView("a", "t", 1)
        mock_tui = mock_log_tui(view)
        error = ScriptNotFoundError("/wt/.hooks/log")

        LogActionsMixin.on_log_refreshed(
            mock_tui, LogRefreshed("a", 1, "No log script found at /wt/.hooks/log", error)
        )

        assert not mock_tui._log_in_flight
        assert not view.auto_refresh
        assert view.error_message == "refresh failed: log script not found at /wt/.hooks/log"
        mock_tui._stop_log_timer.assert_called_once()

    def test_timeout_keeps_partial_output_and_auto_refresh(self):
        view = LogView("a", "t", 1, content="old")
        mock_tui = mock_log_tui(view)

        LogActionsMixin.on_log_refreshed(
            mock_tui, LogRefreshed("a", 1, "partial\n", ScriptTimeoutError("/wt/.hooks/log", 5))
        )

        assert view.content == "partial\n"
        assert view.auto_refresh
        assert "timed out" in view.error_message
        mock_tui._stop_log_timer.assert_not_called()

    def test_error_without_output_keeps_previous_content(self):
        view = LogView("a", "t", 1, content="previous")
        mock_tui = mock_log_tui(view)

        LogActionsMixin.on_log_refreshed(
            mock_tui, LogRefreshed("a", 1, "", ScriptTimeoutError("/wt/.hooks/log", 5))
        )

        assert view.content == "previous"

    def test_stale_generation_only_releases_flag(self):
        view = LogView("a", "t", 2, content="current", loading=False)
        mock_tui = mock_log_tui(view)

        LogActionsMixin.on_log_refreshed(mock_tui, LogRefreshed("a", 1, "old"))

        assert not mock_tui._log_in_flight
        assert view.content == "current"
        mock_tui._request_log_refresh.assert_not_called()

    def test_stale_result_restarts_pending_load(self):
        view = LogView("b", "t", 2)
        mock_tui = mock_log_tui(view)

        LogActionsMixin.on_log_refreshed(mock_tui, LogRefreshed("a", 1, "old"))

        mock_tui._request_log_refresh.assert_called_once()

    def test_tick_reschedules(self):
        mock_tui = mock_log_tui(LogView("a", "t", 1))

        LogActionsMixin._on_log_tick(mock_tui)

        mock_tui._request_log_refresh.assert_called_once()
        mock_tui._schedule_log_tick.assert_called_once()

    def test_tick_after_exit_does_nothing(self):
        mock_tui = mock_log_tui(None)

        LogActionsMixin._on_log_tick(mock_tui)

        mock_tui._request_log_refresh.assert_not_called()
        mock_tui._schedule_log_tick.assert_not_called()
