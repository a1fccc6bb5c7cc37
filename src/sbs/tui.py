"""
Textual TUI for sbs sessions.

The app is a single-threaded state machine over three views (repository,
global, log) with an orthogonal confirmation dialog. All probes, script
runs and teardown happen in thread workers that report back by posting one
message each (see tui_messages); app state only changes in key handling
and message handlers on the event loop.
"""

import threading
from typing import Dict, List, Optional

from textual import events, work
from textual.app import App, ComposeResult
from textual.css.query import NoMatches
from textual.timer import Timer
from textual.widgets import Header, Static
from rich.text import Text

from . import __version__
from .context import AppContext, find_repository_root
from .logging_config import setup_tui_logging
from .session_store import SessionRecord
from .status_constants import VIEW_LOG
from .status_detector import SessionStatus
from .tui_actions import (
    CleanupActionsMixin,
    LogActionsMixin,
    NavigationActionsMixin,
    SessionActionsMixin,
    ViewActionsMixin,
)
from .tui_logic import LogView, clamp_cursor, filter_by_view, initial_view, view_label
from .tui_messages import SessionsRefreshed
from .tui_widgets import ConfirmationDialog, HelpOverlay, LogPane, SessionTable

# Key names as Textual reports them -> names used by handle_key
KEY_ALIASES = {
    "question_mark": "?",
    "shift+y": "Y",
    "shift+n": "N",
}

DIALOG_CONFIRM_KEYS = ("y", "Y", "enter")
DIALOG_CANCEL_KEYS = ("n", "N", "escape")


class SessionsTUI(
    NavigationActionsMixin,
    ViewActionsMixin,
    SessionActionsMixin,
    CleanupActionsMixin,
    LogActionsMixin,
    App,
):
    """sbs session manager TUI"""

    # Keys are routed by handle_key, nothing should grab focus
    AUTO_FOCUS = None

    CSS_PATH = "tui.tcss"

    def __init__(self, ctx: AppContext):
        super().__init__()
        self.ctx = ctx
        self.logger = ctx.logger.with_context(component="tui")
        self.repository_root: Optional[str] = ctx.repository_root

        self.view_mode: str = initial_view(self.repository_root)
        # Table view to return to when leaving the log view
        self.previous_view: str = self.view_mode
        self.records: List[SessionRecord] = []
        self.statuses: Dict[str, SessionStatus] = {}
        self.cursor_index: int = 0
        # Stale sessions awaiting confirmation; not None while the dialog is open
        self.pending_cleanup: Optional[List[SessionRecord]] = None
        self.status_message: str = ""
        self.status_is_error: bool = False
        self._status_timer: Optional[Timer] = None

        # Log view state
        self.log_view: Optional[LogView] = None
        self._log_record: Optional[SessionRecord] = None
        self._log_generation = 0
        self._log_lock = threading.Lock()
        self._log_in_flight = False
        self._log_timer: Optional[Timer] = None

    def compose(self) -> ComposeResult:
        """Create child widgets"""
        yield Header()
        yield SessionTable(id="session-table")
        yield LogPane(id="log-pane")
        yield ConfirmationDialog(id="confirm-dialog")
        yield HelpOverlay(id="help-overlay")
        yield Static(id="status-line")
        yield Static(
            "?:Help | q:Quit | j/k:Nav | Enter:Attach | s:Stop | c:Clean | l:Logs | g:View | r:Refresh",
            id="help-text",
        )

    def on_mount(self) -> None:
        """Called when app starts"""
        self.title = f"sbs v{__version__}"
        self.update_display()
        self.refresh_sessions()

        config = self.ctx.config
        if config.status_tracking and config.status_refresh_interval_secs > 0:
            self._status_timer = self.set_interval(
                config.status_refresh_interval_secs, self.refresh_sessions
            )
        self.logger.info("tui started", view=self.view_mode)

    # ------------------------------------------------------------------
    # Key dispatch
    # ------------------------------------------------------------------

    def on_key(self, event: events.Key) -> None:
        if self.handle_key(event.key):
            event.stop()
            event.prevent_default()

    def handle_key(self, key: str) -> bool:
        """Route one key press according to the current state.

        Priority: confirmation dialog, help overlay, log view, table views.

        Returns:
            True if the key was consumed
        """
        key = KEY_ALIASES.get(key, key)

        if self.dialog_open:
            if key in DIALOG_CONFIRM_KEYS:
                self.action_confirm_cleanup()
            elif key in DIALOG_CANCEL_KEYS:
                self.action_cancel_cleanup()
            # Everything else is swallowed while the dialog is open
            return True

        if self.help_visible and key in ("?", "escape"):
            self.action_toggle_help()
            return True

        if self.view_mode == VIEW_LOG:
            return self._handle_log_key(key)
        return self._handle_table_key(key)

    def _handle_log_key(self, key: str) -> bool:
        handlers = {
            "escape": self.action_close_log,
            "q": self.action_close_log,
            "up": self.action_log_scroll_up,
            "k": self.action_log_scroll_up,
            "down": self.action_log_scroll_down,
            "j": self.action_log_scroll_down,
            "pageup": self.action_log_page_up,
            "pagedown": self.action_log_page_down,
            "r": self.action_log_refresh,
            "?": self.action_toggle_help,
        }
        handler = handlers.get(key)
        if handler is None:
            return False
        handler()
        return True

    def _handle_table_key(self, key: str) -> bool:
        handlers = {
            "up": self.action_cursor_up,
            "k": self.action_cursor_up,
            "down": self.action_cursor_down,
            "j": self.action_cursor_down,
            "enter": self.action_attach_session,
            "s": self.action_stop_session,
            "c": self.action_clean_stale,
            "g": self.action_toggle_view,
            "l": self.action_open_log,
            "r": self.action_manual_refresh,
            "?": self.action_toggle_help,
            "q": self.exit,
        }
        handler = handlers.get(key)
        if handler is None:
            return False
        handler()
        return True

    # ------------------------------------------------------------------
    # Session refresh
    # ------------------------------------------------------------------

    @property
    def table_view(self) -> str:
        """The repository/global view in effect (the one under the log view)."""
        return self.previous_view if self.view_mode == VIEW_LOG else self.view_mode

    def refresh_sessions(self) -> None:
        """Reload sessions and statuses for the current view (background worker)."""
        self._refresh_sessions_worker(self.table_view, self.repository_root)

    @work(thread=True, exclusive=True, group="refresh")
    def _refresh_sessions_worker(self, view: str, repository_root: Optional[str]) -> None:
        try:
            all_records = self.ctx.store.load_all_sessions()
        except (OSError, ValueError) as e:
            self.post_message(SessionsRefreshed(view, [], {}, error=str(e)))
            return
        records = filter_by_view(all_records, view, repository_root)
        try:
            statuses = self.ctx.detector.detect_many(records)
        except Exception as e:
            self.logger.exception("status detection failed", view=view)
            self.post_message(SessionsRefreshed(view, [], {}, error=str(e)))
            return
        self.post_message(SessionsRefreshed(view, records, statuses))

    def on_sessions_refreshed(self, message: SessionsRefreshed) -> None:
        if message.view != self.table_view:
            # Refresh for a view we have toggled away from
            return
        if message.error:
            self.logger.warning("session refresh failed", error=message.error)
            self.set_status(f"Error loading sessions: {message.error} (press r to retry)", error=True)
            return
        self.records = message.records
        self.statuses = message.statuses
        self.cursor_index = clamp_cursor(self.cursor_index, len(self.records))
        if self.status_message == "Refreshing...":
            self.set_status("")
        self.update_display()

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def set_status(self, message: str, error: bool = False) -> None:
        self.status_message = message
        self.status_is_error = error
        if error:
            self.logger.warning("tui error", status=message)
        self.update_display()

    def update_display(self) -> None:
        """Push current state into the widgets."""
        try:
            table = self.query_one("#session-table", SessionTable)
            pane = self.query_one("#log-pane", LogPane)
            status_line = self.query_one("#status-line", Static)
        except NoMatches:
            return

        in_log = self.view_mode == VIEW_LOG
        table.display = not in_log
        pane.display = in_log
        if in_log:
            pane.show(self.log_view, self.ctx.config.log_refresh_interval)
        else:
            table.update_sessions(self.records, self.statuses, self.cursor_index, view_label(self.view_mode))

        style = "bold red" if self.status_is_error else "dim"
        status_line.update(Text(self.status_message, style=style))
        self.sub_title = view_label(self.view_mode)


def run_tui(ctx: Optional[AppContext] = None) -> None:
    """Launch the sessions TUI"""
    setup_tui_logging()
    if ctx is None:
        ctx = AppContext.create(repository_root=find_repository_root())
    app = SessionsTUI(ctx)
    app.run()

