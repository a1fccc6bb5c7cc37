"""
View action methods for TUI.

Handles switching between repository and global views, the help overlay
and manual refresh.
"""

from textual.css.query import NoMatches

from ..status_constants import VIEW_LOG
from ..tui_logic import toggle_view, view_label


class ViewActionsMixin:
    """Mixin providing view/display actions for SessionsTUI."""

    def action_toggle_view(self) -> None:
        """Toggle repository/global view (only inside a repository)."""
        if self.view_mode == VIEW_LOG:
            return
        new_view = toggle_view(self.view_mode, bool(self.repository_root))
        if new_view == self.view_mode:
            self.set_status("Not in a repository: only the global view is available")
            return
        self.view_mode = new_view
        self.cursor_index = 0
        self.records = []
        self.statuses = {}
        self.set_status(f"{view_label(new_view)} view")
        self.refresh_sessions()

    def action_toggle_help(self) -> None:
        """Toggle help overlay visibility."""
        from ..tui_widgets import HelpOverlay
        try:
            help_overlay = self.query_one("#help-overlay", HelpOverlay)
        except NoMatches:
            return
        if help_overlay.has_class("visible"):
            help_overlay.remove_class("visible")
        else:
            help_overlay.add_class("visible")

    @property
    def help_visible(self) -> bool:
        from ..tui_widgets import HelpOverlay
        try:
            return self.query_one("#help-overlay", HelpOverlay).has_class("visible")
        except NoMatches:
            return False

    def action_manual_refresh(self) -> None:
        """Reload sessions and re-probe their status now."""
        self.set_status("Refreshing...")
        self.refresh_sessions()
