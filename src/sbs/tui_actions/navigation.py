"""
Navigation action methods for TUI.

Handles moving the cursor through the session table.
"""

from typing import Optional

from ..session_store import SessionRecord
from ..tui_logic import clamp_cursor, move_cursor


class NavigationActionsMixin:
    """Mixin providing navigation actions for SessionsTUI."""

    def selected_record(self) -> Optional[SessionRecord]:
        """The session under the cursor, if any."""
        if not self.records:
            return None
        index = clamp_cursor(self.cursor_index, len(self.records))
        return self.records[index]

    def action_cursor_down(self) -> None:
        self.cursor_index = move_cursor(self.cursor_index, 1, len(self.records))
        self.update_display()

    def action_cursor_up(self) -> None:
        self.cursor_index = move_cursor(self.cursor_index, -1, len(self.records))
        self.update_display()
