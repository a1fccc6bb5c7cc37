"""
Log pane widget for TUI.

Renders the LogView of the session being inspected: its title, the
visible window of script output, any error with a retry hint, and the
refresh status line.
"""

from typing import Optional

from textual.widgets import Static
from rich.text import Text

from ..formatters import format_size
from ..tui_logic import (
    LogView,
    format_log_status,
    log_line_count,
    visible_log_lines,
)

# Title, blank line, status line, help line and spacing
RESERVED_LINES = 6


class LogPane(Static):
    """Scrollable view of a session's log script output."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.log_view: Optional[LogView] = None
        self.interval_secs: int = 0

    @property
    def visible_lines(self) -> int:
        height = self.size.height if self.size.height > 0 else 24
        return max(1, height - RESERVED_LINES)

    def show(self, view: Optional[LogView], interval_secs: int) -> None:
        self.log_view = view
        self.interval_secs = interval_secs
        self.refresh()

    def render(self):
        t = Text()
        view = self.log_view
        if view is None:
            t.append("No log view initialized\n", style="dim")
            return t

        t.append(view.title + "\n\n", style="bold bright_white")

        if view.error_message:
            t.append(f"Error: {view.error_message}\n", style="bold red")
            if not view.auto_refresh:
                t.append("Auto-refresh stopped due to persistent error.\n", style="dim")
            t.append("Press 'r' to retry, ESC or 'q' to exit\n\n", style="dim")

        if view.loading:
            t.append("Loading log content...\n", style="dim")
        elif not view.content:
            if not view.error_message:
                t.append("No log content available\n", style="dim")
        else:
            visible = self.visible_lines
            lines = visible_log_lines(view.content, view.scroll_offset, visible)
            for line in lines:
                t.append_text(Text.from_ansi(line))
                t.append("\n")
            total = log_line_count(view.content)
            if total > visible:
                start = view.scroll_offset + 1
                end = view.scroll_offset + len(lines)
                size = format_size(len(view.content.encode("utf-8")))
                t.append(f"\nLines {start}-{end} of {total} ({size})\n", style="dim")

        t.append("\n" + format_log_status(view, self.interval_secs) + "\n", style="dim")
        t.append("↑/↓: scroll, r: refresh, ESC/q: exit", style="dim italic")
        return t
