"""
Help overlay widget for TUI.

Displays keyboard shortcuts and the status legend in a two-column layout.
"""

from textual.widgets import Static
from rich.table import Table
from rich.text import Text
from rich.panel import Panel
from rich import box

from ..status_constants import STATUS_ACTIVE, STATUS_STALE, STATUS_STOPPED, get_status_symbol


class HelpOverlay(Static):
    """Help overlay listing all TUI keys"""

    def _build_keybindings(self) -> Text:
        """Build the keybindings column."""
        t = Text()

        def section(title):
            t.append(f"  {title}\n", style="bold bright_white")
            t.append("  " + "─" * 40 + "\n", style="dim")

        def row(k, desc):
            t.append(f"  {k:<10}", style="bold cyan")
            t.append(f"{desc}\n", style="white")

        section("SESSIONS")
        row("j/↓ k/↑", "Move cursor")
        row("Enter", "Attach to tmux session")
        row("s", "Stop session (keep worktree)")
        row("c", "Clean stale sessions")
        row("l", "View session logs")
        row("g", "Toggle repository/global view")
        row("r", "Refresh")
        row("?", "Toggle help")
        row("q", "Quit")
        t.append("\n")

        section("LOG VIEW")
        row("j/↓ k/↑", "Scroll")
        row("r", "Refresh now (re-enables auto-refresh)")
        row("Esc/q", "Back to sessions")
        t.append("\n")

        section("CONFIRMATION")
        row("y/Enter", "Confirm")
        row("n/Esc", "Cancel")
        return t

    def _build_status_reference(self) -> Text:
        """Build the status legend column."""
        t = Text()
        t.append("STATUSES\n", style="bold bright_white")
        t.append("─" * 30 + "\n", style="dim")

        def status(name, desc):
            symbol, color = get_status_symbol(name)
            t.append(f"{symbol} {name}\n", style=f"bold {color}")
            t.append(f"   {desc}\n\n", style="dim")

        status(STATUS_ACTIVE, "tmux session and sandbox running")
        status(STATUS_STOPPED, "Only one of them running")
        status(STATUS_STALE, "Neither running, safe to clean")
        return t

    def render(self):
        layout = Table(
            show_header=False,
            show_edge=False,
            box=None,
            padding=(0, 2),
            expand=True,
        )
        layout.add_column("keys", ratio=3, no_wrap=True)
        layout.add_column("statuses", ratio=2)
        layout.add_row(self._build_keybindings(), self._build_status_reference())

        return Panel(
            layout,
            title=Text(" SBS HELP ", style="bold bright_white"),
            subtitle=Text("Press ? or Esc to close", style="dim"),
            border_style="bright_blue",
            box=box.DOUBLE,
        )
