"""
Session table widget for TUI.

Renders the sessions visible in the current view with their reconciled
status, highlighting the row under the cursor.
"""

from typing import Dict, List

from textual.widgets import Static
from rich.table import Table
from rich.text import Text
from rich import box

from ..session_store import SessionRecord
from ..status_constants import get_status_symbol
from ..status_detector import SessionStatus


class SessionTable(Static):
    """Table of sessions with a cursor row."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.records: List[SessionRecord] = []
        self.statuses: Dict[str, SessionStatus] = {}
        self.cursor: int = 0
        self.view_label: str = ""
        self.loaded: bool = False

    def update_sessions(
        self,
        records: List[SessionRecord],
        statuses: Dict[str, SessionStatus],
        cursor: int,
        view_label: str,
    ) -> None:
        self.records = list(records)
        self.statuses = dict(statuses)
        self.cursor = cursor
        self.view_label = view_label
        self.loaded = True
        self.refresh()

    def _status_cell(self, record: SessionRecord) -> Text:
        status = self.statuses.get(record.namespaced_id)
        if status is None:
            return Text("…", style="dim")
        symbol, color = get_status_symbol(status.status)
        return Text(f"{symbol} {status.status}", style=color)

    def render(self):
        title = Text()
        title.append(f" Sessions ({self.view_label}) ", style="bold bright_white")

        if not self.records:
            message = "No sessions found" if self.loaded else "Loading sessions..."
            return Text(f"{title.plain}\n\n  {message}", style="dim")

        table = Table(
            title=title,
            box=box.SIMPLE_HEAD,
            expand=True,
            show_edge=False,
        )
        table.add_column("ID", no_wrap=True, style="bold")
        table.add_column("Title", ratio=3)
        table.add_column("Branch", ratio=2, no_wrap=True)
        table.add_column("Status", no_wrap=True)
        table.add_column("Last Activity", no_wrap=True, justify="right")

        for i, record in enumerate(self.records):
            status = self.statuses.get(record.namespaced_id)
            table.add_row(
                record.namespaced_id,
                record.issue_title,
                record.branch,
                self._status_cell(record),
                status.time_delta if status else "",
                style="reverse" if i == self.cursor else None,
            )
        return table
