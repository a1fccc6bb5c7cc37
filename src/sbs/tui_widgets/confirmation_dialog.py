"""
Confirmation dialog widget for TUI.

Shown over the session table while a cleanup is awaiting y/n. The app
routes every key to the dialog while it is open.
"""

from textual.widgets import Static
from rich.panel import Panel
from rich.text import Text
from rich import box


class ConfirmationDialog(Static):
    """Modal y/n prompt (visibility controlled by the "visible" class)."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.message: str = ""

    @property
    def is_open(self) -> bool:
        return self.has_class("visible")

    def show(self, message: str) -> None:
        self.message = message
        self.add_class("visible")
        self.refresh()

    def hide(self) -> None:
        self.message = ""
        self.remove_class("visible")

    def render(self):
        return Panel(
            Text(self.message),
            title=Text(" Confirm ", style="bold bright_white"),
            border_style="yellow",
            box=box.ROUNDED,
        )
