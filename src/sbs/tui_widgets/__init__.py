"""
TUI Widget components for sbs.

This package contains the individual widget classes used by tui.py.
"""

from .confirmation_dialog import ConfirmationDialog
from .help_overlay import HelpOverlay
from .log_pane import LogPane
from .session_table import SessionTable

__all__ = [
    "ConfirmationDialog",
    "HelpOverlay",
    "LogPane",
    "SessionTable",
]
