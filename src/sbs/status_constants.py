"""
Status constants and mappings for sbs.

Centralizes session status values and their display symbols and colors.
"""

from typing import Tuple


# =============================================================================
# Session Status Values
# =============================================================================

STATUS_ACTIVE = "active"  # tmux session and sandbox both live
STATUS_STOPPED = "stopped"  # exactly one of them live (partially torn down)
STATUS_STALE = "stale"  # neither live, metadata record remains

ALL_STATUSES = [
    STATUS_ACTIVE,
    STATUS_STOPPED,
    STATUS_STALE,
]


# =============================================================================
# Status to Symbol+Color (for Rich/Textual styling)
# =============================================================================

STATUS_SYMBOLS = {
    STATUS_ACTIVE: ("●", "green"),
    STATUS_STOPPED: ("◐", "yellow"),
    STATUS_STALE: ("○", "red"),
}


def get_status_symbol(status: str) -> Tuple[str, str]:
    """Get (symbol, color) tuple for a session status."""
    return STATUS_SYMBOLS.get(status, ("?", "dim"))


def get_status_color(status: str) -> str:
    """Get color name for a session status."""
    return get_status_symbol(status)[1]


# =============================================================================
# View Names
# =============================================================================

VIEW_REPOSITORY = "repository"
VIEW_GLOBAL = "global"
VIEW_LOG = "log"
