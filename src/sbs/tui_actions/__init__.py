"""
TUI Action Mixins for sbs.

This package contains action method mixins organized by domain.
These are mixed into SessionsTUI via multiple inheritance.
"""

from .navigation import NavigationActionsMixin
from .view import ViewActionsMixin
from .session import SessionActionsMixin
from .cleanup import CleanupActionsMixin
from .logs import LogActionsMixin

__all__ = [
    "NavigationActionsMixin",
    "ViewActionsMixin",
    "SessionActionsMixin",
    "CleanupActionsMixin",
    "LogActionsMixin",
]
