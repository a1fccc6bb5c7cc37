"""
Pure business logic functions for TUI components.

These functions are extracted from the TUI to enable unit testing
without requiring the full Textual framework or external tools.

All functions are pure except where noted - they take data as input and
return new data.
"""

from dataclasses import dataclass
from typing import List, Optional

from .log_executor import DEFAULT_MAX_OUTPUT_BYTES, LogScriptError
from .session_store import SessionRecord, filter_for_repository
from .status_constants import VIEW_GLOBAL, VIEW_LOG, VIEW_REPOSITORY


@dataclass
class LogView:
    """Transient state of the log view for one session.

    Created when entering log mode and discarded on exit. Only the app's
    message handlers mutate it. `generation` identifies this particular
    visit so results from an earlier visit can be recognised and ignored.
    """

    session_id: str
    title: str
    generation: int
    content: str = ""
    scroll_offset: int = 0
    loading: bool = True
    refreshing: bool = False
    error_message: str = ""
    max_size_bytes: int = DEFAULT_MAX_OUTPUT_BYTES
    auto_refresh: bool = True

    def matches(self, session_id: str, generation: int) -> bool:
        return self.session_id == session_id and self.generation == generation


def filter_by_view(
    records: List[SessionRecord], view: str, repository_root: Optional[str]
) -> List[SessionRecord]:
    """Sessions visible in a table view."""
    if view == VIEW_REPOSITORY:
        return filter_for_repository(records, repository_root)
    return list(records)


def clamp_cursor(cursor: int, count: int) -> int:
    """Keep a cursor inside [0, count - 1] (0 for an empty list)."""
    if count <= 0:
        return 0
    return max(0, min(cursor, count - 1))


def move_cursor(cursor: int, delta: int, count: int) -> int:
    """Move the cursor by delta, stopping at the ends of the list."""
    return clamp_cursor(cursor + delta, count)


def toggle_view(view: str, has_repository: bool) -> str:
    """Next table view for the g key.

    Without a repository context only the global view is meaningful, so the
    view never changes.
    """
    if not has_repository:
        return view
    if view == VIEW_REPOSITORY:
        return VIEW_GLOBAL
    if view == VIEW_GLOBAL:
        return VIEW_REPOSITORY
    return view


def initial_view(repository_root: Optional[str]) -> str:
    return VIEW_REPOSITORY if repository_root else VIEW_GLOBAL


def build_confirmation_message(candidates: List[SessionRecord]) -> str:
    """Text of the cleanup confirmation dialog."""
    if len(candidates) == 1:
        lines = ["Clean 1 stale session?"]
    else:
        lines = [f"Clean {len(candidates)} stale sessions?"]
    for record in candidates:
        lines.append(f"{record.display_id}: {record.issue_title}")
    lines.append("")
    lines.append("(y/n) Press y to confirm, n to cancel")
    return "\n".join(lines)


def apply_log_size_limit(content: str, max_size_bytes: int) -> str:
    """Rotate log content to its newest lines when it exceeds the limit.

    Whole lines are kept from the end backwards while they fit; a header
    notes the truncation. Content that fits is returned unchanged.
    """
    if len(content.encode("utf-8")) <= max_size_bytes:
        return content

    kept: List[str] = []
    size = 0
    for line in reversed(content.split("\n")):
        line_size = len(line.encode("utf-8")) + 1
        if size + line_size > max_size_bytes:
            break
        kept.append(line)
        size += line_size

    if not kept:
        # A single line larger than the limit: keep its tail
        tail = content.encode("utf-8")[-max_size_bytes:].decode("utf-8", errors="ignore")
        kept = [tail]
    kept.reverse()
    return f"[Content truncated to last {max_size_bytes // 1024}KB]\n" + "\n".join(kept)


def is_terminal_log_error(error: Optional[BaseException]) -> bool:
    """Whether a log script error should stop auto-refresh."""
    if error is None:
        return False
    if isinstance(error, LogScriptError):
        return error.terminal
    message = str(error)
    return "not found" in message or "path validation failed" in message


def log_line_count(content: str) -> int:
    if not content:
        return 0
    return len(content.split("\n"))


def max_log_scroll(content: str, visible_lines: int) -> int:
    """Largest scroll offset that still fills the visible area."""
    return max(0, log_line_count(content) - max(1, visible_lines))


def scroll_log(offset: int, delta: int, content: str, visible_lines: int) -> int:
    """New scroll offset after scrolling by delta lines."""
    return max(0, min(offset + delta, max_log_scroll(content, visible_lines)))


def visible_log_lines(content: str, offset: int, visible_lines: int) -> List[str]:
    if not content:
        return []
    lines = content.split("\n")
    return lines[offset:offset + max(1, visible_lines)]


def format_log_status(view: LogView, interval_secs: int) -> str:
    """Status line under the log pane, e.g. "Refreshing... | Auto-refresh: 5s"."""
    parts = []
    if view.refreshing:
        parts.append("Refreshing...")
    if view.auto_refresh:
        parts.append(f"Auto-refresh: {interval_secs}s")
    else:
        parts.append("Auto-refresh: off")
    return " | ".join(parts)


def log_view_title(record: SessionRecord) -> str:
    return f"Log View - {record.display_id}: {record.issue_title}"


def view_label(view: str) -> str:
    return {
        VIEW_REPOSITORY: "Repository",
        VIEW_GLOBAL: "Global",
        VIEW_LOG: "Log",
    }.get(view, view)
