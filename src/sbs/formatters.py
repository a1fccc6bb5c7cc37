"""
Pure formatting functions for display.

These functions convert timestamps and byte counts into human-readable
strings. They never raise on bad input.
"""

from datetime import datetime, timezone
from typing import Optional


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an RFC 3339 timestamp into an aware datetime.

    Naive timestamps are assumed to be UTC.

    Returns:
        The datetime, or None if the value is empty or unparseable
    """
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_time_delta(timestamp: Optional[datetime], now: Optional[datetime] = None) -> str:
    """Format the time since a timestamp as a coarse bucket.

    Examples: "now" (under a minute, or in the future), "5m ago",
    "3h ago", "12d ago". A missing timestamp gives "unknown".
    """
    if timestamp is None:
        return "unknown"
    if now is None:
        now = datetime.now(timezone.utc)
    seconds = (now - timestamp).total_seconds()
    # Clock skew: future timestamps read as now
    if seconds < 60:
        return "now"
    if seconds < 3600:
        return f"{int(seconds // 60)}m ago"
    if seconds < 86400:
        return f"{int(seconds // 3600)}h ago"
    return f"{int(seconds // 86400)}d ago"


def format_since(value: Optional[str], now: Optional[datetime] = None) -> str:
    """format_time_delta for a raw RFC 3339 string ("unknown" if unparseable)."""
    return format_time_delta(parse_timestamp(value), now)


def format_size(num_bytes: int) -> str:
    """Format a byte count: 512 -> "512B", 2048 -> "2KB", 3145728 -> "3.0MB"."""
    if num_bytes < 1024:
        return f"{num_bytes}B"
    if num_bytes < 1024 * 1024:
        return f"{num_bytes // 1024}KB"
    return f"{num_bytes / (1024 * 1024):.1f}MB"
