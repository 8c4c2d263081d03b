"""Value formatting helpers shared by the table printers."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

NONE = "<none>"
UNKNOWN = "<unknown>"


def format_labels(labels: dict[str, str] | None) -> str:
    """Format labels as sorted 'k=v' pairs joined by commas."""
    if not labels:
        return NONE
    return ",".join(f"{k}={labels[k]}" for k in sorted(labels))


def human_duration(seconds: float) -> str:
    """Format a duration the way kubectl prints resource ages."""
    seconds = int(seconds)
    if seconds < 0:
        seconds = 0
    if seconds < 60 * 2:
        return f"{seconds}s"
    minutes = seconds // 60
    if minutes < 10:
        s = seconds % 60
        return f"{minutes}m{s}s" if s else f"{minutes}m"
    if minutes < 60 * 3:
        return f"{minutes}m"
    hours = minutes // 60
    if hours < 8:
        m = minutes % 60
        return f"{hours}h{m}m" if m else f"{hours}h"
    if hours < 48:
        return f"{hours}h"
    days = hours // 24
    if hours < 24 * 8:
        h = hours % 24
        return f"{days}d{h}h" if h else f"{days}d"
    if days < 365 * 2:
        return f"{days}d"
    years = days // 365
    if days < 365 * 8:
        d = days % 365
        return f"{years}y{d}d" if d else f"{years}y"
    return f"{years}y"


def format_age(timestamp: datetime | str | None, now: datetime | None = None) -> str:
    """Age of a creation timestamp, or '<unknown>' if it is missing."""
    if timestamp is None or timestamp == "":
        return UNKNOWN
    if isinstance(timestamp, str):
        try:
            timestamp = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
        except ValueError:
            return UNKNOWN
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    return human_duration((now - timestamp).total_seconds())


def or_none(value: Any) -> str:
    """Render a possibly-missing value, '<none>' when empty."""
    if value is None or value == "" or value == []:
        return NONE
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value)
    return str(value)
