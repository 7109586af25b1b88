"""
Human-readable formatting for timestamps and file sizes.
"""
from datetime import datetime, timezone
from typing import Optional


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they are stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def time_ago(value: datetime, now: Optional[datetime] = None) -> str:
    """Relative label such as ``just now``, ``5m ago`` or ``Mar 3`` for older dates."""
    value = _as_utc(value)
    now = _as_utc(now) if now else datetime.now(timezone.utc)
    diff = int((now - value).total_seconds())
    if diff < 60:
        return "just now"
    if diff < 3600:
        return f"{diff // 60}m ago"
    if diff < 86400:
        return f"{diff // 3600}h ago"
    if diff < 604800:
        return f"{diff // 86400}d ago"
    return f"{value.strftime('%b')} {value.day}"


def format_local_time(value: datetime) -> str:
    """E.g. ``Mar 3, 02:15 PM`` in the machine's local timezone."""
    local = _as_utc(value).astimezone()
    return f"{local.strftime('%b')} {local.day}, {local.strftime('%I:%M %p')}"


def format_bytes(size: int) -> str:
    units = ["B", "KB", "MB", "GB"]
    value = float(max(size, 0))
    unit = 0
    while value >= 1024 and unit < len(units) - 1:
        value /= 1024
        unit += 1
    value = round(value, 1)
    if value == int(value):
        value = int(value)
    return f"{value} {units[unit]}"
