"""Recency tags such as ``[2h ago]``, ``[3d ago]`` or ``[Jan 15]``."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
          "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

# Numeric timestamps above this are taken as epoch milliseconds.
_EPOCH_MS_THRESHOLD = 1e11


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string or epoch number into an aware datetime."""
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, float)):
            seconds = value / 1000 if value > _EPOCH_MS_THRESHOLD else value
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        if isinstance(value, str) and value.strip():
            text = value.strip()
            if text.endswith(("Z", "z")):
                text = text[:-1] + "+00:00"
            parsed = datetime.fromisoformat(text)
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed
    except (ValueError, OverflowError, OSError):
        return None
    return None


def format_recency(timestamp: Any, now: Optional[datetime] = None) -> str:
    """Return a bracketed age label for *timestamp*, or ``""`` if unknown."""
    moment = parse_timestamp(timestamp)
    if moment is None:
        return ""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    hours = int((now - moment).total_seconds() // 3600)
    if hours < 1:
        return "[<1h ago]"
    if hours < 24:
        return f"[{hours}h ago]"
    days = hours // 24
    if days < 14:
        return f"[{days}d ago]"
    label = moment.astimezone(timezone.utc)
    return f"[{MONTHS[label.month - 1]} {label.day}]"
