"""
HTTP-date helpers (RFC 7231 section 7.1.1.1).

Formatting always produces IMF-fixdate; parsing accepts the three formats
recipients are required to understand.
"""

from datetime import datetime, timezone
from email.utils import format_datetime, parsedate_to_datetime
from typing import Optional


def format_http_date(value: datetime) -> str:
    """Render a datetime as IMF-fixdate, e.g. ``Sun, 06 Nov 1994 08:49:37 GMT``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return format_datetime(value.astimezone(timezone.utc), usegmt=True)


def parse_http_date(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an HTTP-date header value.

    Returns:
        Timezone-aware UTC datetime, or None when the value is missing or malformed
    """
    if not value or not value.strip():
        return None
    try:
        parsed = parsedate_to_datetime(value.strip())
    except (TypeError, ValueError, IndexError):
        return None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def epoch_seconds(value: datetime) -> Optional[int]:
    """
    Whole seconds elapsed since the Unix epoch.

    Returns None for instants before the epoch, which callers treat as an
    indeterminate comparison.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    seconds = value.timestamp()
    if seconds < 0:
        return None
    return int(seconds)
