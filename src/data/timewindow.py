"""
Time window resolution for differential analysis and range filters.

User-supplied timestamps arrive in a few shapes (browser datetime-local
inputs, ISO strings with offsets). This module turns them into canonical
UTC instants and builds the fixed-duration windows that bound a sample.

Accepted forms, tried in order:
    2024-01-02T15:04:05Z / 2024-01-02T15:04:05+02:00   full date-time with offset
    2024-01-02T15:04                                   minute precision, UTC
    2024-01-02T15:04:05                                second precision, UTC
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from src.core.config import config
from src.core.exceptions import InvalidTimeFormatError
from src.data.schema import TimeWindow

logger = logging.getLogger(__name__)

# Full date-time with a mandatory offset ("Z" or +HH:MM)
OFFSET_FORMATS = (
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S.%f%z",
)

# Offset-less forms, interpreted as UTC
NAIVE_FORMATS = (
    "%Y-%m-%dT%H:%M",
    "%Y-%m-%dT%H:%M:%S",
)


def parse_offset_time(raw: Optional[str]) -> Optional[datetime]:
    """
    Parse a fully-qualified date-time with offset.

    Args:
        raw: Timestamp string, e.g. "2024-01-02T15:04:05Z"

    Returns:
        UTC datetime, or None if raw is empty or not in the offset form.
        Callers use None to drop an optional filter.
    """
    if not raw:
        return None

    raw = raw.strip()
    for fmt in OFFSET_FORMATS:
        try:
            parsed = datetime.strptime(raw, fmt)
        except ValueError:
            continue
        return parsed.astimezone(timezone.utc)
    return None


def resolve_time(raw: str, side: Optional[str] = None) -> datetime:
    """
    Resolve a user-supplied timestamp into a UTC instant.

    Args:
        raw: Timestamp in one of the accepted forms
        side: Optional label ("healthy", "crash") carried into the error

    Returns:
        Timezone-aware UTC datetime

    Raises:
        InvalidTimeFormatError: If no accepted form matches
    """
    parsed = parse_offset_time(raw)
    if parsed is not None:
        return parsed

    candidate = (raw or "").strip()
    for fmt in NAIVE_FORMATS:
        try:
            return datetime.strptime(candidate, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue

    logger.warning("Unrecognized time format for %s: %r", side or "input", raw)
    raise InvalidTimeFormatError(raw, side=side)


def build_window(instant: datetime, duration: Optional[timedelta] = None) -> TimeWindow:
    """
    Build the window [instant, instant + duration], bounds inclusive.

    The same configured duration applies to every compared period.
    """
    if duration is None:
        duration = config.analytics.window_duration
    return TimeWindow(start=instant, duration=duration)
