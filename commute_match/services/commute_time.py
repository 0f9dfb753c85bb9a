"""
Commute window normalisation.

A commute window is a pair of "HH:mm" strings (24h). It is turned into one or
two half-open minute-of-day segments; windows that cross midnight are split:

    08:00-09:00  ->  [(480, 540)]
    22:00-02:00  ->  [(1320, 1440), (0, 120)]
"""

import logging
import re
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 1440

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

Segment = Tuple[int, int]


def to_minutes(value: str) -> int:
    """Convert "HH:mm" to minutes since midnight (mod 1440)."""
    hours, minutes = value.split(":")
    return (int(hours) * 60 + int(minutes)) % MINUTES_PER_DAY


def is_valid_time(value) -> bool:
    return isinstance(value, str) and bool(TIME_PATTERN.match(value))


def calculate_commute_segments(start: Optional[str], end: Optional[str]) -> List[Segment]:
    """
    Split a commute window into minute-of-day segments.

    Expects validated "HH:mm" input. No window, or a zero-length one, gives
    an empty list. Every returned segment has start < end.
    """
    if not start or not end:
        return []

    start_minutes = to_minutes(start)
    end_minutes = to_minutes(end)

    if start_minutes == end_minutes:
        return []

    if start_minutes < end_minutes:
        return [(start_minutes, end_minutes)]

    # Crosses midnight
    if end_minutes == 0:
        return [(start_minutes, MINUTES_PER_DAY)]
    return [(start_minutes, MINUTES_PER_DAY), (0, end_minutes)]


def safe_commute_segments(start: Optional[str], end: Optional[str]) -> List[Segment]:
    """Like calculate_commute_segments but returns [] for malformed windows."""
    if not start and not end:
        return []
    if not (is_valid_time(start) and is_valid_time(end)):
        logger.warning(f"Ignoring malformed commute window: start={start!r} end={end!r}")
        return []
    return calculate_commute_segments(start, end)


def segments_duration(segments: List[Segment]) -> int:
    """Total minutes covered by a segment list."""
    return sum(end - start for start, end in segments)
