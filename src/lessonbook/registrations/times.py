"""Lesson time arithmetic on minutes since midnight."""

from __future__ import annotations

import re

_TIME_24H = re.compile(r"^(\d{1,2}):(\d{2})(?::\d{2})?$")
_TIME_12H = re.compile(r"^(\d{1,2}):(\d{2})\s*([AaPp])\.?\s*[Mm]\.?$")

MINUTES_PER_DAY = 24 * 60


def time_to_minutes(value: str) -> int:
    """Convert "HH:MM" or "H:MM AM/PM" to minutes since midnight.

    Raises:
        ValueError: If the text is not a recognizable time of day.
    """
    text = value.strip() if isinstance(value, str) else ""

    match = _TIME_12H.match(text)
    if match:
        hours, minutes = int(match.group(1)), int(match.group(2))
        if not 1 <= hours <= 12 or minutes > 59:
            raise ValueError(f"Invalid time: {value!r}")
        hours %= 12
        if match.group(3).lower() == "p":
            hours += 12
        return hours * 60 + minutes

    match = _TIME_24H.match(text)
    if match:
        hours, minutes = int(match.group(1)), int(match.group(2))
        if hours > 23 or minutes > 59:
            raise ValueError(f"Invalid time: {value!r}")
        return hours * 60 + minutes

    raise ValueError(f"Invalid time: {value!r}")


def format_minutes(minutes: int) -> str:
    """Format minutes since midnight as 24-hour "HH:MM"."""
    minutes %= MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def format_minutes_12h(minutes: int) -> str:
    """Format minutes since midnight as "H:MM AM/PM"."""
    minutes %= MINUTES_PER_DAY
    hours, mins = divmod(minutes, 60)
    suffix = "PM" if hours >= 12 else "AM"
    return f"{hours % 12 or 12}:{mins:02d} {suffix}"


def normalize_time(value: str) -> str:
    """Canonical 24-hour form of a time string, e.g. "3:00 PM" -> "15:00"."""
    return format_minutes(time_to_minutes(value))


def calculate_end_time(start_time: str, length_minutes: int) -> str:
    """End of a lesson as "HH:MM"."""
    return format_minutes(time_to_minutes(start_time) + length_minutes)


def times_overlap(start1: str, length1: int, start2: str, length2: int) -> bool:
    """Whether [start1, start1+length1) intersects [start2, start2+length2)."""
    begin1 = time_to_minutes(start1)
    begin2 = time_to_minutes(start2)
    return begin1 < begin2 + length2 and begin2 < begin1 + length1
