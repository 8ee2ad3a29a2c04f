"""Timezone and wall-clock utility functions for medication bot."""

import re
from datetime import datetime, timedelta, timezone
from typing import Optional

from loguru import logger

TIME_PATTERN = re.compile(r"^([01]?\d|2[0-3])[:.]([0-5]\d)$")

MINUTES_PER_DAY = 24 * 60


def parse_timezone_offset(offset_str: str) -> timedelta:
    """Parse timezone offset string to timedelta.

    Args:
        offset_str: Timezone offset in format "+07:00" or "-05:00"

    Returns:
        timedelta representing the offset

    Raises:
        ValueError: If offset string format is invalid

    Examples:
        >>> parse_timezone_offset("+07:00")
        datetime.timedelta(seconds=25200)
    """
    try:
        offset_str = offset_str.strip()

        if len(offset_str) != 6 or offset_str[0] not in ['+', '-']:
            raise ValueError(f"Invalid timezone offset format: {offset_str}")

        sign = 1 if offset_str[0] == '+' else -1

        hours_str, minutes_str = offset_str[1:].split(':')
        hours = int(hours_str)
        minutes = int(minutes_str)

        if not (0 <= hours <= 14):
            raise ValueError(f"Hours out of range: {hours}")
        if not (0 <= minutes <= 59):
            raise ValueError(f"Minutes out of range: {minutes}")

        return timedelta(minutes=sign * (hours * 60 + minutes))

    except (ValueError, IndexError) as e:
        logger.error(f"Failed to parse timezone offset '{offset_str}': {e}")
        raise ValueError(f"Invalid timezone offset format: {offset_str}") from e


def get_local_time(timezone_offset: str, now: Optional[datetime] = None) -> datetime:
    """Get wall-clock time in the deployment timezone.

    Args:
        timezone_offset: Deployment timezone offset (e.g., "+07:00")
        now: Aware datetime to convert (defaults to current UTC time)

    Returns:
        Aware datetime in the deployment timezone
    """
    local_tz = timezone(parse_timezone_offset(timezone_offset))
    if now is None:
        now = datetime.now(timezone.utc)
    return now.astimezone(local_tz)


def format_clock(moment: datetime) -> str:
    """Format datetime as HH:MM."""
    return moment.strftime("%H:%M")


def normalize_time(value: str) -> str:
    """Normalize user-entered time to HH:MM.

    Accepts "7:30", "07:30" and "18.30".

    Raises:
        ValueError: If value is not a valid time of day
    """
    match = TIME_PATTERN.match(value.strip())
    if not match:
        raise ValueError(f"Invalid time format: {value}")
    hours, minutes = match.groups()
    return f"{int(hours):02d}:{minutes}"


def _to_minutes(hhmm: str) -> int:
    hours, minutes = map(int, hhmm.split(':'))
    return hours * 60 + minutes


def clock_distance_minutes(first: str, second: str) -> int:
    """Distance between two HH:MM clock readings, wrapping around midnight.

    Examples:
        >>> clock_distance_minutes("23:30", "00:30")
        60
    """
    diff = abs(_to_minutes(first) - _to_minutes(second))
    return min(diff, MINUTES_PER_DAY - diff)


def infer_slot(
    time1: str,
    time2: str,
    current_time: datetime,
    window_hours: int = 2,
) -> Optional[int]:
    """Infer which dosing slot a reply belongs to from the wall clock.

    A slot matches when its configured time is within ``window_hours`` of
    the current time. Exactly one match resolves the slot; both or none
    leave it unresolved.

    Args:
        time1: Slot 1 time in HH:MM format
        time2: Slot 2 time in HH:MM format
        current_time: Current local time
        window_hours: Matching window in hours

    Returns:
        1 or 2, or None if the slot cannot be resolved
    """
    now_str = format_clock(current_time)
    window = window_hours * 60

    matches = [
        slot
        for slot, slot_time in ((1, time1), (2, time2))
        if clock_distance_minutes(slot_time, now_str) <= window
    ]

    if len(matches) == 1:
        logger.debug(f"Inferred slot {matches[0]} at {now_str}")
        return matches[0]

    logger.debug(f"Could not infer slot at {now_str}: matches={matches}")
    return None
