"""
Time Conversion Utilities

This module converts human-readable template periods ("6 weeks") to seconds and
back, and handles the Windows FILETIME encoding that certificate templates use
for their validity and renewal periods.
"""

import re
import struct

from certsync.lib.errors import FormatError, RangeError

# Constants for time calculations (in seconds)
SECONDS_PER_HOUR = 3600
SECONDS_PER_DAY = 24 * SECONDS_PER_HOUR
SECONDS_PER_WEEK = 168 * SECONDS_PER_HOUR
SECONDS_PER_MONTH = 720 * SECONDS_PER_HOUR  # 30-day month approximation
SECONDS_PER_YEAR = 8760 * SECONDS_PER_HOUR  # 365-day year approximation

# Largest unit first, format_duration relies on this order
DURATION_UNITS = [
    ("years", SECONDS_PER_YEAR),
    ("months", SECONDS_PER_MONTH),
    ("weeks", SECONDS_PER_WEEK),
    ("days", SECONDS_PER_DAY),
    ("hours", SECONDS_PER_HOUR),
]

_SECONDS_BY_UNIT = dict(DURATION_UNITS)

_DURATION_RE = re.compile(r"^\s*(\d+)\s+([a-z]+?)s?\s*$", re.IGNORECASE)

INT32_MAX = 2**31 - 1

# Most negative FILETIME interval count, as a magnitude
FILETIME_MAX_INTERVALS = 2**63

# Windows FILETIME is in 100-nanosecond intervals.
# Periods are stored negated because they represent time remaining
FILETIME_INTERVALS_PER_SECOND = 10_000_000


def parse_duration(text: str) -> int:
    """
    Convert a period string such as "6 weeks" to seconds.

    The unit is one of hours, days, weeks, months or years (case-insensitive,
    singular accepted). Months and years are fixed 30 and 365 day periods.

    Args:
        text: Period string in the form "<integer> <unit>"

    Returns:
        Period length in seconds

    Raises:
        FormatError: If the text does not match the pattern or the unit is unknown
        RangeError: If the number does not fit a signed 32-bit integer

    Example:
        >>> parse_duration("2 weeks")
        1209600
    """
    if not isinstance(text, str):
        raise FormatError(f"Expected a duration string, got {type(text).__name__}")

    match = _DURATION_RE.match(text)
    if match is None:
        raise FormatError(f"Invalid duration {text!r}")

    count = int(match.group(1))
    unit = match.group(2).lower() + "s"

    if unit not in _SECONDS_BY_UNIT:
        raise FormatError(f"Unknown duration unit in {text!r}")

    if count > INT32_MAX:
        raise RangeError(f"Duration {text!r} overflows a 32-bit integer")

    return count * _SECONDS_BY_UNIT[unit]


def format_duration(seconds: int) -> str:
    """
    Convert seconds to a period string using the largest unit that divides evenly.

    Args:
        seconds: Period length in seconds

    Returns:
        Period string such as "1 years" or "6 weeks"

    Raises:
        FormatError: If the period is negative or not a whole number of hours
    """
    if seconds < 0 or seconds % SECONDS_PER_HOUR != 0:
        raise FormatError(f"Cannot express {seconds} seconds as a template period")

    for unit, seconds_per_unit in DURATION_UNITS:
        if seconds and seconds % seconds_per_unit == 0:
            return f"{seconds // seconds_per_unit} {unit}"

    return f"{seconds // SECONDS_PER_HOUR} hours"


def filetime_to_span(filetime: bytes) -> int:
    """
    Convert a FILETIME period to a time span in seconds.

    Args:
        filetime: Windows FILETIME as 8 bytes

    Returns:
        Time span in seconds (absolute value)

    Raises:
        struct.error: If the input bytes cannot be unpacked as a 64-bit integer
    """
    (span,) = struct.unpack("<q", filetime)

    # Convert from negative 100-nanosecond intervals to seconds
    return -span // FILETIME_INTERVALS_PER_SECOND


def span_to_filetime(span: int) -> bytes:
    """
    Convert a time span in seconds to the FILETIME period encoding.

    Args:
        span: Time span in seconds (positive integer)

    Returns:
        Windows FILETIME as 8 bytes

    Raises:
        ValueError: If the input span is negative
        RangeError: If the span does not fit a 64-bit FILETIME
    """
    if span < 0:
        raise ValueError("Span must be a positive integer")

    intervals = span * FILETIME_INTERVALS_PER_SECOND
    if intervals > FILETIME_MAX_INTERVALS:
        raise RangeError(f"Span of {span} seconds overflows a 64-bit FILETIME")

    return struct.pack("<q", -intervals)


def filetime_to_str(filetime: bytes) -> str:
    """
    Convert a FILETIME period to a period string.

    Example:
        >>> filetime_to_str(span_to_filetime(SECONDS_PER_YEAR))
        '1 years'
    """
    return format_duration(filetime_to_span(filetime))
