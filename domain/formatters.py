"""
Duration and field formatters.

Pure functions that normalize free-text numeric input typed into session
fields, plus display formatting for run summaries. Every ``format_*_input``
function is idempotent: feeding its output back in returns the same string.
"""

import math
import re
from typing import List, Optional

_NON_DIGITS = re.compile(r"\D")
_NON_DECIMAL = re.compile(r"[^\d.]")


def format_duration_input(value: Optional[str]) -> str:
    """
    Normalize raw duration input into ``mm:ss`` or ``hh:mm:ss``.

    Digit-only input is laid out right to left in two-digit groups:
    up to two digits are left as typed, three to four digits become ``mm:ss``
    and six digits become ``hh:mm:ss``. A fifth digit typed into a full
    ``mm:ss`` value is dropped, as are digits beyond the sixth.

    Input that already contains colons is treated as explicit components and
    zero-padded.

    Examples:
        >>> format_duration_input("13000")
        '13:00'
        >>> format_duration_input("13:00")
        '13:00'
        >>> format_duration_input("130")
        '01:30'
        >>> format_duration_input("013000")
        '01:30:00'
    """
    if not value:
        return ""

    if ":" in value:
        return _format_components(value.split(":"))

    digits = _NON_DIGITS.sub("", value)
    if len(digits) <= 2:
        return digits
    if len(digits) <= 5:
        digits = digits[:4]
        return f"{digits[:-2].zfill(2)}:{digits[-2:]}"
    digits = digits[:6]
    return f"{digits[0:2]}:{digits[2:4]}:{digits[4:6]}"


def _format_components(raw_parts: List[str]) -> str:
    parts = [_NON_DIGITS.sub("", p)[:2] for p in raw_parts][-3:]
    # Still typing: "12:" or "1::"
    if any(p == "" for p in parts[1:]):
        return ":".join(parts)
    return ":".join(p.zfill(2) for p in parts)


def format_distance_input(value: Optional[str]) -> str:
    """Keep only digits and decimal points."""
    if not value:
        return ""
    return _NON_DECIMAL.sub("", value)


def format_minutes_as_duration(minutes: float) -> str:
    """Format a minute count as ``hh:mm:ss``."""
    if not math.isfinite(minutes) or minutes <= 0:
        return "00:00:00"
    total_seconds = int(minutes * 60)
    hours = total_seconds // 3600
    mins = (total_seconds % 3600) // 60
    secs = total_seconds % 60
    return f"{hours:02d}:{mins:02d}:{secs:02d}"


def format_pace(pace_minutes_per_mile: float) -> str:
    """Format pace as ``mm:ss``; zero or non-finite pace displays as ``00:00``."""
    if not math.isfinite(pace_minutes_per_mile) or pace_minutes_per_mile <= 0:
        return "00:00"
    minutes = int(pace_minutes_per_mile)
    seconds = int((pace_minutes_per_mile - minutes) * 60)
    return f"{minutes:02d}:{seconds:02d}"


def parse_decimal(value: Optional[str]) -> Optional[float]:
    """Parse a typed number such as a weight; blank or garbage yields None."""
    if value is None:
        return None
    cleaned = format_distance_input(str(value))
    if not cleaned:
        return None
    try:
        return float(cleaned)
    except ValueError:
        return None


def parse_whole_number(value: Optional[str]) -> Optional[int]:
    """Parse a typed rep count; decimals are truncated, blank yields None."""
    parsed = parse_decimal(value)
    if parsed is None:
        return None
    return int(parsed)
