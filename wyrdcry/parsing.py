"""
Lenient number parsing for user-entered and imported values.

Form fields and CSV cells are free text. These helpers read the leading
number out of a string and fall back to a caller-supplied default instead
of raising, so a bad cell never aborts an edit or an import.
"""

import math
import re

_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")
_FLOAT_PREFIX = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def parse_int(value, default: int | None = None) -> int | None:
    """
    Parse the leading integer of a value.

    "4+" reads as 4 and "3.7" as 3. Numbers are truncated toward zero.

    Args:
        value: String, number, or None.
        default: Returned when no integer can be read.

    Returns:
        Parsed integer, or default.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else default

    match = _INT_PREFIX.match(str(value))
    if not match:
        return default
    try:
        return int(match.group(1))
    except ValueError:
        # Past the interpreter's integer string conversion limit
        return default


def parse_float(value, default: float | None = None) -> float | None:
    """
    Parse the leading decimal number of a value.

    Non-finite results, and integers too large for a float, are treated as
    unparseable.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        try:
            result = float(value)
        except OverflowError:
            return default
        return result if math.isfinite(result) else default

    match = _FLOAT_PREFIX.match(str(value))
    if not match:
        return default
    result = float(match.group(1))
    return result if math.isfinite(result) else default


def finite_or_zero(value) -> float:
    """Return value as a float, or 0.0 when it is missing or not finite."""
    try:
        result = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    return result if math.isfinite(result) else 0.0


def clamp(value: int, low: int, high: int) -> int:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves rounding up (2.5 -> 3, -2.5 -> -2)."""
    return math.floor(value + 0.5)


def format_number(value) -> str:
    """Render whole floats without a trailing '.0'."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
