"""Parsing and formatting of durations written as "1h2m3.5s", held as nanoseconds."""

from __future__ import annotations

import re
from fractions import Fraction

NANOSECOND = 1
MICROSECOND = 1000 * NANOSECOND
MILLISECOND = 1000 * MICROSECOND
SECOND = 1000 * MILLISECOND
MINUTE = 60 * SECOND
HOUR = 60 * MINUTE

MAX_DURATION = (1 << 63) - 1

_UNITS = {
    "ns": NANOSECOND,
    "us": MICROSECOND,
    "\u00b5s": MICROSECOND,
    "\u03bcs": MICROSECOND,
    "ms": MILLISECOND,
    "s": SECOND,
    "m": MINUTE,
    "h": HOUR,
}

_COMPONENT = re.compile(r"(\d*)(?:\.(\d*))?([^\d.]*)")


def parse_duration(text: str) -> int:
    """Parse a duration such as "300ms", "-1.5h" or "2h45m" into nanoseconds.

    Raises ValueError for malformed input, unknown units or overflow.
    """
    s = text
    negative = False
    if s[:1] in ("-", "+"):
        negative = s[0] == "-"
        s = s[1:]
    if s == "0":
        return 0
    if not s:
        raise ValueError(f"time: invalid duration {text!r}")

    total = 0
    pos = 0
    while pos < len(s):
        match = _COMPONENT.match(s, pos)
        whole, frac, unit = match.groups()
        if not whole and not frac:
            raise ValueError(f"time: invalid duration {text!r}")
        if not unit:
            raise ValueError(f"time: missing unit in duration {text!r}")
        scale = _UNITS.get(unit)
        if scale is None:
            raise ValueError(f"time: unknown unit {unit!r} in duration {text!r}")
        value = int(whole or "0") * scale
        if frac:
            value += int(Fraction(int(frac), 10 ** len(frac)) * scale)
        total += value
        if total > 1 << 63:
            raise ValueError(f"time: invalid duration {text!r}")
        pos = match.end()

    if negative:
        return -total
    if total > MAX_DURATION:
        raise ValueError(f"time: invalid duration {text!r}")
    return total


def _with_fraction(value: int, precision: int) -> str:
    whole, frac = divmod(value, 10**precision)
    digits = str(frac).rjust(precision, "0").rstrip("0")
    return f"{whole}.{digits}" if digits else str(whole)


def format_duration(nanoseconds: int) -> str:
    """Format nanoseconds the way durations are conventionally printed, e.g. "1h2m0.5s"."""
    if nanoseconds == 0:
        return "0s"
    sign = "-" if nanoseconds < 0 else ""
    magnitude = abs(nanoseconds)

    if magnitude < SECOND:
        if magnitude < MICROSECOND:
            body = f"{magnitude}ns"
        elif magnitude < MILLISECOND:
            body = _with_fraction(magnitude, 3) + "\u00b5s"
        else:
            body = _with_fraction(magnitude, 6) + "ms"
        return sign + body

    seconds, frac = divmod(magnitude, SECOND)
    body = _with_fraction((seconds % 60) * SECOND + frac, 9) + "s"
    minutes = seconds // 60
    if minutes > 0:
        body = f"{minutes % 60}m{body}"
        hours = minutes // 60
        if hours > 0:
            body = f"{hours}h{body}"
    return sign + body