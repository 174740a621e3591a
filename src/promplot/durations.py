"""Duration strings with day support.

Understands the familiar "1h30m" notation plus a "d" unit for days.
Components are summed left to right, so repeated units add up:
"1h2h" is three hours and "1h1d60m" is 26 hours.
"""

import re
from datetime import timedelta

# Seconds per unit
UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,  # U+00B5 micro sign
    "μs": 1e-6,  # U+03BC greek mu
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
    "d": 86400.0,
}

# "ms" must be tried before "m"
_COMPONENT = re.compile(r"(\d*(?:\.\d*)?)(ns|us|µs|μs|ms|s|m|h|d)")


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as "5d12h34m56s" or ".5d".

    Args:
        text: Duration string; an optional leading sign applies to the whole value

    Returns:
        The accumulated duration

    Raises:
        ValueError: If the string is empty or contains anything but
            number/unit components
    """
    s = text
    negative = False
    if s and s[0] in "+-":
        negative = s[0] == "-"
        s = s[1:]

    if s == "0":
        return timedelta(0)
    if not s:
        raise ValueError(f"invalid duration {text!r}")

    total = 0.0
    pos = 0
    while pos < len(s):
        match = _COMPONENT.match(s, pos)
        # A component needs at least one digit before its unit
        if match is None or not match.group(1).strip("."):
            raise ValueError(f"invalid duration {text!r}")
        number, unit = match.groups()
        total += float(number) * UNIT_SECONDS[unit]
        pos = match.end()

    try:
        return timedelta(seconds=-total if negative else total)
    except OverflowError:
        raise ValueError(f"duration out of range {text!r}") from None


def format_duration(value: timedelta) -> str:
    """Format a duration compactly, e.g. "26h0m0s" or "1m30.5s"."""
    total = value.total_seconds()
    if total == 0:
        return "0s"

    sign = "-" if total < 0 else ""
    hours, rem = divmod(abs(total), 3600)
    minutes, seconds = divmod(rem, 60)
    secs = f"{seconds:f}".rstrip("0").rstrip(".")

    if hours:
        return f"{sign}{int(hours)}h{int(minutes)}m{secs}s"
    if minutes:
        return f"{sign}{int(minutes)}m{secs}s"
    return f"{sign}{secs}s"
