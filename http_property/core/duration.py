"""Parsing of textual durations such as ``10s``, ``500ms`` or ``1h30m``."""

import re

from http_property.core.errors import MalformedConfigurationMessage

__all__ = ["parse_duration"]

# Seconds per unit
_UNITS: dict[str, float] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_COMPONENT = re.compile(r"(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(text: str) -> float:
    """Parse a duration string into seconds.

    Accepts an optional sign followed by one or more ``<number><unit>``
    components, e.g. ``"300ms"``, ``"-1.5h"`` or ``"2h45m"``. Valid units are
    ``ns``, ``us`` (or ``µs``), ``ms``, ``s``, ``m`` and ``h``. The bare
    string ``"0"`` is also accepted.

    Args:
        text: Duration text.

    Returns:
        Duration in seconds (may be zero or negative).

    Raises:
        MalformedConfigurationMessage: If the text is not a valid duration.
    """
    raw = text.strip()
    sign = 1.0
    body = raw
    if body[:1] in ("+", "-"):
        sign = -1.0 if body[0] == "-" else 1.0
        body = body[1:]

    if body == "0":
        return 0.0
    if not body:
        raise MalformedConfigurationMessage(f"invalid duration {text!r}")

    total = 0.0
    pos = 0
    while pos < len(body):
        match = _COMPONENT.match(body, pos)
        if match is None:
            if body[pos].isdigit() or body[pos] == ".":
                raise MalformedConfigurationMessage(f"missing unit in duration {text!r}")
            raise MalformedConfigurationMessage(f"invalid duration {text!r}")
        number, unit = match.groups()
        total += float(number) * _UNITS[unit]
        pos = match.end()

    return sign * total
