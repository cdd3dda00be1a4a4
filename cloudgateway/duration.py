"""Durations as written in gateway configuration files."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

NANOSECOND = 1
MICROSECOND = 1_000 * NANOSECOND
MILLISECOND = 1_000 * MICROSECOND
SECOND = 1_000 * MILLISECOND
MINUTE = 60 * SECOND
HOUR = 60 * MINUTE

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
_NUMBER = re.compile(r"([0-9]*)(?:\.([0-9]*))?")
_UNIT = re.compile(r"[^0-9.]*")
_LIMIT = 1 << 63


class DurationError(ValueError):
    """Raised when a configuration value cannot be read as a duration."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"unmarshal duration failed: {detail}")


@dataclass(frozen=True, order=True)
class Duration:
    """A span of time counted in whole nanoseconds."""

    nanoseconds: int = 0

    def __bool__(self) -> bool:
        return self.nanoseconds != 0

    def to_timedelta(self) -> timedelta:
        """Return the duration as a timedelta, truncated to microseconds."""
        micros = abs(self.nanoseconds) // MICROSECOND
        return timedelta(microseconds=-micros if self.nanoseconds < 0 else micros)


def _quote(text: str) -> str:
    parts = []
    for ch in text:
        if ch in '"\\':
            parts.append("\\" + ch)
        elif ch.isprintable():
            parts.append(ch)
        elif ord(ch) < 0x100:
            parts.append(f"\\x{ord(ch):02x}")
        else:
            parts.append(f"\\u{ord(ch):04x}")
    return "".join(parts)


def parse_duration(text: str) -> Duration:
    """Parse a duration such as ``"300ms"``, ``"-1.5h"`` or ``"2h45m"``.

    Raises ValueError when the text is not a valid duration.
    """
    quoted = _quote(text)

    def invalid() -> ValueError:
        return ValueError(f'time: invalid duration "{quoted}"')

    rest = text
    negative = False
    if rest[:1] in ("-", "+"):
        negative = rest[0] == "-"
        rest = rest[1:]
    if rest == "0":
        return Duration(0)
    if not rest:
        raise invalid()

    total = 0
    while rest:
        if rest[0] != "." and rest[0] not in "0123456789":
            raise invalid()
        match = _NUMBER.match(rest)
        whole, frac = match.group(1), match.group(2) or ""
        if not whole and not frac:
            raise invalid()
        rest = rest[match.end():]

        unit_text = _UNIT.match(rest).group()
        if not unit_text:
            raise ValueError(f'time: missing unit in duration "{quoted}"')
        rest = rest[len(unit_text):]
        unit = _UNITS.get(unit_text)
        if unit is None:
            raise ValueError(
                f'time: unknown unit "{_quote(unit_text)}" in duration "{quoted}"'
            )

        value = int(whole or "0")
        if value > _LIMIT // unit:
            raise invalid()
        value *= unit
        if frac:
            value += int(frac) * unit // 10 ** len(frac)
            if value > _LIMIT:
                raise invalid()
        total += value
        if total > _LIMIT:
            raise invalid()

    if negative:
        return Duration(-total)
    if total > _LIMIT - 1:
        raise invalid()
    return Duration(total)


def _describe(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "<nil>"
    return str(value)


def _from_text(value: str) -> Duration:
    try:
        return parse_duration(value)
    except ValueError as exc:
        raise DurationError(str(exc)) from exc


def duration_from_json(value: Any) -> Duration:
    """Read a decoded JSON value (a number of nanoseconds or a string) as a duration."""
    if isinstance(value, bool):
        raise DurationError(f"invalid duration: {_describe(value)}")
    if isinstance(value, (int, float)):
        return Duration(int(value))
    if isinstance(value, str):
        return _from_text(value)
    raise DurationError(f"invalid duration: {_describe(value)}")


def duration_from_yaml(value: Any) -> Duration:
    """Read a decoded YAML value (an integer of nanoseconds or a string) as a duration."""
    if isinstance(value, int) and not isinstance(value, bool):
        return Duration(value)
    if isinstance(value, str):
        return _from_text(value)
    raise DurationError(f"invalid duration: {_describe(value)}")