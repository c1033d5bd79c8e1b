"""Schedule parsing for activities: fixed-unit intervals only, no cron arithmetic."""

from __future__ import annotations

import re
from datetime import timedelta

DEFAULT_INTERVAL = timedelta(minutes=30)

_INTERVAL_RE = re.compile(r"^(\d+)([smh])$")

_UNIT_SECONDS: dict[str, int] = {
    "s": 1,
    "m": 60,
    "h": 3600,
}


def _parse(expression: str) -> timedelta | None:
    match = _INTERVAL_RE.match(expression.strip())
    if not match:
        return None
    value = int(match.group(1))
    if value <= 0:
        return None
    return timedelta(seconds=value * _UNIT_SECONDS[match.group(2)])


def parse_schedule(expression: str) -> timedelta:
    """Parse ``'45m'``, ``'2h'`` or ``'60s'`` into a duration.

    Anything else (empty string, unknown suffix, malformed or non-positive
    number, cron-shaped input such as ``'*/30 * * * *'``) yields
    :data:`DEFAULT_INTERVAL` instead of raising.
    """
    interval = _parse(expression or "")
    return interval if interval is not None else DEFAULT_INTERVAL


def is_valid_schedule(expression: str) -> bool:
    """Return ``True`` if *expression* parses without falling back to the default."""
    return _parse(expression or "") is not None
