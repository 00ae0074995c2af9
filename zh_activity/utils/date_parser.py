"""Time expression parsing for activity windows."""

import re
from datetime import datetime, timedelta, timezone

from ..errors import InvalidTimeFormat

RELATIVE_PATTERN = re.compile(r"^(\d+)([dhmw])$")

RELATIVE_UNITS = {
    "d": lambda n: timedelta(days=n),
    "h": lambda n: timedelta(hours=n),
    "m": lambda n: timedelta(minutes=n),
    "w": lambda n: timedelta(weeks=n),
}

# Absolute formats tried in order after keywords and relative durations
LOCAL_FORMATS = [
    "%Y-%m-%d",  # 2026-02-01
    "%Y-%m-%dT%H:%M:%S",  # 2026-02-01T10:00:00
]


def _localize(naive: datetime, now: datetime) -> datetime:
    """Attach the zone of ``now`` to a wall-clock time.

    A fixed offset matching the system offset at ``now`` stands for the
    system zone, so the offset in force on the parsed date is used.
    """
    zone = now.tzinfo
    if isinstance(zone, timezone) and now.utcoffset() == now.astimezone().utcoffset():
        return naive.astimezone()
    return naive.replace(tzinfo=zone)


def _start_of_day(now: datetime, days_back: int) -> datetime:
    day = now.date() - timedelta(days=days_back)
    return _localize(datetime(day.year, day.month, day.day), now)


def _parse_keyword(value: str, now: datetime) -> datetime | None:
    if value == "now":
        return now
    if value == "yesterday":
        return _start_of_day(now, 1)
    if value == "last week":
        return _start_of_day(now, 7)
    return None


def _parse_relative(value: str, now: datetime) -> datetime | None:
    match = RELATIVE_PATTERN.match(value)
    if not match:
        return None
    amount = int(match.group(1))
    if amount <= 0:
        return None
    return now - RELATIVE_UNITS[match.group(2)](amount)


def parse_rfc3339(value: str) -> datetime | None:
    """Parse an RFC3339 timestamp, returning None when it is not one.

    A zone offset (or ``Z``) is mandatory.
    """
    if "T" not in value and "t" not in value:
        return None
    candidate = value
    if candidate[-1] in "zZ":
        candidate = candidate[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return None
    return parsed


def _parse_local(value: str, now: datetime) -> datetime | None:
    for fmt in LOCAL_FORMATS:
        try:
            parsed = datetime.strptime(value, fmt)
        except ValueError:
            continue
        return _localize(parsed, now)
    return None


def parse_time_expression(value: str, now: datetime) -> datetime:
    """Parse a --from/--to value into an absolute instant.

    Supports:
    - empty string: ``now``
    - keywords: now, yesterday, last week
    - relative durations: 30m, 2h, 7d, 2w
    - RFC3339: 2026-02-01T10:00:00Z
    - ISO dates: 2026-02-01 (midnight in ``now``'s zone)
    - ISO date and time: 2026-02-01T10:00:00 (in ``now``'s zone)

    Args:
        value: Expression to parse
        now: Reference instant for keywords and relative durations

    Returns:
        Parsed datetime

    Raises:
        InvalidTimeFormat: If the expression matches none of the formats
    """
    if value == "":
        return now

    lower = value.strip().lower()

    for parser in (_parse_keyword, _parse_relative):
        result = parser(lower, now)
        if result is not None:
            return result

    stripped = value.strip()
    result = parse_rfc3339(stripped)
    if result is not None:
        return result

    result = _parse_local(stripped, now)
    if result is not None:
        return result

    raise InvalidTimeFormat(
        f"unrecognized time format: {value!r} "
        "(try 1d, 7d, 2h, yesterday, 2026-02-01, or RFC3339)"
    )


def format_time_ago(then: datetime, now: datetime | None = None) -> str:
    """Format an instant as a short relative duration, e.g. ``3h ago``."""
    if now is None:
        now = datetime.now().astimezone()
    delta = now - then
    if delta < timedelta(minutes=1):
        return "just now"
    if delta < timedelta(hours=1):
        return f"{int(delta.total_seconds() // 60)}m ago"
    if delta < timedelta(days=1):
        return f"{int(delta.total_seconds() // 3600)}h ago"
    return f"{delta.days}d ago"


def format_date(dt: datetime) -> str:
    """Format an instant for display in the local zone."""
    local = dt.astimezone()
    return f"{local:%b} {local.day}, {local.year}"


def format_datetime_for_github(dt: datetime) -> str:
    """Format an instant for a GitHub ``updated:>`` search qualifier.

    Args:
        dt: Datetime to format

    Returns:
        Date and time without zone, as GitHub search expects
    """
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S")
