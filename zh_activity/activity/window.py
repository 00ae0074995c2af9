"""Resolution of --from/--to expressions into an activity window."""

from datetime import datetime

from ..errors import InvalidTimeFormat
from ..utils.date_parser import parse_time_expression
from .models import TimeWindow

DEFAULT_FROM = "1d"


def resolve_time(expr: str, now: datetime) -> datetime:
    """Resolve a single time expression relative to ``now``."""
    return parse_time_expression(expr, now)


def resolve_window(
    from_expr: str = DEFAULT_FROM, to_expr: str = "", now: datetime | None = None
) -> TimeWindow:
    """Resolve both ends of an activity window.

    Args:
        from_expr: Start expression, e.g. ``1d``, ``yesterday``, ``2026-02-01``
        to_expr: End expression, empty for ``now``
        now: Reference instant, defaults to the current local time

    Returns:
        TimeWindow with ``start <= end``

    Raises:
        InvalidTimeFormat: If either expression is invalid or the window is
            inverted
    """
    if now is None:
        now = datetime.now().astimezone()

    try:
        start = resolve_time(from_expr, now)
    except InvalidTimeFormat as e:
        raise InvalidTimeFormat(f"invalid --from value: {e}")
    try:
        end = resolve_time(to_expr, now)
    except InvalidTimeFormat as e:
        raise InvalidTimeFormat(f"invalid --to value: {e}")

    return TimeWindow(start=start, end=end)
