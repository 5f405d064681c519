"""
Report window resolution

Turns a named report period (or explicit bounds) into the epoch-second
interval sent to Aircall plus UTC ISO strings for display.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo

from aircall_reports.config.settings import ReportConfig
from aircall_reports.models import TimeWindow

logger = logging.getLogger(__name__)

AFTERNOON = 'afternoon'
NIGHT = 'night'
HOURLY = 'hourly'
TODAY = 'today'

PERIOD_LABELS = {
    NIGHT: 'Daily',
}

TimeInput = Union[str, datetime]


def period_label(period: str) -> str:
    """Display name for a period; the night report covers the whole day"""
    return PERIOD_LABELS.get(period, period)


def to_iso(value: datetime) -> str:
    """UTC ISO-8601 with millisecond precision and a Z suffix"""
    utc = value.astimezone(timezone.utc)
    return f"{utc.strftime('%Y-%m-%dT%H:%M:%S')}.{utc.microsecond // 1000:03d}Z"


def parse_time(value: TimeInput, tz: ZoneInfo) -> datetime:
    """
    Parse an explicit window bound

    Args:
        value: ISO-8601 string or datetime; naive values are read in tz
        tz: Report time zone

    Returns:
        Timezone-aware datetime

    Raises:
        ValueError: If the string is not ISO-8601
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        text = value.strip()
        if text.endswith(('Z', 'z')):
            text = text[:-1] + '+00:00'
        parsed = datetime.fromisoformat(text)

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed


def make_window(start: datetime, end: datetime) -> TimeWindow:
    return TimeWindow(
        start_timestamp=int(start.timestamp()),
        end_timestamp=int(end.timestamp()),
        start_iso=to_iso(start),
        end_iso=to_iso(end)
    )


def _at_hour(now: datetime, hour: int) -> datetime:
    return now.replace(hour=hour, minute=0, second=0, microsecond=0)


def resolve_window(
    period: str,
    explicit_start: Optional[TimeInput] = None,
    explicit_end: Optional[TimeInput] = None,
    config: Optional[ReportConfig] = None,
    now: Optional[datetime] = None
) -> TimeWindow:
    """
    Resolve the window a report covers

    Explicit bounds win when both are given and are used as-is. Otherwise
    the period picks a local-time rule evaluated against now:

    - afternoon: afternoon_start_hour -> afternoon_end_hour today
    - hourly: start of the current hour, one hour wide
    - today: local midnight -> now, at least one second wide
    - night and anything else: full_day_start_hour -> full_day_end_hour

    Args:
        period: Period name
        explicit_start: Optional start bound
        explicit_end: Optional end bound
        config: Window hours and time zone
        now: Reference instant (defaults to the current time)

    Returns:
        TimeWindow
    """
    config = config or ReportConfig()
    tz = ZoneInfo(config.timezone)

    if explicit_start and explicit_end:
        return make_window(parse_time(explicit_start, tz), parse_time(explicit_end, tz))

    now = now.astimezone(tz) if now else datetime.now(tz)

    if period == HOURLY:
        start = now.replace(minute=0, second=0, microsecond=0)
        end = start.astimezone(timezone.utc) + timedelta(hours=1)
    elif period == AFTERNOON:
        start = _at_hour(now, config.afternoon_start_hour)
        end = _at_hour(now, config.afternoon_end_hour)
    elif period == TODAY:
        start = _at_hour(now, 0)
        end = max(now, start + timedelta(seconds=1))
    else:
        if period != NIGHT:
            logger.info(f"No window rule for period '{period}', using full day")
        start = _at_hour(now, config.full_day_start_hour)
        end = _at_hour(now, config.full_day_end_hour)

    return make_window(start, end)
