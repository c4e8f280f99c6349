"""Calendar anchoring for training plans.

Maps a plan start date to the Monday of its first calendar week, and
week/day pairs to concrete dates. Every input is normalized to a local
calendar date before comparison, so a date-only string and a timestamp
with a time component never disagree by a day.

Malformed or missing dates degrade (None / week 1) instead of raising.
"""

import re
from datetime import date, datetime, timedelta, tzinfo

from loguru import logger

from weekplan.config.settings import settings

WEEKDAYS: tuple[str, ...] = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

_DAY_OFFSETS = {name.lower(): offset for offset, name in enumerate(WEEKDAYS)}
_DATE_ONLY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def day_offset(day_name: str | None) -> int | None:
    """Return the offset of a weekday from Monday (Monday=0 .. Sunday=6).

    Args:
        day_name: Weekday name, any case

    Returns:
        Offset in days, or None if the name is not a weekday
    """
    if not isinstance(day_name, str):
        return None
    return _DAY_OFFSETS.get(day_name.strip().lower())


def canonical_day(day_name: str) -> str:
    """Return the title-case weekday name, or the stripped input if unknown."""
    offset = day_offset(day_name)
    if offset is None:
        return day_name.strip()
    return WEEKDAYS[offset]


def to_local_date(value: object, tz: tzinfo | None = None) -> date | None:
    """Normalize a date-like value to a local calendar date.

    Date-only strings are taken as local dates with no timezone shift.
    Aware timestamps are converted to the plan timezone (or host local time)
    before the date is taken. Naive timestamps are already local.

    Args:
        value: date, datetime, ISO string, or anything else
        tz: Zone to normalize into (defaults to the configured plan timezone)

    Returns:
        Local calendar date, or None if the value cannot be interpreted
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.date()
        zone = tz if tz is not None else settings.tzinfo
        return value.astimezone(zone).date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            if _DATE_ONLY_RE.match(text):
                return date.fromisoformat(text)
            if text.endswith(("Z", "z")):
                text = text[:-1] + "+00:00"
            return to_local_date(datetime.fromisoformat(text), tz)
        except ValueError:
            logger.debug("Unparseable date string", value=value)
            return None

    return None


def local_today(tz: tzinfo | None = None) -> date:
    """Return today's date in the plan timezone (or host local time)."""
    zone = tz if tz is not None else settings.tzinfo
    return datetime.now(zone).date()


def week_monday(start_date: object) -> date | None:
    """Compute the Monday of the calendar week containing start_date.

    Sunday belongs to the week of the preceding Monday.

    Args:
        start_date: Plan start date (date, datetime or ISO string)

    Returns:
        Monday of week 1, or None if start_date is missing or invalid
    """
    start = to_local_date(start_date)
    if start is None:
        return None
    return start - timedelta(days=start.weekday())


def date_for_week(week_number: int, monday: date | None) -> date | None:
    """Return the Monday of the given 1-based plan week."""
    if monday is None:
        return None
    return monday + timedelta(days=7 * (week_number - 1))


def date_for_day(week_number: int, day_name: str, monday: date | None) -> date | None:
    """Return the calendar date of a weekday within a plan week.

    Args:
        week_number: 1-based plan week
        day_name: Weekday name (Monday..Sunday, any case)
        monday: Monday of week 1, as returned by week_monday

    Returns:
        Calendar date, or None if the anchor or day name is invalid
    """
    week_start = date_for_week(week_number, monday)
    offset = day_offset(day_name)
    if week_start is None or offset is None:
        return None
    return week_start + timedelta(days=offset)


def current_week_number(today: object, start_date: object, total_weeks: int | None) -> int:
    """Return the 1-based plan week that contains today.

    Before the plan starts the first week is shown rather than week 0.
    The result is clamped to [1, total_weeks].

    Args:
        today: Current date or timestamp (None = local today)
        start_date: Plan start date
        total_weeks: Plan length in weeks; falls back to the configured default if unusable

    Returns:
        Current week number
    """
    monday = week_monday(start_date)
    if monday is None:
        logger.debug("No usable plan start date, defaulting to week 1", start_date=start_date)
        return 1

    current = local_today() if today is None else to_local_date(today)
    if current is None or current < monday:
        return 1

    upper = total_weeks if isinstance(total_weeks, int) and total_weeks >= 1 else settings.default_total_weeks
    week_number = (current - monday).days // 7 + 1
    return max(1, min(week_number, upper))


def week_date_range(week_number: int, start_date: object) -> tuple[date, date] | None:
    """Return the (Monday, Sunday) dates of a plan week, or None without an anchor."""
    week_start = date_for_week(week_number, week_monday(start_date))
    if week_start is None:
        return None
    return week_start, week_start + timedelta(days=6)


def format_week_date_range(week_number: int, start_date: object) -> str | None:
    """Format a plan week as a short range, e.g. "Nov 24 - Nov 30"."""
    date_range = week_date_range(week_number, start_date)
    if date_range is None:
        return None
    start, end = date_range
    return f"{start:%b} {start.day} - {end:%b} {end.day}"
