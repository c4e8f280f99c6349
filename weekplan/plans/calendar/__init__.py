"""Calendar anchoring: week numbers to calendar dates."""

from weekplan.plans.calendar.anchor import (
    WEEKDAYS,
    canonical_day,
    current_week_number,
    date_for_day,
    date_for_week,
    day_offset,
    format_week_date_range,
    local_today,
    to_local_date,
    week_date_range,
    week_monday,
)

__all__ = [
    "WEEKDAYS",
    "canonical_day",
    "current_week_number",
    "date_for_day",
    "date_for_week",
    "day_offset",
    "format_week_date_range",
    "local_today",
    "to_local_date",
    "week_date_range",
    "week_monday",
]
