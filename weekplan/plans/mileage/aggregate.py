"""Weekly mileage aggregation under the cross-modality equivalency model.

equivalent = bike / 3 + elliptical / 2 + pre-equivalenced (RunEQ)
total      = run + equivalent, unless the week carries an authoritative total

Sums are kept at full precision and rounded once, at the end.
"""

import math
from collections.abc import Iterable, Mapping
from datetime import date, datetime, timedelta, timezone

from pydantic import BaseModel, ConfigDict

from weekplan.config.settings import settings
from weekplan.plans.mileage.constants import (
    BIKE_MILES_PER_RUN_MILE,
    ELLIPTICAL_MILES_PER_RUN_MILE,
    ROUNDING_DIGITS,
)
from weekplan.plans.mileage.extraction import extract_distance
from weekplan.plans.overlay.keys import OverlayKey
from weekplan.plans.overlay.resolver import CompletionOverlay, ModifiedOverlay, resolve_week
from weekplan.plans.types import CompletionRecord, ResolvedWorkout, Week


class WeekMileage(BaseModel):
    """Weekly mileage breakdown, rounded to one decimal.

    Attributes:
        run_miles: Running miles
        bike_miles: Raw bike miles (before conversion)
        elliptical_miles: Raw elliptical miles (before conversion)
        pre_equivalenced_miles: RunEQ miles (already run-equivalent)
        equivalent_miles: Run-equivalent miles from all cross-training
        total_miles: Displayed weekly total
        total_is_authoritative: True when total_miles came from the generator, not this breakdown
    """

    model_config = ConfigDict(frozen=True)

    run_miles: float = 0.0
    bike_miles: float = 0.0
    elliptical_miles: float = 0.0
    pre_equivalenced_miles: float = 0.0
    equivalent_miles: float = 0.0
    total_miles: float = 0.0
    total_is_authoritative: bool = False


class RollingDistance(BaseModel):
    """Actual distance logged on completed workouts, rounded to one decimal."""

    model_config = ConfigDict(frozen=True)

    last_7_days: float = 0.0
    last_30_days: float = 0.0
    all_time: float = 0.0


def _round(value: float) -> float:
    return round(value, ROUNDING_DIGITS)


def _flatten(resolved_days: Iterable[Iterable[ResolvedWorkout] | ResolvedWorkout]) -> list[ResolvedWorkout]:
    workouts: list[ResolvedWorkout] = []
    for day in resolved_days:
        if isinstance(day, ResolvedWorkout):
            workouts.append(day)
        else:
            workouts.extend(day)
    return workouts


def week_mileage(
    resolved_days: Iterable[Iterable[ResolvedWorkout] | ResolvedWorkout],
    *,
    authoritative_total: float | None = None,
) -> WeekMileage:
    """Aggregate a resolved week into a mileage breakdown.

    Args:
        resolved_days: Resolved workouts per day (as returned by resolve_week); flat lists are accepted
        authoritative_total: Generator-supplied weekly total; when usable it is displayed
            as total_miles and the breakdown is only a composition hint

    Returns:
        WeekMileage
    """
    run = bike = elliptical = pre_equivalenced = 0.0
    for workout in _flatten(resolved_days):
        estimate = extract_distance(workout)
        run += estimate.run_miles
        bike += estimate.bike_miles
        elliptical += estimate.elliptical_miles
        pre_equivalenced += estimate.pre_equivalenced_miles

    equivalent = bike / BIKE_MILES_PER_RUN_MILE + elliptical / ELLIPTICAL_MILES_PER_RUN_MILE + pre_equivalenced

    has_authoritative = (
        authoritative_total is not None and math.isfinite(authoritative_total) and authoritative_total >= 0
    )
    total = authoritative_total if has_authoritative else run + equivalent

    return WeekMileage(
        run_miles=_round(run),
        bike_miles=_round(bike),
        elliptical_miles=_round(elliptical),
        pre_equivalenced_miles=_round(pre_equivalenced),
        equivalent_miles=_round(equivalent),
        total_miles=_round(total),
        total_is_authoritative=has_authoritative,
    )


def week_mileage_for(
    week: Week | None,
    modified: ModifiedOverlay,
    completions: CompletionOverlay,
    *,
    week_monday: date | None = None,
) -> WeekMileage:
    """Resolve a week against its overlays and aggregate its mileage."""
    if week is None:
        return WeekMileage()
    days = resolve_week(week, modified, completions, week_monday=week_monday)
    return week_mileage(days, authoritative_total=week.total_mileage)


def _as_aware(moment: datetime) -> datetime:
    if moment.tzinfo is not None:
        return moment
    # Naive timestamps are wall-clock time in the plan timezone
    zone = settings.tzinfo
    return moment.replace(tzinfo=zone) if zone is not None else moment.astimezone()


def rolling_distance(
    completions: Mapping[OverlayKey, CompletionRecord],
    *,
    now: datetime | None = None,
) -> RollingDistance:
    """Sum actual distance over completed records for 7-day, 30-day and all-time windows.

    Records without a completion timestamp count toward all-time only.
    """
    current = _as_aware(now) if now is not None else datetime.now(timezone.utc)
    week_ago = current - timedelta(days=7)
    month_ago = current - timedelta(days=30)

    last_7 = last_30 = all_time = 0.0
    for record in completions.values():
        if not record.completed or not record.actual_distance:
            continue
        distance = record.actual_distance
        all_time += distance
        if record.completed_at is None:
            continue
        completed_at = _as_aware(record.completed_at)
        if completed_at >= week_ago:
            last_7 += distance
        if completed_at >= month_ago:
            last_30 += distance

    return RollingDistance(last_7_days=_round(last_7), last_30_days=_round(last_30), all_time=_round(all_time))
