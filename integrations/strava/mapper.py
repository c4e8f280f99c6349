from __future__ import annotations

from integrations.strava.models import StravaActivity
from weekplan.plans.types import CompletionRecord

METERS_PER_MILE = 1609.34
FEET_PER_METER = 3.28084
RUN_ACTIVITY_TYPES = frozenset({"Run", "VirtualRun"})
ACTIVITY_URL = "https://www.strava.com/activities/{id}"


def _pace_per_mile(moving_time: int, miles: float) -> str | None:
    """Format pace as m:ss/mi, or None when it cannot be computed."""
    if miles <= 0 or moving_time <= 0:
        return None
    seconds_per_mile = moving_time / miles
    minutes, seconds = divmod(round(seconds_per_mile), 60)
    return f"{minutes}:{seconds:02d}/mi"


def map_strava_activity_to_completion(activity: StravaActivity, *, week_revision: int = 0) -> CompletionRecord:
    """Map a Strava activity to a completion record.

    Args:
        activity: Strava activity from API
        week_revision: Revision of the plan week the activity completes

    Returns:
        CompletionRecord marked completed, with distance in miles
    """
    miles = round(activity.distance / METERS_PER_MILE, 2)
    pace = _pace_per_mile(activity.moving_time, miles) if activity.type in RUN_ACTIVITY_TYPES else None

    return CompletionRecord(
        completed=True,
        completed_at=activity.start_date,
        actual_distance=miles,
        notes=f"Synced from Strava: {activity.name}" if activity.name else "Synced from Strava",
        duration_minutes=round(activity.moving_time / 60),
        pace=pace,
        avg_heart_rate=round(activity.average_heartrate) if activity.average_heartrate is not None else None,
        max_heart_rate=round(activity.max_heartrate) if activity.max_heartrate is not None else None,
        cadence=round(activity.average_cadence) if activity.average_cadence is not None else None,
        elevation_gain_feet=round(activity.total_elevation_gain * FEET_PER_METER),
        external_activity_id=str(activity.id),
        external_activity_url=ACTIVITY_URL.format(id=activity.id),
        week_revision=week_revision,
    )
