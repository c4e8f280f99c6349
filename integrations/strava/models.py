from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel


class StravaActivity(BaseModel):
    """Subset of a Strava activity needed to record a completion.

    Units are Strava's: meters, seconds, beats per minute.
    """

    id: int
    name: str = ""
    type: str
    start_date: datetime
    moving_time: int = 0
    elapsed_time: int = 0
    distance: float = 0.0
    total_elevation_gain: float = 0.0
    average_heartrate: float | None = None
    max_heartrate: float | None = None
    average_cadence: float | None = None

    raw: dict[str, Any] | None = None
