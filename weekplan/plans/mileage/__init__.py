"""Mileage extraction and cross-modality weekly aggregation."""

from weekplan.plans.mileage.aggregate import (
    RollingDistance,
    WeekMileage,
    rolling_distance,
    week_mileage,
    week_mileage_for,
)
from weekplan.plans.mileage.extraction import DistanceEstimate, extract_distance

__all__ = [
    "DistanceEstimate",
    "RollingDistance",
    "WeekMileage",
    "extract_distance",
    "rolling_distance",
    "week_mileage",
    "week_mileage_for",
]
