"""Cross-modality equivalency constants - single source of truth.

All distances are miles. Bike and elliptical miles convert to run-equivalent
miles at fixed ratios; RunEQ miles are already run-equivalent.
"""

from weekplan.plans.workout_types import WorkoutType

BIKE_MILES_PER_RUN_MILE = 3.0
ELLIPTICAL_MILES_PER_RUN_MILE = 2.0

# Fallback distance when a run-modality workout carries no parseable distance
DEFAULT_MILES_BY_TYPE: dict[WorkoutType, float] = {
    WorkoutType.REST: 0.0,
    WorkoutType.LONG_RUN: 10.0,
    WorkoutType.TEMPO: 6.0,
    WorkoutType.INTERVALS: 5.0,
    WorkoutType.EASY: 4.0,
    WorkoutType.HILLS: 5.0,
}
DEFAULT_MILES = 4.0

ROUNDING_DIGITS = 1
