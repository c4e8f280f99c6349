"""Per-workout distance extraction.

Legacy plan content often carries its distance only in display text, so
extraction is a priority cascade; the first rule that matches wins:

1. explicit numeric ``distance`` field (> 0)
2. "<N> RunEQ Mile(s)" in the name: already run-equivalent, no conversion
3. brick sessions: run and bike legs parsed from the description
4. bike/cycling sessions: first number in the name, raw bike miles
5. elliptical sessions: first number in the name, raw elliptical miles
6. run: "<N>-Mile" / "<N> mile(s)" anywhere, or "<N> mi" at the start
7. default miles by workout type

Brick sessions are routed by their normalized type ahead of rule 2: their
names usually carry a RunEQ bike leg, and the leg parser already sends
RunEQ legs to the pre-equivalenced bucket.
"""

import math
import re
from typing import Literal

from loguru import logger
from pydantic import BaseModel, ConfigDict

from weekplan.plans.mileage.constants import DEFAULT_MILES, DEFAULT_MILES_BY_TYPE
from weekplan.plans.types import DaySlot, ResolvedWorkout
from weekplan.plans.workout_types import BRICK_TYPES, WorkoutType, normalize_workout_type

Modality = Literal["run", "bike", "elliptical", "pre_equivalenced", "mixed"]
ExtractionRule = Literal[
    "explicit_distance",
    "runeq_name",
    "brick_description",
    "bike_name",
    "elliptical_name",
    "run_name",
    "type_default",
]

_NUMBER = r"(\d+(?:\.\d+)?)"

RUNEQ_RE = re.compile(_NUMBER + r"\s*RunEQ\s*Miles?\b", re.IGNORECASE)
BIKE_NAME_RE = re.compile(r"bike|cycling", re.IGNORECASE)
ELLIPTICAL_NAME_RE = re.compile(r"elliptical|elliptigo", re.IGNORECASE)
FIRST_NUMBER_RE = re.compile(_NUMBER)
# "mile" must be followed by a non-letter so "400m" / "1000m" / "5km" never match
RUN_MILES_RE = re.compile(_NUMBER + r"\s*-?\s*miles?\b", re.IGNORECASE)
RUN_MI_PREFIX_RE = re.compile(r"^\s*" + _NUMBER + r"\s*mi\b", re.IGNORECASE)

_LEG_SPLIT_RE = re.compile(r"\s*(?:\+|,|;|&|\bthen\b|\bfollowed by\b|\band\b)\s*", re.IGNORECASE)
_LEG_DISTANCE_RE = re.compile(_NUMBER + r"\s*-?\s*(RunEQ\s*)?(?:miles?|mi)\b", re.IGNORECASE)


class DistanceEstimate(BaseModel):
    """Distance of one workout split by modality bucket (raw, unrounded miles)."""

    model_config = ConfigDict(frozen=True)

    rule: ExtractionRule
    run_miles: float = 0.0
    bike_miles: float = 0.0
    elliptical_miles: float = 0.0
    pre_equivalenced_miles: float = 0.0

    @property
    def value(self) -> float:
        return self.run_miles + self.bike_miles + self.elliptical_miles + self.pre_equivalenced_miles

    @property
    def modality(self) -> Modality:
        buckets: dict[Modality, float] = {
            "run": self.run_miles,
            "bike": self.bike_miles,
            "elliptical": self.elliptical_miles,
            "pre_equivalenced": self.pre_equivalenced_miles,
        }
        non_zero = [name for name, miles in buckets.items() if miles > 0]
        if len(non_zero) > 1:
            return "mixed"
        if non_zero:
            return non_zero[0]
        return "run"


def _first_number(pattern: re.Pattern[str], text: str) -> float | None:
    match = pattern.search(text)
    return float(match.group(1)) if match else None


def _parse_brick_legs(text: str) -> DistanceEstimate | None:
    run = bike = elliptical = pre_equivalenced = 0.0
    found = False
    for leg in _LEG_SPLIT_RE.split(text):
        match = _LEG_DISTANCE_RE.search(leg)
        if match is None:
            continue
        miles = float(match.group(1))
        leg_lower = leg.lower()
        if match.group(2) or "runeq" in leg_lower:
            pre_equivalenced += miles
        elif "ellipt" in leg_lower:
            elliptical += miles
        elif any(token in leg_lower for token in ("bike", "cycl", "ride")):
            bike += miles
        elif "run" in leg_lower:
            run += miles
        else:
            continue
        found = True

    if not found:
        return None
    return DistanceEstimate(
        rule="brick_description",
        run_miles=run,
        bike_miles=bike,
        elliptical_miles=elliptical,
        pre_equivalenced_miles=pre_equivalenced,
    )


def _explicit_distance(distance: float, workout_type: WorkoutType, name: str) -> DistanceEstimate:
    # RunEQ-labeled distances are already run-equivalent whatever the type tag says
    if RUNEQ_RE.search(name):
        return DistanceEstimate(rule="explicit_distance", pre_equivalenced_miles=distance)
    if workout_type == WorkoutType.BIKE:
        return DistanceEstimate(rule="explicit_distance", bike_miles=distance)
    if workout_type == WorkoutType.ELLIPTICAL:
        return DistanceEstimate(rule="explicit_distance", elliptical_miles=distance)
    return DistanceEstimate(rule="explicit_distance", run_miles=distance)


def extract_distance(workout: DaySlot | ResolvedWorkout) -> DistanceEstimate:
    """Extract or estimate the distance of one workout.

    Never raises: unparseable content falls back to the type default.

    Args:
        workout: A resolved workout, or a bare DaySlot (its type is normalized here)

    Returns:
        DistanceEstimate with raw miles per modality and the rule that produced it
    """
    if isinstance(workout, ResolvedWorkout):
        slot = workout.slot
        workout_type = workout.workout_type
    else:
        slot = workout
        workout_type = normalize_workout_type(slot.type, slot.workout.name, slot.focus)

    name = slot.workout.name or ""
    description = slot.workout.description or ""

    distance = slot.distance
    if distance is not None and math.isfinite(distance) and distance > 0:
        return _explicit_distance(distance, workout_type, name)

    if workout_type in BRICK_TYPES:
        legs = _parse_brick_legs(description) or _parse_brick_legs(name)
        if legs is not None:
            return legs

    runeq = _first_number(RUNEQ_RE, name)
    if runeq is not None:
        return DistanceEstimate(rule="runeq_name", pre_equivalenced_miles=runeq)

    if workout_type == WorkoutType.BIKE or BIKE_NAME_RE.search(name):
        return DistanceEstimate(rule="bike_name", bike_miles=_first_number(FIRST_NUMBER_RE, name) or 0.0)

    if workout_type == WorkoutType.ELLIPTICAL or ELLIPTICAL_NAME_RE.search(name):
        return DistanceEstimate(rule="elliptical_name", elliptical_miles=_first_number(FIRST_NUMBER_RE, name) or 0.0)

    run = _first_number(RUN_MILES_RE, name)
    if run is None:
        run = _first_number(RUN_MI_PREFIX_RE, name)
    if run is not None:
        return DistanceEstimate(rule="run_name", run_miles=run)

    default = DEFAULT_MILES_BY_TYPE.get(workout_type, DEFAULT_MILES)
    logger.debug("Using default distance", workout_type=str(workout_type), name=name, miles=default)
    return DistanceEstimate(rule="type_default", run_miles=default)
