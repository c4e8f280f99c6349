"""Workout type normalization.

Raw workout "type" tags arrive from several generations of plan content
(library categories, generator output, user replacements). They are
normalized once, at resolution time, into the closed WorkoutType set so
downstream logic never re-derives a type from free text.
"""

from enum import StrEnum


class WorkoutType(StrEnum):
    TEMPO = "tempo"
    INTERVALS = "intervals"
    HILLS = "hills"
    LONG_RUN = "longRun"
    EASY = "easy"
    REST = "rest"
    REST_OR_XT = "rest_or_xt"
    BIKE = "bike"
    ELLIPTICAL = "elliptical"
    BRICK = "brick"
    BRICK_LONG_RUN = "brickLongRun"
    CROSS_TRAINING = "crossTraining"


_DIRECT: dict[str, WorkoutType] = {member.value.lower(): member for member in WorkoutType}
_DIRECT.update(
    {
        "long_run": WorkoutType.LONG_RUN,
        "long-run": WorkoutType.LONG_RUN,
        "brick_long_run": WorkoutType.BRICK_LONG_RUN,
        "cross-training": WorkoutType.CROSS_TRAINING,
        "cross_training": WorkoutType.CROSS_TRAINING,
        "xt": WorkoutType.CROSS_TRAINING,
    }
)

BRICK_TYPES = frozenset({WorkoutType.BRICK, WorkoutType.BRICK_LONG_RUN})


def normalize_workout_type(raw_type: str | None, name: str | None = None, focus: str | None = None) -> WorkoutType:
    """Map a raw type tag (plus name/focus hints) to a WorkoutType.

    Args:
        raw_type: Type tag as stored on the slot
        name: Display name of the workout
        focus: Optional focus label

    Returns:
        Normalized workout type; unknown tags fall back to EASY
    """
    type_lower = (raw_type or "").strip().lower()
    name_lower = (name or "").lower()
    focus_lower = (focus or "").lower()

    if type_lower in _DIRECT:
        return _DIRECT[type_lower]

    if "brick" in type_lower or "brick" in name_lower:
        if "long" in type_lower or "long run" in name_lower:
            return WorkoutType.BRICK_LONG_RUN
        return WorkoutType.BRICK

    if (
        any(token in type_lower for token in ("vo2", "speed", "interval"))
        or any(token in name_lower for token in ("interval", "800m", "400m", "repeat"))
        or "vo2" in focus_lower
    ):
        return WorkoutType.INTERVALS

    if (
        any(token in type_lower for token in ("hill", "power", "strength"))
        or "hill" in name_lower
        or "strength" in focus_lower
    ):
        return WorkoutType.HILLS

    if (
        "tempo" in type_lower
        or "threshold" in type_lower
        or any(token in name_lower for token in ("tempo", "threshold", "cruise"))
        or "threshold" in focus_lower
    ):
        return WorkoutType.TEMPO

    if (
        any(token in type_lower for token in ("long", "progressive", "mixed"))
        or "long run" in name_lower
        or "endurance" in focus_lower
    ):
        return WorkoutType.LONG_RUN

    if "bike" in type_lower or "cycl" in type_lower:
        return WorkoutType.BIKE
    if "ellipt" in type_lower:
        return WorkoutType.ELLIPTICAL
    if "rest" in type_lower:
        return WorkoutType.REST
    if "cross" in type_lower:
        return WorkoutType.CROSS_TRAINING

    return WorkoutType.EASY
