"""Shape validation for generator output and stored weeks.

The generator is untrusted: only shape is checked (non-empty list, every
week parses and has workouts). Workout content is not judged here.
"""

from collections.abc import Sequence
from typing import Any

from loguru import logger
from pydantic import ValidationError

from weekplan.plans.errors import InvalidReplacementError
from weekplan.plans.types import Week


def is_usable_week(week: Week | None) -> bool:
    """Return True if the week exists and schedules at least one workout."""
    return week is not None and len(week.workouts) > 0


def validate_replacement_weeks(weeks: Sequence[Week | dict[str, Any] | None] | None) -> list[Week]:
    """Validate generated replacement weeks.

    Args:
        weeks: Weeks returned by the generator (models or raw dicts)

    Returns:
        Parsed weeks, in generator order

    Raises:
        InvalidReplacementError: If the list is empty or any week is missing, unparseable or has no workouts
    """
    if not weeks:
        raise InvalidReplacementError("Plan unchanged: generator returned no weeks")

    parsed: list[Week] = []
    for position, raw in enumerate(weeks, start=1):
        if raw is None:
            raise InvalidReplacementError(f"Plan unchanged: generated week {position} is empty")
        if isinstance(raw, Week):
            week = raw
        else:
            try:
                data = dict(raw)
                data.setdefault("week_number", position)
                week = Week.model_validate(data)
            except (TypeError, ValueError, ValidationError) as e:
                raise InvalidReplacementError(f"Plan unchanged: generated week {position} is malformed: {e}") from e
        if not is_usable_week(week):
            raise InvalidReplacementError(f"Plan unchanged: generated week {position} has no workouts")
        parsed.append(week)

    logger.debug("Replacement weeks validated", count=len(parsed))
    return parsed
