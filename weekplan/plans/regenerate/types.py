"""Domain types for plan regeneration.

Regeneration replaces the weeks from the current week on with freshly
generated ones, without touching history or overlays.
"""

from collections.abc import Sequence
from typing import Any, Protocol

from pydantic import BaseModel

from weekplan.plans.types import Plan, Week


class WeekGenerator(Protocol):
    """External plan generator.

    Returns replacement weeks starting at from_week_number. Output is
    untrusted and is shape-checked before merging.
    """

    async def generate_weeks(
        self,
        profile: dict[str, Any],
        from_week_number: int,
    ) -> Sequence[Week | dict[str, Any] | None]: ...


class RegenerationResult(BaseModel):
    """Outcome of a successful regeneration.

    Attributes:
        plan: Merged plan as persisted
        current_week_number: First regenerated week
        preserved_weeks: Number of history weeks copied from the previous plan
        replaced_weeks: Number of weeks taken from the generator
    """

    plan: Plan
    current_week_number: int
    preserved_weeks: int
    replaced_weeks: int
