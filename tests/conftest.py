"""Root conftest for all tests.

Shared plan builders and store fixtures.
"""

from collections.abc import Callable
from datetime import date

import pytest

from weekplan.config.settings import settings
from weekplan.persistence import InMemoryPlanStore
from weekplan.plans.types import DaySlot, Plan, Week, WorkoutPayload

BASE_DAYS = (
    ("Monday", "easy", "4-Mile Easy Run"),
    ("Wednesday", "tempo", "6-Mile Tempo Run"),
    ("Saturday", "longRun", "10 Mile Long Run"),
    ("Sunday", "rest", "Rest"),
)


@pytest.fixture(autouse=True)
def fixed_plan_timezone(monkeypatch):
    """Pin the plan timezone so tests never depend on the host zone."""
    monkeypatch.setattr(settings, "plan_timezone", "America/Chicago")


@pytest.fixture
def make_week() -> Callable[..., Week]:
    """Factory for a four-day base week whose workout descriptions carry a label."""

    def _make_week(
        week_number: int,
        *,
        label: str = "base",
        revision: int = 0,
        total_mileage: float | None = None,
    ) -> Week:
        return Week(
            week_number=week_number,
            phase="build",
            workouts=[
                DaySlot(
                    day=day,
                    type=workout_type,
                    workout=WorkoutPayload(name=name, description=f"{label} week {week_number}"),
                )
                for day, workout_type, name in BASE_DAYS
            ],
            total_mileage=total_mileage,
            revision=revision,
        )

    return _make_week


@pytest.fixture
def make_plan(make_week) -> Callable[..., Plan]:
    """Factory for a plan whose weeks are all built by make_week."""

    def _make_plan(
        total_weeks: int = 12,
        *,
        start_date: date | str | None = date(2025, 11, 25),
        revision: int = 0,
    ) -> Plan:
        return Plan(
            start_date=start_date,
            total_weeks=total_weeks,
            weeks=[make_week(n, revision=revision) for n in range(1, total_weeks + 1)],
            revision=revision,
        )

    return _make_plan


@pytest.fixture
def store() -> InMemoryPlanStore:
    return InMemoryPlanStore()
