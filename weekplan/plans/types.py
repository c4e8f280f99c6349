"""Plan, week and overlay data model.

The Plan is the authoritative schedule skeleton. ModifiedWorkout and
CompletionRecord are sparse overlay values keyed by OverlayKey and
persisted independently of the Plan. ResolvedWorkout is the read-only
materialization of all three layers and is never persisted.

Resolution order is always base -> modified -> completion-annotated.
"""

from datetime import date, datetime
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from weekplan.plans.calendar.anchor import canonical_day, to_local_date
from weekplan.plans.workout_types import WorkoutType


class Phase(StrEnum):
    PREPARATION = "preparation"
    BASE = "base"
    BUILD = "build"
    PEAK = "peak"
    TAPER = "taper"
    RECOVERY = "recovery"


class WorkoutPayload(BaseModel):
    """Display payload of a workout.

    Attributes:
        name: Display name (may carry distance text, e.g. "5-Mile Easy Run")
        description: Longer description (brick sessions carry both legs here)
    """

    model_config = ConfigDict(extra="allow")

    name: str = ""
    description: str = ""


class DaySlot(BaseModel):
    """Base (generated) workout for one day of a week.

    Attributes:
        day: Weekday name (Monday..Sunday)
        type: Raw workout category tag as produced by the generator
        workout: Display payload
        distance: Authoritative distance in miles, if present
        focus: Optional focus label
    """

    model_config = ConfigDict(extra="allow")

    day: str
    type: str = "easy"
    workout: WorkoutPayload = Field(default_factory=WorkoutPayload)
    distance: float | None = None
    focus: str | None = None

    @field_validator("day")
    @classmethod
    def normalize_day(cls, value: str) -> str:
        return canonical_day(value)

    @field_validator("distance", mode="before")
    @classmethod
    def coerce_distance(cls, value: Any) -> float | None:
        # Legacy content stores distance as text ("5.00") or as an empty string
        if value is None or value == "":
            return None
        try:
            return float(value)
        except (TypeError, ValueError):
            return None


class ModifiedWorkout(DaySlot):
    """User replacement or added session for one overlay key.

    Attributes:
        week_revision: Revision of the week this edit was written against
    """

    week_revision: int = 0


class Week(BaseModel):
    """One week of a plan.

    Attributes:
        week_number: 1-based week number
        phase: Training phase
        workouts: One base DaySlot per scheduled day
        total_mileage: Authoritative weekly total supplied by the generator, if any
        revision: Plan revision that produced this week's content
    """

    model_config = ConfigDict(extra="allow")

    week_number: int = Field(ge=1)
    phase: Phase = Phase.BASE
    workouts: list[DaySlot] = Field(default_factory=list)
    total_mileage: float | None = None
    revision: int = 0

    @field_validator("phase", mode="before")
    @classmethod
    def normalize_phase(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value


class Plan(BaseModel):
    """Root aggregate: a multi-week training plan.

    Attributes:
        start_date: User-selected start date (may fall mid-week); None if missing or invalid
        total_weeks: Plan length in weeks
        weeks: Weeks by index (index i is week i + 1); entries may be None in damaged documents
        revision: Incremented by every regeneration merge
        backup_weeks: Snapshot of weeks taken before a temporary plan change, if any
    """

    model_config = ConfigDict(extra="allow")

    start_date: date | None = None
    total_weeks: int = Field(ge=1)
    weeks: list[Week | None] = Field(default_factory=list)
    revision: int = 0
    backup_weeks: list[Week | None] | None = None

    @field_validator("start_date", mode="before")
    @classmethod
    def parse_start_date(cls, value: Any) -> date | None:
        return to_local_date(value)

    def week(self, week_number: int) -> Week | None:
        """Return the week with the given 1-based number, or None."""
        if 1 <= week_number <= len(self.weeks):
            return self.weeks[week_number - 1]
        return None


class CompletionRecord(BaseModel):
    """Completion state for one overlay key.

    Manual entry and imported activities populate the same fields.
    """

    model_config = ConfigDict(extra="allow")

    completed: bool = False
    completed_at: datetime | None = None
    actual_distance: float | None = None
    notes: str | None = None

    duration_minutes: int | None = None
    pace: str | None = None
    avg_heart_rate: float | None = None
    max_heart_rate: float | None = None
    cadence: float | None = None
    elevation_gain_feet: int | None = None
    external_activity_id: str | None = None
    external_activity_url: str | None = None

    week_revision: int = 0


WorkoutSource = Literal["base", "modified"]


class ResolvedWorkout(BaseModel):
    """UI-facing materialization of one slot.

    Attributes:
        week_number: 1-based week number
        day: Weekday name
        slot_index: 0 for the primary slot, >= 1 for added sessions
        slot_count: Number of sessions resolved for this day
        source: Whether the payload is the base slot or a modified overlay entry
        slot: Base or modified payload
        workout_type: Normalized workout type
        completion: Completion record at the same key, if any
        scheduled_date: Calendar date of the day, or None without a usable anchor
    """

    model_config = ConfigDict(frozen=True)

    week_number: int
    day: str
    slot_index: int
    slot_count: int = 1
    source: WorkoutSource
    slot: DaySlot
    workout_type: WorkoutType
    completion: CompletionRecord | None = None
    scheduled_date: date | None = None

    @property
    def completed(self) -> bool:
        return bool(self.completion and self.completion.completed)

    @property
    def label(self) -> str:
        """Session label, e.g. "Workout 2/2" on two-a-day days."""
        if self.slot_count <= 1:
            return self.slot.workout.name
        return f"Workout {self.slot_index + 1}/{self.slot_count}"
