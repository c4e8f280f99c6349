"""Overlay resolution: base plan + modified overlay + completion overlay.

For each day the resolver walks slot indexes from 0:
- a live modified entry at the key is emitted and the walk continues;
- no entry at slot 0 emits the base DaySlot and ends the day;
- no entry at slot > 0 ends the day.

Entries written against an older week revision are stale and read as absent.
"""

from collections.abc import Mapping
from datetime import date

from weekplan.plans.calendar.anchor import date_for_day, week_monday
from weekplan.plans.overlay.keys import OverlayKey
from weekplan.plans.types import (
    CompletionRecord,
    DaySlot,
    ModifiedWorkout,
    Plan,
    ResolvedWorkout,
    Week,
    WorkoutSource,
)
from weekplan.plans.workout_types import normalize_workout_type

ModifiedOverlay = Mapping[OverlayKey, ModifiedWorkout]
CompletionOverlay = Mapping[OverlayKey, CompletionRecord]


def live_modified(modified: ModifiedOverlay, key: OverlayKey, week_revision: int) -> ModifiedWorkout | None:
    """Return the modified entry at key unless it is missing or stale."""
    entry = modified.get(key)
    if entry is None or entry.week_revision != week_revision:
        return None
    return entry


def live_completion(completions: CompletionOverlay, key: OverlayKey, week_revision: int) -> CompletionRecord | None:
    """Return the completion record at key unless it is missing or stale."""
    record = completions.get(key)
    if record is None or record.week_revision != week_revision:
        return None
    return record


def resolve_day(
    week_number: int,
    base_slot: DaySlot,
    modified: ModifiedOverlay,
    completions: CompletionOverlay,
    *,
    week_monday: date | None = None,
    week_revision: int = 0,
) -> list[ResolvedWorkout]:
    """Resolve the sessions shown for one day of a week.

    Args:
        week_number: 1-based week number
        base_slot: Base DaySlot generated for this day
        modified: Modified overlay snapshot
        completions: Completion overlay snapshot
        week_monday: Monday of week 1, used to annotate calendar dates
        week_revision: Revision of the week; overlay entries from other revisions are ignored

    Returns:
        One or more ResolvedWorkouts in slot order
    """
    sessions: list[tuple[int, WorkoutSource, DaySlot]] = []
    slot_index = 0
    while True:
        key = OverlayKey(week_number=week_number, day=base_slot.day, slot_index=slot_index)
        entry = live_modified(modified, key, week_revision)
        if entry is not None:
            sessions.append((slot_index, "modified", entry))
            slot_index += 1
            continue
        if slot_index == 0:
            sessions.append((0, "base", base_slot))
        break

    scheduled_date = date_for_day(week_number, base_slot.day, week_monday)
    slot_count = len(sessions)

    resolved = []
    for index, source, slot in sessions:
        key = OverlayKey(week_number=week_number, day=base_slot.day, slot_index=index)
        resolved.append(
            ResolvedWorkout(
                week_number=week_number,
                day=base_slot.day,
                slot_index=index,
                slot_count=slot_count,
                source=source,
                slot=slot,
                workout_type=normalize_workout_type(slot.type, slot.workout.name, slot.focus),
                completion=live_completion(completions, key, week_revision),
                scheduled_date=scheduled_date,
            )
        )
    return resolved


def resolve_week(
    week: Week | None,
    modified: ModifiedOverlay,
    completions: CompletionOverlay,
    *,
    week_monday: date | None = None,
) -> list[list[ResolvedWorkout]]:
    """Resolve every scheduled day of a week, in base order.

    A day listed twice in the base week is resolved once. A missing or
    malformed week resolves to no days.
    """
    if week is None:
        return []

    days: list[list[ResolvedWorkout]] = []
    seen: set[str] = set()
    for base_slot in week.workouts:
        if base_slot.day in seen:
            continue
        seen.add(base_slot.day)
        days.append(
            resolve_day(
                week.week_number,
                base_slot,
                modified,
                completions,
                week_monday=week_monday,
                week_revision=week.revision,
            )
        )
    return days


def resolve_plan_week(
    plan: Plan,
    week_number: int,
    modified: ModifiedOverlay,
    completions: CompletionOverlay,
) -> list[list[ResolvedWorkout]]:
    """Resolve a week of a plan, annotating dates from the plan's start date."""
    return resolve_week(
        plan.week(week_number),
        modified,
        completions,
        week_monday=week_monday(plan.start_date),
    )
