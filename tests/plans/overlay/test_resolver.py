"""Tests for overlay resolution.

Tests that:
- A day with no overlay resolves to its base slot, not completed
- Modified entries replace the base and chain through added sessions
- The walk stops at the first gap
- Completion records annotate resolved sessions by key
- Entries written against an older week revision are ignored
"""

import datetime as dt

from weekplan.plans.overlay import OverlayKey, resolve_day, resolve_plan_week, resolve_week
from weekplan.plans.types import CompletionRecord, DaySlot, ModifiedWorkout, WorkoutPayload
from weekplan.plans.workout_types import WorkoutType

BASE = DaySlot(day="Tuesday", type="tempo", workout=WorkoutPayload(name="6-Mile Tempo Run"))


def _key(slot_index: int, week_number: int = 3, day: str = "Tuesday") -> OverlayKey:
    return OverlayKey(week_number=week_number, day=day, slot_index=slot_index)


def _modified(name: str, workout_type: str = "easy", week_revision: int = 0) -> ModifiedWorkout:
    return ModifiedWorkout(
        day="Tuesday",
        type=workout_type,
        workout=WorkoutPayload(name=name),
        week_revision=week_revision,
    )


def test_base_day_without_overlay():
    """Test that a day with no overlay resolves to the base slot, not completed."""
    resolved = resolve_day(3, BASE, {}, {})

    assert len(resolved) == 1
    workout = resolved[0]
    assert workout.source == "base"
    assert workout.slot == BASE
    assert workout.slot_index == 0
    assert workout.completed is False
    assert workout.completion is None
    assert workout.workout_type == WorkoutType.TEMPO


def test_modified_primary_replaces_base():
    """Test that a slot 0 entry replaces the base workout."""
    replacement = _modified("30 min Elliptical", "elliptical")
    resolved = resolve_day(3, BASE, {_key(0): replacement}, {})

    assert [w.source for w in resolved] == ["modified"]
    assert resolved[0].slot == replacement
    assert resolved[0].workout_type == WorkoutType.ELLIPTICAL


def test_added_sessions_follow_primary():
    """Test that contiguous entries resolve in slot order with a shared count."""
    modified = {
        _key(0): _modified("6-Mile Tempo Run", "tempo"),
        _key(1): _modified("3 mi shakeout"),
        _key(2): _modified("Bike 15 miles", "bike"),
    }
    resolved = resolve_day(3, BASE, modified, {})

    assert [w.slot_index for w in resolved] == [0, 1, 2]
    assert all(w.slot_count == 3 for w in resolved)
    assert [w.label for w in resolved] == ["Workout 1/3", "Workout 2/3", "Workout 3/3"]


def test_walk_stops_at_first_gap():
    """Test that sessions after a missing slot index are not shown."""
    modified = {
        _key(0): _modified("Easy Run"),
        _key(2): _modified("Orphaned session"),
    }
    resolved = resolve_day(3, BASE, modified, {})

    assert [w.slot_index for w in resolved] == [0]


def test_added_session_without_primary_entry_is_unreachable():
    """Test that the base slot ends the day when slot 0 has no entry."""
    resolved = resolve_day(3, BASE, {_key(1): _modified("Extra")}, {})

    assert [w.source for w in resolved] == ["base"]


def test_completion_annotates_by_key():
    """Test that completion records attach to the session at the same key."""
    record = CompletionRecord(completed=True, actual_distance=6.2)
    resolved = resolve_day(3, BASE, {}, {_key(0): record})

    assert resolved[0].completed is True
    assert resolved[0].completion.actual_distance == 6.2


def test_other_week_entries_are_ignored():
    """Test that entries for another week or day never leak into a day."""
    modified = {
        _key(0, week_number=4): _modified("Other week"),
        _key(0, day="Wednesday"): _modified("Other day"),
    }
    resolved = resolve_day(3, BASE, modified, {})

    assert resolved[0].source == "base"


def test_stale_entries_read_as_absent():
    """Test that entries stamped with an older week revision are ignored."""
    modified = {_key(0): _modified("Old edit", week_revision=0)}
    completions = {_key(0): CompletionRecord(completed=True, week_revision=0)}

    resolved = resolve_day(3, BASE, modified, completions, week_revision=1)

    assert resolved[0].source == "base"
    assert resolved[0].completed is False


def test_scheduled_date_from_anchor():
    """Test that resolved sessions carry their calendar date."""
    resolved = resolve_day(3, BASE, {}, {}, week_monday=dt.date(2025, 11, 24))

    assert resolved[0].scheduled_date == dt.date(2025, 12, 9)


def test_resolve_week_covers_each_day_once(make_week):
    """Test that a week resolves each scheduled day once, in base order."""
    week = make_week(2)
    week.workouts.append(DaySlot(day="monday", type="easy"))

    days = resolve_week(week, {}, {})

    assert [day[0].day for day in days] == ["Monday", "Wednesday", "Saturday", "Sunday"]


def test_resolve_week_of_missing_week():
    """Test that a missing week resolves to no days."""
    assert resolve_week(None, {}, {}) == []


def test_resolve_plan_week_uses_week_revision(make_plan):
    """Test that plan resolution applies the week's revision and anchor."""
    plan = make_plan(4)
    plan.weeks[1] = plan.weeks[1].model_copy(update={"revision": 2})
    key = OverlayKey(week_number=2, day="Monday", slot_index=0)
    live = ModifiedWorkout(day="Monday", type="bike", workout=WorkoutPayload(name="Bike 12 miles"), week_revision=2)

    days = resolve_plan_week(plan, 2, {key: live}, {})

    monday = days[0][0]
    assert monday.source == "modified"
    assert monday.scheduled_date == dt.date(2025, 12, 1)
