"""Tests for the regeneration merge.

Tests that merging:
- Never touches weeks before the current week
- Re-indexes replacement weeks from the current week
- Repairs malformed history weeks from the current plan copy
- Fails closed on corrupted history or short replacements
- Stamps replaced weeks with a new revision
"""

import pytest

from weekplan.plans.errors import (
    CorruptedBackupError,
    InvalidReplacementError,
    MergeError,
    ReplacementLengthError,
)
from weekplan.plans.reconcile import merge_plans
from weekplan.plans.types import Week


def _replacement(make_week, count: int) -> list[Week]:
    # Generators number their own output from 1
    return [make_week(n, label="regenerated") for n in range(1, count + 1)]


def test_merge_preserves_history_and_replaces_future(make_plan, make_week):
    """Test that weeks 1-4 are untouched and weeks 5-12 come from the replacement."""
    existing = make_plan(12)
    before = existing.model_dump_json()

    merged = merge_plans(existing, _replacement(make_week, 8), 5)

    assert merged.total_weeks == 12
    assert len(merged.weeks) == 12
    for index in range(4):
        assert merged.weeks[index].model_dump_json() == existing.weeks[index].model_dump_json()
    for index in range(4, 12):
        week = merged.weeks[index]
        assert week.week_number == index + 1
        assert week.workouts[0].workout.description.startswith("regenerated")
    assert existing.model_dump_json() == before


def test_merge_ignores_replacement_content_for_history(make_plan, make_week):
    """Test that a generator returning a full plan still cannot overwrite history."""
    existing = make_plan(6)

    merged = merge_plans(existing, _replacement(make_week, 3), 4)

    assert [w.workouts[0].workout.description for w in merged.weeks] == [
        "base week 1",
        "base week 2",
        "base week 3",
        "regenerated week 1",
        "regenerated week 2",
        "regenerated week 3",
    ]


def test_merge_stamps_new_revision(make_plan, make_week):
    """Test that replaced weeks carry the new plan revision and history keeps its own."""
    existing = make_plan(6, revision=1)

    merged = merge_plans(existing, _replacement(make_week, 3), 4)

    assert merged.revision == 2
    assert [w.revision for w in merged.weeks] == [1, 1, 1, 2, 2, 2]


def test_longer_replacement_extends_plan(make_plan, make_week):
    """Test that a replacement reaching past the old end extends total_weeks."""
    merged = merge_plans(make_plan(6), _replacement(make_week, 5), 4)

    assert merged.total_weeks == 8
    assert [w.week_number for w in merged.weeks] == list(range(1, 9))


def test_short_replacement_is_rejected(make_plan, make_week):
    """Test that a replacement that does not reach the end of the plan fails closed."""
    with pytest.raises(ReplacementLengthError) as exc_info:
        merge_plans(make_plan(12), _replacement(make_week, 6), 5)

    assert exc_info.value.expected == 8
    assert exc_info.value.received == 6
    assert "Plan unchanged" in str(exc_info.value)


def test_malformed_history_week_is_repaired_from_current_copy(make_plan, make_week):
    """Test that an empty history week is restored from the in-memory plan."""
    existing = make_plan(6)
    current_copy = make_plan(6)
    existing.weeks[1] = Week(week_number=2, workouts=[])
    existing.weeks[2] = None

    merged = merge_plans(existing, _replacement(make_week, 3), 4, current_copy=current_copy)

    assert merged.weeks[1] == current_copy.weeks[1]
    assert merged.weeks[2] == current_copy.weeks[2]


def test_unrepairable_history_fails_closed(make_plan, make_week):
    """Test that a history week malformed in every source raises a corrupted-backup error."""
    existing = make_plan(6)
    existing.weeks[0] = None
    current_copy = make_plan(6)
    current_copy.weeks[0] = None

    with pytest.raises(CorruptedBackupError, match="backup corrupted") as exc_info:
        merge_plans(existing, _replacement(make_week, 3), 4, current_copy=current_copy)

    assert exc_info.value.week_numbers == [1]


def test_malformed_replacement_is_rejected(make_plan, make_week):
    """Test that generator output without workouts is rejected."""
    replacement = _replacement(make_week, 3)
    replacement[1] = Week(week_number=2, workouts=[])

    with pytest.raises(InvalidReplacementError):
        merge_plans(make_plan(6), replacement, 4)

    with pytest.raises(InvalidReplacementError):
        merge_plans(make_plan(6), [], 4)


def test_raw_generator_dicts_are_accepted(make_plan):
    """Test that raw dict weeks are parsed and renumbered."""
    replacement = [
        {"phase": "Taper", "workouts": [{"day": "Monday", "type": "easy", "workout": {"name": "3 mile jog"}}]},
        {"week_number": 9, "workouts": [{"day": "Sunday", "type": "rest"}]},
    ]

    merged = merge_plans(make_plan(3), replacement, 2)

    assert [w.week_number for w in merged.weeks] == [1, 2, 3]
    assert merged.weeks[1].phase == "taper"


def test_current_week_out_of_range(make_plan, make_week):
    """Test that an impossible current week is rejected."""
    with pytest.raises(MergeError):
        merge_plans(make_plan(6), _replacement(make_week, 3), 0)
