"""Tests for optimistic overlay writes.

Tests that:
- Local overlays update before the background write completes
- Successful writes reach the store
- Failed writes roll back local state and restore remote state
- Loading skips unreadable entries
"""

import asyncio

import pytest

from weekplan.persistence import InMemoryPlanStore
from weekplan.plans.errors import PersistenceError, SlotRemovalError
from weekplan.plans.overlay import OverlayKey, OverlayService, SlotChangeSet
from weekplan.plans.types import CompletionRecord, DaySlot, WorkoutPayload


class FlakyStore(InMemoryPlanStore):
    """In-memory store whose overlay writes start failing after a number of successes."""

    def __init__(self, succeed_writes: int = 0) -> None:
        super().__init__()
        self.succeed_writes = succeed_writes
        self.fail = True

    async def set_overlay_entry(self, user_id, kind, key, value):
        if self.fail and self.succeed_writes <= 0:
            self.fail = False
            raise PersistenceError("store unavailable")
        self.succeed_writes -= 1
        await super().set_overlay_entry(user_id, kind, key, value)


class GatedStore(InMemoryPlanStore):
    """In-memory store whose first write to one key waits for a gate, then fails."""

    def __init__(self, failing_key: str) -> None:
        super().__init__()
        self.failing_key = failing_key
        self.gate = asyncio.Event()
        self.failed = False

    async def set_overlay_entry(self, user_id, kind, key, value):
        if key == self.failing_key and not self.failed:
            await self.gate.wait()
            self.failed = True
            raise PersistenceError("store unavailable")
        await super().set_overlay_entry(user_id, kind, key, value)


KEY = OverlayKey(week_number=1, day="Monday", slot_index=0)


@pytest.mark.asyncio
async def test_mark_complete_is_optimistic_and_persisted(store, make_plan):
    """Test that a completion is visible immediately and then persisted."""
    service = OverlayService(store, "athlete-1", plan=make_plan(4))

    task = service.mark_complete(KEY, actual_distance=4.2, notes="felt good")
    assert service.completions[KEY].completed is True

    result = await task

    assert result.success is True
    assert result.keys == ["1-Monday-0"]
    stored = await store.get_overlay("athlete-1", "completion")
    assert stored["1-Monday-0"]["actual_distance"] == 4.2
    assert stored["1-Monday-0"]["notes"] == "felt good"


@pytest.mark.asyncio
async def test_failed_write_rolls_back_local_state(make_plan):
    """Test that a failed background write removes the optimistic completion."""
    store = FlakyStore(succeed_writes=0)
    service = OverlayService(store, "athlete-1", plan=make_plan(4))

    task = service.mark_complete(KEY, actual_distance=4.2)
    assert KEY in service.completions

    result = await task

    assert result.success is False
    assert result.retryable is True
    assert "store unavailable" in result.error
    assert KEY not in service.completions
    assert await store.get_overlay("athlete-1", "completion") == {}


@pytest.mark.asyncio
async def test_failed_write_restores_previous_value(make_plan):
    """Test that rollback restores the prior record rather than deleting it."""
    store = FlakyStore(succeed_writes=1)
    service = OverlayService(store, "athlete-1", plan=make_plan(4))

    first = await service.mark_complete(KEY, actual_distance=3.0)
    assert first.success is True

    second = await service.mark_incomplete(KEY)

    assert second.success is False
    assert service.completions[KEY].completed is True
    assert service.completions[KEY].actual_distance == 3.0


@pytest.mark.asyncio
async def test_partial_multi_key_write_is_compensated(make_plan):
    """Test that keys written before a failure are restored in the store."""
    store = FlakyStore(succeed_writes=1)
    service = OverlayService(store, "athlete-1", plan=make_plan(4))
    plan_week = service.plan.week(1)

    strides = DaySlot(day="Monday", workout=WorkoutPayload(name="Strides"))

    result = await service.add_session(1, plan_week.workouts[0], strides)

    assert result.success is False
    assert result.keys == ["1-Monday-0", "1-Monday-1"]
    assert service.modified == {}
    assert await store.get_overlay("athlete-1", "modified") == {}


@pytest.mark.asyncio
async def test_add_and_remove_session_round_trip(store, make_plan):
    """Test that added sessions resolve and removal compacts them in the store."""
    service = OverlayService(store, "athlete-1", plan=make_plan(4))
    base = service.plan.week(2).workouts[0]

    service.add_session(2, base, DaySlot(day="Monday", workout=WorkoutPayload(name="Session A")))
    service.add_session(2, base, DaySlot(day="Monday", workout=WorkoutPayload(name="Session B")))
    service.remove_session(2, "Monday", 1)
    results = await service.flush()

    assert all(result.success for result in results)
    monday = service.resolve_week(2)[0]
    assert [w.slot.workout.name for w in monday] == ["4-Mile Easy Run", "Session B"]

    reloaded = await OverlayService.load(store, "athlete-1")
    assert reloaded.modified == service.modified


@pytest.mark.asyncio
async def test_remove_primary_raises_before_any_write(store, make_plan):
    """Test that invalid removals raise synchronously and change nothing."""
    service = OverlayService(store, "athlete-1", plan=make_plan(4))

    with pytest.raises(SlotRemovalError):
        service.remove_session(1, "Monday", 0)

    assert service.modified == {}
    assert await service.flush() == []


@pytest.mark.asyncio
async def test_record_completion_stamps_week_revision(store, make_plan):
    """Test that imported completions are stamped with the week revision."""
    plan = make_plan(4, revision=2)
    service = OverlayService(store, "athlete-1", plan=plan)

    await service.record_completion(KEY, CompletionRecord(completed=True, actual_distance=5.0))

    assert service.completions[KEY].week_revision == 2
    assert service.resolve_week(1)[0][0].completed is True


@pytest.mark.asyncio
async def test_load_skips_invalid_entries(store, make_plan):
    """Test that unreadable overlay entries are skipped on load."""
    await store.save_plan("athlete-1", make_plan(4))
    await store.set_overlay_entry("athlete-1", "completion", "1-Monday-0", {"completed": True})
    await store.set_overlay_entry("athlete-1", "completion", "not-a-key", {"completed": True})
    await store.set_overlay_entry("athlete-1", "modified", "1-Monday-0", {"type": "easy"})

    service = await OverlayService.load(store, "athlete-1")

    assert list(service.completions) == [KEY]
    assert service.modified == {}
    assert service.plan.total_weeks == 4


@pytest.mark.asyncio
async def test_failed_action_keeps_newer_write_to_shared_key(make_plan):
    """Test that rolling back one action never undoes a later action's persisted write."""
    store = GatedStore(failing_key="1-Tuesday-0")
    service = OverlayService(store, "athlete-1", plan=make_plan(4))
    tuesday = OverlayKey(week_number=1, day="Tuesday", slot_index=0)

    first = service.apply(
        SlotChangeSet(
            completions={
                KEY: CompletionRecord(completed=True, actual_distance=4.0),
                tuesday: CompletionRecord(completed=True, actual_distance=6.0),
            }
        )
    )
    # First action has written Monday and is now waiting on Tuesday
    await asyncio.sleep(0)
    second = await service.mark_complete(KEY, actual_distance=5.5)
    store.gate.set()
    first_result = await first

    assert second.success is True
    assert first_result.success is False
    assert service.completions[KEY].actual_distance == 5.5
    assert tuesday not in service.completions
    stored = await store.get_overlay("athlete-1", "completion")
    assert stored["1-Monday-0"]["actual_distance"] == 5.5
    assert "1-Tuesday-0" not in stored


@pytest.mark.asyncio
async def test_failed_action_keeps_newer_delete_of_shared_key(make_plan):
    """Test that a later removal of a shared key is not resurrected by a rollback."""
    store = GatedStore(failing_key="1-Tuesday-0")
    await store.save_plan("athlete-1", make_plan(4))
    await store.set_overlay_entry("athlete-1", "completion", "1-Monday-0", {"completed": True})
    service = await OverlayService.load(store, "athlete-1")
    tuesday = OverlayKey(week_number=1, day="Tuesday", slot_index=0)

    first = service.apply(
        SlotChangeSet(
            completions={
                KEY: CompletionRecord(completed=True, actual_distance=4.0),
                tuesday: CompletionRecord(completed=True),
            }
        )
    )
    await asyncio.sleep(0)
    second = await service.apply(SlotChangeSet(completions={KEY: None}))
    store.gate.set()
    await first

    assert second.success is True
    assert KEY not in service.completions
    assert await store.get_overlay("athlete-1", "completion") == {}


@pytest.mark.asyncio
async def test_reset_clears_store_and_local_overlays(store, make_plan):
    """Test that a full reset removes every edit and completion of the user."""
    service = OverlayService(store, "athlete-1", plan=make_plan(4))
    service.replace_workout(1, "Monday", DaySlot(day="Monday", type="bike"))
    service.mark_complete(KEY, actual_distance=4.0)

    await service.reset()

    assert service.modified == {}
    assert service.completions == {}
    assert await store.get_overlay("athlete-1", "modified") == {}
    assert await store.get_overlay("athlete-1", "completion") == {}
    assert service.resolve_week(1)[0][0].source == "base"
