"""Slot edits on the modified overlay: replace, add, remove with compaction.

All functions are pure: they read overlay snapshots and return a
SlotChangeSet describing the writes (None deletes a key). Applying the
change set locally and persisting it is the caller's concern.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TypeVar

from weekplan.plans.errors import SlotRemovalError
from weekplan.plans.overlay.keys import OverlayKey
from weekplan.plans.overlay.resolver import CompletionOverlay, ModifiedOverlay, live_modified
from weekplan.plans.types import CompletionRecord, DaySlot, ModifiedWorkout

K = TypeVar("K")
V = TypeVar("V")


@dataclass
class SlotChangeSet:
    """Pending overlay writes. A None value deletes the key."""

    modified: dict[OverlayKey, ModifiedWorkout | None] = field(default_factory=dict)
    completions: dict[OverlayKey, CompletionRecord | None] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.modified and not self.completions


def apply_changes(overlay: Mapping[K, V], changes: Mapping[K, V | None]) -> dict[K, V]:
    """Return a copy of overlay with changes applied."""
    updated = dict(overlay)
    for key, value in changes.items():
        if value is None:
            updated.pop(key, None)
        else:
            updated[key] = value
    return updated


def _as_modified(workout: DaySlot, day: str, week_revision: int) -> ModifiedWorkout:
    data = workout.model_dump()
    data.update(day=day, week_revision=week_revision)
    return ModifiedWorkout.model_validate(data)


def _live_day_slots(modified: ModifiedOverlay, week_number: int, day: str, week_revision: int) -> list[int]:
    """Return the contiguous slot indexes the resolver would show from the overlay."""
    indexes = []
    slot_index = 0
    while live_modified(modified, OverlayKey(week_number=week_number, day=day, slot_index=slot_index), week_revision):
        indexes.append(slot_index)
        slot_index += 1
    return indexes


def replace_primary(
    week_number: int,
    day: str,
    workout: DaySlot,
    *,
    week_revision: int = 0,
) -> SlotChangeSet:
    """Replace the primary (slot 0) workout of a day."""
    key = OverlayKey(week_number=week_number, day=day, slot_index=0)
    return SlotChangeSet(modified={key: _as_modified(workout, key.day, week_revision)})


def add_slot(
    week_number: int,
    base_slot: DaySlot,
    workout: DaySlot,
    modified: ModifiedOverlay,
    *,
    week_revision: int = 0,
) -> tuple[SlotChangeSet, OverlayKey]:
    """Add a session to a day at the next free slot index.

    A day still showing its base workout has no overlay entry at slot 0,
    and the resolver stops there. The base slot is pinned into the overlay
    at slot 0 first so the added session is reachable.

    Args:
        week_number: 1-based week number
        base_slot: Base DaySlot of the day
        workout: Session to add
        modified: Modified overlay snapshot
        week_revision: Revision of the week being edited

    Returns:
        Change set and the key of the added session
    """
    day = base_slot.day
    changes = SlotChangeSet()
    existing = _live_day_slots(modified, week_number, day, week_revision)

    if not existing:
        pin_key = OverlayKey(week_number=week_number, day=day, slot_index=0)
        changes.modified[pin_key] = _as_modified(base_slot, day, week_revision)
        next_index = 1
    else:
        next_index = existing[-1] + 1

    key = OverlayKey(week_number=week_number, day=day, slot_index=next_index)
    changes.modified[key] = _as_modified(workout, day, week_revision)
    return changes, key


def remove_slot(
    week_number: int,
    day: str,
    index: int,
    modified: ModifiedOverlay,
    completions: CompletionOverlay,
    *,
    week_revision: int = 0,
) -> SlotChangeSet:
    """Remove an added session and compact the slots after it.

    Sessions after the removed index shift down by one so slot indexes stay
    contiguous; completion records move with their workouts. The record of
    the removed session is deleted.

    Raises:
        SlotRemovalError: If index is 0 (primary slots are only replaced) or no session exists at index
    """
    if index == 0:
        raise SlotRemovalError("The primary workout cannot be removed; replace it instead")

    target = OverlayKey(week_number=week_number, day=day, slot_index=index)
    if live_modified(modified, target, week_revision) is None:
        raise SlotRemovalError(f"No added session at {target.storage_key()}")

    later = sorted(
        (
            key
            for key, entry in modified.items()
            if key.same_day(target) and key.slot_index > index and entry.week_revision == week_revision
        ),
        key=lambda key: key.slot_index,
    )

    changes = SlotChangeSet()
    changes.modified[target] = None
    if target in completions:
        changes.completions[target] = None

    for old_key in later:
        changes.modified.setdefault(old_key, None)
        if old_key in completions:
            changes.completions.setdefault(old_key, None)

    for new_index, old_key in enumerate(later, start=index):
        new_key = old_key.with_slot(new_index)
        changes.modified[new_key] = modified[old_key]
        changes.completions[new_key] = completions.get(old_key)

    # Compaction moves records only onto keys it owns; drop no-op deletes of absent completions
    changes.completions = {
        key: value for key, value in changes.completions.items() if value is not None or key in completions
    }
    return changes
