"""Overlay writes with optimistic local updates.

Every user action updates the in-memory overlay snapshot immediately and
persists in a background task. If persistence fails, the local entries
touched by that action are rolled back and any keys already written
remotely are restored to their previous values. Entries rewritten by a
newer action are left alone on both sides, so last write wins per
overlay key.

Write methods must be called from a running event loop. They return the
background task, which resolves to a WriteResult and never raises.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from loguru import logger
from pydantic import ValidationError

from weekplan.persistence.store import OverlayKind, PlanStore
from weekplan.plans.overlay.keys import OverlayKey
from weekplan.plans.overlay.resolver import resolve_plan_week
from weekplan.plans.overlay.slots import SlotChangeSet, add_slot, remove_slot, replace_primary
from weekplan.plans.types import CompletionRecord, DaySlot, ModifiedWorkout, Plan, ResolvedWorkout

OverlayEntry = tuple[OverlayKind, OverlayKey]


@dataclass
class WriteResult:
    """Outcome of one persisted overlay action.

    Attributes:
        success: Whether every write reached the store
        keys: Storage keys touched by the action
        error: Error message when the write failed
        retryable: Whether the user can retry the same action
    """

    success: bool
    keys: list[str] = field(default_factory=list)
    error: str | None = None
    retryable: bool = False


def _parse_overlay(raw: dict[str, dict[str, Any]], model: type, kind: OverlayKind) -> dict[OverlayKey, Any]:
    overlay = {}
    for storage_key, value in raw.items():
        try:
            overlay[OverlayKey.parse(storage_key)] = model.model_validate(value)
        except (ValueError, ValidationError) as e:
            logger.warning("Skipping invalid overlay entry", kind=kind, key=storage_key, error=str(e))
    return overlay


class OverlayService:
    """Per-user overlay snapshot with optimistic, rollback-on-failure writes."""

    def __init__(
        self,
        store: PlanStore,
        user_id: str,
        *,
        plan: Plan | None = None,
        modified: dict[OverlayKey, ModifiedWorkout] | None = None,
        completions: dict[OverlayKey, CompletionRecord] | None = None,
    ) -> None:
        self._store = store
        self._user_id = user_id
        self.plan = plan
        self.modified: dict[OverlayKey, ModifiedWorkout] = dict(modified or {})
        self.completions: dict[OverlayKey, CompletionRecord] = dict(completions or {})
        self._pending: set[asyncio.Task[WriteResult]] = set()
        # Latest action that wrote each entry locally
        self._owners: dict[OverlayEntry, int] = {}
        self._last_action = 0

    @classmethod
    async def load(cls, store: PlanStore, user_id: str) -> "OverlayService":
        """Load the plan and both overlays of a user from the store."""
        plan = await store.get_plan(user_id)
        modified = _parse_overlay(await store.get_overlay(user_id, "modified"), ModifiedWorkout, "modified")
        completions = _parse_overlay(await store.get_overlay(user_id, "completion"), CompletionRecord, "completion")
        logger.info(
            "Loaded overlays",
            user_id=user_id,
            modified_count=len(modified),
            completion_count=len(completions),
        )
        return cls(store, user_id, plan=plan, modified=modified, completions=completions)

    def week_revision(self, week_number: int) -> int:
        week = self.plan.week(week_number) if self.plan is not None else None
        return week.revision if week is not None else 0

    def resolve_week(self, week_number: int) -> list[list[ResolvedWorkout]]:
        """Resolve a week of the loaded plan against the current local overlays."""
        if self.plan is None:
            return []
        return resolve_plan_week(self.plan, week_number, self.modified, self.completions)

    # Slot edits

    def replace_workout(self, week_number: int, day: str, workout: DaySlot) -> asyncio.Task[WriteResult]:
        """Replace the primary workout of a day ("something else")."""
        changes = replace_primary(week_number, day, workout, week_revision=self.week_revision(week_number))
        return self.apply(changes)

    def add_session(self, week_number: int, base_slot: DaySlot, workout: DaySlot) -> asyncio.Task[WriteResult]:
        """Add a second (or further) session to a day."""
        changes, key = add_slot(
            week_number,
            base_slot,
            workout,
            self.modified,
            week_revision=self.week_revision(week_number),
        )
        logger.debug("Adding session", key=key.storage_key())
        return self.apply(changes)

    def remove_session(self, week_number: int, day: str, index: int) -> asyncio.Task[WriteResult]:
        """Remove an added session and compact the day's slots.

        Raises:
            SlotRemovalError: If index is 0 or no session exists at index
        """
        changes = remove_slot(
            week_number,
            day,
            index,
            self.modified,
            self.completions,
            week_revision=self.week_revision(week_number),
        )
        return self.apply(changes)

    # Completion

    def mark_complete(
        self,
        key: OverlayKey,
        *,
        actual_distance: float | None = None,
        notes: str | None = None,
        completed_at: datetime | None = None,
    ) -> asyncio.Task[WriteResult]:
        record = CompletionRecord(
            completed=True,
            completed_at=completed_at or datetime.now(timezone.utc),
            actual_distance=actual_distance,
            notes=notes or None,
            week_revision=self.week_revision(key.week_number),
        )
        return self.apply(SlotChangeSet(completions={key: record}))

    def mark_incomplete(self, key: OverlayKey) -> asyncio.Task[WriteResult]:
        record = CompletionRecord(completed=False, week_revision=self.week_revision(key.week_number))
        return self.apply(SlotChangeSet(completions={key: record}))

    def record_completion(self, key: OverlayKey, record: CompletionRecord) -> asyncio.Task[WriteResult]:
        """Store a completion record built elsewhere, e.g. from an imported activity."""
        stamped = record.model_copy(update={"week_revision": self.week_revision(key.week_number)})
        return self.apply(SlotChangeSet(completions={key: stamped}))

    async def reset(self) -> None:
        """Delete every overlay entry of the user, in the store and then locally.

        Raises:
            PersistenceError: If the store rejects the reset; local overlays are kept
        """
        await self.flush()
        await self._store.reset_overlays(self._user_id)
        self.modified.clear()
        self.completions.clear()
        self._owners.clear()

    # Write path

    def apply(self, changes: SlotChangeSet) -> asyncio.Task[WriteResult]:
        """Apply changes locally now and persist them in the background."""
        previous = SlotChangeSet(
            modified={key: self.modified.get(key) for key in changes.modified},
            completions={key: self.completions.get(key) for key in changes.completions},
        )
        _apply_local(self.modified, changes.modified)
        _apply_local(self.completions, changes.completions)

        self._last_action += 1
        action_id = self._last_action
        for kind, key, _ in _writes(changes):
            self._owners[(kind, key)] = action_id

        task = asyncio.get_running_loop().create_task(self._persist(action_id, changes, previous))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def flush(self) -> list[WriteResult]:
        """Wait for every outstanding background write."""
        if not self._pending:
            return []
        return list(await asyncio.gather(*list(self._pending)))

    def _owned(self, action_id: int, entries: list[OverlayEntry]) -> list[OverlayEntry]:
        """Return the entries whose latest local write still belongs to action_id."""
        return [entry for entry in entries if self._owners.get(entry) == action_id]

    def _release(self, action_id: int, entries: list[OverlayEntry]) -> None:
        for entry in self._owned(action_id, entries):
            del self._owners[entry]

    async def _persist(self, action_id: int, changes: SlotChangeSet, previous: SlotChangeSet) -> WriteResult:
        writes = _writes(changes)
        entries = [(kind, key) for kind, key, _ in writes]
        keys = [key.storage_key() for _, key, _ in writes]
        written: list[OverlayEntry] = []
        try:
            for kind, key, value in writes:
                await self._store.set_overlay_entry(self._user_id, kind, key.storage_key(), _dump(value))
                written.append((kind, key))
        except Exception as e:
            logger.error("Overlay write failed, rolling back", user_id=self._user_id, keys=keys, error=str(e))
            # Keys rewritten by a newer action keep that action's value, locally and remotely
            self._rollback(self._owned(action_id, entries), previous)
            await self._compensate(self._owned(action_id, written), previous)
            self._release(action_id, entries)
            return WriteResult(success=False, keys=keys, error=str(e), retryable=True)

        self._release(action_id, entries)
        logger.debug("Overlay write persisted", user_id=self._user_id, keys=keys)
        return WriteResult(success=True, keys=keys)

    def _rollback(self, entries: list[OverlayEntry], previous: SlotChangeSet) -> None:
        for kind, key in entries:
            local = self.modified if kind == "modified" else self.completions
            before = _previous_value(previous, kind, key)
            if before is None:
                local.pop(key, None)
            else:
                local[key] = before

    async def _compensate(self, written: list[OverlayEntry], previous: SlotChangeSet) -> None:
        for kind, key in written:
            before = _previous_value(previous, kind, key)
            try:
                await self._store.set_overlay_entry(self._user_id, kind, key.storage_key(), _dump(before))
            except Exception as e:
                logger.error(
                    "Failed to restore overlay entry after rollback",
                    user_id=self._user_id,
                    kind=kind,
                    key=key.storage_key(),
                    error=str(e),
                )


def _previous_value(
    previous: SlotChangeSet,
    kind: OverlayKind,
    key: OverlayKey,
) -> ModifiedWorkout | CompletionRecord | None:
    return previous.modified[key] if kind == "modified" else previous.completions[key]


def _apply_local(overlay: dict[OverlayKey, Any], changes: dict[OverlayKey, Any]) -> None:
    for key, value in changes.items():
        if value is None:
            overlay.pop(key, None)
        else:
            overlay[key] = value


def _writes(changes: SlotChangeSet) -> list[tuple[OverlayKind, OverlayKey, Any]]:
    writes: list[tuple[OverlayKind, OverlayKey, Any]] = [
        ("modified", key, value) for key, value in sorted(changes.modified.items(), key=lambda item: item[0].sort_key)
    ]
    writes.extend(
        ("completion", key, value)
        for key, value in sorted(changes.completions.items(), key=lambda item: item[0].sort_key)
    )
    return writes


def _dump(value: ModifiedWorkout | CompletionRecord | None) -> dict[str, Any] | None:
    return value.model_dump(mode="json") if value is not None else None
