"""Sparse overlays layered on a base plan: keys, resolution, slot edits, writes."""

from weekplan.plans.overlay.keys import OverlayKey, day_keys
from weekplan.plans.overlay.resolver import resolve_day, resolve_plan_week, resolve_week
from weekplan.plans.overlay.service import OverlayService, WriteResult
from weekplan.plans.overlay.slots import SlotChangeSet, add_slot, apply_changes, remove_slot, replace_primary

__all__ = [
    "OverlayKey",
    "OverlayService",
    "SlotChangeSet",
    "WriteResult",
    "add_slot",
    "apply_changes",
    "day_keys",
    "remove_slot",
    "replace_primary",
    "resolve_day",
    "resolve_plan_week",
    "resolve_week",
]
