"""Persistent store interface for plans and overlays.

The store is a generic document store: one Plan document per user and two
sparse overlay maps per user, keyed by the "{week}-{day}-{slotIndex}"
storage key. Values are JSON-serializable dicts; writing None deletes a key.
reset_overlays clears both overlay maps of a user at once.

Implementations raise PersistenceError on failure.
"""

from typing import Any, Literal, Protocol

from weekplan.plans.types import Plan

OverlayKind = Literal["modified", "completion"]

OVERLAY_KINDS: tuple[OverlayKind, ...] = ("modified", "completion")


class PlanStore(Protocol):
    async def get_plan(self, user_id: str) -> Plan | None: ...

    async def save_plan(self, user_id: str, plan: Plan) -> None: ...

    async def get_overlay(self, user_id: str, kind: OverlayKind) -> dict[str, dict[str, Any]]: ...

    async def set_overlay_entry(
        self,
        user_id: str,
        kind: OverlayKind,
        key: str,
        value: dict[str, Any] | None,
    ) -> None: ...

    async def reset_overlays(self, user_id: str) -> None: ...
