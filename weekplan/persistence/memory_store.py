"""In-process PlanStore.

Documents are held as JSON strings so every read returns an independent
snapshot, the same way a remote document store would.
"""

import json
from typing import Any

from loguru import logger

from weekplan.persistence.store import OVERLAY_KINDS, OverlayKind
from weekplan.plans.errors import PersistenceError
from weekplan.plans.types import Plan


class InMemoryPlanStore:
    def __init__(self) -> None:
        self._plans: dict[str, str] = {}
        self._overlays: dict[tuple[str, OverlayKind], dict[str, str]] = {}

    async def get_plan(self, user_id: str) -> Plan | None:
        raw = self._plans.get(user_id)
        if raw is None:
            return None
        return Plan.model_validate(json.loads(raw))

    async def save_plan(self, user_id: str, plan: Plan) -> None:
        self._plans[user_id] = plan.model_dump_json()
        logger.debug("Saved plan", user_id=user_id, total_weeks=plan.total_weeks, revision=plan.revision)

    async def get_overlay(self, user_id: str, kind: OverlayKind) -> dict[str, dict[str, Any]]:
        _check_kind(kind)
        entries = self._overlays.get((user_id, kind), {})
        return {key: json.loads(value) for key, value in entries.items()}

    async def set_overlay_entry(
        self,
        user_id: str,
        kind: OverlayKind,
        key: str,
        value: dict[str, Any] | None,
    ) -> None:
        _check_kind(kind)
        entries = self._overlays.setdefault((user_id, kind), {})
        if value is None:
            entries.pop(key, None)
        else:
            entries[key] = json.dumps(value, default=str)

    async def reset_overlays(self, user_id: str) -> None:
        """Delete every overlay entry of a user."""
        for kind in OVERLAY_KINDS:
            self._overlays.pop((user_id, kind), None)
        logger.info("Reset overlays", user_id=user_id)


def _check_kind(kind: str) -> None:
    if kind not in OVERLAY_KINDS:
        raise PersistenceError(f"Unknown overlay kind: {kind}", retryable=False)
