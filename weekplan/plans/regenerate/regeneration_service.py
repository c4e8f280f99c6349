"""Service orchestrator for plan regeneration.

This is the public entry point for plan regeneration. The flow is
fetch existing plan -> await generator -> merge -> persist, and it is
all-or-nothing: any failure before the save leaves the stored plan and
overlays exactly as they were.
"""

import asyncio
from collections.abc import Sequence
from datetime import date
from typing import Any

from loguru import logger

from weekplan.config.settings import settings
from weekplan.persistence.store import PlanStore
from weekplan.plans.calendar import current_week_number, local_today
from weekplan.plans.errors import (
    MergeError,
    PersistenceError,
    RegenerationError,
    RegenerationInProgressError,
)
from weekplan.plans.reconcile import merge_plans
from weekplan.plans.regenerate.types import RegenerationResult, WeekGenerator
from weekplan.plans.types import Plan, Week


class PlanRegenerator:
    """Regenerates future weeks of a user's plan.

    At most one regeneration per user may be outstanding; a second call
    while one is running is refused rather than queued.
    """

    def __init__(
        self,
        store: PlanStore,
        generator: WeekGenerator,
        *,
        timeout_seconds: float | None = None,
    ) -> None:
        self._store = store
        self._generator = generator
        self._timeout_seconds = timeout_seconds if timeout_seconds is not None else settings.generator_timeout_seconds
        self._in_flight: set[str] = set()

    def is_running(self, user_id: str) -> bool:
        return user_id in self._in_flight

    async def regenerate(
        self,
        user_id: str,
        profile: dict[str, Any],
        *,
        today: date | None = None,
        current_copy: Plan | None = None,
    ) -> RegenerationResult:
        """Regenerate the plan from the current week on.

        Args:
            user_id: Owner of the plan
            profile: Athlete profile passed through to the generator
            today: Override for the current local date
            current_copy: Current in-memory plan used to repair malformed history weeks

        Returns:
            RegenerationResult with the persisted plan

        Raises:
            RegenerationInProgressError: If a regeneration for this user is already running
            RegenerationError: If there is no plan, or the generator fails or times out
            MergeError: If the generated weeks cannot be merged (plan unchanged)
            PersistenceError: If the merged plan could not be saved (plan unchanged)
        """
        if user_id in self._in_flight:
            logger.warning("Regeneration already in progress", user_id=user_id)
            raise RegenerationInProgressError("Plan regeneration is already in progress")

        self._in_flight.add(user_id)
        try:
            return await self._regenerate(user_id, profile, today=today, current_copy=current_copy)
        finally:
            self._in_flight.discard(user_id)

    async def _regenerate(
        self,
        user_id: str,
        profile: dict[str, Any],
        *,
        today: date | None,
        current_copy: Plan | None,
    ) -> RegenerationResult:
        existing = await self._store.get_plan(user_id)
        if existing is None:
            raise RegenerationError("Plan unchanged: no existing plan to regenerate")

        week_number = current_week_number(today or local_today(), existing.start_date, existing.total_weeks)
        logger.info("Starting plan regeneration", user_id=user_id, current_week_number=week_number)

        replacement = await self._generate(user_id, profile, week_number)

        try:
            merged = merge_plans(existing, replacement, week_number, current_copy=current_copy)
        except MergeError as e:
            logger.error("Plan merge failed", user_id=user_id, error=str(e))
            raise

        try:
            await self._store.save_plan(user_id, merged)
        except PersistenceError as e:
            logger.error("Failed to save regenerated plan", user_id=user_id, error=str(e))
            raise

        preserved = week_number - 1
        logger.info(
            "Plan regenerated",
            user_id=user_id,
            preserved_weeks=preserved,
            replaced_weeks=merged.total_weeks - preserved,
            revision=merged.revision,
        )
        return RegenerationResult(
            plan=merged,
            current_week_number=week_number,
            preserved_weeks=preserved,
            replaced_weeks=merged.total_weeks - preserved,
        )

    async def _generate(
        self,
        user_id: str,
        profile: dict[str, Any],
        week_number: int,
    ) -> Sequence[Week | dict[str, Any] | None]:
        try:
            return await asyncio.wait_for(
                self._generator.generate_weeks(profile, week_number),
                timeout=self._timeout_seconds,
            )
        except TimeoutError as e:
            logger.error("Plan generator timed out", user_id=user_id, timeout_seconds=self._timeout_seconds)
            raise RegenerationError(
                f"Plan unchanged: generator did not respond within {self._timeout_seconds:g} seconds"
            ) from e
        except Exception as e:
            logger.exception("Plan generator failed", user_id=user_id)
            raise RegenerationError(f"Plan unchanged: generator failed: {e}") from e
