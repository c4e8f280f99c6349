"""Plan regeneration merge.

Weeks before the current week are history: they are copied verbatim from
the existing plan and never taken from the replacement. Weeks from the
current week on are taken from the replacement, renumbered so that
replacement[0] becomes the current week, and stamped with a new revision
so overlay entries written against the old content read as stale.

Failures raise before anything is built; the inputs are never mutated.
"""

from collections.abc import Sequence
from typing import Any

from loguru import logger

from weekplan.plans.errors import CorruptedBackupError, MergeError, ReplacementLengthError
from weekplan.plans.reconcile.validators import is_usable_week, validate_replacement_weeks
from weekplan.plans.types import Plan, Week


def repair_weeks(
    weeks: Sequence[Week | None],
    count: int,
    current_copy: Plan | None,
) -> list[Week]:
    """Return the first count weeks, substituting malformed ones from current_copy.

    Args:
        weeks: Weeks to preserve (possibly from a stale backup)
        count: Number of leading weeks required
        current_copy: Current in-memory plan used to repair malformed weeks

    Returns:
        Deep copies of the preserved weeks

    Raises:
        CorruptedBackupError: If any week is malformed in both sources
    """
    preserved: list[Week] = []
    unrecoverable: list[int] = []
    for index in range(count):
        week_number = index + 1
        week = weeks[index] if index < len(weeks) else None
        if not is_usable_week(week):
            candidate = current_copy.week(week_number) if current_copy is not None else None
            if is_usable_week(candidate):
                logger.warning("Repairing preserved week from current plan", week_number=week_number)
                week = candidate
            else:
                unrecoverable.append(week_number)
                continue
        preserved.append(week.model_copy(deep=True))

    if unrecoverable:
        logger.error("Preserved weeks are corrupted in every source", week_numbers=unrecoverable)
        raise CorruptedBackupError(unrecoverable)
    return preserved


def merge_plans(
    existing_plan: Plan,
    replacement_weeks: Sequence[Week | dict[str, Any] | None],
    current_week_number: int,
    *,
    current_copy: Plan | None = None,
) -> Plan:
    """Splice regenerated weeks onto a plan without touching its history.

    The merged plan has max(existing.total_weeks, current_week_number - 1 + len(replacement))
    weeks. A replacement too short to reach the end of the existing plan is rejected
    rather than padded or truncated.

    Args:
        existing_plan: Plan whose weeks before current_week_number are preserved
        replacement_weeks: Generated weeks starting at current_week_number
        current_week_number: First week to replace (1-based)
        current_copy: Current in-memory plan used to repair malformed preserved weeks

    Returns:
        New merged Plan

    Raises:
        InvalidReplacementError: If the replacement fails the shape check
        ReplacementLengthError: If the replacement does not reach the end of the plan
        CorruptedBackupError: If a preserved week is malformed and cannot be repaired
        MergeError: If current_week_number is out of range
    """
    if current_week_number < 1 or current_week_number > existing_plan.total_weeks + 1:
        raise MergeError(
            f"Plan unchanged: current week {current_week_number} is outside 1..{existing_plan.total_weeks + 1}"
        )

    replacement = validate_replacement_weeks(replacement_weeks)

    preserved_count = current_week_number - 1
    required = existing_plan.total_weeks - preserved_count
    if len(replacement) < required:
        logger.error(
            "Replacement too short",
            current_week_number=current_week_number,
            required=required,
            received=len(replacement),
        )
        raise ReplacementLengthError(expected=required, received=len(replacement))

    preserved = repair_weeks(existing_plan.weeks, preserved_count, current_copy)

    revision = existing_plan.revision + 1
    future = [
        week.model_copy(update={"week_number": current_week_number + offset, "revision": revision}, deep=True)
        for offset, week in enumerate(replacement)
    ]

    merged_weeks: list[Week | None] = [*preserved, *future]
    merged = existing_plan.model_copy(
        update={"weeks": merged_weeks, "total_weeks": len(merged_weeks), "revision": revision},
        deep=True,
    )

    logger.info(
        "Merged plan weeks",
        preserved=len(preserved),
        replaced=len(future),
        total_weeks=merged.total_weeks,
        revision=revision,
    )
    return merged
