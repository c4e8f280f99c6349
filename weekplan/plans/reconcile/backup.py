"""Plan backups around temporary plan changes.

A backup is a snapshot of a plan's weeks taken before a temporary change
(for example an injury-recovery block). Restoring swaps the snapshot back
in, repairing damaged snapshot weeks from the current weeks.
"""

from loguru import logger

from weekplan.plans.errors import BackupNotFoundError
from weekplan.plans.reconcile.merge import repair_weeks
from weekplan.plans.types import Plan


def snapshot_backup(plan: Plan) -> Plan:
    """Return a copy of plan carrying a backup of its current weeks."""
    backup = [week.model_copy(deep=True) if week is not None else None for week in plan.weeks]
    return plan.model_copy(update={"backup_weeks": backup}, deep=True)


def restore_from_backup(plan: Plan) -> Plan:
    """Restore the weeks saved by snapshot_backup.

    Args:
        plan: Plan carrying backup_weeks

    Returns:
        New Plan with the backup weeks restored and the backup cleared

    Raises:
        BackupNotFoundError: If the plan has no backup
        CorruptedBackupError: If a backup week is malformed in both the backup and the current plan
    """
    if not plan.backup_weeks:
        raise BackupNotFoundError("Cannot restore original plan - backup not found")

    restored = repair_weeks(plan.backup_weeks, len(plan.backup_weeks), plan)
    logger.info("Restored plan from backup", total_weeks=len(restored))
    return plan.model_copy(
        update={"weeks": restored, "total_weeks": len(restored), "backup_weeks": None},
        deep=True,
    )
