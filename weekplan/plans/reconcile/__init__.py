"""Plan reconciliation: merge regenerated weeks while preserving history."""

from weekplan.plans.reconcile.backup import restore_from_backup, snapshot_backup
from weekplan.plans.reconcile.merge import merge_plans, repair_weeks
from weekplan.plans.reconcile.validators import is_usable_week, validate_replacement_weeks

__all__ = [
    "is_usable_week",
    "merge_plans",
    "repair_weeks",
    "restore_from_backup",
    "snapshot_backup",
    "validate_replacement_weeks",
]
