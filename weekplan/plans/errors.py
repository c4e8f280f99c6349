"""Domain errors for the weekly plan engine.

Every failure is scoped to one operation and leaves prior state intact.
Calendar and mileage helpers never raise; they degrade to documented defaults.
"""


class PlanEngineError(Exception):
    """Base exception for all plan engine errors."""

    pass


class MergeError(PlanEngineError):
    """Base exception for plan reconciliation failures."""

    pass


class InvalidReplacementError(MergeError):
    """Raised when generated replacement weeks fail the shape check."""

    pass


class ReplacementLengthError(MergeError):
    """Raised when replacement weeks do not cover the rest of the plan.

    Attributes:
        expected: Minimum number of replacement weeks required
        received: Number of replacement weeks supplied
    """

    def __init__(self, expected: int, received: int) -> None:
        self.expected = expected
        self.received = received
        super().__init__(
            f"Plan unchanged: replacement covers {received} weeks but {expected} are required "
            "to reach the end of the plan"
        )


class CorruptedBackupError(MergeError):
    """Raised when preserved weeks are malformed and cannot be repaired.

    Attributes:
        week_numbers: Week numbers that could not be restored
    """

    def __init__(self, week_numbers: list[int]) -> None:
        self.week_numbers = week_numbers
        weeks_str = ", ".join(str(n) for n in week_numbers)
        super().__init__(
            f"Plan unchanged; backup corrupted, please regenerate from scratch (unrecoverable weeks: {weeks_str})"
        )


class BackupNotFoundError(MergeError):
    """Raised when a restore is requested for a plan without a backup."""

    pass


class RegenerationError(PlanEngineError):
    """Raised when regeneration fails before anything is persisted."""

    pass


class RegenerationInProgressError(RegenerationError):
    """Raised when a regeneration for the same user is already outstanding."""

    pass


class PersistenceError(PlanEngineError):
    """Raised when the persistent store rejects a read or write.

    Attributes:
        retryable: Whether retrying the same operation may succeed
    """

    def __init__(self, message: str, *, retryable: bool = True) -> None:
        self.retryable = retryable
        super().__init__(message)


class SlotRemovalError(PlanEngineError, ValueError):
    """Raised when a slot cannot be removed (primary slot or missing slot)."""

    pass
