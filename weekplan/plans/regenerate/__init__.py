"""Plan regeneration.

Public API:
- PlanRegenerator: fetch -> generate -> merge -> save, all-or-nothing
- WeekGenerator: protocol for the external plan generator
- RegenerationResult: outcome of a successful regeneration
"""

from weekplan.plans.regenerate.regeneration_service import PlanRegenerator
from weekplan.plans.regenerate.types import RegenerationResult, WeekGenerator

__all__ = [
    "PlanRegenerator",
    "RegenerationResult",
    "WeekGenerator",
]
