"""Storage backends for plans and overlays."""

from weekplan.persistence.memory_store import InMemoryPlanStore
from weekplan.persistence.redis_store import RedisPlanStore
from weekplan.persistence.store import OVERLAY_KINDS, OverlayKind, PlanStore

__all__ = [
    "OVERLAY_KINDS",
    "InMemoryPlanStore",
    "OverlayKind",
    "PlanStore",
    "RedisPlanStore",
]
