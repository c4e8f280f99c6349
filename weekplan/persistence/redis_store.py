"""Redis-backed PlanStore.

Layout per user:
- {prefix}:{user_id}:plan               string, Plan JSON
- {prefix}:{user_id}:overlay:{kind}     hash, storage key -> entry JSON
"""

import json
from typing import Any

import redis.asyncio as redis
from loguru import logger
from pydantic import ValidationError
from redis.exceptions import RedisError

from weekplan.config.settings import settings
from weekplan.persistence.store import OVERLAY_KINDS, OverlayKind
from weekplan.plans.errors import PersistenceError
from weekplan.plans.types import Plan


def _get_redis_client() -> redis.Redis:
    """Get Redis client instance.

    Returns:
        Async Redis client with string decoding enabled
    """
    return redis.from_url(settings.redis_url, decode_responses=True)


class RedisPlanStore:
    def __init__(self, client: redis.Redis | None = None, key_prefix: str | None = None) -> None:
        self._client = client if client is not None else _get_redis_client()
        self._prefix = key_prefix or settings.redis_key_prefix

    def _plan_key(self, user_id: str) -> str:
        return f"{self._prefix}:{user_id}:plan"

    def _overlay_key(self, user_id: str, kind: OverlayKind) -> str:
        if kind not in OVERLAY_KINDS:
            raise PersistenceError(f"Unknown overlay kind: {kind}", retryable=False)
        return f"{self._prefix}:{user_id}:overlay:{kind}"

    async def get_plan(self, user_id: str) -> Plan | None:
        try:
            raw = await self._client.get(self._plan_key(user_id))
        except RedisError as e:
            raise PersistenceError(f"Failed to load plan for {user_id}: {e}") from e
        if raw is None:
            return None
        try:
            return Plan.model_validate_json(raw)
        except ValidationError as e:
            logger.error("Stored plan document is invalid", user_id=user_id, error=str(e))
            raise PersistenceError(f"Stored plan for {user_id} is invalid", retryable=False) from e

    async def save_plan(self, user_id: str, plan: Plan) -> None:
        try:
            await self._client.set(self._plan_key(user_id), plan.model_dump_json())
        except RedisError as e:
            raise PersistenceError(f"Failed to save plan for {user_id}: {e}") from e
        logger.debug("Saved plan", user_id=user_id, total_weeks=plan.total_weeks, revision=plan.revision)

    async def get_overlay(self, user_id: str, kind: OverlayKind) -> dict[str, dict[str, Any]]:
        try:
            entries = await self._client.hgetall(self._overlay_key(user_id, kind))
        except RedisError as e:
            raise PersistenceError(f"Failed to load {kind} overlay for {user_id}: {e}") from e

        overlay: dict[str, dict[str, Any]] = {}
        for key, value in entries.items():
            try:
                overlay[key] = json.loads(value)
            except json.JSONDecodeError:
                logger.warning("Skipping unreadable overlay entry", user_id=user_id, kind=kind, key=key)
        return overlay

    async def set_overlay_entry(
        self,
        user_id: str,
        kind: OverlayKind,
        key: str,
        value: dict[str, Any] | None,
    ) -> None:
        hash_key = self._overlay_key(user_id, kind)
        try:
            if value is None:
                await self._client.hdel(hash_key, key)
            else:
                await self._client.hset(hash_key, key, json.dumps(value, default=str))
        except RedisError as e:
            raise PersistenceError(f"Failed to write {kind} overlay entry {key} for {user_id}: {e}") from e

    async def reset_overlays(self, user_id: str) -> None:
        """Delete both overlay hashes of a user."""
        hash_keys = [self._overlay_key(user_id, kind) for kind in OVERLAY_KINDS]
        try:
            await self._client.delete(*hash_keys)
        except RedisError as e:
            raise PersistenceError(f"Failed to reset overlays for {user_id}: {e}") from e
        logger.info("Reset overlays", user_id=user_id)
