from __future__ import annotations

import json
from typing import Any

from redis.asyncio.client import Redis

from threshold_bot.trading.types import now_iso

from .helpers import serialize_for_redis


class RedisStorageOps:
    """Current-state snapshots. Every write overwrites the previous value."""

    async def get_runtime_config(self) -> dict[str, str]:
        if not self.enabled:
            return {}
        redis_client = self._require_redis()
        return await redis_client.hgetall(self.settings.redis_config_key)

    async def record_price(self, *, asset: str, price: float, raw: dict[str, Any]) -> None:
        if not self.enabled:
            return
        redis_client = self._require_redis()
        redis_key = f"{self.settings.price_prefix}:{asset}"
        await redis_client.hset(
            redis_key,
            mapping={
                "asset": asset,
                "price": f"{price:.10f}",
                "raw": json.dumps(raw, ensure_ascii=False, separators=(",", ":"), default=str),
                "updated_at": now_iso(),
            },
        )

    async def record_decision(self, mapping: dict[str, Any]) -> None:
        await self._overwrite_hash(self.settings.decision_key, mapping)

    async def record_sweep(self, mapping: dict[str, Any]) -> None:
        await self._overwrite_hash(self.settings.sweep_key, mapping)

    async def update_heartbeat(self) -> None:
        if not self.enabled:
            return
        redis_client = self._require_redis()
        await redis_client.set(self.settings.heartbeat_key, now_iso())

    async def _overwrite_hash(self, redis_key: str, mapping: dict[str, Any]) -> None:
        if not self.enabled:
            return
        redis_client = self._require_redis()
        payload = {str(key): serialize_for_redis(value) for key, value in mapping.items()}
        payload["updated_at"] = now_iso()

        pipeline = redis_client.pipeline(transaction=True)
        pipeline.delete(redis_key)
        pipeline.hset(redis_key, mapping=payload)
        await pipeline.execute()

    def _require_redis(self) -> Redis:
        if self._redis is None:
            raise RuntimeError("Redis client is not initialized.")
        return self._redis
