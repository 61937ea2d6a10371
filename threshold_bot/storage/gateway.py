from __future__ import annotations

import contextlib
import logging

from redis import asyncio as redis
from redis.asyncio.client import Redis

from threshold_bot.common import guarded_call, log_event

from .redis_ops import RedisStorageOps
from .settings import StorageSettings


class StorageGateway(RedisStorageOps):
    def __init__(self, settings: StorageSettings, logger: logging.Logger) -> None:
        self.settings = settings
        self._logger = logger
        self._redis: Redis | None = None
        self._unavailable = False

    @property
    def enabled(self) -> bool:
        return self.settings.enabled and not self._unavailable

    async def connect(self) -> None:
        if not self.enabled:
            log_event(
                self._logger,
                level="info",
                event="redis_disabled",
                message="REDIS_URL is not set; runtime snapshots are disabled",
            )
            return

        if self._redis is None:
            self._redis = redis.from_url(self.settings.redis_url, decode_responses=True)
        await self._redis.ping()
        log_event(
            self._logger,
            level="info",
            event="redis_connected",
            message="Connected to Redis",
            redis_url=self.settings.redis_url,
        )

    async def connect_optional(self) -> bool:
        """Connect, or turn snapshots off for this run when Redis is unreachable."""
        connected = await guarded_call(
            self._connect_and_confirm,
            logger=self._logger,
            event="redis_unavailable",
            message="Redis is unreachable; runtime snapshots are disabled",
            default=False,
        )
        if not connected:
            with contextlib.suppress(Exception):
                await self.close()
            self._unavailable = True
        return bool(connected)

    async def _connect_and_confirm(self) -> bool:
        await self.connect()
        return True

    async def close(self) -> None:
        if self._redis is not None:
            close = getattr(self._redis, "aclose", None)
            if close:
                await close()
            else:
                await self._redis.close()
            self._redis = None
