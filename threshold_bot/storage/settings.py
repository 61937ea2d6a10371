from __future__ import annotations

import os
from dataclasses import dataclass


def _sanitize_bot_id(value: str, default: str) -> str:
    normalized = (value.strip() or default).replace("/", "-")
    return normalized or default


@dataclass(slots=True)
class StorageSettings:
    redis_url: str
    bot_id: str
    redis_config_key: str
    heartbeat_key: str
    price_prefix: str
    decision_key: str
    sweep_key: str

    @property
    def enabled(self) -> bool:
        return bool(self.redis_url)

    @classmethod
    def from_env(cls) -> "StorageSettings":
        bot_id = _sanitize_bot_id(os.getenv("BOT_ID", "threshold-bot"), "threshold-bot")
        return cls(
            redis_url=os.getenv("REDIS_URL", "").strip(),
            bot_id=bot_id,
            redis_config_key=os.getenv("REDIS_CONFIG_KEY", f"{bot_id}:config"),
            heartbeat_key=os.getenv("REDIS_HEARTBEAT_KEY", f"{bot_id}:heartbeat"),
            price_prefix=os.getenv("REDIS_PRICE_PREFIX", f"{bot_id}:prices"),
            decision_key=os.getenv("REDIS_DECISION_KEY", f"{bot_id}:decision:current"),
            sweep_key=os.getenv("REDIS_SWEEP_KEY", f"{bot_id}:sweep:current"),
        )
