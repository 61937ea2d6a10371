from __future__ import annotations

import logging
import unittest
from unittest.mock import AsyncMock, MagicMock, patch

from threshold_bot.storage import StorageGateway, StorageSettings, gateway


def _make_settings(redis_url: str) -> StorageSettings:
    return StorageSettings(
        redis_url=redis_url,
        bot_id="bot",
        redis_config_key="bot:config",
        heartbeat_key="bot:heartbeat",
        price_prefix="bot:prices",
        decision_key="bot:decision:current",
        sweep_key="bot:sweep:current",
    )


class StorageGatewayTests(unittest.IsolatedAsyncioTestCase):
    async def test_disabled_gateway_is_a_no_op(self) -> None:
        storage = StorageGateway(_make_settings(""), logging.getLogger("test.storage"))

        with self.assertLogs("test.storage", level="INFO"):
            await storage.connect()

        self.assertEqual(await storage.get_runtime_config(), {})
        await storage.record_price(asset="solana", price=1.0, raw={})
        await storage.record_decision({"action": "hold"})
        await storage.update_heartbeat()

    async def test_enabled_gateway_overwrites_snapshots(self) -> None:
        storage = StorageGateway(_make_settings("redis://localhost:6379/0"), logging.getLogger("test.storage"))
        pipeline = MagicMock()
        pipeline.execute = AsyncMock(return_value=[1, 1])
        client = MagicMock()
        client.pipeline.return_value = pipeline
        client.hgetall = AsyncMock(return_value={"buy_threshold_pct": "4"})
        client.hset = AsyncMock()
        client.set = AsyncMock()
        storage._redis = client

        self.assertEqual(await storage.get_runtime_config(), {"buy_threshold_pct": "4"})
        client.hgetall.assert_awaited_once_with("bot:config")

        await storage.record_sweep({"status": "no_excess", "excess_lamports": 0, "tx_signature": None})
        pipeline.delete.assert_called_once_with("bot:sweep:current")
        mapping = pipeline.hset.call_args.kwargs["mapping"]
        self.assertEqual(mapping["status"], "no_excess")
        self.assertEqual(mapping["excess_lamports"], "0")
        self.assertEqual(mapping["tx_signature"], "")
        self.assertIn("updated_at", mapping)

        await storage.record_price(asset="solana", price=142.5, raw={"vs_currency": "usd"})
        price_key = client.hset.await_args.args[0]
        self.assertEqual(price_key, "bot:prices:solana")

        await storage.update_heartbeat()
        self.assertEqual(client.set.await_args.args[0], "bot:heartbeat")

    async def test_enabled_gateway_requires_connection(self) -> None:
        storage = StorageGateway(_make_settings("redis://localhost:6379/0"), logging.getLogger("test.storage"))

        with self.assertRaises(RuntimeError):
            await storage.update_heartbeat()

    async def test_unreachable_redis_disables_snapshots(self) -> None:
        storage = StorageGateway(_make_settings("redis://localhost:6379/0"), logging.getLogger("test.storage"))
        client = MagicMock()
        client.ping = AsyncMock(side_effect=ConnectionError("connection refused"))
        client.aclose = AsyncMock()
        client.set = AsyncMock()

        with patch.object(gateway.redis, "from_url", return_value=client):
            with self.assertLogs("test.storage", level="WARNING") as logs:
                connected = await storage.connect_optional()

        self.assertFalse(connected)
        self.assertFalse(storage.enabled)
        self.assertEqual(logs.records[0].event, "redis_unavailable")  # type: ignore[attr-defined]
        client.aclose.assert_awaited_once()

        self.assertEqual(await storage.get_runtime_config(), {})
        await storage.record_decision({"action": "hold"})
        await storage.update_heartbeat()
        client.set.assert_not_called()

    async def test_connect_optional_keeps_reachable_redis(self) -> None:
        storage = StorageGateway(_make_settings("redis://localhost:6379/0"), logging.getLogger("test.storage"))
        client = MagicMock()
        client.ping = AsyncMock(return_value=True)

        with patch.object(gateway.redis, "from_url", return_value=client):
            with self.assertLogs("test.storage", level="INFO"):
                connected = await storage.connect_optional()

        self.assertTrue(connected)
        self.assertTrue(storage.enabled)


if __name__ == "__main__":
    unittest.main()
