from __future__ import annotations

import logging
import unittest
from unittest.mock import AsyncMock

from solders.keypair import Keypair

from threshold_bot.trading import FundSweeper, WalletBalance, WalletError


def _balance(keypair: Keypair, lamports: int) -> WalletBalance:
    return WalletBalance(address=str(keypair.pubkey()), lamports=lamports, sol=lamports / 1_000_000_000)


class FundSweeperTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.wallet_client = AsyncMock()
        self.trading_wallet = Keypair()
        self.withdrawal_address = Keypair().pubkey()

    def _make_sweeper(self, *, dry_run: bool) -> FundSweeper:
        return FundSweeper(
            logger=logging.getLogger("test.sweeper"),
            wallet_client=self.wallet_client,
            trading_wallet=self.trading_wallet,
            withdrawal_address=self.withdrawal_address,
            reserve_sol=500.0,
            dry_run=dry_run,
        )

    async def test_balance_at_or_below_reserve_is_not_swept(self) -> None:
        self.wallet_client.get_balance.return_value = _balance(self.trading_wallet, 500_000_000_000)

        with self.assertLogs("test.sweeper", level="INFO") as logs:
            result = await self._make_sweeper(dry_run=False).sweep()

        self.assertEqual(result.status, "no_excess")
        self.assertEqual(result.excess_lamports, 0)
        self.assertIn("No excess funds to transfer.", logs.output[0])
        self.wallet_client.transfer.assert_not_awaited()

    async def test_live_sweep_transfers_excess_lamports(self) -> None:
        self.wallet_client.get_balance.return_value = _balance(self.trading_wallet, 512_250_000_000)
        self.wallet_client.transfer.return_value = "5igSig"

        with self.assertLogs("test.sweeper", level="INFO") as logs:
            result = await self._make_sweeper(dry_run=False).sweep()

        self.assertEqual(result.status, "transferred")
        self.assertEqual(result.excess_lamports, 12_250_000_000)
        self.assertEqual(result.excess_sol, 12.25)
        self.assertEqual(result.tx_signature, "5igSig")
        self.wallet_client.transfer.assert_awaited_once_with(
            signer=self.trading_wallet,
            recipient=self.withdrawal_address,
            lamports=12_250_000_000,
        )
        self.assertIn(
            "Transferred 12.25 SOL to withdrawal wallet. Transaction: 5igSig",
            logs.output[-1],
        )

    async def test_dry_run_only_logs(self) -> None:
        self.wallet_client.get_balance.return_value = _balance(self.trading_wallet, 501_000_000_000)

        with self.assertLogs("test.sweeper", level="INFO"):
            result = await self._make_sweeper(dry_run=True).sweep()

        self.assertEqual(result.status, "dry_run")
        self.assertEqual(result.excess_lamports, 1_000_000_000)
        self.wallet_client.transfer.assert_not_awaited()

    async def test_reserve_override(self) -> None:
        self.wallet_client.get_balance.return_value = _balance(self.trading_wallet, 3_000_000_000)
        self.wallet_client.transfer.return_value = "sig"

        result = await self._make_sweeper(dry_run=False).sweep(reserve_sol=1.0)

        self.assertEqual(result.status, "transferred")
        self.assertEqual(result.reserve_lamports, 1_000_000_000)
        self.assertEqual(result.excess_lamports, 2_000_000_000)

    async def test_failures_are_logged_not_raised(self) -> None:
        self.wallet_client.get_balance.side_effect = WalletError("rpc down")

        with self.assertLogs("test.sweeper", level="ERROR") as logs:
            result = await self._make_sweeper(dry_run=False).sweep()

        self.assertEqual(result.status, "failed")
        self.assertEqual(result.error, "rpc down")
        self.assertIn("Error transferring excess funds", logs.output[0])

    async def test_transfer_failure_keeps_computed_excess(self) -> None:
        self.wallet_client.get_balance.return_value = _balance(self.trading_wallet, 600_000_000_000)
        self.wallet_client.transfer.side_effect = RuntimeError("blockhash not found")

        with self.assertLogs("test.sweeper", level="ERROR"):
            result = await self._make_sweeper(dry_run=False).sweep()

        self.assertEqual(result.status, "failed")
        self.assertEqual(result.excess_lamports, 100_000_000_000)
        self.assertEqual(result.balance_lamports, 600_000_000_000)


if __name__ == "__main__":
    unittest.main()
