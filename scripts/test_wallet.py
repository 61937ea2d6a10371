from __future__ import annotations

import json
import logging
import unittest
from types import SimpleNamespace
from unittest.mock import AsyncMock

from solders.hash import Hash
from solders.keypair import Keypair
from solders.signature import Signature
from solders.transaction import VersionedTransaction

from threshold_bot.trading import (
    WalletClient,
    WalletError,
    lamports_to_sol,
    parse_keypair,
    parse_pubkey,
    sol_to_lamports,
)


class KeyParsingTests(unittest.TestCase):
    def setUp(self) -> None:
        self.keypair = Keypair()

    def test_parse_json_integer_array(self) -> None:
        raw = json.dumps(list(bytes(self.keypair)))
        self.assertEqual(parse_keypair(raw).pubkey(), self.keypair.pubkey())

    def test_parse_base58_secret(self) -> None:
        self.assertEqual(parse_keypair(str(self.keypair)).pubkey(), self.keypair.pubkey())

    def test_rejects_garbage(self) -> None:
        with self.assertRaises(ValueError):
            parse_keypair("not-a-key")
        with self.assertRaises(ValueError):
            parse_keypair('["a", "b"]')
        with self.assertRaises(ValueError):
            parse_keypair("")

    def test_parse_pubkey_accepts_address_or_secret(self) -> None:
        address = str(self.keypair.pubkey())
        self.assertEqual(parse_pubkey(address), self.keypair.pubkey())
        self.assertEqual(parse_pubkey(json.dumps(list(bytes(self.keypair)))), self.keypair.pubkey())

    def test_lamport_conversion(self) -> None:
        self.assertEqual(lamports_to_sol(1_500_000_000), 1.5)
        self.assertEqual(sol_to_lamports(500), 500_000_000_000)
        self.assertEqual(sol_to_lamports(0.1), 100_000_000)


class WalletClientTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.client = AsyncMock()
        self.wallet = WalletClient(logger=logging.getLogger("test.wallet"), rpc_url="http://localhost:8899")
        self.wallet._client = self.client  # type: ignore[assignment]
        self.signer = Keypair()
        self.recipient = Keypair().pubkey()

    async def test_get_balance_converts_lamports(self) -> None:
        self.client.get_balance.return_value = SimpleNamespace(value=2_500_000_000)

        with self.assertLogs("test.wallet", level="INFO") as logs:
            balance = await self.wallet.get_balance(self.signer.pubkey())

        self.assertEqual(balance.lamports, 2_500_000_000)
        self.assertEqual(balance.sol, 2.5)
        self.assertEqual(balance.address, str(self.signer.pubkey()))
        self.assertIn(f"Balance for {self.signer.pubkey()}: 2.5 SOL", logs.output[0])

    async def test_get_balance_failure_is_logged_and_raised(self) -> None:
        self.client.get_balance.side_effect = RuntimeError("rpc down")

        with self.assertLogs("test.wallet", level="ERROR"):
            with self.assertRaises(WalletError) as ctx:
                await self.wallet.get_balance(self.signer.pubkey())

        self.assertIn("rpc down", str(ctx.exception))

    async def test_transfer_signs_and_confirms(self) -> None:
        self.client.get_latest_blockhash.return_value = SimpleNamespace(
            value=SimpleNamespace(blockhash=Hash.default(), last_valid_block_height=321)
        )
        self.client.send_raw_transaction.return_value = SimpleNamespace(value=Signature.default())

        signature = await self.wallet.transfer(signer=self.signer, recipient=self.recipient, lamports=1_000)

        self.assertEqual(signature, str(Signature.default()))
        raw_tx = self.client.send_raw_transaction.await_args.args[0]
        tx = VersionedTransaction.from_bytes(raw_tx)
        self.assertEqual(tx.message.account_keys[0], self.signer.pubkey())
        self.assertIn(self.recipient, tx.message.account_keys)
        confirm_kwargs = self.client.confirm_transaction.await_args.kwargs
        self.assertEqual(confirm_kwargs["last_valid_block_height"], 321)

    async def test_transfer_rejects_non_positive_amount(self) -> None:
        with self.assertRaises(ValueError):
            await self.wallet.transfer(signer=self.signer, recipient=self.recipient, lamports=0)
        self.client.send_raw_transaction.assert_not_awaited()


if __name__ == "__main__":
    unittest.main()
