from __future__ import annotations

import asyncio
import contextlib
import json
import logging

import base58
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment
from solana.rpc.types import TxOpts
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.pubkey import Pubkey
from solders.system_program import TransferParams, transfer
from solders.transaction import VersionedTransaction

from threshold_bot.common import log_event

from .types import LAMPORTS_PER_SOL, WalletBalance, WalletError

DEVNET_RPC_URL = "https://api.devnet.solana.com"


def lamports_to_sol(lamports: int) -> float:
    return lamports / LAMPORTS_PER_SOL


def sol_to_lamports(sol: float) -> int:
    return int(round(sol * LAMPORTS_PER_SOL))


def parse_keypair(raw: str, *, name: str = "secret key") -> Keypair:
    value = (raw or "").strip()
    if not value:
        raise ValueError(f"{name} is empty.")

    if value.startswith("["):
        try:
            arr = json.loads(value)
        except json.JSONDecodeError as error:
            raise ValueError(f"{name} is not valid JSON.") from error
        if not isinstance(arr, list) or not all(isinstance(item, int) for item in arr):
            raise ValueError(f"{name} JSON must be an integer array.")
        try:
            return Keypair.from_bytes(bytes(arr))
        except ValueError as error:
            raise ValueError(f"{name} JSON array is not a valid keypair.") from error

    try:
        return Keypair.from_bytes(base58.b58decode(value))
    except ValueError as error:
        raise ValueError(f"Unsupported {name} format.") from error


def parse_pubkey(raw: str, *, name: str = "address") -> Pubkey:
    """Accepts a base58 address, or a secret key whose public half is used."""
    value = (raw or "").strip()
    if not value.startswith("["):
        with contextlib.suppress(Exception):
            return Pubkey.from_string(value)
    return parse_keypair(value, name=name).pubkey()


class WalletClient:
    def __init__(
        self,
        *,
        logger: logging.Logger,
        rpc_url: str = DEVNET_RPC_URL,
        commitment: str = "confirmed",
        timeout_seconds: float = 10.0,
    ) -> None:
        self._logger = logger
        self._rpc_url = rpc_url
        self._commitment = Commitment(commitment)
        self._timeout_seconds = timeout_seconds
        self._client: AsyncClient | None = None

    async def connect(self) -> None:
        if not self._rpc_url:
            raise ValueError("SOLANA_RPC_URL is required.")
        if self._client is None:
            self._client = AsyncClient(
                self._rpc_url,
                commitment=self._commitment,
                timeout=self._timeout_seconds,
            )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None

    async def healthcheck(self) -> None:
        client = await self._require_client()
        if not await client.is_connected():
            raise WalletError(f"RPC node is not reachable: {self._rpc_url}")

    async def get_balance(self, pubkey: Pubkey) -> WalletBalance:
        address = str(pubkey)
        try:
            client = await self._require_client()
            response = await client.get_balance(pubkey, commitment=self._commitment)
            lamports = int(response.value)
        except asyncio.CancelledError:
            raise
        except Exception as error:
            log_event(
                self._logger,
                level="error",
                event="balance_check_failed",
                message="Error checking balance",
                address=address,
                error=str(error),
            )
            raise WalletError(f"Balance query failed for {address}: {error}") from error

        balance = WalletBalance(address=address, lamports=lamports, sol=lamports_to_sol(lamports))
        log_event(
            self._logger,
            level="info",
            event="balance_checked",
            message=f"Balance for {address}: {balance.sol} SOL",
            address=address,
            lamports=lamports,
        )
        return balance

    async def transfer(self, *, signer: Keypair, recipient: Pubkey, lamports: int) -> str:
        if lamports <= 0:
            raise ValueError(f"Transfer amount must be positive, got {lamports} lamports.")

        client = await self._require_client()
        instruction = transfer(
            TransferParams(
                from_pubkey=signer.pubkey(),
                to_pubkey=recipient,
                lamports=int(lamports),
            )
        )

        blockhash_response = await client.get_latest_blockhash(commitment=self._commitment)
        latest = blockhash_response.value
        message = MessageV0.try_compile(
            signer.pubkey(),
            [instruction],
            [],
            latest.blockhash,
        )
        signed_tx = VersionedTransaction(message, [signer])

        send_response = await client.send_raw_transaction(
            bytes(signed_tx),
            opts=TxOpts(skip_preflight=False, preflight_commitment=self._commitment),
        )
        signature = send_response.value

        await client.confirm_transaction(
            signature,
            commitment=self._commitment,
            last_valid_block_height=latest.last_valid_block_height,
        )
        return str(signature)

    async def _require_client(self) -> AsyncClient:
        if self._client is None:
            await self.connect()
        if self._client is None:
            raise RuntimeError("Solana RPC client is not initialized.")
        return self._client
