from __future__ import annotations

import asyncio
import logging

from solders.keypair import Keypair
from solders.pubkey import Pubkey

from threshold_bot.common import log_event

from .types import SweepResult
from .wallet import WalletClient, lamports_to_sol, sol_to_lamports


class FundSweeper:
    """Moves balance above a fixed reserve from the trading wallet to the withdrawal wallet."""

    def __init__(
        self,
        *,
        logger: logging.Logger,
        wallet_client: WalletClient,
        trading_wallet: Keypair,
        withdrawal_address: Pubkey,
        reserve_sol: float = 500.0,
        dry_run: bool = True,
    ) -> None:
        self._logger = logger
        self._wallet_client = wallet_client
        self._trading_wallet = trading_wallet
        self._withdrawal_address = withdrawal_address
        self._reserve_sol = max(0.0, reserve_sol)
        self._dry_run = dry_run

    async def sweep(self, *, reserve_sol: float | None = None) -> SweepResult:
        reserve_lamports = sol_to_lamports(self._reserve_sol if reserve_sol is None else max(0.0, reserve_sol))
        balance_lamports = 0
        excess_lamports = 0

        try:
            balance = await self._wallet_client.get_balance(self._trading_wallet.pubkey())
            balance_lamports = balance.lamports
            excess_lamports = balance_lamports - reserve_lamports

            if excess_lamports <= 0:
                log_event(
                    self._logger,
                    level="info",
                    event="sweep_no_excess",
                    message="No excess funds to transfer.",
                    balance_lamports=balance_lamports,
                    reserve_lamports=reserve_lamports,
                )
                return SweepResult(
                    status="no_excess",
                    balance_lamports=balance_lamports,
                    reserve_lamports=reserve_lamports,
                    excess_lamports=0,
                )

            excess_sol = lamports_to_sol(excess_lamports)
            if self._dry_run:
                log_event(
                    self._logger,
                    level="info",
                    event="sweep_dry_run",
                    message=f"Dry-run: would transfer {excess_sol} SOL to withdrawal wallet.",
                    excess_lamports=excess_lamports,
                    withdrawal_address=str(self._withdrawal_address),
                )
                return SweepResult(
                    status="dry_run",
                    balance_lamports=balance_lamports,
                    reserve_lamports=reserve_lamports,
                    excess_lamports=excess_lamports,
                )

            signature = await self._wallet_client.transfer(
                signer=self._trading_wallet,
                recipient=self._withdrawal_address,
                lamports=excess_lamports,
            )
            log_event(
                self._logger,
                level="info",
                event="sweep_transferred",
                message=f"Transferred {excess_sol} SOL to withdrawal wallet. Transaction: {signature}",
                excess_lamports=excess_lamports,
                withdrawal_address=str(self._withdrawal_address),
                tx_signature=signature,
            )
            return SweepResult(
                status="transferred",
                balance_lamports=balance_lamports,
                reserve_lamports=reserve_lamports,
                excess_lamports=excess_lamports,
                tx_signature=signature,
            )
        except asyncio.CancelledError:
            raise
        except Exception as error:
            log_event(
                self._logger,
                level="error",
                event="sweep_failed",
                message="Error transferring excess funds",
                error=str(error),
            )
            return SweepResult(
                status="failed",
                balance_lamports=balance_lamports,
                reserve_lamports=reserve_lamports,
                excess_lamports=max(0, excess_lamports),
                error=str(error),
            )
