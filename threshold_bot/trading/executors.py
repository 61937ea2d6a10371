from __future__ import annotations

import logging
from typing import Any

from threshold_bot.common import log_event

from .types import ExecutionResult, TradeAction
from .wallet import WalletClient


class DryRunTradeExecutor:
    def __init__(self, *, logger: logging.Logger, token_mint: str) -> None:
        self._logger = logger
        self._token_mint = token_mint

    @property
    def token_mint(self) -> str:
        return self._token_mint

    async def connect(self) -> None:
        return None

    async def close(self) -> None:
        return None

    async def healthcheck(self) -> None:
        return None

    async def execute(self, *, action: TradeAction, amount: float) -> ExecutionResult:
        self._log_intent(action=action, amount=amount, mode="dry_run")
        return ExecutionResult(
            status="dry_run" if action is not TradeAction.HOLD else "held",
            action=action.value,
            amount=amount,
            token_mint=self._token_mint,
            reason="DRY_RUN is enabled",
        )

    def _log_intent(self, *, action: TradeAction, amount: float, mode: str) -> None:
        fields: dict[str, Any] = {
            "action": action.value,
            "amount": amount,
            "token_mint": self._token_mint,
            "mode": mode,
        }
        if action is TradeAction.BUY:
            message = f"Buying {amount} tokens of {self._token_mint}"
        elif action is TradeAction.SELL:
            message = f"Selling {amount} tokens of {self._token_mint}"
        else:
            message = "Holding position."
        log_event(self._logger, level="info", event="trade_intent", message=message, **fields)


class LiveTradeExecutor(DryRunTradeExecutor):
    """Logs trade intent against a DEX program; the swap itself is not built."""

    def __init__(
        self,
        *,
        logger: logging.Logger,
        token_mint: str,
        dex_program_id: str,
        wallet_client: WalletClient,
    ) -> None:
        super().__init__(logger=logger, token_mint=token_mint)
        self._dex_program_id = dex_program_id
        self._wallet_client = wallet_client

    async def healthcheck(self) -> None:
        await self._wallet_client.healthcheck()

    async def execute(self, *, action: TradeAction, amount: float) -> ExecutionResult:
        self._log_intent(action=action, amount=amount, mode="live")
        if action is TradeAction.HOLD:
            return ExecutionResult(
                status="held",
                action=action.value,
                amount=amount,
                token_mint=self._token_mint,
                reason="no trade required",
            )

        log_event(
            self._logger,
            level="warning",
            event="trade_live_placeholder",
            message="Live execution path is a placeholder",
            action=action.value,
            dex_program_id=self._dex_program_id,
            token_mint=self._token_mint,
        )
        return ExecutionResult(
            status="live_placeholder",
            action=action.value,
            amount=amount,
            token_mint=self._token_mint,
            reason="Swap transaction builder is not implemented yet",
            metadata={"dex_program_id": self._dex_program_id},
        )
