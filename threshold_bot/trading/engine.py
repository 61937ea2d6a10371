from __future__ import annotations

import asyncio
import logging

from threshold_bot.common import log_event

from .types import ExecutionResult, RuntimeConfig, TradeAction, TradeDecision, TradeExecutor


def decide_action(
    current_price: float,
    last_price: float,
    *,
    buy_threshold_pct: float = 5.0,
    sell_threshold_pct: float = 3.0,
) -> TradeAction:
    """Map a price move to buy/sell/hold. Both bounds are strict, so equality holds."""
    if current_price > last_price * (1 + buy_threshold_pct / 100):
        return TradeAction.BUY
    if current_price < last_price * (1 - sell_threshold_pct / 100):
        return TradeAction.SELL
    return TradeAction.HOLD


def price_change_pct(current_price: float, last_price: float) -> float:
    if last_price == 0:
        return 0.0
    return ((current_price - last_price) / last_price) * 100


class TraderEngine:
    def __init__(
        self,
        *,
        logger: logging.Logger,
        executor: TradeExecutor,
    ) -> None:
        self._logger = logger
        self.executor = executor

    async def healthcheck(self) -> None:
        await self.executor.healthcheck()

    def evaluate(
        self,
        *,
        current_price: float,
        last_price: float,
        runtime_config: RuntimeConfig,
    ) -> TradeDecision:
        action = decide_action(
            current_price,
            last_price,
            buy_threshold_pct=runtime_config.buy_threshold_pct,
            sell_threshold_pct=runtime_config.sell_threshold_pct,
        )
        should_execute = action is not TradeAction.HOLD and runtime_config.trade_enabled

        if action is TradeAction.BUY:
            reason = "price rose above buy threshold"
        elif action is TradeAction.SELL:
            reason = "price fell below sell threshold"
        else:
            reason = "price within thresholds"
        if action is not TradeAction.HOLD and not runtime_config.trade_enabled:
            reason = f"{reason}; trade disabled"

        return TradeDecision(
            action=action,
            should_execute=should_execute,
            current_price=current_price,
            last_price=last_price,
            change_pct=price_change_pct(current_price, last_price),
            buy_threshold_pct=runtime_config.buy_threshold_pct,
            sell_threshold_pct=runtime_config.sell_threshold_pct,
            reason=reason,
        )

    async def execute(self, *, decision: TradeDecision, amount: float) -> ExecutionResult:
        try:
            return await self.executor.execute(action=decision.action, amount=amount)
        except asyncio.CancelledError:
            raise
        except Exception as error:
            log_event(
                self._logger,
                level="error",
                event="trade_execution_failed",
                message=f"Error executing trade ({decision.action.value})",
                action=decision.action.value,
                amount=amount,
                error=str(error),
            )
            return ExecutionResult(
                status="failed",
                action=decision.action.value,
                amount=amount,
                token_mint=str(getattr(self.executor, "token_mint", "")),
                reason=str(error),
            )
