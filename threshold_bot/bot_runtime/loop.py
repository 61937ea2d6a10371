from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from solders.pubkey import Pubkey

from threshold_bot.common import guarded_call, log_event, wait_with_stop
from threshold_bot.storage import StorageGateway
from threshold_bot.trading import (
    CoinGeckoPriceWatcher,
    FundSweeper,
    RuntimeConfig,
    TradeAction,
    TraderEngine,
    WalletClient,
)

from .settings import AppSettings


@dataclass(slots=True)
class LoopState:
    last_known_price: float
    iterations: int = 0
    trades: int = 0


def advance_tick(next_tick: float, *, now: float, interval: float) -> float:
    """Return the next deadline on the fixed cadence. Ticks already in the past are skipped."""
    next_tick += interval
    if next_tick <= now:
        missed_cycles = int((now - next_tick) / interval) + 1
        next_tick += missed_cycles * interval
    return next_tick


async def resolve_runtime_config(
    *,
    logger: logging.Logger,
    storage: StorageGateway,
    runtime_defaults: RuntimeConfig,
) -> RuntimeConfig:
    overrides = await guarded_call(
        storage.get_runtime_config,
        logger=logger,
        event="runtime_config_read_failed",
        message="Falling back to default runtime config",
        default={},
    )
    return RuntimeConfig.from_redis(overrides or {}, runtime_defaults)


async def run_iteration(
    *,
    logger: logging.Logger,
    state: LoopState,
    storage: StorageGateway,
    watcher: CoinGeckoPriceWatcher,
    trader_engine: TraderEngine,
    sweeper: FundSweeper,
    runtime_defaults: RuntimeConfig,
) -> None:
    state.iterations += 1

    observation = await watcher.fetch_price()
    log_event(
        logger,
        level="info",
        event="price_observed",
        message=f"Current price: ${observation.price}",
        price=observation.price,
        asset_id=observation.asset_id,
    )
    await guarded_call(
        lambda: storage.record_price(
            asset=observation.asset_id,
            price=observation.price,
            raw={"vs_currency": observation.vs_currency, "timestamp": observation.timestamp},
        ),
        logger=logger,
        event="price_record_failed",
        message="Failed to record price snapshot",
    )

    runtime_config = await resolve_runtime_config(
        logger=logger,
        storage=storage,
        runtime_defaults=runtime_defaults,
    )
    decision = trader_engine.evaluate(
        current_price=observation.price,
        last_price=state.last_known_price,
        runtime_config=runtime_config,
    )
    log_event(
        logger,
        level="info",
        event="trade_decision",
        message=f"Trade action: {decision.action.value}",
        action=decision.action.value,
        change_pct=round(decision.change_pct, 4),
        reason=decision.reason,
    )
    snapshot = decision.to_dict()
    if decision.should_execute:
        result = await trader_engine.execute(decision=decision, amount=runtime_config.trade_amount)
        snapshot["execution"] = result.to_dict()
        state.last_known_price = observation.price
        state.trades += 1
    elif decision.action is not TradeAction.HOLD:
        log_event(
            logger,
            level="info",
            event="trade_skipped",
            message="Trade signal ignored while trading is disabled",
            action=decision.action.value,
        )
    await guarded_call(
        lambda: storage.record_decision(snapshot),
        logger=logger,
        event="decision_record_failed",
        message="Failed to record decision snapshot",
    )

    if runtime_config.sweep_enabled:
        sweep_result = await sweeper.sweep(reserve_sol=runtime_config.reserve_sol)
        await guarded_call(
            lambda: storage.record_sweep(sweep_result.to_dict()),
            logger=logger,
            event="sweep_record_failed",
            message="Failed to record sweep snapshot",
        )

    await guarded_call(
        storage.update_heartbeat,
        logger=logger,
        event="heartbeat_failed",
        message="Failed to update heartbeat",
    )


async def run_trading_loop(
    *,
    logger: logging.Logger,
    stop_event: asyncio.Event,
    app_settings: AppSettings,
    storage: StorageGateway,
    watcher: CoinGeckoPriceWatcher,
    trader_engine: TraderEngine,
    sweeper: FundSweeper,
    runtime_defaults: RuntimeConfig,
) -> LoopState:
    initial = await watcher.fetch_price()
    state = LoopState(last_known_price=initial.price)
    log_event(
        logger,
        level="info",
        event="loop_started",
        message=f"Starting trading loop with initial price: ${initial.price}",
        price=initial.price,
    )

    loop = asyncio.get_running_loop()
    interval = app_settings.watch_interval_seconds
    next_tick = loop.time()

    while not stop_event.is_set():
        try:
            await run_iteration(
                logger=logger,
                state=state,
                storage=storage,
                watcher=watcher,
                trader_engine=trader_engine,
                sweeper=sweeper,
                runtime_defaults=runtime_defaults,
            )
        except asyncio.CancelledError:
            raise
        except Exception as error:
            logger.exception(
                "Error in trading loop",
                extra={"event": "main_loop_error", "error": str(error), "iteration": state.iterations},
            )
        finally:
            next_tick = advance_tick(next_tick, now=loop.time(), interval=interval)

        await wait_with_stop(stop_event, max(0.0, next_tick - loop.time()))

    return state


async def start_bot(
    *,
    logger: logging.Logger,
    stop_event: asyncio.Event,
    app_settings: AppSettings,
    storage: StorageGateway,
    watcher: CoinGeckoPriceWatcher,
    wallet_client: WalletClient,
    trading_address: Pubkey,
    trader_engine: TraderEngine,
    sweeper: FundSweeper,
    runtime_defaults: RuntimeConfig,
) -> LoopState | None:
    try:
        balance = await wallet_client.get_balance(trading_address)
        if balance.lamports <= 0:
            log_event(
                logger,
                level="error",
                event="insufficient_funds",
                message="Insufficient funds in the trading wallet.",
                address=balance.address,
            )
            return None

        log_event(
            logger,
            level="info",
            event="bot_starting",
            message="Starting the trading bot...",
            dry_run=app_settings.dry_run,
            watch_interval_seconds=app_settings.watch_interval_seconds,
        )
        return await run_trading_loop(
            logger=logger,
            stop_event=stop_event,
            app_settings=app_settings,
            storage=storage,
            watcher=watcher,
            trader_engine=trader_engine,
            sweeper=sweeper,
            runtime_defaults=runtime_defaults,
        )
    except asyncio.CancelledError:
        raise
    except Exception as error:
        logger.exception(
            "Error starting trading bot",
            extra={"event": "startup_error", "error": str(error)},
        )
        return None
