from __future__ import annotations

import asyncio
import contextlib
import signal

from dotenv import load_dotenv

from threshold_bot.bot_runtime import AppSettings, setup_logger, start_bot
from threshold_bot.common import log_event
from threshold_bot.storage import StorageGateway, StorageSettings
from threshold_bot.trading import (
    CoinGeckoPriceWatcher,
    DryRunTradeExecutor,
    FundSweeper,
    LiveTradeExecutor,
    RuntimeConfig,
    TraderEngine,
    WalletClient,
    parse_keypair,
    parse_pubkey,
)


async def main() -> None:
    load_dotenv()
    app_settings = AppSettings.from_env()
    logger = setup_logger(log_file=app_settings.log_file, level=app_settings.log_level)

    try:
        app_settings.validate()
        trading_wallet = parse_keypair(app_settings.trading_wallet_secret_key, name="TRADING_WALLET_SECRET_KEY")
        withdrawal_address = parse_pubkey(app_settings.withdrawal_wallet, name="withdrawal wallet")
    except ValueError as error:
        log_event(
            logger,
            level="error",
            event="config_invalid",
            message="Invalid configuration",
            error=str(error),
        )
        return

    runtime_defaults = RuntimeConfig.from_env_defaults()
    storage = StorageGateway(StorageSettings.from_env(), logger)
    watcher = CoinGeckoPriceWatcher(
        logger=logger,
        api_base_url=app_settings.price_api_url,
        asset_id=app_settings.price_asset_id,
        vs_currency=app_settings.price_vs_currency,
        timeout_seconds=app_settings.price_timeout_seconds,
    )
    wallet_client = WalletClient(
        logger=logger,
        rpc_url=app_settings.solana_rpc_url,
        commitment=app_settings.rpc_commitment,
        timeout_seconds=app_settings.rpc_timeout_seconds,
    )
    if app_settings.dry_run:
        executor: DryRunTradeExecutor | LiveTradeExecutor = DryRunTradeExecutor(
            logger=logger,
            token_mint=app_settings.token_mint,
        )
    else:
        executor = LiveTradeExecutor(
            logger=logger,
            token_mint=app_settings.token_mint,
            dex_program_id=app_settings.dex_program_id,
            wallet_client=wallet_client,
        )
    trader_engine = TraderEngine(logger=logger, executor=executor)
    sweeper = FundSweeper(
        logger=logger,
        wallet_client=wallet_client,
        trading_wallet=trading_wallet,
        withdrawal_address=withdrawal_address,
        reserve_sol=runtime_defaults.reserve_sol,
        dry_run=app_settings.dry_run,
    )

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def request_shutdown(sig: signal.Signals) -> None:
        logger.info(
            "Shutdown signal received",
            extra={"event": "shutdown_signal_received", "signal": sig.name},
        )
        stop_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, request_shutdown, sig)

    try:
        await storage.connect_optional()
        await watcher.connect()
        await wallet_client.connect()
        await executor.connect()
        await trader_engine.healthcheck()

        await start_bot(
            logger=logger,
            stop_event=stop_event,
            app_settings=app_settings,
            storage=storage,
            watcher=watcher,
            wallet_client=wallet_client,
            trading_address=trading_wallet.pubkey(),
            trader_engine=trader_engine,
            sweeper=sweeper,
            runtime_defaults=runtime_defaults,
        )
    except Exception as error:
        logger.exception(
            "Dependency bootstrap failed",
            extra={"event": "bootstrap_error", "error": str(error)},
        )
    finally:
        with contextlib.suppress(Exception):
            await executor.close()
        with contextlib.suppress(Exception):
            await wallet_client.close()
        with contextlib.suppress(Exception):
            await watcher.close()
        with contextlib.suppress(Exception):
            await storage.close()

        logger.info("Shutdown completed", extra={"event": "shutdown_completed"})


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
