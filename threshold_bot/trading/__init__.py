from .engine import TraderEngine, decide_action, price_change_pct
from .executors import DryRunTradeExecutor, LiveTradeExecutor
from .sweeper import FundSweeper
from .types import (
    LAMPORTS_PER_SOL,
    SOL_MINT,
    ExecutionResult,
    PriceFeedError,
    PriceObservation,
    RuntimeConfig,
    SweepResult,
    TradeAction,
    TradeDecision,
    WalletBalance,
    WalletError,
)
from .wallet import WalletClient, lamports_to_sol, parse_keypair, parse_pubkey, sol_to_lamports
from .watcher import CoinGeckoPriceWatcher

__all__ = [
    "CoinGeckoPriceWatcher",
    "DryRunTradeExecutor",
    "ExecutionResult",
    "FundSweeper",
    "LAMPORTS_PER_SOL",
    "LiveTradeExecutor",
    "PriceFeedError",
    "PriceObservation",
    "RuntimeConfig",
    "SOL_MINT",
    "SweepResult",
    "TradeAction",
    "TradeDecision",
    "TraderEngine",
    "WalletBalance",
    "WalletClient",
    "WalletError",
    "decide_action",
    "lamports_to_sol",
    "parse_keypair",
    "parse_pubkey",
    "price_change_pct",
    "sol_to_lamports",
]
