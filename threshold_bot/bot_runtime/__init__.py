from .logging import setup_logger
from .loop import LoopState, advance_tick, run_iteration, run_trading_loop, start_bot
from .settings import AppSettings

__all__ = [
    "AppSettings",
    "LoopState",
    "advance_tick",
    "run_iteration",
    "run_trading_loop",
    "setup_logger",
    "start_bot",
]
