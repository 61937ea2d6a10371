from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol

SOL_MINT = "So11111111111111111111111111111111111111112"
LAMPORTS_PER_SOL = 1_000_000_000


def to_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def to_int(value: Any, default: int) -> int:
    try:
        if value is None or value == "":
            return default
        return int(float(str(value).strip()))
    except (TypeError, ValueError):
        return default


def to_float(value: Any, default: float) -> float:
    try:
        if value is None or value == "":
            return default
        return float(str(value).strip())
    except (TypeError, ValueError):
        return default


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class PriceFeedError(RuntimeError):
    """Raised when the price API cannot produce a usable price."""


class WalletError(RuntimeError):
    """Raised when a balance query or transfer against the RPC node fails."""


class TradeAction(str, Enum):
    BUY = "buy"
    SELL = "sell"
    HOLD = "hold"


@dataclass(slots=True, frozen=True)
class PriceObservation:
    asset_id: str
    vs_currency: str
    price: float
    timestamp: str


@dataclass(slots=True, frozen=True)
class WalletBalance:
    address: str
    lamports: int
    sol: float


@dataclass(slots=True, frozen=True)
class RuntimeConfig:
    buy_threshold_pct: float
    sell_threshold_pct: float
    trade_amount: float
    reserve_sol: float
    trade_enabled: bool
    sweep_enabled: bool

    @classmethod
    def from_env_defaults(cls) -> "RuntimeConfig":
        return cls(
            buy_threshold_pct=max(0.0, to_float(os.getenv("BUY_THRESHOLD_PCT"), 5.0)),
            sell_threshold_pct=max(0.0, to_float(os.getenv("SELL_THRESHOLD_PCT"), 3.0)),
            trade_amount=max(0.0, to_float(os.getenv("TRADE_AMOUNT"), 1.0)),
            reserve_sol=max(0.0, to_float(os.getenv("RESERVE_SOL"), 500.0)),
            trade_enabled=to_bool(os.getenv("TRADE_ENABLED"), True),
            sweep_enabled=to_bool(os.getenv("SWEEP_ENABLED"), True),
        )

    @classmethod
    def from_redis(cls, redis_config: dict[str, str], defaults: "RuntimeConfig") -> "RuntimeConfig":
        return cls(
            buy_threshold_pct=max(
                0.0,
                to_float(redis_config.get("buy_threshold_pct"), defaults.buy_threshold_pct),
            ),
            sell_threshold_pct=max(
                0.0,
                to_float(redis_config.get("sell_threshold_pct"), defaults.sell_threshold_pct),
            ),
            trade_amount=max(0.0, to_float(redis_config.get("trade_amount"), defaults.trade_amount)),
            reserve_sol=max(0.0, to_float(redis_config.get("reserve_sol"), defaults.reserve_sol)),
            trade_enabled=to_bool(redis_config.get("trade_enabled"), defaults.trade_enabled),
            sweep_enabled=to_bool(redis_config.get("sweep_enabled"), defaults.sweep_enabled),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True, frozen=True)
class TradeDecision:
    action: TradeAction
    should_execute: bool
    current_price: float
    last_price: float
    change_pct: float
    buy_threshold_pct: float
    sell_threshold_pct: float
    reason: str

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["action"] = self.action.value
        return payload


@dataclass(slots=True, frozen=True)
class ExecutionResult:
    status: str
    action: str
    amount: float
    token_mint: str
    reason: str
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True, frozen=True)
class SweepResult:
    status: str
    balance_lamports: int
    reserve_lamports: int
    excess_lamports: int
    tx_signature: str | None = None
    error: str | None = None

    @property
    def excess_sol(self) -> float:
        return self.excess_lamports / LAMPORTS_PER_SOL

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["excess_sol"] = self.excess_sol
        return payload


class TradeExecutor(Protocol):
    async def connect(self) -> None:
        ...

    async def close(self) -> None:
        ...

    async def healthcheck(self) -> None:
        ...

    async def execute(self, *, action: TradeAction, amount: float) -> ExecutionResult:
        ...
