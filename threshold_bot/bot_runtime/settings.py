from __future__ import annotations

import os
from dataclasses import dataclass

from threshold_bot.trading.types import SOL_MINT, to_bool, to_float
from threshold_bot.trading.wallet import DEVNET_RPC_URL
from threshold_bot.trading.watcher import DEFAULT_PRICE_API_URL

DEFAULT_DEX_PROGRAM_ID = "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8"


def normalize_commitment(value: str) -> str:
    commitment = (value or "").strip().lower()
    if commitment in {"processed", "confirmed", "finalized"}:
        return commitment
    return "confirmed"


@dataclass(slots=True)
class AppSettings:
    watch_interval_seconds: float
    solana_rpc_url: str
    rpc_commitment: str
    rpc_timeout_seconds: float
    trading_wallet_secret_key: str
    withdrawal_wallet: str
    price_api_url: str
    price_asset_id: str
    price_vs_currency: str
    price_timeout_seconds: float
    token_mint: str
    dex_program_id: str
    dry_run: bool
    log_file: str
    log_level: str

    @classmethod
    def from_env(cls) -> "AppSettings":
        return cls(
            watch_interval_seconds=max(1.0, to_float(os.getenv("WATCH_INTERVAL_SECONDS"), 60.0)),
            solana_rpc_url=os.getenv("SOLANA_RPC_URL", "").strip() or DEVNET_RPC_URL,
            rpc_commitment=normalize_commitment(os.getenv("SOLANA_COMMITMENT", "confirmed")),
            rpc_timeout_seconds=max(1.0, to_float(os.getenv("SOLANA_RPC_TIMEOUT_SECONDS"), 10.0)),
            trading_wallet_secret_key=os.getenv("TRADING_WALLET_SECRET_KEY", ""),
            withdrawal_wallet=(
                os.getenv("WITHDRAWAL_WALLET_ADDRESS", "").strip()
                or os.getenv("WITHDRAWAL_WALLET_SECRET_KEY", "")
            ),
            price_api_url=os.getenv("PRICE_API_URL", "").strip() or DEFAULT_PRICE_API_URL,
            price_asset_id=os.getenv("PRICE_ASSET_ID", "solana").strip() or "solana",
            price_vs_currency=os.getenv("PRICE_VS_CURRENCY", "usd").strip().lower() or "usd",
            price_timeout_seconds=max(0.5, to_float(os.getenv("PRICE_TIMEOUT_SECONDS"), 8.0)),
            token_mint=os.getenv("TOKEN_MINT", "").strip() or SOL_MINT,
            dex_program_id=os.getenv("DEX_PROGRAM_ID", "").strip() or DEFAULT_DEX_PROGRAM_ID,
            dry_run=to_bool(os.getenv("DRY_RUN"), True),
            log_file=os.getenv("LOG_FILE", "bot.log").strip(),
            log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
        )

    def validate(self) -> None:
        if not self.trading_wallet_secret_key.strip():
            raise ValueError("TRADING_WALLET_SECRET_KEY is required.")
        if not self.withdrawal_wallet.strip():
            raise ValueError("WITHDRAWAL_WALLET_ADDRESS or WITHDRAWAL_WALLET_SECRET_KEY is required.")
