"""Threshold trading bot with an excess-balance sweep for Solana wallets."""

__version__ = "0.1.0"
