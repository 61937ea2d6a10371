from __future__ import annotations

import asyncio
import logging
import math
from typing import Any

import aiohttp

from threshold_bot.common import log_event

from .types import PriceFeedError, PriceObservation, now_iso

DEFAULT_PRICE_API_URL = "https://api.coingecko.com/api/v3"


class CoinGeckoPriceWatcher:
    """Reads a spot price from the CoinGecko ``simple/price`` endpoint."""

    def __init__(
        self,
        *,
        logger: logging.Logger,
        api_base_url: str = DEFAULT_PRICE_API_URL,
        asset_id: str = "solana",
        vs_currency: str = "usd",
        timeout_seconds: float = 8.0,
    ) -> None:
        self._logger = logger
        self._api_base_url = api_base_url.rstrip("/")
        self._asset_id = asset_id
        self._vs_currency = vs_currency
        self._timeout_seconds = timeout_seconds
        self._session: aiohttp.ClientSession | None = None

    @property
    def asset_id(self) -> str:
        return self._asset_id

    @property
    def vs_currency(self) -> str:
        return self._vs_currency

    async def connect(self) -> None:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self._timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def healthcheck(self) -> None:
        await self.connect()

    async def fetch_price(self) -> PriceObservation:
        try:
            data = await self._request_json()
            price = self._extract_price(data)
        except asyncio.CancelledError:
            raise
        except Exception as error:
            log_event(
                self._logger,
                level="error",
                event="price_fetch_failed",
                message="Error fetching price",
                asset_id=self._asset_id,
                vs_currency=self._vs_currency,
                error=str(error),
            )
            if isinstance(error, PriceFeedError):
                raise
            raise PriceFeedError(f"Price request failed: {error}") from error

        return PriceObservation(
            asset_id=self._asset_id,
            vs_currency=self._vs_currency,
            price=price,
            timestamp=now_iso(),
        )

    async def _request_json(self) -> Any:
        if self._session is None:
            await self.connect()
        if self._session is None:
            raise RuntimeError("Price API HTTP session is not initialized.")

        endpoint = f"{self._api_base_url}/simple/price"
        params = {
            "ids": self._asset_id,
            "vs_currencies": self._vs_currency,
        }

        async with self._session.get(endpoint, params=params) as response:
            data = await response.json(content_type=None)
            if response.status >= 400:
                raise PriceFeedError(f"Price API request failed: status={response.status} body={data}")

        return data

    def _extract_price(self, data: Any) -> float:
        asset = data.get(self._asset_id) if isinstance(data, dict) else None
        if not isinstance(asset, dict) or self._vs_currency not in asset:
            raise PriceFeedError(f"Unexpected price API response: {data}")

        raw = asset[self._vs_currency]
        if isinstance(raw, bool):
            raise PriceFeedError(f"Invalid price value: {raw!r}")
        try:
            price = float(raw)
        except (TypeError, ValueError) as error:
            raise PriceFeedError(f"Invalid price value: {raw!r}") from error

        if not math.isfinite(price) or price <= 0:
            raise PriceFeedError(f"Invalid price value: {raw!r}")

        return price
