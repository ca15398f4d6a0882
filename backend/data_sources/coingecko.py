"""
CoinGecko Price Client
USD price of a network's native asset, used to value native balances
"""
import httpx
from typing import Optional
import logging

from config.settings import Settings, settings as default_settings
from data_sources.base import OutboundLimiter, ProviderClient, expect_dict, to_float
from data_sources.errors import MalformedPayload

logger = logging.getLogger("CoinGecko")

# Native symbol -> CoinGecko coin id
COIN_IDS = {
    "ETH": "ethereum",
    "SOL": "solana",
    "BNB": "binancecoin",
    "POL": "polygon-ecosystem-token",
    "MATIC": "matic-network",
    "AVAX": "avalanche-2",
}


class CoinGeckoClient(ProviderClient):
    SERVICE = "coingecko"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        limiter: Optional[OutboundLimiter] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        config: Settings = default_settings,
    ):
        super().__init__(
            base_url or config.coingecko_url,
            timeout=timeout or config.http_timeout,
            limiter=limiter,
            transport=transport,
        )

    async def get_native_asset_usd_price(self, symbol: str) -> Optional[float]:
        """USD price for a native asset symbol, None when the symbol is not mapped"""
        coin_id = COIN_IDS.get((symbol or "").upper())
        if not coin_id:
            return None

        data = await self._get_json("/simple/price", params={"ids": coin_id, "vs_currencies": "usd"})
        entry = expect_dict(self.SERVICE, data, "simple price").get(coin_id)
        if not isinstance(entry, dict) or "usd" not in entry:
            raise MalformedPayload(self.SERVICE, f"no usd price for {coin_id}")

        price = to_float(entry.get("usd"))
        logger.debug(f"🪙 {symbol} = ${price:,.2f}")
        return price
