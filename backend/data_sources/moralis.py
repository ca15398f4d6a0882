"""
Moralis API Clients
Balance, token, DeFi and pair-discovery queries for EVM chains (deep-index API)
and Solana (solana-gateway API). Requires MORALIS_API_KEY.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from config.networks import NetworkDescriptor
from config.settings import Settings, settings as default_settings
from data_sources.base import OutboundLimiter, ProviderClient, expect_dict, to_float
from data_sources.errors import MalformedPayload, ProviderUnavailable

logger = logging.getLogger("Moralis")

WEI_PER_ETH = 10 ** 18
LAMPORTS_PER_SOL = 10 ** 9


def _unwrap_list(service: str, data: Any, *keys: str) -> List[Dict[str, Any]]:
    """Moralis answers either a bare list or an object wrapping one"""
    if data is None:
        return []
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in keys:
            value = data.get(key)
            if isinstance(value, list):
                return value
        return []
    raise MalformedPayload(service, f"unexpected payload type {type(data).__name__}")


class _MoralisClient(ProviderClient):
    SERVICE = "moralis"

    def __init__(self, base_url: str, api_key: Optional[str], **kwargs):
        super().__init__(base_url, **kwargs)
        self.api_key = api_key

    def _headers(self) -> Dict[str, str]:
        headers = super()._headers()
        if self.api_key:
            headers["X-API-Key"] = self.api_key
        return headers

    async def _get_json(self, path, params=None, allow_not_found=False):
        if not self.api_key:
            raise ProviderUnavailable(self.SERVICE, "MORALIS_API_KEY not configured")
        return await super()._get_json(path, params=params, allow_not_found=allow_not_found)


class MoralisEVMClient(_MoralisClient):
    """Moralis deep-index API (EVM chains)"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        limiter: Optional[OutboundLimiter] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        config: Settings = default_settings,
    ):
        super().__init__(
            base_url or config.moralis_evm_url,
            api_key if api_key is not None else config.moralis_api_key,
            timeout=timeout or config.http_timeout,
            limiter=limiter,
            transport=transport,
        )
        logger.info("🔷 Moralis EVM client initialized")

    async def get_native_balance(self, address: str, network: NetworkDescriptor) -> float:
        """Native balance in whole units (wei / 1e18)"""
        data = await self._get_json(f"/{address}/balance", params={"chain": network.moralis_chain})
        data = expect_dict(self.SERVICE, data, "balance")
        return to_float(data.get("balance")) / WEI_PER_ETH

    async def get_token_balances(self, address: str, network: NetworkDescriptor, limit: int = 10) -> List[Dict[str, Any]]:
        data = await self._get_json(
            f"/{address}/erc20",
            params={"chain": network.moralis_chain, "limit": limit},
        )
        return _unwrap_list(self.SERVICE, data, "result")

    async def get_defi_summary(self, address: str, network: NetworkDescriptor) -> float:
        """Total USD value locked in DeFi protocols"""
        data = await self._get_json(
            f"/wallets/{address}/defi/summary",
            params={"chain": network.moralis_chain},
        )
        data = expect_dict(self.SERVICE, data, "defi summary")
        return to_float(data.get("total_usd_value"))

    async def get_defi_positions(self, address: str, network: NetworkDescriptor) -> List[Dict[str, Any]]:
        data = await self._get_json(
            f"/wallets/{address}/defi/positions",
            params={"chain": network.moralis_chain},
        )
        return _unwrap_list(self.SERVICE, data, "result", "positions")

    async def find_pairs_for_token(self, token_address: str, network: NetworkDescriptor, limit: int = 50) -> List[Dict[str, Any]]:
        """All trading pairs containing the token on one chain"""
        data = await self._get_json(
            f"/erc20/{token_address}/pairs",
            params={"chain": network.moralis_chain, "limit": limit},
            allow_not_found=True,
        )
        pairs = _unwrap_list(self.SERVICE, data, "pairs", "result")
        logger.debug(f"🔍 Moralis found {len(pairs)} pairs for {token_address[:10]} on {network.id}")
        return pairs


class MoralisSolanaClient(_MoralisClient):
    """Moralis solana-gateway API"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        limiter: Optional[OutboundLimiter] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        config: Settings = default_settings,
    ):
        super().__init__(
            base_url or config.moralis_solana_url,
            api_key if api_key is not None else config.moralis_api_key,
            timeout=timeout or config.http_timeout,
            limiter=limiter,
            transport=transport,
        )
        logger.info("🟣 Moralis Solana client initialized")

    async def get_native_balance(self, address: str, network: NetworkDescriptor) -> float:
        """SOL balance; falls back to lamports when the decimal field is absent"""
        data = await self._get_json(f"/account/{network.moralis_chain}/{address}/balance")
        data = expect_dict(self.SERVICE, data, "balance")
        if data.get("solana") not in (None, ""):
            return to_float(data.get("solana"))
        return to_float(data.get("lamports")) / LAMPORTS_PER_SOL

    async def get_token_balances(self, address: str, network: NetworkDescriptor) -> List[Dict[str, Any]]:
        data = await self._get_json(f"/account/{network.moralis_chain}/{address}/tokens")
        return _unwrap_list(self.SERVICE, data, "tokens", "result")

    async def get_nfts(self, address: str, network: NetworkDescriptor) -> List[Dict[str, Any]]:
        data = await self._get_json(f"/account/{network.moralis_chain}/{address}/nft")
        return _unwrap_list(self.SERVICE, data, "result", "nfts")

    async def get_portfolio_value(self, address: str, network: NetworkDescriptor) -> float:
        data = await self._get_json(f"/account/{network.moralis_chain}/{address}/portfolio")
        data = expect_dict(self.SERVICE, data, "portfolio")
        return to_float(data.get("total_value_usd"))

    async def get_defi_positions(self, address: str, network: NetworkDescriptor) -> List[Dict[str, Any]]:
        data = await self._get_json(f"/account/{network.moralis_chain}/{address}/defi/positions")
        return _unwrap_list(self.SERVICE, data, "result", "positions")

    async def find_pairs_for_token(self, token_address: str, network: NetworkDescriptor, limit: int = 50) -> List[Dict[str, Any]]:
        data = await self._get_json(
            f"/token/{network.moralis_chain}/{token_address}/pairs",
            params={"limit": limit},
            allow_not_found=True,
        )
        pairs = _unwrap_list(self.SERVICE, data, "pairs", "result")
        logger.debug(f"🟣 Moralis found {len(pairs)} Solana pairs for {token_address[:10]}")
        return pairs
