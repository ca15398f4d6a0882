"""
DexScreener API Client
Token pair search (broad multi-DEX coverage) and direct pair lookup.
Free, no API key needed. Pairs endpoints are limited to 300 req/min.
"""
import httpx
from typing import Optional, Dict, Any, List
import logging

from config.networks import NetworkDescriptor
from config.settings import Settings, settings as default_settings
from data_sources.base import OutboundLimiter, ProviderClient, expect_dict, expect_list

logger = logging.getLogger("DexScreener")


def _address_for_url(address: str, network: NetworkDescriptor) -> str:
    # Solana addresses are case-sensitive (base58), EVM addresses are not
    return address.lower() if network.is_evm else address


class DexScreenerClient(ProviderClient):
    """Client for DexScreener API"""

    SERVICE = "dexscreener"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        limiter: Optional[OutboundLimiter] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        config: Settings = default_settings,
    ):
        super().__init__(
            base_url or config.dexscreener_url,
            timeout=timeout or config.http_timeout,
            limiter=limiter,
            transport=transport,
        )
        logger.info("📊 DexScreener client initialized")

    async def find_pairs_for_token(self, token_address: str, network: NetworkDescriptor) -> List[Dict[str, Any]]:
        """
        All pools/pairs containing the token on one chain.

        Args:
            token_address: Token contract (EVM) or mint (Solana)
            network: Network to search

        Returns:
            Raw DexScreener pair objects (possibly empty)
        """
        token = _address_for_url(token_address, network)
        data = await self._get_json(
            f"/token-pairs/v1/{network.dexscreener_chain}/{token}",
            allow_not_found=True,
        )
        if data is None:
            return []
        pairs = expect_list(self.SERVICE, data, "token pairs")
        logger.debug(f"DexScreener found {len(pairs)} pairs for {token_address[:10]} on {network.id}")
        return [p for p in pairs if isinstance(p, dict)]

    async def get_pair_info(self, pair_address: str, network: NetworkDescriptor) -> Optional[Dict[str, Any]]:
        """
        Fetch a single pair by its pool/pair contract address.

        Returns:
            Raw pair object, or None when DexScreener does not know the pair
        """
        pair = _address_for_url(pair_address, network)
        data = await self._get_json(
            f"/latest/dex/pairs/{network.dexscreener_chain}/{pair}",
            allow_not_found=True,
        )
        if data is None:
            return None

        data = expect_dict(self.SERVICE, data, "pair lookup")
        pairs = data.get("pairs")
        found = data.get("pair") or (pairs[0] if isinstance(pairs, list) and pairs else None)

        if not found:
            logger.debug(f"No pair data found for {pair_address} on {network.id}")
            return None

        return expect_dict(self.SERVICE, found, "pair")
