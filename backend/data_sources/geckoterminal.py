"""
GeckoTerminal API Client
Direct pool lookup by address (EVM chains and Solana)
"""
import httpx
from typing import Optional, Dict, Any
import logging

from config.networks import NetworkDescriptor
from config.settings import Settings, settings as default_settings
from data_sources.base import OutboundLimiter, ProviderClient, expect_dict

logger = logging.getLogger("GeckoTerminal")


class GeckoTerminalClient(ProviderClient):
    """Client for GeckoTerminal API (free, no API key needed)"""

    SERVICE = "geckoterminal"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        limiter: Optional[OutboundLimiter] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        config: Settings = default_settings,
    ):
        super().__init__(
            base_url or config.geckoterminal_url,
            timeout=timeout or config.http_timeout,
            limiter=limiter,
            transport=transport,
        )
        logger.info("🦎 GeckoTerminal client initialized")

    async def get_pair_info(self, pool_address: str, network: NetworkDescriptor) -> Optional[Dict[str, Any]]:
        """
        Fetch pool data by address

        Args:
            pool_address: Pool contract address (0x...) or Solana pool account
            network: Network to look on

        Returns:
            Raw GeckoTerminal pool resource ({"id", "attributes", "relationships"}) or None
        """
        if not network.gecko_network:
            return None

        address_for_url = pool_address.lower() if network.is_evm else pool_address
        data = await self._get_json(
            f"/networks/{network.gecko_network}/pools/{address_for_url}",
            allow_not_found=True,
        )

        if data is None:
            logger.debug(f"Pool not found on GeckoTerminal: {pool_address} ({network.id})")
            return None

        pool_data = expect_dict(self.SERVICE, data, "pool").get("data")
        if not isinstance(pool_data, dict) or not pool_data.get("attributes"):
            return None

        return pool_data
