"""
Data Sources Package
Async clients for the upstream blockchain-data providers
"""

from .errors import (
    ProviderError,
    ProviderUnavailable,
    ProviderRateLimited,
    ProviderTimeout,
    MalformedPayload,
)
from .base import OutboundLimiter, ProviderClient
from .moralis import MoralisEVMClient, MoralisSolanaClient
from .dexscreener import DexScreenerClient
from .geckoterminal import GeckoTerminalClient
from .coingecko import CoinGeckoClient

__all__ = [
    "ProviderError",
    "ProviderUnavailable",
    "ProviderRateLimited",
    "ProviderTimeout",
    "MalformedPayload",
    "OutboundLimiter",
    "ProviderClient",
    "MoralisEVMClient",
    "MoralisSolanaClient",
    "DexScreenerClient",
    "GeckoTerminalClient",
    "CoinGeckoClient",
]
