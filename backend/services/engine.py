"""
Address Resolution Engine
Entry point wiring the providers into chain detection and the resolution cascade.
"""
import logging
from typing import Optional, Union

from config.networks import DEFAULT_CATALOG, NetworkCatalog
from config.settings import Settings, settings as default_settings
from data_sources import (
    CoinGeckoClient,
    DexScreenerClient,
    GeckoTerminalClient,
    MoralisEVMClient,
    MoralisSolanaClient,
    OutboundLimiter,
)
from services.address_classifier import require_known_family
from services.chain_probe import ChainProbe
from services.fan_out import FanOutCoordinator
from services.models import AggregatedSummary, DetectionResult, NotFound
from services.resolution_cascade import ResolutionCascade

logger = logging.getLogger("Engine")


class AddressResolutionEngine:
    """
    detect_chains(): where is this address active?
    resolve_address(): what is this address and which pools/positions belong to it?

    strict=True rejects addresses that are neither EVM nor Solana shaped
    (InvalidAddressFormat) instead of checking every network.
    """

    def __init__(self, coordinator: FanOutCoordinator, cascade: ResolutionCascade):
        self.coordinator = coordinator
        self.cascade = cascade

    async def detect_chains(self, address: str, strict: bool = False) -> DetectionResult:
        if strict:
            require_known_family(address)
        return await self.coordinator.detect(address)

    async def resolve_address(self, address: str, strict: bool = False) -> Union[AggregatedSummary, NotFound]:
        if strict:
            require_known_family(address)
        return await self.cascade.resolve(address)


def build_engine(
    config: Settings = default_settings,
    catalog: NetworkCatalog = DEFAULT_CATALOG,
) -> AddressResolutionEngine:
    """Wire real provider clients that share one outbound limiter"""
    limiter = OutboundLimiter(config.max_concurrent_requests)

    moralis_evm = MoralisEVMClient(limiter=limiter, config=config)
    moralis_solana = MoralisSolanaClient(limiter=limiter, config=config)
    dexscreener = DexScreenerClient(limiter=limiter, config=config)
    geckoterminal = GeckoTerminalClient(limiter=limiter, config=config)
    coingecko = CoinGeckoClient(limiter=limiter, config=config)

    if not config.moralis_api_key:
        logger.warning("⚠️ MORALIS_API_KEY not set - balance, token and DeFi lookups will fail")

    coordinator = FanOutCoordinator(
        probe=ChainProbe(moralis_evm, moralis_solana),
        price_provider=coingecko,
        catalog=catalog,
        deadline=config.detection_deadline,
    )
    cascade = ResolutionCascade(
        moralis_evm=moralis_evm,
        moralis_solana=moralis_solana,
        dexscreener=dexscreener,
        geckoterminal=geckoterminal,
        catalog=catalog,
        probe_timeout=config.probe_timeout,
    )
    return AddressResolutionEngine(coordinator, cascade)


_engine_instance: Optional[AddressResolutionEngine] = None


def get_engine() -> AddressResolutionEngine:
    global _engine_instance
    if _engine_instance is None:
        _engine_instance = build_engine()
    return _engine_instance
