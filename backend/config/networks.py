"""
Network Catalog
Ordered, immutable list of the blockchain networks the engine probes.
EVM networks come first (Ethereum first as the most common), then non-EVM.
Order drives fan-out ordering, report ordering and the final tie-break.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class AddressFamily(str, Enum):
    """Syntactic category of an address string"""
    EVM = "evm"
    SOLANA = "solana"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class NetworkDescriptor:
    """One blockchain network and its provider-specific chain keys"""
    id: str
    name: str
    family: AddressFamily
    moralis_chain: str
    dexscreener_chain: str
    gecko_network: Optional[str]
    native_symbol: str

    @property
    def is_evm(self) -> bool:
        return self.family == AddressFamily.EVM


# ============================================
# DEFAULT CATALOG
# ============================================

ETHEREUM = NetworkDescriptor(
    id="eth",
    name="Ethereum",
    family=AddressFamily.EVM,
    moralis_chain="eth",
    dexscreener_chain="ethereum",
    gecko_network="eth",
    native_symbol="ETH",
)

BASE = NetworkDescriptor(
    id="base",
    name="Base",
    family=AddressFamily.EVM,
    moralis_chain="base",
    dexscreener_chain="base",
    gecko_network="base",
    native_symbol="ETH",
)

ARBITRUM = NetworkDescriptor(
    id="arbitrum",
    name="Arbitrum",
    family=AddressFamily.EVM,
    moralis_chain="arbitrum",
    dexscreener_chain="arbitrum",
    gecko_network="arbitrum",
    native_symbol="ETH",
)

OPTIMISM = NetworkDescriptor(
    id="optimism",
    name="Optimism",
    family=AddressFamily.EVM,
    moralis_chain="optimism",
    dexscreener_chain="optimism",
    gecko_network="optimism",
    native_symbol="ETH",
)

POLYGON = NetworkDescriptor(
    id="polygon",
    name="Polygon",
    family=AddressFamily.EVM,
    moralis_chain="polygon",
    dexscreener_chain="polygon",
    gecko_network="polygon_pos",
    native_symbol="POL",
)

BSC = NetworkDescriptor(
    id="bsc",
    name="BSC",
    family=AddressFamily.EVM,
    moralis_chain="bsc",
    dexscreener_chain="bsc",
    gecko_network="bsc",
    native_symbol="BNB",
)

SOLANA = NetworkDescriptor(
    id="solana",
    name="Solana",
    family=AddressFamily.SOLANA,
    moralis_chain="mainnet",
    dexscreener_chain="solana",
    gecko_network="solana",
    native_symbol="SOL",
)

NetworkCatalog = Tuple[NetworkDescriptor, ...]

DEFAULT_CATALOG: NetworkCatalog = (
    ETHEREUM,
    BASE,
    ARBITRUM,
    OPTIMISM,
    POLYGON,
    BSC,
    SOLANA,
)


def evm_networks(catalog: NetworkCatalog = DEFAULT_CATALOG) -> NetworkCatalog:
    """EVM networks in catalog order"""
    return tuple(n for n in catalog if n.family == AddressFamily.EVM)


def solana_networks(catalog: NetworkCatalog = DEFAULT_CATALOG) -> NetworkCatalog:
    """Solana networks in catalog order"""
    return tuple(n for n in catalog if n.family == AddressFamily.SOLANA)


def get_network(network_id: str, catalog: NetworkCatalog = DEFAULT_CATALOG) -> Optional[NetworkDescriptor]:
    """Get network by id (case-insensitive)"""
    wanted = (network_id or "").lower()
    for network in catalog:
        if network.id == wanted:
            return network
    return None


def catalog_index(network: NetworkDescriptor, catalog: NetworkCatalog = DEFAULT_CATALOG) -> int:
    """Position of a network in the catalog; unknown networks sort last"""
    try:
        return catalog.index(network)
    except ValueError:
        return len(catalog)
