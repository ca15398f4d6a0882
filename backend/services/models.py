"""
Engine Value Objects
Created and owned by a single resolution call; never shared or mutated.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from config.networks import AddressFamily, NetworkDescriptor


# ============================================
# CHAIN DETECTION
# ============================================

@dataclass(frozen=True)
class ActivityReport:
    """Activity of one address on one network"""
    network: NetworkDescriptor
    has_activity: bool = False
    has_balance: bool = False
    has_defi_positions: bool = False
    token_count: int = 0
    error: Optional[str] = None
    native_balance: float = 0.0
    native_balance_usd: Optional[float] = None

    @classmethod
    def failed(cls, network: NetworkDescriptor, error: str) -> "ActivityReport":
        """Error-only report: no evidence fields are populated"""
        return cls(network=network, error=error)


@dataclass(frozen=True)
class DetectionResult:
    address: str
    address_family: AddressFamily
    reports: Tuple[ActivityReport, ...]
    active_chains: Tuple[ActivityReport, ...]
    primary_network: Optional[NetworkDescriptor]
    recommended_networks: Tuple[NetworkDescriptor, ...]
    total_networks_checked: int
    elapsed_seconds: float = field(default=0.0, compare=False)
    suggestions: Tuple[str, ...] = ()

    @property
    def has_activity(self) -> bool:
        return len(self.active_chains) > 0


# ============================================
# POOLS & POSITIONS
# ============================================

@dataclass(frozen=True)
class TokenRef:
    symbol: str = "UNKNOWN"
    address: str = ""
    decimals: int = 0


@dataclass(frozen=True)
class PoolPosition:
    """Canonical shape of one pool or DeFi position, whatever the source"""
    pair_or_position_id: str
    protocol_name: str
    network_name: str
    base_token: TokenRef
    quote_token: TokenRef
    liquidity_usd: float = 0.0
    volume_24h_usd: float = 0.0
    fee_tier: Optional[str] = None
    apr_percent: Optional[float] = None
    source_provider_tag: str = ""
    raw_payload: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def group_key(self) -> str:
        return f"{self.protocol_name} ({self.network_name})"


@dataclass(frozen=True)
class ProtocolGroup:
    key: str
    protocol_name: str
    network_name: str
    value_usd: float
    percentage: float
    positions: Tuple[PoolPosition, ...] = ()


@dataclass(frozen=True)
class AttemptRecord:
    """What one cascade hypothesis tried and found"""
    hypothesis: str
    networks_checked: Tuple[str, ...] = ()
    positions_found: int = 0
    errors: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AggregatedSummary:
    total_usd_value: float
    groups: Tuple[ProtocolGroup, ...]
    total_volume_24h_usd: float = 0.0
    total_positions: int = 0
    networks_found: Tuple[str, ...] = ()
    protocols_found: Tuple[str, ...] = ()
    address: str = ""
    hypothesis: Optional[str] = None
    address_kind: Optional[str] = None
    attempts: Tuple[AttemptRecord, ...] = ()


@dataclass(frozen=True)
class NotFound:
    """Cascade exhausted every hypothesis; an expected terminal state"""
    address: str
    address_family: AddressFamily
    reason: str = "no_pools_found"
    suggestions: Tuple[str, ...] = ()
    attempts: Tuple[AttemptRecord, ...] = ()


# ============================================
# RAW PROVIDER PAYLOADS
# ============================================

SOURCE_MORALIS_PAIR = "moralis_pair"
SOURCE_MORALIS_SOLANA_PAIR = "moralis_solana_pair"
SOURCE_DEXSCREENER_PAIR = "dexscreener_pair"
SOURCE_GECKOTERMINAL_POOL = "geckoterminal_pool"
SOURCE_MORALIS_DEFI_POSITION = "moralis_defi_position"
SOURCE_MORALIS_SOLANA_DEFI_POSITION = "moralis_solana_defi_position"


@dataclass(frozen=True)
class ProviderPayload:
    """One raw pool/position object tagged with where it came from"""
    source: str
    network: NetworkDescriptor
    data: Dict[str, Any] = field(default_factory=dict, compare=False)
    queried_address: str = ""
