"""
Result Normalizer
Maps every provider's pool/position payload into one PoolPosition shape and
aggregates them into per-protocol groups and grand totals.

Pure and total: no I/O, never raises on odd payloads. Missing numbers become
0, missing symbols become "UNKNOWN".
"""
import logging
import math
import re
from collections import OrderedDict
from typing import Any, Callable, Dict, Iterable, List, Optional

from config.networks import NetworkDescriptor
from services.models import (
    AggregatedSummary,
    PoolPosition,
    ProtocolGroup,
    ProviderPayload,
    TokenRef,
    SOURCE_DEXSCREENER_PAIR,
    SOURCE_GECKOTERMINAL_POOL,
    SOURCE_MORALIS_DEFI_POSITION,
    SOURCE_MORALIS_PAIR,
    SOURCE_MORALIS_SOLANA_DEFI_POSITION,
    SOURCE_MORALIS_SOLANA_PAIR,
)

logger = logging.getLogger("Normalizer")

UNKNOWN_SYMBOL = "UNKNOWN"
UNKNOWN_PROTOCOL = "Unknown DEX"

# Provider dex/protocol ids -> display names
PROTOCOL_NAMES = {
    "uniswap": "Uniswap",
    "uniswapv2": "Uniswap V2",
    "uniswap-v2": "Uniswap V2",
    "uniswapv3": "Uniswap V3",
    "uniswap-v3": "Uniswap V3",
    "sushiswap": "SushiSwap",
    "sushiswap-v2": "SushiSwap",
    "curve": "Curve",
    "balancer": "Balancer",
    "pancakeswap": "PancakeSwap",
    "aerodrome": "Aerodrome",
    "aerodrome-slipstream": "Aerodrome Slipstream",
    "velodrome": "Velodrome",
    "camelot": "Camelot",
    "quickswap": "QuickSwap",
    "raydium": "Raydium",
    "orca": "Orca",
    "meteora": "Meteora",
    "jupiter": "Jupiter",
    "aave-v3": "Aave V3",
    "compound-v3": "Compound V3",
    "lido": "Lido",
}

FEE_IN_NAME_PATTERN = re.compile(r"(\d+\.?\d*)\s*%")


# ============================================
# FIELD HELPERS
# ============================================

def _first(data: Dict[str, Any], *keys: str) -> Any:
    """First non-empty value among keys"""
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return value
    return None


def _dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _usd(value: Any) -> float:
    """Non-negative finite float; anything else is 0"""
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


def _optional_float(value: Any) -> Optional[float]:
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def _int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return default


def _default_decimals(network: NetworkDescriptor) -> int:
    return 18 if network.is_evm else 9


def _token(data: Any, network: NetworkDescriptor, *, symbol_keys=("symbol",), address_keys=("address",), decimals_keys=("decimals",)) -> TokenRef:
    data = _dict(data)
    symbol = _first(data, *symbol_keys)
    return TokenRef(
        symbol=str(symbol) if symbol else UNKNOWN_SYMBOL,
        address=str(_first(data, *address_keys) or ""),
        decimals=_int(_first(data, *decimals_keys), _default_decimals(network)),
    )


def protocol_display_name(raw: Any, label: Optional[str] = None) -> str:
    """uniswap-v3 -> Uniswap V3; unknown ids are title-cased"""
    raw = str(raw or "").strip()
    if not raw:
        return UNKNOWN_PROTOCOL
    key = re.sub(r"[\s_]+", "-", raw.lower())
    name = PROTOCOL_NAMES.get(key)
    if name is None:
        if raw != raw.lower():
            # Already a display name
            name = raw
        else:
            name = re.sub(r"-+", " ", key).title()
    if label and label.lower() not in name.lower():
        name = f"{name} {label.upper()}"
    return name


def fee_from_name(name: Any) -> Optional[str]:
    """'WETH / USDC 0.05%' -> '0.05%'"""
    if not name:
        return None
    match = FEE_IN_NAME_PATTERN.search(str(name))
    return f"{match.group(1)}%" if match else None


def _fee_tier(value: Any) -> Optional[str]:
    if value in (None, "", "N/A"):
        return None
    return str(value)


def _order_tokens(first: TokenRef, second: TokenRef, queried: str):
    """Put the queried token on the base side when it is the second one"""
    if queried and second.address and second.address.lower() == queried.lower() and first.address.lower() != queried.lower():
        return second, first
    return first, second


# ============================================
# PER-SOURCE MAPPERS
# ============================================

def _from_moralis_pair(payload: ProviderPayload) -> PoolPosition:
    """Moralis token-pairs item (EVM snake_case or Solana camelCase)"""
    data = _dict(payload.data)
    network = payload.network

    token_keys = dict(
        symbol_keys=("token_symbol", "tokenSymbol", "symbol"),
        address_keys=("token_address", "tokenAddress", "address"),
        decimals_keys=("token_decimals", "tokenDecimals", "decimals"),
    )

    sides = data.get("pair")
    if isinstance(sides, list) and sides:
        first = _token(sides[0], network, **token_keys)
        second = _token(sides[1] if len(sides) > 1 else {}, network, **token_keys)
    else:
        first = _token(_first(data, "token0", "tokenA") or {"address": _first(data, "token_a")}, network, **token_keys)
        second = _token(_first(data, "token1", "tokenB") or {"address": _first(data, "token_b")}, network, **token_keys)
    base, quote = _order_tokens(first, second, payload.queried_address)

    pair_id = _first(data, "pair_address", "pairAddress", "address") or ""
    label = _first(data, "pair_label", "pairLabel")

    return PoolPosition(
        pair_or_position_id=str(pair_id),
        protocol_name=protocol_display_name(_first(data, "exchange_name", "exchangeName", "exchange", "dex")),
        network_name=network.name,
        base_token=base,
        quote_token=quote,
        liquidity_usd=_usd(_first(data, "liquidity_usd", "liquidityUsd")),
        volume_24h_usd=_usd(_first(data, "volume_24h_usd", "volume24hrUsd", "volume_24h")),
        fee_tier=_fee_tier(_first(data, "fee_tier", "feeTier")) or fee_from_name(label),
        apr_percent=_optional_float(_first(data, "apr", "apy")),
        source_provider_tag=payload.source,
        raw_payload=data,
    )


def _from_dexscreener_pair(payload: ProviderPayload) -> PoolPosition:
    data = _dict(payload.data)
    network = payload.network

    first = _token(data.get("baseToken"), network)
    second = _token(data.get("quoteToken"), network)
    base, quote = _order_tokens(first, second, payload.queried_address)

    labels = data.get("labels")
    label = labels[0] if isinstance(labels, list) and labels and isinstance(labels[0], str) else None

    return PoolPosition(
        pair_or_position_id=str(data.get("pairAddress") or ""),
        protocol_name=protocol_display_name(data.get("dexId"), label),
        network_name=network.name,
        base_token=base,
        quote_token=quote,
        liquidity_usd=_usd(_dict(data.get("liquidity")).get("usd")),
        volume_24h_usd=_usd(_dict(data.get("volume")).get("h24")),
        fee_tier=None,
        apr_percent=None,
        source_provider_tag=payload.source,
        raw_payload=data,
    )


def _from_geckoterminal_pool(payload: ProviderPayload) -> PoolPosition:
    data = _dict(payload.data)
    network = payload.network
    attrs = _dict(data.get("attributes"))
    relationships = _dict(data.get("relationships"))

    pool_name = str(attrs.get("name") or "")
    symbol0, symbol1 = "", ""
    if " / " in pool_name:
        parts = pool_name.split(" / ")
        symbol0 = parts[0].strip().split()[0] if parts[0].strip() else ""
        symbol1 = parts[1].strip().split()[0] if len(parts) > 1 and parts[1].strip() else ""

    def token_address(rel: str) -> str:
        # Token ids look like "network_address"
        token_id = str(_dict(_dict(relationships.get(rel)).get("data")).get("id") or "")
        return token_id.split("_", 1)[-1] if "_" in token_id else ""

    dex_id = _dict(_dict(relationships.get("dex")).get("data")).get("id", "")

    tvl = _usd(attrs.get("reserve_in_usd"))
    fee_24h = _optional_float(attrs.get("fee_24h_usd"))
    apr = (fee_24h / tvl) * 365 * 100 if fee_24h and tvl > 0 else None

    decimals = _default_decimals(network)
    return PoolPosition(
        pair_or_position_id=str(attrs.get("address") or ""),
        protocol_name=protocol_display_name(dex_id),
        network_name=network.name,
        base_token=TokenRef(symbol=symbol0 or UNKNOWN_SYMBOL, address=token_address("base_token"), decimals=decimals),
        quote_token=TokenRef(symbol=symbol1 or UNKNOWN_SYMBOL, address=token_address("quote_token"), decimals=decimals),
        liquidity_usd=tvl,
        volume_24h_usd=_usd(_dict(attrs.get("volume_usd")).get("h24")),
        fee_tier=fee_from_name(pool_name),
        apr_percent=round(apr, 2) if apr is not None else None,
        source_provider_tag=payload.source,
        raw_payload=data,
    )


def _from_moralis_defi_position(payload: ProviderPayload) -> PoolPosition:
    """Moralis wallet DeFi position (EVM nested shape or flat Solana shape)"""
    data = _dict(payload.data)
    network = payload.network
    position = _dict(data.get("position")) or data
    details = _dict(position.get("position_details"))

    tokens = position.get("tokens") or position.get("position_token_data") or []
    tokens = [t for t in tokens if isinstance(t, dict)] if isinstance(tokens, list) else []
    # Reward tokens are not part of the pair
    pair_tokens = [t for t in tokens if t.get("token_type") != "reward"] or tokens

    token_keys = dict(
        symbol_keys=("symbol", "token_symbol"),
        address_keys=("contract_address", "token_address", "address", "mint"),
        decimals_keys=("decimals", "token_decimals"),
    )
    base = _token(pair_tokens[0] if pair_tokens else {}, network, **token_keys)
    quote = _token(pair_tokens[1] if len(pair_tokens) > 1 else {}, network, **token_keys)

    protocol = _first(data, "protocol_name", "protocol_id", "protocol", "dex")
    position_id = (
        _first(position, "address", "position_id", "id")
        or _first(data, "position_id")
        or f"{data.get('protocol_id') or protocol or 'position'}_{network.id}"
    )

    return PoolPosition(
        pair_or_position_id=str(position_id),
        protocol_name=protocol_display_name(protocol),
        network_name=network.name,
        base_token=base,
        quote_token=quote,
        liquidity_usd=_usd(_first(position, "balance_usd", "total_usd_value", "usd_value", "value")),
        volume_24h_usd=0.0,
        fee_tier=_fee_tier(_first(details, "fee_tier")),
        apr_percent=_optional_float(_first(details, "apr", "apy") or _first(position, "apr", "apy")),
        source_provider_tag=payload.source,
        raw_payload=data,
    )


MAPPERS: Dict[str, Callable[[ProviderPayload], PoolPosition]] = {
    SOURCE_MORALIS_PAIR: _from_moralis_pair,
    SOURCE_MORALIS_SOLANA_PAIR: _from_moralis_pair,
    SOURCE_DEXSCREENER_PAIR: _from_dexscreener_pair,
    SOURCE_GECKOTERMINAL_POOL: _from_geckoterminal_pool,
    SOURCE_MORALIS_DEFI_POSITION: _from_moralis_defi_position,
    SOURCE_MORALIS_SOLANA_DEFI_POSITION: _from_moralis_defi_position,
}


def to_position(payload: ProviderPayload) -> Optional[PoolPosition]:
    """Map one payload; None for an unknown source tag or a payload that cannot be read"""
    mapper = MAPPERS.get(payload.source)
    if mapper is None:
        return None
    try:
        return mapper(payload)
    except Exception as e:
        logger.debug(f"Dropping unreadable {payload.source} payload on {payload.network.id}: {e}")
        return None


# ============================================
# AGGREGATION
# ============================================

def summarize(positions: Iterable[PoolPosition]) -> AggregatedSummary:
    """Group by "<protocol> (<network>)", sum values and compute shares"""
    positions = list(positions)

    buckets: "OrderedDict[str, List[PoolPosition]]" = OrderedDict()
    for position in positions:
        buckets.setdefault(position.group_key, []).append(position)

    total = sum(p.liquidity_usd for p in positions)

    groups = []
    for key, members in buckets.items():
        value = sum(p.liquidity_usd for p in members)
        groups.append(ProtocolGroup(
            key=key,
            protocol_name=members[0].protocol_name,
            network_name=members[0].network_name,
            value_usd=value,
            percentage=(value / total * 100) if total > 0 else 0.0,
            positions=tuple(sorted(members, key=lambda p: p.liquidity_usd, reverse=True)),
        ))

    # Stable sort keeps first-seen order among equal values
    groups.sort(key=lambda g: g.value_usd, reverse=True)

    return AggregatedSummary(
        total_usd_value=total,
        groups=tuple(groups),
        total_volume_24h_usd=sum(p.volume_24h_usd for p in positions),
        total_positions=len(positions),
        networks_found=tuple(OrderedDict.fromkeys(p.network_name for p in positions)),
        protocols_found=tuple(OrderedDict.fromkeys(p.protocol_name for p in positions)),
    )


def normalize(raw_pools: Iterable[ProviderPayload]) -> AggregatedSummary:
    positions = [p for p in (to_position(raw) for raw in raw_pools) if p is not None]
    return summarize(positions)
