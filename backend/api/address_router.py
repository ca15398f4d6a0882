"""
Address Router - Chain detection and address resolution API

Endpoints:
- POST /api/address/detect-chains - Networks on which an address is active
- GET  /api/address/resolve       - Pools/positions for a token, pool or wallet
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from config.networks import NetworkDescriptor
from services.address_classifier import InvalidAddressFormat
from services.engine import AddressResolutionEngine, get_engine
from services.models import (
    ActivityReport,
    AggregatedSummary,
    AttemptRecord,
    DetectionResult,
    NotFound,
    PoolPosition,
    ProtocolGroup,
    TokenRef,
)

logger = logging.getLogger("AddressAPI")

router = APIRouter(prefix="/api/address", tags=["address"])


# ============================================
# RESPONSE MODELS
# ============================================

class DetectChainsRequest(BaseModel):
    address: str
    strict: bool = False


class NetworkModel(BaseModel):
    id: str
    name: str
    family: str
    native_symbol: str


class ActivityReportModel(BaseModel):
    network: NetworkModel
    has_activity: bool
    has_balance: bool
    has_defi_positions: bool
    token_count: int
    native_balance: float
    native_balance_usd: Optional[float] = None
    error: Optional[str] = None


class DetectionResponse(BaseModel):
    address: str
    address_family: str
    has_activity: bool
    active_chains: List[ActivityReportModel]
    primary_network: Optional[NetworkModel] = None
    recommended_networks: List[NetworkModel]
    reports: List[ActivityReportModel]
    total_networks_checked: int
    elapsed_ms: float
    suggestions: List[str] = []


class TokenModel(BaseModel):
    symbol: str
    address: str
    decimals: int


class PositionModel(BaseModel):
    id: str
    protocol: str
    network: str
    base_token: TokenModel
    quote_token: TokenModel
    liquidity_usd: float
    volume_24h_usd: float
    fee_tier: Optional[str] = None
    apr_percent: Optional[float] = None
    source: str


class ProtocolGroupModel(BaseModel):
    key: str
    protocol: str
    network: str
    value_usd: float
    percentage: float
    positions: List[PositionModel]


class AttemptModel(BaseModel):
    hypothesis: str
    networks_checked: List[str]
    positions_found: int
    errors: List[str]


class SummaryModel(BaseModel):
    address: str
    hypothesis: Optional[str] = None
    address_kind: Optional[str] = None
    total_usd_value: float
    total_volume_24h_usd: float
    total_positions: int
    networks_found: List[str]
    protocols_found: List[str]
    groups: List[ProtocolGroupModel]
    attempts: List[AttemptModel]


class NotFoundModel(BaseModel):
    address: str
    address_family: str
    reason: str
    suggestions: List[str]
    attempts: List[AttemptModel]


class ResolveResponse(BaseModel):
    found: bool
    summary: Optional[SummaryModel] = None
    not_found: Optional[NotFoundModel] = None


# ============================================
# CONVERTERS
# ============================================

def _network(network: NetworkDescriptor) -> NetworkModel:
    return NetworkModel(
        id=network.id,
        name=network.name,
        family=network.family.value,
        native_symbol=network.native_symbol,
    )


def _report(report: ActivityReport) -> ActivityReportModel:
    return ActivityReportModel(
        network=_network(report.network),
        has_activity=report.has_activity,
        has_balance=report.has_balance,
        has_defi_positions=report.has_defi_positions,
        token_count=report.token_count,
        native_balance=report.native_balance,
        native_balance_usd=report.native_balance_usd,
        error=report.error,
    )


def detection_response(result: DetectionResult) -> DetectionResponse:
    return DetectionResponse(
        address=result.address,
        address_family=result.address_family.value,
        has_activity=result.has_activity,
        active_chains=[_report(r) for r in result.active_chains],
        primary_network=_network(result.primary_network) if result.primary_network else None,
        recommended_networks=[_network(n) for n in result.recommended_networks],
        reports=[_report(r) for r in result.reports],
        total_networks_checked=result.total_networks_checked,
        elapsed_ms=round(result.elapsed_seconds * 1000, 1),
        suggestions=list(result.suggestions),
    )


def _token(token: TokenRef) -> TokenModel:
    return TokenModel(symbol=token.symbol, address=token.address, decimals=token.decimals)


def _position(position: PoolPosition) -> PositionModel:
    return PositionModel(
        id=position.pair_or_position_id,
        protocol=position.protocol_name,
        network=position.network_name,
        base_token=_token(position.base_token),
        quote_token=_token(position.quote_token),
        liquidity_usd=position.liquidity_usd,
        volume_24h_usd=position.volume_24h_usd,
        fee_tier=position.fee_tier,
        apr_percent=position.apr_percent,
        source=position.source_provider_tag,
    )


def _group(group: ProtocolGroup) -> ProtocolGroupModel:
    return ProtocolGroupModel(
        key=group.key,
        protocol=group.protocol_name,
        network=group.network_name,
        value_usd=group.value_usd,
        percentage=group.percentage,
        positions=[_position(p) for p in group.positions],
    )


def _attempt(attempt: AttemptRecord) -> AttemptModel:
    return AttemptModel(
        hypothesis=attempt.hypothesis,
        networks_checked=list(attempt.networks_checked),
        positions_found=attempt.positions_found,
        errors=list(attempt.errors),
    )


def resolve_response(result) -> ResolveResponse:
    if isinstance(result, NotFound):
        return ResolveResponse(
            found=False,
            not_found=NotFoundModel(
                address=result.address,
                address_family=result.address_family.value,
                reason=result.reason,
                suggestions=list(result.suggestions),
                attempts=[_attempt(a) for a in result.attempts],
            ),
        )

    summary: AggregatedSummary = result
    return ResolveResponse(
        found=True,
        summary=SummaryModel(
            address=summary.address,
            hypothesis=summary.hypothesis,
            address_kind=summary.address_kind,
            total_usd_value=summary.total_usd_value,
            total_volume_24h_usd=summary.total_volume_24h_usd,
            total_positions=summary.total_positions,
            networks_found=list(summary.networks_found),
            protocols_found=list(summary.protocols_found),
            groups=[_group(g) for g in summary.groups],
            attempts=[_attempt(a) for a in summary.attempts],
        ),
    )


# ============================================
# ENDPOINTS
# ============================================

def _require_address(address: Optional[str]) -> str:
    if address is None or not address.strip():
        raise HTTPException(status_code=400, detail="Address is required")
    return address.strip()


@router.post("/detect-chains", response_model=DetectionResponse)
async def detect_chains(request: DetectChainsRequest, engine: AddressResolutionEngine = Depends(get_engine)):
    """
    Probe every candidate network for balance, token and DeFi activity.

    Networks that fail or time out are reported with an error instead of
    failing the whole request.
    """
    address = _require_address(request.address)

    try:
        result = await engine.detect_chains(address, strict=request.strict)
    except InvalidAddressFormat as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Chain detection failed for {address}: {e}")
        raise HTTPException(status_code=500, detail="Failed to detect chains")

    return detection_response(result)


@router.get("/resolve", response_model=ResolveResponse)
async def resolve_address(
    address: Optional[str] = Query(None, description="Token, pool or wallet address"),
    strict: bool = Query(False, description="Reject addresses that are neither EVM nor Solana"),
    engine: AddressResolutionEngine = Depends(get_engine),
):
    """
    Resolve an address as a token, then a pool, then a wallet.

    Returns {"found": false, ...} with suggestions when nothing matched.
    """
    address = _require_address(address)

    try:
        result = await engine.resolve_address(address, strict=strict)
    except InvalidAddressFormat as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Address resolution failed for {address}: {e}")
        raise HTTPException(status_code=500, detail="Failed to resolve address")

    return resolve_response(result)
