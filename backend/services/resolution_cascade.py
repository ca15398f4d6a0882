"""
Resolution Cascade
Tries classification hypotheses in strict priority order and stops at the
first one that yields at least one pool/position:

    1. token_pools           - primary pool discovery (Moralis), networks in parallel
    2. secondary_aggregator  - same token-pair search on DexScreener
    3. direct_pool           - the address is itself a pool/pair; networks
                               probed SEQUENTIALLY, most common network first
    4. wallet_defi           - wallet DeFi positions (Moralis)

Hypothesis N+1 never starts before hypothesis N (and its fan-out) is done.
Exhausting all four returns NotFound with suggestions, never an exception.
"""
import asyncio
import logging
from dataclasses import dataclass, field, replace
from typing import Awaitable, Callable, List, Optional, Tuple, Union

from config.networks import (
    AddressFamily,
    DEFAULT_CATALOG,
    NetworkCatalog,
    NetworkDescriptor,
    evm_networks,
    solana_networks,
)
from config.settings import settings as default_settings
from services.address_classifier import classify
from services.chain_probe import TIMEOUT_ERROR
from services.fan_out import candidate_networks, gather_with_deadline
from services.models import (
    AggregatedSummary,
    AttemptRecord,
    NotFound,
    ProviderPayload,
    SOURCE_DEXSCREENER_PAIR,
    SOURCE_GECKOTERMINAL_POOL,
    SOURCE_MORALIS_DEFI_POSITION,
    SOURCE_MORALIS_PAIR,
    SOURCE_MORALIS_SOLANA_DEFI_POSITION,
    SOURCE_MORALIS_SOLANA_PAIR,
)
from services.result_normalizer import normalize

logger = logging.getLogger("Cascade")

HYPOTHESIS_TOKEN_POOLS = "token_pools"
HYPOTHESIS_SECONDARY_AGGREGATOR = "secondary_aggregator"
HYPOTHESIS_DIRECT_POOL = "direct_pool"
HYPOTHESIS_WALLET_DEFI = "wallet_defi"

NOT_FOUND_SUGGESTIONS = (
    "Verify the address is correct",
    "Check if this token has trading pairs on major DEXs",
    "If this is a pool, confirm which network it was deployed on",
    "If this is a wallet, it may hold no DeFi positions on supported networks",
    "Try searching on dexscreener.com directly",
    "This token might not be actively traded",
)

UNKNOWN_FORMAT_SUGGESTION = "The address is neither a 0x EVM address nor a Solana address"


@dataclass
class HypothesisResult:
    payloads: List[ProviderPayload] = field(default_factory=list)
    networks_checked: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def attempt(self, name: str, positions_found: int) -> AttemptRecord:
        return AttemptRecord(
            hypothesis=name,
            networks_checked=tuple(self.networks_checked),
            positions_found=positions_found,
            errors=tuple(self.errors),
        )


Strategy = Callable[[str, AddressFamily], Awaitable[HypothesisResult]]


class ResolutionCascade:
    def __init__(
        self,
        moralis_evm,
        moralis_solana,
        dexscreener,
        geckoterminal,
        catalog: NetworkCatalog = DEFAULT_CATALOG,
        probe_timeout: Optional[float] = None,
    ):
        self.moralis_evm = moralis_evm
        self.moralis_solana = moralis_solana
        self.dexscreener = dexscreener
        self.geckoterminal = geckoterminal
        self.catalog = catalog
        self.probe_timeout = probe_timeout if probe_timeout is not None else default_settings.probe_timeout

        # (name, what the address is when it matches, strategy)
        self.hypotheses: List[Tuple[str, str, Strategy]] = [
            (HYPOTHESIS_TOKEN_POOLS, "token", self._token_pools),
            (HYPOTHESIS_SECONDARY_AGGREGATOR, "token", self._secondary_aggregator),
            (HYPOTHESIS_DIRECT_POOL, "pool", self._direct_pool),
            (HYPOTHESIS_WALLET_DEFI, "wallet", self._wallet_defi),
        ]

    async def resolve(self, address: str) -> Union[AggregatedSummary, NotFound]:
        family = classify(address)
        attempts: List[AttemptRecord] = []

        for name, kind, strategy in self.hypotheses:
            logger.info(f"🔎 [{name}] trying {address} ({family.value})")
            result = await strategy(address, family)
            summary = normalize(result.payloads)
            attempts.append(result.attempt(name, summary.total_positions))

            if summary.total_positions > 0:
                logger.info(
                    f"✅ [{name}] found {summary.total_positions} positions across "
                    f"{len(summary.networks_found)} networks (${summary.total_usd_value:,.0f})"
                )
                return replace(
                    summary,
                    address=address,
                    hypothesis=name,
                    address_kind=kind,
                    attempts=tuple(attempts),
                )

            logger.info(f"🔄 [{name}] nothing found, moving on")

        logger.info(f"❌ No pools or positions found for {address}")
        suggestions = NOT_FOUND_SUGGESTIONS
        if family == AddressFamily.UNKNOWN:
            suggestions = (UNKNOWN_FORMAT_SUGGESTION,) + suggestions

        return NotFound(
            address=address,
            address_family=family,
            suggestions=suggestions,
            attempts=tuple(attempts),
        )

    # ============================================
    # PARALLEL HELPERS
    # ============================================

    def _token_search_networks(self) -> List[NetworkDescriptor]:
        """Every EVM network plus Solana, whatever the address looks like"""
        return list(evm_networks(self.catalog)) + list(solana_networks(self.catalog))

    async def _parallel_search(
        self,
        networks: List[NetworkDescriptor],
        call: Callable[[NetworkDescriptor], Awaitable[list]],
        source_for: Callable[[NetworkDescriptor], str],
        queried_address: str,
    ) -> HypothesisResult:
        result = HypothesisResult(networks_checked=[n.id for n in networks])
        outcomes = await gather_with_deadline(
            [lambda n=n: call(n) for n in networks],
            self.probe_timeout,
        )

        for network, outcome in zip(networks, outcomes):
            if outcome.timed_out:
                result.errors.append(f"{network.name}: {TIMEOUT_ERROR}")
                continue
            if outcome.error is not None:
                logger.debug(f"{network.name} search failed: {outcome.error}")
                result.errors.append(f"{network.name}: {outcome.error}")
                continue
            for item in outcome.value or []:
                if isinstance(item, dict):
                    result.payloads.append(ProviderPayload(
                        source=source_for(network),
                        network=network,
                        data=item,
                        queried_address=queried_address,
                    ))

        return result

    # ============================================
    # HYPOTHESES
    # ============================================

    async def _token_pools(self, address: str, family: AddressFamily) -> HypothesisResult:
        def call(network: NetworkDescriptor):
            provider = self.moralis_evm if network.is_evm else self.moralis_solana
            return provider.find_pairs_for_token(address, network)

        return await self._parallel_search(
            self._token_search_networks(),
            call,
            lambda n: SOURCE_MORALIS_PAIR if n.is_evm else SOURCE_MORALIS_SOLANA_PAIR,
            address,
        )

    async def _secondary_aggregator(self, address: str, family: AddressFamily) -> HypothesisResult:
        return await self._parallel_search(
            self._token_search_networks(),
            lambda n: self.dexscreener.find_pairs_for_token(address, n),
            lambda n: SOURCE_DEXSCREENER_PAIR,
            address,
        )

    async def _direct_pool(self, address: str, family: AddressFamily) -> HypothesisResult:
        """
        Networks are tried one at a time in catalog order (EVM first, then
        Solana unless the address is clearly EVM), DexScreener before
        GeckoTerminal. The first recognised pool ends the search.
        """
        networks = list(evm_networks(self.catalog))
        if family != AddressFamily.EVM:
            networks.extend(solana_networks(self.catalog))

        lookups = [
            (self.dexscreener, SOURCE_DEXSCREENER_PAIR),
            (self.geckoterminal, SOURCE_GECKOTERMINAL_POOL),
        ]

        result = HypothesisResult()
        for network in networks:
            result.networks_checked.append(network.id)
            for provider, source in lookups:
                try:
                    pair = await asyncio.wait_for(provider.get_pair_info(address, network), timeout=self.probe_timeout)
                except asyncio.TimeoutError:
                    result.errors.append(f"{network.name}/{source}: {TIMEOUT_ERROR}")
                    continue
                except Exception as e:
                    logger.debug(f"Pair lookup failed on {network.name} via {source}: {e}")
                    result.errors.append(f"{network.name}/{source}: {e}")
                    continue

                if pair:
                    logger.info(f"🏊 {address[:10]}... is a pool on {network.name} ({source})")
                    result.payloads.append(ProviderPayload(
                        source=source,
                        network=network,
                        data=pair,
                        queried_address=address,
                    ))
                    return result

        return result

    async def _wallet_defi(self, address: str, family: AddressFamily) -> HypothesisResult:
        def call(network: NetworkDescriptor):
            provider = self.moralis_evm if network.is_evm else self.moralis_solana
            return provider.get_defi_positions(address, network)

        return await self._parallel_search(
            candidate_networks(family, self.catalog),
            call,
            lambda n: SOURCE_MORALIS_DEFI_POSITION if n.is_evm else SOURCE_MORALIS_SOLANA_DEFI_POSITION,
            address,
        )
