"""
Chain Probe
Checks one (address, network) pair for balance, token, DeFi and NFT activity.

Every sub-query is fault-isolated: a failing sub-query is "no evidence".
Only when no sub-query could reach the provider does the report carry an
error. probe() never raises.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, List, Optional

from config.networks import NetworkDescriptor
from data_sources.errors import ProviderError, ProviderTimeout
from services.models import ActivityReport

logger = logging.getLogger("ChainProbe")

TIMEOUT_ERROR = "timeout"


@dataclass
class _SubResult:
    label: str
    value: Any = None
    error: Optional[ProviderError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ChainProbe:
    """
    Probes a single network through the balance/token/DeFi providers.

    evm_provider must offer get_native_balance, get_token_balances,
    get_defi_summary and get_defi_positions. solana_provider must offer
    get_native_balance, get_token_balances, get_nfts and get_portfolio_value.
    """

    def __init__(self, evm_provider, solana_provider):
        self.evm_provider = evm_provider
        self.solana_provider = solana_provider

    async def probe(self, address: str, network: NetworkDescriptor, timeout: Optional[float] = None) -> ActivityReport:
        try:
            if timeout is not None:
                return await asyncio.wait_for(self._probe(address, network), timeout=timeout)
            return await self._probe(address, network)
        except asyncio.TimeoutError:
            logger.warning(f"⏱️ Probe timed out for {network.name}")
            return ActivityReport.failed(network, TIMEOUT_ERROR)
        except Exception as e:
            logger.error(f"Error checking {network.name} for {address}: {e}")
            return ActivityReport.failed(network, str(e) or type(e).__name__)

    async def _probe(self, address: str, network: NetworkDescriptor) -> ActivityReport:
        if network.is_evm:
            return await self._probe_evm(address, network)
        return await self._probe_solana(address, network)

    async def _attempt(self, label: str, network: NetworkDescriptor, call: Awaitable) -> _SubResult:
        try:
            return _SubResult(label=label, value=await call)
        except ProviderError as e:
            logger.debug(f"{label} check failed for {network.name}: {e}")
            return _SubResult(label=label, error=e)

    async def _probe_evm(self, address: str, network: NetworkDescriptor) -> ActivityReport:
        balance, tokens, defi = await asyncio.gather(
            self._attempt("balance", network, self.evm_provider.get_native_balance(address, network)),
            self._attempt("tokens", network, self.evm_provider.get_token_balances(address, network)),
            self._defi_evidence(address, network),
        )

        results = [balance, tokens, defi]
        failure = self._total_failure(results)
        if failure:
            return ActivityReport.failed(network, failure)

        native_balance = float(balance.value or 0) if balance.ok else 0.0
        token_count = len(tokens.value or []) if tokens.ok else 0
        has_defi = bool(defi.ok and defi.value)

        return ActivityReport(
            network=network,
            has_activity=native_balance > 0 or token_count > 0 or has_defi,
            has_balance=native_balance > 0,
            has_defi_positions=has_defi,
            token_count=token_count,
            native_balance=native_balance,
        )

    async def _defi_evidence(self, address: str, network: NetworkDescriptor) -> _SubResult:
        """DeFi summary first; positions list as the secondary signal when it fails"""
        summary = await self._attempt("defi summary", network, self.evm_provider.get_defi_summary(address, network))
        if summary.ok:
            return _SubResult(label="defi", value=float(summary.value or 0) > 0)

        positions = await self._attempt("defi positions", network, self.evm_provider.get_defi_positions(address, network))
        if positions.ok:
            return _SubResult(label="defi", value=len(positions.value or []) > 0)

        logger.warning(f"⚠️ DeFi check failed for {network.name}: {positions.error}")
        return positions

    async def _probe_solana(self, address: str, network: NetworkDescriptor) -> ActivityReport:
        balance, tokens, nfts, portfolio = await asyncio.gather(
            self._attempt("balance", network, self.solana_provider.get_native_balance(address, network)),
            self._attempt("tokens", network, self.solana_provider.get_token_balances(address, network)),
            self._attempt("nft", network, self.solana_provider.get_nfts(address, network)),
            self._attempt("portfolio", network, self.solana_provider.get_portfolio_value(address, network)),
        )

        failure = self._total_failure([balance, tokens, nfts, portfolio])
        if failure:
            return ActivityReport.failed(network, failure)

        native_balance = float(balance.value or 0) if balance.ok else 0.0
        token_count = len(tokens.value or []) if tokens.ok else 0
        has_nfts = bool(nfts.ok and nfts.value)
        has_defi = bool(portfolio.ok and float(portfolio.value or 0) > 0)

        return ActivityReport(
            network=network,
            has_activity=native_balance > 0 or token_count > 0 or has_nfts or has_defi,
            has_balance=native_balance > 0,
            has_defi_positions=has_defi,
            token_count=token_count,
            native_balance=native_balance,
        )

    @staticmethod
    def _total_failure(results: List[_SubResult]) -> Optional[str]:
        """Error message when no sub-query reached the provider, else None"""
        if any(r.ok for r in results):
            return None
        errors = [r.error for r in results]
        if all(isinstance(e, ProviderTimeout) for e in errors):
            return TIMEOUT_ERROR
        return str(errors[0])
