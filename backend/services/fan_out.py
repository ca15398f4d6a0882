"""
Fan-Out Coordinator
Runs one ChainProbe per candidate network concurrently under a single
deadline, tolerates partial failure and picks the primary network.
"""
import asyncio
import logging
import time
from dataclasses import dataclass, replace
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

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
from services.chain_probe import TIMEOUT_ERROR, ChainProbe
from services.models import ActivityReport, DetectionResult
from services.primary_selector import select_primary

logger = logging.getLogger("FanOut")

# Grace period for abandoned tasks to process their cancellation
CANCEL_GRACE_SECONDS = 0.5

NO_ACTIVITY_SUGGESTIONS = (
    "Verify the address is correct and complete",
    "The address may exist but has no balance, tokens or DeFi positions yet",
    "If this is a token or pool contract, try resolving it as a token/pool instead",
    "Some networks may have timed out; retry in a few seconds",
)


@dataclass
class TaskOutcome:
    """Result-or-error wrapper for one fan-out task"""
    value: Any = None
    error: Optional[BaseException] = None
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and not self.timed_out


async def gather_with_deadline(
    factories: Sequence[Callable[[], Awaitable[Any]]],
    deadline: Optional[float],
) -> List[TaskOutcome]:
    """
    Start every factory concurrently and join under one deadline.

    Each task writes into its own pre-sized slot, so no shared collection
    needs locking. Tasks still running at the deadline are cancelled and
    reported as timed out. Never raises for task failures.
    """
    slots: List[Optional[TaskOutcome]] = [None] * len(factories)
    if not factories:
        return []

    async def run(index: int, factory: Callable[[], Awaitable[Any]]):
        try:
            slots[index] = TaskOutcome(value=await factory())
        except asyncio.CancelledError:
            raise
        except Exception as e:
            slots[index] = TaskOutcome(error=e)

    tasks = [asyncio.ensure_future(run(i, f)) for i, f in enumerate(factories)]
    _, pending = await asyncio.wait(tasks, timeout=deadline)

    if pending:
        for task in pending:
            task.cancel()
        await asyncio.wait(pending, timeout=CANCEL_GRACE_SECONDS)

    return [slot if slot is not None else TaskOutcome(timed_out=True) for slot in slots]


def candidate_networks(family: AddressFamily, catalog: NetworkCatalog = DEFAULT_CATALOG) -> List[NetworkDescriptor]:
    """
    EVM -> every EVM network; Solana -> Solana only; Unknown -> both,
    so an ambiguous address is resolved empirically rather than rejected.
    """
    if family == AddressFamily.EVM:
        return list(evm_networks(catalog))
    if family == AddressFamily.SOLANA:
        return list(solana_networks(catalog))
    wanted = {AddressFamily.EVM, AddressFamily.SOLANA}
    return [n for n in catalog if n.family in wanted]


class FanOutCoordinator:
    def __init__(
        self,
        probe: ChainProbe,
        price_provider=None,
        catalog: NetworkCatalog = DEFAULT_CATALOG,
        deadline: Optional[float] = None,
    ):
        self.probe = probe
        self.price_provider = price_provider
        self.catalog = catalog
        self.deadline = deadline if deadline is not None else default_settings.detection_deadline

    async def detect(self, address: str, deadline: Optional[float] = None) -> DetectionResult:
        budget = deadline if deadline is not None else self.deadline
        start = time.monotonic()

        family = classify(address)
        networks = candidate_networks(family, self.catalog)
        logger.info(f"🔍 Starting chain detection for {address} ({family.value}, {len(networks)} networks)")

        outcomes = await gather_with_deadline(
            [lambda n=n: self.probe.probe(address, n) for n in networks],
            budget,
        )
        reports = [self._to_report(network, outcome) for network, outcome in zip(networks, outcomes)]

        remaining = budget - (time.monotonic() - start)
        reports = await self._value_native_balances(reports, remaining)

        active = tuple(r for r in reports if r.has_activity and not r.error)
        primary = select_primary(active, self.catalog)
        elapsed = time.monotonic() - start

        logger.info(f"✅ Chain detection completed in {elapsed * 1000:.0f}ms")
        logger.info(f"📊 Found activity on: {', '.join(r.network.id for r in active) or 'none'}")
        logger.info(f"🎯 Primary network: {primary.id if primary else 'none'}")

        return DetectionResult(
            address=address,
            address_family=family,
            reports=tuple(reports),
            active_chains=active,
            primary_network=primary,
            recommended_networks=tuple(r.network for r in active),
            total_networks_checked=len(networks),
            elapsed_seconds=elapsed,
            suggestions=() if active else NO_ACTIVITY_SUGGESTIONS,
        )

    @staticmethod
    def _to_report(network: NetworkDescriptor, outcome: TaskOutcome) -> ActivityReport:
        if outcome.timed_out:
            logger.warning(f"⏱️ {network.name} did not answer before the deadline")
            return ActivityReport.failed(network, TIMEOUT_ERROR)
        if outcome.error is not None:
            return ActivityReport.failed(network, str(outcome.error) or type(outcome.error).__name__)
        return outcome.value

    async def _value_native_balances(self, reports: List[ActivityReport], remaining: float) -> List[ActivityReport]:
        """Fill native_balance_usd using one price lookup per native symbol"""
        if self.price_provider is None or remaining <= 0:
            return reports

        symbols = sorted({r.network.native_symbol for r in reports if r.has_balance and not r.error})
        if not symbols:
            return reports

        outcomes = await gather_with_deadline(
            [lambda s=s: self.price_provider.get_native_asset_usd_price(s) for s in symbols],
            remaining,
        )

        prices: Dict[str, float] = {}
        for symbol, outcome in zip(symbols, outcomes):
            if outcome.ok and outcome.value is not None:
                prices[symbol] = float(outcome.value)
            else:
                logger.debug(f"Price lookup failed for {symbol}: {outcome.error or TIMEOUT_ERROR}")

        return [
            replace(r, native_balance_usd=round(r.native_balance * prices[r.network.native_symbol], 2))
            if r.has_balance and r.network.native_symbol in prices else r
            for r in reports
        ]
