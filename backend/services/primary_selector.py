"""
Primary Network Selection
Picks the network most representative of where an address actually operates.
"""
from typing import Iterable, Optional

from config.networks import DEFAULT_CATALOG, NetworkCatalog, NetworkDescriptor, catalog_index
from services.models import ActivityReport


def select_primary(
    reports: Iterable[ActivityReport],
    catalog: NetworkCatalog = DEFAULT_CATALOG,
) -> Optional[NetworkDescriptor]:
    """
    Deterministic tie-break, in descending priority:
      1. has DeFi positions
      2. higher token count
      3. positive native balance
      4. catalog order

    Reports without activity (including error-only reports) are ignored.
    """
    candidates = [r for r in reports if r.has_activity and not r.error]
    if not candidates:
        return None

    best = min(
        candidates,
        key=lambda r: (
            not r.has_defi_positions,
            -r.token_count,
            not r.has_balance,
            catalog_index(r.network, catalog),
        ),
    )
    return best.network
