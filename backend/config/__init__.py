# Config package
from config.networks import (
    AddressFamily,
    NetworkDescriptor,
    NetworkCatalog,
    DEFAULT_CATALOG,
    evm_networks,
    solana_networks,
    get_network,
    catalog_index,
)
from config.settings import Settings, settings, load_settings
