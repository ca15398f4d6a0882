"""
Address Resolution Services
Chain detection, pool/position resolution and result normalization
"""

from .address_classifier import InvalidAddressFormat, classify, require_known_family
from .chain_probe import ChainProbe
from .fan_out import FanOutCoordinator
from .primary_selector import select_primary
from .result_normalizer import normalize, summarize
from .resolution_cascade import ResolutionCascade
from .engine import AddressResolutionEngine, build_engine, get_engine

__all__ = [
    # Classification
    "InvalidAddressFormat",
    "classify",
    "require_known_family",

    # Chain detection
    "ChainProbe",
    "FanOutCoordinator",
    "select_primary",

    # Resolution
    "ResolutionCascade",
    "normalize",
    "summarize",

    # Facade
    "AddressResolutionEngine",
    "build_engine",
    "get_engine",
]
