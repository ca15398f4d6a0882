"""
Address Classifier
Decides the syntactic family of an address string from its shape alone.
Advisory only: callers fall back to checking both families on UNKNOWN.
"""
import re

from config.networks import AddressFamily

EVM_ADDRESS_PATTERN = re.compile(r"0x[a-fA-F0-9]{40}")

# Base58 alphabet excludes 0, O, I and l
SOLANA_ADDRESS_PATTERN = re.compile(r"[1-9A-HJ-NP-Za-km-z]{32,44}")


class InvalidAddressFormat(ValueError):
    """Address matches neither family and the caller requires a known one"""

    def __init__(self, address: str):
        self.address = address
        super().__init__(
            "Invalid address format. Please provide a valid EVM (0x...) or Solana address"
        )


def classify(address: str) -> AddressFamily:
    """Total function: always returns a family, UNKNOWN by default"""
    if not isinstance(address, str):
        return AddressFamily.UNKNOWN

    if EVM_ADDRESS_PATTERN.fullmatch(address):
        return AddressFamily.EVM
    if SOLANA_ADDRESS_PATTERN.fullmatch(address) and not address.startswith("0x"):
        return AddressFamily.SOLANA
    return AddressFamily.UNKNOWN


def require_known_family(address: str) -> AddressFamily:
    family = classify(address)
    if family == AddressFamily.UNKNOWN:
        raise InvalidAddressFormat(address)
    return family
