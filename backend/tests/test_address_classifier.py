"""
Address Classifier Tests
========================

- EVM 0x-hex addresses (any case)
- Solana Base58 addresses (32-44 chars)
- Everything else is UNKNOWN, never an exception
- require_known_family() rejection

Run: python -m pytest tests/test_address_classifier.py -v --tb=short
"""

import pytest

from config.networks import AddressFamily
from services.address_classifier import InvalidAddressFormat, classify, require_known_family


# =============================================================================
# EVM
# =============================================================================

class TestEVMAddresses:

    @pytest.mark.parametrize("address", [
        "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
        "0x4200000000000000000000000000000000000006",
        "0x" + "a" * 40,
        "0x" + "F" * 40,
    ])
    def test_hex_addresses_are_evm(self, address):
        assert classify(address) == AddressFamily.EVM

    @pytest.mark.parametrize("address", [
        "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA0291",    # 39 hex chars
        "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA029133",  # 41 hex chars
        "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA0291g",   # non-hex
        "833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",     # no prefix
        "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913\n",
        " 0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
    ])
    def test_malformed_hex_is_not_evm(self, address):
        assert classify(address) != AddressFamily.EVM


# =============================================================================
# SOLANA
# =============================================================================

class TestSolanaAddresses:

    @pytest.mark.parametrize("address", [
        "So11111111111111111111111111111111111111112",
        "7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU",
        "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v",
        "1" * 32,
    ])
    def test_base58_addresses_are_solana(self, address):
        assert classify(address) == AddressFamily.SOLANA

    @pytest.mark.parametrize("address", [
        "1" * 31,           # too short
        "1" * 45,           # too long
        "0" + "1" * 40,     # 0 is not Base58
        "O" + "1" * 40,
        "I" + "1" * 40,
        "l" + "1" * 40,
    ])
    def test_non_base58_is_not_solana(self, address):
        assert classify(address) != AddressFamily.SOLANA

    def test_0x_prefixed_base58_is_not_solana(self):
        # 'x' is Base58 but the 0 already rules it out; keep the guard explicit
        assert classify("0x" + "1" * 38) == AddressFamily.UNKNOWN


# =============================================================================
# UNKNOWN
# =============================================================================

class TestUnknownAddresses:

    @pytest.mark.parametrize("address", ["", "hello world", "0x", "0x123", "vitalik.eth", None, 42])
    def test_unrecognised_input_is_unknown(self, address):
        assert classify(address) == AddressFamily.UNKNOWN

    def test_require_known_family_rejects_unknown(self):
        with pytest.raises(InvalidAddressFormat) as exc:
            require_known_family("0x123")
        assert exc.value.address == "0x123"
        assert isinstance(exc.value, ValueError)

    def test_require_known_family_passes_through(self):
        assert require_known_family("0x" + "a" * 40) == AddressFamily.EVM
        assert require_known_family("So11111111111111111111111111111111111111112") == AddressFamily.SOLANA
