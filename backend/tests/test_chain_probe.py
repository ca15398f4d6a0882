"""
Chain Probe Tests
=================

- Activity evidence on EVM (balance / tokens / DeFi) and Solana (balance / tokens / NFTs / portfolio)
- Partial sub-query failure is "no evidence", not an error
- Total failure carries the error; all-timeouts is reported as "timeout"
- probe() never raises

Run: python -m pytest tests/test_chain_probe.py -v --tb=short
"""

import pytest

from config.networks import BASE, ETHEREUM, SOLANA
from data_sources.errors import MalformedPayload, ProviderTimeout, ProviderUnavailable
from services.chain_probe import ChainProbe
from fakes import EVM_WALLET, HANG, SOLANA_MINT, FakeProvider


def make_probe(evm=None, solana=None):
    return ChainProbe(evm or FakeProvider("moralis_evm"), solana or FakeProvider("moralis_solana"))


# =============================================================================
# EVM
# =============================================================================

class TestEVMProbe:

    @pytest.mark.asyncio
    async def test_balance_tokens_and_defi(self):
        evm = FakeProvider("moralis_evm", defaults={
            "get_native_balance": 1.25,
            "get_token_balances": [{"symbol": "USDC"}, {"symbol": "AERO"}],
            "get_defi_summary": 5400.0,
        })
        report = await make_probe(evm=evm).probe(EVM_WALLET, BASE)

        assert report.network == BASE
        assert report.error is None
        assert report.has_activity
        assert report.has_balance
        assert report.has_defi_positions
        assert report.token_count == 2
        assert report.native_balance == 1.25

    @pytest.mark.asyncio
    async def test_empty_address_has_no_activity(self):
        evm = FakeProvider("moralis_evm", defaults={
            "get_native_balance": 0.0,
            "get_token_balances": [],
            "get_defi_summary": 0.0,
        })
        report = await make_probe(evm=evm).probe(EVM_WALLET, ETHEREUM)

        assert report.error is None
        assert not report.has_activity
        assert not report.has_balance
        assert report.token_count == 0

    @pytest.mark.asyncio
    async def test_defi_positions_used_when_summary_fails(self):
        evm = FakeProvider("moralis_evm", defaults={
            "get_native_balance": 0.0,
            "get_token_balances": [],
            "get_defi_summary": ProviderUnavailable("moralis", "HTTP 500", status_code=500),
            "get_defi_positions": [{"protocol_name": "Aave V3"}],
        })
        report = await make_probe(evm=evm).probe(EVM_WALLET, ETHEREUM)

        assert report.has_defi_positions
        assert report.has_activity
        assert len(evm.calls("get_defi_positions")) == 1

    @pytest.mark.asyncio
    async def test_summary_success_skips_positions(self):
        evm = FakeProvider("moralis_evm", defaults={"get_defi_summary": 0.0})
        await make_probe(evm=evm).probe(EVM_WALLET, ETHEREUM)

        assert evm.calls("get_defi_positions") == []

    @pytest.mark.asyncio
    async def test_partial_failure_is_no_evidence(self):
        evm = FakeProvider("moralis_evm", defaults={
            "get_native_balance": ProviderTimeout("moralis"),
            "get_token_balances": [{"symbol": "USDC"}],
            "get_defi_summary": MalformedPayload("moralis", "bad"),
            "get_defi_positions": MalformedPayload("moralis", "bad"),
        })
        report = await make_probe(evm=evm).probe(EVM_WALLET, ETHEREUM)

        assert report.error is None
        assert report.has_activity
        assert report.token_count == 1
        assert not report.has_balance
        assert not report.has_defi_positions

    @pytest.mark.asyncio
    async def test_total_failure_carries_error(self):
        evm = FakeProvider("moralis_evm", defaults={
            "get_native_balance": ProviderUnavailable("moralis", "MORALIS_API_KEY not configured"),
            "get_token_balances": ProviderUnavailable("moralis", "MORALIS_API_KEY not configured"),
            "get_defi_summary": ProviderUnavailable("moralis", "MORALIS_API_KEY not configured"),
            "get_defi_positions": ProviderUnavailable("moralis", "MORALIS_API_KEY not configured"),
        })
        report = await make_probe(evm=evm).probe(EVM_WALLET, ETHEREUM)

        assert report.error is not None
        assert "MORALIS_API_KEY" in report.error
        assert not report.has_activity
        assert report.token_count == 0

    @pytest.mark.asyncio
    async def test_all_timeouts_reported_as_timeout(self):
        evm = FakeProvider("moralis_evm", defaults={
            method: ProviderTimeout("moralis")
            for method in ("get_native_balance", "get_token_balances", "get_defi_summary", "get_defi_positions")
        })
        report = await make_probe(evm=evm).probe(EVM_WALLET, ETHEREUM)

        assert report.error == "timeout"


# =============================================================================
# SOLANA
# =============================================================================

class TestSolanaProbe:

    @pytest.mark.asyncio
    async def test_nfts_alone_count_as_activity(self):
        solana = FakeProvider("moralis_solana", defaults={
            "get_native_balance": 0.0,
            "get_token_balances": [],
            "get_nfts": [{"mint": "abc"}],
            "get_portfolio_value": 0.0,
        })
        report = await make_probe(solana=solana).probe(SOLANA_MINT, SOLANA)

        assert report.has_activity
        assert not report.has_defi_positions
        assert not report.has_balance

    @pytest.mark.asyncio
    async def test_portfolio_value_means_defi(self):
        solana = FakeProvider("moralis_solana", defaults={
            "get_native_balance": 3.5,
            "get_token_balances": [{"symbol": "JUP"}],
            "get_nfts": [],
            "get_portfolio_value": 812.4,
        })
        report = await make_probe(solana=solana).probe(SOLANA_MINT, SOLANA)

        assert report.has_defi_positions
        assert report.has_balance
        assert report.native_balance == 3.5
        assert report.token_count == 1

    @pytest.mark.asyncio
    async def test_routes_to_solana_provider_only(self):
        evm = FakeProvider("moralis_evm")
        solana = FakeProvider("moralis_solana")
        await make_probe(evm=evm, solana=solana).probe(SOLANA_MINT, SOLANA)

        assert evm.calls() == []
        assert len(solana.calls()) == 4


# =============================================================================
# NEVER RAISES
# =============================================================================

class TestProbeNeverRaises:

    @pytest.mark.asyncio
    async def test_unexpected_exception_becomes_error_report(self):
        evm = FakeProvider("moralis_evm", defaults={"get_native_balance": RuntimeError("boom")})
        report = await make_probe(evm=evm).probe(EVM_WALLET, ETHEREUM)

        assert report.error == "boom"
        assert not report.has_activity

    @pytest.mark.asyncio
    async def test_probe_timeout(self):
        evm = FakeProvider("moralis_evm", defaults={"get_native_balance": HANG})
        report = await make_probe(evm=evm).probe(EVM_WALLET, ETHEREUM, timeout=0.05)

        assert report.error == "timeout"
        assert not report.has_activity
