"""
Shared fixtures: a small network catalog and provider doubles
"""

import pytest

from config.networks import BASE, ETHEREUM, SOLANA
from infrastructure.api_metrics import api_metrics
from fakes import FakeProvider


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def small_catalog():
    return (ETHEREUM, BASE, SOLANA)


@pytest.fixture
def call_log():
    return []


@pytest.fixture
def moralis_evm(call_log):
    return FakeProvider("moralis_evm", log=call_log)


@pytest.fixture
def moralis_solana(call_log):
    return FakeProvider("moralis_solana", log=call_log)


@pytest.fixture
def dexscreener(call_log):
    return FakeProvider("dexscreener", log=call_log)


@pytest.fixture
def geckoterminal(call_log):
    return FakeProvider("geckoterminal", log=call_log)


@pytest.fixture(autouse=True)
def reset_metrics():
    api_metrics.reset()
    yield
    api_metrics.reset()
