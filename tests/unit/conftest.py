"""Fixtures wiring the fakes into settings and aggregators."""

import pytest
from fakes import REDEEMABLE_ADDRESS, VAULT_ADDRESS, FakeRedemptions, FakeToken, FakeVault, TokenRegistry

from redemptions_sync.aggregator import BalanceAggregator
from redemptions_sync.state import Network, Settings
from redemptions_sync.token_utils import ETHER_TOKEN_FAKE_ADDRESS
from redemptions_sync.utils.cache import MetadataCache


@pytest.fixture
def vault() -> FakeVault:
    return FakeVault()


@pytest.fixture
def redeemable_token() -> FakeToken:
    return FakeToken(REDEEMABLE_ADDRESS, decimals=18, name="RedeemableToken", symbol="RDT", total_supply=100000)


@pytest.fixture
def redemptions() -> FakeRedemptions:
    return FakeRedemptions()


@pytest.fixture
def settings(vault: FakeVault, redeemable_token: FakeToken) -> Settings:
    return Settings(
        network=Network(id=1, type="main"),
        eth_token_address=ETHER_TOKEN_FAKE_ADDRESS,
        vault_address=VAULT_ADDRESS,
        vault=vault,
        redeemable_token_address=REDEEMABLE_ADDRESS,
        redeemable_token=redeemable_token,
    )


@pytest.fixture
def metadata_cache() -> MetadataCache:
    return MetadataCache()


@pytest.fixture
def token_registry() -> TokenRegistry:
    return TokenRegistry()


@pytest.fixture
def aggregator(metadata_cache: MetadataCache, token_registry: TokenRegistry) -> BalanceAggregator:
    return BalanceAggregator(metadata_cache, token_registry)
