"""End-to-end wiring tests over a fake chain."""

import asyncio
from typing import Any

import pytest
from eth_abi import encode
from eth_utils import function_signature_to_4byte_selector

from redemptions_sync.app import Application
from redemptions_sync.bootstrap import BootstrapError
from redemptions_sync.clients.ethereum_client import ContractCallError
from redemptions_sync.config import AppConfig, SyncConfig
from redemptions_sync.token_utils import ETHER_TOKEN_FAKE_ADDRESS

APP = "0x" + "a1" * 20
VAULT = "0x" + "b2" * 20
RDT = "0x" + "c3" * 20
TOKEN = "0x" + "11" * 20
ACCOUNT = "0x" + "ee" * 20


class FakeChain:
    """Answers eth_call by (contract, selector) with ABI encoded values."""

    def __init__(self) -> None:
        self.responses: dict[tuple[str, bytes], bytes] = {}
        self.closed = False

    def respond(self, contract: str, signature: str, types: list[str], values: list[Any]) -> None:
        self.responses[(contract, function_signature_to_4byte_selector(signature))] = encode(types, values)

    async def call(self, to: str, data: bytes, block: str | int = "latest") -> bytes:
        await asyncio.sleep(0)
        try:
            return self.responses[(to, data[:4])]
        except KeyError:
            raise ContractCallError(f"execution reverted at {to}") from None

    async def get_chain_id(self) -> int:
        return 1

    async def get_accounts(self) -> list[str]:
        return [ACCOUNT]

    async def get_block_number(self) -> int:
        return 10

    async def get_logs(self, addresses: list[str], from_block: int, to_block: int) -> list[dict[str, Any]]:
        return []

    def get_stats(self) -> dict[str, Any]:
        return {}

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def chain() -> FakeChain:
    chain = FakeChain()
    chain.respond(APP, "vault()", ["address"], [VAULT])
    chain.respond(APP, "getRedeemableToken()", ["address"], [RDT])
    chain.respond(APP, "getTokens()", ["address[]"], [[ETHER_TOKEN_FAKE_ADDRESS, TOKEN]])
    chain.respond(APP, "spendableBalanceOf(address)", ["uint256"], [20000])
    chain.respond(VAULT, "getInitializationBlock()", ["uint256"], [5])
    chain.respond(VAULT, "balance(address)", ["uint256"], [45231])
    chain.respond(RDT, "symbol()", ["string"], ["RDT"])
    chain.respond(RDT, "decimals()", ["uint8"], [18])
    chain.respond(RDT, "totalSupply()", ["uint256"], [100000])
    chain.respond(TOKEN, "decimals()", ["uint8"], [6])
    chain.respond(TOKEN, "name()", ["string"], ["One"])
    chain.respond(TOKEN, "symbol()", ["string"], ["ONE"])
    return chain


@pytest.fixture
def config() -> AppConfig:
    return AppConfig(sync=SyncConfig(app_address=APP, poll_interval=0.01, bootstrap_retry_delay=0))


class TestApplication:
    """Test the application lifecycle."""

    @pytest.mark.asyncio
    async def test_syncs_state(self, chain: FakeChain, config: AppConfig) -> None:
        async with Application(config, client=chain) as app:
            initialized = await asyncio.wait_for(app.wait_until_initialized(), timeout=1)
            with_account = await asyncio.wait_for(app.store.wait_for_version(2), timeout=1)
            stats = app.get_stats()

        assert initialized.redeemable_token.symbol == "RDT"
        assert initialized.redeemable_token.total_supply == 100000
        assert [(token.symbol, token.decimals, token.amount, token.verified) for token in initialized.tokens] == [
            ("ETH", 18, 45231, True),
            ("ONE", 6, 45231, False),
        ]
        assert with_account.redeemable_token.account_balance == 20000
        assert stats["store"]["initialized"] is True
        assert chain.closed is True

    @pytest.mark.asyncio
    async def test_bootstrap_gives_up(self, chain: FakeChain, config: AppConfig) -> None:
        del chain.responses[(APP, function_signature_to_4byte_selector("vault()"))]
        config.sync.max_bootstrap_attempts = 2
        app = Application(config, client=chain)

        with pytest.raises(BootstrapError):
            await app.start()

        assert app.state is None
        await app.close()
