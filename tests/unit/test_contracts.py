"""Tests for ABI encoding and decoding of contract calls."""

import pytest
from eth_abi import encode
from eth_utils import function_signature_to_4byte_selector

from redemptions_sync.clients.contracts import (
    EVENT_TOPICS,
    ContractFunction,
    RedemptionsContract,
    TokenContract,
    VaultContract,
    event_name_for_topic,
)
from redemptions_sync.clients.ethereum_client import ContractCallError

TOKEN = "0x" + "11" * 20
VAULT = "0x" + "b2" * 20
ACCOUNT = "0x" + "ee" * 20


class FakeCallProvider:
    """Returns canned return data per 4-byte selector."""

    def __init__(self) -> None:
        self.responses: dict[bytes, bytes] = {}
        self.calls: list[tuple[str, bytes]] = []

    def respond(self, signature: str, types: list[str], values: list) -> None:
        self.responses[function_signature_to_4byte_selector(signature)] = encode(types, values)

    async def call(self, to: str, data: bytes, block: str | int = "latest") -> bytes:
        self.calls.append((to, data))
        return self.responses.get(data[:4], b"")


@pytest.fixture
def provider() -> FakeCallProvider:
    return FakeCallProvider()


class TestContractFunction:
    """Test selectors and argument encoding."""

    @pytest.mark.parametrize(
        ("name", "selector"),
        [("decimals", "313ce567"), ("symbol", "95d89b41"), ("name", "06fdde03"), ("totalSupply", "18160ddd")],
    )
    def test_erc20_selectors(self, name: str, selector: str) -> None:
        assert ContractFunction(name).selector.hex() == selector

    def test_encode_call(self) -> None:
        function = ContractFunction("spendableBalanceOf", ("address",), ("uint256",))

        data = function.encode_call(ACCOUNT)

        assert data[:4] == function.selector
        assert data[4:] == encode(["address"], [ACCOUNT])

    def test_wrong_argument_count(self) -> None:
        with pytest.raises(ValueError, match="expects 1 arguments"):
            ContractFunction("balance", ("address",)).encode_call()

    def test_empty_result(self) -> None:
        with pytest.raises(ContractCallError, match="returned no data"):
            ContractFunction("decimals", (), ("uint8",)).decode_result(b"")


class TestBindings:
    """Test the typed contract wrappers."""

    @pytest.mark.asyncio
    async def test_redemptions_contract(self, provider: FakeCallProvider) -> None:
        provider.respond("vault()", ["address"], [VAULT])
        provider.respond("getTokens()", ["address[]"], [[TOKEN, VAULT]])
        provider.respond("spendableBalanceOf(address)", ["uint256"], [20000])
        app = RedemptionsContract(provider, "0x" + "A1" * 20)

        assert await app.vault() == VAULT
        assert await app.get_tokens() == [TOKEN, VAULT]
        assert await app.spendable_balance_of(ACCOUNT) == 20000
        assert provider.calls[0][0] == "0x" + "a1" * 20

    @pytest.mark.asyncio
    async def test_vault_contract(self, provider: FakeCallProvider) -> None:
        provider.respond("balance(address)", ["uint256"], [45231])
        provider.respond("getInitializationBlock()", ["uint256"], [12])
        vault = VaultContract(provider, VAULT)

        assert await vault.balance(TOKEN) == 45231
        assert await vault.get_initialization_block() == 12

    @pytest.mark.asyncio
    async def test_token_contract(self, provider: FakeCallProvider) -> None:
        provider.respond("decimals()", ["uint8"], [8])
        provider.respond("name()", ["string"], ["Wrapped BTC"])
        provider.respond("symbol()", ["string"], ["WBTC"])
        provider.respond("totalSupply()", ["uint256"], [10**20])
        token = TokenContract(provider, TOKEN)

        assert await token.decimals() == 8
        assert await token.name() == "Wrapped BTC"
        assert await token.symbol() == "WBTC"
        assert await token.total_supply() == 10**20

    @pytest.mark.asyncio
    async def test_bytes32_symbol(self, provider: FakeCallProvider) -> None:
        provider.respond("symbol()", ["bytes32"], [b"MKR".ljust(32, b"\x00")])
        provider.respond("name()", ["bytes32"], [b"Maker".ljust(32, b"\x00")])
        token = TokenContract(provider, TOKEN)

        assert await token.symbol() == "MKR"
        assert await token.name() == "Maker"

    @pytest.mark.asyncio
    async def test_missing_function_result(self, provider: FakeCallProvider) -> None:
        token = TokenContract(provider, TOKEN)

        with pytest.raises(ContractCallError):
            await token.decimals()

    @pytest.mark.asyncio
    async def test_unknown_function(self, provider: FakeCallProvider) -> None:
        with pytest.raises(ValueError, match="no function"):
            await TokenContract(provider, TOKEN).call("balanceOf", ACCOUNT)


class TestEventTopics:
    """Test log topic naming."""

    def test_known_events(self) -> None:
        assert set(EVENT_TOPICS.values()) == {"VaultTransfer", "VaultDeposit", "Redeem", "AddToken", "RemoveToken"}
        assert all(topic.startswith("0x") and len(topic) == 66 for topic in EVENT_TOPICS)

    def test_lookup(self) -> None:
        topic = next(topic for topic, name in EVENT_TOPICS.items() if name == "AddToken")

        assert event_name_for_topic(topic.upper().replace("0X", "0x")) == "AddToken"
        assert event_name_for_topic(None) == "unknown"
