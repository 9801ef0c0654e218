"""Minimal ABI bindings for the Redemptions app, its vault and ERC-20 tokens."""

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError, EncodingError
from eth_utils import event_signature_to_log_topic, function_signature_to_4byte_selector

from ..token_utils import normalize_address
from .ethereum_client import ContractCallError

logger = logging.getLogger(__name__)


class CallProvider(Protocol):
    """Anything able to execute ``eth_call`` against a contract address."""

    async def call(self, to: str, data: bytes, block: str | int = "latest") -> bytes: ...


@dataclass(frozen=True)
class ContractFunction:
    """A view function described by its name and ABI input/output types."""

    name: str
    inputs: tuple[str, ...] = ()
    outputs: tuple[str, ...] = ()

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.inputs)})"

    @property
    def selector(self) -> bytes:
        return function_signature_to_4byte_selector(self.signature)

    def encode_call(self, *args: Any) -> bytes:
        if len(args) != len(self.inputs):
            raise ValueError(f"{self.signature} expects {len(self.inputs)} arguments, got {len(args)}")
        try:
            return self.selector + encode(list(self.inputs), list(args))
        except EncodingError as e:
            raise ValueError(f"Cannot encode arguments for {self.signature}: {e}") from e

    def decode_result(self, data: bytes) -> Any:
        """Decode return data; single outputs are unwrapped."""
        if not data:
            raise ContractCallError(f"{self.signature} returned no data")
        try:
            values = decode(list(self.outputs), data)
        except (DecodingError, OverflowError, ValueError) as e:
            raise ContractCallError(f"Cannot decode {self.signature} result: {e}") from e
        return values[0] if len(values) == 1 else values


class Contract:
    """Read-only handle to a deployed contract."""

    functions: tuple[ContractFunction, ...] = ()

    def __init__(self, client: CallProvider, address: str):
        self.client = client
        self.address = normalize_address(address)
        self._functions = {function.name: function for function in self.functions}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.address})"

    async def call_raw(self, name: str, *args: Any) -> bytes:
        function = self._functions.get(name)
        if function is None:
            raise ValueError(f"{type(self).__name__} has no function {name!r}")
        return await self.client.call(self.address, function.encode_call(*args))

    async def call(self, name: str, *args: Any) -> Any:
        data = await self.call_raw(name, *args)
        return self._functions[name].decode_result(data)


class RedemptionsContract(Contract):
    """The Redemptions app contract."""

    functions = (
        ContractFunction("vault", (), ("address",)),
        ContractFunction("getRedeemableToken", (), ("address",)),
        ContractFunction("getTokens", (), ("address[]",)),
        ContractFunction("spendableBalanceOf", ("address",), ("uint256",)),
    )

    async def vault(self) -> str:
        return normalize_address(await self.call("vault"))

    async def get_redeemable_token(self) -> str:
        return normalize_address(await self.call("getRedeemableToken"))

    async def get_tokens(self) -> list[str]:
        return [normalize_address(token) for token in await self.call("getTokens")]

    async def spendable_balance_of(self, account: str) -> int:
        return await self.call("spendableBalanceOf", normalize_address(account))


class VaultContract(Contract):
    """Aragon vault holding the redeemable assets."""

    functions = (
        ContractFunction("balance", ("address",), ("uint256",)),
        ContractFunction("getInitializationBlock", (), ("uint256",)),
    )

    async def balance(self, token: str) -> int:
        return await self.call("balance", normalize_address(token))

    async def get_initialization_block(self) -> int:
        return await self.call("getInitializationBlock")


class TokenContract(Contract):
    """ERC-20 token, tolerant of bytes32 name/symbol implementations."""

    functions = (
        ContractFunction("decimals", (), ("uint8",)),
        ContractFunction("name", (), ("string",)),
        ContractFunction("symbol", (), ("string",)),
        ContractFunction("totalSupply", (), ("uint256",)),
    )

    async def decimals(self) -> int:
        return await self.call("decimals")

    async def total_supply(self) -> int:
        return await self.call("totalSupply")

    async def name(self) -> str:
        return self._decode_text("name", await self.call_raw("name"))

    async def symbol(self) -> str:
        return self._decode_text("symbol", await self.call_raw("symbol"))

    def _decode_text(self, name: str, data: bytes) -> str:
        try:
            return self._functions[name].decode_result(data)
        except ContractCallError:
            if len(data) != 32:
                raise
        # Legacy tokens (MKR, SAI) return a NUL padded bytes32
        logger.debug(f"🔍 {self.address}.{name}() returned bytes32")
        return data.rstrip(b"\x00").decode("utf-8", errors="ignore")


# Logs emitted by the vault and the Redemptions app, keyed by topic0.
EVENT_SIGNATURES = (
    "VaultTransfer(address,address,uint256)",
    "VaultDeposit(address,address,uint256)",
    "Redeem(address,uint256)",
    "AddToken(address)",
    "RemoveToken(address)",
)

EVENT_TOPICS: dict[str, str] = {
    "0x" + event_signature_to_log_topic(signature).hex(): signature.split("(")[0] for signature in EVENT_SIGNATURES
}


def event_name_for_topic(topic: str | None) -> str:
    if not topic:
        return "unknown"
    return EVENT_TOPICS.get(topic.lower(), "unknown")
