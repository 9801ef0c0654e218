"""In-memory stand-ins for the external contracts."""

import asyncio
from collections import Counter
from typing import Any

from redemptions_sync.clients.ethereum_client import ContractCallError

APP_ADDRESS = "0x" + "a1" * 20
VAULT_ADDRESS = "0x" + "b2" * 20
REDEEMABLE_ADDRESS = "0x" + "c3" * 20
WBTC_ADDRESS = "0x2260fac5e5542a773aa44fbcfedf7c193bc2c599"
TOKEN_1 = "0x" + "11" * 20
TOKEN_2 = "0x" + "22" * 20


class FakeToken:
    """ERC-20 stand-in recording every metadata call."""

    def __init__(
        self,
        address: str,
        decimals: Any = 18,
        name: Any = "Token",
        symbol: Any = "TKN",
        total_supply: int = 0,
        failing: tuple[str, ...] = (),
    ) -> None:
        self.address = address
        self.values: dict[str, Any] = {
            "decimals": decimals,
            "name": name,
            "symbol": symbol,
            "total_supply": total_supply,
        }
        self.failing = set(failing)
        self.calls: Counter[str] = Counter()

    async def _get(self, field: str) -> Any:
        self.calls[field] += 1
        await asyncio.sleep(0)
        if field in self.failing:
            raise ContractCallError(f"{field}() reverted")
        return self.values[field]

    async def decimals(self) -> Any:
        return await self._get("decimals")

    async def name(self) -> Any:
        return await self._get("name")

    async def symbol(self) -> Any:
        return await self._get("symbol")

    async def total_supply(self) -> int:
        return await self._get("total_supply")


class FakeVault:
    """Vault stand-in; ``delays`` lets tests reorder balance completions."""

    def __init__(self, balances: dict[str, int] | None = None, delays: dict[str, float] | None = None) -> None:
        self.address = VAULT_ADDRESS
        self.balances = balances or {}
        self.delays = delays or {}
        self.failing = False
        self.initialization_block: int | Exception = 100
        self.calls: Counter[str] = Counter()

    async def balance(self, token: str) -> int:
        self.calls[token] += 1
        await asyncio.sleep(self.delays.get(token, 0))
        if self.failing:
            raise ContractCallError("balance() reverted")
        return self.balances.get(token, 0)

    async def get_initialization_block(self) -> int:
        if isinstance(self.initialization_block, Exception):
            raise self.initialization_block
        return self.initialization_block


class FakeRedemptions:
    """Redemptions app stand-in."""

    def __init__(self, tokens: list[str] | None = None) -> None:
        self.address = APP_ADDRESS
        self.tokens = tokens or []
        self.spendable: dict[str, int] = {}
        self.vault_address: str | Exception = VAULT_ADDRESS
        self.redeemable_token_address: str | Exception = REDEEMABLE_ADDRESS
        self.calls: Counter[str] = Counter()

    async def vault(self) -> str:
        self.calls["vault"] += 1
        if isinstance(self.vault_address, Exception):
            raise self.vault_address
        return self.vault_address

    async def get_redeemable_token(self) -> str:
        if isinstance(self.redeemable_token_address, Exception):
            raise self.redeemable_token_address
        return self.redeemable_token_address

    async def get_tokens(self) -> list[str]:
        self.calls["get_tokens"] += 1
        return list(self.tokens)

    async def spendable_balance_of(self, account: str) -> int:
        self.calls["spendable_balance_of"] += 1
        return self.spendable.get(account, 0)


class TokenRegistry:
    """Token factory handing out pre-registered fakes."""

    def __init__(self, tokens: dict[str, FakeToken] | None = None) -> None:
        self.tokens = tokens or {}
        self.created: list[str] = []

    def __call__(self, address: str) -> FakeToken:
        self.created.append(address)
        return self.tokens.setdefault(address, FakeToken(address))
