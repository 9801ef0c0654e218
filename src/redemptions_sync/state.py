"""Immutable settings and state snapshot types."""

from dataclasses import asdict, dataclass, field
from typing import Any

from .clients.contracts import TokenContract, VaultContract


@dataclass(frozen=True)
class Network:
    """Connected network identity."""

    id: int
    type: str


@dataclass(frozen=True)
class Settings:
    """Contract handles and network identity resolved once at bootstrap."""

    network: Network
    eth_token_address: str
    vault_address: str
    vault: VaultContract
    redeemable_token_address: str
    redeemable_token: TokenContract


@dataclass(frozen=True)
class BalanceEntry:
    """Vault balance of one redeemable asset."""

    address: str
    name: str
    symbol: str
    decimals: int
    amount: int
    verified: bool


@dataclass(frozen=True)
class RedeemableTokenState:
    symbol: str | None = None
    decimals: int | None = None
    total_supply: int | None = None
    account_balance: int | None = None


@dataclass(frozen=True)
class AppState:
    """One snapshot of the application state."""

    redeemable_token: RedeemableTokenState = field(default_factory=RedeemableTokenState)
    tokens: tuple[BalanceEntry, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "redeemable_token": asdict(self.redeemable_token),
            "tokens": [asdict(token) for token in self.tokens],
        }
