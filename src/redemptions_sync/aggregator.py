"""Vault balance aggregation with cached, fallback-aware token metadata."""

import asyncio
import logging
from collections.abc import Callable, Sequence
from typing import Any

from .clients.contracts import TokenContract
from .clients.ethereum_client import EthereumClientError
from .state import BalanceEntry, Settings
from .token_utils import addresses_equal, is_token_verified, normalize_address, token_data_fallback
from .utils.cache import MetadataCache

logger = logging.getLogger(__name__)

METADATA_DEFAULTS: dict[str, Any] = {"decimals": 0, "name": "", "symbol": ""}


def _is_empty(value: Any) -> bool:
    return value is None or value == ""


class BalanceAggregator:
    """Builds the list of vault balance entries for a set of tokens.

    Balances are always read live. Decimals, names and symbols are looked up
    in the metadata cache first, then fetched once from the token contract,
    then taken from the fallback table, and finally defaulted.
    """

    def __init__(self, cache: MetadataCache, token_factory: Callable[[str], TokenContract]):
        self.cache = cache
        self.token_factory = token_factory
        self._token_contracts: dict[str, TokenContract] = {}
        self._stats = {
            "refreshes": 0,
            "metadata_requests": 0,
            "metadata_failures": 0,
            "fallbacks_used": 0,
        }

    def token_contract(self, address: str) -> TokenContract:
        """Return the memoized contract handle for a token address."""
        key = normalize_address(address)
        contract = self._token_contracts.get(key)
        if contract is None:
            contract = self.token_factory(key)
            self._token_contracts[key] = contract
        return contract

    async def get_vault_balances(self, tokens: Sequence[str], settings: Settings) -> list[BalanceEntry]:
        """Resolve every token concurrently, preserving the input order."""
        self._stats["refreshes"] += 1
        entries = await asyncio.gather(*(self.new_balance_entry(address, settings) for address in tokens))
        logger.info(f"🪙 Refreshed {len(entries)} vault balances")
        return list(entries)

    async def new_balance_entry(self, address: str, settings: Settings) -> BalanceEntry:
        token = self.token_contract(address)
        network_type = settings.network.type

        balance, decimals, name, symbol = await asyncio.gather(
            settings.vault.balance(address),
            self.load_metadata(token, address, "decimals", network_type),
            self.load_metadata(token, address, "name", network_type),
            self.load_metadata(token, address, "symbol", network_type),
        )

        return BalanceEntry(
            address=normalize_address(address),
            name=name,
            symbol=symbol,
            decimals=decimals,
            amount=balance,
            verified=(
                is_token_verified(address, network_type) or addresses_equal(address, settings.eth_token_address)
            ),
        )

    async def load_metadata(self, token: TokenContract, address: str, field: str, network_type: str) -> Any:
        """Resolve one metadata field: cache, live fetch, fallback table, default."""
        cached = await self.cache.get(field, address)
        if cached is not None:
            return cached

        value = await self._fetch_metadata(token, field)
        if not _is_empty(value):
            await self.cache.set(field, address, value)
            return value

        fallback = token_data_fallback(address, field, network_type)
        if fallback is not None:
            self._stats["fallbacks_used"] += 1
            logger.debug(f"🔄 Using fallback {field} for {address}: {fallback!r}")
            return fallback

        return METADATA_DEFAULTS[field]

    async def _fetch_metadata(self, token: TokenContract, field: str) -> Any | None:
        """Fetch a metadata field; metadata is optional, so failures yield None."""
        self._stats["metadata_requests"] += 1
        try:
            return await getattr(token, field)()
        except EthereumClientError as e:
            self._stats["metadata_failures"] += 1
            logger.debug(f"⚠️ Could not load {field} for {token.address}: {e}")
            return None

    def get_stats(self) -> dict[str, Any]:
        return {**self._stats, "known_tokens": len(self._token_contracts)}
