"""In-memory caches for immutable token metadata."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any

from ..token_utils import normalize_address

logger = logging.getLogger(__name__)


class CacheInterface(ABC):
    """Async key/value cache."""

    @abstractmethod
    async def get(self, key: str) -> Any:
        """Return the cached value, or None when absent."""

    @abstractmethod
    async def set(self, key: str, value: Any) -> bool:
        """Store a value, returning True on success."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check whether a key is cached."""

    @abstractmethod
    async def clear(self) -> bool:
        """Drop every entry."""

    @abstractmethod
    def get_stats(self) -> dict[str, Any]:
        """Return usage counters."""


class MemoryCache(CacheInterface):
    """Unbounded process-lifetime cache without expiry.

    Writes to the same key are last-write-wins; the lock keeps concurrent
    fetch tasks from interleaving with ``clear``.
    """

    def __init__(self, name: str = "memory"):
        self.name = name
        self._data: dict[str, Any] = {}
        self._lock = asyncio.Lock()
        self._stats = {"hits": 0, "misses": 0, "sets": 0}

    def __len__(self) -> int:
        return len(self._data)

    async def get(self, key: str) -> Any:
        async with self._lock:
            if key in self._data:
                self._stats["hits"] += 1
                return self._data[key]
            self._stats["misses"] += 1
            return None

    async def set(self, key: str, value: Any) -> bool:
        async with self._lock:
            self._data[key] = value
            self._stats["sets"] += 1
        return True

    async def exists(self, key: str) -> bool:
        async with self._lock:
            return key in self._data

    async def clear(self) -> bool:
        async with self._lock:
            self._data.clear()
        return True

    def get_stats(self) -> dict[str, Any]:
        lookups = self._stats["hits"] + self._stats["misses"]
        hit_rate = (self._stats["hits"] / lookups * 100) if lookups else 0.0
        return {
            "backend": "memory",
            "name": self.name,
            "keys": len(self._data),
            **self._stats,
            "hit_rate_percent": round(hit_rate, 2),
        }


class MetadataCache:
    """Token decimals, names and symbols keyed by contract address.

    The three mappings are independent: a token may have a cached symbol
    while its decimals are still unknown.
    """

    def __init__(self) -> None:
        self.decimals: CacheInterface = MemoryCache("decimals")
        self.names: CacheInterface = MemoryCache("names")
        self.symbols: CacheInterface = MemoryCache("symbols")

    def store_for(self, field: str) -> CacheInterface:
        stores = {"decimals": self.decimals, "name": self.names, "symbol": self.symbols}
        try:
            return stores[field]
        except KeyError:
            raise ValueError(f"Unknown token metadata field: {field}") from None

    async def get(self, field: str, address: str) -> Any:
        return await self.store_for(field).get(normalize_address(address))

    async def set(self, field: str, address: str, value: Any) -> bool:
        return await self.store_for(field).set(normalize_address(address), value)

    async def get_decimals(self, address: str) -> int | None:
        return await self.get("decimals", address)

    async def set_decimals(self, address: str, decimals: int) -> bool:
        return await self.set("decimals", address, decimals)

    async def get_name(self, address: str) -> str | None:
        return await self.get("name", address)

    async def set_name(self, address: str, name: str) -> bool:
        return await self.set("name", address, name)

    async def get_symbol(self, address: str) -> str | None:
        return await self.get("symbol", address)

    async def set_symbol(self, address: str, symbol: str) -> bool:
        return await self.set("symbol", address, symbol)

    async def register_placeholder(self, address: str, decimals: int, name: str, symbol: str) -> None:
        """Seed static metadata for an address that has no token contract."""
        await self.set_decimals(address, decimals)
        await self.set_name(address, name)
        await self.set_symbol(address, symbol)
        logger.debug(f"💾 Registered placeholder metadata for {address} ({symbol})")

    def get_stats(self) -> dict[str, Any]:
        return {
            "decimals_cache": self.decimals.get_stats(),
            "names_cache": self.names.get_stats(),
            "symbols_cache": self.symbols.get_stats(),
        }
