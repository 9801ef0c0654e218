"""Application wiring: client, bootstrap, store and its background task."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from .aggregator import BalanceAggregator
from .bootstrap import bootstrap_with_retry, make_token_factory, resolve_settings
from .clients.contracts import RedemptionsContract
from .clients.ethereum_client import EthereumClient
from .config import AppConfig, get_config
from .events import EventMultiplexer
from .state import AppState
from .store import RedemptionsStore, create_store
from .utils.cache import MetadataCache

logger = logging.getLogger(__name__)


class Application:
    """Runs one Redemptions store for the process lifetime."""

    def __init__(self, config: AppConfig, client: EthereumClient | None = None):
        self.config = config
        self.client = client or EthereumClient(config.ethereum)
        self.cache = MetadataCache()
        self.app_contract = RedemptionsContract(self.client, config.sync.app_address)
        self.store: RedemptionsStore | None = None
        self._task: asyncio.Task | None = None

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    @property
    def state(self) -> AppState | None:
        """Latest snapshot, or None before the store exists."""
        return self.store.state if self.store else None

    async def start(self) -> None:
        logger.info(f"🚀 Starting Redemptions sync for {self.app_contract.address}")
        settings = await bootstrap_with_retry(
            lambda: resolve_settings(self.client, self.app_contract, self.cache),
            retry_delay=self.config.sync.bootstrap_retry_delay,
            max_attempts=self.config.sync.max_bootstrap_attempts,
        )
        aggregator = BalanceAggregator(self.cache, make_token_factory(self.client))
        self.store = await create_store(self.client, self.config.sync, settings, self.app_contract, aggregator)
        self._task = asyncio.create_task(self.store.run())

    async def wait_until_initialized(self) -> AppState:
        if self.store is None:
            raise RuntimeError("Application has not been started")
        return await self.store.wait_for_version(1)

    def get_stats(self) -> dict[str, Any]:
        return {
            "client": self.client.get_stats(),
            "cache": self.cache.get_stats(),
            "store": self.store.get_stats() if self.store else None,
        }

    async def close(self) -> None:
        if self._task:
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
            self._task = None
        if self.store and isinstance(self.store.events, EventMultiplexer):
            await self.store.events.aclose()
        await self.client.close()


@asynccontextmanager
async def create_application(config: AppConfig | None = None) -> AsyncIterator[Application]:
    """Create, start and finally close an Application."""
    app = Application(config or get_config())
    try:
        await app.start()
        yield app
    finally:
        await app.close()
