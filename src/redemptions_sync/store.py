"""Serialized reducer producing immutable application state snapshots."""

import asyncio
import dataclasses
import logging
from collections.abc import AsyncIterable, Callable
from typing import Any

from .aggregator import BalanceAggregator
from .bootstrap import resolve_initialization_block
from .clients.contracts import RedemptionsContract
from .clients.ethereum_client import EthereumClient
from .config import SyncConfig
from .events import (
    AccountChangedEvent,
    AccountWatcher,
    Event,
    EventMultiplexer,
    InitializationEvent,
    LedgerLogEvent,
    LogWatcher,
)
from .state import AppState, BalanceEntry, RedeemableTokenState, Settings
from .token_utils import addresses_equal

logger = logging.getLogger(__name__)

StateListener = Callable[[AppState], None]


class RedemptionsStore:
    """Folds events into state snapshots, one event at a time.

    A failed reduction is logged and the previous snapshot stays current.
    Readers use ``state`` and never wait on a reduction in progress.
    """

    def __init__(
        self,
        settings: Settings,
        app: RedemptionsContract,
        aggregator: BalanceAggregator,
        events: AsyncIterable[Event] | None = None,
        initial_state: AppState | None = None,
    ):
        self.settings = settings
        self.app = app
        self.aggregator = aggregator
        self.events = events
        self.initialized = False
        self._state = initial_state or AppState()
        self._version = 0
        self._listeners: list[StateListener] = []
        self._reduce_lock = asyncio.Lock()
        self._committed = asyncio.Condition()
        self._stats = {"events_reduced": 0, "events_failed": 0}

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def version(self) -> int:
        """Number of snapshots committed so far."""
        return self._version

    def add_listener(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    async def wait_for_version(self, version: int) -> AppState:
        async with self._committed:
            await self._committed.wait_for(lambda: self._version >= version)
            return self._state

    async def run(self, events: AsyncIterable[Event] | None = None) -> None:
        """Reduce events forever, strictly one after another."""
        source = events if events is not None else self.events
        if source is None:
            raise ValueError("No event source to run the store on")
        async for event in source:
            await self.apply(event)

    async def apply(self, event: Event) -> AppState:
        """Reduce one event and commit the result, keeping the prior state on failure."""
        async with self._reduce_lock:
            logger.debug(f"📨 Reducing {event!r}")
            try:
                next_state = await self.reduce(self._state, event)
            except Exception:
                self._stats["events_failed"] += 1
                logger.exception(f"❌ Failed to reduce {type(event).__name__}, keeping previous state")
                return self._state

            if isinstance(event, InitializationEvent):
                self.initialized = True
            await self._commit(next_state)
            return next_state

    async def _commit(self, state: AppState) -> None:
        async with self._committed:
            self._state = state
            self._version += 1
            self._stats["events_reduced"] += 1
            self._committed.notify_all()

        for listener in self._listeners:
            try:
                listener(state)
            except Exception:
                logger.exception("❌ State listener failed")

    async def reduce(self, state: AppState, event: Event) -> AppState:
        match event:
            case InitializationEvent():
                return await self.initialize_state(state)
            case AccountChangedEvent(account=account):
                return await self.update_connected_account(state, account)
            case LedgerLogEvent(address=address) if addresses_equal(address, self.settings.vault_address):
                # Vault events carry no handler; token changes arrive as app events
                return dataclasses.replace(state)
            case LedgerLogEvent():
                return await self.update_on_redemption(state)
            case _:
                raise TypeError(f"Unsupported event: {event!r}")

    async def initialize_state(self, state: AppState) -> AppState:
        token_data, tokens = await asyncio.gather(self.get_redeemable_token_data(), self.update_tokens())
        return dataclasses.replace(
            state,
            redeemable_token=dataclasses.replace(state.redeemable_token, **token_data),
            tokens=tokens,
        )

    async def update_connected_account(self, state: AppState, account: str) -> AppState:
        balance = await self.app.spendable_balance_of(account)
        return dataclasses.replace(
            state,
            redeemable_token=dataclasses.replace(state.redeemable_token, account_balance=balance),
        )

    async def update_on_redemption(self, state: AppState) -> AppState:
        total_supply, tokens = await asyncio.gather(
            self.settings.redeemable_token.total_supply(),
            self.update_tokens(),
        )
        return dataclasses.replace(
            state,
            redeemable_token=dataclasses.replace(state.redeemable_token, total_supply=total_supply),
            tokens=tokens,
        )

    async def update_tokens(self) -> tuple[BalanceEntry, ...]:
        tokens = await self.app.get_tokens()
        return tuple(await self.aggregator.get_vault_balances(tokens, self.settings))

    async def get_redeemable_token_data(self) -> dict[str, Any]:
        token = self.settings.redeemable_token
        symbol, decimals, total_supply = await asyncio.gather(token.symbol(), token.decimals(), token.total_supply())
        return {"symbol": symbol, "decimals": decimals, "total_supply": total_supply}

    def get_stats(self) -> dict[str, Any]:
        return {
            **self._stats,
            "version": self._version,
            "initialized": self.initialized,
            "aggregator": self.aggregator.get_stats(),
        }


async def create_store(
    client: EthereumClient,
    config: SyncConfig,
    settings: Settings,
    app: RedemptionsContract,
    aggregator: BalanceAggregator,
) -> RedemptionsStore:
    """Wire the event sources for ``settings`` into a new store."""
    start_block = await resolve_initialization_block(settings.vault)

    accounts = AccountWatcher(client, config.poll_interval, fixed_account=config.account)
    logs = LogWatcher(
        client,
        [app.address, settings.vault_address],
        start_block=start_block,
        poll_interval=config.poll_interval,
        block_range=config.log_block_range,
    )
    events = EventMultiplexer([accounts.events(), logs.events()])

    logger.info(f"🚀 Store created, watching logs from block {start_block if start_block is not None else 0}")
    return RedemptionsStore(settings, app, aggregator, events=events)
