"""Event types and the sources merged into the store's event stream."""

import asyncio
import logging
from collections.abc import AsyncIterable, AsyncIterator, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from .clients.contracts import event_name_for_topic
from .clients.ethereum_client import EthereumClient, EthereumClientError
from .token_utils import normalize_address

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class InitializationEvent:
    """Synthetic first event of every store."""


@dataclass(frozen=True)
class AccountChangedEvent:
    account: str


@dataclass(frozen=True)
class LedgerLogEvent:
    """A contract log observed on chain."""

    address: str
    event: str
    payload: dict[str, Any] = field(default_factory=dict, compare=False)
    block_number: int | None = None
    log_index: int | None = None
    transaction_hash: str | None = None


Event = InitializationEvent | AccountChangedEvent | LedgerLogEvent


class ReplayLatest(Generic[T]):
    """Single-slot broadcast channel.

    Publishing overwrites the slot. Each subscriber, including one joining
    late, receives the most recent value and then only newer values; a slow
    subscriber skips intermediate values instead of building a backlog.
    Publishing a value equal to the current one is ignored.
    """

    def __init__(self) -> None:
        self._value: T | None = None
        self._version = 0
        self._changed = asyncio.Condition()

    @property
    def latest(self) -> T | None:
        return self._value

    async def publish(self, value: T) -> bool:
        async with self._changed:
            if self._version and value == self._value:
                return False
            self._value = value
            self._version += 1
            self._changed.notify_all()
        return True

    async def subscribe(self) -> AsyncIterator[T]:
        seen = 0
        while True:
            async with self._changed:
                await self._changed.wait_for(lambda: self._version > seen)
                seen = self._version
                value = self._value
            yield value


class AccountWatcher:
    """Publishes the active account and turns it into AccountChanged events."""

    def __init__(
        self,
        client: EthereumClient,
        poll_interval: float,
        fixed_account: str | None = None,
        channel: ReplayLatest[str] | None = None,
    ):
        self.client = client
        self.poll_interval = poll_interval
        self.fixed_account = fixed_account
        self.channel: ReplayLatest[str] = channel or ReplayLatest()

    async def run(self) -> None:
        """Feed the channel until cancelled."""
        if self.fixed_account:
            await self.channel.publish(normalize_address(self.fixed_account))
            return

        while True:
            try:
                accounts = await self.client.get_accounts()
                if accounts and await self.channel.publish(accounts[0]):
                    logger.info(f"👤 Active account: {accounts[0]}")
            except EthereumClientError as e:
                logger.warning(f"⚠️ Failed to poll accounts: {e}")
            await asyncio.sleep(self.poll_interval)

    async def events(self) -> AsyncIterator[AccountChangedEvent]:
        poller = asyncio.create_task(self.run())
        poller.add_done_callback(_log_poller_failure)
        try:
            async for account in self.channel.subscribe():
                yield AccountChangedEvent(account=account)
        finally:
            poller.cancel()
            await asyncio.gather(poller, return_exceptions=True)


def _log_poller_failure(task: asyncio.Task) -> None:
    if task.cancelled() or task.exception() is None:
        return
    logger.error(f"❌ Account poller stopped: {task.exception()!r}", exc_info=task.exception())


def _hex_to_int(value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, int):
        return value
    return int(value, 16)


class LogWatcher:
    """Polls ``eth_getLogs`` for a set of contracts from a start block."""

    def __init__(
        self,
        client: EthereumClient,
        addresses: Sequence[str],
        start_block: int | None,
        poll_interval: float,
        block_range: int = 5000,
    ):
        self.client = client
        self.addresses = [normalize_address(address) for address in addresses]
        # Unknown start block means scanning from genesis
        self.cursor = start_block or 0
        self.poll_interval = poll_interval
        self.block_range = block_range

    @staticmethod
    def to_event(log: dict[str, Any]) -> LedgerLogEvent:
        topics = log.get("topics") or []
        return LedgerLogEvent(
            address=normalize_address(log.get("address", "")),
            event=event_name_for_topic(topics[0] if topics else None),
            payload=log,
            block_number=_hex_to_int(log.get("blockNumber")),
            log_index=_hex_to_int(log.get("logIndex")),
            transaction_hash=log.get("transactionHash"),
        )

    async def events(self) -> AsyncIterator[LedgerLogEvent]:
        while True:
            try:
                latest = await self.client.get_block_number()
                while self.cursor <= latest:
                    to_block = min(self.cursor + self.block_range - 1, latest)
                    logs = await self.client.get_logs(self.addresses, self.cursor, to_block)
                    events = [self.to_event(log) for log in logs if not log.get("removed")]
                    events.sort(key=lambda event: (event.block_number or 0, event.log_index or 0))
                    for event in events:
                        yield event
                    self.cursor = to_block + 1
            except EthereumClientError as e:
                logger.warning(f"⚠️ Log polling failed at block {self.cursor}: {e}")
            await asyncio.sleep(self.poll_interval)


class EventMultiplexer:
    """Merges event sources into one ordered stream.

    The initialization event is queued before any source is pumped, so it is
    always delivered first. Afterwards events are delivered in arrival order.
    The queue holds ``max_pending`` events; full queues suspend the sources.
    """

    def __init__(self, sources: Sequence[AsyncIterable[Event]], max_pending: int = 1):
        self.sources = list(sources)
        self._queue: asyncio.Queue[Event] = asyncio.Queue(maxsize=max_pending)
        self._pumps: list[asyncio.Task] = []
        self._started = False

    def start(self) -> None:
        if self._started:
            return
        self._started = True
        self._queue.put_nowait(InitializationEvent())
        self._pumps = [asyncio.create_task(self._pump(source)) for source in self.sources]

    async def _pump(self, source: AsyncIterable[Event]) -> None:
        try:
            async for event in source:
                await self._queue.put(event)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception(f"❌ Event source {source!r} stopped")
        finally:
            close = getattr(source, "aclose", None)
            if close is not None:
                await close()

    def __aiter__(self) -> AsyncIterator[Event]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[Event]:
        self.start()
        while True:
            yield await self._queue.get()

    async def aclose(self) -> None:
        for pump in self._pumps:
            pump.cancel()
        await asyncio.gather(*self._pumps, return_exceptions=True)
        self._pumps = []
