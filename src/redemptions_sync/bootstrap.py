"""One-time resolution of contract handles and network identity."""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from .clients.contracts import CallProvider, RedemptionsContract, TokenContract, VaultContract
from .clients.ethereum_client import EthereumClient, EthereumClientError
from .state import Network, Settings
from .token_utils import ETHER_TOKEN_FAKE_ADDRESS
from .utils.cache import MetadataCache

logger = logging.getLogger(__name__)

NETWORK_TYPES = {
    1: "main",
    3: "ropsten",
    4: "rinkeby",
    5: "goerli",
    42: "kovan",
    100: "xdai",
}


class BootstrapError(Exception):
    """Settings could not be resolved; the store cannot start."""

    pass


def network_for_chain_id(chain_id: int) -> Network:
    return Network(id=chain_id, type=NETWORK_TYPES.get(chain_id, "private"))


async def resolve_settings(
    client: EthereumClient,
    app: RedemptionsContract,
    cache: MetadataCache,
    eth_address: str = ETHER_TOKEN_FAKE_ADDRESS,
) -> Settings:
    """Resolve vault, redeemable token and network, in that order.

    Registers the native asset placeholder metadata in ``cache`` so it is
    never fetched from a contract.
    """
    try:
        vault_address = await app.vault()
        redeemable_token_address = await app.get_redeemable_token()
        network = network_for_chain_id(await client.get_chain_id())
    except EthereumClientError as e:
        raise BootstrapError(f"Could not resolve the vault or redeemable token of {app.address}: {e}") from e

    await cache.register_placeholder(eth_address, decimals=18, name="Ether", symbol="ETH")

    logger.info(
        f"🚀 Resolved settings on {network.type}: vault {vault_address}, redeemable token {redeemable_token_address}"
    )
    return Settings(
        network=network,
        eth_token_address=eth_address,
        vault_address=vault_address,
        vault=VaultContract(client, vault_address),
        redeemable_token_address=redeemable_token_address,
        redeemable_token=TokenContract(client, redeemable_token_address),
    )


async def resolve_initialization_block(vault: VaultContract) -> int | None:
    """Return the vault initialization block, or None when it cannot be read."""
    try:
        return await vault.get_initialization_block()
    except EthereumClientError as e:
        logger.error(f"❌ Could not get attached vault's initialization block: {e}")
        return None


async def bootstrap_with_retry(
    bootstrap: Callable[[], Awaitable[Settings]],
    retry_delay: float,
    max_attempts: int | None,
) -> Settings:
    """Run ``bootstrap`` until it succeeds, waiting a fixed delay between tries.

    ``max_attempts=None`` retries indefinitely.
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            return await bootstrap()
        except BootstrapError as e:
            if max_attempts is not None and attempt >= max_attempts:
                logger.error(f"❌ Giving up on bootstrap after {attempt} attempts: {e}")
                raise
            logger.warning(f"⚠️ Bootstrap attempt {attempt} failed, retrying in {retry_delay:.1f}s: {e}")
            await asyncio.sleep(retry_delay)


def make_token_factory(client: CallProvider) -> Callable[[str], TokenContract]:
    def token_factory(address: str) -> TokenContract:
        return TokenContract(client, address)

    return token_factory
