"""Basic usage examples for the Redemptions state synchronizer.

This file demonstrates:
- Starting the synchronizer and reading the first snapshot
- Following snapshots as accounts change and redemptions happen
- Inspecting cache and client statistics
"""

import asyncio
import logging

from redemptions_sync import AppState, create_application, get_config
from redemptions_sync.bootstrap import BootstrapError
from redemptions_sync.config import ConfigurationError

# Setup logging for examples
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def format_amount(amount: int | None, decimals: int | None) -> str:
    if amount is None:
        return "-"
    if not decimals:
        return str(amount)
    return f"{amount / 10**decimals:,.4f}"


def print_snapshot(state: AppState) -> None:
    token = state.redeemable_token
    print(f"🪙 Redeemable token: {token.symbol or '?'}")
    print(f"   Total supply:    {format_amount(token.total_supply, token.decimals)}")
    print(f"   Your balance:    {format_amount(token.account_balance, token.decimals)}")
    print("🏦 Vault:")
    for entry in state.tokens:
        mark = "✔" if entry.verified else " "
        print(f"   {mark} {entry.symbol or '?':<8} {format_amount(entry.amount, entry.decimals)}")


async def example_1_first_snapshot():
    """Example 1: Start the store and print the initialized state."""

    print("🏦 Example 1: First Snapshot")
    print("=" * 50)

    async with create_application() as app:
        state = await app.wait_until_initialized()
        print_snapshot(state)
        return state.to_dict()


async def example_2_follow_updates(updates: int = 3):
    """Example 2: Print every new snapshot for a while."""

    print("\n🏦 Example 2: Following Updates")
    print("=" * 50)

    async with create_application() as app:
        version = 1
        for _ in range(updates):
            state = await app.store.wait_for_version(version)
            print(f"\n📊 Snapshot #{app.store.version}")
            print_snapshot(state)
            version = app.store.version + 1


async def example_3_statistics():
    """Example 3: Inspect cache hits and RPC usage."""

    print("\n🏦 Example 3: Statistics")
    print("=" * 50)

    async with create_application() as app:
        await app.wait_until_initialized()
        stats = app.get_stats()
        print(f"  RPC calls:        {stats['client']['call_requests']}")
        print(f"  Symbol cache:     {stats['cache']['symbols_cache']['keys']} tokens")
        print(f"  Events reduced:   {stats['store']['events_reduced']}")
        print(f"  Fallbacks used:   {stats['store']['aggregator']['fallbacks_used']}")


async def main():
    """Run all examples."""
    try:
        get_config()
    except ConfigurationError as e:
        print(f"❌ Configuration error: {e}")
        print("Set RPC_URL and REDEMPTIONS_ADDRESS in a .env file before running.")
        return

    for example in (example_1_first_snapshot, example_2_follow_updates, example_3_statistics):
        try:
            await example()
        except BootstrapError as e:
            print(f"❌ Could not start the synchronizer: {e}")
            return


if __name__ == "__main__":
    asyncio.run(main())
