"""Run the Redemptions state synchronizer until interrupted."""

import asyncio
import logging

from .app import create_application
from .bootstrap import BootstrapError
from .config import ConfigurationError, get_config, setup_logging
from .state import AppState

logger = logging.getLogger("redemptions_sync")


def log_snapshot(state: AppState) -> None:
    token = state.redeemable_token
    logger.info(
        f"📊 Supply {token.total_supply} {token.symbol or '?'}, account balance {token.account_balance}, "
        f"{len(state.tokens)} vault tokens"
    )
    for entry in state.tokens:
        logger.info(f"   {entry.symbol or '?'}: {entry.amount} (decimals {entry.decimals}, verified {entry.verified})")


async def main() -> None:
    config = get_config()
    setup_logging(config)

    async with create_application(config) as app:
        app.store.add_listener(log_snapshot)
        await asyncio.Event().wait()


def run() -> None:
    try:
        asyncio.run(main())
    except ConfigurationError as e:
        raise SystemExit(f"Configuration error: {e}") from e
    except BootstrapError as e:
        raise SystemExit(f"Could not start the synchronizer: {e}") from e
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
