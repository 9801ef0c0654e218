"""Event-sourced state synchronizer for Aragon Redemptions apps."""

from .app import Application, create_application
from .config import AppConfig, get_config
from .state import AppState, BalanceEntry, RedeemableTokenState, Settings
from .store import RedemptionsStore

__version__ = "0.1.0"

__all__ = [
    "AppConfig",
    "AppState",
    "Application",
    "BalanceEntry",
    "RedeemableTokenState",
    "RedemptionsStore",
    "Settings",
    "create_application",
    "get_config",
]
