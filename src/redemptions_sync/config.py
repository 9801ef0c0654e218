"""Configuration for the Redemptions state synchronizer."""

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from dotenv import load_dotenv


class ConfigurationError(Exception):
    """Invalid or incomplete configuration."""

    pass


class Environment(str, Enum):
    """Deployment environment."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TEST = "test"


@dataclass
class EthereumConfig:
    """JSON-RPC endpoint settings."""

    rpc_url: str = "http://localhost:8545"
    rate_limit: int = 600  # requests per minute
    timeout_seconds: float = 30.0
    max_retries: int = 3
    retry_delay: float = 1.0
    backoff_multiplier: float = 2.0


@dataclass
class SyncConfig:
    """Store and event source settings."""

    app_address: str = ""
    account: str | None = None
    poll_interval: float = 4.0
    bootstrap_retry_delay: float = 1.0
    max_bootstrap_attempts: int | None = 10
    log_block_range: int = 5000


@dataclass
class AppConfig:
    """Top level application configuration."""

    environment: Environment = Environment.DEVELOPMENT
    debug: bool = False
    log_level: str = "INFO"
    ethereum: EthereumConfig = field(default_factory=EthereumConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)

    def validate(self) -> None:
        """Raise ConfigurationError describing every invalid value."""
        errors = []

        if not self.ethereum.rpc_url.startswith(("http://", "https://")):
            errors.append(f"RPC_URL must be an http(s) URL, got {self.ethereum.rpc_url!r}")
        if self.ethereum.rate_limit <= 0:
            errors.append("ETHEREUM_RATE_LIMIT must be positive")
        if not self.sync.app_address:
            errors.append("REDEMPTIONS_ADDRESS is required")
        if self.sync.poll_interval <= 0:
            errors.append("POLL_INTERVAL must be positive")
        if self.sync.bootstrap_retry_delay < 0:
            errors.append("BOOTSTRAP_RETRY_DELAY must not be negative")
        if self.sync.max_bootstrap_attempts is not None and self.sync.max_bootstrap_attempts < 1:
            errors.append("MAX_BOOTSTRAP_ATTEMPTS must be at least 1")
        if self.sync.log_block_range < 1:
            errors.append("log_block_range must be at least 1")
        if self.log_level.upper() not in logging.getLevelNamesMapping():
            errors.append(f"Unknown LOG_LEVEL: {self.log_level}")

        if errors:
            raise ConfigurationError("; ".join(errors))


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_number(name: str, default, cast):
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return cast(value)
    except ValueError as e:
        raise ConfigurationError(f"{name} is not a valid number: {value!r}") from e


def get_config(env_file: str | Path | None = None) -> AppConfig:
    """Build configuration from the environment, loading a .env file first."""
    load_dotenv(env_file, override=False)

    max_attempts_raw = os.getenv("MAX_BOOTSTRAP_ATTEMPTS", "10").strip().lower()
    if max_attempts_raw in ("", "none", "unlimited"):
        max_attempts = None
    else:
        max_attempts = _env_number("MAX_BOOTSTRAP_ATTEMPTS", 10, int)

    try:
        environment = Environment(os.getenv("ENVIRONMENT", Environment.DEVELOPMENT.value).lower())
    except ValueError as e:
        raise ConfigurationError(f"Unknown ENVIRONMENT: {os.getenv('ENVIRONMENT')}") from e

    config = AppConfig(
        environment=environment,
        debug=_env_bool("DEBUG", False),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        ethereum=EthereumConfig(
            rpc_url=os.getenv("RPC_URL", EthereumConfig.rpc_url),
            rate_limit=_env_number("ETHEREUM_RATE_LIMIT", EthereumConfig.rate_limit, int),
        ),
        sync=SyncConfig(
            app_address=os.getenv("REDEMPTIONS_ADDRESS", ""),
            account=os.getenv("ACCOUNT_ADDRESS") or None,
            poll_interval=_env_number("POLL_INTERVAL", SyncConfig.poll_interval, float),
            bootstrap_retry_delay=_env_number("BOOTSTRAP_RETRY_DELAY", SyncConfig.bootstrap_retry_delay, float),
            max_bootstrap_attempts=max_attempts,
        ),
    )
    config.validate()
    return config


def setup_logging(config: AppConfig) -> None:
    """Configure root logging once for the process."""
    level = logging.DEBUG if config.debug else getattr(logging, config.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
