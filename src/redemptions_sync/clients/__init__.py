"""Ethereum JSON-RPC client and contract bindings."""

from .contracts import RedemptionsContract, TokenContract, VaultContract
from .ethereum_client import (
    APIError,
    ContractCallError,
    EthereumClient,
    EthereumClientError,
    InvalidAddressError,
    RateLimitError,
    ServiceUnavailableError,
)

__all__ = [
    "APIError",
    "ContractCallError",
    "EthereumClient",
    "EthereumClientError",
    "InvalidAddressError",
    "RateLimitError",
    "RedemptionsContract",
    "ServiceUnavailableError",
    "TokenContract",
    "VaultContract",
]
