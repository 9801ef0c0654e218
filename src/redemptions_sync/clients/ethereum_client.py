"""JSON-RPC Ethereum client with rate limiting and retry handling."""

import asyncio
import itertools
import logging
from typing import Any

import aiohttp
from asyncio_throttle import Throttler

from ..config import EthereumConfig
from ..token_utils import is_valid_ethereum_address, normalize_address

logger = logging.getLogger(__name__)


class EthereumClientError(Exception):
    """Base exception for Ethereum client errors."""

    pass


class InvalidAddressError(EthereumClientError):
    """Invalid Ethereum address error."""

    pass


class APIError(EthereumClientError):
    """API request error."""

    pass


class RateLimitError(EthereumClientError):
    """Rate limit error."""

    pass


class ServiceUnavailableError(EthereumClientError):
    """Service temporarily unavailable error."""

    pass


class ContractCallError(EthereumClientError):
    """Contract call reverted or returned undecodable data."""

    pass


class EthereumClient:
    """Ethereum JSON-RPC client used for contract reads, accounts and logs."""

    def __init__(
        self,
        config: EthereumConfig,
        session: aiohttp.ClientSession | None = None,
    ):
        """Initialize Ethereum client."""
        self.config = config
        self._session = session
        self._own_session = session is None
        self._request_ids = itertools.count(1)

        # Rate limiting
        self.throttler = Throttler(rate_limit=config.rate_limit, period=60)

        self.rpc_url = config.rpc_url

        # Stats
        self._stats = {
            "call_requests": 0,
            "log_requests": 0,
            "account_requests": 0,
            "api_errors": 0,
            "rate_limit_errors": 0,
            "service_unavailable_errors": 0,
        }

        # Error handling configuration
        self.max_retries = config.max_retries
        self.retry_delay = config.retry_delay
        self.backoff_multiplier = config.backoff_multiplier
        self.rate_limit_delay = 60.0

    async def __aenter__(self):
        """Async context manager entry."""
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure HTTP session is available."""
        if self._session is None:
            connector = aiohttp.TCPConnector(
                limit=100,
                limit_per_host=30,
                ttl_dns_cache=300,
                keepalive_timeout=30,
            )

            timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)

            self._session = aiohttp.ClientSession(
                timeout=timeout,
                connector=connector,
                headers={
                    "Content-Type": "application/json",
                    "User-Agent": "RedemptionsSync/1.0",
                },
                raise_for_status=False,  # Handle status codes manually
            )
        return self._session

    async def request(self, method: str, params: list[Any]) -> Any:
        """Send a JSON-RPC request and return its ``result`` field."""
        payload = {"id": next(self._request_ids), "jsonrpc": "2.0", "method": method, "params": params}
        response = await self._make_request_with_retry(payload)
        return response.get("result")

    async def _make_request_with_retry(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Make JSON-RPC request with retry logic for transient failures."""
        last_exception = None

        for attempt in range(self.max_retries + 1):
            try:
                async with self.throttler:
                    return await self._make_single_request(payload)

            except ServiceUnavailableError as e:
                last_exception = e
                self._stats["service_unavailable_errors"] += 1

                if attempt < self.max_retries:
                    delay = self.retry_delay * (self.backoff_multiplier**attempt)
                    logger.warning(
                        f"⚠️ Node unavailable (attempt {attempt + 1}/{self.max_retries + 1}), "
                        f"retrying in {delay:.1f}s"
                    )
                    await asyncio.sleep(delay)
                    continue
                else:
                    logger.error(f"❌ Node unavailable after {self.max_retries + 1} attempts")
                    raise

            except RateLimitError as e:
                last_exception = e
                self._stats["rate_limit_errors"] += 1

                if attempt < self.max_retries:
                    logger.warning(
                        f"⚠️ Rate limited (attempt {attempt + 1}/{self.max_retries + 1}), "
                        f"waiting {self.rate_limit_delay:.0f}s"
                    )
                    await asyncio.sleep(self.rate_limit_delay)
                    continue
                else:
                    raise

        # If we get here, all retries failed
        if last_exception:
            raise last_exception
        raise APIError("All retry attempts failed")

    async def _make_single_request(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Make a single HTTP request."""
        session = await self._ensure_session()

        try:
            async with session.post(self.rpc_url, json=payload) as response:
                return await self._handle_response(response)

        except EthereumClientError:
            raise
        except TimeoutError as e:
            raise ServiceUnavailableError(f"Request timeout: {e}") from e
        except aiohttp.ClientError as e:
            self._stats["api_errors"] += 1
            logger.error(f"❌ RPC request failed: {e}")
            raise APIError(f"Request to {self.rpc_url} failed: {e}") from e

    async def _handle_response(self, response: aiohttp.ClientResponse) -> dict[str, Any]:
        """Handle HTTP response and classify JSON-RPC errors."""
        if response.status == 200:
            try:
                data = await response.json(content_type=None)
            except ValueError as e:
                raise APIError(f"Failed to parse JSON response: {e}") from e

            if "error" in data:
                error_code = data["error"].get("code", 0)
                error_msg = data["error"].get("message", "Unknown RPC error")

                if error_code == 3 or "revert" in error_msg.lower():
                    raise ContractCallError(f"Execution reverted: {error_msg}")
                elif error_code == -32005:
                    raise RateLimitError(f"Rate limited by node: {error_msg}")
                elif error_code == -32000 and "unable to complete" in error_msg.lower():
                    raise ServiceUnavailableError(f"Node temporarily unavailable: {error_msg}")
                elif error_code == -32602:
                    raise APIError(f"Invalid parameters: {error_msg}")
                elif error_code == -32601:
                    raise APIError(f"Method not found: {error_msg}")
                else:
                    raise APIError(f"RPC error (code {error_code}): {error_msg}")

            return data

        elif response.status == 429:
            raise RateLimitError("Rate limited by RPC endpoint")

        elif response.status in (502, 503, 504):
            raise ServiceUnavailableError(f"RPC endpoint temporarily unavailable ({response.status})")

        elif response.status == 401:
            raise APIError("Unauthorized (401): Check your RPC credentials")

        else:
            error_text = await response.text()
            raise APIError(f"HTTP {response.status}: {error_text}")

    async def call(self, to: str, data: bytes, block: str | int = "latest") -> bytes:
        """Execute a read-only contract call and return the raw return data."""
        if not is_valid_ethereum_address(to):
            raise InvalidAddressError(f"Invalid contract address: {to}")

        tx = {"to": normalize_address(to), "data": "0x" + data.hex()}
        result = await self.request("eth_call", [tx, _block_param(block)])
        self._stats["call_requests"] += 1

        if not isinstance(result, str) or not result.startswith("0x"):
            raise ContractCallError(f"Unexpected eth_call result from {to}: {result!r}")
        return bytes.fromhex(result[2:])

    async def get_chain_id(self) -> int:
        """Return the chain id of the connected network."""
        return _hex_quantity("eth_chainId", await self.request("eth_chainId", []))

    async def get_block_number(self) -> int:
        """Return the latest block number."""
        return _hex_quantity("eth_blockNumber", await self.request("eth_blockNumber", []))

    async def get_accounts(self) -> list[str]:
        """Return the accounts exposed by the node, first one being active."""
        self._stats["account_requests"] += 1
        accounts = await self.request("eth_accounts", []) or []
        return [normalize_address(account) for account in accounts if is_valid_ethereum_address(account)]

    async def get_logs(self, addresses: list[str], from_block: int, to_block: int) -> list[dict[str, Any]]:
        """Return logs emitted by ``addresses`` in the inclusive block range."""
        log_filter = {
            "address": [normalize_address(address) for address in addresses],
            "fromBlock": _block_param(from_block),
            "toBlock": _block_param(to_block),
        }
        logs = await self.request("eth_getLogs", [log_filter]) or []
        self._stats["log_requests"] += 1
        logger.debug(f"🔍 {len(logs)} logs in blocks {from_block}-{to_block}")
        return logs

    def get_stats(self) -> dict[str, Any]:
        """Get client statistics."""
        return {
            **self._stats,
            "rate_limit": self.config.rate_limit,
        }

    async def close(self) -> None:
        """Close HTTP session."""
        if self._session and self._own_session:
            await self._session.close()
            self._session = None
            logger.info("🔌 Ethereum client session closed")


def _block_param(block: str | int) -> str:
    if isinstance(block, int):
        return hex(block)
    return block


def _hex_quantity(method: str, result: Any) -> int:
    if not isinstance(result, str) or not result.startswith("0x"):
        raise APIError(f"Unexpected {method} result: {result!r}")
    try:
        return int(result, 16)
    except ValueError as e:
        raise APIError(f"Unexpected {method} result: {result!r}") from e
