import itertools
import threading
import time
from typing import Any, List, Optional

import requests

from tx_crawler.clients.ledger import LedgerClientInterface
from tx_crawler.config import LedgerSettings
from tx_crawler.exceptions import (
    ProviderRejectedError, ProviderUnavailableError, RateLimitedError
)
from tx_crawler.models import Block, parse_quantity

# JSON-RPC error codes providers use for quota / throttling rejections
RATE_LIMIT_CODES = {-32005, -32029, 429}
RATE_LIMIT_MARKERS = ("rate limit", "too many requests", "limit exceeded", "throttl")


class JsonRpcLedgerClient(LedgerClientInterface):
    """Client for an Ethereum-style JSON-RPC endpoint."""

    def __init__(self, rpc_url: Optional[str] = None):
        self.config = LedgerSettings()
        self.rpc_url = rpc_url or self.config.rpc_url
        if not self.rpc_url:
            raise ValueError("LEDGER_RPC_URL is required (e.g. https://mainnet.infura.io/v3/<key>)")
        self.timeout = self.config.request_timeout_seconds
        self.min_interval = self.config.min_request_interval_seconds
        self.headers = {"Content-Type": "application/json"}
        self._ids = itertools.count(1)
        self._pace_lock = threading.Lock()
        self._last_call_time = None

    @property
    def name(self):
        return "JSON-RPC ledger"

    def _pace(self):
        """Space calls at least `min_interval` apart across all threads."""
        if not self.min_interval:
            return
        with self._pace_lock:
            if self._last_call_time is not None:
                wait = self.min_interval - (time.monotonic() - self._last_call_time)
                if wait > 0:
                    time.sleep(wait)
            self._last_call_time = time.monotonic()

    def _call(self, method: str, params: List[Any]) -> Any:
        """POST one JSON-RPC request and translate faults into provider errors."""
        self._pace()
        payload = {"jsonrpc": "2.0", "method": method, "params": params, "id": next(self._ids)}
        try:
            response = requests.post(self.rpc_url, json=payload, headers=self.headers, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise ProviderUnavailableError(f"{method} timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise ProviderUnavailableError(f"{method} failed: {e}") from e

        if response.status_code == 429:
            raise RateLimitedError(f"{method} throttled by provider (HTTP 429)")
        if response.status_code >= 500:
            raise ProviderUnavailableError(f"{method} failed with HTTP {response.status_code}")
        if response.status_code >= 400:
            raise ProviderRejectedError(f"{method} rejected with HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderUnavailableError(f"{method} returned a non-JSON body") from e

        if not isinstance(data, dict):
            raise ProviderRejectedError(f"{method} returned an unexpected body: {data!r}")

        error = data.get("error")
        if error:
            if not isinstance(error, dict):
                raise ProviderRejectedError(f"{method} rejected: {error}")
            code = error.get("code")
            message = str(error.get("message", ""))
            if code in RATE_LIMIT_CODES or any(m in message.lower() for m in RATE_LIMIT_MARKERS):
                raise RateLimitedError(f"{method} throttled by provider: {message}")
            raise ProviderRejectedError(f"{method} rejected ({code}): {message}")

        return data.get("result")

    def _quantity(self, method: str, params: List[Any]) -> int:
        result = self._call(method, params)
        try:
            return parse_quantity(result)
        except (TypeError, ValueError) as e:
            raise ProviderRejectedError(f"{method} returned an invalid quantity: {result!r}") from e

    def get_current_height(self) -> int:
        return self._quantity("eth_blockNumber", [])

    def _get_block(self, number: int, full_transactions: bool) -> Optional[Block]:
        result = self._call("eth_getBlockByNumber", [hex(number), full_transactions])
        if result is None:
            return None
        try:
            return Block.from_rpc(result)
        except (KeyError, TypeError, ValueError) as e:
            raise ProviderRejectedError(f"Unexpected block format for {number}: {e}") from e

    def get_block_with_transactions(self, number: int) -> Optional[Block]:
        return self._get_block(number, True)

    def get_block_header(self, number: int) -> Optional[Block]:
        return self._get_block(number, False)

    def get_balance(self, address: str, block_number: int) -> int:
        return self._quantity("eth_getBalance", [address, hex(block_number)])
