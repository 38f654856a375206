"""
Solana JSON-RPC account reader.

Implements AccountReader over getAccountInfo / getMultipleAccounts with
base64 account encoding, so one HTTP request returns the raw bytes of up
to 100 accounts in request order.
"""

import base64
import itertools
import logging
import time
from typing import Any, Dict, List, Optional, Sequence

import requests
from solders.pubkey import Pubkey

from .base import AccountReader, BatchConfig
from .errors import ErrorHandler, RateLimitError, TransportError, ValidationError


class RpcAccountReader(AccountReader):
    """
    Account reader backed by a Solana JSON-RPC endpoint.

    A single requests.Session is reused for every call. Network and rate
    limit failures are retried with backoff; anything else is raised as
    TransportError once retries are exhausted.
    """

    def __init__(
        self,
        rpc_url: str,
        commitment: str = "confirmed",
        config: Optional[BatchConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the reader.

        Args:
            rpc_url: JSON-RPC endpoint URL
            commitment: Commitment level for reads (processed, confirmed, finalized)
            config: Batch configuration (timeouts, retries, request size)
            session: Optional pre-configured requests session
        """
        self.rpc_url = rpc_url
        self.commitment = commitment
        self.config = config or BatchConfig()
        self.session = session or requests.Session()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.error_handler = ErrorHandler(self.logger)
        self._request_ids = itertools.count(1)

    def read_one(self, address: Pubkey) -> Optional[bytes]:
        result = self._call("getAccountInfo", [str(address), self._account_options()])
        return self._decode_account(result.get("value"))

    def read_many(self, addresses: Sequence[Pubkey]) -> List[Optional[bytes]]:
        if len(addresses) > self.config.max_accounts_per_request:
            raise ValidationError(
                f"getMultipleAccounts accepts at most {self.config.max_accounts_per_request} "
                f"addresses, got {len(addresses)}"
            )
        if not addresses:
            return []

        result = self._call(
            "getMultipleAccounts",
            [[str(address) for address in addresses], self._account_options()],
        )
        values = result.get("value") or []
        if len(values) != len(addresses):
            raise TransportError(
                f"getMultipleAccounts returned {len(values)} entries for {len(addresses)} addresses"
            )
        return [self._decode_account(value) for value in values]

    def close(self):
        self.session.close()

    def _account_options(self) -> Dict[str, str]:
        return {"encoding": "base64", "commitment": self.commitment}

    def _decode_account(self, value: Optional[Dict[str, Any]]) -> Optional[bytes]:
        """Extract raw bytes from an account entry ({"data": [b64, "base64"], ...})."""
        if not value:
            return None
        data = value.get("data")
        if not data:
            return b""
        try:
            return base64.b64decode(data[0])
        except (ValueError, TypeError) as e:
            raise TransportError(f"Malformed account data in RPC response: {e}")

    def _call(self, method: str, params: List[Any]) -> Dict[str, Any]:
        """Send one JSON-RPC request, retrying transient failures."""
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._request_ids),
            "method": method,
            "params": params,
        }
        return self._retry_operation(self._post, payload)

    def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            resp = self.session.post(self.rpc_url, json=payload, timeout=self.config.timeout)
        except requests.RequestException as e:
            raise TransportError(f"{payload['method']} request failed: {e}")

        if resp.status_code == 429:
            retry_after = resp.headers.get("Retry-After")
            raise RateLimitError(
                f"{payload['method']} rate limited (429)",
                retry_after=float(retry_after) if retry_after else None,
            )
        if resp.status_code >= 400:
            raise TransportError(f"{payload['method']} failed with HTTP {resp.status_code}")

        try:
            body = resp.json()
        except ValueError as e:
            raise TransportError(f"{payload['method']} returned invalid JSON: {e}")

        if body.get("error"):
            error = body["error"]
            raise TransportError(
                f"{payload['method']} RPC error {error.get('code')}: {error.get('message')}"
            )
        result = body.get("result")
        if not isinstance(result, dict):
            raise TransportError(f"{payload['method']} returned no result")
        return result

    def _retry_operation(self, operation, *args, **kwargs) -> Any:
        """Retry an operation with exponential backoff and error classification."""
        for attempt in range(self.config.max_retries):
            try:
                return operation(*args, **kwargs)
            except TransportError as e:
                self.error_handler.log_error(
                    e,
                    {
                        "attempt": attempt + 1,
                        "max_retries": self.config.max_retries,
                        "rpc_url": self.rpc_url,
                    },
                )

                if not self.error_handler.should_retry(e, attempt, self.config.max_retries):
                    raise

                delay = self.error_handler.get_retry_delay(e, attempt, self.config.retry_delay)
                self.logger.info(
                    f"Retrying in {delay}s... (attempt {attempt + 1}/{self.config.max_retries})"
                )
                time.sleep(delay)

        raise TransportError(f"No attempts made against {self.rpc_url} (max_retries={self.config.max_retries})")
