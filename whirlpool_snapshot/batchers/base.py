"""
Base classes for batched account reads.

This module provides the account reader interface consumed by the pipeline
and the result/config containers shared by the batch fetchers.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional, Sequence

from solders.pubkey import Pubkey

from .errors import TransportError, ValidationError

logger = logging.getLogger(__name__)

# Most RPC providers cap getMultipleAccounts at 100 keys
MAX_ACCOUNTS_PER_REQUEST = 100

# 3 tick arrays per pool must fit in one request
MAX_POOLS_PER_BATCH = MAX_ACCOUNTS_PER_REQUEST // 3


@dataclass
class BatchResult:
    """Result from a batch operation."""

    success: bool
    data: List[Any] = field(default_factory=list)
    timestamp: Optional[datetime] = None
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return not self.success


@dataclass
class BatchConfig:
    """Configuration for batch operations."""

    max_pools_per_batch: int = MAX_POOLS_PER_BATCH
    max_accounts_per_request: int = MAX_ACCOUNTS_PER_REQUEST
    max_retries: int = 3
    retry_delay: float = 1.0
    timeout: float = 30.0
    mint_fetch_workers: int = 4


class AccountReader(ABC):
    """
    Abstract read handle onto the remote ledger.

    Implementations must be order and length preserving for read_many and
    may be shared between threads when the underlying transport allows it.
    """

    @abstractmethod
    def read_one(self, address: Pubkey) -> Optional[bytes]:
        """Return the raw data of one account, or None if it does not exist."""
        pass

    @abstractmethod
    def read_many(self, addresses: Sequence[Pubkey]) -> List[Optional[bytes]]:
        """Return raw data for each address, in order, None where absent."""
        pass


class BaseBatcher:
    """
    Base class for batched account reads.

    Provides the shared read handle, configuration and the wrapping of
    transport failures into stage-tagged TransportErrors.
    """

    stage = "accounts"

    def __init__(self, reader: AccountReader, config: Optional[BatchConfig] = None):
        self.reader = reader
        self.config = config or BatchConfig()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def _read_many(self, addresses: Sequence[Pubkey]) -> List[Optional[bytes]]:
        """One order-preserving read; any failure becomes a TransportError for this stage."""
        if len(addresses) > self.config.max_accounts_per_request:
            raise ValidationError(
                f"{self.stage}: {len(addresses)} addresses exceed the per-request "
                f"maximum of {self.config.max_accounts_per_request}"
            )
        try:
            accounts = list(self.reader.read_many(list(addresses)))
        except TransportError as e:
            raise TransportError(f"Failed to fetch {self.stage} accounts: {e}", stage=self.stage) from e
        except Exception as e:
            self.logger.error(f"Read of {len(addresses)} {self.stage} accounts failed: {e}")
            raise TransportError(f"Failed to fetch {self.stage} accounts: {e}", stage=self.stage) from e

        if len(accounts) != len(addresses):
            raise TransportError(
                f"Reader returned {len(accounts)} {self.stage} accounts for {len(addresses)} addresses",
                stage=self.stage,
            )
        return accounts


def to_pubkey(address: Any) -> Pubkey:
    """Normalize a base58 string or Pubkey into a Pubkey."""
    if isinstance(address, Pubkey):
        return address
    if isinstance(address, (bytes, bytearray)) and len(address) == 32:
        return Pubkey.from_bytes(bytes(address))
    if isinstance(address, str):
        try:
            return Pubkey.from_string(address.strip())
        except (ValueError, TypeError) as e:
            raise ValidationError(f"Invalid address {address}: {e}")
    raise ValidationError(f"Invalid address type: {type(address)}")


def validate_addresses(addresses: Sequence[Any]) -> List[Pubkey]:
    """Validate and normalize a sequence of addresses, rejecting the batch on any bad entry."""
    return [to_pubkey(address) for address in addresses]
