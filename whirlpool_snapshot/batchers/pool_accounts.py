"""
Pool account batch fetcher.

Reads up to 33 pool accounts with one order-preserving getMultipleAccounts
call. The cap keeps the follow-up tick array read (3 per pool) within the
100-address request limit.
"""

from typing import Any, List, Optional, Sequence

from .base import BaseBatcher, validate_addresses
from .errors import BatchSizeExceededError


class PoolAccountBatcher(BaseBatcher):
    """
    Batch fetcher for whirlpool pool accounts.

    Output is aligned with the input: one entry per pool address, None where
    the account does not exist remotely.
    """

    stage = "pools"

    def fetch(self, pool_addresses: Sequence[Any]) -> List[Optional[bytes]]:
        """
        Fetch raw pool accounts.

        Args:
            pool_addresses: Pool addresses (base58 strings or Pubkeys)

        Returns:
            Raw account data per pool, None where absent

        Raises:
            BatchSizeExceededError: Before any remote call, if too many pools are given
            TransportError: If the read itself fails
        """
        if len(pool_addresses) > self.config.max_pools_per_batch:
            raise BatchSizeExceededError(len(pool_addresses), self.config.max_pools_per_batch)

        addresses = validate_addresses(pool_addresses)
        if not addresses:
            return []

        self.logger.debug(f"Fetching {len(addresses)} pool accounts")
        return self._read_many(addresses)


def fetch_pool_accounts(reader, pool_addresses: Sequence[Any], config=None) -> List[Optional[bytes]]:
    """Convenience function to fetch raw pool accounts in one call."""
    return PoolAccountBatcher(reader, config).fetch(pool_addresses)
