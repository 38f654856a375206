"""
Oracle account batch fetcher.

Oracles are best-effort: only derivable addresses are read, results are
scattered back into a list aligned with the pools, and a failed read
degrades to all-None instead of raising.
"""

from datetime import datetime, timezone
from typing import List, Optional, Sequence

from solders.pubkey import Pubkey

from .base import BaseBatcher, BatchResult
from .errors import BatchError


class OracleBatcher(BaseBatcher):
    """Batch fetcher for pool oracle accounts."""

    stage = "oracles"

    def fetch(self, oracle_addresses: Sequence[Optional[Pubkey]]) -> BatchResult:
        """
        Fetch raw oracle accounts.

        Args:
            oracle_addresses: One entry per pool, None where no address could be derived

        Returns:
            BatchResult whose data holds one Optional[bytes] per pool. On a
            failed read success is False and every entry is None.
        """
        empty = [None] * len(oracle_addresses)

        positions = [i for i, address in enumerate(oracle_addresses) if address is not None]
        if not positions:
            self.logger.info("No oracle addresses to fetch")
            return BatchResult(success=True, data=empty, timestamp=datetime.now(timezone.utc))

        to_fetch = [oracle_addresses[i] for i in positions]
        try:
            fetched = self._read_many(to_fetch)
        except BatchError as e:
            self.logger.warning(f"Failed to fetch oracle accounts: {e}")
            return BatchResult(success=False, data=empty, error=str(e))

        accounts: List[Optional[bytes]] = list(empty)
        for position, account in zip(positions, fetched):
            accounts[position] = account

        return BatchResult(success=True, data=accounts, timestamp=datetime.now(timezone.utc))


def fetch_oracle_accounts(reader, oracle_addresses, config=None) -> BatchResult:
    """Convenience function for a best-effort oracle read."""
    return OracleBatcher(reader, config).fetch(oracle_addresses)
