"""
Tick array batch fetcher.

Flattens per-pool (left, current, right) address triplets into a single
read of 3*N addresses, [left_1, current_1, right_1, left_2, ...], and
regroups the response so that entry 3*i + k belongs to pool i, slot k.
"""

from typing import List, Optional, Sequence, Tuple, TypeVar

from solders.pubkey import Pubkey

from .base import BaseBatcher

T = TypeVar("T")

WINDOW_WIDTH = 3


def flatten_windows(triplets: Sequence[Tuple[T, T, T]]) -> List[T]:
    """Flatten window triplets into one list, preserving pool then slot order."""
    flat = []
    for triplet in triplets:
        if len(triplet) != WINDOW_WIDTH:
            raise ValueError(f"Expected a window of {WINDOW_WIDTH} entries, got {len(triplet)}")
        flat.extend(triplet)
    return flat


def regroup_windows(flat: Sequence[T]) -> List[Tuple[T, T, T]]:
    """Regroup a flat list into consecutive runs of three."""
    if len(flat) % WINDOW_WIDTH:
        raise ValueError(f"Cannot regroup {len(flat)} entries into windows of {WINDOW_WIDTH}")
    return [
        tuple(flat[i:i + WINDOW_WIDTH])
        for i in range(0, len(flat), WINDOW_WIDTH)
    ]


class TickArrayBatcher(BaseBatcher):
    """Batch fetcher for the three tick arrays around each pool's price."""

    stage = "tick_arrays"

    def fetch(
        self, window_addresses: Sequence[Tuple[Pubkey, Pubkey, Pubkey]]
    ) -> List[Tuple[Optional[bytes], Optional[bytes], Optional[bytes]]]:
        """
        Fetch raw tick array accounts for several pools at once.

        Args:
            window_addresses: Per pool (left, current, right) tick array addresses

        Returns:
            Per pool (left, current, right) raw data, None where absent
        """
        flat = flatten_windows(window_addresses)
        if not flat:
            return []

        self.logger.debug(
            f"Fetching {len(flat)} tick array accounts for {len(window_addresses)} pools"
        )
        return regroup_windows(self._read_many(flat))


def fetch_tick_array_accounts(reader, window_addresses, config=None):
    """Convenience function to fetch tick array windows in one call."""
    return TickArrayBatcher(reader, config).fetch(window_addresses)
