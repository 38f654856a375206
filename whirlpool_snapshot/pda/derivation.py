"""
Program-derived address utilities for the Whirlpool program.

Seed limits are checked here so malformed seeds raise InvalidSeedsError;
the bump search itself is solders' find_program_address.
"""

from functools import lru_cache
from typing import Sequence, Tuple

from solders.pubkey import Pubkey

from ..batchers.errors import InvalidSeedsError

WHIRLPOOL_PROGRAM_ID = Pubkey.from_string("whirLbMiicVdio4qvUfM5KAg6Ct8VwpYzGff3uctyCc")

MAX_SEEDS = 16
MAX_SEED_LEN = 32

TICK_ARRAY_SEED = b"tick_array"
ORACLE_SEED = b"oracle"


def derive_program_address(
    seeds: Sequence[bytes], program_id: Pubkey = WHIRLPOOL_PROGRAM_ID
) -> Tuple[Pubkey, int]:
    """
    Find the program-derived address and bump for a seed sequence.

    Args:
        seeds: Ordered seed byte strings (at most 15, each at most 32 bytes)
        program_id: Owning program

    Returns:
        Tuple of (address, bump)

    Raises:
        InvalidSeedsError: If there are too many seeds or a seed is too long
    """
    return _derive(tuple(bytes(seed) for seed in seeds), program_id)


@lru_cache(maxsize=4096)
def _derive(seeds: Tuple[bytes, ...], program_id: Pubkey) -> Tuple[Pubkey, int]:
    # The bump is appended as one more seed
    if len(seeds) + 1 > MAX_SEEDS:
        raise InvalidSeedsError(f"Too many seeds: {len(seeds)} (max {MAX_SEEDS - 1} plus bump)")
    for seed in seeds:
        if len(seed) > MAX_SEED_LEN:
            raise InvalidSeedsError(f"Seed exceeds {MAX_SEED_LEN} bytes: {seed!r}")

    return Pubkey.find_program_address(list(seeds), program_id)


def get_tick_array_address(
    pool: Pubkey, start_tick_index: int, program_id: Pubkey = WHIRLPOOL_PROGRAM_ID
) -> Tuple[Pubkey, int]:
    """
    Derive a tick array address.

    Args:
        pool: The pool's address
        start_tick_index: The first tick in the tick array

    Returns:
        Tuple of (tick array address, bump)
    """
    seeds = [TICK_ARRAY_SEED, bytes(pool), str(start_tick_index).encode()]
    return derive_program_address(seeds, program_id)


def get_oracle_address(pool: Pubkey, program_id: Pubkey = WHIRLPOOL_PROGRAM_ID) -> Tuple[Pubkey, int]:
    """Derive the oracle address of a pool as (address, bump)."""
    return derive_program_address([ORACLE_SEED, bytes(pool)], program_id)
