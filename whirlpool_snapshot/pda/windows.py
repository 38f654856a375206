"""
Tick array window planning.

A tick array covers TICK_ARRAY_SIZE initializable ticks, i.e.
tick_spacing * 88 tick indexes. The window around a pool's price is the
array holding the current tick plus its left and right neighbours.
"""

from dataclasses import dataclass
from typing import Tuple

from solders.pubkey import Pubkey

from ..batchers.errors import InvalidSeedsError
from .derivation import WHIRLPOOL_PROGRAM_ID, get_tick_array_address

TICK_ARRAY_SIZE = 88

WINDOW_SIDES = ("left", "current", "right")


def ticks_per_array(tick_spacing: int) -> int:
    if tick_spacing <= 0:
        raise ValueError(f"Tick spacing must be positive, got {tick_spacing}")
    return int(tick_spacing) * TICK_ARRAY_SIZE


def get_tick_array_start_tick_index(tick_index: int, tick_spacing: int) -> int:
    """Start index of the tick array containing tick_index (floors toward -inf)."""
    width = ticks_per_array(tick_spacing)
    return (tick_index // width) * width


@dataclass(frozen=True)
class TickWindow:
    """Start tick indexes of the left, current and right tick arrays."""

    left: int
    current: int
    right: int

    def start_indexes(self) -> Tuple[int, int, int]:
        return (self.left, self.current, self.right)

    def addresses(
        self, pool_address: Pubkey, program_id: Pubkey = WHIRLPOOL_PROGRAM_ID
    ) -> Tuple[Pubkey, Pubkey, Pubkey]:
        """
        Derive the (left, current, right) tick array addresses for a pool.

        Raises:
            InvalidSeedsError: With side set to the window side that failed
        """
        addresses = []
        for side, start in zip(WINDOW_SIDES, self.start_indexes()):
            try:
                addresses.append(get_tick_array_address(pool_address, start, program_id)[0])
            except InvalidSeedsError as e:
                raise InvalidSeedsError(f"{side} tick array at {start}: {e}", side=side) from e
        return tuple(addresses)


def plan_tick_window(pool) -> TickWindow:
    """
    Plan the tick window of a decoded pool.

    Args:
        pool: Any object exposing tick_current_index and tick_spacing

    Returns:
        TickWindow around the pool's current tick
    """
    width = ticks_per_array(pool.tick_spacing)
    current = get_tick_array_start_tick_index(pool.tick_current_index, pool.tick_spacing)
    return TickWindow(left=current - width, current=current, right=current + width)
