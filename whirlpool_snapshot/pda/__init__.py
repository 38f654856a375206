"""
Address derivation for Whirlpool accounts.

Program-derived addresses for tick arrays and oracles, and the planning of
the three-array tick window around a pool's current price.
"""

from .derivation import (
    WHIRLPOOL_PROGRAM_ID,
    derive_program_address,
    get_oracle_address,
    get_tick_array_address,
)
from .windows import (
    TICK_ARRAY_SIZE,
    WINDOW_SIDES,
    TickWindow,
    get_tick_array_start_tick_index,
    plan_tick_window,
)

__all__ = [
    "WHIRLPOOL_PROGRAM_ID",
    "derive_program_address",
    "get_oracle_address",
    "get_tick_array_address",
    "TICK_ARRAY_SIZE",
    "WINDOW_SIDES",
    "TickWindow",
    "get_tick_array_start_tick_index",
    "plan_tick_window",
]
