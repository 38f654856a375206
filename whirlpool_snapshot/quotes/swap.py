"""
Bid/ask swap quote requests against a pool snapshot.

The concentrated-liquidity swap math lives behind the SwapQuoter interface;
this module only assembles well-formed inputs for it and pairs the two
quote directions.

- bid: what selling exactly `amount` of token A returns (exact input)
- ask: what buying exactly `amount` of token A costs (exact output)
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional, Tuple

from ..accounts.facades import OracleFacade, TickArrayFacade, WhirlpoolFacade
from ..aggregation.types import PoolState, TimeSource, system_time

logger = logging.getLogger(__name__)

MAX_SLIPPAGE_BPS = 10_000


class SwapQuoter(ABC):
    """Swap quote math for a whirlpool."""

    @abstractmethod
    def quote_exact_in(
        self,
        amount: int,
        specified_token_a: bool,
        slippage_bps: int,
        whirlpool: WhirlpoolFacade,
        oracle: Optional[OracleFacade],
        tick_arrays: Tuple[TickArrayFacade, ...],
        timestamp: int,
    ) -> Any:
        pass

    @abstractmethod
    def quote_exact_out(
        self,
        amount: int,
        specified_token_a: bool,
        slippage_bps: int,
        whirlpool: WhirlpoolFacade,
        oracle: Optional[OracleFacade],
        tick_arrays: Tuple[TickArrayFacade, ...],
        timestamp: int,
    ) -> Any:
        pass


@dataclass(frozen=True)
class SwapParams:
    pool: PoolState
    amount: int
    slippage_bps: int

    def __post_init__(self):
        if self.amount <= 0:
            raise ValueError(f"Swap amount must be positive, got {self.amount}")
        if not 0 <= self.slippage_bps <= MAX_SLIPPAGE_BPS:
            raise ValueError(f"Slippage must be within 0..{MAX_SLIPPAGE_BPS} bps, got {self.slippage_bps}")


@dataclass(frozen=True)
class SwapQuote:
    amount: int
    slippage_bps: int
    bid: Any
    ask: Any
    timestamp: int


def build_swap_quote(params: SwapParams, quoter: SwapQuoter, clock: Optional[TimeSource] = None) -> SwapQuote:
    """
    Quote both sides of a token A swap of params.amount.

    Args:
        params: Pool snapshot, amount of token A and slippage tolerance
        quoter: Swap math implementation
        clock: Source of the UNIX timestamp passed to the quoter

    Returns:
        SwapQuote with bid (exact in) and ask (exact out)
    """
    timestamp = (clock or system_time)()
    pool = params.pool
    inputs = dict(
        amount=params.amount,
        specified_token_a=True,
        slippage_bps=params.slippage_bps,
        whirlpool=pool.whirlpool,
        oracle=pool.oracle,
        tick_arrays=pool.tick_arrays.windows(),
        timestamp=timestamp,
    )

    bid = quoter.quote_exact_in(**inputs)
    ask = quoter.quote_exact_out(**inputs)
    logger.debug(f"Quoted {params.amount} of {pool.whirlpool.token_mint_a} on {pool.address}")

    return SwapQuote(
        amount=params.amount,
        slippage_bps=params.slippage_bps,
        bid=bid,
        ask=ask,
        timestamp=timestamp,
    )
