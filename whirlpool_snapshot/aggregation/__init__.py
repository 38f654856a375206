"""
Pool state aggregation.

Example:
    from whirlpool_snapshot.aggregation import FetchPolicy, PoolStateAggregator
    from whirlpool_snapshot.batchers import RpcAccountReader

    reader = RpcAccountReader("https://api.mainnet-beta.solana.com")
    result = PoolStateAggregator(reader).aggregate(pool_addresses, FetchPolicy())
    for state in result.pool_states:
        print(state.whirlpool.tick_current_index)
"""

from .aggregator import PoolStateAggregator, populate_pool_states
from .legacy import fetch_pool_state, fetch_pool_states
from .mints import MintDataFetcher
from .types import (
    AccountPolicy,
    AggregationResult,
    FetchPolicy,
    OracleState,
    OracleStatus,
    PoolResult,
    PoolState,
    SkipReason,
    TickArrays,
    TimeSource,
    system_time,
)

__all__ = [
    "PoolStateAggregator",
    "populate_pool_states",
    "fetch_pool_state",
    "fetch_pool_states",
    "MintDataFetcher",
    "AccountPolicy",
    "AggregationResult",
    "FetchPolicy",
    "OracleState",
    "OracleStatus",
    "PoolResult",
    "PoolState",
    "SkipReason",
    "TickArrays",
    "TimeSource",
    "system_time",
]
