"""
Single-pool aggregation path.

Reads one account at a time and keeps only the current tick array. Every
read except the oracle is required. Used as a baseline for the batched
aggregator: for the same pool and remote snapshot both must produce the
same whirlpool and current tick array facades.
"""

import logging
from typing import Any, List, Optional, Sequence

from solders.pubkey import Pubkey

from ..batchers.base import AccountReader, to_pubkey
from ..batchers.errors import AggregationError, InvalidSeedsError, TransportError
from ..pda.derivation import WHIRLPOOL_PROGRAM_ID, get_tick_array_address
from ..pda.windows import get_tick_array_start_tick_index
from .aggregator import derive_oracle_address, load_oracle_state, load_tick_array, load_whirlpool
from .mints import MintDataFetcher
from .types import OracleState, OracleStatus, PoolState, TickArrays, TimeSource, system_time

logger = logging.getLogger(__name__)


def _read(reader: AccountReader, address: Pubkey, stage: str) -> Optional[bytes]:
    try:
        return reader.read_one(address)
    except TransportError:
        raise
    except Exception as e:
        raise TransportError(f"Failed to fetch {stage} account {address}: {e}", stage=stage) from e


def fetch_pool_state(
    reader: AccountReader,
    pool_address: Any,
    mint_fetcher: Optional[MintDataFetcher] = None,
    clock: Optional[TimeSource] = None,
    fetch_mint_data: bool = True,
    pool_index: int = 0,
    program_id: Pubkey = WHIRLPOOL_PROGRAM_ID,
) -> PoolState:
    """
    Fetch the state of one pool.

    Args:
        reader: Remote account reader
        pool_address: The pool's address
        mint_fetcher: Mint metadata source (defaults to one over the same reader)
        clock: Source of UNIX timestamps
        fetch_mint_data: Whether to fetch both token mints
        pool_index: Position reported in errors when called from a loop

    Returns:
        The populated PoolState

    Raises:
        AggregationError: If the pool, its current tick array or a mint is missing or undecodable
        TransportError: If a required read fails
    """
    clock = clock or system_time
    mint_fetcher = mint_fetcher or MintDataFetcher(reader)
    pool = to_pubkey(pool_address)
    timestamps = {}

    whirlpool = load_whirlpool(pool_index, pool, _read(reader, pool, "pools"))
    timestamps["whirlpool"] = clock()

    start_tick_index = get_tick_array_start_tick_index(whirlpool.tick_current_index, whirlpool.tick_spacing)
    try:
        tick_array_address = get_tick_array_address(pool, start_tick_index, program_id)[0]
    except InvalidSeedsError as e:
        raise AggregationError(
            f"Failed to derive current tick array address for {pool}: {e}",
            stage="tick_arrays",
            pool_index=pool_index,
            side="current",
        ) from e
    current = load_tick_array(
        pool_index,
        "current",
        tick_array_address,
        _read(reader, tick_array_address, "tick_arrays"),
        pool,
        start_tick_index,
    )
    timestamps["tick_arrays"] = clock()

    oracle_state = _fetch_oracle_state(reader, pool, pool_index, program_id)
    timestamps["oracle"] = clock()

    mint_a = mint_b = None
    if fetch_mint_data:
        mint_a = mint_fetcher.fetch(whirlpool.token_mint_a)
        timestamps["mint_a"] = clock()
        mint_b = mint_fetcher.fetch(whirlpool.token_mint_b)
        timestamps["mint_b"] = clock()

    return PoolState(
        address=pool,
        whirlpool=whirlpool,
        tick_arrays=TickArrays(current=current),
        oracle_state=oracle_state,
        mint_a=mint_a,
        mint_b=mint_b,
        timestamps=timestamps,
    )


def _fetch_oracle_state(reader: AccountReader, pool: Pubkey, pool_index: int, program_id: Pubkey) -> OracleState:
    address = derive_oracle_address(pool_index, pool, program_id)
    if address is None:
        return OracleState(OracleStatus.NOT_APPLICABLE)

    try:
        data = reader.read_one(address)
    except Exception as e:
        logger.warning(f"Failed to fetch oracle account {address}: {e}")
        return load_oracle_state(pool_index, pool, address, None, fetched=False)
    return load_oracle_state(pool_index, pool, address, data)


def fetch_pool_states(
    reader: AccountReader,
    pool_addresses: Sequence[Any],
    clock: Optional[TimeSource] = None,
    fetch_mint_data: bool = True,
    program_id: Pubkey = WHIRLPOOL_PROGRAM_ID,
) -> List[PoolState]:
    """Fetch pool states one pool at a time, failing on the first error."""
    mint_fetcher = MintDataFetcher(reader)
    return [
        fetch_pool_state(
            reader,
            address,
            mint_fetcher=mint_fetcher,
            clock=clock,
            fetch_mint_data=fetch_mint_data,
            pool_index=i,
            program_id=program_id,
        )
        for i, address in enumerate(pool_addresses)
    ]
