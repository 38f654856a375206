"""
Batched pool state aggregation.

Runs the pipeline in dependency order for up to 33 pools:

1. pool accounts: one read, decode, policy per pool
2. tick arrays: plan windows, derive 3 addresses per pool, one read, regroup, decode
3. oracles: derive, sparse read, decode; never fails the batch
4. mints: optional, two reads per pool spread over a thread pool
5. join into PoolState records aligned with the caller's input

Strict failures raise the first AggregationError in input order. Best-effort
failures are logged and recorded as SkipReasons on the pool's result.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from solders.pubkey import Pubkey

from ..accounts.decoders import decode_oracle, decode_tick_array, decode_whirlpool
from ..accounts.facades import MintData, TickArrayFacade, WhirlpoolFacade
from ..batchers.base import AccountReader, BatchConfig, validate_addresses
from ..batchers.errors import (
    AggregationError,
    BatchSizeExceededError,
    DecodeError,
    InvalidSeedsError,
    MissingAccountError,
)
from ..batchers.oracles import OracleBatcher
from ..batchers.pool_accounts import PoolAccountBatcher
from ..batchers.tick_arrays import TickArrayBatcher
from ..pda.derivation import WHIRLPOOL_PROGRAM_ID, get_oracle_address
from ..pda.windows import WINDOW_SIDES, plan_tick_window
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

logger = logging.getLogger(__name__)


def load_whirlpool(index: int, address: Pubkey, data: Optional[bytes]) -> WhirlpoolFacade:
    """Decode a pool account, tagging failures with the pool's position."""
    if data is None:
        raise MissingAccountError(
            f"Pool account {address} at index {index} does not exist",
            stage="pools",
            pool_index=index,
            address=str(address),
        )
    try:
        return decode_whirlpool(data)
    except DecodeError as e:
        raise DecodeError(
            f"Failed to decode pool account {address} at index {index}: {e}",
            stage="pools",
            pool_index=index,
            address=str(address),
        ) from e


def load_tick_array(
    index: int, side: str, address: Pubkey, data: Optional[bytes], pool: Pubkey, start_tick_index: int
) -> TickArrayFacade:
    """Decode one tick array and check it belongs to the expected pool and window."""
    if data is None:
        raise MissingAccountError(
            f"{side} tick array {address} for pool at index {index} does not exist",
            stage="tick_arrays",
            pool_index=index,
            side=side,
            address=str(address),
        )
    try:
        facade = decode_tick_array(data)
    except DecodeError as e:
        raise DecodeError(
            f"Failed to decode {side} tick array at index {index}: {e}",
            stage="tick_arrays",
            pool_index=index,
            side=side,
            address=str(address),
        ) from e

    if facade.whirlpool != pool or facade.start_tick_index != start_tick_index:
        raise DecodeError(
            f"{side} tick array at index {index} belongs to {facade.whirlpool} "
            f"starting at {facade.start_tick_index}, expected {pool} starting at {start_tick_index}",
            stage="tick_arrays",
            pool_index=index,
            side=side,
            address=str(address),
        )
    return facade


def load_oracle_state(
    index: int, pool: Pubkey, address: Optional[Pubkey], data: Optional[bytes], fetched: bool = True
) -> OracleState:
    """Classify an oracle read for a pool. Never raises."""
    if address is None:
        return OracleState(OracleStatus.NOT_APPLICABLE)
    if not fetched:
        return OracleState(OracleStatus.UNAVAILABLE, address=address)
    if data is None:
        return OracleState(OracleStatus.ACCOUNT_ABSENT, address=address)
    try:
        facade = decode_oracle(data)
    except DecodeError as e:
        logger.warning(f"Failed to decode oracle account {address} for pool at index {index}: {e}")
        return OracleState(OracleStatus.UNAVAILABLE, address=address)

    if facade.whirlpool != pool:
        logger.warning(
            f"Oracle account {address} for pool at index {index} belongs to {facade.whirlpool}, expected {pool}"
        )
        return OracleState(OracleStatus.UNAVAILABLE, address=address)
    return OracleState(OracleStatus.PRESENT, address=address, facade=facade)


def derive_oracle_address(
    index: int, pool: Pubkey, program_id: Pubkey = WHIRLPOOL_PROGRAM_ID
) -> Optional[Pubkey]:
    try:
        return get_oracle_address(pool, program_id)[0]
    except InvalidSeedsError as e:
        logger.warning(f"Failed to derive oracle address for pool at index {index}: {e}")
        return None


@dataclass
class _PoolSlot:
    """Working state of one input pool while the stages run."""

    index: int
    address: Pubkey
    whirlpool: Optional[WhirlpoolFacade] = None
    window: Optional[Tuple[int, int, int]] = None
    tick_arrays: Optional[TickArrays] = None
    oracle_state: Optional[OracleState] = None
    mint_a: Optional[MintData] = None
    mint_b: Optional[MintData] = None
    mint_timestamps: Optional[Dict[str, int]] = None
    skip_reason: Optional[SkipReason] = None

    @property
    def active(self) -> bool:
        return self.skip_reason is None


class PoolStateAggregator:
    """
    Builds PoolState snapshots for a batch of pools.

    The reader is only read from, so one aggregator may serve concurrent
    callers when the reader's transport allows it.
    """

    def __init__(
        self,
        reader: AccountReader,
        mint_fetcher: Optional[MintDataFetcher] = None,
        config: Optional[BatchConfig] = None,
        clock: Optional[TimeSource] = None,
        program_id: Pubkey = WHIRLPOOL_PROGRAM_ID,
    ):
        """
        Initialize the aggregator.

        Args:
            reader: Remote account reader
            mint_fetcher: Mint metadata source (defaults to one over the same reader)
            config: Batch configuration
            clock: Source of UNIX timestamps for fetch stamps
            program_id: Whirlpool program used for address derivation
        """
        self.reader = reader
        self.config = config or BatchConfig()
        self.mint_fetcher = mint_fetcher or MintDataFetcher(reader)
        self.clock = clock or system_time
        self.program_id = program_id
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

        self.pool_batcher = PoolAccountBatcher(reader, self.config)
        self.tick_array_batcher = TickArrayBatcher(reader, self.config)
        self.oracle_batcher = OracleBatcher(reader, self.config)

    def aggregate(
        self,
        pool_addresses: Sequence[Any],
        policy: Optional[FetchPolicy] = None,
        fetch_mint_data: bool = True,
    ) -> AggregationResult:
        """
        Aggregate pool states.

        Args:
            pool_addresses: Up to 33 pool addresses
            policy: Strictness per account class (strict by default)
            fetch_mint_data: Whether to fetch both token mints of every pool

        Returns:
            AggregationResult aligned 1:1 with pool_addresses

        Raises:
            BatchSizeExceededError: Before any remote call, if too many pools are given
            AggregationError: First strict failure, or any current tick array failure
            TransportError: If a pool or tick array read fails
        """
        policy = policy or FetchPolicy()
        if len(pool_addresses) > self.config.max_pools_per_batch:
            raise BatchSizeExceededError(len(pool_addresses), self.config.max_pools_per_batch)

        addresses = validate_addresses(pool_addresses)
        slots = [_PoolSlot(index=i, address=address) for i, address in enumerate(addresses)]
        if not slots:
            return AggregationResult(results=())

        timestamps: Dict[str, int] = {}

        self._load_pools(slots, policy)
        timestamps["whirlpool"] = self.clock()

        self._load_tick_arrays(slots, policy)
        timestamps["tick_arrays"] = self.clock()

        self._load_oracles(slots)
        timestamps["oracle"] = self.clock()

        if fetch_mint_data:
            self._load_mints(slots, policy)

        results = tuple(self._join(slot, timestamps) for slot in slots)
        skipped = sum(1 for result in results if not result.ok)
        self.logger.info(
            f"Aggregated {len(results) - skipped}/{len(results)} pools"
            + (f" ({skipped} skipped)" if skipped else "")
        )
        return AggregationResult(results=results)

    def _fail(self, slot: _PoolSlot, error: AggregationError, policy: AccountPolicy):
        if policy is AccountPolicy.STRICT:
            raise error
        self.logger.warning(f"Skipping pool {slot.address} at index {slot.index}: {error}")
        slot.skip_reason = SkipReason.from_error(error)

    def _load_pools(self, slots: List[_PoolSlot], policy: FetchPolicy):
        raw_accounts = self.pool_batcher.fetch([slot.address for slot in slots])
        for slot, data in zip(slots, raw_accounts):
            try:
                slot.whirlpool = load_whirlpool(slot.index, slot.address, data)
            except AggregationError as e:
                self._fail(slot, e, policy.pools)

    def _fail_tick_array(self, slot: _PoolSlot, side: str, error: AggregationError, policy: FetchPolicy):
        # The current array is required whatever the policy
        if side == "current":
            raise error
        self._fail(slot, error, policy.tick_arrays)

    def _derive_window(self, slot: _PoolSlot, policy: FetchPolicy) -> Optional[Tuple[Pubkey, Pubkey, Pubkey]]:
        window = plan_tick_window(slot.whirlpool)
        slot.window = window.start_indexes()
        try:
            return window.addresses(slot.address, self.program_id)
        except InvalidSeedsError as e:
            error = AggregationError(
                f"Failed to derive tick array addresses for {slot.address}: {e}",
                stage="tick_arrays",
                pool_index=slot.index,
                side=e.side,
            )
            self._fail_tick_array(slot, e.side, error, policy)
            return None

    def _load_tick_arrays(self, slots: List[_PoolSlot], policy: FetchPolicy):
        planned = []
        for slot in slots:
            if not slot.active:
                continue
            addresses = self._derive_window(slot, policy)
            if addresses is not None:
                planned.append((slot, addresses))

        if not planned:
            return

        windows = self.tick_array_batcher.fetch([addresses for _, addresses in planned])
        for (slot, addresses), raw_window in zip(planned, windows):
            facades, errors = {}, {}
            for side, address, data, start in zip(WINDOW_SIDES, addresses, raw_window, slot.window):
                try:
                    facades[side] = load_tick_array(slot.index, side, address, data, slot.address, start)
                except AggregationError as e:
                    errors[side] = e

            if errors:
                side = "current" if "current" in errors else next(iter(errors))
                self._fail_tick_array(slot, side, errors[side], policy)
                continue

            slot.tick_arrays = TickArrays(
                current=facades["current"], left=facades["left"], right=facades["right"]
            )

    def _load_oracles(self, slots: List[_PoolSlot]):
        active = [slot for slot in slots if slot.active]
        if not active:
            return

        addresses = [derive_oracle_address(slot.index, slot.address, self.program_id) for slot in active]
        result = self.oracle_batcher.fetch(addresses)
        if result.failed:
            self.logger.warning(f"Oracle data unavailable for {len(active)} pools: {result.error}")

        for slot, address, data in zip(active, addresses, result.data):
            slot.oracle_state = load_oracle_state(
                slot.index, slot.address, address, data, fetched=result.success
            )

    def _fetch_mint_pair(self, slot: _PoolSlot):
        mints = {}
        stamps = {}
        for side, mint in (("a", slot.whirlpool.token_mint_a), ("b", slot.whirlpool.token_mint_b)):
            try:
                mints[side] = self.mint_fetcher.fetch(mint)
            except (MissingAccountError, DecodeError) as e:
                raise type(e)(
                    f"Failed to fetch mint {side} ({mint}) for pool at index {slot.index}: {e}",
                    stage="mints",
                    pool_index=slot.index,
                    side=side,
                    address=str(mint),
                ) from e
            stamps[f"mint_{side}"] = self.clock()
        return mints["a"], mints["b"], stamps

    def _load_mints(self, slots: List[_PoolSlot], policy: FetchPolicy):
        active = [slot for slot in slots if slot.active]
        if not active:
            return

        workers = max(1, min(self.config.mint_fetch_workers, len(active)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(self._fetch_mint_pair, slot) for slot in active]

        for slot, future in zip(active, futures):
            try:
                slot.mint_a, slot.mint_b, slot.mint_timestamps = future.result()
            except AggregationError as e:
                self._fail(slot, e, policy.pools)

    def _join(self, slot: _PoolSlot, timestamps: Dict[str, int]) -> PoolResult:
        if not slot.active:
            return PoolResult(index=slot.index, address=slot.address, skip_reason=slot.skip_reason)

        state = PoolState(
            address=slot.address,
            whirlpool=slot.whirlpool,
            tick_arrays=slot.tick_arrays,
            oracle_state=slot.oracle_state,
            mint_a=slot.mint_a,
            mint_b=slot.mint_b,
            timestamps={**timestamps, **(slot.mint_timestamps or {})},
        )
        return PoolResult(index=slot.index, address=slot.address, state=state)


def populate_pool_states(
    reader: AccountReader,
    pool_addresses: Sequence[Any],
    require_all_accounts: bool = True,
    require_all_tick_arrays: bool = True,
    fetch_mint_data: bool = True,
    clock: Optional[TimeSource] = None,
    config: Optional[BatchConfig] = None,
    program_id: Pubkey = WHIRLPOOL_PROGRAM_ID,
) -> List[PoolState]:
    """
    Convenience function to build pool states from flags.

    Returns:
        Successful pool states in input order; shorter than the input when
        best-effort policy skipped pools
    """
    aggregator = PoolStateAggregator(reader, config=config, clock=clock, program_id=program_id)
    result = aggregator.aggregate(
        pool_addresses,
        policy=FetchPolicy.from_flags(require_all_accounts, require_all_tick_arrays),
        fetch_mint_data=fetch_mint_data,
    )
    return result.pool_states
