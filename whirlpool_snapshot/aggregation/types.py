"""
Core types for pool state aggregation.

Snapshots are built once per aggregation call and never mutated.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from solders.pubkey import Pubkey

from ..accounts.facades import MintData, OracleFacade, TickArrayFacade, WhirlpoolFacade
from ..batchers.errors import AggregationError

# Returns the current UNIX time in whole seconds
TimeSource = Callable[[], int]


def system_time() -> int:
    return int(time.time())


class AccountPolicy(Enum):
    """What to do when an account of one class is missing or undecodable."""

    STRICT = "strict"
    BEST_EFFORT = "best_effort"

    @classmethod
    def from_flag(cls, require_all: bool) -> "AccountPolicy":
        return cls.STRICT if require_all else cls.BEST_EFFORT


@dataclass(frozen=True)
class FetchPolicy:
    """
    Strictness per account class.

    Attributes:
        pools: Pool accounts (and the mints they reference)
        tick_arrays: Left and right tick arrays; the current one is always required
    """

    pools: AccountPolicy = AccountPolicy.STRICT
    tick_arrays: AccountPolicy = AccountPolicy.STRICT

    @classmethod
    def from_flags(cls, require_all_accounts: bool, require_all_tick_arrays: bool) -> "FetchPolicy":
        return cls(
            pools=AccountPolicy.from_flag(require_all_accounts),
            tick_arrays=AccountPolicy.from_flag(require_all_tick_arrays),
        )


class OracleStatus(Enum):
    NOT_APPLICABLE = "not_applicable"  # no address could be derived
    ACCOUNT_ABSENT = "account_absent"
    UNAVAILABLE = "unavailable"  # read failed, or the bytes are not this pool's oracle
    PRESENT = "present"


@dataclass(frozen=True)
class OracleState:
    status: OracleStatus
    address: Optional[Pubkey] = None
    facade: Optional[OracleFacade] = None

    @property
    def present(self) -> bool:
        return self.status is OracleStatus.PRESENT

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "address": str(self.address) if self.address else None,
            "data": self.facade.to_dict() if self.facade else None,
        }


@dataclass(frozen=True)
class TickArrays:
    """
    Tick arrays around a pool's price.

    The current array is always present. The batched path fills all three
    or skips the pool; left and right are None only on the single-pool path.
    """

    current: TickArrayFacade
    left: Optional[TickArrayFacade] = None
    right: Optional[TickArrayFacade] = None

    def windows(self) -> Tuple[TickArrayFacade, ...]:
        """Present arrays in left-to-right order."""
        return tuple(
            facade for facade in (self.left, self.current, self.right) if facade is not None
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            side: facade.to_dict() if facade else None
            for side, facade in (("left", self.left), ("current", self.current), ("right", self.right))
        }


def _iso(ts: int) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


@dataclass(frozen=True)
class PoolState:
    """
    Snapshot of one pool.

    Attributes:
        address: Pool address
        whirlpool: Decoded pool account
        tick_arrays: Decoded tick arrays around the current price
        oracle_state: Oracle outcome, see OracleStatus
        mint_a: Token A mint data, None when mint data was not requested
        mint_b: Token B mint data, None when mint data was not requested
        timestamps: Field name to fetch completion time (UNIX seconds)
    """

    address: Pubkey
    whirlpool: WhirlpoolFacade
    tick_arrays: TickArrays
    oracle_state: OracleState
    mint_a: Optional[MintData] = None
    mint_b: Optional[MintData] = None
    timestamps: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "timestamps", MappingProxyType(dict(self.timestamps)))

    @property
    def oracle(self) -> Optional[OracleFacade]:
        return self.oracle_state.facade

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": str(self.address),
            "whirlpool": self.whirlpool.to_dict(),
            "tick_arrays": self.tick_arrays.to_dict(),
            "oracle": self.oracle_state.to_dict(),
            "mint_a": self.mint_a.to_dict() if self.mint_a else None,
            "mint_b": self.mint_b.to_dict() if self.mint_b else None,
            "timestamps": {label: _iso(ts) for label, ts in self.timestamps.items()},
        }


@dataclass(frozen=True)
class SkipReason:
    """Why a pool was left out under best-effort policy."""

    stage: str
    error: str
    side: Optional[str] = None

    @classmethod
    def from_error(cls, error: AggregationError) -> "SkipReason":
        return cls(stage=error.stage, error=str(error), side=error.side)


@dataclass(frozen=True)
class PoolResult:
    """Outcome for one input pool: a state, or the reason it was skipped."""

    index: int
    address: Pubkey
    state: Optional[PoolState] = None
    skip_reason: Optional[SkipReason] = None

    @property
    def ok(self) -> bool:
        return self.state is not None


@dataclass(frozen=True)
class AggregationResult:
    """Results aligned 1:1 with the caller's pool addresses."""

    results: Tuple[PoolResult, ...]

    @property
    def pool_states(self) -> List[PoolState]:
        """Successful states in input order (may be shorter than the input)."""
        return [result.state for result in self.results if result.ok]

    @property
    def skipped(self) -> List[PoolResult]:
        return [result for result in self.results if not result.ok]

    def __len__(self) -> int:
        return len(self.results)
