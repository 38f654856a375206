"""
Shared test fixtures.

FakeAccountReader serves raw account bytes from memory and records every
call; MarketSnapshot populates it with consistent pools, tick arrays,
oracles and mints built from the real account layouts.
"""

import itertools
from types import SimpleNamespace
from typing import Callable, Dict, List, Optional, Sequence

import pytest
from solders.pubkey import Pubkey

from whirlpool_snapshot.accounts.layouts import (
    MINT_LAYOUT,
    NUM_REWARDS,
    ORACLE_LAYOUT,
    TICK_ARRAY_LAYOUT,
    WHIRLPOOL_LAYOUT,
)
from whirlpool_snapshot.batchers.base import AccountReader
from whirlpool_snapshot.batchers.errors import TransportError
from whirlpool_snapshot.pda.derivation import WHIRLPOOL_PROGRAM_ID, get_oracle_address
from whirlpool_snapshot.pda.windows import TICK_ARRAY_SIZE, plan_tick_window

ZERO_KEY = bytes(32)


class FakeAccountReader(AccountReader):
    """
    In-memory account reader.

    Attributes:
        accounts: Address to raw bytes; absent addresses read as None
        read_one_calls: Addresses passed to read_one, in call order
        read_many_calls: Address lists passed to read_many, in call order
        fail_read_many: Predicate on the address list; when true the call raises
        fail_read_one: Predicate on the address; when true the call raises
    """

    def __init__(self, accounts: Optional[Dict[Pubkey, bytes]] = None):
        self.accounts = dict(accounts or {})
        self.read_one_calls: List[Pubkey] = []
        self.read_many_calls: List[List[Pubkey]] = []
        self.fail_read_many: Optional[Callable[[List[Pubkey]], bool]] = None
        self.fail_read_one: Optional[Callable[[Pubkey], bool]] = None
        self.closed = False

    def close(self):
        self.closed = True

    @property
    def call_count(self) -> int:
        return len(self.read_one_calls) + len(self.read_many_calls)

    def read_one(self, address: Pubkey) -> Optional[bytes]:
        self.read_one_calls.append(address)
        if self.fail_read_one and self.fail_read_one(address):
            raise TransportError(f"connection reset reading {address}")
        return self.accounts.get(address)

    def read_many(self, addresses: Sequence[Pubkey]) -> List[Optional[bytes]]:
        addresses = list(addresses)
        self.read_many_calls.append(addresses)
        if self.fail_read_many and self.fail_read_many(addresses):
            raise TransportError(f"connection reset reading {len(addresses)} accounts")
        return [self.accounts.get(address) for address in addresses]


def build_whirlpool_bytes(
    tick_current_index: int = 0,
    tick_spacing: int = 64,
    token_mint_a: Optional[Pubkey] = None,
    token_mint_b: Optional[Pubkey] = None,
    fee_rate: int = 3000,
    liquidity: int = 10**12,
    sqrt_price: int = 2**64,
) -> bytes:
    reward = {
        "mint": ZERO_KEY,
        "vault": ZERO_KEY,
        "authority": ZERO_KEY,
        "emissions_per_second_x64": 0,
        "growth_global_x64": 0,
    }
    return WHIRLPOOL_LAYOUT.build(
        {
            "whirlpools_config": bytes(Pubkey.new_unique()),
            "whirlpool_bump": 255,
            "tick_spacing": tick_spacing,
            "fee_tier_index_seed": tick_spacing.to_bytes(2, "little"),
            "fee_rate": fee_rate,
            "protocol_fee_rate": 1300,
            "liquidity": liquidity,
            "sqrt_price": sqrt_price,
            "tick_current_index": tick_current_index,
            "protocol_fee_owed_a": 0,
            "protocol_fee_owed_b": 0,
            "token_mint_a": bytes(token_mint_a or Pubkey.new_unique()),
            "token_vault_a": bytes(Pubkey.new_unique()),
            "fee_growth_global_a": 0,
            "token_mint_b": bytes(token_mint_b or Pubkey.new_unique()),
            "token_vault_b": bytes(Pubkey.new_unique()),
            "fee_growth_global_b": 0,
            "reward_last_updated_timestamp": 1_700_000_000,
            "reward_infos": [dict(reward) for _ in range(NUM_REWARDS)],
        }
    )


def build_tick_array_bytes(pool: Pubkey, start_tick_index: int, initialized: Sequence[int] = ()) -> bytes:
    ticks = [
        {
            "initialized": i in initialized,
            "liquidity_net": -1000 if i in initialized else 0,
            "liquidity_gross": 1000 if i in initialized else 0,
            "fee_growth_outside_a": 0,
            "fee_growth_outside_b": 0,
            "reward_growths_outside": [0] * NUM_REWARDS,
        }
        for i in range(TICK_ARRAY_SIZE)
    ]
    return TICK_ARRAY_LAYOUT.build(
        {"start_tick_index": start_tick_index, "ticks": ticks, "whirlpool": bytes(pool)}
    )


def build_oracle_bytes(pool: Pubkey, volatility_accumulator: int = 0) -> bytes:
    return ORACLE_LAYOUT.build(
        {
            "whirlpool": bytes(pool),
            "trade_enable_timestamp": 0,
            "adaptive_fee_constants": {
                "filter_period": 30,
                "decay_period": 600,
                "reduction_factor": 5000,
                "adaptive_fee_control_factor": 4000,
                "max_volatility_accumulator": 350000,
                "tick_group_size": 64,
                "major_swap_threshold_ticks": 64,
                "reserved": bytes(16),
            },
            "adaptive_fee_variables": {
                "last_reference_update_timestamp": 1_700_000_000,
                "last_major_swap_timestamp": 1_700_000_000,
                "volatility_reference": 0,
                "tick_group_index_reference": 0,
                "volatility_accumulator": volatility_accumulator,
                "reserved": bytes(16),
            },
            "reserved": bytes(128),
        }
    )


def build_mint_bytes(
    decimals: int = 6,
    supply: int = 10**15,
    authority: Optional[Pubkey] = None,
    freeze_authority: Optional[Pubkey] = None,
) -> bytes:
    def coption(key):
        return {"tag": 1, "value": bytes(key)} if key else {"tag": 0, "value": ZERO_KEY}

    return MINT_LAYOUT.build(
        {
            "mint_authority": coption(authority),
            "supply": supply,
            "decimals": decimals,
            "is_initialized": True,
            "freeze_authority": coption(freeze_authority),
        }
    )


class MarketSnapshot:
    """Builds a consistent remote ledger inside a FakeAccountReader."""

    def __init__(self, reader: FakeAccountReader):
        self.reader = reader

    def add_pool(
        self,
        tick_current_index: int = 0,
        tick_spacing: int = 64,
        sides=("left", "current", "right"),
        with_oracle: bool = True,
        with_mints: bool = True,
        program_id: Pubkey = WHIRLPOOL_PROGRAM_ID,
    ) -> Pubkey:
        """Add a pool and the accounts around it, returning the pool address."""
        pool = Pubkey.new_unique()
        mint_a, mint_b = Pubkey.new_unique(), Pubkey.new_unique()
        accounts = self.reader.accounts

        accounts[pool] = build_whirlpool_bytes(
            tick_current_index=tick_current_index,
            tick_spacing=tick_spacing,
            token_mint_a=mint_a,
            token_mint_b=mint_b,
        )

        pool_facade = SimpleNamespace(tick_current_index=tick_current_index, tick_spacing=tick_spacing)
        window = plan_tick_window(pool_facade)
        for side, start, address in zip(
            ("left", "current", "right"), window.start_indexes(), window.addresses(pool, program_id)
        ):
            if side in sides:
                accounts[address] = build_tick_array_bytes(pool, start, initialized=(0, 44))

        if with_oracle:
            accounts[get_oracle_address(pool, program_id)[0]] = build_oracle_bytes(pool)

        if with_mints:
            accounts[mint_a] = build_mint_bytes(decimals=9)
            accounts[mint_b] = build_mint_bytes(decimals=6, authority=Pubkey.new_unique())

        return pool


@pytest.fixture
def reader():
    return FakeAccountReader()


@pytest.fixture
def market(reader):
    return MarketSnapshot(reader)


@pytest.fixture
def fixed_clock():
    """Clock returning 1_700_000_000, 1_700_000_001, ... on successive calls."""
    counter = itertools.count(1_700_000_000)
    return lambda: next(counter)


@pytest.fixture
def account_bytes():
    """Raw account builders for every supported layout."""
    return SimpleNamespace(
        whirlpool=build_whirlpool_bytes,
        tick_array=build_tick_array_bytes,
        oracle=build_oracle_bytes,
        mint=build_mint_bytes,
    )
