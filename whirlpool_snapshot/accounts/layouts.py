"""
Binary layouts of Whirlpool program accounts and SPL-Token mints.

All integers are little-endian. Anchor accounts start with an 8-byte
discriminator, sha256("account:<Name>")[:8].
"""

import hashlib

from construct import (
    Array,
    Bytes,
    BytesInteger,
    Const,
    Flag,
    Int8ul,
    Int16ul,
    Int32sl,
    Int32ul,
    Int64ul,
    Struct,
)

from ..pda.windows import TICK_ARRAY_SIZE

NUM_REWARDS = 3

U128 = BytesInteger(16, swapped=True)
I128 = BytesInteger(16, signed=True, swapped=True)
PUBKEY = Bytes(32)


def account_discriminator(name: str) -> bytes:
    return hashlib.sha256(f"account:{name}".encode()).digest()[:8]


WHIRLPOOL_DISCRIMINATOR = account_discriminator("Whirlpool")
TICK_ARRAY_DISCRIMINATOR = account_discriminator("TickArray")
ORACLE_DISCRIMINATOR = account_discriminator("Oracle")

WHIRLPOOL_REWARD_INFO_LAYOUT = Struct(
    "mint" / PUBKEY,
    "vault" / PUBKEY,
    "authority" / PUBKEY,
    "emissions_per_second_x64" / U128,
    "growth_global_x64" / U128,
)

# 653 bytes
WHIRLPOOL_LAYOUT = Struct(
    "discriminator" / Const(WHIRLPOOL_DISCRIMINATOR),
    "whirlpools_config" / PUBKEY,
    "whirlpool_bump" / Int8ul,
    "tick_spacing" / Int16ul,
    "fee_tier_index_seed" / Bytes(2),
    "fee_rate" / Int16ul,
    "protocol_fee_rate" / Int16ul,
    "liquidity" / U128,
    "sqrt_price" / U128,
    "tick_current_index" / Int32sl,
    "protocol_fee_owed_a" / Int64ul,
    "protocol_fee_owed_b" / Int64ul,
    "token_mint_a" / PUBKEY,
    "token_vault_a" / PUBKEY,
    "fee_growth_global_a" / U128,
    "token_mint_b" / PUBKEY,
    "token_vault_b" / PUBKEY,
    "fee_growth_global_b" / U128,
    "reward_last_updated_timestamp" / Int64ul,
    "reward_infos" / Array(NUM_REWARDS, WHIRLPOOL_REWARD_INFO_LAYOUT),
)

# 113 bytes
TICK_LAYOUT = Struct(
    "initialized" / Flag,
    "liquidity_net" / I128,
    "liquidity_gross" / U128,
    "fee_growth_outside_a" / U128,
    "fee_growth_outside_b" / U128,
    "reward_growths_outside" / Array(NUM_REWARDS, U128),
)

# 9988 bytes (fixed tick array)
TICK_ARRAY_LAYOUT = Struct(
    "discriminator" / Const(TICK_ARRAY_DISCRIMINATOR),
    "start_tick_index" / Int32sl,
    "ticks" / Array(TICK_ARRAY_SIZE, TICK_LAYOUT),
    "whirlpool" / PUBKEY,
)

ADAPTIVE_FEE_CONSTANTS_LAYOUT = Struct(
    "filter_period" / Int16ul,
    "decay_period" / Int16ul,
    "reduction_factor" / Int16ul,
    "adaptive_fee_control_factor" / Int32ul,
    "max_volatility_accumulator" / Int32ul,
    "tick_group_size" / Int16ul,
    "major_swap_threshold_ticks" / Int16ul,
    "reserved" / Bytes(16),
)

ADAPTIVE_FEE_VARIABLES_LAYOUT = Struct(
    "last_reference_update_timestamp" / Int64ul,
    "last_major_swap_timestamp" / Int64ul,
    "volatility_reference" / Int32ul,
    "tick_group_index_reference" / Int32sl,
    "volatility_accumulator" / Int32ul,
    "reserved" / Bytes(16),
)

# 254 bytes
ORACLE_LAYOUT = Struct(
    "discriminator" / Const(ORACLE_DISCRIMINATOR),
    "whirlpool" / PUBKEY,
    "trade_enable_timestamp" / Int64ul,
    "adaptive_fee_constants" / ADAPTIVE_FEE_CONSTANTS_LAYOUT,
    "adaptive_fee_variables" / ADAPTIVE_FEE_VARIABLES_LAYOUT,
    "reserved" / Bytes(128),
)

COPTION_PUBKEY = Struct(
    "tag" / Int32ul,
    "value" / PUBKEY,
)

# 82 bytes, Token-2022 mints carry extensions after this base
MINT_LAYOUT = Struct(
    "mint_authority" / COPTION_PUBKEY,
    "supply" / Int64ul,
    "decimals" / Int8ul,
    "is_initialized" / Flag,
    "freeze_authority" / COPTION_PUBKEY,
)

WHIRLPOOL_SIZE = WHIRLPOOL_LAYOUT.sizeof()
TICK_ARRAY_SIZE_BYTES = TICK_ARRAY_LAYOUT.sizeof()
ORACLE_SIZE = ORACLE_LAYOUT.sizeof()
MINT_SIZE = MINT_LAYOUT.sizeof()
