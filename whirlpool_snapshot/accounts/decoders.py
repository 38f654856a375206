"""
Raw account bytes to facades.

Every decoder raises DecodeError when the bytes are too short, carry the
wrong discriminator, or hold values no valid account can have. Callers
attach pool index and side by catching and re-raising.
"""

from typing import Optional

from construct import ConstructError
from solders.pubkey import Pubkey

from ..batchers.errors import DecodeError
from .facades import (
    AdaptiveFeeConstants,
    AdaptiveFeeVariables,
    MintData,
    OracleFacade,
    TickArrayFacade,
    TickFacade,
    WhirlpoolFacade,
    WhirlpoolRewardInfo,
)
from .layouts import (
    MINT_LAYOUT,
    MINT_SIZE,
    ORACLE_LAYOUT,
    ORACLE_SIZE,
    TICK_ARRAY_LAYOUT,
    TICK_ARRAY_SIZE_BYTES,
    WHIRLPOOL_LAYOUT,
    WHIRLPOOL_SIZE,
)


def _parse(layout, data: bytes, min_size: int, name: str):
    if data is None:
        raise DecodeError(f"No data for {name} account")
    if len(data) < min_size:
        raise DecodeError(f"{name} account too short: {len(data)} bytes, expected {min_size}")
    try:
        return layout.parse(data)
    except ConstructError as e:
        raise DecodeError(f"Failed to decode {name} account: {e}")


def _pubkey(raw: bytes) -> Pubkey:
    return Pubkey.from_bytes(bytes(raw))


def decode_whirlpool(data: bytes) -> WhirlpoolFacade:
    """Decode a Whirlpool pool account."""
    parsed = _parse(WHIRLPOOL_LAYOUT, data, WHIRLPOOL_SIZE, "whirlpool")
    if parsed.tick_spacing == 0:
        raise DecodeError("whirlpool account has zero tick spacing")

    return WhirlpoolFacade(
        whirlpools_config=_pubkey(parsed.whirlpools_config),
        whirlpool_bump=parsed.whirlpool_bump,
        tick_spacing=parsed.tick_spacing,
        fee_tier_index_seed=bytes(parsed.fee_tier_index_seed),
        fee_rate=parsed.fee_rate,
        protocol_fee_rate=parsed.protocol_fee_rate,
        liquidity=parsed.liquidity,
        sqrt_price=parsed.sqrt_price,
        tick_current_index=parsed.tick_current_index,
        protocol_fee_owed_a=parsed.protocol_fee_owed_a,
        protocol_fee_owed_b=parsed.protocol_fee_owed_b,
        token_mint_a=_pubkey(parsed.token_mint_a),
        token_vault_a=_pubkey(parsed.token_vault_a),
        fee_growth_global_a=parsed.fee_growth_global_a,
        token_mint_b=_pubkey(parsed.token_mint_b),
        token_vault_b=_pubkey(parsed.token_vault_b),
        fee_growth_global_b=parsed.fee_growth_global_b,
        reward_last_updated_timestamp=parsed.reward_last_updated_timestamp,
        reward_infos=tuple(
            WhirlpoolRewardInfo(
                mint=_pubkey(info.mint),
                vault=_pubkey(info.vault),
                authority=_pubkey(info.authority),
                emissions_per_second_x64=info.emissions_per_second_x64,
                growth_global_x64=info.growth_global_x64,
            )
            for info in parsed.reward_infos
        ),
    )


def decode_tick_array(data: bytes) -> TickArrayFacade:
    """Decode a fixed-size tick array account."""
    parsed = _parse(TICK_ARRAY_LAYOUT, data, TICK_ARRAY_SIZE_BYTES, "tick array")
    return TickArrayFacade(
        start_tick_index=parsed.start_tick_index,
        ticks=tuple(
            TickFacade(
                initialized=bool(tick.initialized),
                liquidity_net=tick.liquidity_net,
                liquidity_gross=tick.liquidity_gross,
                fee_growth_outside_a=tick.fee_growth_outside_a,
                fee_growth_outside_b=tick.fee_growth_outside_b,
                reward_growths_outside=tuple(tick.reward_growths_outside),
            )
            for tick in parsed.ticks
        ),
        whirlpool=_pubkey(parsed.whirlpool),
    )


def decode_oracle(data: bytes) -> OracleFacade:
    """Decode an adaptive-fee oracle account."""
    parsed = _parse(ORACLE_LAYOUT, data, ORACLE_SIZE, "oracle")
    constants = parsed.adaptive_fee_constants
    variables = parsed.adaptive_fee_variables
    return OracleFacade(
        whirlpool=_pubkey(parsed.whirlpool),
        trade_enable_timestamp=parsed.trade_enable_timestamp,
        adaptive_fee_constants=AdaptiveFeeConstants(
            filter_period=constants.filter_period,
            decay_period=constants.decay_period,
            reduction_factor=constants.reduction_factor,
            adaptive_fee_control_factor=constants.adaptive_fee_control_factor,
            max_volatility_accumulator=constants.max_volatility_accumulator,
            tick_group_size=constants.tick_group_size,
            major_swap_threshold_ticks=constants.major_swap_threshold_ticks,
        ),
        adaptive_fee_variables=AdaptiveFeeVariables(
            last_reference_update_timestamp=variables.last_reference_update_timestamp,
            last_major_swap_timestamp=variables.last_major_swap_timestamp,
            volatility_reference=variables.volatility_reference,
            tick_group_index_reference=variables.tick_group_index_reference,
            volatility_accumulator=variables.volatility_accumulator,
        ),
    )


def _coption(option) -> Optional[str]:
    if option.tag == 0:
        return None
    if option.tag != 1:
        raise DecodeError(f"Invalid COption tag {option.tag}")
    return str(_pubkey(option.value))


def decode_mint(address: Pubkey, data: bytes) -> MintData:
    """Decode an SPL-Token (or Token-2022 base) mint account."""
    parsed = _parse(MINT_LAYOUT, data, MINT_SIZE, "mint")
    return MintData(
        address=address,
        authority=_coption(parsed.mint_authority),
        supply=parsed.supply,
        decimals=parsed.decimals,
        is_initialized=bool(parsed.is_initialized),
        freeze_authority=_coption(parsed.freeze_authority),
    )
