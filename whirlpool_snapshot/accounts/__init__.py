"""
Account decoding for Whirlpool pools, tick arrays, oracles and token mints.
"""

from .decoders import decode_mint, decode_oracle, decode_tick_array, decode_whirlpool
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

__all__ = [
    "decode_mint",
    "decode_oracle",
    "decode_tick_array",
    "decode_whirlpool",
    "AdaptiveFeeConstants",
    "AdaptiveFeeVariables",
    "MintData",
    "OracleFacade",
    "TickArrayFacade",
    "TickFacade",
    "WhirlpoolFacade",
    "WhirlpoolRewardInfo",
]
