"""
Decoded, immutable views of raw on-chain accounts.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from solders.pubkey import Pubkey


@dataclass(frozen=True)
class WhirlpoolRewardInfo:
    """Emission state of one pool reward."""

    mint: Pubkey
    vault: Pubkey
    authority: Pubkey
    emissions_per_second_x64: int
    growth_global_x64: int

    @property
    def initialized(self) -> bool:
        return self.mint != Pubkey.default()


@dataclass(frozen=True)
class WhirlpoolFacade:
    """
    Decoded pool account.

    Attributes:
        whirlpools_config: Config account the pool belongs to
        tick_spacing: Distance between initializable ticks
        fee_tier_index_seed: Raw fee tier seed bytes
        fee_rate: Swap fee in hundredths of a basis point
        protocol_fee_rate: Share of the fee taken by the protocol
        liquidity: Active liquidity
        sqrt_price: Square root of price as Q64.64
        tick_current_index: Tick of the current price
        token_mint_a: Mint of token A
        token_mint_b: Mint of token B
    """

    whirlpools_config: Pubkey
    whirlpool_bump: int
    tick_spacing: int
    fee_tier_index_seed: bytes
    fee_rate: int
    protocol_fee_rate: int
    liquidity: int
    sqrt_price: int
    tick_current_index: int
    protocol_fee_owed_a: int
    protocol_fee_owed_b: int
    token_mint_a: Pubkey
    token_vault_a: Pubkey
    fee_growth_global_a: int
    token_mint_b: Pubkey
    token_vault_b: Pubkey
    fee_growth_global_b: int
    reward_last_updated_timestamp: int
    reward_infos: Tuple[WhirlpoolRewardInfo, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "whirlpools_config": str(self.whirlpools_config),
            "tick_spacing": self.tick_spacing,
            "fee_rate": self.fee_rate,
            "protocol_fee_rate": self.protocol_fee_rate,
            "liquidity": str(self.liquidity),
            "sqrt_price": str(self.sqrt_price),
            "tick_current_index": self.tick_current_index,
            "token_mint_a": str(self.token_mint_a),
            "token_vault_a": str(self.token_vault_a),
            "token_mint_b": str(self.token_mint_b),
            "token_vault_b": str(self.token_vault_b),
            "reward_last_updated_timestamp": self.reward_last_updated_timestamp,
            "rewards": [
                str(reward.mint) for reward in self.reward_infos if reward.initialized
            ],
        }


@dataclass(frozen=True)
class TickFacade:
    """One tick of a tick array."""

    initialized: bool
    liquidity_net: int
    liquidity_gross: int
    fee_growth_outside_a: int
    fee_growth_outside_b: int
    reward_growths_outside: Tuple[int, ...]


@dataclass(frozen=True)
class TickArrayFacade:
    """Decoded tick array: 88 ticks starting at start_tick_index."""

    start_tick_index: int
    ticks: Tuple[TickFacade, ...]
    whirlpool: Pubkey

    @property
    def initialized_tick_count(self) -> int:
        return sum(1 for tick in self.ticks if tick.initialized)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start_tick_index": self.start_tick_index,
            "whirlpool": str(self.whirlpool),
            "initialized_ticks": self.initialized_tick_count,
        }


@dataclass(frozen=True)
class AdaptiveFeeConstants:
    filter_period: int
    decay_period: int
    reduction_factor: int
    adaptive_fee_control_factor: int
    max_volatility_accumulator: int
    tick_group_size: int
    major_swap_threshold_ticks: int


@dataclass(frozen=True)
class AdaptiveFeeVariables:
    last_reference_update_timestamp: int
    last_major_swap_timestamp: int
    volatility_reference: int
    tick_group_index_reference: int
    volatility_accumulator: int


@dataclass(frozen=True)
class OracleFacade:
    """Decoded adaptive-fee oracle of a pool."""

    whirlpool: Pubkey
    trade_enable_timestamp: int
    adaptive_fee_constants: AdaptiveFeeConstants
    adaptive_fee_variables: AdaptiveFeeVariables

    def to_dict(self) -> Dict[str, Any]:
        constants = self.adaptive_fee_constants
        variables = self.adaptive_fee_variables
        return {
            "whirlpool": str(self.whirlpool),
            "trade_enable_timestamp": self.trade_enable_timestamp,
            "filter_period": constants.filter_period,
            "decay_period": constants.decay_period,
            "reduction_factor": constants.reduction_factor,
            "adaptive_fee_control_factor": constants.adaptive_fee_control_factor,
            "max_volatility_accumulator": constants.max_volatility_accumulator,
            "tick_group_size": constants.tick_group_size,
            "volatility_accumulator": variables.volatility_accumulator,
            "volatility_reference": variables.volatility_reference,
            "last_major_swap_timestamp": variables.last_major_swap_timestamp,
        }


@dataclass(frozen=True)
class MintData:
    """
    SPL-Token mint metadata.

    Attributes:
        address: The mint's address
        authority: Mint authority (base58) or None if fixed supply
        supply: Total supply in base units
        decimals: Number of decimals
        is_initialized: Whether the mint has been initialized
        freeze_authority: Freeze authority (base58) or None
    """

    address: Pubkey
    authority: Optional[str]
    supply: int
    decimals: int
    is_initialized: bool
    freeze_authority: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": str(self.address),
            "authority": self.authority,
            "supply": str(self.supply),
            "decimals": self.decimals,
            "is_initialized": self.is_initialized,
            "freeze_authority": self.freeze_authority,
        }
