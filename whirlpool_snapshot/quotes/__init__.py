"""
Swap quote requests built from pool snapshots.
"""

from .swap import SwapParams, SwapQuote, SwapQuoter, build_swap_quote

__all__ = ["SwapParams", "SwapQuote", "SwapQuoter", "build_swap_quote"]
