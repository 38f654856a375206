"""
Whirlpool pool state snapshots over Solana JSON-RPC.

Derives tick array and oracle addresses, batches account reads, decodes the
raw bytes and assembles per-pool snapshots with fetch timestamps.
"""

__version__ = "0.1.0"
