"""
Batched account reads.

This package provides the account reader interface, its JSON-RPC
implementation, and the batch fetchers for pool, tick array and oracle
accounts, keeping remote round trips to one per account class.
"""

from .base import (
    MAX_ACCOUNTS_PER_REQUEST,
    MAX_POOLS_PER_BATCH,
    AccountReader,
    BaseBatcher,
    BatchConfig,
    BatchResult,
    to_pubkey,
    validate_addresses,
)
from .errors import (
    AggregationError,
    BatchError,
    BatchSizeExceededError,
    DecodeError,
    ErrorHandler,
    InvalidSeedsError,
    MissingAccountError,
    NetworkError,
    RateLimitError,
    TransportError,
    ValidationError,
)
from .oracles import OracleBatcher, fetch_oracle_accounts
from .pool_accounts import PoolAccountBatcher, fetch_pool_accounts
from .rpc_reader import RpcAccountReader
from .tick_arrays import TickArrayBatcher, fetch_tick_array_accounts, flatten_windows, regroup_windows

__all__ = [
    'MAX_ACCOUNTS_PER_REQUEST',
    'MAX_POOLS_PER_BATCH',
    'AccountReader',
    'BaseBatcher',
    'BatchConfig',
    'BatchResult',
    'to_pubkey',
    'validate_addresses',
    'AggregationError',
    'BatchError',
    'BatchSizeExceededError',
    'DecodeError',
    'ErrorHandler',
    'InvalidSeedsError',
    'MissingAccountError',
    'NetworkError',
    'RateLimitError',
    'TransportError',
    'ValidationError',
    'OracleBatcher',
    'fetch_oracle_accounts',
    'PoolAccountBatcher',
    'fetch_pool_accounts',
    'RpcAccountReader',
    'TickArrayBatcher',
    'fetch_tick_array_accounts',
    'flatten_windows',
    'regroup_windows',
]
