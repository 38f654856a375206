"""
Configuration management for whirlpool-snapshot.

Use get_config() to access all configuration settings.

Example:
    from whirlpool_snapshot.config import get_config

    config = get_config()
    rpc_url = config.solana.SOLANA_RPC_URL
    batch_config = config.solana.get_batch_config()
"""

from .manager import ConfigManager, get_config, reload_config
from .solana import ConfigError, SolanaConfig

__all__ = [
    "ConfigError",
    "SolanaConfig",
    "ConfigManager",
    "get_config",
    "reload_config",
]
