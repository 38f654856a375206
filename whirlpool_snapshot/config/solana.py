"""
Solana RPC and batching configuration for whirlpool-snapshot.

Settings are read from the environment (after loading a .env file) each time
a SolanaConfig is created, so reload_config() picks up changed variables.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv
from solders.pubkey import Pubkey

from ..batchers.base import MAX_ACCOUNTS_PER_REQUEST, MAX_POOLS_PER_BATCH, BatchConfig

load_dotenv()

ENVIRONMENTS = ("local", "dev", "test", "staging", "production")
COMMITMENTS = ("processed", "confirmed", "finalized")
TICK_ARRAYS_PER_POOL = 3


class ConfigError(Exception):
    """Exception raised for configuration-related errors."""
    pass


def get_env(key: str, default: str) -> str:
    return os.getenv(key, default)


def get_env_int(key: str, default: int, minimum: Optional[int] = None) -> int:
    """Read an integer setting, optionally bounded below."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        number = int(value)
    except ValueError:
        raise ConfigError(f"Environment variable '{key}' must be an integer, got: {value}")
    if minimum is not None and number < minimum:
        raise ConfigError(f"Environment variable '{key}' must be at least {minimum}, got: {number}")
    return number


def get_env_float(key: str, default: float) -> float:
    """Read a positive float setting such as a timeout or delay."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        number = float(value)
    except ValueError:
        raise ConfigError(f"Environment variable '{key}' must be a number, got: {value}")
    if number <= 0:
        raise ConfigError(f"Environment variable '{key}' must be positive, got: {number}")
    return number


def get_env_list(key: str, default: List[str], separator: str = ",") -> List[str]:
    """Read a separated list; an unset variable gives the default."""
    value = os.getenv(key)
    if value is None:
        return list(default)
    return [item.strip() for item in value.split(separator) if item.strip()]


def parse_pubkey(name: str, value: str) -> Pubkey:
    try:
        return Pubkey.from_string(value)
    except ValueError as e:
        raise ConfigError(f"Invalid {name} {value!r}: {e}")


@dataclass
class SolanaConfig:
    """RPC endpoint, program, batch limits and logging."""

    ENVIRONMENT: str = field(default_factory=lambda: get_env("ENVIRONMENT", "local"))
    LOG_LEVEL: str = field(default_factory=lambda: get_env("LOG_LEVEL", "INFO"))

    SOLANA_RPC_URL: str = field(
        default_factory=lambda: get_env("SOLANA_RPC_URL", "https://api.mainnet-beta.solana.com")
    )
    SOLANA_COMMITMENT: str = field(default_factory=lambda: get_env("SOLANA_COMMITMENT", "confirmed"))
    WHIRLPOOL_PROGRAM_ID: str = field(
        default_factory=lambda: get_env(
            "WHIRLPOOL_PROGRAM_ID", "whirLbMiicVdio4qvUfM5KAg6Ct8VwpYzGff3uctyCc"
        )
    )

    # Request settings
    RPC_TIMEOUT_SECONDS: float = field(default_factory=lambda: get_env_float("RPC_TIMEOUT_SECONDS", 30.0))
    MAX_RETRY_ATTEMPTS: int = field(default_factory=lambda: get_env_int("MAX_RETRY_ATTEMPTS", 3, minimum=0))
    RETRY_DELAY_SECONDS: float = field(default_factory=lambda: get_env_float("RETRY_DELAY_SECONDS", 1.0))

    # Batch limits
    MAX_ACCOUNTS_PER_REQUEST: int = field(
        default_factory=lambda: get_env_int("MAX_ACCOUNTS_PER_REQUEST", MAX_ACCOUNTS_PER_REQUEST, minimum=1)
    )
    MAX_POOLS_PER_BATCH: int = field(
        default_factory=lambda: get_env_int("MAX_POOLS_PER_BATCH", MAX_POOLS_PER_BATCH, minimum=1)
    )
    MINT_FETCH_WORKERS: int = field(default_factory=lambda: get_env_int("MINT_FETCH_WORKERS", 4, minimum=1))

    # SOL/USDC
    DEFAULT_POOLS: List[str] = field(
        default_factory=lambda: get_env_list(
            "DEFAULT_POOLS", ["Czfq3xZZDmsdGdUyrNLtRhGc47cXcZtLG4crryfu44zE"]
        )
    )

    def __post_init__(self):
        self._validate_config()
        self._setup_logging()

    def _setup_logging(self):
        level = getattr(logging, self.LOG_LEVEL.upper(), None)
        if not isinstance(level, int):
            raise ConfigError(f"Invalid log level: {self.LOG_LEVEL}")
        logging.basicConfig(
            level=level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    def _validate_config(self):
        if self.ENVIRONMENT not in ENVIRONMENTS:
            raise ConfigError(f"Invalid environment: {self.ENVIRONMENT}")
        if self.SOLANA_COMMITMENT not in COMMITMENTS:
            raise ConfigError(f"Invalid commitment: {self.SOLANA_COMMITMENT}")
        if not self.SOLANA_RPC_URL.startswith(("http://", "https://")):
            raise ConfigError(f"RPC URL must be http(s): {self.SOLANA_RPC_URL}")

        if self.MAX_POOLS_PER_BATCH * TICK_ARRAYS_PER_POOL > self.MAX_ACCOUNTS_PER_REQUEST:
            raise ConfigError(
                f"MAX_POOLS_PER_BATCH={self.MAX_POOLS_PER_BATCH} needs "
                f"{self.MAX_POOLS_PER_BATCH * TICK_ARRAYS_PER_POOL} tick arrays per request, "
                f"above MAX_ACCOUNTS_PER_REQUEST={self.MAX_ACCOUNTS_PER_REQUEST}"
            )
        if self.MINT_FETCH_WORKERS < 1:
            raise ConfigError("MINT_FETCH_WORKERS must be at least 1")

        parse_pubkey("WHIRLPOOL_PROGRAM_ID", self.WHIRLPOOL_PROGRAM_ID)
        for pool in self.DEFAULT_POOLS:
            parse_pubkey("default pool address", pool)

    @property
    def program_id(self) -> Pubkey:
        """Whirlpool program used to derive tick array and oracle addresses."""
        return parse_pubkey("WHIRLPOOL_PROGRAM_ID", self.WHIRLPOOL_PROGRAM_ID)

    def get_batch_config(self) -> BatchConfig:
        """Build the batch configuration used by readers and the aggregator."""
        return BatchConfig(
            max_pools_per_batch=self.MAX_POOLS_PER_BATCH,
            max_accounts_per_request=self.MAX_ACCOUNTS_PER_REQUEST,
            max_retries=self.MAX_RETRY_ATTEMPTS,
            retry_delay=self.RETRY_DELAY_SECONDS,
            timeout=self.RPC_TIMEOUT_SECONDS,
            mint_fetch_workers=self.MINT_FETCH_WORKERS,
        )
