"""
Configuration manager for whirlpool-snapshot.

This module provides a centralized way to access all configuration settings
across the application.
"""

import logging

from .solana import ConfigError, SolanaConfig

logger = logging.getLogger(__name__)


class ConfigManager:
    """Holds the validated configuration for one environment."""

    def __init__(self, environment: str = None):
        """
        Initialize the configuration manager.

        Args:
            environment: Override the environment (local, dev, test, staging, production)
        """
        self._environment = environment
        self._solana_config = None
        self._initialize_configs()

    def _initialize_configs(self):
        try:
            if self._environment:
                self._solana_config = SolanaConfig(ENVIRONMENT=self._environment)
            else:
                self._solana_config = SolanaConfig()

            logger.info(f"Configuration initialized for environment: {self.environment}")

        except ConfigError:
            raise
        except Exception as e:
            logger.error(f"Failed to initialize configuration: {e}")
            raise ConfigError(f"Configuration initialization failed: {e}")

    @property
    def environment(self) -> str:
        """Get current environment."""
        return self._solana_config.ENVIRONMENT

    @property
    def solana(self) -> SolanaConfig:
        """Get Solana configuration."""
        return self._solana_config

    def __repr__(self) -> str:
        return f"ConfigManager(environment={self.environment})"


# Global configuration manager instance
_config_manager = None


def get_config(environment: str = None, force_reload: bool = False) -> ConfigManager:
    """
    Get the global configuration manager instance.

    Args:
        environment: Override environment
        force_reload: Force reload of configuration

    Returns:
        ConfigManager instance
    """
    global _config_manager

    if _config_manager is None or force_reload:
        _config_manager = ConfigManager(environment=environment)

    return _config_manager


def reload_config(environment: str = None) -> ConfigManager:
    """Reload the global configuration manager."""
    return get_config(environment=environment, force_reload=True)
