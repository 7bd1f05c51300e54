"""
Cache configuration loading.

This module reads cache settings from environment variables (optionally
seeded from a ``.env`` file), converts them to the right types and
validates them into a ``CacheConfig``.
"""

import logging
import os
from pathlib import Path
from typing import Dict, Optional, Any

from dotenv import load_dotenv

from ..types.models import CacheConfig
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class ConfigManager:
    """
    Configuration manager with validation and type safety.

    Every variable is optional. Unset variables fall back to the
    ``CacheConfig`` defaults and then to environment-specific defaults.
    """

    # Environment variable -> CacheConfig field
    FIELD_NAMES = {
        'CACHE_DEFAULT_TTL': 'default_ttl',
        'CACHE_MAX_SIZE': 'max_size',
        'CACHE_EAGER_EXPIRY': 'eager_expiry',
        'LOG_LEVEL': 'log_level',
        'ENVIRONMENT': 'environment',
        'DEBUG_MODE': 'debug_mode'
    }

    # Environment variable types for validation
    VAR_TYPES = {
        'CACHE_DEFAULT_TTL': float,
        'CACHE_MAX_SIZE': int,
        'CACHE_EAGER_EXPIRY': bool,
        'LOG_LEVEL': str,
        'ENVIRONMENT': str,
        'DEBUG_MODE': bool
    }

    def __init__(self, env_file_path: Optional[str] = None):
        """
        Initialize the configuration manager.

        Args:
            env_file_path: Optional path to a .env file. Without one, a
                          ``.env`` in the current directory is used if present.
        """
        self._config: Optional[CacheConfig] = None
        self._env_file_path = env_file_path
        self._load_environment(env_file_path)

    def _load_environment(self, env_file_path: Optional[str] = None) -> None:
        env_path = Path(env_file_path) if env_file_path else Path.cwd() / '.env'

        if env_path.exists():
            load_dotenv(dotenv_path=env_path)
        elif env_file_path:
            logger.warning(f"Environment file not found at {env_path}")

    def load_config(self) -> CacheConfig:
        """
        Load and validate configuration from environment variables.

        Returns:
            CacheConfig: Validated configuration object

        Raises:
            ConfigurationError: If any value is malformed or invalid
        """
        if self._config is not None:
            return self._config

        config_data = self._extract_config_values()

        try:
            config = CacheConfig(**config_data)
            self._apply_environment_specific_defaults(config)
            config.validate()
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid configuration: {str(e)}",
                validation_errors=[str(e)],
                env_file_path=self._env_file_path
            )

        self._config = config
        return self._config

    def _extract_config_values(self) -> Dict[str, Any]:
        """
        Extract and convert configuration values from environment variables.

        Raises:
            ConfigurationError: If any values cannot be converted
        """
        config_data = {}
        invalid_values = {}

        for env_var, field_name in self.FIELD_NAMES.items():
            env_value = os.getenv(env_var)
            if env_value is None:
                continue

            var_type = self.VAR_TYPES[env_var]
            try:
                if var_type == int:
                    config_data[field_name] = int(env_value)
                elif var_type == float:
                    config_data[field_name] = float(env_value)
                elif var_type == bool:
                    config_data[field_name] = env_value.strip().lower() in ('true', 'yes', '1', 'y', 'on')
                elif field_name == 'log_level':
                    config_data[field_name] = env_value.strip().upper()
                else:
                    config_data[field_name] = env_value.strip()
            except (ValueError, TypeError):
                invalid_values[env_var] = env_value

        if invalid_values:
            raise ConfigurationError(
                f"Invalid values for environment variables: {invalid_values}. "
                f"Please check the data types and formats.",
                invalid_values=invalid_values,
                env_file_path=self._env_file_path
            )

        return config_data

    def _apply_environment_specific_defaults(self, config: CacheConfig) -> None:
        """Apply environment defaults only where no variable was set explicitly."""
        env_vars_by_field = {field: var for var, field in self.FIELD_NAMES.items()}

        for key, value in config.get_environment_specific_defaults().items():
            if os.getenv(env_vars_by_field[key]) is None:
                setattr(config, key, value)

    def get_config(self) -> CacheConfig:
        """
        Get the current configuration.

        Raises:
            ConfigurationError: If configuration hasn't been loaded yet
        """
        if self._config is None:
            raise ConfigurationError("Configuration not loaded. Call load_config() first.")

        return self._config

    def reload_config(self) -> CacheConfig:
        """
        Reload configuration from environment variables.

        Returns:
            CacheConfig: Updated configuration object
        """
        self._load_environment(self._env_file_path)
        self._config = None
        return self.load_config()

    def get_config_summary(self) -> Dict[str, Any]:
        """Get a summary of the current configuration."""
        if not self._config:
            return {'status': 'not_loaded'}

        config_dict = self._config.to_dict()
        return {
            'status': 'loaded',
            'environment': config_dict.get('environment', 'development'),
            'debug_mode': config_dict.get('debug_mode', False),
            'values': config_dict
        }
