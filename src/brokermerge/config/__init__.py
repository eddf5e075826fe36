"""Application configuration helpers."""

from __future__ import annotations

from .currency import CurrencyConfig, get_currency_config
from .env import (
    optional_env_currency,
    optional_env_float,
    optional_env_str,
    require_env_var,
    require_env_vars,
)
from .errors import (
    ConfigurationError,
    InvalidConfigurationValueError,
    MissingConfigurationError,
)
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .rates import (
    EXCHANGERATE_API_BASE_URL,
    FXRATES_BASE_URL,
    RateApiConfig,
    get_exchangerate_api_config,
    get_fxrates_config,
)
from .storage import DatabaseConfig, get_database_config, get_database_uri

__all__ = [
    "EXCHANGERATE_API_BASE_URL",
    "FXRATES_BASE_URL",
    "ConfigurationError",
    "CurrencyConfig",
    "DatabaseConfig",
    "InvalidConfigurationValueError",
    "MissingConfigurationError",
    "RateApiConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "configure_logging",
    "get_currency_config",
    "get_database_config",
    "get_database_uri",
    "get_exchangerate_api_config",
    "get_fxrates_config",
    "optional_env_currency",
    "optional_env_float",
    "optional_env_str",
    "require_env_var",
    "require_env_vars",
]
