"""Currency conversion defaults."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_currency, optional_env_float

DEFAULT_BASE_CURRENCY = "USD"
DEFAULT_RATE_TTL_SECONDS = 60 * 60
DEFAULT_REQUEST_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True, slots=True)
class CurrencyConfig:
    base_currency: str = DEFAULT_BASE_CURRENCY
    rate_ttl_seconds: float = DEFAULT_RATE_TTL_SECONDS
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS


def get_currency_config() -> CurrencyConfig:
    return CurrencyConfig(
        base_currency=optional_env_currency("BROKERMERGE_BASE_CURRENCY", DEFAULT_BASE_CURRENCY),
        rate_ttl_seconds=optional_env_float(
            "BROKERMERGE_RATE_TTL_SECONDS", DEFAULT_RATE_TTL_SECONDS
        ),
        request_timeout_seconds=optional_env_float(
            "BROKERMERGE_RATE_TIMEOUT_SECONDS", DEFAULT_REQUEST_TIMEOUT_SECONDS
        ),
    )
