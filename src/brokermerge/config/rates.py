"""Exchange-rate API configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import require_env_vars
from .http_resilience import RateLimit, ResilienceConfig

FXRATES_BASE_URL = "https://api.fxratesapi.com"
EXCHANGERATE_API_BASE_URL = "https://v6.exchangerate-api.com/v6"
RATE_API_TIMEOUT_SECONDS = 10.0
USER_AGENT = "brokermerge/0.1"


@dataclass(frozen=True, slots=True)
class RateApiConfig:
    """API key and client settings for one external rate provider."""

    api_key: str
    resilience: ResilienceConfig


def get_fxrates_config(*, resilience: ResilienceConfig | None = None) -> RateApiConfig:
    values = require_env_vars(("FXRATES_API_KEY",))
    return RateApiConfig(
        api_key=values["FXRATES_API_KEY"],
        resilience=resilience
        or ResilienceConfig(
            name="fxrates",
            base_url=FXRATES_BASE_URL,
            timeout_seconds=RATE_API_TIMEOUT_SECONDS,
            ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
            default_headers={"Accept": "application/json", "User-Agent": USER_AGENT},
        ),
    )


def get_exchangerate_api_config(*, resilience: ResilienceConfig | None = None) -> RateApiConfig:
    values = require_env_vars(("EXCHANGERATE_API_KEY",))
    return RateApiConfig(
        api_key=values["EXCHANGERATE_API_KEY"],
        resilience=resilience
        or ResilienceConfig(
            name="exchangerate-api",
            base_url=EXCHANGERATE_API_BASE_URL,
            timeout_seconds=RATE_API_TIMEOUT_SECONDS,
            ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
            default_headers={"Accept": "application/json", "User-Agent": USER_AGENT},
        ),
    )
