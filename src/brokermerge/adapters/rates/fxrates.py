"""Primary exchange-rate provider backed by fxratesapi.com."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from brokermerge.adapters.http_resilience import ResilientClient, default_client_factory
from brokermerge.config import FXRATES_BASE_URL, get_fxrates_config
from brokermerge.domain.ports import RateProvider, RateProviderError

from .schema import FxRatesConvertResponse

if TYPE_CHECKING:
    from collections.abc import Callable

    from brokermerge.config import RateApiConfig, ResilienceConfig

log = getLogger(__name__)

PROVIDER_NAME = "fxrates"


@dataclass(slots=True)
class FxRatesProvider:
    config: RateApiConfig = field(default_factory=get_fxrates_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=default_client_factory
    )
    name: str = PROVIDER_NAME

    async def fetch_rate(self, from_currency: str, to_currency: str) -> float:
        base_url = (self.config.resilience.base_url or FXRATES_BASE_URL).rstrip("/")
        params = httpx.QueryParams(
            {
                "from": from_currency,
                "to": to_currency,
                "amount": 1,
                "format": "json",
                "api_key": self.config.api_key,
            }
        )
        try:
            async with self.client_factory(self.config.resilience) as client:
                response = await client.get(f"{base_url}/convert", params=params)
            response.raise_for_status()
            payload = FxRatesConvertResponse.model_validate(response.json())
        except httpx.HTTPError as exc:
            raise RateProviderError(f"FxRates request failed: {exc}", provider=self.name) from exc
        except (ValidationError, ValueError) as exc:
            raise RateProviderError(
                "Invalid response from FxRates API", provider=self.name
            ) from exc

        rate = payload.rate
        if not payload.success or rate is None or rate <= 0:
            log.error(
                "FxRates API error for %s to %s: %s",
                from_currency,
                to_currency,
                payload.description or payload.error or "missing rate",
            )
            raise RateProviderError("Invalid response from FxRates API", provider=self.name)
        return rate


if TYPE_CHECKING:
    _provider_check: RateProvider = FxRatesProvider()
