"""Secondary exchange-rate provider backed by exchangerate-api.com (v6)."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from brokermerge.adapters.http_resilience import ResilientClient, default_client_factory
from brokermerge.config import EXCHANGERATE_API_BASE_URL, get_exchangerate_api_config
from brokermerge.domain.ports import RateProvider, RateProviderError

from .schema import ExchangeRateApiPairResponse

if TYPE_CHECKING:
    from collections.abc import Callable

    from brokermerge.config import RateApiConfig, ResilienceConfig

log = getLogger(__name__)

PROVIDER_NAME = "exchangerate-api"


@dataclass(slots=True)
class ExchangeRateApiProvider:
    config: RateApiConfig = field(default_factory=get_exchangerate_api_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=default_client_factory
    )
    name: str = PROVIDER_NAME

    async def fetch_rate(self, from_currency: str, to_currency: str) -> float:
        base_url = (self.config.resilience.base_url or EXCHANGERATE_API_BASE_URL).rstrip("/")
        url = f"{base_url}/{self.config.api_key}/pair/{from_currency}/{to_currency}"
        try:
            async with self.client_factory(self.config.resilience) as client:
                response = await client.get(url)
            payload = ExchangeRateApiPairResponse.model_validate(response.json())
        except httpx.HTTPError as exc:
            raise RateProviderError(
                f"ExchangeRate API request failed: {exc}", provider=self.name
            ) from exc
        except (ValidationError, ValueError) as exc:
            raise RateProviderError(
                "Invalid response from ExchangeRate API", provider=self.name
            ) from exc

        if payload.result != "success":
            log.error(
                "ExchangeRate API error for %s to %s: %s",
                from_currency,
                to_currency,
                payload.error_type,
            )
            raise RateProviderError(
                f"ExchangeRate API error: {payload.error_type or 'unknown'}",
                provider=self.name,
            )
        if payload.conversion_rate is None or payload.conversion_rate <= 0:
            raise RateProviderError("Invalid response from ExchangeRate API", provider=self.name)
        return payload.conversion_rate


if TYPE_CHECKING:
    _provider_check: RateProvider = ExchangeRateApiProvider()
