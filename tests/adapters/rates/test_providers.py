from __future__ import annotations

import asyncio
from collections.abc import Callable  # noqa: TC003

import httpx
import pytest

from brokermerge.adapters.http_resilience import ResilientClient
from brokermerge.adapters.rates import ExchangeRateApiProvider, FxRatesProvider
from brokermerge.config import MissingConfigurationError, RateApiConfig, ResilienceConfig
from brokermerge.config.rates import get_exchangerate_api_config, get_fxrates_config
from brokermerge.domain.ports import RateProvider, RateProviderError


def _make_client_factory(
    handler: Callable[[httpx.Request], httpx.Response],
) -> Callable[[ResilienceConfig], ResilientClient]:
    async def async_handler(request: httpx.Request) -> httpx.Response:
        return handler(request)

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        client = ResilientClient(resilience)
        client._client = httpx.AsyncClient(transport=httpx.MockTransport(async_handler))  # noqa: SLF001  # type: ignore[reportPrivateUsage]
        return client

    return factory


def test_fxrates_reads_nested_rate(fxrates_config: RateApiConfig) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"success": True, "result": {"rate": 10.52}})

    provider = FxRatesProvider(config=fxrates_config, client_factory=_make_client_factory(handler))

    rate = asyncio.run(provider.fetch_rate("USD", "NOK"))

    assert rate == 10.52
    assert isinstance(provider, RateProvider)
    request = seen[0]
    assert request.url.host == "fx.test"
    assert request.url.path == "/convert"
    assert request.url.params["from"] == "USD"
    assert request.url.params["to"] == "NOK"
    assert request.url.params["amount"] == "1"
    assert request.url.params["api_key"] == "fx-key"


def test_fxrates_reads_info_rate(fxrates_config: RateApiConfig) -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={"success": True, "info": {"rate": 0.094, "timestamp": 1}, "result": 0.094},
        )

    provider = FxRatesProvider(config=fxrates_config, client_factory=_make_client_factory(handler))

    assert asyncio.run(provider.fetch_rate("SEK", "EUR")) == 0.094


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, json={"error": "server"}),
        httpx.Response(200, json={"success": False, "error": "invalid_key"}),
        httpx.Response(200, json={"success": True, "result": {"rate": 0}}),
        httpx.Response(200, text="<html>maintenance</html>"),
    ],
)
def test_fxrates_failures_raise_provider_error(
    fxrates_config: RateApiConfig,
    response: httpx.Response,
) -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return response

    provider = FxRatesProvider(config=fxrates_config, client_factory=_make_client_factory(handler))

    with pytest.raises(RateProviderError) as excinfo:
        asyncio.run(provider.fetch_rate("USD", "NOK"))

    assert excinfo.value.provider == "fxrates"


def test_fxrates_transport_error_raises_provider_error(fxrates_config: RateApiConfig) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    provider = FxRatesProvider(config=fxrates_config, client_factory=_make_client_factory(handler))

    with pytest.raises(RateProviderError, match="request failed"):
        asyncio.run(provider.fetch_rate("USD", "NOK"))


def test_exchangerate_api_pair_lookup(exchangerate_api_config: RateApiConfig) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "result": "success",
                "base_code": "SEK",
                "target_code": "USD",
                "conversion_rate": 0.11,
            },
        )

    provider = ExchangeRateApiProvider(
        config=exchangerate_api_config,
        client_factory=_make_client_factory(handler),
    )

    assert asyncio.run(provider.fetch_rate("SEK", "USD")) == 0.11
    assert seen[0].url.path == "/v6/er-key/pair/SEK/USD"


def test_exchangerate_api_error_result(exchangerate_api_config: RateApiConfig) -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(403, json={"result": "error", "error-type": "invalid-key"})

    provider = ExchangeRateApiProvider(
        config=exchangerate_api_config,
        client_factory=_make_client_factory(handler),
    )

    with pytest.raises(RateProviderError, match="invalid-key") as excinfo:
        asyncio.run(provider.fetch_rate("SEK", "USD"))

    assert excinfo.value.provider == "exchangerate-api"


def test_exchangerate_api_rejects_malformed_payload(
    exchangerate_api_config: RateApiConfig,
) -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"unexpected": True})

    provider = ExchangeRateApiProvider(
        config=exchangerate_api_config,
        client_factory=_make_client_factory(handler),
    )

    with pytest.raises(RateProviderError, match="Invalid response"):
        asyncio.run(provider.fetch_rate("SEK", "USD"))


def test_provider_configs_require_api_keys(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("FXRATES_API_KEY", raising=False)
    monkeypatch.setenv("EXCHANGERATE_API_KEY", "  ")

    with pytest.raises(MissingConfigurationError, match="FXRATES_API_KEY"):
        get_fxrates_config()
    with pytest.raises(MissingConfigurationError, match="EXCHANGERATE_API_KEY"):
        get_exchangerate_api_config()


def test_provider_configs_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FXRATES_API_KEY", " fx-secret ")

    config = get_fxrates_config()

    assert config.api_key == "fx-secret"
    assert config.resilience.base_url == "https://api.fxratesapi.com"
    assert config.resilience.ratelimit is not None
