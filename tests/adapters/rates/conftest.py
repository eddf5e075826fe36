"""Shared fixtures for exchange-rate provider tests."""

from __future__ import annotations

import pytest

from brokermerge.config import RateApiConfig, ResilienceConfig


@pytest.fixture
def fxrates_config() -> RateApiConfig:
    return RateApiConfig(
        api_key="fx-key",
        resilience=ResilienceConfig(name="fxrates", base_url="https://fx.test"),
    )


@pytest.fixture
def exchangerate_api_config() -> RateApiConfig:
    return RateApiConfig(
        api_key="er-key",
        resilience=ResilienceConfig(name="exchangerate-api", base_url="https://er.test/v6/"),
    )
