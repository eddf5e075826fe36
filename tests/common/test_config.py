from __future__ import annotations

import pytest

from brokermerge.config import (
    ConfigurationError,
    InvalidConfigurationValueError,
    MissingConfigurationError,
    get_currency_config,
    optional_env_float,
    require_env_var,
    require_env_vars,
)


def test_require_env_vars_returns_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", " value ")

    result = require_env_vars(["EXAMPLE_VAR"])

    assert result["EXAMPLE_VAR"] == "value"


def test_require_env_vars_reports_every_missing_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_B", raising=False)
    monkeypatch.delenv("MISSING_A", raising=False)

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_B", "MISSING_A"])

    assert "MISSING_A, MISSING_B" in str(exc.value)


def test_require_env_var_handles_blank_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "   ")

    with pytest.raises(MissingConfigurationError):
        require_env_var("EXAMPLE_VAR")


def test_optional_env_float(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("EXAMPLE_FLOAT", raising=False)
    assert optional_env_float("EXAMPLE_FLOAT", 3.0) == 3.0

    monkeypatch.setenv("EXAMPLE_FLOAT", "1.5")
    assert optional_env_float("EXAMPLE_FLOAT", 3.0) == 1.5


@pytest.mark.parametrize("raw", ["soon", "0", "-2"])
def test_optional_env_float_rejects_invalid_values(
    monkeypatch: pytest.MonkeyPatch,
    raw: str,
) -> None:
    monkeypatch.setenv("EXAMPLE_FLOAT", raw)

    with pytest.raises(ConfigurationError, match="EXAMPLE_FLOAT"):
        optional_env_float("EXAMPLE_FLOAT", 3.0)


def test_currency_config_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "BROKERMERGE_BASE_CURRENCY",
        "BROKERMERGE_RATE_TTL_SECONDS",
        "BROKERMERGE_RATE_TIMEOUT_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)

    config = get_currency_config()

    assert config.base_currency == "USD"
    assert config.rate_ttl_seconds == 3600
    assert config.request_timeout_seconds == 10.0


def test_currency_config_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BROKERMERGE_BASE_CURRENCY", "nok")
    monkeypatch.setenv("BROKERMERGE_RATE_TTL_SECONDS", "600")

    config = get_currency_config()

    assert config.base_currency == "NOK"
    assert config.rate_ttl_seconds == 600.0


def test_invalid_value_error_names_the_variable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BROKERMERGE_RATE_TTL_SECONDS", "hourly")

    with pytest.raises(InvalidConfigurationValueError) as exc:
        get_currency_config()

    assert exc.value.name == "BROKERMERGE_RATE_TTL_SECONDS"
    assert exc.value.raw == "hourly"
    assert str(exc.value) == "BROKERMERGE_RATE_TTL_SECONDS must be a number, got 'hourly'"


@pytest.mark.parametrize("raw", ["dollars", "US", "N0K"])
def test_currency_config_rejects_malformed_base_currency(
    monkeypatch: pytest.MonkeyPatch,
    raw: str,
) -> None:
    monkeypatch.setenv("BROKERMERGE_BASE_CURRENCY", raw)

    with pytest.raises(InvalidConfigurationValueError, match="three-letter currency code"):
        get_currency_config()
