"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class BrokerId(StrEnum):
    PLAID = "plaid"
    SCHWAB = "schwab"
    INTERACTIVE_BROKERS = "interactive_brokers"
    NORDNET = "nordnet"


class AssetClass(StrEnum):
    EQUITY = "EQUITY"
    FIXED_INCOME = "FIXED_INCOME"
    CRYPTOCURRENCY = "CRYPTOCURRENCY"
    COMMODITY = "COMMODITY"
    REAL_ESTATE = "REAL_ESTATE"
    CASH = "CASH"
    OPTION = "OPTION"
    FUND = "FUND"
    ETF = "ETF"


class RateSource(StrEnum):
    """Where an exchange rate came from."""

    PRIMARY_API = "primary-api"
    SECONDARY_API = "secondary-api"
    FALLBACK = "fallback"
    CACHED = "cached"
    IDENTITY = "identity"
