"""Domain model for multi-broker portfolio reconciliation."""

from __future__ import annotations

from .currency import (
    ConversionResult,
    CurrencyCode,
    CurrencyPair,
    ExchangeRate,
    MoneyAmount,
    MultiConversionResult,
    normalize_currency,
)
from .enums import AssetClass, BrokerId, RateSource
from .holdings import Holding, HoldingKey, SecurityMetadata

__all__ = [
    "AssetClass",
    "BrokerId",
    "ConversionResult",
    "CurrencyCode",
    "CurrencyPair",
    "ExchangeRate",
    "Holding",
    "HoldingKey",
    "MoneyAmount",
    "MultiConversionResult",
    "RateSource",
    "SecurityMetadata",
    "normalize_currency",
]
