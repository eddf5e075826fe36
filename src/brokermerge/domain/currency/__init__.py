"""Exchange-rate resolution and currency conversion."""

from __future__ import annotations

from .cache import DEFAULT_TTL, RateCache
from .conversion import CurrencyConversionService
from .currencies import (
    CURRENCY_INFO,
    SUPPORTED_CURRENCIES,
    CurrencyInfo,
    format_currency,
    is_supported,
)
from .fallback import DEFAULT_FALLBACK_RATES, FallbackQuote, FallbackRateTable

__all__ = [
    "CURRENCY_INFO",
    "DEFAULT_FALLBACK_RATES",
    "DEFAULT_TTL",
    "SUPPORTED_CURRENCIES",
    "CurrencyConversionService",
    "CurrencyInfo",
    "FallbackQuote",
    "FallbackRateTable",
    "RateCache",
    "format_currency",
    "is_supported",
]
