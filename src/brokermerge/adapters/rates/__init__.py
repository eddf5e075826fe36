"""HTTP exchange-rate providers."""

from __future__ import annotations

from .exchangerate_api import ExchangeRateApiProvider
from .fxrates import FxRatesProvider
from .schema import ExchangeRateApiPairResponse, FxRatesConvertResponse

__all__ = [
    "ExchangeRateApiPairResponse",
    "ExchangeRateApiProvider",
    "FxRatesConvertResponse",
    "FxRatesProvider",
]
