"""Static fallback exchange rates.

Used only when every live source failed. Lookups try the direct entry, then
the inverse of the reverse entry, then triangulation through USD. Pairs the
table cannot price resolve to 1.0 and are flagged as estimated.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from brokermerge.domain.model import CurrencyCode

log = logging.getLogger(__name__)

PIVOT_CURRENCY: Final[str] = "USD"

type RateTable = Mapping[CurrencyCode, Mapping[CurrencyCode, float]]

DEFAULT_FALLBACK_RATES: Final[RateTable] = MappingProxyType(
    {
        "USD": {
            "EUR": 0.85,
            "GBP": 0.75,
            "JPY": 110.0,
            "CAD": 1.25,
            "AUD": 1.35,
            "CHF": 0.90,
            "NOK": 8.5,
            "SEK": 9.0,
            "DKK": 6.3,
        },
        "EUR": {"USD": 1.18, "GBP": 0.88, "NOK": 10.0, "SEK": 10.6, "DKK": 7.4},
        "NOK": {"USD": 0.12, "EUR": 0.10, "SEK": 1.06, "DKK": 0.74},
        "SEK": {"USD": 0.11, "EUR": 0.094, "NOK": 0.94, "DKK": 0.70},
        "DKK": {"USD": 0.16, "EUR": 0.135, "NOK": 1.35, "SEK": 1.43},
    }
)


@dataclass(frozen=True, slots=True)
class FallbackQuote:
    rate: float
    estimated: bool = False


class FallbackRateTable:
    def __init__(self, rates: RateTable | None = None) -> None:
        self._rates = DEFAULT_FALLBACK_RATES if rates is None else rates

    def lookup(self, from_currency: CurrencyCode, to_currency: CurrencyCode) -> FallbackQuote:
        if from_currency == to_currency:
            return FallbackQuote(1.0)

        rate = self._tabulated(from_currency, to_currency)
        if rate is not None:
            return FallbackQuote(rate)

        if PIVOT_CURRENCY not in (from_currency, to_currency):
            to_pivot = self._tabulated(from_currency, PIVOT_CURRENCY)
            from_pivot = self._tabulated(PIVOT_CURRENCY, to_currency)
            if to_pivot is not None and from_pivot is not None:
                return FallbackQuote(to_pivot * from_pivot)

        log.warning(
            "No fallback rate found for %s to %s, using 1.0",
            from_currency,
            to_currency,
        )
        return FallbackQuote(1.0, estimated=True)

    def rate(self, from_currency: CurrencyCode, to_currency: CurrencyCode) -> float:
        return self.lookup(from_currency, to_currency).rate

    def _tabulated(self, from_currency: CurrencyCode, to_currency: CurrencyCode) -> float | None:
        direct = self._rates.get(from_currency, {}).get(to_currency)
        if direct:
            return direct
        reverse = self._rates.get(to_currency, {}).get(from_currency)
        if reverse:
            return 1 / reverse
        return None
