"""Exchange-rate and conversion value objects."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from .enums import RateSource

type CurrencyCode = str
type CurrencyPair = tuple[CurrencyCode, CurrencyCode]


def normalize_currency(code: str) -> CurrencyCode:
    return code.strip().upper()


@dataclass(frozen=True, slots=True, kw_only=True)
class ExchangeRate:
    from_currency: CurrencyCode
    to_currency: CurrencyCode
    rate: float
    source: RateSource
    fetched_at: datetime
    expires_at: datetime
    estimated: bool = False

    @property
    def pair(self) -> CurrencyPair:
        return (self.from_currency, self.to_currency)

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now


@dataclass(frozen=True, slots=True, kw_only=True)
class MoneyAmount:
    amount: float
    currency: CurrencyCode


@dataclass(frozen=True, slots=True, kw_only=True)
class ConversionResult:
    """Outcome of converting one amount.

    ``estimated`` marks conversions that used the 1.0 default because neither
    a provider nor the fallback table knew the pair.
    """

    amount: float
    from_currency: CurrencyCode
    to_currency: CurrencyCode
    exchange_rate: float
    source: RateSource
    timestamp: datetime
    estimated: bool = False


@dataclass(frozen=True, slots=True, kw_only=True)
class MultiConversionResult:
    total_amount: float
    currency: CurrencyCode
    conversions: tuple[ConversionResult, ...]

    @property
    def estimated(self) -> bool:
        return any(conversion.estimated for conversion in self.conversions)
