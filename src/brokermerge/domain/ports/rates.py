"""Ports for exchange-rate sources and the persistent rate cache."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import datetime

    from brokermerge.domain.model import CurrencyCode, ExchangeRate


class RateProviderError(RuntimeError):
    """Raised by a rate provider when its API returns an unusable answer."""

    def __init__(self, message: str, *, provider: str) -> None:
        super().__init__(message)
        self.provider = provider


@runtime_checkable
class RateProvider(Protocol):
    """An external rate API exposing ``convert(from, to) -> rate``."""

    name: str

    async def fetch_rate(self, from_currency: CurrencyCode, to_currency: CurrencyCode) -> float: ...


@runtime_checkable
class ExchangeRateStore(Protocol):
    """Persistent key-value cache for exchange rates keyed by (from, to)."""

    def get(
        self, from_currency: CurrencyCode, to_currency: CurrencyCode
    ) -> ExchangeRate | None: ...

    def upsert(self, rate: ExchangeRate) -> None: ...

    def delete_expired(self, now: datetime) -> int: ...
