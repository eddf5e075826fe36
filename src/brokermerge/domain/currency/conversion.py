"""Currency conversion with a layered rate lookup.

Lookup order for a pair:

1) in-memory ``RateCache``
2) persistent ``ExchangeRateStore``
3) rate providers, in the order given (primary first)
4) ``FallbackRateTable``

Provider answers are written back to both caches. Fallback answers are not
cached so that a recovering provider is consulted on the next lookup.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from datetime import timedelta
from typing import TYPE_CHECKING

from brokermerge.domain.model import (
    ConversionResult,
    ExchangeRate,
    MultiConversionResult,
    RateSource,
    normalize_currency,
)
from brokermerge.domain.ports import RateProviderError

from .cache import DEFAULT_TTL, RateCache, utc_now
from .fallback import FallbackRateTable

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from datetime import datetime

    from brokermerge.domain.model import CurrencyPair, MoneyAmount
    from brokermerge.domain.ports import ExchangeRateStore, RateProvider

    from .cache import Clock

log = logging.getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT_SECONDS = 10.0

_PROVIDER_SOURCES = (RateSource.PRIMARY_API, RateSource.SECONDARY_API)


class CurrencyConversionService:
    def __init__(
        self,
        *,
        providers: Sequence[RateProvider] = (),
        store: ExchangeRateStore | None = None,
        fallback: FallbackRateTable | None = None,
        ttl: timedelta = DEFAULT_TTL,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        clock: Clock = utc_now,
    ) -> None:
        self.providers = tuple(providers)
        self.store = store
        self.fallback = fallback or FallbackRateTable()
        self.ttl = ttl
        self.request_timeout = request_timeout
        self.clock = clock
        self.cache = RateCache(ttl=ttl, clock=clock)

    async def get_exchange_rate(self, from_currency: str, to_currency: str) -> float:
        return (await self.resolve_rate(from_currency, to_currency)).rate

    async def resolve_rate(self, from_currency: str, to_currency: str) -> ExchangeRate:
        """Return the rate for ``from_currency -> to_currency`` with its provenance."""

        source_code = normalize_currency(from_currency)
        target_code = normalize_currency(to_currency)
        now = self.clock()
        if source_code == target_code:
            return ExchangeRate(
                from_currency=source_code,
                to_currency=target_code,
                rate=1.0,
                source=RateSource.IDENTITY,
                fetched_at=now,
                expires_at=now + self.ttl,
            )

        pair = (source_code, target_code)
        cached = self.cache.get(pair)
        if cached is not None:
            return replace(cached, source=RateSource.CACHED)

        stored = self._read_store(pair)
        if stored is not None:
            self.cache.put(stored)
            return replace(stored, source=RateSource.CACHED)

        fetched = await self._fetch_from_providers(pair)
        if fetched is not None:
            self.cache.put(fetched)
            if self.store is not None:
                self.store.upsert(fetched)
            return fetched

        return self._fallback_rate(pair)

    async def convert_amount(
        self,
        amount: float,
        from_currency: str,
        to_currency: str,
    ) -> ConversionResult:
        rate = await self.resolve_rate(from_currency, to_currency)
        return _conversion(amount, rate, timestamp=self.clock())

    async def convert_multiple_amounts(
        self,
        amounts: Iterable[MoneyAmount],
        base_currency: str,
    ) -> MultiConversionResult:
        """Convert every amount into ``base_currency`` and total them.

        Each distinct source currency is resolved once; distinct pairs are
        resolved concurrently.
        """

        target_code = normalize_currency(base_currency)
        items = list(amounts)
        source_codes = list(dict.fromkeys(normalize_currency(item.currency) for item in items))
        rates = await asyncio.gather(
            *(self.resolve_rate(code, target_code) for code in source_codes)
        )
        rate_by_code = dict(zip(source_codes, rates, strict=True))

        timestamp = self.clock()
        conversions = tuple(
            _conversion(
                item.amount,
                rate_by_code[normalize_currency(item.currency)],
                timestamp=timestamp,
            )
            for item in items
        )
        return MultiConversionResult(
            total_amount=sum(conversion.amount for conversion in conversions),
            currency=target_code,
            conversions=conversions,
        )

    def cleanup_expired_rates(self) -> int:
        """Evict expired rates from both caches and return how many were removed."""

        removed = self.cache.purge_expired()
        if self.store is not None:
            removed += self.store.delete_expired(self.clock())
        log.info("Cleaned up %s expired exchange rates", removed)
        return removed

    def _read_store(self, pair: CurrencyPair) -> ExchangeRate | None:
        if self.store is None:
            return None
        stored = self.store.get(*pair)
        if stored is None or stored.is_expired(self.clock()):
            return None
        return stored

    async def _fetch_from_providers(self, pair: CurrencyPair) -> ExchangeRate | None:
        from_currency, to_currency = pair
        for position, provider in enumerate(self.providers):
            try:
                async with asyncio.timeout(self.request_timeout):
                    value = await provider.fetch_rate(from_currency, to_currency)
            except TimeoutError:
                log.warning(
                    "Rate provider %s timed out for %s to %s",
                    provider.name,
                    from_currency,
                    to_currency,
                )
                continue
            except RateProviderError as exc:
                log.warning(
                    "Rate provider %s failed for %s to %s: %s",
                    provider.name,
                    from_currency,
                    to_currency,
                    exc,
                )
                continue

            fetched_at = self.clock()
            return ExchangeRate(
                from_currency=from_currency,
                to_currency=to_currency,
                rate=value,
                source=_PROVIDER_SOURCES[min(position, len(_PROVIDER_SOURCES) - 1)],
                fetched_at=fetched_at,
                expires_at=fetched_at + self.ttl,
            )
        return None

    def _fallback_rate(self, pair: CurrencyPair) -> ExchangeRate:
        from_currency, to_currency = pair
        quote = self.fallback.lookup(from_currency, to_currency)
        now = self.clock()
        log.info(
            "Using fallback rate %s for %s to %s",
            quote.rate,
            from_currency,
            to_currency,
        )
        return ExchangeRate(
            from_currency=from_currency,
            to_currency=to_currency,
            rate=quote.rate,
            source=RateSource.FALLBACK,
            fetched_at=now,
            expires_at=now + self.ttl,
            estimated=quote.estimated,
        )


def _conversion(amount: float, rate: ExchangeRate, *, timestamp: datetime) -> ConversionResult:
    return ConversionResult(
        amount=amount * rate.rate,
        from_currency=rate.from_currency,
        to_currency=rate.to_currency,
        exchange_rate=rate.rate,
        source=rate.source,
        timestamp=timestamp,
        estimated=rate.estimated,
    )
