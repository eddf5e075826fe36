"""In-process exchange-rate cache.

Entries are keyed by the ordered currency pair and expire after a fixed TTL.
Expired entries are evicted lazily on lookup or by ``purge_expired``.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from brokermerge.domain.model import CurrencyPair, ExchangeRate

type Clock = Callable[[], datetime]

DEFAULT_TTL = timedelta(hours=1)


def utc_now() -> datetime:
    return datetime.now(UTC)


class RateCache:
    """Thread-safe TTL cache of ``ExchangeRate`` values."""

    def __init__(self, *, ttl: timedelta = DEFAULT_TTL, clock: Clock = utc_now) -> None:
        self.ttl = ttl
        self.clock = clock
        self._entries: dict[CurrencyPair, ExchangeRate] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, pair: CurrencyPair) -> ExchangeRate | None:
        now = self.clock()
        with self._lock:
            rate = self._entries.get(pair)
            if rate is None:
                return None
            if rate.is_expired(now):
                del self._entries[pair]
                return None
            return rate

    def put(self, rate: ExchangeRate) -> None:
        with self._lock:
            self._entries[rate.pair] = rate

    def purge_expired(self) -> int:
        now = self.clock()
        with self._lock:
            expired = [pair for pair, rate in self._entries.items() if rate.is_expired(now)]
            for pair in expired:
                del self._entries[pair]
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
