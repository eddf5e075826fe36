"""Broker-reported holdings.

A ``Holding`` is an immutable snapshot produced by a broker integration. The
reconciliation core only reads holdings and regroups references to them.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

from .enums import AssetClass

if TYPE_CHECKING:
    from datetime import datetime

type HoldingKey = tuple[str, str, str]


def _empty_extra() -> Mapping[str, object]:
    return MappingProxyType({})


@dataclass(frozen=True, slots=True, kw_only=True)
class SecurityMetadata:
    """Optional identifiers and descriptive fields reported alongside a holding."""

    isin: str | None = None
    cusip: str | None = None
    sedol: str | None = None
    name: str | None = None
    exchange: str | None = None
    account_name: str | None = None
    extra: Mapping[str, object] = field(default_factory=_empty_extra)


@dataclass(frozen=True, slots=True, kw_only=True)
class Holding:
    """A broker-reported position in one security within one account."""

    symbol: str
    quantity: float
    market_price: float
    market_value: float
    currency: str
    broker_id: str
    account_id: str
    asset_class: AssetClass = AssetClass.EQUITY
    cost_basis: float | None = None
    last_updated: datetime | None = None
    metadata: SecurityMetadata = field(default_factory=SecurityMetadata)

    @property
    def key(self) -> HoldingKey:
        return (self.broker_id, self.account_id, self.symbol)
