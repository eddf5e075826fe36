"""Orchestrator for portfolio consolidation.

The engine composes the stage components but does not prescribe concrete
adapters. Flow for one pass:

1) partition holdings into duplicate groups and unique holdings
2) resolve every distinct holding currency against the base currency
3) resolve conflicts per duplicate group using base-currency prices
4) build consolidated holdings with values summed in the base currency
5) compute the portfolio summary
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol

from brokermerge.domain.model import normalize_currency

from .deduplicate import DuplicateDetector
from .resolve import ConflictResolver

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from brokermerge.domain.model import AssetClass, CurrencyCode, ExchangeRate, Holding

    from .contracts import ConflictResolutionResult, DuplicateGroup, MatchType

log = logging.getLogger(__name__)

TOP_HOLDINGS_LIMIT = 10


class RateResolver(Protocol):
    async def resolve_rate(self, from_currency: str, to_currency: str) -> ExchangeRate: ...


@dataclass(frozen=True, slots=True, kw_only=True)
class SourceEntry:
    """One broker position folded into a consolidated holding (base currency)."""

    broker_id: str
    account_id: str
    quantity: float
    market_value: float
    cost_basis: float | None
    original_currency: str
    last_updated: datetime | None


@dataclass(frozen=True, slots=True, kw_only=True)
class ConsolidatedHolding:
    symbol: str
    asset_class: AssetClass
    currency: CurrencyCode
    quantity: float
    market_price: float
    market_value: float
    cost_basis: float | None
    preferred: Holding
    sources: tuple[SourceEntry, ...]
    is_duplicate: bool = False
    match_type: MatchType | None = None
    resolution: ConflictResolutionResult | None = None

    @property
    def broker_ids(self) -> tuple[str, ...]:
        return tuple(dict.fromkeys(source.broker_id for source in self.sources))


@dataclass(frozen=True, slots=True, kw_only=True)
class AssetAllocation:
    asset_class: AssetClass
    value: float
    percentage: float


@dataclass(frozen=True, slots=True, kw_only=True)
class BrokerBreakdown:
    broker_id: str
    value: float
    percentage: float


@dataclass(frozen=True, slots=True, kw_only=True)
class PortfolioSummary:
    total_value: float
    total_cost_basis: float
    total_gain_loss: float
    total_gain_loss_percent: float
    currency: CurrencyCode
    as_of: datetime
    holding_count: int = 0
    account_count: int = 0
    asset_allocation: tuple[AssetAllocation, ...] = ()
    top_holdings: tuple[ConsolidatedHolding, ...] = ()
    broker_breakdown: tuple[BrokerBreakdown, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class AggregationResult:
    success: bool
    summary: PortfolioSummary
    holdings: tuple[ConsolidatedHolding, ...] = ()
    duplicates_detected: int = 0
    conflicts_resolved: int = 0
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True)
class ReconciliationEngine:
    """Consolidate holdings from several brokers into one base-currency view."""

    rates: RateResolver
    detector: DuplicateDetector = field(default_factory=DuplicateDetector)
    resolver: ConflictResolver = field(default_factory=ConflictResolver)
    top_holdings_limit: int = TOP_HOLDINGS_LIMIT
    clock: Callable[[], datetime] = field(default=_utc_now)

    async def aggregate(
        self,
        holdings: Sequence[Holding],
        base_currency: str = "USD",
    ) -> AggregationResult:
        base = normalize_currency(base_currency)
        if not holdings:
            return AggregationResult(
                success=False,
                summary=self._empty_summary(base),
                errors=("No holdings to aggregate",),
            )

        log.info("Aggregating %s holdings into %s", len(holdings), base)
        errors: list[str] = []
        warnings: list[str] = []

        detection = self.detector.partition(holdings)
        rate_by_currency = await self._rates_to_base(holdings, base, warnings)

        consolidated: list[ConsolidatedHolding] = []
        conflicts_resolved = 0
        for group in detection.groups:
            try:
                consolidated.append(self._consolidate_group(group, base, rate_by_currency))
                conflicts_resolved += 1
            except Exception as exc:
                log.exception("Failed to consolidate group for symbol=%s", group.primary_symbol)
                errors.append(f"Failed to consolidate {group.primary_symbol}: {exc}")
                consolidated.extend(
                    self._consolidate_single(holding, base, rate_by_currency)
                    for holding in group.holdings
                )
        consolidated.extend(
            self._consolidate_single(holding, base, rate_by_currency)
            for holding in detection.unique
        )

        summary = self._summarize(consolidated, base)
        log.info(
            "Aggregated %s consolidated holdings (%s duplicate groups) worth %.2f %s",
            len(consolidated),
            len(detection.groups),
            summary.total_value,
            base,
        )
        return AggregationResult(
            success=True,
            summary=summary,
            holdings=tuple(consolidated),
            duplicates_detected=len(detection.groups),
            conflicts_resolved=conflicts_resolved,
            errors=tuple(errors),
            warnings=tuple(warnings),
        )

    async def _rates_to_base(
        self,
        holdings: Sequence[Holding],
        base: CurrencyCode,
        warnings: list[str],
    ) -> dict[CurrencyCode, float]:
        codes = list(dict.fromkeys(normalize_currency(holding.currency) for holding in holdings))
        outcomes = await asyncio.gather(
            *(self.rates.resolve_rate(code, base) for code in codes),
            return_exceptions=True,
        )
        rate_by_currency: dict[CurrencyCode, float] = {}
        for code, outcome in zip(codes, outcomes, strict=True):
            if isinstance(outcome, BaseException):
                log.error("Rate lookup failed for %s to %s", code, base, exc_info=outcome)
                warnings.append(f"No exchange rate for {code} to {base}; values left unconverted")
                rate_by_currency[code] = 1.0
                continue
            if outcome.estimated:
                warnings.append(f"Estimated exchange rate used for {code} to {base}")
            rate_by_currency[code] = outcome.rate
        return rate_by_currency

    def _consolidate_group(
        self,
        group: DuplicateGroup,
        base: CurrencyCode,
        rate_by_currency: dict[CurrencyCode, float],
    ) -> ConsolidatedHolding:
        base_prices = {
            holding.key: holding.market_price * _rate(holding, rate_by_currency)
            for holding in group.holdings
        }
        resolution = self.resolver.resolve_conflicts(group.holdings, base_prices=base_prices)
        preferred = resolution.preferred_holding
        sources = tuple(_source(holding, rate_by_currency) for holding in group.holdings)
        return ConsolidatedHolding(
            symbol=group.primary_symbol,
            asset_class=preferred.asset_class,
            currency=base,
            quantity=sum(holding.quantity for holding in group.holdings),
            market_price=base_prices[preferred.key],
            market_value=sum(source.market_value for source in sources),
            cost_basis=_sum_cost_basis(sources),
            preferred=preferred,
            sources=sources,
            is_duplicate=True,
            match_type=group.match_type,
            resolution=resolution,
        )

    def _consolidate_single(
        self,
        holding: Holding,
        base: CurrencyCode,
        rate_by_currency: dict[CurrencyCode, float],
    ) -> ConsolidatedHolding:
        source = _source(holding, rate_by_currency)
        return ConsolidatedHolding(
            symbol=holding.symbol,
            asset_class=holding.asset_class,
            currency=base,
            quantity=holding.quantity,
            market_price=holding.market_price * _rate(holding, rate_by_currency),
            market_value=source.market_value,
            cost_basis=source.cost_basis,
            preferred=holding,
            sources=(source,),
        )

    def _summarize(
        self,
        holdings: Sequence[ConsolidatedHolding],
        base: CurrencyCode,
    ) -> PortfolioSummary:
        total_value = sum(holding.market_value for holding in holdings)
        total_cost_basis = sum(holding.cost_basis or 0.0 for holding in holdings)
        total_gain_loss = total_value - total_cost_basis
        gain_loss_percent = (
            total_gain_loss / total_cost_basis * 100 if total_cost_basis > 0 else 0.0
        )

        by_asset_class: dict[AssetClass, float] = defaultdict(float)
        by_broker: dict[str, float] = defaultdict(float)
        accounts: set[tuple[str, str]] = set()
        for holding in holdings:
            by_asset_class[holding.asset_class] += holding.market_value
            for source in holding.sources:
                by_broker[source.broker_id] += source.market_value
                accounts.add((source.broker_id, source.account_id))

        top_holdings = sorted(holdings, key=lambda holding: holding.market_value, reverse=True)
        return PortfolioSummary(
            total_value=total_value,
            total_cost_basis=total_cost_basis,
            total_gain_loss=total_gain_loss,
            total_gain_loss_percent=gain_loss_percent,
            currency=base,
            as_of=self.clock(),
            holding_count=len(holdings),
            account_count=len(accounts),
            asset_allocation=tuple(
                AssetAllocation(
                    asset_class=asset_class,
                    value=value,
                    percentage=_percentage(value, total_value),
                )
                for asset_class, value in by_asset_class.items()
            ),
            top_holdings=tuple(top_holdings[: self.top_holdings_limit]),
            broker_breakdown=tuple(
                BrokerBreakdown(
                    broker_id=broker_id,
                    value=value,
                    percentage=_percentage(value, total_value),
                )
                for broker_id, value in by_broker.items()
            ),
        )

    def _empty_summary(self, base: CurrencyCode) -> PortfolioSummary:
        return PortfolioSummary(
            total_value=0.0,
            total_cost_basis=0.0,
            total_gain_loss=0.0,
            total_gain_loss_percent=0.0,
            currency=base,
            as_of=self.clock(),
        )


def _rate(holding: Holding, rate_by_currency: dict[CurrencyCode, float]) -> float:
    return rate_by_currency[normalize_currency(holding.currency)]


def _source(holding: Holding, rate_by_currency: dict[CurrencyCode, float]) -> SourceEntry:
    rate = _rate(holding, rate_by_currency)
    return SourceEntry(
        broker_id=holding.broker_id,
        account_id=holding.account_id,
        quantity=holding.quantity,
        market_value=holding.market_value * rate,
        cost_basis=holding.cost_basis * rate if holding.cost_basis is not None else None,
        original_currency=normalize_currency(holding.currency),
        last_updated=holding.last_updated,
    )


def _sum_cost_basis(sources: Sequence[SourceEntry]) -> float | None:
    known = [source.cost_basis for source in sources if source.cost_basis is not None]
    return sum(known) if known else None


def _percentage(value: float, total: float) -> float:
    return value / total * 100 if total > 0 else 0.0
