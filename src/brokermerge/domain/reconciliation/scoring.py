"""Scoring factors and rule evaluators for conflict resolution.

Every evaluator inspects a duplicate group and returns the candidate it
prefers together with a weighted score. Evaluators never invent holdings:
the candidate is always one of the inputs.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from brokermerge.domain.model import BrokerId

from .contracts import RuleKind

if TYPE_CHECKING:
    from brokermerge.domain.model import Holding, HoldingKey
    from brokermerge.domain.ports import BrokerPriorities

type Clock = Callable[[], datetime]
type RuleOutcome = tuple[Holding, float]

UNKNOWN_BROKER_RELIABILITY: Final[float] = 0.5

DEFAULT_BROKER_RELIABILITY: Final[Mapping[str, float]] = MappingProxyType(
    {
        BrokerId.INTERACTIVE_BROKERS: 0.95,
        BrokerId.SCHWAB: 0.90,
        BrokerId.PLAID: 0.85,
        BrokerId.NORDNET: 0.80,
    }
)

DEFAULT_RULE_WEIGHTS: Final[Mapping[RuleKind, float]] = MappingProxyType(
    {
        RuleKind.DATA_QUALITY: 0.4,
        RuleKind.BROKER_PRIORITY: 0.3,
        RuleKind.TIMESTAMP: 0.2,
        RuleKind.MANUAL: 0.1,
        RuleKind.FALLBACK: 0.05,
    }
)

RULE_DESCRIPTIONS: Final[Mapping[RuleKind, str]] = MappingProxyType(
    {
        RuleKind.DATA_QUALITY: "Select holding with highest data quality score",
        RuleKind.BROKER_PRIORITY: "Prefer brokers with better API reliability",
        RuleKind.TIMESTAMP: "Prefer more recently updated data",
        RuleKind.MANUAL: "Apply user-defined preferences",
        RuleKind.FALLBACK: "Default to first available holding",
    }
)

_COMPLETENESS_WEIGHTS: Final[tuple[tuple[str, float], ...]] = (
    ("isin", 0.2),
    ("cusip", 0.2),
    ("name", 0.2),
    ("exchange", 0.2),
    ("account_name", 0.1),
)
_BROKER_ID_COMPLETENESS: Final[float] = 0.1
_PRICE_TOLERANCE: Final[float] = 0.01


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True, kw_only=True)
class ResolutionPolicy:
    """Weights and constants driving conflict resolution."""

    rule_weights: Mapping[RuleKind, float] = DEFAULT_RULE_WEIGHTS
    broker_reliability: Mapping[str, float] = DEFAULT_BROKER_RELIABILITY
    max_plausible_price: float = 10_000.0
    fallback_confidence: float = 0.5
    clock: Clock = field(default=_utc_now)

    def weight(self, kind: RuleKind) -> float:
        return self.rule_weights.get(kind, 0.0)

    def reliability(self, broker_id: str) -> float:
        return self.broker_reliability.get(broker_id, UNKNOWN_BROKER_RELIABILITY)


@dataclass(frozen=True, slots=True, kw_only=True)
class QualityFactors:
    price_accuracy: float
    cost_basis: float
    recency: float
    completeness: float
    reliability: float

    @property
    def score(self) -> float:
        return (
            self.price_accuracy * 0.25
            + self.cost_basis * 0.20
            + self.recency * 0.15
            + self.completeness * 0.15
            + self.reliability * 0.25
        )


def price_accuracy(
    holding: Holding,
    *,
    max_plausible_price: float,
    base_price: float | None = None,
) -> float:
    """Check that price times quantity reconciles with the reported value.

    The plausibility ceiling is compared against ``base_price`` when given so
    that prices quoted in low-value currencies are not rejected.
    """

    comparable_price = holding.market_price if base_price is None else base_price
    if holding.market_price <= 0 or comparable_price > max_plausible_price:
        return 0.0
    calculated = holding.market_price * holding.quantity
    tolerance = abs(holding.market_value) * _PRICE_TOLERANCE
    return 1.0 if abs(calculated - holding.market_value) <= tolerance else 0.7


def cost_basis_presence(holding: Holding) -> float:
    return 1.0 if holding.cost_basis else 0.0


def timestamp_recency(holding: Holding, *, now: datetime) -> float:
    if holding.last_updated is None:
        return 0.3
    age = now - _as_aware(holding.last_updated)
    if age < timedelta(hours=1):
        return 1.0
    if age < timedelta(hours=24):
        return 0.8
    if age < timedelta(weeks=1):
        return 0.6
    return 0.3


def metadata_completeness(holding: Holding) -> float:
    completeness = sum(
        weight for name, weight in _COMPLETENESS_WEIGHTS if getattr(holding.metadata, name)
    )
    if holding.broker_id:
        completeness += _BROKER_ID_COMPLETENESS
    return min(completeness, 1.0)


def quality_factors(
    holding: Holding,
    policy: ResolutionPolicy,
    *,
    now: datetime,
    base_price: float | None = None,
) -> QualityFactors:
    return QualityFactors(
        price_accuracy=price_accuracy(
            holding,
            max_plausible_price=policy.max_plausible_price,
            base_price=base_price,
        ),
        cost_basis=cost_basis_presence(holding),
        recency=timestamp_recency(holding, now=now),
        completeness=metadata_completeness(holding),
        reliability=policy.reliability(holding.broker_id),
    )


def data_quality_score(
    holding: Holding,
    policy: ResolutionPolicy,
    *,
    now: datetime,
    base_price: float | None = None,
) -> float:
    return quality_factors(holding, policy, now=now, base_price=base_price).score


@dataclass(frozen=True, slots=True, kw_only=True)
class RuleContext:
    """Inputs shared by all rule evaluators for one duplicate group."""

    holdings: Sequence[Holding]
    policy: ResolutionPolicy
    now: datetime
    base_prices: Mapping[HoldingKey, float] = field(default_factory=dict)
    preferences: BrokerPriorities | None = None


type RuleEvaluator = Callable[[RuleContext, float], RuleOutcome]


def evaluate_data_quality(context: RuleContext, weight: float) -> RuleOutcome:
    return _best_by(
        context.holdings,
        lambda holding: data_quality_score(
            holding,
            context.policy,
            now=context.now,
            base_price=context.base_prices.get(holding.key),
        ),
        weight,
    )


def evaluate_broker_priority(context: RuleContext, weight: float) -> RuleOutcome:
    return _best_by(
        context.holdings,
        lambda holding: context.policy.reliability(holding.broker_id),
        weight,
    )


def evaluate_timestamp(context: RuleContext, weight: float) -> RuleOutcome:
    newest = context.holdings[0]
    newest_at: datetime | None = None
    for holding in context.holdings:
        if holding.last_updated is None:
            continue
        updated_at = _as_aware(holding.last_updated)
        if newest_at is None or updated_at > newest_at:
            newest = holding
            newest_at = updated_at
    return newest, timestamp_recency(newest, now=context.now) * weight


def evaluate_manual(context: RuleContext, weight: float) -> RuleOutcome:
    preferences = context.preferences
    if not preferences:
        return context.holdings[0], 0.0
    return _best_by(
        context.holdings,
        lambda holding: preferences.get(holding.broker_id, 0.0),
        weight,
    )


def evaluate_fallback(context: RuleContext, weight: float) -> RuleOutcome:
    return context.holdings[0], weight


RULE_EVALUATORS: Final[Mapping[RuleKind, RuleEvaluator]] = MappingProxyType(
    {
        RuleKind.DATA_QUALITY: evaluate_data_quality,
        RuleKind.BROKER_PRIORITY: evaluate_broker_priority,
        RuleKind.TIMESTAMP: evaluate_timestamp,
        RuleKind.MANUAL: evaluate_manual,
        RuleKind.FALLBACK: evaluate_fallback,
    }
)


def _best_by(
    holdings: Sequence[Holding],
    score: Callable[[Holding], float],
    weight: float,
) -> RuleOutcome:
    best = holdings[0]
    best_score = 0.0
    for holding in holdings:
        candidate_score = score(holding)
        if candidate_score > best_score:
            best = holding
            best_score = candidate_score
    return best, best_score * weight


def _as_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value
