from __future__ import annotations

from datetime import timedelta

import pytest

from brokermerge.domain.reconciliation.scoring import (
    QualityFactors,
    ResolutionPolicy,
    cost_basis_presence,
    data_quality_score,
    metadata_completeness,
    price_accuracy,
    timestamp_recency,
)
from tests.helpers.holdings import FIXED_NOW, make_holding


def test_price_accuracy_reconciled_value() -> None:
    holding = make_holding(quantity=10, market_price=150.0, market_value=1500.5)

    assert price_accuracy(holding, max_plausible_price=10_000) == 1.0


def test_price_accuracy_inconsistent_value() -> None:
    holding = make_holding(quantity=10, market_price=150.0, market_value=1700.0)

    assert price_accuracy(holding, max_plausible_price=10_000) == 0.7


@pytest.mark.parametrize("price", [0.0, -1.0, 25_000.0])
def test_price_accuracy_implausible_price(price: float) -> None:
    holding = make_holding(quantity=1, market_price=price, market_value=price)

    assert price_accuracy(holding, max_plausible_price=10_000) == 0.0


def test_price_accuracy_uses_base_price_for_ceiling() -> None:
    holding = make_holding(quantity=2, market_price=22_000.0, currency="JPY")

    assert price_accuracy(holding, max_plausible_price=10_000, base_price=150.0) == 1.0
    assert price_accuracy(holding, max_plausible_price=10_000) == 0.0


def test_cost_basis_presence() -> None:
    assert cost_basis_presence(make_holding(cost_basis=1200.0)) == 1.0
    assert cost_basis_presence(make_holding(cost_basis=None)) == 0.0


@pytest.mark.parametrize(
    ("age", "expected"),
    [
        (timedelta(minutes=30), 1.0),
        (timedelta(hours=5), 0.8),
        (timedelta(days=3), 0.6),
        (timedelta(days=30), 0.3),
    ],
)
def test_timestamp_recency(age: timedelta, expected: float) -> None:
    holding = make_holding(last_updated=FIXED_NOW - age)

    assert timestamp_recency(holding, now=FIXED_NOW) == expected


def test_timestamp_recency_without_timestamp() -> None:
    assert timestamp_recency(make_holding(), now=FIXED_NOW) == 0.3


def test_timestamp_recency_treats_naive_timestamps_as_utc() -> None:
    naive = (FIXED_NOW - timedelta(minutes=5)).replace(tzinfo=None)

    assert timestamp_recency(make_holding(last_updated=naive), now=FIXED_NOW) == 1.0


def test_metadata_completeness() -> None:
    bare = make_holding()
    described = make_holding(isin="US0378331005", name="Apple Inc", exchange="NASDAQ")

    assert metadata_completeness(bare) == pytest.approx(0.1)
    assert metadata_completeness(described) == pytest.approx(0.7)


def test_quality_factor_weights() -> None:
    factors = QualityFactors(
        price_accuracy=1.0,
        cost_basis=0.0,
        recency=1.0,
        completeness=0.0,
        reliability=1.0,
    )

    assert factors.score == pytest.approx(0.25 + 0.15 + 0.25)


def test_data_quality_score_combines_factors() -> None:
    holding = make_holding(
        broker_id="schwab",
        cost_basis=1200.0,
        last_updated=FIXED_NOW - timedelta(minutes=10),
        isin="US0378331005",
        name="Apple Inc",
    )

    score = data_quality_score(holding, ResolutionPolicy(), now=FIXED_NOW)

    assert score == pytest.approx(0.25 + 0.20 + 0.15 + 0.5 * 0.15 + 0.90 * 0.25)


def test_policy_reliability_defaults() -> None:
    policy = ResolutionPolicy()

    assert policy.reliability("interactive_brokers") == 0.95
    assert policy.reliability("nordnet") == 0.80
    assert policy.reliability("unknown-broker") == 0.5
