from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import pytest
from pydantic import ValidationError

from brokermerge.adapters.holdings_file import (
    HoldingPayload,
    load_holdings,
    load_security_references,
    parse_holdings,
)
from brokermerge.domain.ports import SecurityReference
from brokermerge.domain.model import AssetClass

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def holding_payload() -> dict[str, object]:
    return {
        "symbol": "EQNR",
        "quantity": 100,
        "market_price": 300.5,
        "market_value": 30050,
        "currency": " nok ",
        "broker_id": "nordnet",
        "account_id": "ask-1",
        "asset_class": "equity",
        "cost_basis": 25000,
        "last_updated": "2025-03-14T09:30:00",
        "metadata": {
            "isin": "NO0010096985",
            "cusip": "",
            "name": "Equinor ASA",
            "accountName": "Aksjesparekonto",
        },
        "extra": {"sector": "energy"},
    }


def test_parse_holdings_translates_payload(holding_payload: dict[str, object]) -> None:
    (holding,) = parse_holdings([holding_payload])

    assert holding.symbol == "EQNR"
    assert holding.currency == "NOK"
    assert holding.asset_class is AssetClass.EQUITY
    assert holding.cost_basis == 25000
    assert holding.last_updated == datetime(2025, 3, 14, 9, 30, tzinfo=UTC)
    assert holding.metadata.isin == "NO0010096985"
    assert holding.metadata.cusip is None
    assert holding.metadata.account_name == "Aksjesparekonto"
    assert holding.metadata.extra == {"sector": "energy"}
    assert holding.key == ("nordnet", "ask-1", "EQNR")


def test_parse_holdings_accepts_wrapped_document_and_camel_case() -> None:
    document = {
        "holdings": [
            {
                "symbol": "AAPL",
                "quantity": 10,
                "marketPrice": 150,
                "marketValue": 1500,
                "currency": "USD",
                "brokerId": "schwab",
                "accountId": "ira",
                "lastUpdated": "2025-03-14T09:30:00+01:00",
            }
        ]
    }

    (holding,) = parse_holdings(document)

    assert holding.broker_id == "schwab"
    assert holding.asset_class is AssetClass.EQUITY
    assert holding.cost_basis is None
    assert holding.last_updated == datetime(2025, 3, 14, 8, 30, tzinfo=UTC)


def test_parse_holdings_rejects_unknown_asset_class(holding_payload: dict[str, object]) -> None:
    holding_payload["asset_class"] = "collectible"

    with pytest.raises(ValidationError):
        parse_holdings([holding_payload])


def test_holding_payload_requires_broker_fields() -> None:
    with pytest.raises(ValidationError):
        HoldingPayload.model_validate({"symbol": "AAPL", "quantity": 1})


def test_load_holdings_reads_json_file(
    tmp_path: Path,
    holding_payload: dict[str, object],
) -> None:
    path = tmp_path / "holdings.json"
    path.write_text(json.dumps({"holdings": [holding_payload, holding_payload]}), encoding="utf-8")

    holdings = load_holdings(path)

    assert len(holdings) == 2
    assert all(holding.broker_id == "nordnet" for holding in holdings)


def test_load_security_references_accepts_bare_list(tmp_path: Path) -> None:
    path = tmp_path / "securities.json"
    path.write_text(
        json.dumps(
            [
                {"symbol": " eqnr ", "isin": "NO0010096985", "cusip": " ", "name": "Equinor ASA"},
                {"symbol": "AAPL", "cusip": "037833100", "exchange": "NASDAQ"},
            ]
        ),
        encoding="utf-8",
    )

    references = load_security_references(path)

    assert references == [
        SecurityReference(symbol="EQNR", isin="NO0010096985", name="Equinor ASA"),
        SecurityReference(symbol="AAPL", cusip="037833100", exchange="NASDAQ"),
    ]


def test_load_security_references_rejects_blank_symbol(tmp_path: Path) -> None:
    path = tmp_path / "securities.json"
    path.write_text(json.dumps({"securities": [{"symbol": "  ", "isin": "X"}]}), encoding="utf-8")

    with pytest.raises(ValidationError, match="symbol must not be blank"):
        load_security_references(path)
