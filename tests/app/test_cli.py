from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

import pytest

from brokermerge.domain.model import AssetClass, ConversionResult, RateSource
from brokermerge.domain.ports import SecurityReference
from brokermerge.domain.reconciliation import (
    AggregationResult,
    ConsolidatedHolding,
    PortfolioSummary,
    SourceEntry,
)
from brokermerge.ui import cli as cli_module
from tests.helpers.holdings import FIXED_NOW, make_holding


def _aggregation() -> AggregationResult:
    holding = make_holding("AAPL", last_updated=FIXED_NOW)
    consolidated = ConsolidatedHolding(
        symbol="AAPL",
        asset_class=AssetClass.EQUITY,
        currency="USD",
        quantity=10,
        market_price=150.0,
        market_value=1500.0,
        cost_basis=None,
        preferred=holding,
        sources=(
            SourceEntry(
                broker_id="schwab",
                account_id="acct-1",
                quantity=10,
                market_value=1500.0,
                cost_basis=None,
                original_currency="USD",
                last_updated=FIXED_NOW,
            ),
        ),
    )
    return AggregationResult(
        success=True,
        summary=PortfolioSummary(
            total_value=1500.0,
            total_cost_basis=0.0,
            total_gain_loss=1500.0,
            total_gain_loss_percent=0.0,
            currency="USD",
            as_of=FIXED_NOW,
            holding_count=1,
            account_count=1,
            top_holdings=(consolidated,),
        ),
        holdings=(consolidated,),
    )


def test_cli_reconcile_emits_json(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    captured: dict[str, object] = {}

    def fake_load(path: Path) -> list[object]:
        captured["path"] = path
        return ["holding"]

    def fake_reconcile(holdings: list[object], **kwargs: object) -> AggregationResult:
        captured["holdings"] = holdings
        captured.update(kwargs)
        return _aggregation()

    monkeypatch.setattr(cli_module, "load_holdings", fake_load)
    monkeypatch.setattr(cli_module, "reconcile_holdings", fake_reconcile)

    cli_module.main(
        ["reconcile", "--input", "holdings.json", "--base-currency", "NOK", "--user-id", "alice"]
    )

    assert captured["path"] == Path("holdings.json")
    assert captured["holdings"] == ["holding"]
    assert captured["base_currency"] == "NOK"
    assert captured["user_id"] == "alice"
    payload = json.loads(capsys.readouterr().out)
    assert payload["success"] is True
    assert payload["summary"]["total_value"] == 1500.0
    assert payload["summary"]["formatted_total_value"] == "$1,500.00"
    assert payload["summary"]["as_of"] == FIXED_NOW.isoformat()
    assert payload["summary"]["top_holdings"] == ["AAPL"]
    (holding,) = payload["holdings"]
    assert holding["broker_ids"] == ["schwab"]
    assert holding["asset_class"] == "EQUITY"
    assert holding["conflict_resolution"] is None
    assert holding["sources"][0]["last_updated"] == FIXED_NOW.isoformat()


def test_cli_convert(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    def fake_convert(amount: float, from_currency: str, to_currency: str) -> ConversionResult:
        return ConversionResult(
            amount=amount * 0.94,
            from_currency=from_currency,
            to_currency=to_currency,
            exchange_rate=0.94,
            source=RateSource.FALLBACK,
            timestamp=datetime(2025, 1, 1, tzinfo=UTC),
        )

    monkeypatch.setattr(cli_module, "convert_currency", fake_convert)

    cli_module.main(["convert", "--amount", "100", "--from", "SEK", "--to", "NOK"])

    payload = json.loads(capsys.readouterr().out)
    assert payload["amount"] == pytest.approx(94.0)
    assert payload["source"] == "fallback"
    assert payload["from_currency"] == "SEK"
    assert payload["estimated"] is False
    assert payload["formatted"] == "kr94.00"


def test_cli_set_preferences(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    captured: dict[str, object] = {}

    def fake_set(user_id: str, priorities: dict[str, float]) -> dict[str, float]:
        captured["user_id"] = user_id
        captured["priorities"] = priorities
        return dict(priorities)

    monkeypatch.setattr(cli_module, "set_broker_preferences", fake_set)

    cli_module.main(["set-preferences", "--user-id", "alice", "schwab=0.9", "nordnet=0.2"])

    assert captured == {"user_id": "alice", "priorities": {"schwab": 0.9, "nordnet": 0.2}}
    assert json.loads(capsys.readouterr().out)["priorities"] == {"schwab": 0.9, "nordnet": 0.2}


def test_cli_cleanup_rates(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.setattr(cli_module, "cleanup_exchange_rates", lambda: 4)

    cli_module.main(["cleanup-rates"])

    assert json.loads(capsys.readouterr().out) == {"removed": 4}


@pytest.mark.parametrize(
    "argv",
    [
        ["set-preferences", "--user-id", "alice", "schwab"],
        ["set-preferences", "--user-id", "alice", "schwab=high"],
        ["convert", "--amount", "ten", "--from", "SEK", "--to", "NOK"],
        [],
    ],
)
def test_cli_invalid_arguments_exit_with_usage_error(argv: list[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(argv)

    assert excinfo.value.code == 2


def test_cli_import_references(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    captured: dict[str, object] = {}
    references = [SecurityReference(symbol="EQNR", isin="NO0010096985")]

    def fake_load(path: Path) -> list[SecurityReference]:
        captured["path"] = path
        return references

    def fake_import(loaded: list[SecurityReference]) -> int:
        captured["references"] = loaded
        return len(loaded)

    monkeypatch.setattr(cli_module, "load_security_references", fake_load)
    monkeypatch.setattr(cli_module, "import_security_references", fake_import)

    cli_module.main(["import-references", "--input", "securities.json"])

    assert captured == {"path": Path("securities.json"), "references": references}
    assert json.loads(capsys.readouterr().out) == {"imported": 1}


def test_cli_unsupported_currency_exits_with_usage_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def rejecting_convert(amount: float, from_currency: str, to_currency: str) -> None:
        raise ValueError(f"Unsupported currency: {from_currency!r}")

    monkeypatch.setattr(cli_module, "convert_currency", rejecting_convert)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["convert", "--amount", "1", "--from", "XYZ", "--to", "NOK"])

    assert excinfo.value.code == 2


def test_cli_fatal_error_exits_with_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    def failing_cleanup() -> int:
        raise RuntimeError("database locked")

    monkeypatch.setattr(cli_module, "cleanup_exchange_rates", failing_cleanup)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["cleanup-rates"])

    assert excinfo.value.code == 1
