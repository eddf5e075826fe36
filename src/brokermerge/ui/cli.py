# ruff: noqa: T201

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict, is_dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from brokermerge.adapters.holdings_file import load_holdings, load_security_references
from brokermerge.app import (
    cleanup_exchange_rates,
    convert_currency,
    import_security_references,
    reconcile_holdings,
    set_broker_preferences,
)
from brokermerge.config import configure_logging
from brokermerge.domain.currency import format_currency

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from brokermerge.domain.model import ConversionResult
    from brokermerge.domain.reconciliation import AggregationResult, ConsolidatedHolding

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile holdings across brokers")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    reconcile = subparsers.add_parser(
        "reconcile",
        help="Consolidate holdings from a JSON file into one portfolio",
    )
    reconcile.add_argument(
        "--input",
        type=Path,
        required=True,
        help="Path to a JSON file with a list of holdings (or {'holdings': [...]})",
    )
    reconcile.add_argument(
        "--base-currency",
        type=str,
        help="Currency to consolidate into (defaults to BROKERMERGE_BASE_CURRENCY or USD)",
    )
    reconcile.add_argument(
        "--user-id",
        type=str,
        help="User whose stored broker preferences apply during conflict resolution",
    )

    convert = subparsers.add_parser("convert", help="Convert an amount between currencies")
    convert.add_argument("--amount", type=float, required=True, help="Amount to convert")
    convert.add_argument("--from", dest="from_currency", required=True, help="Source currency")
    convert.add_argument("--to", dest="to_currency", required=True, help="Target currency")

    subparsers.add_parser("cleanup-rates", help="Delete expired cached exchange rates")

    references = subparsers.add_parser(
        "import-references",
        help="Store ISIN/CUSIP reference data used to match holdings across brokers",
    )
    references.add_argument(
        "--input",
        type=Path,
        required=True,
        help="Path to a JSON file with a list of securities (or {'securities': [...]})",
    )

    preferences = subparsers.add_parser(
        "set-preferences",
        help="Store broker priorities (0-1) used by the manual resolution rule",
    )
    preferences.add_argument("--user-id", type=str, required=True, help="User id")
    preferences.add_argument(
        "priorities",
        nargs="+",
        metavar="BROKER=PRIORITY",
        help="Broker priority pairs, e.g. schwab=0.9 nordnet=0.2",
    )

    return parser.parse_args(list(argv))


def _parse_priorities(pairs: Sequence[str]) -> dict[str, float]:
    priorities: dict[str, float] = {}
    for pair in pairs:
        broker, separator, raw_value = pair.partition("=")
        if not separator or not broker.strip():
            raise ValueError(f"Invalid priority {pair!r}; expected BROKER=PRIORITY")
        try:
            priorities[broker.strip()] = float(raw_value)
        except ValueError as exc:
            raise ValueError(f"Invalid priority value in {pair!r}") from exc
    return priorities


def _json_default(value: object) -> object:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _holding_to_dict(holding: ConsolidatedHolding) -> dict[str, object]:
    resolution = holding.resolution
    return {
        "symbol": holding.symbol,
        "asset_class": holding.asset_class,
        "currency": holding.currency,
        "quantity": holding.quantity,
        "market_price": holding.market_price,
        "market_value": holding.market_value,
        "cost_basis": holding.cost_basis,
        "broker_ids": list(holding.broker_ids),
        "is_duplicate": holding.is_duplicate,
        "match_type": holding.match_type,
        "sources": [asdict(source) for source in holding.sources],
        "conflict_resolution": (
            {
                "preferred_source": resolution.preferred_source,
                "reason": resolution.reason,
                "confidence": resolution.confidence,
                "applied_rules": [
                    rule.kind for rule in resolution.applied_rules if rule.applied
                ],
            }
            if resolution is not None
            else None
        ),
    }


def _aggregation_to_dict(result: AggregationResult) -> dict[str, object]:
    summary = result.summary
    return {
        "success": result.success,
        "summary": {
            "total_value": summary.total_value,
            "formatted_total_value": format_currency(summary.total_value, summary.currency),
            "total_cost_basis": summary.total_cost_basis,
            "total_gain_loss": summary.total_gain_loss,
            "total_gain_loss_percent": summary.total_gain_loss_percent,
            "currency": summary.currency,
            "as_of": summary.as_of,
            "holding_count": summary.holding_count,
            "account_count": summary.account_count,
            "asset_allocation": [asdict(item) for item in summary.asset_allocation],
            "broker_breakdown": [asdict(item) for item in summary.broker_breakdown],
            "top_holdings": [holding.symbol for holding in summary.top_holdings],
        },
        "holdings": [_holding_to_dict(holding) for holding in result.holdings],
        "duplicates_detected": result.duplicates_detected,
        "conflicts_resolved": result.conflicts_resolved,
        "errors": list(result.errors),
        "warnings": list(result.warnings),
    }


def _conversion_to_dict(result: ConversionResult) -> dict[str, object]:
    return {**asdict(result), "formatted": format_currency(result.amount, result.to_currency)}


def _emit(payload: object) -> None:
    print(json.dumps(payload, indent=2, default=_json_default))


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        priorities = (
            _parse_priorities(parsed_args.priorities)
            if parsed_args.command == "set-preferences"
            else None
        )
    except ValueError:
        configure_logging()
        log.exception("CLI validation error")
        sys.exit(2)

    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        if parsed_args.command == "reconcile":
            holdings = load_holdings(parsed_args.input)
            result = reconcile_holdings(
                holdings,
                base_currency=parsed_args.base_currency,
                user_id=parsed_args.user_id,
            )
            _emit(_aggregation_to_dict(result))
        elif parsed_args.command == "convert":
            conversion = convert_currency(
                parsed_args.amount,
                parsed_args.from_currency,
                parsed_args.to_currency,
            )
            _emit(_conversion_to_dict(conversion))
        elif parsed_args.command == "cleanup-rates":
            removed = cleanup_exchange_rates()
            _emit({"removed": removed})
        elif parsed_args.command == "import-references":
            imported = import_security_references(load_security_references(parsed_args.input))
            _emit({"imported": imported})
        elif parsed_args.command == "set-preferences" and priorities is not None:
            stored = set_broker_preferences(parsed_args.user_id, priorities)
            _emit({"user_id": parsed_args.user_id, "priorities": stored})
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except ValueError:
        log.exception("Invalid input for %s", parsed_args.command)
        sys.exit(2)
    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
