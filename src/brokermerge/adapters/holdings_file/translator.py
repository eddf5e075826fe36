"""Translate JSON input files into domain holdings and reference data."""

from __future__ import annotations

import json
from datetime import UTC
from logging import getLogger
from pathlib import Path
from types import MappingProxyType

from brokermerge.domain.model import Holding, SecurityMetadata
from brokermerge.domain.ports import SecurityReference

from .schema import HoldingPayload, HoldingsFile, SecurityReferencePayload, SecurityReferencesFile

log = getLogger(__name__)


def parse_holding(payload: HoldingPayload) -> Holding:
    last_updated = payload.last_updated
    if last_updated is not None and last_updated.tzinfo is None:
        last_updated = last_updated.replace(tzinfo=UTC)
    metadata = payload.metadata
    return Holding(
        symbol=payload.symbol,
        quantity=payload.quantity,
        market_price=payload.market_price,
        market_value=payload.market_value,
        currency=payload.currency.upper(),
        broker_id=payload.broker_id,
        account_id=payload.account_id,
        asset_class=payload.asset_class,
        cost_basis=payload.cost_basis,
        last_updated=last_updated,
        metadata=SecurityMetadata(
            isin=metadata.isin,
            cusip=metadata.cusip,
            sedol=metadata.sedol,
            name=metadata.name,
            exchange=metadata.exchange,
            account_name=metadata.account_name,
            extra=MappingProxyType(dict(payload.extra)),
        ),
    )


def parse_holdings(document: object) -> list[Holding]:
    """Validate a decoded holdings document and translate every entry."""

    holdings_file = HoldingsFile.model_validate(document)
    return [parse_holding(payload) for payload in holdings_file.holdings]


def load_holdings(path: Path | str) -> list[Holding]:
    source = Path(path)
    with source.open(encoding="utf-8") as handle:
        document = json.load(handle)
    holdings = parse_holdings(document)
    log.info("Loaded %s holdings from %s", len(holdings), source)
    return holdings


def parse_security_reference(payload: SecurityReferencePayload) -> SecurityReference:
    return SecurityReference(
        symbol=payload.symbol.upper(),
        isin=payload.isin,
        cusip=payload.cusip,
        sedol=payload.sedol,
        name=payload.name,
        exchange=payload.exchange,
    )


def load_security_references(path: Path | str) -> list[SecurityReference]:
    """Read a reference file: a list of securities or ``{"securities": [...]}``."""

    source = Path(path)
    with source.open(encoding="utf-8") as handle:
        document = json.load(handle)
    references_file = SecurityReferencesFile.model_validate(document)
    references = [parse_security_reference(payload) for payload in references_file.securities]
    log.info("Loaded %s security references from %s", len(references), source)
    return references
