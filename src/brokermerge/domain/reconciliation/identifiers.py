"""Canonical security identifiers for holdings.

Identifiers come from the holding's own metadata first. Fields the broker did
not report are filled from the security reference store when one is
configured. Reference lookups are best effort: a failing store degrades to
metadata-only identifiers and never aborts resolution.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import TYPE_CHECKING

from .normalize import normalize_name, normalize_symbol

if TYPE_CHECKING:
    from collections.abc import Iterable

    from brokermerge.domain.model import Holding
    from brokermerge.domain.ports import SecurityReference, SecurityReferenceLookup

log = logging.getLogger(__name__)

_LOOKUP_FIELDS = ("isin", "cusip", "sedol", "name", "exchange")


@dataclass(frozen=True, slots=True, kw_only=True)
class SecurityIdentifiers:
    symbol: str
    normalized_symbol: str
    isin: str | None = None
    cusip: str | None = None
    sedol: str | None = None
    name: str | None = None
    normalized_name: str | None = None
    exchange: str | None = None

    def merged_with(self, other: SecurityIdentifiers) -> SecurityIdentifiers:
        """Fill this set's missing optional fields from ``other``."""

        values = {
            field.name: getattr(self, field.name) or getattr(other, field.name)
            for field in fields(self)
            if field.name not in {"symbol", "normalized_symbol"}
        }
        return SecurityIdentifiers(
            symbol=self.symbol,
            normalized_symbol=self.normalized_symbol,
            **values,
        )


def identifiers_from_holding(
    holding: Holding,
    reference: SecurityReference | None = None,
) -> SecurityIdentifiers:
    metadata = holding.metadata
    isin = _clean(metadata.isin)
    cusip = _clean(metadata.cusip)
    sedol = _clean(metadata.sedol)
    name = _clean(metadata.name)
    exchange = _clean(metadata.exchange)
    if reference is not None:
        isin = isin or _clean(reference.isin)
        cusip = cusip or _clean(reference.cusip)
        sedol = sedol or _clean(reference.sedol)
        name = name or _clean(reference.name)
        exchange = exchange or _clean(reference.exchange)

    normalized_name = normalize_name(name) if name else None
    return SecurityIdentifiers(
        symbol=holding.symbol,
        normalized_symbol=normalize_symbol(holding.symbol),
        isin=isin.upper() if isin else None,
        cusip=cusip.upper() if cusip else None,
        sedol=sedol.upper() if sedol else None,
        name=name,
        normalized_name=normalized_name or None,
        exchange=exchange.upper() if exchange else None,
    )


@dataclass(slots=True)
class SecurityIdentifierResolver:
    """Resolve ``SecurityIdentifiers`` for holdings."""

    reference_lookup: SecurityReferenceLookup | None = None

    def resolve(self, holding: Holding) -> SecurityIdentifiers:
        reference = None
        if self.reference_lookup is not None and _has_missing_fields(holding):
            reference = self._lookup(holding.symbol)
        return identifiers_from_holding(holding, reference)

    def resolve_all(self, holdings: Iterable[Holding]) -> list[SecurityIdentifiers]:
        return [self.resolve(holding) for holding in holdings]

    def _lookup(self, symbol: str) -> SecurityReference | None:
        if not symbol.strip() or self.reference_lookup is None:
            return None
        try:
            return self.reference_lookup.lookup_security(symbol)
        except Exception:  # noqa: BLE001
            log.warning(
                "Security reference lookup failed for symbol=%s; using metadata only",
                symbol,
                exc_info=True,
            )
            return None


def _has_missing_fields(holding: Holding) -> bool:
    return any(not _clean(getattr(holding.metadata, name)) for name in _LOOKUP_FIELDS)


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None
