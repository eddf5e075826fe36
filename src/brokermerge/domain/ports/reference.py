"""Ports for looking up reference data about securities."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True, slots=True, kw_only=True)
class SecurityReference:
    """Identifiers known for a symbol in the security reference store."""

    symbol: str
    isin: str | None = None
    cusip: str | None = None
    sedol: str | None = None
    name: str | None = None
    exchange: str | None = None


@runtime_checkable
class SecurityReferenceLookup(Protocol):
    """Read-only lookup of reference identifiers by symbol.

    Returns ``None`` when the symbol is unknown. Implementations may raise on
    infrastructure failures; callers degrade gracefully.
    """

    def lookup_security(self, symbol: str) -> SecurityReference | None: ...


@runtime_checkable
class SecurityReferenceRepository(SecurityReferenceLookup, Protocol):
    """Writable security reference store."""

    def add(self, reference: SecurityReference) -> None: ...
