"""Public interface for the JSON input file adapter."""

from __future__ import annotations

from .schema import HoldingPayload, HoldingsFile, SecurityReferencePayload, SecurityReferencesFile
from .translator import (
    load_holdings,
    load_security_references,
    parse_holding,
    parse_holdings,
    parse_security_reference,
)

__all__ = [
    "HoldingPayload",
    "HoldingsFile",
    "SecurityReferencePayload",
    "SecurityReferencesFile",
    "load_holdings",
    "load_security_references",
    "parse_holding",
    "parse_holdings",
    "parse_security_reference",
]
