"""Shared reconciliation contract components.

Results produced by duplicate detection and conflict resolution. They are
recomputed on every aggregation pass and never persisted as standing entities.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from brokermerge.domain.model import Holding

    from .identifiers import SecurityIdentifiers


class MatchType(StrEnum):
    """How the members of a duplicate group were matched."""

    EXACT = "exact"
    ISIN = "isin"
    CUSIP = "cusip"
    SYMBOL = "symbol"
    FUZZY = "fuzzy"


@dataclass(frozen=True, slots=True, kw_only=True)
class DuplicateGroup:
    holdings: tuple[Holding, ...]
    primary_symbol: str
    match_type: MatchType
    confidence: float
    identifiers: SecurityIdentifiers

    def __post_init__(self) -> None:
        if len(self.holdings) < 2:
            raise ValueError("Duplicate group must contain at least two holdings")

    @property
    def broker_ids(self) -> tuple[str, ...]:
        return tuple(holding.broker_id for holding in self.holdings)


@dataclass(frozen=True, slots=True, kw_only=True)
class DetectionResult:
    """Partition of the input holdings into duplicate groups and unique holdings."""

    groups: tuple[DuplicateGroup, ...]
    unique: tuple[Holding, ...]


class RuleKind(StrEnum):
    DATA_QUALITY = "data_quality"
    BROKER_PRIORITY = "broker_priority"
    TIMESTAMP = "timestamp"
    MANUAL = "manual"
    FALLBACK = "fallback"


@dataclass(frozen=True, slots=True, kw_only=True)
class AppliedRule:
    """Audit entry for one rule evaluated during conflict resolution."""

    kind: RuleKind
    weight: float
    description: str
    applied: bool
    score: float
    candidate_broker: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class ConflictResolutionResult:
    preferred_holding: Holding
    preferred_source: str
    reason: str
    confidence: float
    alternatives: tuple[Holding, ...]
    applied_rules: tuple[AppliedRule, ...] = ()

    @property
    def winning_rule(self) -> AppliedRule | None:
        applied = [rule for rule in self.applied_rules if rule.applied]
        return applied[-1] if applied else None
