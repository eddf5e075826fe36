"""Reconciliation core for holdings reported by several brokers.

Layered flow:
1) resolve canonical security identifiers per holding
2) detect cross-broker duplicates
3) resolve conflicts inside each duplicate group
4) consolidate groups and unique holdings into one base-currency portfolio
"""

from __future__ import annotations

from .contracts import (
    AppliedRule,
    ConflictResolutionResult,
    DetectionResult,
    DuplicateGroup,
    MatchType,
    RuleKind,
)
from .deduplicate import DetectionPolicy, DuplicateDetector
from .engine import (
    AggregationResult,
    AssetAllocation,
    BrokerBreakdown,
    ConsolidatedHolding,
    PortfolioSummary,
    ReconciliationEngine,
    SourceEntry,
)
from .identifiers import SecurityIdentifierResolver, SecurityIdentifiers
from .resolve import ConflictResolver
from .scoring import ResolutionPolicy

__all__ = [
    "AggregationResult",
    "AppliedRule",
    "AssetAllocation",
    "BrokerBreakdown",
    "ConflictResolutionResult",
    "ConflictResolver",
    "ConsolidatedHolding",
    "DetectionPolicy",
    "DetectionResult",
    "DuplicateDetector",
    "DuplicateGroup",
    "MatchType",
    "PortfolioSummary",
    "ReconciliationEngine",
    "ResolutionPolicy",
    "RuleKind",
    "SecurityIdentifierResolver",
    "SecurityIdentifiers",
    "SourceEntry",
]
