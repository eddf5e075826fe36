"""Conflict resolution for duplicate groups.

The resolver folds over the ordered rule list. Each rule nominates a member
of the group with a weighted score; the strictly highest score seen so far
wins. Every rule is recorded in the audit trail, marked ``applied`` when it
improved the best score.

Scoring failures never propagate: the group is then settled by broker
reliability order with a fixed confidence.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Final

from .contracts import AppliedRule, ConflictResolutionResult, RuleKind
from .scoring import RULE_DESCRIPTIONS, RULE_EVALUATORS, ResolutionPolicy, RuleContext

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from brokermerge.domain.model import Holding, HoldingKey
    from brokermerge.domain.ports import BrokerPreferenceLookup

log = logging.getLogger(__name__)

RULE_ORDER: Final[tuple[RuleKind, ...]] = (
    RuleKind.DATA_QUALITY,
    RuleKind.BROKER_PRIORITY,
    RuleKind.TIMESTAMP,
    RuleKind.MANUAL,
    RuleKind.FALLBACK,
)

_REASON_TEMPLATES: Final[dict[RuleKind, str]] = {
    RuleKind.DATA_QUALITY: "{broker} has highest data quality score",
    RuleKind.BROKER_PRIORITY: "{broker} has highest reliability rating",
    RuleKind.TIMESTAMP: "{broker} has most recent data",
    RuleKind.MANUAL: "{broker} selected by user preference",
}
_DEFAULT_REASON = "{broker} selected by default"
_NO_RULE_REASON = "Selected {broker} as fallback option"
FALLBACK_REASON: Final[str] = "Fallback to broker priority due to resolution error"


@dataclass(slots=True)
class ConflictResolver:
    policy: ResolutionPolicy = field(default_factory=ResolutionPolicy)
    preference_lookup: BrokerPreferenceLookup | None = None

    def resolve_conflicts(
        self,
        holdings: Sequence[Holding],
        *,
        base_prices: Mapping[HoldingKey, float] | None = None,
    ) -> ConflictResolutionResult:
        """Pick the preferred holding of one duplicate group."""

        if not holdings:
            raise ValueError("Cannot resolve conflicts for an empty group")

        log.debug("Resolving conflicts for %s duplicate holdings", len(holdings))
        try:
            result = self._resolve(holdings, base_prices or {})
        except Exception:
            log.exception(
                "Conflict resolution failed for symbol=%s; falling back to broker priority",
                holdings[0].symbol,
            )
            result = self._fallback(holdings)
        _log_decision(result)
        return result

    def _resolve(
        self,
        holdings: Sequence[Holding],
        base_prices: Mapping[HoldingKey, float],
    ) -> ConflictResolutionResult:
        context = RuleContext(
            holdings=holdings,
            policy=self.policy,
            now=self.policy.clock(),
            base_prices=base_prices,
            preferences=self.preference_lookup(holdings) if self.preference_lookup else None,
        )

        best = holdings[0]
        best_score = 0.0
        audit: list[AppliedRule] = []
        for kind in RULE_ORDER:
            weight = self.policy.weight(kind)
            candidate, score = RULE_EVALUATORS[kind](context, weight)
            improved = score > best_score
            if improved:
                best = candidate
                best_score = score
            audit.append(
                AppliedRule(
                    kind=kind,
                    weight=weight,
                    description=RULE_DESCRIPTIONS[kind],
                    applied=improved,
                    score=score,
                    candidate_broker=candidate.broker_id,
                )
            )

        result = ConflictResolutionResult(
            preferred_holding=best,
            preferred_source=best.broker_id,
            reason="",
            confidence=best_score,
            alternatives=_alternatives(holdings, best),
            applied_rules=tuple(audit),
        )
        return _with_reason(result)

    def _fallback(self, holdings: Sequence[Holding]) -> ConflictResolutionResult:
        preferred = select_by_broker_priority(holdings, self.policy)
        return ConflictResolutionResult(
            preferred_holding=preferred,
            preferred_source=preferred.broker_id,
            reason=FALLBACK_REASON,
            confidence=self.policy.fallback_confidence,
            alternatives=_alternatives(holdings, preferred),
        )


def select_by_broker_priority(holdings: Sequence[Holding], policy: ResolutionPolicy) -> Holding:
    """Return the first holding of the most reliable broker."""

    best = holdings[0]
    for holding in holdings[1:]:
        if policy.reliability(holding.broker_id) > policy.reliability(best.broker_id):
            best = holding
    return best


def generate_reason(result: ConflictResolutionResult) -> str:
    broker = result.preferred_source or "unknown"
    winning = result.winning_rule
    if winning is None:
        return _NO_RULE_REASON.format(broker=broker)
    return _REASON_TEMPLATES.get(winning.kind, _DEFAULT_REASON).format(broker=broker)


def _with_reason(result: ConflictResolutionResult) -> ConflictResolutionResult:
    return replace(result, reason=generate_reason(result))


def _alternatives(holdings: Sequence[Holding], preferred: Holding) -> tuple[Holding, ...]:
    return tuple(holding for holding in holdings if holding is not preferred)


def _log_decision(result: ConflictResolutionResult) -> None:
    log.info(
        "Resolved conflict: source=%s confidence=%.3f reason=%r alternatives=%s rules=%s",
        result.preferred_source,
        result.confidence,
        result.reason,
        [holding.broker_id for holding in result.alternatives],
        [rule.kind.value for rule in result.applied_rules if rule.applied],
    )
