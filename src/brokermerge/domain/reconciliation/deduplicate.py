"""Cross-broker duplicate detection.

Holdings are matched by a cascade of passes ordered by confidence:

0) manual overrides declared by the user (``exact``)
1) identical ISIN
2) identical CUSIP
3) identical normalized symbol, validated across brokers
4) fuzzy company-name similarity, at most one holding per broker

Each pass only sees holdings that no earlier pass claimed, so a holding
belongs to at most one group. Holdings without a symbol are never grouped.
Holdings whose symbol group fails validation are settled as unique and are
not offered to the fuzzy pass.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from .contracts import DetectionResult, DuplicateGroup, MatchType
from .identifiers import SecurityIdentifierResolver
from .normalize import name_similarity

if TYPE_CHECKING:
    from collections.abc import Hashable

    from brokermerge.domain.model import Holding, HoldingKey

    from .identifiers import SecurityIdentifiers

log = logging.getLogger(__name__)

MAJOR_EXCHANGES: Final[tuple[str, ...]] = ("NYSE", "NASDAQ", "LSE", "TSE", "OSE")

CONFIDENCE_BY_MATCH: Final[dict[MatchType, float]] = {
    MatchType.EXACT: 1.0,
    MatchType.ISIN: 0.95,
    MatchType.CUSIP: 0.90,
    MatchType.SYMBOL: 0.80,
    MatchType.FUZZY: 0.60,
}


@dataclass(frozen=True, slots=True, kw_only=True)
class DetectionPolicy:
    """Thresholds for the matching cascade."""

    fuzzy_similarity_threshold: float = 0.85
    min_confidence: float = 0.60
    max_symbol_currencies: int = 2
    manual_groups: tuple[frozenset[HoldingKey], ...] = ()


@dataclass(frozen=True, slots=True)
class _Candidate:
    index: int
    holding: Holding
    identifiers: SecurityIdentifiers


@dataclass(frozen=True, slots=True)
class _IndexedGroup:
    group: DuplicateGroup
    indices: frozenset[int]


type _GroupValidator = Callable[[list[_Candidate]], bool]


@dataclass(slots=True)
class DuplicateDetector:
    resolver: SecurityIdentifierResolver = field(default_factory=SecurityIdentifierResolver)
    policy: DetectionPolicy = field(default_factory=DetectionPolicy)

    def detect_duplicates(self, holdings: Sequence[Holding]) -> list[DuplicateGroup]:
        """Return duplicate groups sorted by descending confidence."""

        return list(self.partition(holdings).groups)

    def partition(self, holdings: Sequence[Holding]) -> DetectionResult:
        """Split ``holdings`` into duplicate groups and the unique remainder."""

        log.info("Analyzing %s holdings for duplicates", len(holdings))
        candidates = [
            _Candidate(index=index, holding=holding, identifiers=self.resolver.resolve(holding))
            for index, holding in enumerate(holdings)
        ]
        matchable = [candidate for candidate in candidates if candidate.holding.symbol.strip()]
        claimed: set[int] = set()
        found: list[_IndexedGroup] = []

        found.extend(self._group_manual(matchable, claimed))
        found.extend(
            _group_by_key(
                matchable,
                claimed,
                key=lambda candidate: candidate.identifiers.isin,
                match_type=MatchType.ISIN,
            )
        )
        found.extend(
            _group_by_key(
                matchable,
                claimed,
                key=lambda candidate: candidate.identifiers.cusip,
                match_type=MatchType.CUSIP,
            )
        )
        found.extend(
            _group_by_key(
                matchable,
                claimed,
                key=lambda candidate: candidate.identifiers.normalized_symbol or None,
                match_type=MatchType.SYMBOL,
                validate=self._validate_symbol_match,
            )
        )
        found.extend(self._group_by_fuzzy_name(matchable, claimed))

        accepted = sorted(
            (
                indexed
                for indexed in found
                if len(indexed.indices) > 1
                and indexed.group.confidence >= self.policy.min_confidence
            ),
            key=lambda indexed: indexed.group.confidence,
            reverse=True,
        )
        grouped = {index for indexed in accepted for index in indexed.indices}
        unique = tuple(
            candidate.holding for candidate in candidates if candidate.index not in grouped
        )
        log.info("Found %s duplicate groups, %s unique holdings", len(accepted), len(unique))
        return DetectionResult(
            groups=tuple(indexed.group for indexed in accepted),
            unique=unique,
        )

    def _group_manual(
        self,
        candidates: list[_Candidate],
        claimed: set[int],
    ) -> list[_IndexedGroup]:
        found: list[_IndexedGroup] = []
        for manual_keys in self.policy.manual_groups:
            members = [
                candidate
                for candidate in candidates
                if candidate.index not in claimed and candidate.holding.key in manual_keys
            ]
            if len(members) < 2:
                continue
            found.append(_build_group(members, MatchType.EXACT))
            claimed.update(candidate.index for candidate in members)
        return found

    def _validate_symbol_match(self, members: list[_Candidate]) -> bool:
        # Same-broker multi-account positions are not cross-broker duplicates.
        brokers = {candidate.holding.broker_id for candidate in members}
        if len(brokers) <= 1:
            return False
        asset_classes = {candidate.holding.asset_class for candidate in members}
        if len(asset_classes) > 1:
            return False
        currencies = {candidate.holding.currency.upper() for candidate in members}
        return len(currencies) <= self.policy.max_symbol_currencies

    def _group_by_fuzzy_name(
        self,
        candidates: list[_Candidate],
        claimed: set[int],
    ) -> list[_IndexedGroup]:
        remaining = [
            candidate
            for candidate in candidates
            if candidate.index not in claimed and candidate.identifiers.normalized_name
        ]
        found: list[_IndexedGroup] = []
        for position, seed in enumerate(remaining):
            if seed.index in claimed:
                continue
            members = [seed]
            member_indices = {seed.index}
            member_brokers = {seed.holding.broker_id}
            grew = True
            while grew:
                grew = False
                for other in remaining[position + 1 :]:
                    if other.index in claimed or other.index in member_indices:
                        continue
                    # A broker cannot duplicate its own positions.
                    if other.holding.broker_id in member_brokers:
                        continue
                    if any(self._is_fuzzy_match(member, other) for member in members):
                        members.append(other)
                        member_indices.add(other.index)
                        member_brokers.add(other.holding.broker_id)
                        grew = True
            if len(members) > 1:
                found.append(_build_group(members, MatchType.FUZZY))
                claimed.update(member_indices)
        return found

    def _is_fuzzy_match(self, first: _Candidate, second: _Candidate) -> bool:
        first_name = first.identifiers.normalized_name
        second_name = second.identifiers.normalized_name
        if not first_name or not second_name:
            return False
        similarity = name_similarity(first_name, second_name)
        return similarity >= self.policy.fuzzy_similarity_threshold


def _group_by_key(
    candidates: list[_Candidate],
    claimed: set[int],
    *,
    key: Callable[[_Candidate], Hashable | None],
    match_type: MatchType,
    validate: _GroupValidator | None = None,
) -> list[_IndexedGroup]:
    buckets: dict[Hashable, list[_Candidate]] = {}
    for candidate in candidates:
        if candidate.index in claimed:
            continue
        value = key(candidate)
        if value is None:
            continue
        buckets.setdefault(value, []).append(candidate)

    found: list[_IndexedGroup] = []
    for value, members in buckets.items():
        if len(members) < 2:
            continue
        if validate is not None and not validate(members):
            log.debug("Rejected %s match for key=%s; members stay unique", match_type, value)
            claimed.update(candidate.index for candidate in members)
            continue
        found.append(_build_group(members, match_type))
        claimed.update(candidate.index for candidate in members)
    return found


def _build_group(members: list[_Candidate], match_type: MatchType) -> _IndexedGroup:
    holdings = [candidate.holding for candidate in members]
    identifiers = [candidate.identifiers for candidate in members]
    group = DuplicateGroup(
        holdings=tuple(holdings),
        primary_symbol=select_primary_symbol(holdings, identifiers),
        match_type=match_type,
        confidence=CONFIDENCE_BY_MATCH[match_type],
        identifiers=merge_identifiers(identifiers),
    )
    return _IndexedGroup(group=group, indices=frozenset(candidate.index for candidate in members))


def select_primary_symbol(
    holdings: Sequence[Holding],
    identifiers: Sequence[SecurityIdentifiers],
) -> str:
    """Prefer a listing on a major exchange, then the shortest symbol."""

    for exchange in MAJOR_EXCHANGES:
        for holding, holding_identifiers in zip(holdings, identifiers, strict=True):
            if holding_identifiers.exchange == exchange:
                return holding.symbol
    return min(holdings, key=lambda holding: len(holding.symbol)).symbol


def merge_identifiers(identifiers: Sequence[SecurityIdentifiers]) -> SecurityIdentifiers:
    """Take the first non-null value per field, in member order."""

    merged = identifiers[0]
    for other in identifiers[1:]:
        merged = merged.merged_with(other)
    return merged
