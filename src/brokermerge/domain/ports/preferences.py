"""Ports for user-defined conflict resolution preferences."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from brokermerge.domain.model import Holding

type BrokerPriorities = Mapping[str, float]


@runtime_checkable
class BrokerPreferenceLookup(Protocol):
    """Return broker priority overrides (0-1, higher wins) for a duplicate group."""

    def __call__(self, holdings: Sequence[Holding]) -> BrokerPriorities | None: ...


@dataclass(frozen=True, slots=True)
class StaticBrokerPreferences:
    """Preference lookup backed by a fixed broker -> priority mapping."""

    priorities: BrokerPriorities = field(default_factory=dict)

    def __call__(self, holdings: Sequence[Holding]) -> BrokerPriorities | None:
        _ = holdings
        return self.priorities or None


@runtime_checkable
class BrokerPreferenceRepository(Protocol):
    """Persistent per-user broker preferences."""

    def get(self, user_id: str) -> dict[str, float]: ...

    def set(self, user_id: str, priorities: BrokerPriorities) -> None: ...


@dataclass(frozen=True, slots=True)
class StoredBrokerPreferences:
    """Preference lookup reading one user's priorities from a repository."""

    repository: BrokerPreferenceRepository
    user_id: str

    def __call__(self, holdings: Sequence[Holding]) -> BrokerPriorities | None:
        _ = holdings
        return self.repository.get(self.user_id) or None
