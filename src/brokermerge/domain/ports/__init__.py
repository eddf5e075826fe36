"""Domain port definitions for adapters."""

from __future__ import annotations

from .preferences import (
    BrokerPreferenceLookup,
    BrokerPreferenceRepository,
    BrokerPriorities,
    StaticBrokerPreferences,
    StoredBrokerPreferences,
)
from .rates import ExchangeRateStore, RateProvider, RateProviderError
from .reference import SecurityReference, SecurityReferenceLookup, SecurityReferenceRepository
from .unit_of_work import (
    ReconciliationRepositories,
    ReconciliationUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "BrokerPreferenceLookup",
    "BrokerPreferenceRepository",
    "BrokerPriorities",
    "ExchangeRateStore",
    "RateProvider",
    "RateProviderError",
    "ReconciliationRepositories",
    "ReconciliationUnitOfWork",
    "RepositoryCollection",
    "SecurityReference",
    "SecurityReferenceLookup",
    "SecurityReferenceRepository",
    "StaticBrokerPreferences",
    "StoredBrokerPreferences",
    "UnitOfWork",
]
