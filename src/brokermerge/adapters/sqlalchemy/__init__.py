"""SQLAlchemy adapter package for brokermerge."""

from __future__ import annotations

from .repositories import (
    SqlAlchemyBrokerPreferenceRepository,
    SqlAlchemyExchangeRateStore,
    SqlAlchemySecurityReferenceRepository,
)
from .tables import create_all_tables, metadata
from .unit_of_work import (
    SqlAlchemyReconciliationUnitOfWork,
    StartupError,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyBrokerPreferenceRepository",
    "SqlAlchemyExchangeRateStore",
    "SqlAlchemyReconciliationUnitOfWork",
    "SqlAlchemySecurityReferenceRepository",
    "StartupError",
    "create_all_tables",
    "metadata",
    "shutdown",
    "startup",
]
