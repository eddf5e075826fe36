"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import timedelta
from logging import getLogger
from typing import TYPE_CHECKING

from brokermerge.adapters.rates import ExchangeRateApiProvider, FxRatesProvider
from brokermerge.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyReconciliationUnitOfWork,
    is_started,
    startup,
)
from brokermerge.config import (
    CurrencyConfig,
    MissingConfigurationError,
    get_currency_config,
)
from brokermerge.domain.currency import CurrencyConversionService, is_supported
from brokermerge.domain.ports import ReconciliationUnitOfWork, StoredBrokerPreferences
from brokermerge.domain.reconciliation import (
    ConflictResolver,
    DetectionPolicy,
    DuplicateDetector,
    ReconciliationEngine,
    SecurityIdentifierResolver,
)

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from brokermerge.domain.model import ConversionResult, Holding
    from brokermerge.domain.ports import (
        BrokerPreferenceLookup,
        ExchangeRateStore,
        RateProvider,
        SecurityReference,
        SecurityReferenceLookup,
    )
    from brokermerge.domain.reconciliation import AggregationResult

UnitOfWorkFactory = Callable[[], ReconciliationUnitOfWork]
type ProviderFactory = Callable[[], RateProvider]

log = getLogger(__name__)

DEFAULT_PROVIDER_FACTORIES: tuple[ProviderFactory, ...] = (
    FxRatesProvider,
    ExchangeRateApiProvider,
)


def build_rate_providers(
    factories: Sequence[ProviderFactory] = DEFAULT_PROVIDER_FACTORIES,
) -> list[RateProvider]:
    """Instantiate the configured rate providers, skipping those without credentials."""

    providers: list[RateProvider] = []
    for factory in factories:
        try:
            providers.append(factory())
        except MissingConfigurationError as exc:
            log.warning("Skipping rate provider: %s", exc)
    return providers


def build_conversion_service(
    *,
    store: ExchangeRateStore | None = None,
    providers: Sequence[RateProvider] | None = None,
    currency_config: CurrencyConfig | None = None,
) -> CurrencyConversionService:
    config = currency_config or get_currency_config()
    return CurrencyConversionService(
        providers=build_rate_providers() if providers is None else providers,
        store=store,
        ttl=timedelta(seconds=config.rate_ttl_seconds),
        request_timeout=config.request_timeout_seconds,
    )


def build_engine(
    *,
    conversion: CurrencyConversionService,
    reference_lookup: SecurityReferenceLookup | None = None,
    preference_lookup: BrokerPreferenceLookup | None = None,
    detection_policy: DetectionPolicy | None = None,
) -> ReconciliationEngine:
    return ReconciliationEngine(
        rates=conversion,
        detector=DuplicateDetector(
            resolver=SecurityIdentifierResolver(reference_lookup=reference_lookup),
            policy=detection_policy or DetectionPolicy(),
        ),
        resolver=ConflictResolver(preference_lookup=preference_lookup),
    )


def _ensure_started() -> None:
    if not is_started():
        startup()


def _supported_currency(code: str) -> str:
    if not is_supported(code):
        raise ValueError(f"Unsupported currency: {code!r}")
    return code.strip().upper()


def reconcile_holdings(
    holdings: Sequence[Holding],
    *,
    base_currency: str | None = None,
    user_id: str | None = None,
    providers: Sequence[RateProvider] | None = None,
    detection_policy: DetectionPolicy | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    currency_config: CurrencyConfig | None = None,
) -> AggregationResult:
    """Consolidate ``holdings`` using the persistent rate cache and reference data."""

    config = currency_config or get_currency_config()
    effective_base = _supported_currency(base_currency or config.base_currency)
    if unit_of_work_factory is None:
        _ensure_started()
    effective_uow = unit_of_work_factory or SqlAlchemyReconciliationUnitOfWork
    log.info(
        "Starting reconciliation: holdings=%s, base_currency=%s, user=%s",
        len(holdings),
        effective_base,
        user_id,
    )

    with effective_uow() as uow:
        repositories = uow.repositories
        conversion = build_conversion_service(
            store=repositories.exchange_rates,
            providers=providers,
            currency_config=config,
        )
        engine = build_engine(
            conversion=conversion,
            reference_lookup=repositories.securities,
            preference_lookup=(
                StoredBrokerPreferences(repositories.broker_preferences, user_id)
                if user_id
                else None
            ),
            detection_policy=detection_policy,
        )
        result = asyncio.run(engine.aggregate(holdings, effective_base))
        uow.commit()

    log.info(
        "Finished reconciliation: success=%s, consolidated=%s, duplicates=%s, total=%.2f %s",
        result.success,
        len(result.holdings),
        result.duplicates_detected,
        result.summary.total_value,
        result.summary.currency,
    )
    return result


def convert_currency(
    amount: float,
    from_currency: str,
    to_currency: str,
    *,
    providers: Sequence[RateProvider] | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    currency_config: CurrencyConfig | None = None,
) -> ConversionResult:
    source = _supported_currency(from_currency)
    target = _supported_currency(to_currency)
    if unit_of_work_factory is None:
        _ensure_started()
    effective_uow = unit_of_work_factory or SqlAlchemyReconciliationUnitOfWork
    with effective_uow() as uow:
        conversion = build_conversion_service(
            store=uow.repositories.exchange_rates,
            providers=providers,
            currency_config=currency_config,
        )
        result = asyncio.run(conversion.convert_amount(amount, source, target))
        uow.commit()
    return result


def cleanup_exchange_rates(
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> int:
    """Delete expired exchange rates from the persistent cache."""

    if unit_of_work_factory is None:
        _ensure_started()
    effective_uow = unit_of_work_factory or SqlAlchemyReconciliationUnitOfWork
    with effective_uow() as uow:
        conversion = CurrencyConversionService(store=uow.repositories.exchange_rates)
        removed = conversion.cleanup_expired_rates()
        uow.commit()
    return removed


def set_broker_preferences(
    user_id: str,
    priorities: Mapping[str, float],
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> dict[str, float]:
    """Store conflict-resolution broker priorities for ``user_id``."""

    for broker, priority in priorities.items():
        if not 0.0 <= priority <= 1.0:
            raise ValueError(f"Priority for {broker} must be between 0 and 1, got {priority}")
    if unit_of_work_factory is None:
        _ensure_started()
    effective_uow = unit_of_work_factory or SqlAlchemyReconciliationUnitOfWork
    with effective_uow() as uow:
        uow.repositories.broker_preferences.set(user_id, priorities)
        uow.commit()
        stored = uow.repositories.broker_preferences.get(user_id)
    log.info("Stored broker preferences for user %s: %s", user_id, stored)
    return stored


def import_security_references(
    references: Sequence[SecurityReference],
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> int:
    """Store reference identifiers used to fill gaps in broker-reported metadata."""

    if unit_of_work_factory is None:
        _ensure_started()
    effective_uow = unit_of_work_factory or SqlAlchemyReconciliationUnitOfWork
    with effective_uow() as uow:
        for reference in references:
            uow.repositories.securities.add(reference)
        uow.commit()
    log.info("Imported %s security references", len(references))
    return len(references)
