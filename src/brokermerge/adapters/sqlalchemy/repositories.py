"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import and_, delete, select
from sqlalchemy.exc import SQLAlchemyError

from brokermerge.domain.model import ExchangeRate, RateSource
from brokermerge.domain.ports import SecurityReference

from .tables import broker_preference_table, exchange_rate_table, security_reference_table

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlalchemy import Table
    from sqlalchemy.orm import Session

log = logging.getLogger(__name__)


class SqlAlchemyExchangeRateStore:
    """Persistent rate cache.

    Database failures are logged and reported as a miss or a skipped write so
    that conversion can continue with live sources.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, from_currency: str, to_currency: str) -> ExchangeRate | None:
        stmt = (
            select(exchange_rate_table)
            .where(exchange_rate_table.c.from_currency == from_currency)
            .where(exchange_rate_table.c.to_currency == to_currency)
        )
        try:
            row = self.session.execute(stmt).mappings().one_or_none()
        except SQLAlchemyError:
            log.warning(
                "Failed to read cached rate %s to %s", from_currency, to_currency, exc_info=True
            )
            self.session.rollback()
            return None
        if row is None:
            return None
        return ExchangeRate(
            from_currency=row["from_currency"],
            to_currency=row["to_currency"],
            rate=row["rate"],
            source=RateSource(row["source"]),
            fetched_at=row["fetched_at"],
            expires_at=row["expires_at"],
        )

    def upsert(self, rate: ExchangeRate) -> None:
        values = {
            "from_currency": rate.from_currency,
            "to_currency": rate.to_currency,
            "rate": rate.rate,
            "source": rate.source.value,
            "fetched_at": rate.fetched_at,
            "expires_at": rate.expires_at,
        }
        try:
            _upsert(self.session, exchange_rate_table, ("from_currency", "to_currency"), values)
        except SQLAlchemyError:
            log.warning(
                "Failed to cache rate %s to %s",
                rate.from_currency,
                rate.to_currency,
                exc_info=True,
            )
            self.session.rollback()

    def delete_expired(self, now: datetime) -> int:
        stmt = delete(exchange_rate_table).where(exchange_rate_table.c.expires_at <= now)
        try:
            result = self.session.execute(stmt)
            self.session.flush()
        except SQLAlchemyError:
            log.warning("Failed to delete expired rates", exc_info=True)
            self.session.rollback()
            return 0
        return result.rowcount or 0


class SqlAlchemySecurityReferenceRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def lookup_security(self, symbol: str) -> SecurityReference | None:
        stmt = select(security_reference_table).where(
            security_reference_table.c.symbol == symbol.strip().upper()
        )
        row = self.session.execute(stmt).mappings().one_or_none()
        if row is None:
            return None
        return SecurityReference(
            symbol=row["symbol"],
            isin=row["isin"],
            cusip=row["cusip"],
            sedol=row["sedol"],
            name=row["name"],
            exchange=row["exchange"],
        )

    def add(self, reference: SecurityReference) -> None:
        values = {
            "symbol": reference.symbol.strip().upper(),
            "isin": reference.isin,
            "cusip": reference.cusip,
            "sedol": reference.sedol,
            "name": reference.name,
            "exchange": reference.exchange,
        }
        _upsert(self.session, security_reference_table, ("symbol",), values)


class SqlAlchemyBrokerPreferenceRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: str) -> dict[str, float]:
        stmt = select(broker_preference_table.c.priorities).where(
            broker_preference_table.c.user_id == user_id
        )
        priorities = self.session.execute(stmt).scalar_one_or_none()
        if not priorities:
            return {}
        return {str(broker): float(value) for broker, value in priorities.items()}

    def set(self, user_id: str, priorities: Mapping[str, float]) -> None:
        values = {
            "user_id": user_id,
            "priorities": {str(broker): float(value) for broker, value in priorities.items()},
            "updated_at": datetime.now(UTC),
        }
        _upsert(self.session, broker_preference_table, ("user_id",), values)


def _upsert(
    session: Session,
    table: Table,
    key_columns: tuple[str, ...],
    values: Mapping[str, object],
) -> None:
    condition = and_(*(table.c[name] == values[name] for name in key_columns))
    existing = session.execute(select(table.c[key_columns[0]]).where(condition)).first()
    if existing is None:
        session.execute(table.insert().values(**values))
    else:
        session.execute(table.update().where(condition).values(**values))
    session.flush()
