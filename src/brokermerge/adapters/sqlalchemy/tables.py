"""SQLAlchemy Core tables for the persistence adapter."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Dialect,
    Float,
    Index,
    MetaData,
    String,
    Table,
    TypeDecorator,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


exchange_rate_table = Table(
    "exchange_rate",
    metadata,
    Column("from_currency", String(3), primary_key=True),
    Column("to_currency", String(3), primary_key=True),
    Column("rate", Float, nullable=False),
    Column("source", String(32), nullable=False),
    Column("fetched_at", UTCDateTime(), nullable=False),
    Column("expires_at", UTCDateTime(), nullable=False),
)
Index("ix_exchange_rate_expires_at", exchange_rate_table.c.expires_at)

security_reference_table = Table(
    "security_reference",
    metadata,
    Column("symbol", String(32), primary_key=True),
    Column("isin", String(12), nullable=True),
    Column("cusip", String(9), nullable=True),
    Column("sedol", String(7), nullable=True),
    Column("name", String, nullable=True),
    Column("exchange", String(16), nullable=True),
)

broker_preference_table = Table(
    "broker_preference",
    metadata,
    Column("user_id", String, primary_key=True),
    Column("priorities", JSON, nullable=False),
    Column("updated_at", UTCDateTime(), nullable=False),
)


def create_all_tables(engine: Engine) -> None:
    metadata.create_all(engine)
