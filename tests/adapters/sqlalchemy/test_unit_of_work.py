from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine, inspect

from brokermerge.adapters.sqlalchemy.migrations import head_revision, schema_revision
from brokermerge.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyReconciliationUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)
from brokermerge.domain.model import ExchangeRate, RateSource
from brokermerge.domain.ports import SecurityReference
from tests.helpers.holdings import FIXED_NOW

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy.engine import Engine


@pytest.fixture(autouse=True)
def reset_unit_of_work_state() -> Iterator[None]:
    shutdown()
    yield
    shutdown()


def test_unit_of_work_requires_startup() -> None:
    assert not is_started()
    with pytest.raises(StartupError):
        SqlAlchemyReconciliationUnitOfWork()


def test_startup_requires_force_for_reconfiguration() -> None:
    engine_a = create_engine("sqlite+pysqlite:///:memory:", future=True)
    engine_b = create_engine("sqlite+pysqlite:///:memory:", future=True)

    startup(engine=engine_a, force=True)

    with pytest.raises(StartupError):
        startup(engine=engine_b)

    startup(engine=engine_b, force=True)
    assert configured_engine() is engine_b
    assert is_started()


def test_startup_applies_migrations(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    tables = set(inspect(sqlite_engine).get_table_names())

    assert {"exchange_rate", "security_reference", "broker_preference"} <= tables
    assert "alembic_version" in tables


def test_startup_stamps_head_revision() -> None:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    assert schema_revision(engine) is None

    startup(engine=engine, force=True)

    assert head_revision() == "0001_initial"
    assert schema_revision(engine) == head_revision()


def test_repositories_unavailable_outside_context(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    uow = SqlAlchemyReconciliationUnitOfWork()

    with pytest.raises(StartupError):
        _ = uow.repositories


def test_unit_of_work_commit_persists(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    rate = ExchangeRate(
        from_currency="USD",
        to_currency="NOK",
        rate=10.5,
        source=RateSource.SECONDARY_API,
        fetched_at=FIXED_NOW,
        expires_at=FIXED_NOW + timedelta(hours=1),
    )

    with SqlAlchemyReconciliationUnitOfWork() as uow:
        uow.repositories.exchange_rates.upsert(rate)
        uow.repositories.securities.add(SecurityReference(symbol="EQNR", isin="NO0010096985"))
        uow.commit()

    with SqlAlchemyReconciliationUnitOfWork() as uow:
        assert uow.repositories.exchange_rates.get("USD", "NOK") == rate
        reference = uow.repositories.securities.lookup_security("eqnr")
        assert reference is not None
        assert reference.isin == "NO0010096985"


def test_unit_of_work_rolls_back_on_error(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with pytest.raises(RuntimeError), SqlAlchemyReconciliationUnitOfWork() as uow:
        uow.repositories.broker_preferences.set("alice", {"schwab": 0.9})
        raise RuntimeError("abort")

    with SqlAlchemyReconciliationUnitOfWork() as uow:
        assert uow.repositories.broker_preferences.get("alice") == {}
