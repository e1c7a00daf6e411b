from __future__ import annotations

from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from db import Base
from db.client import session_scope
from db.models.finance import Expense, FinancialPeriod, Income, ReserveInvestment
from statement_import.importer import run_import
from statement_import.models import RawTransaction, RowState, StoreError
import statement_import.persistence as persistence
from statement_import.persistence import SqlLedgerStore, scoped_sessions
from statement_import.review import derive_rows

from tests.helpers.db import bootstrap_sqlite_db, seed_categories


@pytest.fixture()
def db_url(tmp_path: Path) -> str:
    return bootstrap_sqlite_db(tmp_path / "ledger.sqlite3")


def test_ensure_period_is_get_or_create(db_url: str):
    store = SqlLedgerStore(database_url=db_url)

    first = store.ensure_period("u1", 2024, 1)
    again = store.ensure_period("u1", 2024, 1)
    other_month = store.ensure_period("u1", 2024, 2)
    other_user = store.ensure_period("u2", 2024, 1)

    assert first == again
    assert len({first, other_month, other_user}) == 3
    with session_scope(database_url=db_url) as s:
        assert s.execute(select(func.count()).select_from(FinancialPeriod)).scalar_one() == 3


def test_unique_constraint_guards_periods(db_url: str):
    with pytest.raises(IntegrityError):
        with session_scope(database_url=db_url) as s:
            s.add(FinancialPeriod(user_id="u1", month=3, year=2024))
            s.add(FinancialPeriod(user_id="u1", month=3, year=2024))


def test_ensure_period_rereads_after_losing_create_race(db_url: str, monkeypatch):
    store = SqlLedgerStore(database_url=db_url)
    winner = store.ensure_period("u1", 2024, 5)
    real_find = persistence._find_period
    calls: list[int] = []

    def stale_first_lookup(session, user_id, year, month):
        # The first lookup misses, as if the winner had not committed yet.
        calls.append(month)
        if len(calls) == 1:
            return None
        return real_find(session, user_id, year, month)

    monkeypatch.setattr(persistence, "_find_period", stale_first_lookup)

    assert store.ensure_period("u1", 2024, 5) == winner
    assert calls == [5, 5]


def test_inserts_round_values_and_parse_dates(db_url: str):
    (cat,) = seed_categories(database_url=db_url, user_id="u1", categories=[("Mercado", "expense")])
    store = SqlLedgerStore(database_url=db_url)
    period = store.ensure_period("u1", 2024, 1)

    store.insert_income("u1", period, "Salario", Decimal("3500.005"), "2024-01-10", None)
    store.insert_expense("u1", period, "Padaria", Decimal("12.5"), "2024-01-11", cat.id, "pix")
    store.insert_reserve("u1", "Aplicacao RDB", Decimal("150"), "2024-01-05", "investment")

    with session_scope(database_url=db_url) as s:
        income = s.execute(select(Income)).scalar_one()
        expense = s.execute(select(Expense)).scalar_one()
        reserve = s.execute(select(ReserveInvestment)).scalar_one()
        assert income.value == Decimal("3500.01")
        assert income.date == date(2024, 1, 10)
        assert income.category_id is None
        assert expense.category_id == cat.id
        assert expense.payment_method == "pix"
        assert expense.is_essential is False
        assert reserve.type == "investment"
        assert reserve.value == Decimal("150.00")


def test_rejected_insert_becomes_store_error(db_url: str):
    store = SqlLedgerStore(database_url=db_url)

    # Unknown period id violates the foreign key (enabled for SQLite in the helper).
    with pytest.raises(StoreError):
        store.insert_income("u1", "missing-period", "X", Decimal("1"), "2024-01-01", None)
    with pytest.raises(StoreError):
        store.insert_reserve("u1", "X", Decimal("1"), "2024-01-01", "savings")  # type: ignore[arg-type]
    with pytest.raises(StoreError):
        store.insert_reserve("u1", "X", Decimal("1"), "01/01/2024", "market")


def test_load_user_categories_filters_and_orders(db_url: str):
    seed_categories(
        database_url=db_url,
        user_id="u1",
        categories=[("Transporte", "expense"), ("Salário", "income"), ("Mercado", "expense")],
    )
    seed_categories(database_url=db_url, user_id="u2", categories=[("Outros", "expense")])

    cats = SqlLedgerStore(database_url=db_url).load_user_categories("u1")

    assert [c.name for c in cats] == ["Mercado", "Salário", "Transporte"]
    assert {c.type for c in cats} == {"income", "expense"}


def test_explicit_session_factory_bypasses_shared_engine(tmp_path: Path):
    engine = create_engine(f"sqlite+pysqlite:///{tmp_path / 'own.sqlite3'}")
    Base.metadata.create_all(bind=engine)
    store = SqlLedgerStore(
        session_factory=scoped_sessions(sessionmaker(bind=engine, expire_on_commit=False))
    )

    period = store.ensure_period("u1", 2024, 7)

    assert store.ensure_period("u1", 2024, 7) == period
    assert store.load_user_categories("u1") == []
    engine.dispose()


def test_out_of_range_value_becomes_store_error(db_url: str):
    store = SqlLedgerStore(database_url=db_url)
    period = store.ensure_period("u1", 2024, 1)

    with pytest.raises(StoreError):
        store.insert_income("u1", period, "Enorme", Decimal("1E+30"), "2024-01-05", None)
    with pytest.raises(StoreError):
        store.insert_reserve("u1", "Enorme", Decimal(10) ** 30, "2024-01-05", "investment")


def test_oversized_amount_fails_its_row_and_the_run_continues(db_url: str):
    txs = (
        RawTransaction("csv-0", "2024-01-05", Decimal(10) ** 30, "Enorme", None, "csv"),
        RawTransaction("csv-1", "2024-01-06", Decimal("10.00"), "Normal", None, "csv"),
    )

    report = run_import(derive_rows(txs), user_id="u1", store=SqlLedgerStore(database_url=db_url))

    assert [r.state for r in report.rows] == [RowState.FAILED, RowState.COMMITTED]
    with session_scope(database_url=db_url) as s:
        assert s.execute(select(Income.name)).scalars().all() == ["Normal"]
