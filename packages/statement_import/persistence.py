"""Database-backed ledger store.

:class:`SqlLedgerStore` provides the two capabilities the importer consumes
(period get-or-create and record inserts) on top of the ORM models in
``db.models.finance``. Each call runs in its own short transaction so one
rejected row never rolls back the rows committed before it.

SQLAlchemy errors are re-raised as :class:`~statement_import.models.StoreError`
so the importer can count the row as failed and move on.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import AbstractContextManager, contextmanager
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from db.client import session_scope
from db.models.finance import (
    Category,
    Expense,
    FinancialPeriod,
    Income,
    ReserveInvestment,
)
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .logging_setup import get_logger
from .models import ReserveType, StoreError, UserCategory

_log = get_logger("statement_import.persistence")

type SessionFactory = Callable[[], AbstractContextManager[Session]]


def _to_money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def scoped_sessions(maker: sessionmaker[Session]) -> SessionFactory:
    """Wrap a ``sessionmaker`` into a commit/rollback session factory."""

    @contextmanager
    def _scope() -> Iterator[Session]:
        session = maker()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    return _scope


def _find_period(session: Session, user_id: str, year: int, month: int) -> str | None:
    return session.execute(
        select(FinancialPeriod.id).where(
            FinancialPeriod.user_id == user_id,
            FinancialPeriod.month == month,
            FinancialPeriod.year == year,
        )
    ).scalar_one_or_none()


class SqlLedgerStore:
    """Period and record store backed by SQLAlchemy.

    Parameters
    ----------
    database_url:
        Optional override for ``DATABASE_URL`` (used with the shared engine
        from ``db.client``).
    session_factory:
        Optional zero-argument callable returning a transactional session
        context manager. When given, ``database_url`` is ignored.
    """

    def __init__(
        self,
        *,
        database_url: str | None = None,
        session_factory: SessionFactory | None = None,
    ) -> None:
        if session_factory is None:
            url = database_url

            def _default_factory() -> AbstractContextManager[Session]:
                return session_scope(database_url=url)

            session_factory = _default_factory
        self._sessions = session_factory

    # ---- periods ---------------------------------------------------------

    def ensure_period(self, user_id: str, year: int, month: int) -> str:
        """Get-or-create the ``(user_id, month, year)`` period.

        A concurrent creator losing the race hits the unique constraint; the
        loser re-reads and returns the winner's id.
        """

        try:
            with self._sessions() as session:
                existing = _find_period(session, user_id, year, month)
                if existing is not None:
                    return existing
                period = FinancialPeriod(user_id=user_id, month=month, year=year)
                session.add(period)
                session.flush()
                _log.info("created period %04d-%02d for user %s", year, month, user_id)
                return period.id
        except IntegrityError:
            _log.info("period %04d-%02d already exists; re-reading", year, month)
        except SQLAlchemyError as exc:
            raise StoreError(f"period lookup failed for {year}-{month:02d}: {exc}") from exc

        try:
            with self._sessions() as session:
                existing = _find_period(session, user_id, year, month)
        except SQLAlchemyError as exc:
            raise StoreError(f"period lookup failed for {year}-{month:02d}: {exc}") from exc
        if existing is None:
            raise StoreError(f"period {year}-{month:02d} vanished after a create conflict")
        return existing

    # ---- records ---------------------------------------------------------

    def _insert(self, build: Callable[[], object], what: str) -> None:
        # Building the row converts value and date; both failures are StoreError.
        try:
            row = build()
        except InvalidOperation as exc:
            raise StoreError(f"{what} value out of range") from exc
        try:
            with self._sessions() as session:
                session.add(row)
        except SQLAlchemyError as exc:
            raise StoreError(f"{what} insert failed: {exc}") from exc

    def insert_income(
        self,
        user_id: str,
        period_id: str,
        name: str,
        value: Decimal,
        date: str,
        category_id: str | None,
    ) -> None:
        self._insert(
            lambda: Income(
                user_id=user_id,
                period_id=period_id,
                name=name,
                value=_to_money(value),
                date=_parse_date(date),
                category_id=category_id,
            ),
            "income",
        )

    def insert_expense(
        self,
        user_id: str,
        period_id: str,
        name: str,
        value: Decimal,
        date: str,
        category_id: str | None,
        payment_method: str,
        is_essential: bool = False,
    ) -> None:
        self._insert(
            lambda: Expense(
                user_id=user_id,
                period_id=period_id,
                name=name,
                value=_to_money(value),
                date=_parse_date(date),
                category_id=category_id,
                payment_method=payment_method,
                is_essential=is_essential,
            ),
            "expense",
        )

    def insert_reserve(
        self,
        user_id: str,
        name: str,
        value: Decimal,
        date: str,
        type: ReserveType,
    ) -> None:
        self._insert(
            lambda: ReserveInvestment(
                user_id=user_id,
                name=name,
                value=_to_money(value),
                date=_parse_date(date),
                type=type,
            ),
            "reserve",
        )

    # ---- categories ------------------------------------------------------

    def load_user_categories(self, user_id: str) -> list[UserCategory]:
        """Return the user's categories ordered by name."""

        try:
            with self._sessions() as session:
                rows = (
                    session.execute(
                        select(Category)
                        .where(Category.user_id == user_id)
                        .order_by(Category.name)
                    )
                    .scalars()
                    .all()
                )
                return [
                    UserCategory(id=r.id, name=r.name, type=r.type)
                    for r in rows
                    if r.type in ("income", "expense") and (r.name or "").strip()
                ]
        except SQLAlchemyError as exc:
            raise StoreError(f"category lookup failed: {exc}") from exc


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise StoreError(f"invalid record date: {value!r}") from exc


__all__ = ["SessionFactory", "SqlLedgerStore", "scoped_sessions"]
