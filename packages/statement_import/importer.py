"""Commit accepted statement rows as accounting records.

The importer walks the derived rows in input order. Skipped rows are never
written. Every other row first resolves its owning period (get-or-create on
``(user, year, month)``), then becomes exactly one record:

- investment/market outflows go to the reserves store (``type`` is
  ``"investment"`` or ``"market"``);
- every other row goes to incomes or expenses by base type, carrying the
  effective description and category and, for expenses, the payment method.

A failing period lookup or insert marks that row ``FAILED`` and the loop
continues; there is no retry and no abort-on-first-error.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from typing import Protocol

from .classify import resolve_payment_method
from .config import ImportSettings
from .logging_setup import get_logger
from .models import (
    ImportReport,
    ImportStatus,
    NotAuthenticatedError,
    ReserveType,
    RowResult,
    RowState,
    StoreError,
)
from .review import DerivedRow

_log = get_logger("statement_import.importer")


class PeriodStore(Protocol):
    def ensure_period(self, user_id: str, year: int, month: int) -> str:
        """Return the id of the user's period, creating it when absent."""
        ...


class RecordStore(Protocol):
    def insert_income(
        self,
        user_id: str,
        period_id: str,
        name: str,
        value: Decimal,
        date: str,
        category_id: str | None,
    ) -> None: ...

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
    ) -> None: ...

    def insert_reserve(
        self,
        user_id: str,
        name: str,
        value: Decimal,
        date: str,
        type: ReserveType,
    ) -> None: ...


class LedgerStore(PeriodStore, RecordStore, Protocol):
    """Both external capabilities in one object (e.g. a database store)."""


class PeriodCache:
    """Per-run memo of resolved periods so each ``(year, month)`` resolves once.

    Failed resolutions are not cached; the next row of that month retries.
    """

    def __init__(self, store: PeriodStore, user_id: str) -> None:
        self._store = store
        self._user_id = user_id
        self._ids: dict[tuple[int, int], str] = {}

    def resolve(self, year: int, month: int) -> str:
        key = (year, month)
        cached = self._ids.get(key)
        if cached is not None:
            return cached
        period_id = self._store.ensure_period(self._user_id, year, month)
        if not period_id:
            raise StoreError(f"period {year}-{month:02d} could not be resolved")
        self._ids[key] = period_id
        return period_id

    @property
    def resolved(self) -> dict[tuple[int, int], str]:
        return dict(self._ids)


def _commit_row(
    row: DerivedRow,
    *,
    user_id: str,
    periods: PeriodCache,
    records: RecordStore,
    settings: ImportSettings,
) -> str:
    """Write one row; returns the target kind. Raises :class:`StoreError`."""

    tx = row.transaction
    year, month = tx.year_month
    period_id = periods.resolve(year, month)
    value = abs(tx.amount)

    if row.semantic_type in ("investment_out", "market_out"):
        reserve_type: ReserveType = "market" if row.semantic_type == "market_out" else "investment"
        records.insert_reserve(user_id, row.description, value, tx.date, reserve_type)
        return "reserve"

    if row.base_type == "income":
        records.insert_income(user_id, period_id, row.description, value, tx.date, row.category_id)
        return "income"

    payment_method = resolve_payment_method(
        tx,
        default=settings.default_payment_method,
        marker=settings.instant_payment_marker,
        instant_method=settings.instant_payment_method,
    )
    records.insert_expense(
        user_id,
        period_id,
        row.description,
        value,
        tx.date,
        row.category_id,
        payment_method,
        False,
    )
    return "expense"


def run_import(
    rows: Iterable[DerivedRow],
    *,
    user_id: str | None,
    store: LedgerStore,
    settings: ImportSettings | None = None,
) -> ImportReport:
    """Commit every non-skipped row once and report the aggregate outcome.

    Raises :class:`NotAuthenticatedError` before any write when ``user_id`` is
    missing. When no row is accepted the report status is
    ``NOTHING_TO_IMPORT`` and the store is never called.
    """

    settings = settings if settings is not None else ImportSettings()
    materialized = list(rows)
    accepted = [r for r in materialized if not r.skipped]

    if not accepted:
        _log.info("nothing to import (%d rows, all skipped or none parsed)", len(materialized))
        return ImportReport(
            status=ImportStatus.NOTHING_TO_IMPORT,
            total=len(materialized),
            committed=0,
            failed=0,
            skipped=len(materialized),
            rows=tuple(RowResult(r.id, RowState.SKIPPED) for r in materialized),
        )

    if not user_id or not user_id.strip():
        raise NotAuthenticatedError("an authenticated user is required to import")

    periods = PeriodCache(store, user_id)
    results: list[RowResult] = []
    for row in materialized:
        if row.skipped:
            results.append(RowResult(row.id, RowState.SKIPPED))
            continue
        try:
            target = _commit_row(
                row, user_id=user_id, periods=periods, records=store, settings=settings
            )
        except StoreError as exc:
            _log.warning("row %s failed to commit: %s", row.id, exc)
            results.append(RowResult(row.id, RowState.FAILED, error=str(exc)))
            continue
        results.append(RowResult(row.id, RowState.COMMITTED, target=target))

    committed = sum(1 for r in results if r.state is RowState.COMMITTED)
    failed = sum(1 for r in results if r.state is RowState.FAILED)
    skipped = len(materialized) - len(accepted)
    status = ImportStatus.COMPLETED if failed == 0 else ImportStatus.COMPLETED_WITH_FAILURES
    _log.info(
        "import finished: committed=%d failed=%d skipped=%d periods=%d",
        committed,
        failed,
        skipped,
        len(periods.resolved),
    )
    return ImportReport(
        status=status,
        total=len(materialized),
        committed=committed,
        failed=failed,
        skipped=skipped,
        rows=tuple(results),
    )


__all__ = ["PeriodStore", "RecordStore", "LedgerStore", "PeriodCache", "run_import"]
