"""In-memory ledger store recording every call, with optional injected failures."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from statement_import.models import StoreError


class FakeLedgerStore:
    def __init__(
        self,
        *,
        fail_periods: set[tuple[int, int]] | None = None,
        fail_names: set[str] | None = None,
    ) -> None:
        self.periods: dict[tuple[str, int, int], str] = {}
        self.period_calls: list[tuple[str, int, int]] = []
        self.incomes: list[dict[str, Any]] = []
        self.expenses: list[dict[str, Any]] = []
        self.reserves: list[dict[str, Any]] = []
        self._fail_periods = fail_periods or set()
        self._fail_names = fail_names or set()

    @property
    def writes(self) -> int:
        return len(self.periods) + len(self.incomes) + len(self.expenses) + len(self.reserves)

    def ensure_period(self, user_id: str, year: int, month: int) -> str:
        self.period_calls.append((user_id, year, month))
        if (year, month) in self._fail_periods:
            raise StoreError(f"period {year}-{month:02d} rejected")
        key = (user_id, year, month)
        if key not in self.periods:
            self.periods[key] = f"period-{year}-{month:02d}"
        return self.periods[key]

    def _check(self, name: str) -> None:
        if name in self._fail_names:
            raise StoreError(f"insert rejected for {name!r}")

    def insert_income(
        self,
        user_id: str,
        period_id: str,
        name: str,
        value: Decimal,
        date: str,
        category_id: str | None,
    ) -> None:
        self._check(name)
        self.incomes.append(
            {
                "user_id": user_id,
                "period_id": period_id,
                "name": name,
                "value": value,
                "date": date,
                "category_id": category_id,
            }
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
        self._check(name)
        self.expenses.append(
            {
                "user_id": user_id,
                "period_id": period_id,
                "name": name,
                "value": value,
                "date": date,
                "category_id": category_id,
                "payment_method": payment_method,
                "is_essential": is_essential,
            }
        )

    def insert_reserve(
        self, user_id: str, name: str, value: Decimal, date: str, type: str
    ) -> None:
        self._check(name)
        self.reserves.append(
            {"user_id": user_id, "name": name, "value": value, "date": date, "type": type}
        )
