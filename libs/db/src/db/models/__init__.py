"""Shared SQLAlchemy models registry for the workspace database.

Currently includes the ledger tables written by ``statement_import``.
"""

from .finance import Base, Category, Expense, FinancialPeriod, Income, ReserveInvestment

__all__ = [
    "Base",
    "Category",
    "Expense",
    "FinancialPeriod",
    "Income",
    "ReserveInvestment",
]
