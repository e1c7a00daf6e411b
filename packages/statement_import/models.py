"""Data models for ``statement_import``.

Parsed statement lines (:class:`RawTransaction`) are immutable records created
once by a format parser. Everything derived from them (semantic type, base
type, category suggestion) lives on :class:`ClassifiedRow` and is recomputed
on demand rather than stored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import StrEnum
from typing import Literal

# ---------------------------------------------------------------------------
# Type aliases
# ---------------------------------------------------------------------------

type Source = Literal["ofx", "csv"]
type BaseType = Literal["income", "expense"]
type SemanticType = Literal[
    "income",
    "expense",
    "transfer_in",
    "transfer_out",
    "investment_out",
    "investment_income",
    "market_out",
    "market_income",
]
type ReserveType = Literal["investment", "market"]

SEMANTIC_TYPES: tuple[str, ...] = (
    "income",
    "expense",
    "transfer_in",
    "transfer_out",
    "investment_out",
    "investment_income",
    "market_out",
    "market_income",
)

TRANSFER_TYPES = frozenset({"transfer_in", "transfer_out"})
INVESTMENT_TYPES = frozenset({"investment_out", "investment_income"})
MARKET_TYPES = frozenset({"market_out", "market_income"})
RESERVE_TYPES = frozenset({"investment_out", "market_out"})


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class StoreError(RuntimeError):
    """A period lookup/creation or a record insert was rejected by the store."""


class NotAuthenticatedError(RuntimeError):
    """An import was attempted without a user; nothing is committed."""


class UnsupportedFormatError(ValueError):
    """The statement is neither OFX nor delimited text."""


# ---------------------------------------------------------------------------
# Parsed records
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RawTransaction:
    """One parsed statement line.

    ``id`` is a format-prefixed ordinal (``"ofx-3"``, ``"csv-3"``) counted over
    the source records, so it stays stable when neighbouring records are
    dropped. ``amount`` is signed: negative means an outflow.
    """

    id: str
    date: str
    amount: Decimal
    description: str
    memo: str | None
    source: Source

    @property
    def year_month(self) -> tuple[int, int]:
        d = date.fromisoformat(self.date)
        return d.year, d.month


@dataclass(frozen=True, slots=True)
class ParseResult:
    """Transactions a parser accepted plus the count of silently dropped records."""

    transactions: tuple[RawTransaction, ...] = ()
    dropped: int = 0

    def __len__(self) -> int:
        return len(self.transactions)


@dataclass(frozen=True, slots=True)
class CsvTable:
    """Tokenized delimited text: header names and raw string cells."""

    headers: tuple[str, ...] = ()
    rows: tuple[tuple[str, ...], ...] = ()
    delimiter: str = ","


@dataclass(frozen=True, slots=True)
class UserCategory:
    """A user-defined category; ids are opaque user data."""

    id: str
    name: str
    type: BaseType


@dataclass(frozen=True, slots=True)
class ClassifiedRow:
    """A :class:`RawTransaction` plus its recomputable classification."""

    transaction: RawTransaction
    semantic_type: SemanticType
    base_type: BaseType
    suggested_category_id: str | None = None

    @property
    def id(self) -> str:
        return self.transaction.id

    @property
    def is_transfer(self) -> bool:
        return self.semantic_type in TRANSFER_TYPES


# ---------------------------------------------------------------------------
# Import outcomes
# ---------------------------------------------------------------------------


class RowState(StrEnum):
    PENDING = "pending"
    SKIPPED = "skipped"
    COMMITTED = "committed"
    FAILED = "failed"


class ImportStatus(StrEnum):
    NOTHING_TO_IMPORT = "nothing_to_import"
    COMPLETED = "completed"
    COMPLETED_WITH_FAILURES = "completed_with_failures"


@dataclass(frozen=True, slots=True)
class RowResult:
    row_id: str
    state: RowState
    # Where the row went: "income", "expense" or "reserve".
    target: str | None = None
    error: str | None = None


@dataclass(frozen=True, slots=True)
class ImportReport:
    """Aggregate outcome of one import run.

    ``total`` counts every classified row handed to the importer, skipped
    ones included.
    """

    status: ImportStatus
    total: int
    committed: int
    failed: int
    skipped: int
    rows: tuple[RowResult, ...] = field(default=())

    @property
    def accepted(self) -> int:
        return self.total - self.skipped


__all__ = [
    "Source",
    "BaseType",
    "SemanticType",
    "ReserveType",
    "SEMANTIC_TYPES",
    "TRANSFER_TYPES",
    "INVESTMENT_TYPES",
    "MARKET_TYPES",
    "RESERVE_TYPES",
    "StoreError",
    "NotAuthenticatedError",
    "UnsupportedFormatError",
    "RawTransaction",
    "ParseResult",
    "CsvTable",
    "UserCategory",
    "ClassifiedRow",
    "RowState",
    "ImportStatus",
    "RowResult",
    "ImportReport",
]
