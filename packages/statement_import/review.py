"""Review layer: user corrections over computed classifications.

The overlay stores only what the user changed (ignored flag, description
override, category choice) keyed by transaction id. Parsed transactions are
never mutated, and every derived value (semantic type, suggestion, effective
description, skip state) is recomputed by :func:`derive_rows` from
``(transactions, overlay, settings, categories)``.

The preview helpers (:class:`PreviewFilter`, :func:`filter_rows`,
:func:`summarize`, :func:`type_label`) back the pre-import table.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Literal

from .classify import base_type_of, classify
from .config import ImportSettings
from .ingest.column_mapping import ColumnMapping, lift_rows
from .models import (
    INVESTMENT_TYPES,
    MARKET_TYPES,
    TRANSFER_TYPES,
    ClassifiedRow,
    CsvTable,
    RawTransaction,
    UserCategory,
)
from .suggest import build_category_index, suggest_category
from .text import normalize_text

# ----------------------------------------------------------------------------
# Overlay
# ----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class OverlayEntry:
    """User corrections for one row.

    ``category_set`` distinguishes an explicit "no category" choice
    (``category_id=None``) from no choice at all.
    """

    ignored: bool = False
    description_override: str | None = None
    category_id: str | None = None
    category_set: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.ignored and self.description_override is None and not self.category_set


class ReviewOverlay:
    """Per-row corrections keyed by :attr:`RawTransaction.id`.

    Entries that return to defaults are removed, so an empty overlay means
    "no corrections".
    """

    def __init__(self) -> None:
        self._entries: dict[str, OverlayEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, row_id: object) -> bool:
        return row_id in self._entries

    def get(self, row_id: str) -> OverlayEntry:
        return self._entries.get(row_id, OverlayEntry())

    def ids(self) -> frozenset[str]:
        return frozenset(self._entries)

    def _put(self, row_id: str, entry: OverlayEntry) -> None:
        if entry.is_empty:
            self._entries.pop(row_id, None)
        else:
            self._entries[row_id] = entry

    def set_ignored(self, row_id: str, ignored: bool) -> None:
        self._put(row_id, replace(self.get(row_id), ignored=ignored))

    def toggle_ignored(self, row_id: str) -> bool:
        """Flip the ignored flag; returns the new value."""

        new_value = not self.get(row_id).ignored
        self.set_ignored(row_id, new_value)
        return new_value

    def set_description(self, tx: RawTransaction, text: str | None) -> None:
        """Override the description of ``tx``.

        Blank text, or text equal to the original description, clears the
        override.
        """

        cleaned = (text or "").strip()
        override = cleaned if cleaned and cleaned != tx.description else None
        self._put(tx.id, replace(self.get(tx.id), description_override=override))

    def set_category(self, row_id: str, category_id: str | None) -> None:
        """Record an explicit category choice (``None`` = no category)."""

        self._put(row_id, replace(self.get(row_id), category_id=category_id, category_set=True))

    def clear_category(self, row_id: str) -> None:
        self._put(row_id, replace(self.get(row_id), category_id=None, category_set=False))

    def clear(self, row_id: str | None = None) -> None:
        """Drop one row's entry, or every entry when ``row_id`` is ``None``."""

        if row_id is None:
            self._entries.clear()
        else:
            self._entries.pop(row_id, None)

    def prune(self, valid_ids: Iterable[str]) -> int:
        """Drop entries whose id is not in ``valid_ids``; returns how many went."""

        keep = set(valid_ids)
        stale = [k for k in self._entries if k not in keep]
        for k in stale:
            del self._entries[k]
        return len(stale)


def effective_description(tx: RawTransaction, entry: OverlayEntry) -> str:
    override = (entry.description_override or "").strip()
    if override and override != tx.description:
        return override
    return tx.description


# ----------------------------------------------------------------------------
# Derivation
# ----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DerivedRow:
    """A classified row with the overlay applied, ready for preview or import."""

    row: ClassifiedRow
    description: str
    category_id: str | None
    ignored: bool
    skipped: bool

    @property
    def id(self) -> str:
        return self.row.id

    @property
    def transaction(self) -> RawTransaction:
        return self.row.transaction

    @property
    def semantic_type(self) -> str:
        return self.row.semantic_type

    @property
    def base_type(self) -> str:
        return self.row.base_type

    @property
    def is_transfer(self) -> bool:
        return self.row.is_transfer


def classify_rows(
    transactions: Iterable[RawTransaction],
    *,
    auto_detect_investments: bool = True,
    categories: Iterable[UserCategory] = (),
) -> list[ClassifiedRow]:
    index = build_category_index(categories)
    rows: list[ClassifiedRow] = []
    for tx in transactions:
        semantic = classify(tx, auto_detect_investments)
        base = base_type_of(tx.amount)
        rows.append(
            ClassifiedRow(
                transaction=tx,
                semantic_type=semantic,
                base_type=base,
                suggested_category_id=suggest_category(tx, base, semantic, index),
            )
        )
    return rows


def derive_rows(
    transactions: Iterable[RawTransaction],
    overlay: ReviewOverlay | None = None,
    settings: ImportSettings | None = None,
    categories: Iterable[UserCategory] = (),
) -> list[DerivedRow]:
    """Recompute every derived field from scratch.

    Skipped means ignored by the user, or a transfer while
    ``settings.ignore_transfers`` is on. An explicit category choice in the
    overlay wins over the suggestion.
    """

    overlay = overlay if overlay is not None else ReviewOverlay()
    settings = settings if settings is not None else ImportSettings()
    derived: list[DerivedRow] = []
    classified = classify_rows(
        transactions,
        auto_detect_investments=settings.auto_detect_investments,
        categories=categories,
    )
    for row in classified:
        entry = overlay.get(row.id)
        category_id = entry.category_id if entry.category_set else row.suggested_category_id
        derived.append(
            DerivedRow(
                row=row,
                description=effective_description(row.transaction, entry),
                category_id=category_id,
                ignored=entry.ignored,
                skipped=entry.ignored or (settings.ignore_transfers and row.is_transfer),
            )
        )
    return derived


def seed_suggestions(overlay: ReviewOverlay, rows: Iterable[ClassifiedRow | DerivedRow]) -> int:
    """Copy suggestions into the overlay for rows without a category choice.

    Runs once per freshly loaded transaction set; existing choices are never
    overwritten. Returns the number of rows seeded.
    """

    seeded = 0
    for item in rows:
        classified = item.row if isinstance(item, DerivedRow) else item
        if overlay.get(classified.id).category_set:
            continue
        if classified.suggested_category_id is None:
            continue
        overlay.set_category(classified.id, classified.suggested_category_id)
        seeded += 1
    return seeded


# ----------------------------------------------------------------------------
# Preview filtering and summary
# ----------------------------------------------------------------------------

type TypeGroup = Literal["all", "income", "expense", "transfer", "investment", "market"]
type StatusFilter = Literal["all", "active", "ignored"]

_GROUPS: dict[str, frozenset[str]] = {
    "income": frozenset({"income"}),
    "expense": frozenset({"expense"}),
    "transfer": TRANSFER_TYPES,
    "investment": INVESTMENT_TYPES,
    "market": MARKET_TYPES,
}


@dataclass(frozen=True, slots=True)
class PreviewFilter:
    query: str = ""
    type_group: TypeGroup = "all"
    status: StatusFilter = "all"
    date_from: str | None = None
    date_to: str | None = None
    min_value: Decimal | None = None
    max_value: Decimal | None = None

    @property
    def is_active(self) -> bool:
        return bool(
            self.query.strip()
            or self.type_group != "all"
            or self.status != "all"
            or self.date_from
            or self.date_to
            or self.min_value is not None
            or self.max_value is not None
        )

    def matches(self, row: DerivedRow) -> bool:
        group = _GROUPS.get(self.type_group)
        if group is not None and row.semantic_type not in group:
            return False
        if self.status == "ignored" and not row.skipped:
            return False
        if self.status == "active" and row.skipped:
            return False
        tx = row.transaction
        if self.date_from and tx.date < self.date_from:
            return False
        if self.date_to and tx.date > self.date_to:
            return False
        magnitude = abs(tx.amount)
        if self.min_value is not None and magnitude < self.min_value:
            return False
        if self.max_value is not None and magnitude > self.max_value:
            return False
        query = normalize_text(self.query.strip())
        if not query:
            return True
        return query in normalize_text(f"{row.description} {tx.memo or ''}")


def filter_rows(
    rows: Iterable[DerivedRow], preview_filter: PreviewFilter | None
) -> list[DerivedRow]:
    if preview_filter is None:
        return list(rows)
    return [r for r in rows if preview_filter.matches(r)]


@dataclass(frozen=True, slots=True)
class PreviewSummary:
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")
    investment: Decimal = Decimal("0")
    market: Decimal = Decimal("0")
    transfer_in: Decimal = Decimal("0")
    transfer_out: Decimal = Decimal("0")
    investment_income: Decimal = Decimal("0")
    skipped: int = 0

    @property
    def total(self) -> Decimal:
        return self.income + self.expense + self.investment + self.market


def summarize(rows: Iterable[DerivedRow]) -> PreviewSummary:
    """Totals over non-skipped rows, by absolute amount."""

    acc: dict[str, Decimal] = {
        "income": Decimal("0"),
        "expense": Decimal("0"),
        "investment": Decimal("0"),
        "market": Decimal("0"),
        "transfer_in": Decimal("0"),
        "transfer_out": Decimal("0"),
        "investment_income": Decimal("0"),
    }
    skipped = 0
    for row in rows:
        if row.skipped:
            skipped += 1
            continue
        amount = abs(row.transaction.amount)
        kind = row.semantic_type
        if kind == "investment_out":
            acc["investment"] += amount
        elif kind == "market_out":
            acc["market"] += amount
        elif kind in ("investment_income", "market_income"):
            acc["income"] += amount
            acc["investment_income"] += amount
        elif kind == "transfer_in":
            acc["income"] += amount
            acc["transfer_in"] += amount
        elif kind == "transfer_out":
            acc["expense"] += amount
            acc["transfer_out"] += amount
        elif kind == "income":
            acc["income"] += amount
        else:
            acc["expense"] += amount
    return PreviewSummary(skipped=skipped, **acc)


def type_label(semantic_type: str, amount: Decimal) -> str:
    """Display label used by the preview table."""

    if semantic_type == "investment_out":
        return "Investimento"
    if semantic_type == "market_out":
        return "Carteira"
    if semantic_type in ("investment_income", "market_income"):
        return "Receb. investimento"
    if semantic_type == "transfer_in":
        return "Transf. recebida"
    if semantic_type == "transfer_out":
        return "Transf. enviada"
    return "Receita" if amount >= 0 else "Despesa"


# ----------------------------------------------------------------------------
# Session
# ----------------------------------------------------------------------------


@dataclass
class ReviewSession:
    """One loaded dataset plus its overlay.

    Loading a file or changing the CSV column mapping replaces the
    transactions, discards the overlay, and seeds category suggestions once.
    """

    settings: ImportSettings = field(default_factory=ImportSettings)
    categories: Sequence[UserCategory] = ()
    transactions: tuple[RawTransaction, ...] = ()
    overlay: ReviewOverlay = field(default_factory=ReviewOverlay)
    csv_table: CsvTable | None = None
    mapping: ColumnMapping | None = None

    def load(self, transactions: Iterable[RawTransaction]) -> None:
        self.transactions = tuple(transactions)
        self.overlay = ReviewOverlay()
        seed_suggestions(
            self.overlay,
            classify_rows(
                self.transactions,
                auto_detect_investments=self.settings.auto_detect_investments,
                categories=self.categories,
            ),
        )

    def load_csv(self, table: CsvTable, mapping: ColumnMapping) -> None:
        self.csv_table = table
        self.remap(mapping)

    def remap(self, mapping: ColumnMapping) -> None:
        if self.csv_table is None:
            raise ValueError("no CSV table loaded; column mapping applies to CSV only")
        self.mapping = mapping
        self.load(lift_rows(self.csv_table, mapping).transactions)

    def update_settings(self, **changes) -> None:
        # Flag changes recompute derived rows; the overlay survives.
        self.settings = ImportSettings.model_validate({**self.settings.model_dump(), **changes})

    def rows(self) -> list[DerivedRow]:
        return derive_rows(self.transactions, self.overlay, self.settings, self.categories)


__all__ = [
    "OverlayEntry",
    "ReviewOverlay",
    "effective_description",
    "DerivedRow",
    "classify_rows",
    "derive_rows",
    "seed_suggestions",
    "TypeGroup",
    "StatusFilter",
    "PreviewFilter",
    "filter_rows",
    "PreviewSummary",
    "summarize",
    "type_label",
    "ReviewSession",
]
