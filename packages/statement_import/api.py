"""Public orchestration for ``statement_import``.

These functions glue the pure pipeline (load → parse → classify → review
overlay) to the importer. They are what a UI event handler (file picked,
"Import" pressed) or the CLI calls.
"""

from __future__ import annotations

from collections.abc import Sequence
from os import PathLike

from .config import ImportSettings
from .importer import LedgerStore, run_import
from .ingest.column_mapping import ColumnMapping
from .ingest.utils import LoadedStatement, load_statement
from .models import ImportReport, UserCategory
from .review import (
    DerivedRow,
    PreviewFilter,
    PreviewSummary,
    ReviewOverlay,
    ReviewSession,
    filter_rows,
    summarize,
)


def open_review(
    statement: LoadedStatement,
    *,
    settings: ImportSettings | None = None,
    categories: Sequence[UserCategory] = (),
    mapping: ColumnMapping | None = None,
) -> ReviewSession:
    """Start a review over a loaded statement, seeding category suggestions."""

    review = ReviewSession(
        settings=settings if settings is not None else ImportSettings(),
        categories=tuple(categories),
    )
    if statement.csv_table is not None:
        review.load_csv(statement.csv_table, mapping or statement.mapping or ColumnMapping())
    else:
        review.load(statement.transactions().transactions)
    return review


def preview_statement(
    path: str | PathLike[str],
    *,
    settings: ImportSettings | None = None,
    categories: Sequence[UserCategory] = (),
    mapping: ColumnMapping | None = None,
    preview_filter: PreviewFilter | None = None,
) -> tuple[list[DerivedRow], PreviewSummary]:
    """Derived rows for ``path`` (filtered) and the summary of those rows."""

    review = open_review(
        load_statement(path), settings=settings, categories=categories, mapping=mapping
    )
    rows = filter_rows(review.rows(), preview_filter)
    return rows, summarize(rows)


def import_statement(
    path: str | PathLike[str],
    *,
    user_id: str | None,
    store: LedgerStore,
    settings: ImportSettings | None = None,
    categories: Sequence[UserCategory] = (),
    overlay: ReviewOverlay | None = None,
    mapping: ColumnMapping | None = None,
) -> ImportReport:
    """Load, classify and commit ``path`` in one call.

    A caller-supplied ``overlay`` replaces the seeded one (stale ids are
    pruned first).
    """

    review = open_review(
        load_statement(path), settings=settings, categories=categories, mapping=mapping
    )
    if overlay is not None:
        overlay.prune(tx.id for tx in review.transactions)
        review.overlay = overlay
    return run_import(review.rows(), user_id=user_id, store=store, settings=review.settings)


__all__ = ["open_review", "preview_statement", "import_statement"]
