# ruff: noqa: I001
"""CLI for the ``statement_import`` package.

A Typer console standing in for the import screen: ``preview`` shows how a
statement parses and classifies, ``import`` commits it to the database.
Environment variables (``DATABASE_URL``, ``STATEMENT_IMPORT_*``) are loaded
from a local ``.env`` with ``python-dotenv`` before any command runs; explicit
flags win over the environment. Business logic lives in
``statement_import.api`` and the modules it calls.
"""

from __future__ import annotations

import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from typer.models import OptionInfo

from .config import ImportSettings
from .logging_setup import configure_logging
from .models import (
    ImportReport,
    ImportStatus,
    NotAuthenticatedError,
    StoreError,
    UnsupportedFormatError,
    UserCategory,
)
from .review import DerivedRow, PreviewFilter, PreviewSummary
from .ingest.column_mapping import ColumnMapping


# ---- Small module-level helpers used by CLI commands -------------------------


def _mapping_overrides(
    base: ColumnMapping | None,
    *,
    date: str | None,
    amount: str | None,
    description: str | None,
    memo: str | None,
    type_: str | None,
) -> ColumnMapping | None:
    """Apply any ``--*-column`` flags on top of the guessed mapping."""

    overrides = {
        "date": date,
        "amount": amount,
        "description": description,
        "memo": memo,
        "type": type_,
    }
    if all(v is None for v in overrides.values()):
        return base
    mapping = base or ColumnMapping()
    for role, header in overrides.items():
        if header is not None:
            mapping = mapping.with_role(role, header)  # type: ignore[arg-type]
    return mapping


def _decimal_or_none(raw: str | None, flag: str) -> Decimal | None:
    if raw is None or raw.strip() == "":
        return None
    try:
        return Decimal(raw.strip().replace(",", "."))
    except InvalidOperation:
        raise typer.BadParameter(f"{flag} must be a number, got {raw!r}") from None


def _print_rows(rows: list[DerivedRow], *, show_all: bool) -> None:
    from .term_ui import format_row

    shown = rows if show_all else rows[:8]
    for row in shown:
        print(format_row(row))
    if len(shown) < len(rows):
        print(f"... {len(rows) - len(shown)} more (use --all)")


def _print_summary(summary: PreviewSummary, total_rows: int) -> None:
    print(
        f"rows={total_rows} skipped={summary.skipped} "
        f"income={summary.income:.2f} expense={summary.expense:.2f} "
        f"investment={summary.investment:.2f} market={summary.market:.2f} "
        f"transfer_in={summary.transfer_in:.2f} transfer_out={summary.transfer_out:.2f} "
        f"total={summary.total:.2f}"
    )


def _print_report(report: ImportReport) -> None:
    if report.status is ImportStatus.NOTHING_TO_IMPORT:
        print("Nothing to import")
        return
    print(f"committed={report.committed} failed={report.failed} skipped={report.skipped}")


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help="Import OFX/CSV bank statements: parse, classify, review, and commit.",
)


# Module-level option objects to satisfy ruff B008 (no calls in parameter
# defaults). Used inside ``Annotated``, so they carry names but no default.
FILE_OPTION: OptionInfo = typer.Option(
    ...,
    "--file",
    help="Path to an OFX or CSV statement",
    dir_okay=False,
    file_okay=True,
    exists=False,  # the handler reports missing files itself
)
DATE_COLUMN_OPTION: OptionInfo = typer.Option("--date-column", help="CSV header for dates")
AMOUNT_COLUMN_OPTION: OptionInfo = typer.Option("--amount-column", help="CSV header for amounts")
DESCRIPTION_COLUMN_OPTION: OptionInfo = typer.Option(
    "--description-column", help="CSV header for descriptions"
)
MEMO_COLUMN_OPTION: OptionInfo = typer.Option("--memo-column", help="CSV header for memos")
TYPE_COLUMN_OPTION: OptionInfo = typer.Option(
    "--type-column", help="CSV header with debit/credit markers"
)
AUTO_DETECT_OPTION: OptionInfo = typer.Option(
    "--auto-detect/--no-auto-detect",
    help="Detect transfers and investments from descriptions (default on).",
)
IGNORE_TRANSFERS_OPTION: OptionInfo = typer.Option(
    "--ignore-transfers/--keep-transfers",
    help="Skip rows classified as transfers (default off).",
)


def _settings(auto_detect: bool | None, ignore_transfers: bool | None, **extra) -> ImportSettings:
    return ImportSettings.from_env(
        auto_detect_investments=auto_detect, ignore_transfers=ignore_transfers, **extra
    )


def _load(file: Path):
    from .ingest.utils import load_statement

    try:
        return load_statement(file)
    except FileNotFoundError:
        print(f"Error: File not found: {file}", file=sys.stderr)
    except PermissionError:
        print(f"Error: Permission denied: {file}", file=sys.stderr)
    except UnsupportedFormatError as e:
        print(f"Error: {e}", file=sys.stderr)
    raise typer.Exit(1)


@app.command("preview")
def preview_cmd(
    file: Annotated[Path, FILE_OPTION],
    *,
    date_column: Annotated[str | None, DATE_COLUMN_OPTION] = None,
    amount_column: Annotated[str | None, AMOUNT_COLUMN_OPTION] = None,
    description_column: Annotated[str | None, DESCRIPTION_COLUMN_OPTION] = None,
    memo_column: Annotated[str | None, MEMO_COLUMN_OPTION] = None,
    type_column: Annotated[str | None, TYPE_COLUMN_OPTION] = None,
    auto_detect: Annotated[bool | None, AUTO_DETECT_OPTION] = None,
    ignore_transfers: Annotated[bool | None, IGNORE_TRANSFERS_OPTION] = None,
    search: str = typer.Option("", help="Filter by description/memo text."),
    type_group: str = typer.Option(
        "all", "--type", help="all, income, expense, transfer, investment or market."
    ),
    status: str = typer.Option("all", help="all, active or ignored."),
    date_from: str | None = typer.Option(None, help="Earliest date (YYYY-MM-DD)."),
    date_to: str | None = typer.Option(None, help="Latest date (YYYY-MM-DD)."),
    min_value: str | None = typer.Option(None, help="Minimum absolute amount."),
    max_value: str | None = typer.Option(None, help="Maximum absolute amount."),
    show_all: bool = typer.Option(False, "--all", help="Show every row, not just the first 8."),
) -> None:
    """Parse and classify a statement without writing anything."""

    from .api import open_review
    from .review import filter_rows, summarize

    if type_group not in ("all", "income", "expense", "transfer", "investment", "market"):
        raise typer.BadParameter(f"unknown --type {type_group!r}")
    if status not in ("all", "active", "ignored"):
        raise typer.BadParameter(f"unknown --status {status!r}")

    statement = _load(file)
    mapping = _mapping_overrides(
        statement.mapping,
        date=date_column,
        amount=amount_column,
        description=description_column,
        memo=memo_column,
        type_=type_column,
    )
    if statement.format == "csv" and mapping is not None and not mapping.is_complete:
        print(
            "Warning: CSV column mapping incomplete; missing " + ", ".join(mapping.missing_roles),
            file=sys.stderr,
        )

    review = open_review(
        statement, settings=_settings(auto_detect, ignore_transfers), mapping=mapping
    )
    preview_filter = PreviewFilter(
        query=search,
        type_group=type_group,  # type: ignore[arg-type]
        status=status,  # type: ignore[arg-type]
        date_from=date_from,
        date_to=date_to,
        min_value=_decimal_or_none(min_value, "--min-value"),
        max_value=_decimal_or_none(max_value, "--max-value"),
    )
    rows = filter_rows(review.rows(), preview_filter)
    _print_rows(rows, show_all=show_all)
    _print_summary(summarize(rows), len(rows))


@app.command("import")
def import_cmd(
    file: Annotated[Path, FILE_OPTION],
    *,
    user_id: str | None = typer.Option(
        None, envvar="STATEMENT_IMPORT_USER_ID", help="Owner of the imported records."
    ),
    database_url: str | None = typer.Option(
        None, help="Override DATABASE_URL (falls back to env var)."
    ),
    date_column: Annotated[str | None, DATE_COLUMN_OPTION] = None,
    amount_column: Annotated[str | None, AMOUNT_COLUMN_OPTION] = None,
    description_column: Annotated[str | None, DESCRIPTION_COLUMN_OPTION] = None,
    memo_column: Annotated[str | None, MEMO_COLUMN_OPTION] = None,
    type_column: Annotated[str | None, TYPE_COLUMN_OPTION] = None,
    auto_detect: Annotated[bool | None, AUTO_DETECT_OPTION] = None,
    ignore_transfers: Annotated[bool | None, IGNORE_TRANSFERS_OPTION] = None,
    ignore: list[str] = typer.Option([], "--ignore", help="Row id to skip (repeatable)."),
    review: bool = typer.Option(False, "--review", help="Review rows interactively first."),
) -> None:
    """Commit a statement's accepted rows to the database."""

    from .api import open_review
    from .importer import run_import
    from .persistence import SqlLedgerStore

    settings = _settings(auto_detect, ignore_transfers, database_url=database_url)
    statement = _load(file)
    mapping = _mapping_overrides(
        statement.mapping,
        date=date_column,
        amount=amount_column,
        description=description_column,
        memo=memo_column,
        type_=type_column,
    )

    if not settings.database_url:
        print("Error: DATABASE_URL is not set (use --database-url or .env)", file=sys.stderr)
        raise typer.Exit(1)

    store = SqlLedgerStore(database_url=settings.database_url)
    categories: list[UserCategory] = []
    if user_id:
        try:
            categories = store.load_user_categories(user_id)
        except StoreError as e:
            print(f"Error: {e}", file=sys.stderr)
            raise typer.Exit(1) from None

    session = open_review(statement, settings=settings, categories=categories, mapping=mapping)
    known = {tx.id for tx in session.transactions}
    for row_id in ignore:
        if row_id not in known:
            print(f"Warning: unknown row id {row_id!r}; ignored", file=sys.stderr)
            continue
        session.overlay.set_ignored(row_id, True)

    if review:
        from .term_ui import review_interactively

        review_interactively(session)

    try:
        report = run_import(session.rows(), user_id=user_id, store=store, settings=settings)
    except NotAuthenticatedError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise typer.Exit(1) from None

    _print_report(report)
    if report.status is ImportStatus.COMPLETED_WITH_FAILURES:
        raise typer.Exit(2)


@app.callback(invoke_without_command=True)
def _root(ctx: typer.Context) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding
    already-set variables) and configures package logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()

    if ctx.invoked_subcommand is None:
        typer.echo("No subcommand provided. Use --help to see available commands.")
        raise typer.Exit(1)


def main() -> None:  # pragma: no cover - console entry point
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
