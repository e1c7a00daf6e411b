from __future__ import annotations

from pathlib import Path

import pytest
from sqlalchemy import func, select
from typer.testing import CliRunner

from db.client import session_scope
from db.models.finance import Expense, Income, ReserveInvestment
from statement_import.cli import app

from tests.helpers.db import bootstrap_sqlite_db
from tests.helpers.statements import MIXED_OFX, SEMICOLON_CSV, write_statement

runner = CliRunner()


@pytest.fixture(autouse=True)
def _no_dotenv(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    # The CLI loads ./.env; run from an empty directory.
    monkeypatch.chdir(tmp_path)


def test_preview_ofx_prints_rows_and_summary(tmp_path: Path):
    path = write_statement(tmp_path, "extrato.ofx", MIXED_OFX, encoding="cp1252")

    result = runner.invoke(app, ["preview", "--file", str(path)])

    assert result.exit_code == 0, result.output
    assert "[ofx-0]" in result.output
    assert "[ofx-4]" not in result.output
    assert "Transf. enviada" in result.output
    assert "rows=5 skipped=0" in result.output
    assert "investment=1000.00" in result.output
    assert "transfer_out=200.00" in result.output


def test_preview_filters_and_flags(tmp_path: Path):
    path = write_statement(tmp_path, "extrato.ofx", MIXED_OFX)

    result = runner.invoke(
        app, ["preview", "--file", str(path), "--type", "transfer", "--ignore-transfers"]
    )

    assert result.exit_code == 0, result.output
    assert "[ofx-2]" in result.output
    assert "IGNORADA" in result.output
    assert "rows=1 skipped=1" in result.output


def test_preview_csv_with_column_override(tmp_path: Path):
    path = write_statement(tmp_path, "extrato.csv", SEMICOLON_CSV)

    result = runner.invoke(app, ["preview", "--file", str(path), "--description-column", "Nada"])

    assert result.exit_code == 0, result.output
    assert "rows=0" in result.output


def test_preview_missing_file_is_a_single_error_line(tmp_path: Path):
    result = runner.invoke(app, ["preview", "--file", str(tmp_path / "nope.ofx")])

    assert result.exit_code == 1
    assert "Error: File not found" in result.output


def test_preview_unsupported_format(tmp_path: Path):
    path = write_statement(tmp_path, "statement.bin", "hello world\n")

    result = runner.invoke(app, ["preview", "--file", str(path)])

    assert result.exit_code == 1
    assert "Error: unsupported statement format" in result.output


def test_import_commits_to_database(tmp_path: Path):
    url = bootstrap_sqlite_db(tmp_path / "ledger.sqlite3")
    path = write_statement(tmp_path, "extrato.ofx", MIXED_OFX)

    result = runner.invoke(
        app,
        ["import", "--file", str(path), "--user-id", "u1", "--database-url", url, "--ignore", "ofx-0"],
    )

    assert result.exit_code == 0, result.output
    assert "committed=4 failed=0 skipped=1" in result.output
    with session_scope(database_url=url) as s:
        count = lambda model: s.execute(select(func.count()).select_from(model)).scalar_one()  # noqa: E731
        assert count(Income) == 2
        assert count(Expense) == 1
        assert count(ReserveInvestment) == 1


def test_import_requires_user(tmp_path: Path):
    url = bootstrap_sqlite_db(tmp_path / "ledger.sqlite3")
    path = write_statement(tmp_path, "extrato.ofx", MIXED_OFX)

    result = runner.invoke(app, ["import", "--file", str(path), "--database-url", url])

    assert result.exit_code == 1
    assert "Error: an authenticated user is required" in result.output


def test_import_nothing_to_import(tmp_path: Path):
    url = bootstrap_sqlite_db(tmp_path / "ledger.sqlite3")
    path = write_statement(tmp_path, "vazio.csv", "Data;Valor;Descricao\n")

    result = runner.invoke(
        app, ["import", "--file", str(path), "--user-id", "u1", "--database-url", url]
    )

    assert result.exit_code == 0, result.output
    assert "Nothing to import" in result.output


def test_import_without_database_url(tmp_path: Path):
    path = write_statement(tmp_path, "extrato.ofx", MIXED_OFX)

    result = runner.invoke(app, ["import", "--file", str(path), "--user-id", "u1"])

    assert result.exit_code == 1
    assert "Error: DATABASE_URL is not set" in result.output


def test_user_id_from_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    url = bootstrap_sqlite_db(tmp_path / "ledger.sqlite3")
    path = write_statement(tmp_path, "extrato.csv", SEMICOLON_CSV)
    monkeypatch.setenv("STATEMENT_IMPORT_USER_ID", "u9")
    monkeypatch.setenv("DATABASE_URL", url)

    result = runner.invoke(app, ["import", "--file", str(path)])

    assert result.exit_code == 0, result.output
    assert "committed=4 failed=0 skipped=0" in result.output


def test_help_lists_column_and_flag_options():
    result = runner.invoke(app, ["preview", "--help"])

    assert result.exit_code == 0, result.output
    for flag in ("--file", "--date-column", "--type-column", "--auto-detect", "--ignore-transfers"):
        assert flag in result.output


def test_preview_without_auto_detect_uses_sign_only(tmp_path: Path):
    path = write_statement(tmp_path, "extrato.ofx", MIXED_OFX)

    result = runner.invoke(app, ["preview", "--file", str(path), "--no-auto-detect"])

    assert result.exit_code == 0, result.output
    assert "investment=0.00" in result.output
    assert "transfer_out=0.00" in result.output


def test_import_with_failed_rows_exits_2(tmp_path: Path):
    url = bootstrap_sqlite_db(tmp_path / "ledger.sqlite3")
    path = write_statement(
        tmp_path,
        "extrato.csv",
        "Data;Valor;Descricao\n"
        "05/01/2024;1000000000000000000000000000000,00;Enorme\n"
        "06/01/2024;10,00;Normal\n",
    )

    result = runner.invoke(
        app, ["import", "--file", str(path), "--user-id", "u1", "--database-url", url]
    )

    assert result.exit_code == 2, result.output
    assert "committed=1 failed=1 skipped=0" in result.output
    with session_scope(database_url=url) as s:
        assert s.execute(select(Income.name)).scalars().all() == ["Normal"]
