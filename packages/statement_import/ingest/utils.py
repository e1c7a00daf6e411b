"""Ingest utilities shared by the CLI and the orchestration API.

Reads a statement file, decodes it, decides whether it is OFX or delimited
text, and returns a :class:`LoadedStatement` that can produce transactions
(through a column mapping for CSV).
"""

from __future__ import annotations

from dataclasses import dataclass
from os import PathLike
from pathlib import Path
from typing import Literal

from ..models import CsvTable, ParseResult, UnsupportedFormatError
from .column_mapping import ColumnMapping, guess_mapping, lift_rows
from .delimited import parse_csv
from .ofx import parse_ofx

type StatementFormat = Literal["ofx", "csv"]

_CSV_SUFFIXES = {".csv", ".txt"}
_OFX_SUFFIXES = {".ofx", ".qfx"}


def decode_statement(data: bytes) -> str:
    """Decode statement bytes: UTF-8 (BOM tolerated), else cp1252, else latin-1.

    OFX 1.x exports from Brazilian banks are commonly ``CHARSET:1252``.
    """

    for encoding in ("utf-8-sig", "cp1252"):
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
    return data.decode("latin-1")


def detect_format(text: str, *, filename: str | None = None) -> StatementFormat:
    """Pick the parser by file extension, falling back to content sniffing."""

    suffix = Path(filename).suffix.lower() if filename else ""
    if suffix in _OFX_SUFFIXES:
        return "ofx"
    if suffix in _CSV_SUFFIXES:
        return "csv"
    head = text[:4096].upper()
    if "<OFX" in head or "OFXHEADER" in head or "<STMTTRN>" in text.upper():
        return "ofx"
    first_line = text.lstrip().split("\n", 1)[0]
    if "," in first_line or ";" in first_line:
        return "csv"
    raise UnsupportedFormatError(
        f"unsupported statement format: {filename or '<text>'} (expected OFX or CSV)"
    )


@dataclass(frozen=True, slots=True)
class LoadedStatement:
    """A decoded statement file.

    For CSV, ``csv_table`` holds the tokenized file and ``mapping`` the guessed
    column mapping; both are ``None`` for OFX.
    """

    format: StatementFormat
    filename: str | None
    text: str
    csv_table: CsvTable | None = None
    mapping: ColumnMapping | None = None

    def transactions(self, mapping: ColumnMapping | None = None) -> ParseResult:
        if self.format == "ofx":
            return parse_ofx(self.text)
        if self.csv_table is None:
            raise ValueError("CSV statement has no parsed table")
        effective = mapping if mapping is not None else self.mapping
        return lift_rows(self.csv_table, effective or ColumnMapping())


def load_text(text: str, *, filename: str | None = None) -> LoadedStatement:
    fmt = detect_format(text, filename=filename)
    if fmt == "ofx":
        return LoadedStatement(format="ofx", filename=filename, text=text)
    table = parse_csv(text)
    return LoadedStatement(
        format="csv",
        filename=filename,
        text=text,
        csv_table=table,
        mapping=guess_mapping(table.headers),
    )


def load_statement(path: str | PathLike[str]) -> LoadedStatement:
    """Read and decode ``path`` and prepare it for parsing."""

    p = Path(path)
    return load_text(decode_statement(p.read_bytes()), filename=p.name)


__all__ = [
    "StatementFormat",
    "LoadedStatement",
    "decode_statement",
    "detect_format",
    "load_text",
    "load_statement",
]
