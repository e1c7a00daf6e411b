"""Delimited-text (CSV) tokenizer.

Bank exports arrive comma- or semicolon-delimited depending on locale. The
delimiter is picked from the header line: more ``;`` than ``,`` means
semicolons. Tokenizing uses the stdlib :mod:`csv` reader so quoted fields may
contain the delimiter and ``""`` inside quotes is a literal quote. Blank lines
are skipped, cells are trimmed, and values are never interpreted here.
"""

from __future__ import annotations

import csv
import io

from ..models import CsvTable


def detect_delimiter(header_line: str) -> str:
    """Return ``";"`` when the header has more semicolons than commas, else ``","``."""

    return ";" if header_line.count(";") > header_line.count(",") else ","


def split_line(line: str, delimiter: str) -> list[str]:
    """Split a single line, honoring quotes. Cells are trimmed."""

    reader = csv.reader([line], delimiter=delimiter, quotechar='"', doublequote=True)
    for cells in reader:
        return [c.strip() for c in cells]
    return [""]


def parse_csv(content: str) -> CsvTable:
    """Tokenize ``content`` into headers and rows.

    The first non-blank line is the header. A leading UTF-8 BOM is ignored.
    """

    text = content.lstrip("\ufeff").replace("\r\n", "\n").replace("\r", "\n")
    lines = [line for line in text.split("\n") if line.strip()]
    if not lines:
        return CsvTable()

    delimiter = detect_delimiter(lines[0])
    reader = csv.reader(io.StringIO("\n".join(lines)), delimiter=delimiter, quotechar='"')
    parsed = [[c.strip() for c in cells] for cells in reader]
    headers = tuple(parsed[0]) if parsed else ()
    rows = tuple(tuple(r) for r in parsed[1:])
    return CsvTable(headers=headers, rows=rows, delimiter=delimiter)


__all__ = ["detect_delimiter", "split_line", "parse_csv"]
