"""Statement ingestion: OFX and delimited-text parsers plus CSV column mapping."""

from .column_mapping import ColumnMapping, guess_mapping, lift_rows
from .delimited import parse_csv
from .ofx import parse_ofx
from .utils import LoadedStatement, load_statement, load_text

__all__ = [
    "ColumnMapping",
    "guess_mapping",
    "lift_rows",
    "parse_csv",
    "parse_ofx",
    "LoadedStatement",
    "load_statement",
    "load_text",
]
