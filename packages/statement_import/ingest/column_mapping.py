"""CSV column mapping and row lifting.

A :class:`ColumnMapping` assigns header names to the roles a transaction
needs. :func:`guess_mapping` proposes one from the headers using bilingual
keyword lists; callers may override any role afterwards. :func:`lift_rows`
turns a :class:`~statement_import.models.CsvTable` into transactions through
a mapping, dropping rows that cannot be read.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from typing import Literal

from ..logging_setup import get_logger
from ..models import CsvTable, ParseResult, RawTransaction
from ..text import normalize_text
from .amounts import csv_date_to_iso, parse_amount

_log = get_logger("statement_import.ingest.column_mapping")

type Role = Literal["date", "amount", "description", "memo", "type"]

REQUIRED_ROLES: tuple[Role, ...] = ("date", "amount", "description")
OPTIONAL_ROLES: tuple[Role, ...] = ("memo", "type")

# Matched as substrings of the normalized header; first matching header wins.
ROLE_KEYWORDS: dict[str, tuple[str, ...]] = {
    "date": ("data", "date", "dt"),
    "amount": ("valor", "amount", "value", "vlr"),
    "description": ("descricao", "description", "historico", "nome", "name"),
    "memo": ("memo", "obs", "detalhe", "details"),
    "type": ("tipo", "type", "debito", "credito"),
}


@dataclass(frozen=True, slots=True)
class ColumnMapping:
    """Header name per role; ``""`` means the role is not mapped."""

    date: str = ""
    amount: str = ""
    description: str = ""
    memo: str = ""
    type: str = ""

    @property
    def is_complete(self) -> bool:
        return all(getattr(self, role) for role in REQUIRED_ROLES)

    @property
    def missing_roles(self) -> tuple[str, ...]:
        return tuple(role for role in REQUIRED_ROLES if not getattr(self, role))

    def with_role(self, role: Role, header: str | None) -> ColumnMapping:
        if role not in ROLE_KEYWORDS:
            raise ValueError(f"unknown column role: {role!r}")
        return replace(self, **{role: (header or "").strip()})


def guess_mapping(headers: Sequence[str]) -> ColumnMapping:
    """Guess every role from ``headers``; unmatched roles stay unmapped."""

    keys = [normalize_text(h) for h in headers]

    def guess(keywords: tuple[str, ...]) -> str:
        for header, key in zip(headers, keys, strict=True):
            if any(k in key for k in keywords):
                return header
        return ""

    return ColumnMapping(**{role: guess(kw) for role, kw in ROLE_KEYWORDS.items()})


def infer_type_hint(value: str | None) -> Literal["income", "expense"] | None:
    """Read a debit/credit marker from a type column, if recognizable."""

    text = normalize_text((value or "").strip())
    if not text:
        return None
    if "deb" in text or "desp" in text or text == "d":
        return "expense"
    if "cred" in text or "rec" in text or text == "c":
        return "income"
    return None


def _cell(row: Sequence[str], index: int) -> str:
    if index < 0 or index >= len(row):
        return ""
    return row[index]


def lift_row(
    row: Sequence[str],
    ordinal: int,
    *,
    indices: dict[str, int],
) -> RawTransaction | None:
    """Lift one CSV row; ``None`` when a required value is missing or unreadable.

    Sign resolution, in priority order: an expense hint forces negative, an
    income hint forces positive, a raw amount starting with ``-`` forces
    negative, otherwise the parsed sign stands.
    """

    raw_amount = _cell(row, indices["amount"])
    date = csv_date_to_iso(_cell(row, indices["date"]))
    description = _cell(row, indices["description"]).strip()
    amount = parse_amount(raw_amount)
    if date is None or not description or amount is None:
        return None

    hint = infer_type_hint(_cell(row, indices["type"]))
    if hint == "expense":
        amount = -abs(amount)
    elif hint == "income":
        amount = abs(amount)
    elif raw_amount.strip().startswith("-"):
        amount = -abs(amount)

    memo = _cell(row, indices["memo"]).strip()
    return RawTransaction(
        id=f"csv-{ordinal}",
        date=date,
        amount=amount,
        description=description,
        memo=memo or None,
        source="csv",
    )


def lift_rows(table: CsvTable, mapping: ColumnMapping) -> ParseResult:
    """Lift every data row of ``table`` through ``mapping``.

    An incomplete mapping, or one naming a required header the file does not
    have, yields an empty result.
    """

    if not mapping.is_complete:
        return ParseResult()

    def index_of(header: str) -> int:
        try:
            return table.headers.index(header) if header else -1
        except ValueError:
            return -1

    indices = {role: index_of(getattr(mapping, role)) for role in ROLE_KEYWORDS}
    if any(indices[role] < 0 for role in REQUIRED_ROLES):
        _log.info("mapping names headers absent from the file: %s", mapping)
        return ParseResult()

    accepted: list[RawTransaction] = []
    dropped = 0
    for ordinal, row in enumerate(table.rows):
        tx = lift_row(row, ordinal, indices=indices)
        if tx is None:
            dropped += 1
            _log.debug("dropping unreadable CSV row #%d", ordinal)
            continue
        accepted.append(tx)
    _log.info("lifted CSV: %d transactions, %d dropped", len(accepted), dropped)
    return ParseResult(transactions=tuple(accepted), dropped=dropped)


__all__ = [
    "Role",
    "REQUIRED_ROLES",
    "OPTIONAL_ROLES",
    "ROLE_KEYWORDS",
    "ColumnMapping",
    "guess_mapping",
    "infer_type_hint",
    "lift_row",
    "lift_rows",
]
