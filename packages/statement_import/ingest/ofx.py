"""OFX statement parser.

Works on the decoded text of both SGML-style OFX 1.x (unclosed leaf tags) and
XML-style OFX 2.x. The document is split on ``<STMTTRN>``; each block yields
at most one :class:`~statement_import.models.RawTransaction`.

Contract
--------
- ``DTPOSTED``: the first 8 digits (``YYYYMMDD``) become ``YYYY-MM-DD``.
- ``TRNAMT``: signed decimal, ``.`` or ``,`` as decimal separator.
- ``NAME``: description; falls back to ``MEMO`` when absent or blank.
- ``MEMO``: optional.

A block with an invalid date, an unparsable amount, or no name is dropped.
Drops are counted on the :class:`~statement_import.models.ParseResult`; the
parser itself never raises.
"""

from __future__ import annotations

import html
import re

from ..logging_setup import get_logger
from ..models import ParseResult, RawTransaction
from .amounts import ofx_date_to_iso, parse_amount

_log = get_logger("statement_import.ingest.ofx")

_BLOCK_SPLIT_RE = re.compile(r"<STMTTRN>", re.IGNORECASE)
_BLOCK_END_RE = re.compile(r"</STMTTRN>", re.IGNORECASE)
_TAG_RE_CACHE: dict[str, re.Pattern[str]] = {}


def _tag_value(block: str, tag: str) -> str:
    pattern = _TAG_RE_CACHE.get(tag)
    if pattern is None:
        pattern = re.compile(rf"<{tag}>([^<\r\n]*)", re.IGNORECASE)
        _TAG_RE_CACHE[tag] = pattern
    m = pattern.search(block)
    if m is None:
        return ""
    return html.unescape(m.group(1)).strip()


def split_blocks(content: str) -> list[str]:
    """Return the text of each ``<STMTTRN>`` block, in document order."""

    blocks = _BLOCK_SPLIT_RE.split(content)[1:]
    # Cut at the closing tag so trailing aggregates (LEDGERBAL etc.) never leak in.
    return [_BLOCK_END_RE.split(b, maxsplit=1)[0] for b in blocks]


def parse_ofx_block(block: str, ordinal: int) -> RawTransaction | None:
    """Parse one transaction block; ``None`` when the block is malformed."""

    date = ofx_date_to_iso(_tag_value(block, "DTPOSTED"))
    amount = parse_amount(_tag_value(block, "TRNAMT"))
    memo = _tag_value(block, "MEMO")
    name = _tag_value(block, "NAME") or memo
    if date is None or amount is None or not name:
        return None
    return RawTransaction(
        id=f"ofx-{ordinal}",
        date=date,
        amount=amount,
        description=name,
        memo=memo or None,
        source="ofx",
    )


def parse_ofx(content: str) -> ParseResult:
    """Parse a full OFX document into transactions, preserving block order."""

    accepted: list[RawTransaction] = []
    dropped = 0
    for ordinal, block in enumerate(split_blocks(content)):
        tx = parse_ofx_block(block, ordinal)
        if tx is None:
            dropped += 1
            _log.debug("dropping malformed OFX block #%d", ordinal)
            continue
        accepted.append(tx)
    _log.info("parsed OFX: %d transactions, %d dropped", len(accepted), dropped)
    return ParseResult(transactions=tuple(accepted), dropped=dropped)


__all__ = ["split_blocks", "parse_ofx_block", "parse_ofx"]
