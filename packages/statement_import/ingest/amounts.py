"""Amount and date normalization shared by the statement parsers.

Both helpers return ``None`` instead of raising: a value that cannot be read
makes its record droppable, it never aborts a parse.
"""

from __future__ import annotations

import re
from datetime import datetime
from decimal import Decimal, InvalidOperation

_WS_RE = re.compile(r"\s+")
_ISO_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_SLASH_RE = re.compile(r"^\d{2}/\d{2}/\d{4}$")
_DASH_RE = re.compile(r"^\d{2}-\d{2}-\d{4}$")
_DIGITS_RE = re.compile(r"^[\d.,]*\d[\d.,]*$")


def parse_amount(raw: str | None) -> Decimal | None:
    """Parse a locale-tolerant decimal string.

    - whitespace and a leading ``R$``/``$`` are ignored;
    - a leading ``-`` or surrounding parentheses mean negative;
    - when a comma is present it is the decimal separator and dots are
      thousands separators (``"1.234,56"``); otherwise a single dot is the
      decimal point and repeated dots are thousands separators.

    Returns ``None`` for empty or non-numeric input, including exponent
    notation and ``NaN``/``Infinity``.
    """

    if raw is None:
        return None
    s = _WS_RE.sub("", raw)
    if not s:
        return None

    negative = False
    # Strip sign, currency symbol, and parentheses in any order until stable.
    while True:
        changed = False
        if s.startswith("+"):
            s = s[1:]
            changed = True
        elif s.startswith("-"):
            negative = True
            s = s[1:]
            changed = True
        for symbol in ("R$", "$"):
            if s.upper().startswith(symbol):
                s = s[len(symbol) :]
                changed = True
        if len(s) >= 2 and s.startswith("(") and s.endswith(")"):
            negative = True
            s = s[1:-1]
            changed = True
        if not changed:
            break

    if s.endswith("-"):
        # Some exports put the sign after the number ("150,00-").
        negative = True
        s = s[:-1]

    if not _DIGITS_RE.match(s):
        return None

    if "," in s:
        s = s.replace(".", "").replace(",", ".")
    elif s.count(".") > 1:
        s = s.replace(".", "")

    try:
        d = Decimal(s)
    except InvalidOperation:
        return None
    return -abs(d) if negative else d


def ofx_date_to_iso(raw: str | None) -> str | None:
    """Convert an OFX ``DTPOSTED`` (``YYYYMMDD[hhmmss...]``) to ``YYYY-MM-DD``."""

    if not raw:
        return None
    head = raw.strip()[:8]
    if len(head) != 8 or not head.isdigit():
        return None
    try:
        return datetime.strptime(head, "%Y%m%d").date().isoformat()
    except ValueError:
        return None


def csv_date_to_iso(raw: str | None) -> str | None:
    """Normalize ``YYYY-MM-DD``, ``DD/MM/YYYY`` or ``DD-MM-YYYY`` to ISO.

    Any other layout, or an impossible calendar date, yields ``None``.
    """

    if raw is None:
        return None
    s = raw.strip()
    if _ISO_RE.match(s):
        fmt = "%Y-%m-%d"
    elif _SLASH_RE.match(s):
        fmt = "%d/%m/%Y"
    elif _DASH_RE.match(s):
        fmt = "%d-%m-%Y"
    else:
        return None
    try:
        return datetime.strptime(s, fmt).date().isoformat()
    except ValueError:
        return None


__all__ = ["parse_amount", "ofx_date_to_iso", "csv_date_to_iso"]
