"""Text normalization shared by every keyword heuristic."""

from __future__ import annotations

import unicodedata


def normalize_text(value: str | None) -> str:
    """Return the compare-key for ``value``.

    Lowercases, applies canonical decomposition (NFD) and drops combining
    marks, so ``"Aplicação"`` and ``"aplicacao"`` produce the same key. The
    function is idempotent. ``None`` maps to ``""``.
    """

    if not value:
        return ""
    decomposed = unicodedata.normalize("NFD", value.lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def has_keyword(normalized: str, keywords) -> bool:
    """True when any of ``keywords`` is a substring of ``normalized``."""

    return any(k in normalized for k in keywords)


__all__ = ["normalize_text", "has_keyword"]
