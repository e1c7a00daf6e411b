"""Import settings.

The switches the import screen exposes (investment auto-detection, ignoring
transfers, the default expense payment method) plus the database URL, as a
validated pydantic model. ``from_env`` reads the same knobs from the
environment; the CLI loads ``.env`` first and lets explicit flags win.
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, field_validator

from .text import normalize_text

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _env_bool(raw: str | None, default: bool) -> bool:
    if raw is None:
        return default
    v = raw.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    return default


class ImportSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    auto_detect_investments: bool = True
    ignore_transfers: bool = False
    default_payment_method: str = "debit"
    instant_payment_marker: str = "pix"
    instant_payment_method: str = "pix"
    database_url: str | None = None

    @field_validator("default_payment_method", "instant_payment_method")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("payment method must be non-empty")
        return v

    @field_validator("instant_payment_marker")
    @classmethod
    def _normalized_marker(cls, v: str) -> str:
        key = normalize_text(v)
        if not key:
            raise ValueError("instant_payment_marker must be non-empty")
        return key

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides) -> ImportSettings:
        """Build settings from environment variables; ``overrides`` win when not ``None``."""

        env = os.environ if environ is None else environ
        values: dict[str, object] = {
            "auto_detect_investments": _env_bool(env.get("STATEMENT_IMPORT_AUTO_DETECT"), True),
            "ignore_transfers": _env_bool(env.get("STATEMENT_IMPORT_IGNORE_TRANSFERS"), False),
            "default_payment_method": env.get("STATEMENT_IMPORT_PAYMENT_METHOD") or "debit",
            "database_url": env.get("DATABASE_URL") or None,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


__all__ = ["ImportSettings"]
