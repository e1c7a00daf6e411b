"""Keyword classifier for statement transactions.

Each transaction gets a semantic type from an ordered rule table evaluated
first-match-wins over the normalized ``description + " " + memo``. Transfer
and investment-income keywords are listed before the generic investment and
market buckets because statement wording overlaps: a returned investment
("resgate", "devolucao") must not read as a new investment outflow.

Keywords are stored already normalized (lowercase, no diacritics).
"""

from __future__ import annotations

from collections.abc import Callable
from decimal import Decimal
from typing import NamedTuple

from .models import TRANSFER_TYPES, BaseType, RawTransaction, SemanticType
from .text import has_keyword, normalize_text

TRANSFER_OUT_KEYWORDS: tuple[str, ...] = (
    "transferencia enviada pelo pix",
    "transferencia enviada",
)

TRANSFER_IN_KEYWORDS: tuple[str, ...] = (
    "transferencia recebida pelo pix",
    "transferencia recebida pelo pix via open banking",
    "transferencia recebida",
)

INVESTMENT_INCOME_KEYWORDS: tuple[str, ...] = (
    "devolucao",
    "rendimento",
    "resgate",
    "transferencia de saldo nuinvest",
)

MARKET_KEYWORDS: tuple[str, ...] = (
    "compra de fii",
    "fii",
    "compra de criptomoedas",
    "cripto",
    "btc",
)

INVESTMENT_KEYWORDS: tuple[str, ...] = (
    "aplicacao rdb",
    "aplicacao cdb",
    "aplicacao em investimento",
    "aplicacao",
    "investimento",
    "nuinvest",
    "transferencia de saldo nuinvest",
    "tesouro",
    "fundo",
    "rdb",
    "cdb",
)


def _by_sign(
    if_outflow: SemanticType, otherwise: SemanticType
) -> Callable[[Decimal], SemanticType]:
    return lambda amount: if_outflow if amount < 0 else otherwise


def _fixed(result: SemanticType) -> Callable[[Decimal], SemanticType]:
    return lambda _amount: result


class Rule(NamedTuple):
    """``keywords`` matched against the normalized text; ``resolve`` maps the amount to a type."""

    name: str
    keywords: tuple[str, ...]
    resolve: Callable[[Decimal], SemanticType]


RULES: tuple[Rule, ...] = (
    Rule("transfer_out", TRANSFER_OUT_KEYWORDS, _fixed("transfer_out")),
    Rule("transfer_in", TRANSFER_IN_KEYWORDS, _fixed("transfer_in")),
    Rule("investment_income", INVESTMENT_INCOME_KEYWORDS, _fixed("investment_income")),
    Rule("market", MARKET_KEYWORDS, _by_sign("market_out", "market_income")),
    Rule("investment", INVESTMENT_KEYWORDS, _by_sign("investment_out", "investment_income")),
)


def classification_text(tx: RawTransaction) -> str:
    """Normalized ``description + " " + memo`` used by every heuristic."""

    return normalize_text(f"{tx.description} {tx.memo or ''}")


def base_type_of(amount: Decimal) -> BaseType:
    """Sign rule: non-negative is income, negative is expense."""

    return "income" if amount >= 0 else "expense"


def classify(
    tx: RawTransaction,
    auto_detect_investments: bool = True,
    *,
    rules: tuple[Rule, ...] = RULES,
) -> SemanticType:
    """Return the semantic type of ``tx``.

    With ``auto_detect_investments`` off, only the sign rule applies.
    """

    if not auto_detect_investments:
        return base_type_of(tx.amount)
    text = classification_text(tx)
    for rule in rules:
        if has_keyword(text, rule.keywords):
            return rule.resolve(tx.amount)
    return base_type_of(tx.amount)


def is_transfer(semantic_type: str) -> bool:
    return semantic_type in TRANSFER_TYPES


def resolve_payment_method(
    tx: RawTransaction,
    *,
    default: str = "debit",
    marker: str = "pix",
    instant_method: str = "pix",
) -> str:
    """Payment method recorded on an expense.

    Any mention of the instant-payment ``marker``, outgoing transfers
    included, selects ``instant_method``; otherwise ``default``.
    """

    if normalize_text(marker) in classification_text(tx):
        return instant_method
    return default


__all__ = [
    "TRANSFER_OUT_KEYWORDS",
    "TRANSFER_IN_KEYWORDS",
    "INVESTMENT_INCOME_KEYWORDS",
    "MARKET_KEYWORDS",
    "INVESTMENT_KEYWORDS",
    "Rule",
    "RULES",
    "classification_text",
    "base_type_of",
    "classify",
    "is_transfer",
    "resolve_payment_method",
]
