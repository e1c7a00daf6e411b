"""Category suggestions.

Categories are user data, so nothing here refers to fixed ids: rules name
candidate category *names* and a suggestion only resolves when the user has a
category of that name (compared normalized) under the row's base type. A
``None`` suggestion means "no category" and is a valid outcome.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import NamedTuple

from .classify import INVESTMENT_KEYWORDS, MARKET_KEYWORDS, classification_text
from .models import (
    INVESTMENT_TYPES,
    MARKET_TYPES,
    TRANSFER_TYPES,
    BaseType,
    RawTransaction,
    UserCategory,
)
from .text import has_keyword, normalize_text

type CategoryIndex = Mapping[str, Mapping[str, str]]
"""``base_type -> normalized category name -> category id``."""

TRANSFER_NAMES: tuple[str, ...] = ("Transferências", "Transferência", "Transferencias")
INVESTMENT_NAMES: tuple[str, ...] = ("Investimentos", "Investimento")
FALLBACK_NAMES: tuple[str, ...] = ("Outros", "Outras")


class CategoryRule(NamedTuple):
    base_type: BaseType
    keywords: tuple[str, ...]
    candidates: tuple[str, ...]


# Walked in order; the first rule whose keywords match and whose candidate
# exists for the user wins.
CATEGORY_RULES: tuple[CategoryRule, ...] = (
    CategoryRule(
        "expense",
        ("supermercado", "mercado", "hortifruti", "padaria", "acougue", "atacadao", "assai"),
        ("Mercado", "Supermercado", "Alimentação"),
    ),
    CategoryRule(
        "expense",
        ("ifood", "rappi", "restaurante", "lanchonete", "pizzaria", "burger", "cafeteria"),
        ("Restaurantes", "Alimentação", "Delivery"),
    ),
    CategoryRule(
        "expense",
        ("uber", "99app", "99 pop", "posto", "combustivel", "estacionamento", "pedagio"),
        ("Transporte",),
    ),
    CategoryRule(
        "expense",
        ("farmacia", "drogaria", "drogasil", "droga raia", "hospital", "clinica", "laboratorio"),
        ("Saúde", "Farmácia"),
    ),
    CategoryRule(
        "expense",
        ("aluguel", "condominio", "iptu"),
        ("Moradia", "Aluguel", "Casa"),
    ),
    CategoryRule(
        "expense",
        ("energia", "eletrica", "sabesp", "saneamento", "internet", "telefone", "celular"),
        ("Contas", "Contas da casa", "Moradia"),
    ),
    CategoryRule(
        "expense",
        ("netflix", "spotify", "disney", "prime video", "hbo", "assinatura"),
        ("Assinaturas", "Lazer"),
    ),
    CategoryRule(
        "expense",
        ("escola", "faculdade", "curso", "udemy", "livraria"),
        ("Educação",),
    ),
    CategoryRule(
        "expense",
        ("cinema", "ingresso", "viagem", "hotel", "airbnb", "passagem"),
        ("Lazer", "Viagem"),
    ),
    CategoryRule(
        "expense",
        ("tarifa", "anuidade", "iof", "juros"),
        ("Tarifas", "Tarifas bancárias", "Taxas"),
    ),
    CategoryRule(
        "income",
        ("salario", "folha de pagamento", "proventos", "holerite"),
        ("Salário",),
    ),
    CategoryRule(
        "income",
        ("freela", "freelance", "honorarios", "servico prestado"),
        ("Freelance", "Serviços"),
    ),
    CategoryRule(
        "income",
        ("reembolso", "estorno", "cashback"),
        ("Reembolso", "Estornos"),
    ),
    CategoryRule(
        "income",
        ("dividendo", "juros sobre capital", "jcp"),
        ("Investimentos", "Rendimentos"),
    ),
)


def build_category_index(categories: Iterable[UserCategory]) -> dict[str, dict[str, str]]:
    """Index user categories by base type and normalized name.

    On duplicate names the first category listed wins.
    """

    index: dict[str, dict[str, str]] = {"income": {}, "expense": {}}
    for cat in categories:
        bucket = index.setdefault(cat.type, {})
        key = normalize_text(" ".join(cat.name.split()))
        if key and key not in bucket:
            bucket[key] = cat.id
    return index


def _first_existing(names: Iterable[str], lookup: Mapping[str, str]) -> str | None:
    for name in names:
        found = lookup.get(normalize_text(name))
        if found is not None:
            return found
    return None


def suggest_category(
    tx: RawTransaction,
    base_type: BaseType,
    semantic_type: str,
    categories: Iterable[UserCategory] | CategoryIndex,
) -> str | None:
    """Best-guess category id for ``tx``, or ``None``."""

    index = categories if isinstance(categories, Mapping) else build_category_index(categories)
    lookup = index.get(base_type, {})
    text = classification_text(tx)

    if semantic_type in TRANSFER_TYPES:
        return _first_existing(TRANSFER_NAMES + FALLBACK_NAMES, lookup)

    if (
        semantic_type in INVESTMENT_TYPES
        or semantic_type in MARKET_TYPES
        or has_keyword(text, MARKET_KEYWORDS)
        or has_keyword(text, INVESTMENT_KEYWORDS)
    ):
        return _first_existing(INVESTMENT_NAMES + FALLBACK_NAMES, lookup)

    for rule in CATEGORY_RULES:
        if rule.base_type != base_type or not has_keyword(text, rule.keywords):
            continue
        found = _first_existing(rule.candidates, lookup)
        if found is not None:
            return found
    return None


__all__ = [
    "CategoryIndex",
    "CategoryRule",
    "CATEGORY_RULES",
    "TRANSFER_NAMES",
    "INVESTMENT_NAMES",
    "FALLBACK_NAMES",
    "build_category_index",
    "suggest_category",
]
