"""Tiny terminal UI helpers (prompt_toolkit-based) for the import review.

The prompts only edit a :class:`~statement_import.review.ReviewOverlay`;
nothing here touches parsing, classification, or the database.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.validation import ValidationError, Validator

from .models import UserCategory
from .review import DerivedRow, ReviewSession, type_label
from .text import normalize_text

NO_CATEGORY = "(sem categoria)"

ACTIONS: dict[str, str] = {
    "": "keep",
    "i": "toggle-ignore",
    "d": "edit-description",
    "c": "choose-category",
    "q": "finish",
}


class _ChoiceValidator(Validator):
    def __init__(self, allowed: Sequence[str], message: str) -> None:
        self._allowed = {a.lower() for a in allowed}
        self._message = message

    def validate(self, document) -> None:
        if document.text.strip().lower() not in self._allowed:
            raise ValidationError(message=self._message, cursor_position=len(document.text))


def _session(session: PromptSession | None) -> PromptSession:
    if session is None:
        return PromptSession()
    return PromptSession(
        input=getattr(session, "input", None),
        output=getattr(session, "output", None),
    )


def format_row(row: DerivedRow, category_names: dict[str, str] | None = None) -> str:
    tx = row.transaction
    status = "IGNORADA" if row.skipped else "ativa"
    category = (category_names or {}).get(row.category_id or "", "-")
    return (
        f"[{row.id}] {tx.date} {tx.amount:>12} {type_label(row.semantic_type, tx.amount):<20}"
        f" {row.description} | {category} | {status}"
    )


def prompt_action(message: str, *, session: PromptSession | None = None) -> str:
    """Ask for a row action; returns one of the values of :data:`ACTIONS`."""

    sess = _session(session)
    answer = sess.prompt(
        message,
        validator=_ChoiceValidator(list(ACTIONS), "Use Enter, i, d, c or q"),
        validate_while_typing=False,
    )
    return ACTIONS[answer.strip().lower()]


def prompt_description(default: str, *, session: PromptSession | None = None) -> str:
    """Edit a description; the current value is pre-filled."""

    sess = _session(session)
    return sess.prompt("Description: ", default=default).strip()


def select_category(
    categories: Sequence[UserCategory],
    *,
    default: str | None = None,
    session: PromptSession | None = None,
) -> str | None:
    """Choose a category by name with completion; returns its id or ``None``.

    Names are compared normalized, so accents and case do not matter. An empty
    answer, or :data:`NO_CATEGORY`, means no category.
    """

    by_key = {normalize_text(c.name): c for c in categories}
    words = [c.name for c in categories] + [NO_CATEGORY]
    allowed = set(by_key) | {"", normalize_text(NO_CATEGORY)}

    class _NameValidator(Validator):
        def validate(self, document) -> None:
            if normalize_text(document.text.strip()) not in allowed:
                raise ValidationError(
                    message="Unknown category", cursor_position=len(document.text)
                )

    sess = _session(session)
    answer = sess.prompt(
        "Category: ",
        default=default or "",
        completer=WordCompleter(words, ignore_case=True, match_middle=True, sentence=True),
        validator=_NameValidator(),
        validate_while_typing=False,
    )
    chosen = by_key.get(normalize_text(answer.strip()))
    return chosen.id if chosen is not None else None


def review_interactively(
    review: ReviewSession,
    *,
    session: PromptSession | None = None,
    echo: Callable[[str], None] = print,
) -> None:
    """Walk every row once, applying the user's edits to ``review.overlay``."""

    names = {c.id: c.name for c in review.categories}
    row_ids = [r.id for r in review.rows()]
    for row_id in row_ids:
        while True:
            row = next(r for r in review.rows() if r.id == row_id)
            echo(format_row(row, names))
            action = prompt_action(
                "[Enter]=ok i=ignorar d=descricao c=categoria q=fim: ", session=session
            )
            if action == "keep":
                break
            if action == "finish":
                return
            if action == "toggle-ignore":
                review.overlay.toggle_ignored(row_id)
            elif action == "edit-description":
                text = prompt_description(row.description, session=session)
                review.overlay.set_description(row.transaction, text)
            elif action == "choose-category":
                current = names.get(row.category_id or "")
                chosen = select_category(review.categories, default=current, session=session)
                review.overlay.set_category(row_id, chosen)


__all__ = [
    "NO_CATEGORY",
    "ACTIONS",
    "format_row",
    "prompt_action",
    "prompt_description",
    "select_category",
    "review_interactively",
]
