"""Public interface for the ``statement_import`` package.

Symbol re-exports only. The database-backed store lives in
``statement_import.persistence`` and is imported explicitly by callers that
need it.
"""

from .api import import_statement, open_review, preview_statement
from .config import ImportSettings
from .models import (
    ClassifiedRow,
    ImportReport,
    ImportStatus,
    NotAuthenticatedError,
    ParseResult,
    RawTransaction,
    RowResult,
    RowState,
    StoreError,
    UnsupportedFormatError,
    UserCategory,
)
from .review import DerivedRow, PreviewFilter, PreviewSummary, ReviewOverlay, ReviewSession

__all__ = [
    # API
    "open_review",
    "preview_statement",
    "import_statement",
    # Settings
    "ImportSettings",
    # Models / types
    "RawTransaction",
    "ParseResult",
    "UserCategory",
    "ClassifiedRow",
    "DerivedRow",
    "ReviewOverlay",
    "ReviewSession",
    "PreviewFilter",
    "PreviewSummary",
    "RowResult",
    "RowState",
    "ImportReport",
    "ImportStatus",
    # Errors
    "StoreError",
    "NotAuthenticatedError",
    "UnsupportedFormatError",
]
