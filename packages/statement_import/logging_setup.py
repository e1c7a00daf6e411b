"""Logging for the ``statement_import`` package.

Modules log through ``get_logger("statement_import.<module>")`` and never add
handlers. Output appears only after an entrypoint (the CLI) calls
:func:`configure_logging`; until then the package logger carries a
``NullHandler``.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "statement_import"
_ENV_LEVEL = "STATEMENT_IMPORT_LOG_LEVEL"
_DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
_CONFIGURED = False


def _parse_level(level: int | str | None) -> int:
    if level is None:
        level = os.getenv(_ENV_LEVEL) or logging.INFO
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    numeric = logging.getLevelNamesMapping().get(name)
    return numeric if numeric is not None else logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
) -> None:
    """Send package logs to ``stream`` (``sys.stderr`` by default).

    ``level`` falls back to ``STATEMENT_IMPORT_LOG_LEVEL`` and then ``INFO``.
    Only the first call has any effect.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    resolved = _parse_level(level)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FORMAT))

    logger = logging.getLogger(_PKG_LOGGER_NAME)
    for existing in [h for h in logger.handlers if isinstance(h, logging.NullHandler)]:
        logger.removeHandler(existing)
    logger.setLevel(resolved)
    logger.addHandler(handler)
    logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger"]
