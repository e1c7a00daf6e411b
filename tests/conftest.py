"""Pytest configuration for test isolation.

The CLI configures package logging and the ``db`` client caches a process-wide
engine. Both are module-level state, so without a reset a test that runs the
CLI (or opens a SQLite file) leaks its handler or engine into every later
test. The autouse fixture below clears the relevant environment variables and
restores that state after each test.
"""

from __future__ import annotations

import logging

import pytest

from db.client import dispose_engine

import statement_import.logging_setup as logging_setup

_ENV_VARS = (
    "DATABASE_URL",
    "STATEMENT_IMPORT_AUTO_DETECT",
    "STATEMENT_IMPORT_IGNORE_TRANSFERS",
    "STATEMENT_IMPORT_PAYMENT_METHOD",
    "STATEMENT_IMPORT_LOG_LEVEL",
    "STATEMENT_IMPORT_USER_ID",
)


@pytest.fixture(autouse=True)
def _isolate_process_state(monkeypatch: pytest.MonkeyPatch):
    """Start each test from a clean environment, engine and logger."""

    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield
    dispose_engine()
    pkg_logger = logging.getLogger("statement_import")
    for h in list(pkg_logger.handlers):
        pkg_logger.removeHandler(h)
    pkg_logger.propagate = True
    pkg_logger.setLevel(logging.NOTSET)
    logging_setup._CONFIGURED = False
