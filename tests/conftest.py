"""
Test configuration: ensures repo root is in sys.path + determinism guards.

This allows tests to import from top-level packages (carebook, api).
Every test runs with CAREBOOK_HOME pointed at a temp dir, and any attempt to
open the live record DB fails loudly.
"""

import sqlite3
import sys
from pathlib import Path

import pytest

# Add repo root to sys.path so tests can import carebook.*, api.*, tests.*
REPO_ROOT = Path(__file__).parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from carebook import record_store  # noqa: E402
from carebook.attendance import rules  # noqa: E402

# =============================================================================
# DETERMINISM GUARD: Block live database access
# =============================================================================

HOME_DB_ABSOLUTE = Path.home() / ".carebook" / "data" / "carebook.db"

_original_sqlite_connect = sqlite3.connect


def _guarded_sqlite_connect(database, *args, **kwargs):
    """Intercept sqlite3.connect to block live DB access."""
    db_str = str(database)
    if db_str != ":memory:" and Path(db_str).expanduser() == HOME_DB_ABSOLUTE:
        raise RuntimeError(
            f"DETERMINISM VIOLATION: Test attempted to access live DB at {database}.\n"
            "Tests must use the temp_store fixture or a tmp_path DB."
        )
    return _original_sqlite_connect(database, *args, **kwargs)


@pytest.fixture(autouse=True)
def guard_live_db_access(monkeypatch):
    """Automatically guard all tests against live DB access."""
    monkeypatch.setattr(sqlite3, "connect", _guarded_sqlite_connect)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point CAREBOOK_HOME/CAREBOOK_DB at a temp dir and reset shared caches."""
    home = tmp_path / "carebook_home"
    monkeypatch.setenv("CAREBOOK_HOME", str(home))
    monkeypatch.setenv("CAREBOOK_DB", str(home / "data" / "carebook.db"))
    monkeypatch.setattr(record_store, "_stores", {})
    rules.get_rules.cache_clear()
    yield home
    rules.get_rules.cache_clear()


# =============================================================================
# SHARED FIXTURES
# =============================================================================


@pytest.fixture
def temp_store(tmp_path):
    """Empty SQLite record store in a temp dir."""
    from tests.fixtures import create_temp_store

    return create_temp_store(tmp_path / "records.db")
