"""
Test fixtures for deterministic testing.

This module provides:
- fixture_db: temp SQLite record stores with pinned seed plans/addons
- fakes: in-memory collaborator fakes with failure injection
"""

from .fakes import (
    BrokenStore,
    FakeAddonSource,
    FakePlanSource,
    FakeRecordStore,
    RacingRecordStore,
)
from .fixture_db import SEED_ADDONS, SEED_PLANS, create_temp_store

__all__ = [
    "BrokenStore",
    "FakeAddonSource",
    "FakePlanSource",
    "FakeRecordStore",
    "RacingRecordStore",
    "SEED_ADDONS",
    "SEED_PLANS",
    "create_temp_store",
]
