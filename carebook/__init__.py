# carebook - Support record derivation for child day-care attendance
"""
Exports for the API, the CLI and other consumers.
"""

from .attendance import (
    AttendanceEvent,
    DerivationOutcome,
    DerivationResult,
    RecordDeriver,
    SupportRecord,
    UsageStatus,
)
from .record_store import SqliteRecordStore, get_store

__version__ = "1.0.0"

__all__ = [
    "AttendanceEvent",
    "DerivationOutcome",
    "DerivationResult",
    "RecordDeriver",
    "SupportRecord",
    "UsageStatus",
    "SqliteRecordStore",
    "get_store",
]
