"""
Attendance-to-support-record derivation.

Leaf-first:
- duration:  statutory time class from the planned duration
- extension: extension tier from clock times or a staff override
- schedule:  planned duration from the user's current Final plan
- addons:    facility-wide addon defaults from the addon master
- deriver:   orchestrates one event into one persisted record
"""

from carebook.attendance.addons import AddonDefaultsProvider, FacilityAddonDefaults
from carebook.attendance.deriver import (
    BatchSummary,
    DerivationOutcome,
    DerivationResult,
    RecordDeriver,
)
from carebook.attendance.duration import classify_duration
from carebook.attendance.errors import (
    CarebookError,
    DuplicateRecordError,
    LookupUnavailable,
    PersistenceError,
)
from carebook.attendance.extension import ExtensionInfo, compute_extension
from carebook.attendance.lookup import Lookup
from carebook.attendance.models import (
    AddonMasterEntry,
    AttendanceEvent,
    PlanStatus,
    ScheduleSlot,
    SupportPlan,
    SupportRecord,
    TimeClass,
    UsageStatus,
)
from carebook.attendance.ports import AddonSource, PlanSource, RecordStore
from carebook.attendance.schedule import ScheduleResolver

__all__ = [
    "AddonDefaultsProvider",
    "AddonMasterEntry",
    "AddonSource",
    "AttendanceEvent",
    "BatchSummary",
    "CarebookError",
    "DerivationOutcome",
    "DerivationResult",
    "DuplicateRecordError",
    "ExtensionInfo",
    "FacilityAddonDefaults",
    "Lookup",
    "LookupUnavailable",
    "PersistenceError",
    "PlanSource",
    "PlanStatus",
    "RecordDeriver",
    "RecordStore",
    "ScheduleResolver",
    "ScheduleSlot",
    "SupportPlan",
    "SupportRecord",
    "TimeClass",
    "UsageStatus",
    "classify_duration",
    "compute_extension",
]
