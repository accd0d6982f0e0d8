"""
Collaborator interfaces consumed by the derivation engine.

The engine owns no storage. Plans and the addon master are read-only here;
support records are checked for existence and inserted, never updated.
"""

import datetime as _dt
from abc import ABC, abstractmethod

from carebook.attendance.models import AddonMasterEntry, SupportPlan, SupportRecord


class PlanSource(ABC):
    """Read access to support plans."""

    @abstractmethod
    def find_final_plans(self, user_id: str) -> list[SupportPlan]:
        """Final plans for a user, newest (by creation time) first."""


class AddonSource(ABC):
    """Read access to the addon master."""

    @abstractmethod
    def list_facility_addons(self) -> list[AddonMasterEntry]:
        """Addon master entries scoped to the facility."""


class RecordStore(ABC):
    """Existence check and insert for support records."""

    @abstractmethod
    def find_record(self, date: _dt.date, user_id: str) -> SupportRecord | None:
        """The record for (date, user), if one exists."""

    @abstractmethod
    def insert_record(self, record: SupportRecord) -> str:
        """
        Insert a new record and return its id.

        Raises:
            DuplicateRecordError: a record with the same (date, user) exists
            PersistenceError: the write failed
        """
