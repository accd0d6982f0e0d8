"""
Facility-wide addon defaults.

Three addons are configured once for the whole facility in the addon master
and copied onto every new support record.
"""

import logging
from dataclasses import dataclass

from carebook.attendance.lookup import Lookup
from carebook.attendance.models import APPLY, NOT_APPLIED
from carebook.attendance.ports import AddonSource

logger = logging.getLogger(__name__)

WELFARE_SPECIALIST_ADDON = "Welfare Specialist Placement Addon"
STAFF_ADDON = "Child Instructor Additional Staffing Addon"
SPECIALIZED_SYSTEM_ADDON = "Specialized Support System Addon"


@dataclass(frozen=True)
class FacilityAddonDefaults:
    welfare_specialist: str = NOT_APPLIED
    staff_addon: str = NOT_APPLIED
    specialized_system: str = NOT_APPLIED


def specialized_system_label(details: str) -> str:
    """Exactly "apply" or "not applied" is kept; any other setting means "apply"."""
    if details in (APPLY, NOT_APPLIED):
        return details
    return APPLY


class AddonDefaultsProvider:
    """Maps facility-scoped addon master entries onto record default fields."""

    def __init__(self, addons: AddonSource):
        self.addons = addons

    def fetch(self) -> Lookup[FacilityAddonDefaults]:
        """Read the addon master once. Unavailable if the read fails."""
        try:
            entries = self.addons.list_facility_addons()
        except Exception as exc:  # noqa: BLE001 - any source failure degrades to defaults
            logger.warning("Addon master read failed, using defaults: %s", exc)
            return Lookup.unavailable(f"addon master read failed: {exc}")

        fields = {}
        for entry in entries:
            if not entry.is_facility_scoped:
                continue
            details = entry.details or NOT_APPLIED
            if entry.name == WELFARE_SPECIALIST_ADDON:
                fields["welfare_specialist"] = details
            elif entry.name == STAFF_ADDON:
                fields["staff_addon"] = details
            elif entry.name == SPECIALIZED_SYSTEM_ADDON:
                fields["specialized_system"] = specialized_system_label(entry.details)

        return Lookup.ok(FacilityAddonDefaults(**fields))

    def load_defaults(self) -> FacilityAddonDefaults:
        """Facility defaults, or all "not applied" when the master is unreadable."""
        return self.fetch().value_or(FacilityAddonDefaults())
