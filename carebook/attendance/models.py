"""
Attendance and support-record models.

Loose documents from the record store and the ingest surfaces are mapped onto
these models at the boundary. Status values are exhaustive enums; anything
else is rejected by pydantic before a derivation starts.
"""

import datetime as _dt
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# =============================================================================
# LABELS
# =============================================================================

NOT_APPLIED = "not applied"
APPLY = "apply"
NOT_DEDUCTED = "not deducted"

ABSENCE_ADDON_APPLIED = "I"
ABSENCE_SUPPORT_CONTENT = "Absent"
ABSENCE_REASON_HEADING = "[Absence reason]"
CONDITION_GOOD = "good"

FACILITY_TARGET = "facility"


class UsageStatus(StrEnum):
    """Usage category of one attendance day."""

    AFTER_SCHOOL = "AfterSchool"
    NON_SCHOOL_DAY = "NonSchoolDay"
    ABSENCE = "Absence"

    @property
    def is_attendance(self) -> bool:
        return self is not UsageStatus.ABSENCE


class PlanStatus(StrEnum):
    DRAFT = "Draft"
    FINAL = "Final"


class TimeClass(StrEnum):
    """Statutory service-duration classes."""

    CLASS_1 = "Class 1 (30 min to 1h30m)"
    CLASS_2 = "Class 2 (over 1h30m to 3h)"
    CLASS_3 = "Class 3 (over 3h to 5h)"


EXTENSION_TIER_LABELS: dict[int, str] = {
    1: "1 (30 min to under 1 hour)",
    2: "2 (1 hour to under 2 hours)",
    3: "3 (2 hours or more)",
}


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


# =============================================================================
# INPUT
# =============================================================================


class AttendanceEvent(_CamelModel):
    """One arrival/departure or absence notice for a child on a date."""

    model_config = ConfigDict(frozen=True)

    date: _dt.date
    user_id: str = Field(min_length=1)
    user_name: str = ""
    status: UsageStatus
    start_time: str | None = None
    end_time: str | None = None
    extension_minutes_override: float | None = Field(default=None, allow_inf_nan=False)
    absence_reason: str | None = None
    # Attendance-sheet remark, without any extension label
    notes: str | None = None

    @field_validator("start_time", "end_time", "absence_reason", "notes", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def record_id(self) -> str:
        return record_id_for(self.date, self.user_id)


def record_id_for(date: _dt.date | str, user_id: str) -> str:
    """Deterministic support-record key: one document per (date, user)."""
    day = date.isoformat() if isinstance(date, _dt.date) else str(date)
    return f"{day}_{user_id}"


# =============================================================================
# COLLABORATOR DOCUMENTS
# =============================================================================


class ScheduleSlot(_CamelModel):
    """Planned service window for one weekday."""

    start: str = ""
    end: str = ""
    duration: str = ""

    @field_validator("duration", mode="before")
    @classmethod
    def _duration_as_text(cls, v):
        if v is None:
            return ""
        if isinstance(v, int | float) and not isinstance(v, bool):
            return str(v)
        return v


class SupportPlan(_CamelModel):
    """Individualized support plan. Only FINAL plans are authoritative."""

    id: str | None = None
    user_id: str
    status: PlanStatus
    created_at: _dt.datetime | None = None
    # Monday=0 … Sunday=6
    standard_schedule: dict[int, ScheduleSlot] = Field(default_factory=dict)


class AddonMasterEntry(_CamelModel):
    """Facility- or user-scoped addon setting from the addon master."""

    name: str
    target: str = ""
    details: str = ""

    @property
    def is_facility_scoped(self) -> bool:
        return self.target == FACILITY_TARGET


class TargetComment(_CamelModel):
    target_id: str = ""
    order: str = ""
    comment: str = ""


# =============================================================================
# OUTPUT
# =============================================================================


class SupportRecord(_CamelModel):
    """
    Billing/support record derived from one attendance event.

    Every addon and deduction field is always present with an explicit
    default so downstream billing never sees a missing key.
    """

    date: _dt.date
    user_id: str
    user_name: str = ""
    status: UsageStatus
    condition: str = CONDITION_GOOD

    start_time: str = ""
    end_time: str = ""
    duration: str = ""
    time_class: str = ""
    extension_duration: str = ""

    extended_support_addon: str = NOT_APPLIED
    absence_addon: str = NOT_APPLIED

    # Per-user addons
    childcare_support: str = NOT_APPLIED
    individual_support: str = NOT_APPLIED
    specialized_support: str = NOT_APPLIED
    agency_cooperation: str = NOT_APPLIED
    family_support: str = NOT_APPLIED
    transportation: str = NOT_APPLIED
    independence_support: str = NOT_APPLIED
    inter_agency_cooperation: str = NOT_APPLIED
    medical_support: str = NOT_APPLIED
    self_reliance_support: str = NOT_APPLIED
    intense_behavior_support: str = NOT_APPLIED

    # Facility addons
    welfare_specialist: str = NOT_APPLIED
    staff_addon: str = NOT_APPLIED
    specialized_system: str = NOT_APPLIED

    # Deductions
    plan_missing: str = NOT_DEDUCTED
    manager_missing: str = NOT_DEDUCTED
    staff_missing: str = NOT_DEDUCTED

    # Free text, filled in later by staff
    training_content: str = ""
    support_content: str = ""
    staff_sharing: str = ""
    target_comments: list[TargetComment] = Field(default_factory=list)

    created_at: _dt.datetime | None = None
    updated_at: _dt.datetime | None = None

    @property
    def record_id(self) -> str:
        return record_id_for(self.date, self.user_id)

    def to_document(self) -> dict:
        """JSON-safe, camelCase document for the record store."""
        return self.model_dump(mode="json", by_alias=True)
