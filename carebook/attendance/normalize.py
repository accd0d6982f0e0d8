"""
Ingest normalization for loosely typed attendance rows.

Attendance arrives from spreadsheets and kiosks with symbols instead of
status names, clock values as spreadsheet serials or datetimes, and names
with full-width spaces. These helpers map such rows onto AttendanceEvent.
"""

import datetime as _dt
import logging
import math
import re
import unicodedata
from typing import Any
from zoneinfo import ZoneInfo

from carebook.attendance.extension import strip_extension_note
from carebook.attendance.models import AttendanceEvent, UsageStatus, record_id_for

logger = logging.getLogger(__name__)

_AFTER_SCHOOL_TOKENS = {"◯", "○", "1", "afterschool", "after_school", "after school", "放課後"}
_NON_SCHOOL_DAY_TOKENS = {"◎", "2", "nonschoolday", "non_school_day", "non-school day", "休校日"}
_ABSENCE_TOKENS = {"3", "absence", "absent"}

_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::\d{2})?$")
_NON_WORD_RE = re.compile(r"[^\w]", re.UNICODE)

JST = ZoneInfo("Asia/Tokyo")


def normalize_usage(raw: Any) -> UsageStatus:
    """
    Map a status cell onto UsageStatus.

    Unknown values fall back to AfterSchool, the most common day type.
    """
    if isinstance(raw, UsageStatus):
        return raw
    text = str(raw if raw is not None else "").strip()
    lowered = text.lower()
    if lowered in _AFTER_SCHOOL_TOKENS:
        return UsageStatus.AFTER_SCHOOL
    if lowered in _NON_SCHOOL_DAY_TOKENS:
        return UsageStatus.NON_SCHOOL_DAY
    if lowered in _ABSENCE_TOKENS or "欠席" in text or lowered.startswith("absen"):
        return UsageStatus.ABSENCE
    logger.warning("Unknown usage status %r, treating as %s", raw, UsageStatus.AFTER_SCHOOL.value)
    return UsageStatus.AFTER_SCHOOL


def normalize_clock(raw: Any) -> str:
    """
    Normalize a clock value to "HH:MM".

    Accepts "H:MM", "HH:MM", "HH:MM:SS", time/datetime objects and
    spreadsheet serials (fraction of a day). Returns "" when unusable.
    """
    if raw is None or raw == "" or isinstance(raw, bool):
        return ""
    if isinstance(raw, _dt.datetime | _dt.time):
        return f"{raw.hour:02d}:{raw.minute:02d}"

    text = str(raw).strip()
    m = _CLOCK_RE.match(text)
    if m:
        return f"{int(m.group(1)):02d}:{m.group(2)}"

    try:
        serial = float(text)
    except ValueError:
        return ""
    frac = serial - int(serial) if serial >= 0 else 0.0
    total_minutes = round(frac * 24 * 60)
    hh, mm = divmod(total_minutes, 60)
    if hh >= 24:
        return ""
    return f"{hh:02d}:{mm:02d}"


def normalize_name(raw: Any) -> str:
    """Full-width spaces to ASCII, collapse whitespace runs."""
    text = str(raw or "").replace("　", " ")
    return " ".join(text.split())


def name_slug(name: str) -> str:
    """NFKC-normalized letters and digits of a name, at most 40 characters."""
    folded = unicodedata.normalize("NFKC", name or "")
    return _NON_WORD_RE.sub("", folded).replace("_", "")[:40]


def record_key(date: _dt.date | str, user_id: str | None, user_name: str = "") -> str:
    """Deterministic key: {date}_{user_id}, or {date}_{name slug} without an id."""
    if user_id:
        return record_id_for(date, user_id)
    day = date.isoformat() if isinstance(date, _dt.date) else str(date)
    return f"{day}_{name_slug(user_name)}"


def normalize_date(raw: Any) -> _dt.date | None:
    """
    Accept date, datetime or ISO text and return the service date in JST.

    Sheets export dates as UTC instants ("2025-06-01T15:00:00.000Z" is JST
    midnight on 2025-06-02), so aware values are converted to Asia/Tokyo
    before the date is taken. Naive values are taken as already local.
    """
    if isinstance(raw, _dt.datetime):
        return _jst_date(raw)
    if isinstance(raw, _dt.date):
        return raw
    text = str(raw or "").strip()
    if not text:
        return None
    try:
        return _jst_date(_dt.datetime.fromisoformat(text))
    except ValueError:
        pass
    try:
        return _dt.date.fromisoformat(text[:10])
    except ValueError:
        return None


def _jst_date(value: _dt.datetime) -> _dt.date:
    if value.tzinfo is not None:
        value = value.astimezone(JST)
    return value.date()


def _pick(row: dict, *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in row and row[key] not in (None, ""):
            return row[key]
    return default


def _override_minutes(raw: Any) -> float | None:
    if raw is None:
        return None
    try:
        minutes = float(raw)
    except (TypeError, ValueError):
        raise ValueError(f"extension override is not a number: {raw!r}") from None
    if not math.isfinite(minutes):
        raise ValueError(f"extension override is not finite: {raw!r}")
    return minutes


def event_from_row(row: dict, user_ids: dict[str, str] | None = None) -> AttendanceEvent:
    """
    Build an AttendanceEvent from a sheet/kiosk row.

    Recognised keys (camelCase or snake_case): date, userId, userName,
    usageStatus/status, arrivalTime/startTime, departureTime/endTime,
    extensionMinutesOverride, absenceReason/notes.

    user_ids maps normalized "family given" names to ids for rows that
    carry only a name. On absence days the notes are the absence reason;
    on attendance days they are kept as the sheet remark with any earlier
    extension label removed.

    Raises:
        ValueError: no usable date, no user id could be resolved, or the
            extension override is not a finite number
    """
    date = normalize_date(_pick(row, "date"))
    if date is None:
        raise ValueError(f"row has no usable date: {row.get('date')!r}")

    user_name = normalize_name(_pick(row, "userName", "user_name", default=""))
    user_id = _pick(row, "userId", "user_id")
    if not user_id and user_ids:
        user_id = user_ids.get(user_name)
    if not user_id:
        raise ValueError(f"could not resolve a user id for {user_name!r}")

    status = normalize_usage(_pick(row, "usageStatus", "usage_status", "status"))
    override = _override_minutes(_pick(row, "extensionMinutesOverride", "extension_minutes_override"))
    notes = str(_pick(row, "absenceReason", "absence_reason", "notes", default=""))
    is_absence = status is UsageStatus.ABSENCE

    return AttendanceEvent(
        date=date,
        user_id=str(user_id),
        user_name=user_name,
        status=status,
        start_time=normalize_clock(_pick(row, "arrivalTime", "arrival_time", "startTime", "start_time")),
        end_time=normalize_clock(_pick(row, "departureTime", "departure_time", "endTime", "end_time")),
        extension_minutes_override=override,
        absence_reason=notes if is_absence else None,
        notes=None if is_absence else strip_extension_note(notes),
    )
