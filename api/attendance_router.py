"""
Attendance API Router - derive support records from attendance events.

Endpoints:
- POST /api/attendance/records: derive one event (201 created, 200 skipped)
- POST /api/attendance/records/batch: normalize and derive sheet/kiosk rows
- GET /api/attendance/records/{record_date}/{user_id}: fetch a derived record
"""

import logging
from datetime import date
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Response, status
from pydantic import ValidationError

from api.response_models import BatchResponse, BatchRowResult, DerivationResponse
from carebook.attendance import AttendanceEvent, PersistenceError, RecordDeriver
from carebook.attendance.normalize import (
    event_from_row,
    normalize_date,
    normalize_name,
    record_key,
)
from carebook.record_store import SqliteRecordStore, get_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/attendance", tags=["attendance"])


def get_record_store() -> SqliteRecordStore:
    """Record store dependency. Override in tests."""
    return get_store()


def get_deriver(store: SqliteRecordStore = Depends(get_record_store)) -> RecordDeriver:
    """Deriver over the request's record store."""
    return RecordDeriver.from_store(store)


@router.post(
    "/records",
    response_model=DerivationResponse,
    status_code=status.HTTP_201_CREATED,
    responses={200: {"description": "Already recorded, skipped"}, 503: {"description": "Write failed"}},
)
def derive_record(
    event: AttendanceEvent,
    response: Response,
    deriver: RecordDeriver = Depends(get_deriver),
) -> DerivationResponse:
    """Derive the support record for one attendance event."""
    try:
        result = deriver.derive(event)
    except PersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "error": "persistence_failed",
                "record_id": event.record_id,
                "message": str(exc),
            },
        ) from exc

    if result.skipped:
        response.status_code = status.HTTP_200_OK

    return DerivationResponse(
        outcome=result.outcome.value,
        record_id=result.record_id,
        reason=result.reason,
        record=result.record.to_document() if result.record else None,
        notes=result.notes,
    )


@router.post("/records/batch", response_model=BatchResponse)
def derive_batch(
    rows: list[dict[str, Any]] = Body(..., description="Loosely typed attendance rows"),
    deriver: RecordDeriver = Depends(get_deriver),
) -> BatchResponse:
    """
    Normalize sheet/kiosk rows and derive a record for each.

    Rows that cannot be normalized are reported as invalid and do not stop
    the batch.
    """
    events: list[AttendanceEvent] = []
    invalid: list[BatchRowResult] = []

    for row in rows:
        try:
            events.append(event_from_row(row))
        except (ValueError, ValidationError) as exc:
            raw_date = row.get("date")
            key = record_key(
                normalize_date(raw_date) or str(raw_date or ""),
                row.get("userId") or row.get("user_id"),
                normalize_name(row.get("userName") or row.get("user_name")),
            )
            logger.warning("Skipping invalid attendance row %s: %s", key, exc)
            invalid.append(BatchRowResult(key=key, outcome="invalid", error=str(exc)))

    summary = deriver.derive_many(events)

    results = [
        BatchRowResult(key=r.record_id, outcome=r.outcome.value, error=r.reason, notes=r.notes)
        for r in summary.results
    ]
    results += [
        BatchRowResult(key=f.event.record_id, outcome="failed", error=f.error) for f in summary.failures
    ]
    results += invalid

    return BatchResponse(
        created=summary.created,
        skipped=summary.skipped,
        failed=summary.failed,
        invalid=len(invalid),
        results=results,
    )


@router.get("/records/{record_date}/{user_id}")
def get_record(
    record_date: date,
    user_id: str,
    store: SqliteRecordStore = Depends(get_record_store),
) -> dict:
    """Fetch the support record for (date, user)."""
    record = store.find_record(record_date, user_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"No support record for {user_id} on {record_date}")
    return record.to_document()
