"""
Shared Pydantic response models for API endpoints.

These models give FastAPI the type information it needs to generate
accurate OpenAPI schemas instead of empty `schema: {}`.

Usage:
    from api.response_models import DerivationResponse

    @router.post("/records", response_model=DerivationResponse)
    def derive_record(...): ...
"""

from typing import Any

from pydantic import BaseModel, Field

# ==== Single derivation ====
# Shape: {outcome, record_id, reason?, record?}


class DerivationResponse(BaseModel):
    """Result of deriving one attendance event."""

    outcome: str = Field(description="created or skipped")
    record_id: str = Field(description="Deterministic record key {date}_{user_id}")
    reason: str | None = Field(default=None, description="Why the event was skipped")
    record: dict[str, Any] | None = Field(default=None, description="The created support record")
    notes: str | None = Field(default=None, description="Sheet remark with the current extension label")


# ==== Batch derivation ====


class BatchRowResult(BaseModel):
    """Outcome for one row of a batch."""

    key: str = Field(description="Record key, or {date}_{name slug} when no user id resolved")
    outcome: str = Field(description="created, skipped, failed or invalid")
    error: str | None = None
    notes: str | None = Field(default=None, description="Sheet remark to write back, for created rows")


class BatchResponse(BaseModel):
    """Counts and per-row outcomes for a batch."""

    created: int = 0
    skipped: int = 0
    failed: int = 0
    invalid: int = 0
    results: list[BatchRowResult] = Field(default_factory=list)


# ==== Health Check ====


class HealthResponse(BaseModel):
    """Health check result."""

    status: str = Field(description="healthy or error")
    version: str = Field(description="carebook version")
    timestamp: str = Field(description="ISO timestamp")
