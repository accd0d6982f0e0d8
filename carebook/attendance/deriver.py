"""
Record Deriver - turns one attendance event into one support record.

Flow per event:
1. Idempotency check: a record for (date, user) already exists -> SKIPPED
2. Facility addon defaults (addon master) and, for attendance days, the
   planned duration (support plan) are read; the two reads are independent
   and run concurrently when parallel lookups are enabled
3. Absence path or attendance path assembles the record
4. The record is inserted exactly once under the key {date}_{user_id}

Collaborator read failures degrade to defaults. Only a failed insert is
surfaced to the caller, as PersistenceError.
"""

import contextvars
import logging
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum

from carebook import config
from carebook.attendance.addons import AddonDefaultsProvider, FacilityAddonDefaults
from carebook.attendance.duration import classify_duration
from carebook.attendance.errors import DuplicateRecordError, LookupUnavailable, PersistenceError
from carebook.attendance.extension import (
    ExtensionInfo,
    annotate_notes,
    compute_extension,
    extension_from_minutes,
    parse_clock,
)
from carebook.attendance.lookup import Lookup
from carebook.attendance.models import (
    ABSENCE_ADDON_APPLIED,
    ABSENCE_REASON_HEADING,
    ABSENCE_SUPPORT_CONTENT,
    NOT_APPLIED,
    AttendanceEvent,
    SupportRecord,
    UsageStatus,
)
from carebook.attendance.ports import RecordStore
from carebook.attendance.rules import ServiceRules, get_rules
from carebook.attendance.schedule import ScheduleResolver
from carebook.observability import RequestContext

logger = logging.getLogger(__name__)


class DerivationOutcome(StrEnum):
    CREATED = "created"
    SKIPPED = "skipped"


@dataclass
class DerivationResult:
    """Outcome of deriving one event."""

    outcome: DerivationOutcome
    record_id: str
    record: SupportRecord | None = None
    reason: str | None = None
    # Sheet remark with the current extension label, for write-back
    notes: str | None = None

    @property
    def created(self) -> bool:
        return self.outcome is DerivationOutcome.CREATED

    @property
    def skipped(self) -> bool:
        return self.outcome is DerivationOutcome.SKIPPED


@dataclass
class BatchFailure:
    event: AttendanceEvent
    error: str


@dataclass
class BatchSummary:
    """Result of deriving a batch of events."""

    results: list[DerivationResult] = field(default_factory=list)
    failures: list[BatchFailure] = field(default_factory=list)

    @property
    def created(self) -> int:
        return sum(1 for r in self.results if r.created)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.results if r.skipped)

    @property
    def failed(self) -> int:
        return len(self.failures)

    def to_dict(self) -> dict:
        return {
            "created": self.created,
            "skipped": self.skipped,
            "failed": self.failed,
            "failures": [
                {"record_id": f.event.record_id, "error": f.error} for f in self.failures
            ],
        }


def _utcnow() -> datetime:
    return datetime.now(UTC)


class RecordDeriver:
    """
    Derives support records from attendance events.

    Collaborators are injected so tests can substitute fixtures:
        deriver = RecordDeriver(
            records=store,
            schedule=ScheduleResolver(store),
            addons=AddonDefaultsProvider(store),
        )
    """

    def __init__(
        self,
        records: RecordStore,
        schedule: ScheduleResolver,
        addons: AddonDefaultsProvider,
        rules: ServiceRules | None = None,
        parallel_lookups: bool | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.records = records
        self.schedule = schedule
        self.addons = addons
        self.rules = rules or get_rules()
        self.parallel_lookups = (
            config.PARALLEL_LOOKUPS if parallel_lookups is None else parallel_lookups
        )
        self.clock = clock

    @classmethod
    def from_store(cls, store, **kwargs) -> "RecordDeriver":
        """Build a deriver over a store implementing all three collaborator ports."""
        return cls(
            records=store,
            schedule=ScheduleResolver(store),
            addons=AddonDefaultsProvider(store),
            **kwargs,
        )

    # ==================== Public API ====================

    def derive(self, event: AttendanceEvent) -> DerivationResult:
        """
        Derive and persist the support record for one event.

        Returns:
            DerivationResult with outcome CREATED or SKIPPED

        Raises:
            PersistenceError: the existence check or the insert failed
        """
        with RequestContext(prefix="drv", record_id=event.record_id):
            log_ctx = {"user_id": event.user_id, "date": event.date.isoformat()}

            if self._already_recorded(event):
                logger.info(
                    "Support record already exists for %s on %s, skipping",
                    event.user_name or event.user_id,
                    event.date.isoformat(),
                    extra=log_ctx,
                )
                return DerivationResult(
                    outcome=DerivationOutcome.SKIPPED,
                    record_id=event.record_id,
                    reason="already recorded",
                )

            schedule_lookup, addon_lookup = self._run_lookups(event)
            record, extension = self._assemble(event, schedule_lookup, addon_lookup)

            try:
                record_id = self.records.insert_record(record)
            except DuplicateRecordError:
                # Another instance inserted the same key between check and insert
                logger.info("Support record %s was created concurrently", event.record_id, extra=log_ctx)
                return DerivationResult(
                    outcome=DerivationOutcome.SKIPPED,
                    record_id=event.record_id,
                    reason="created concurrently",
                )
            except PersistenceError as exc:
                logger.error("Failed to persist support record %s: %s", event.record_id, exc, extra=log_ctx)
                exc.event = exc.event or event
                raise
            except Exception as exc:
                logger.error(
                    "Failed to persist support record %s: %s", event.record_id, exc, extra=log_ctx, exc_info=True
                )
                raise PersistenceError(
                    f"insert failed for {event.record_id}: {exc}", event=event, cause=exc
                ) from exc

            logger.info(
                "Support record created for %s on %s",
                event.user_name or event.user_id,
                event.date.isoformat(),
                extra={**log_ctx, "record_id": record_id, "status": event.status.value},
            )
            notes = annotate_notes(event.notes, extension) if event.status.is_attendance else None
            return DerivationResult(
                outcome=DerivationOutcome.CREATED, record_id=record_id, record=record, notes=notes
            )

    def derive_many(self, events: Iterable[AttendanceEvent]) -> BatchSummary:
        """Derive each event in turn. A failed event is recorded, not raised."""
        summary = BatchSummary()
        for event in events:
            try:
                summary.results.append(self.derive(event))
            except PersistenceError as exc:
                summary.failures.append(BatchFailure(event=event, error=str(exc)))
        logger.info(
            "Batch derivation finished: %d created, %d skipped, %d failed",
            summary.created,
            summary.skipped,
            summary.failed,
        )
        return summary

    # ==================== Steps ====================

    def _already_recorded(self, event: AttendanceEvent) -> bool:
        try:
            return self.records.find_record(event.date, event.user_id) is not None
        except PersistenceError:
            raise
        except Exception as exc:
            # Without a reliable existence check the insert could duplicate
            raise PersistenceError(
                f"existence check failed for {event.record_id}: {exc}", event=event, cause=exc
            ) from exc

    def _run_lookups(
        self, event: AttendanceEvent
    ) -> tuple[Lookup[str] | None, Lookup[FacilityAddonDefaults]]:
        """Addon master read always; plan read only on attendance days."""
        needs_schedule = event.status.is_attendance

        if not (self.parallel_lookups and needs_schedule):
            schedule_lookup = (
                self.schedule.resolve(event.user_id, event.date) if needs_schedule else None
            )
            return schedule_lookup, self.addons.fetch()

        # Each worker runs in a copy of the caller's context so its log
        # lines keep the derivation's correlation id.
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="carebook-lookup") as pool:
            schedule_future = pool.submit(
                contextvars.copy_context().run, self.schedule.resolve, event.user_id, event.date
            )
            addon_future = pool.submit(contextvars.copy_context().run, self.addons.fetch)
            return schedule_future.result(), addon_future.result()

    def _assemble(
        self,
        event: AttendanceEvent,
        schedule_lookup: Lookup[str] | None,
        addon_lookup: Lookup[FacilityAddonDefaults],
    ) -> tuple[SupportRecord, ExtensionInfo | None]:
        """The record for the event, and the extension it was billed with."""
        facility = addon_lookup.value_or(FacilityAddonDefaults())
        now = self.clock()
        common = {
            "date": event.date,
            "user_id": event.user_id,
            "user_name": event.user_name,
            "status": event.status,
            "welfare_specialist": facility.welfare_specialist,
            "staff_addon": facility.staff_addon,
            "specialized_system": facility.specialized_system,
            "created_at": now,
            "updated_at": now,
        }

        if event.status is UsageStatus.ABSENCE:
            content = (
                f"{ABSENCE_REASON_HEADING}\n{event.absence_reason}"
                if event.absence_reason
                else ABSENCE_SUPPORT_CONTENT
            )
            record = SupportRecord(
                **common,
                absence_addon=ABSENCE_ADDON_APPLIED,
                support_content=content,
            )
            return record, None

        try:
            duration = schedule_lookup.unwrap()
        except LookupUnavailable as exc:
            duration = self.rules.fallback_duration_hours[event.status]
            logger.warning(
                "No planned duration for %s on %s (%s), using %s default %s",
                event.user_id,
                event.date.isoformat(),
                exc,
                event.status.value,
                duration,
                extra={"user_id": event.user_id, "date": event.date.isoformat()},
            )

        time_class = classify_duration(duration, self.rules)
        extension = self._extension(event)

        record = SupportRecord(
            **common,
            start_time=event.start_time or "",
            end_time=event.end_time or "",
            duration=duration,
            time_class=time_class.value if time_class else "",
            extension_duration=extension.hours_text if extension else "",
            extended_support_addon=extension.addon_label if extension else NOT_APPLIED,
        )
        return record, extension

    def _extension(self, event: AttendanceEvent) -> ExtensionInfo | None:
        """Staff-entered override wins; otherwise derive from the clock times."""
        if event.extension_minutes_override is not None:
            return extension_from_minutes(event.extension_minutes_override, self.rules)

        for label, value in (("start", event.start_time), ("end", event.end_time)):
            if value and parse_clock(value) is None:
                logger.warning(
                    "Unparseable %s time %r for %s on %s, no extension computed",
                    label,
                    value,
                    event.user_id,
                    event.date.isoformat(),
                )
        return compute_extension(event.status, event.start_time, event.end_time, self.rules)
