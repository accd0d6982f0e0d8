"""
Record Store - SQLite-backed document store for plans, addon master and
support records.

Implements every collaborator port the derivation engine consumes. Support
records are keyed by {date}_{user_id} with a UNIQUE (date, user_id)
constraint, so two concurrent derivations of one event cannot both insert.
"""

import json
import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import UTC, date, datetime
from pathlib import Path

from carebook import paths
from carebook.attendance.errors import DuplicateRecordError, PersistenceError
from carebook.attendance.models import (
    AddonMasterEntry,
    PlanStatus,
    SupportPlan,
    SupportRecord,
    record_id_for,
)
from carebook.attendance.ports import AddonSource, PlanSource, RecordStore

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS support_plans (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    status TEXT NOT NULL,
    created_at TEXT NOT NULL,
    document TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_support_plans_user
    ON support_plans (user_id, status, created_at);

CREATE TABLE IF NOT EXISTS addon_master (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    target TEXT NOT NULL,
    details TEXT NOT NULL DEFAULT ''
);

CREATE TABLE IF NOT EXISTS support_records (
    id TEXT PRIMARY KEY,
    date TEXT NOT NULL,
    user_id TEXT NOT NULL,
    user_name TEXT NOT NULL DEFAULT '',
    status TEXT NOT NULL,
    created_at TEXT NOT NULL,
    document TEXT NOT NULL,
    UNIQUE (date, user_id)
);
"""


class SqliteRecordStore(PlanSource, AddonSource, RecordStore):
    """
    Document store over a single SQLite file.

    One connection per operation; commits on success, rolls back on error.
    """

    def __init__(self, db_path: str | Path | None = None):
        self.db_path = str(db_path or paths.db_path())
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self.ensure_schema()
        logger.debug("Record store ready, DB path: %s", self.db_path)

    @contextmanager
    def _get_conn(self):
        conn = sqlite3.connect(self.db_path, timeout=10)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def ensure_schema(self) -> None:
        with self._get_conn() as conn:
            conn.executescript(SCHEMA)

    # ==================== Support plans ====================

    def save_plan(self, plan: SupportPlan) -> str:
        """Insert or replace a plan. Returns its id."""
        created_at = plan.created_at or datetime.now(UTC)
        plan_id = plan.id or f"{plan.user_id}_{created_at.strftime('%Y%m%d%H%M%S%f')}"
        stored = plan.model_copy(update={"id": plan_id, "created_at": created_at})
        with self._get_conn() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO support_plans (id, user_id, status, created_at, document) "
                "VALUES (?, ?, ?, ?, ?)",
                [
                    plan_id,
                    stored.user_id,
                    stored.status.value,
                    created_at.isoformat(),
                    stored.model_dump_json(by_alias=True),
                ],
            )
        return plan_id

    def find_final_plans(self, user_id: str) -> list[SupportPlan]:
        with self._get_conn() as conn:
            rows = conn.execute(
                "SELECT document FROM support_plans WHERE user_id = ? AND status = ? "
                "ORDER BY created_at DESC",
                [user_id, PlanStatus.FINAL.value],
            ).fetchall()
        return [SupportPlan.model_validate_json(row["document"]) for row in rows]

    # ==================== Addon master ====================

    def save_addon(self, entry: AddonMasterEntry) -> int:
        with self._get_conn() as conn:
            cur = conn.execute(
                "INSERT INTO addon_master (name, target, details) VALUES (?, ?, ?)",
                [entry.name, entry.target, entry.details],
            )
            return cur.lastrowid

    def list_facility_addons(self) -> list[AddonMasterEntry]:
        with self._get_conn() as conn:
            rows = conn.execute(
                "SELECT name, target, details FROM addon_master ORDER BY id"
            ).fetchall()
        entries = [AddonMasterEntry(**dict(row)) for row in rows]
        return [e for e in entries if e.is_facility_scoped]

    # ==================== Support records ====================

    def find_record(self, date: date, user_id: str) -> SupportRecord | None:
        with self._get_conn() as conn:
            row = conn.execute(
                "SELECT document FROM support_records WHERE date = ? AND user_id = ?",
                [date.isoformat(), user_id],
            ).fetchone()
        return SupportRecord.model_validate(json.loads(row["document"])) if row else None

    def get_record(self, record_id: str) -> SupportRecord | None:
        with self._get_conn() as conn:
            row = conn.execute(
                "SELECT document FROM support_records WHERE id = ?", [record_id]
            ).fetchone()
        return SupportRecord.model_validate(json.loads(row["document"])) if row else None

    def insert_record(self, record: SupportRecord) -> str:
        record_id = record_id_for(record.date, record.user_id)
        created_at = (record.created_at or datetime.now(UTC)).isoformat()
        try:
            with self._get_conn() as conn:
                conn.execute(
                    "INSERT INTO support_records "
                    "(id, date, user_id, user_name, status, created_at, document) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?)",
                    [
                        record_id,
                        record.date.isoformat(),
                        record.user_id,
                        record.user_name,
                        record.status.value,
                        created_at,
                        json.dumps(record.to_document(), ensure_ascii=False),
                    ],
                )
        except sqlite3.IntegrityError as exc:
            raise DuplicateRecordError(f"support record {record_id} already exists", cause=exc) from exc
        except sqlite3.Error as exc:
            raise PersistenceError(f"could not insert support record {record_id}: {exc}", cause=exc) from exc
        return record_id

    def count_records(self) -> int:
        with self._get_conn() as conn:
            return conn.execute("SELECT COUNT(*) AS c FROM support_records").fetchone()["c"]


_stores: dict[str, SqliteRecordStore] = {}
_stores_lock = threading.Lock()


def get_store(db_path: str | Path | None = None) -> SqliteRecordStore:
    """Shared store per DB path."""
    key = str(db_path or paths.db_path())
    with _stores_lock:
        if key not in _stores:
            _stores[key] = SqliteRecordStore(key)
        return _stores[key]
