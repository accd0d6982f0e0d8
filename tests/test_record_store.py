"""
Tests for SqliteRecordStore.
"""

import sqlite3
from datetime import UTC, date, datetime

import pytest

from carebook import record_store
from carebook.attendance import (
    AddonMasterEntry,
    DuplicateRecordError,
    PersistenceError,
    PlanStatus,
    SupportPlan,
    SupportRecord,
    UsageStatus,
)
from tests.fixtures import SEED_PLANS, create_temp_store

MONDAY = date(2025, 6, 2)


def _record(user_id="U1", **kwargs) -> SupportRecord:
    return SupportRecord(date=MONDAY, user_id=user_id, status=UsageStatus.AFTER_SCHOOL, **kwargs)


class TestSchema:
    def test_tables_created(self, temp_store):
        conn = sqlite3.connect(temp_store.db_path)
        try:
            names = {r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
        finally:
            conn.close()
        assert {"support_plans", "addon_master", "support_records"} <= names

    def test_ensure_schema_is_repeatable(self, temp_store):
        temp_store.ensure_schema()
        assert temp_store.count_records() == 0


class TestRecords:
    def test_insert_and_find(self, temp_store):
        record_id = temp_store.insert_record(_record(duration="2.0"))
        assert record_id == "2025-06-02_U1"
        found = temp_store.find_record(MONDAY, "U1")
        assert found.duration == "2.0"
        assert found.status is UsageStatus.AFTER_SCHOOL

    def test_get_by_id(self, temp_store):
        temp_store.insert_record(_record())
        assert temp_store.get_record("2025-06-02_U1").user_id == "U1"
        assert temp_store.get_record("2025-06-02_U9") is None

    def test_find_missing(self, temp_store):
        assert temp_store.find_record(MONDAY, "U1") is None

    def test_duplicate_key_rejected(self, temp_store):
        temp_store.insert_record(_record())
        with pytest.raises(DuplicateRecordError):
            temp_store.insert_record(_record(duration="3.0"))
        assert temp_store.count_records() == 1
        assert temp_store.find_record(MONDAY, "U1").duration == ""

    def test_duplicate_is_a_persistence_error(self):
        assert issubclass(DuplicateRecordError, PersistenceError)

    def test_document_is_camel_case(self, temp_store):
        temp_store.insert_record(_record(user_name="Hanako", extended_support_addon="x"))
        conn = sqlite3.connect(temp_store.db_path)
        try:
            doc = conn.execute("SELECT document FROM support_records").fetchone()[0]
        finally:
            conn.close()
        assert '"userName": "Hanako"' in doc
        assert '"extendedSupportAddon": "x"' in doc

    def test_write_failure_is_persistence_error(self, tmp_path):
        store = create_temp_store(tmp_path / "ro.db")
        conn = sqlite3.connect(store.db_path)
        conn.execute("DROP TABLE support_records")
        conn.commit()
        conn.close()
        with pytest.raises(PersistenceError) as excinfo:
            store.insert_record(_record())
        assert not isinstance(excinfo.value, DuplicateRecordError)


class TestPlans:
    def test_final_plans_newest_first(self, tmp_path):
        store = create_temp_store(tmp_path / "plans.db", seed=True)
        plans = store.find_final_plans("U2")
        assert [p.id for p in plans] == ["plan-u2-current", "plan-u2-old"]
        assert all(p.status is PlanStatus.FINAL for p in plans)

    def test_schedule_keys_survive_storage(self, tmp_path):
        store = create_temp_store(tmp_path / "plans.db", seed=True)
        current = store.find_final_plans("U2")[0]
        assert current.standard_schedule[0].duration == "1.5"
        assert current.standard_schedule[2].duration == "4.0"

    def test_save_plan_assigns_id(self, temp_store):
        plan_id = temp_store.save_plan(SupportPlan(user_id="U5", status=PlanStatus.FINAL))
        assert plan_id.startswith("U5_")
        assert temp_store.find_final_plans("U5")[0].id == plan_id

    def test_save_plan_replaces(self, temp_store):
        plan = SEED_PLANS[0]
        temp_store.save_plan(plan)
        temp_store.save_plan(plan.model_copy(update={"status": PlanStatus.DRAFT}))
        assert temp_store.find_final_plans("U2") == []


class TestAddons:
    def test_only_facility_entries(self, tmp_path):
        store = create_temp_store(tmp_path / "addons.db", seed=True)
        names = [e.name for e in store.list_facility_addons()]
        assert "Transportation Addon" not in names
        assert len(names) == 3

    def test_save_addon(self, temp_store):
        temp_store.save_addon(AddonMasterEntry(name="X", target="facility", details="apply"))
        assert temp_store.list_facility_addons()[0].details == "apply"


class TestGetStore:
    def test_shared_per_path(self, tmp_path):
        a = record_store.get_store(tmp_path / "a.db")
        b = record_store.get_store(tmp_path / "a.db")
        c = record_store.get_store(tmp_path / "c.db")
        assert a is b
        assert a is not c

    def test_default_path_follows_env(self, isolated_home):
        store = record_store.get_store()
        assert store.db_path.startswith(str(isolated_home))

    def test_created_at_kept(self, temp_store):
        temp_store.insert_record(_record(created_at=datetime(2025, 6, 2, tzinfo=UTC)))
        assert temp_store.find_record(MONDAY, "U1").created_at == datetime(2025, 6, 2, tzinfo=UTC)
