"""
Tests for structured logging and correlation IDs.
"""

import json
import logging

from carebook.observability import (
    HumanFormatter,
    JSONFormatter,
    RequestContext,
    generate_request_id,
    get_record_id,
    get_request_id,
)


def _record(msg="Support record created", **extra) -> logging.LogRecord:
    record = logging.LogRecord("carebook.test", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestRequestContext:
    def test_sets_and_resets(self):
        assert get_request_id() is None
        with RequestContext(request_id="req-1") as ctx:
            assert get_request_id() == "req-1"
            assert ctx.request_id == "req-1"
        assert get_request_id() is None

    def test_generates_with_prefix(self):
        with RequestContext(prefix="drv") as ctx:
            assert ctx.request_id.startswith("drv-")

    def test_nested_keeps_outer_id(self):
        with RequestContext(request_id="req-outer"):
            with RequestContext(prefix="drv") as inner:
                assert inner.request_id == "req-outer"

    def test_record_id_scoped(self):
        with RequestContext(prefix="drv", record_id="2025-06-02_U1") as ctx:
            assert get_record_id() == "2025-06-02_U1"
            assert ctx.request_id.startswith("drv-")
        assert get_record_id() is None

    def test_request_scope_has_no_record(self):
        with RequestContext(request_id="req-1"):
            assert get_record_id() is None

    def test_ids_are_unique(self):
        assert generate_request_id() != generate_request_id()


class TestFormatters:
    def test_json_includes_extra_and_request_id(self):
        with RequestContext(request_id="drv-abc"):
            line = JSONFormatter().format(_record(user_id="U1", date="2025-06-02"))
        data = json.loads(line)
        assert data["message"] == "Support record created"
        assert data["level"] == "INFO"
        assert data["request_id"] == "drv-abc"
        assert data["user_id"] == "U1"
        assert data["date"] == "2025-06-02"

    def test_json_includes_record_key(self):
        with RequestContext(request_id="req-9", record_id="2025-06-02_U1"):
            data = json.loads(JSONFormatter().format(_record(status="AfterSchool")))
        assert data["record_id"] == "2025-06-02_U1"
        assert data["status"] == "AfterSchool"
        assert data["timestamp"].endswith("Z")

    def test_json_without_context(self):
        data = json.loads(JSONFormatter().format(_record()))
        assert "request_id" not in data

    def test_human_line_with_record_key(self):
        with RequestContext(request_id="drv-abc", record_id="2025-06-02_U1"):
            line = HumanFormatter().format(_record())
        assert "[drv-abc 2025-06-02_U1] Support record created" in line

    def test_human_line(self):
        with RequestContext(request_id="drv-abc"):
            line = HumanFormatter().format(_record())
        assert "[INFO] carebook.test: [drv-abc] Support record created" in line
