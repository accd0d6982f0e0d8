#!/usr/bin/env python3
"""carebook CLI - derive and inspect support records."""

import argparse
import json
import logging
import sys
from datetime import date

from pydantic import ValidationError

from carebook import config
from carebook.attendance import (
    AddonMasterEntry,
    AttendanceEvent,
    PersistenceError,
    RecordDeriver,
    SupportPlan,
)
from carebook.attendance.normalize import event_from_row
from carebook.observability import configure_logging
from carebook.record_store import get_store

logger = logging.getLogger(__name__)


def _read_json(path: str):
    if path == "-":
        return json.load(sys.stdin)
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def _as_list(data) -> list:
    return data if isinstance(data, list) else [data]


def cmd_init(args):
    """Create the record DB schema."""
    store = get_store(args.db)
    print(f"Record store ready: {store.db_path}")
    return 0


def cmd_derive(args):
    """Derive support records from an event file (object or list)."""
    rows = _as_list(_read_json(args.file))
    deriver = RecordDeriver.from_store(get_store(args.db))

    events = []
    invalid = 0
    for row in rows:
        try:
            events.append(event_from_row(row) if args.loose else AttendanceEvent.model_validate(row))
        except (ValueError, ValidationError) as exc:
            invalid += 1
            print(f"✗ invalid event {row.get('date')} {row.get('userId') or row.get('userName')}: {exc}")

    summary = deriver.derive_many(events)
    for result in summary.results:
        mark = "✓" if result.created else "·"
        print(f"{mark} {result.record_id} {result.outcome.value}")
    for failure in summary.failures:
        print(f"✗ {failure.event.record_id} failed: {failure.error}")

    print(
        f"\n{summary.created} created, {summary.skipped} skipped, "
        f"{summary.failed} failed, {invalid} invalid"
    )
    return 1 if summary.failed or invalid else 0


def cmd_show(args):
    """Print one support record as JSON."""
    record = get_store(args.db).find_record(date.fromisoformat(args.date), args.user_id)
    if record is None:
        print(f"No support record for {args.user_id} on {args.date}")
        return 1
    print(json.dumps(record.to_document(), indent=2, ensure_ascii=False))
    return 0


def cmd_load_plans(args):
    """Load support plans (object or list) into the store."""
    store = get_store(args.db)
    for raw in _as_list(_read_json(args.file)):
        plan_id = store.save_plan(SupportPlan.model_validate(raw))
        print(f"✓ plan {plan_id}")
    return 0


def cmd_set_addon(args):
    """Add an addon master entry."""
    entry = AddonMasterEntry(name=args.name, target=args.target, details=args.details)
    get_store(args.db).save_addon(entry)
    print(f"✓ {entry.name} ({entry.target}): {entry.details}")
    return 0


def cmd_serve(args):
    """Run the HTTP API."""
    from api.server import main as serve

    serve(host=args.host, port=args.port)
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="carebook: support records from day-care attendance"
    )
    parser.add_argument("--db", help="Record DB path (default: CAREBOOK_DB or ~/.carebook)")
    parser.add_argument("--log-level", default=config.LOG_LEVEL, help="Log level")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("init", help="Create the record DB schema")

    p = subparsers.add_parser("derive", help="Derive records from a JSON event file")
    p.add_argument("file", help="JSON file with one event or a list ('-' for stdin)")
    p.add_argument("--loose", action="store_true", help="Normalize sheet-style rows first")

    p = subparsers.add_parser("show", help="Show a support record")
    p.add_argument("date", help="YYYY-MM-DD")
    p.add_argument("user_id")

    p = subparsers.add_parser("load-plans", help="Load support plans from JSON")
    p.add_argument("file", help="JSON file with one plan or a list ('-' for stdin)")

    p = subparsers.add_parser("set-addon", help="Add an addon master entry")
    p.add_argument("name")
    p.add_argument("details")
    p.add_argument("--target", default="facility", help="facility or user (default: facility)")

    p = subparsers.add_parser("serve", help="Run the HTTP API")
    p.add_argument("--host", default=None)
    p.add_argument("--port", type=int, default=None)

    args = parser.parse_args(argv)
    configure_logging(args.log_level, config.LOG_JSON)

    commands = {
        "init": cmd_init,
        "derive": cmd_derive,
        "show": cmd_show,
        "load-plans": cmd_load_plans,
        "set-addon": cmd_set_addon,
        "serve": cmd_serve,
    }

    if args.command not in commands:
        parser.print_help()
        return 2

    try:
        return commands[args.command](args)
    except PersistenceError as exc:
        logger.error("Record store error: %s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
