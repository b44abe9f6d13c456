#!/usr/bin/env python
"""Command-line interface for ClassLedger."""

import argparse
import csv
import io
import json
import logging
import sys
from pathlib import Path

from dateutil import parser as date_parser

from classledger import (
    Account,
    Attendance,
    ClassLedgerError,
    EventFeed,
    GradesManager,
    Host,
    HostConfig,
    LedgerClient,
    Subject,
    __version__,
)


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="ClassLedger - Attendance and Grade Ledger",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"ClassLedger {__version__}",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log host activity")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Verify command
    verify_parser = subparsers.add_parser("verify", help="Verify event log integrity")
    verify_parser.add_argument("-b", "--backend", default="memory", choices=["memory", "sqlite"], help="Backend type")
    verify_parser.add_argument("-c", "--connection", help="SQLite database path")

    # Stats command
    stats_parser = subparsers.add_parser("stats", help="Show event log statistics")
    stats_parser.add_argument("-b", "--backend", default="memory", choices=["memory", "sqlite"], help="Backend type")
    stats_parser.add_argument("-c", "--connection", help="SQLite database path")

    # Export command
    export_parser = subparsers.add_parser("export", help="Export events")
    export_parser.add_argument("-b", "--backend", default="memory", choices=["memory", "sqlite"], help="Backend type")
    export_parser.add_argument("-c", "--connection", help="SQLite database path")
    export_parser.add_argument("-o", "--output", help="Output file (default: stdout)")
    export_parser.add_argument("-f", "--format", default="json", choices=["json", "csv"], help="Export format")
    export_parser.add_argument("--event", help="Only events with this name, e.g. GradeSet")
    export_parser.add_argument("--since", help="Only events at or after this time")

    # Demo command
    demo_parser = subparsers.add_parser("demo", help="Run the attendance and grades walkthrough")
    demo_parser.add_argument("-b", "--backend", default="memory", choices=["memory", "sqlite"], help="Backend type")
    demo_parser.add_argument("-c", "--connection", help="SQLite database path")

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    if not args.command:
        parser.print_help()
        return 1

    try:
        if args.command == "verify":
            with _create_host(args.backend, args.connection) as host:
                print("Verifying event log integrity...")
                try:
                    host.event_log.verify_integrity()
                    print("✓ Event log integrity verified successfully")
                    return 0
                except ClassLedgerError as e:
                    print(f"✗ Integrity verification failed: {e}")
                    return 1

        elif args.command == "stats":
            with _create_host(args.backend, args.connection) as host:
                stats = host.event_log.get_stats()
                print("Event Log Statistics:")
                print(f"  Total events: {stats.total_events}")
                for name, count in sorted(stats.events_by_name.items()):
                    print(f"    {name}: {count}")
                print(f"  Last block: {stats.last_block_number}")
                print(f"  Hash algorithm: {stats.hash_algorithm}")
                print(f"  Storage size: {stats.total_size_bytes:,} bytes")
                if stats.first_event_time:
                    print(f"  First event: {stats.first_event_time.isoformat()}")
                if stats.last_event_time:
                    print(f"  Last event: {stats.last_event_time.isoformat()}")

        elif args.command == "export":
            since = date_parser.isoparse(args.since) if args.since else None

            with _create_host(args.backend, args.connection) as host:
                events = list(host.event_log.get_events(name=args.event, start_time=since))

            if args.format == "json":
                output = json.dumps([e.to_dict() for e in events], indent=2)
            else:  # CSV
                output_buffer = io.StringIO()
                if events:
                    fieldnames = ["id", "block_number", "timestamp", "contract", "name", "args", "hash"]
                    writer = csv.DictWriter(output_buffer, fieldnames=fieldnames)
                    writer.writeheader()
                    for event in events:
                        row = event.to_dict()
                        row["id"] = event.id
                        row["args"] = json.dumps(row["args"], sort_keys=True)
                        writer.writerow({k: row.get(k) for k in fieldnames})
                output = output_buffer.getvalue()

            if args.output:
                Path(args.output).write_text(output)
                print(f"Exported {len(events)} events to {args.output}")
            else:
                print(output)

        elif args.command == "demo":
            with _create_host(args.backend, args.connection) as host:
                return _run_demo(host)

    except (ClassLedgerError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


def _create_host(backend_type: str, connection: str = None) -> Host:
    """Create a host over the requested event storage."""
    if backend_type == "sqlite":
        if not connection:
            raise ValueError("SQLite backend needs -c/--connection")
        return Host(HostConfig(backend="sqlite", db_path=connection))
    return Host(HostConfig(backend="memory"))


def _run_demo(host: Host) -> int:
    print("ClassLedger Demo")
    print("=" * 50)

    teacher = Account.generate()
    student = Account.generate()
    outsider = Account.generate()

    host.deploy(Attendance, teacher.address)
    host.deploy(GradesManager, teacher.address)

    feed = EventFeed()
    host.event_log.subscribe(feed)

    as_teacher = LedgerClient(host, teacher)
    as_student = LedgerClient(host, student)
    as_outsider = LedgerClient(host, outsider)

    print(f"\nTeacher: {teacher.address}")
    print(f"Student: {student.address}")

    print(f"\nPresent for Programming? {as_student.is_present(Subject.PROGRAMMING)}")
    receipt = as_student.check_in(Subject.PROGRAMMING)
    print(f"✓ Checked in (tx {receipt.tx_id[:16]}..., block {receipt.block_number})")
    print(f"Present for Programming? {as_student.is_present(Subject.PROGRAMMING)}")

    _expect_rejection("Second check-in", lambda: as_student.check_in(Subject.PROGRAMMING))
    _expect_rejection("Grade 150", lambda: as_teacher.set_grade(student.address, 150))
    _expect_rejection("Grade by outsider", lambda: as_outsider.set_grade(student.address, 95))

    as_teacher.set_grade(student.address, 95)
    print(f"✓ Grade set; student sees {as_student.get_my_grade()}")

    print("\nEvent feed (newest first):")
    for event in feed:
        print(f"  [{event.block_number}] {event.name} {json.dumps(event.args, sort_keys=True)}")

    host.event_log.verify_integrity()
    print("\n✓ Event log integrity verified!")
    return 0


def _expect_rejection(label: str, action) -> None:
    try:
        action()
    except ClassLedgerError as e:
        print(f"✗ {label} rejected: {e.reason}")
    else:
        raise RuntimeError(f"{label} was unexpectedly accepted")


if __name__ == "__main__":
    sys.exit(main())
