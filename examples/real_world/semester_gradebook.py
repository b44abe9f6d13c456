"""
Real-World Example: A Semester Gradebook

This example runs a small class through a semester on ClassLedger:
students check in for lectures, the teacher records and corrects grades,
and a dashboard follows the event stream the way a web UI would.

Features:
- Signed check-ins from student wallets
- Grade entry and correction by the teacher only
- Deduplicated, newest-first activity feed
- Persistent, tamper-evident event log in SQLite
"""

import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../..')))

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
)


class SemesterGradebook:
    """One class, one teacher, a handful of students"""

    def __init__(self, database_path="semester.db"):
        # Only signed transactions are accepted, as from real wallets
        self.host = Host(HostConfig(
            backend="sqlite",
            db_path=database_path,
            require_signatures=True,
        ))

        self.teacher = Account.generate()
        self.host.deploy(Attendance, self.teacher.address)
        self.host.deploy(GradesManager, self.teacher.address)

        self.feed = EventFeed(max_events=20)
        self.host.event_log.subscribe(self.feed)

        self.students = {}

    def enroll(self, name):
        """Give a student a wallet"""
        self.students[name] = LedgerClient(self.host, Account.generate())
        return self.students[name]

    def lecture(self, subject, attendees):
        """Record who showed up for a lecture"""
        for name in attendees:
            try:
                self.students[name].check_in(subject)
            except ClassLedgerError as e:
                print(f"  {name}: {e.reason}")

    def grade(self, name, value):
        """Teacher enters or corrects a grade from form input"""
        LedgerClient(self.host, self.teacher).set_grade(self.students[name].address, value)

    def report_card(self):
        """Attendance and grade per student"""
        rows = []
        for name, client in self.students.items():
            present = [s.label for s in Subject if client.is_present(s)]
            rows.append({
                "student": name,
                "address": client.address,
                "present_for": present,
                "grade": client.get_my_grade(),
            })
        return rows


def main():
    print("=" * 70)
    print("  ClassLedger: Semester Gradebook")
    print("=" * 70)

    book = SemesterGradebook(database_path=":memory:")
    for name in ("ana", "ben", "chloe"):
        book.enroll(name)

    print("\nLectures:")
    book.lecture(Subject.PROGRAMMING, ["ana", "ben"])
    book.lecture(Subject.ENGLISH, ["ana", "chloe"])
    book.lecture(Subject.PROGRAMMING, ["ben"])  # second attempt is refused

    print("\nGrades:")
    book.grade("ana", "88")
    book.grade("ben", 72)
    book.grade("ben", 79)  # correction overwrites
    try:
        book.students["chloe"].set_grade(book.students["chloe"].address, 100)
    except ClassLedgerError as e:
        print(f"  chloe grading herself: {e.reason}")

    print("\nReport card:")
    for row in book.report_card():
        print(f"  {row['student']:<6} grade={row['grade']!s:<5} present={', '.join(row['present_for']) or '-'}")

    print("\nActivity (newest first):")
    for event in book.feed:
        print(f"  #{event.block_number:<3} {event.name:<10} {event.args}")

    book.host.event_log.verify_integrity()
    print("\n✓ Event log verified")


if __name__ == "__main__":
    main()
