"""Tests for the Attendance contract."""

import pytest

from classledger import AlreadyCheckedIn, InvalidSubject, Subject, ValidationError


class TestSubject:

    @pytest.mark.parametrize("value,expected", [
        (Subject.MATH, Subject.MATH),
        (0, Subject.PROGRAMMING),
        (1, Subject.ENGLISH),
        ("math", Subject.MATH),
        ("Programming", Subject.PROGRAMMING),
    ])
    def test_parse_accepts_members_values_and_names(self, value, expected):
        assert Subject.parse(value) is expected

    @pytest.mark.parametrize("value", [3, -1, "History", None, True, 1.0])
    def test_parse_rejects_unknown(self, value):
        with pytest.raises(InvalidSubject) as exc_info:
            Subject.parse(value)
        assert exc_info.value.reason == "InvalidSubject"

    def test_label(self):
        assert Subject.PROGRAMMING.label == "Programming"


class TestAttendance:

    def test_deployer_is_teacher(self, host, attendance, teacher):
        assert host.call(attendance, "teacher") == teacher

    def test_records_attendance_via_check_in(self, host, attendance, student):
        assert host.call(attendance, "isPresent", Subject.PROGRAMMING, student) is False

        host.transact(student, attendance, "checkIn", Subject.PROGRAMMING)

        assert host.call(attendance, "isPresent", Subject.PROGRAMMING, student) is True

    def test_emits_one_checked_in_event(self, host, attendance, student):
        receipt = host.transact(student, attendance, "checkIn", Subject.ENGLISH)

        assert len(receipt.events) == 1
        event = receipt.events[0]
        assert event.name == "CheckedIn"
        assert event.args == {"student": student, "subject": int(Subject.ENGLISH)}
        assert event.timestamp is not None
        assert host.events(name="CheckedIn") == receipt.events

    def test_duplicate_check_in_rejected(self, host, attendance, student):
        host.transact(student, attendance, "checkIn", Subject.MATH)

        with pytest.raises(AlreadyCheckedIn):
            host.transact(student, attendance, "checkIn", Subject.MATH)

        assert host.call(attendance, "isPresent", Subject.MATH, student) is True
        assert len(host.events(name="CheckedIn")) == 1

    def test_repeated_attempts_never_revert_presence(self, host, attendance, student):
        host.transact(student, attendance, "checkIn", Subject.MATH)
        for _ in range(3):
            with pytest.raises(AlreadyCheckedIn):
                host.transact(student, attendance, "checkIn", Subject.MATH)
        assert host.call(attendance, "isPresent", Subject.MATH, student) is True

    def test_same_student_multiple_subjects(self, host, attendance, student):
        host.transact(student, attendance, "checkIn", Subject.PROGRAMMING)
        assert host.call(attendance, "isPresent", Subject.PROGRAMMING, student) is True
        assert host.call(attendance, "isPresent", Subject.ENGLISH, student) is False

        host.transact(student, attendance, "checkIn", Subject.ENGLISH)
        assert host.call(attendance, "isPresent", Subject.ENGLISH, student) is True
        assert host.call(attendance, "isPresent", Subject.MATH, student) is False

    def test_presence_per_student_and_subject(self, host, attendance, student, other_student):
        host.transact(student, attendance, "checkIn", Subject.PROGRAMMING)

        assert host.call(attendance, "isPresent", Subject.PROGRAMMING, student) is True
        assert host.call(attendance, "isPresent", Subject.PROGRAMMING, other_student) is False
        assert host.call(attendance, "isPresent", Subject.MATH, student) is False

    def test_check_in_only_marks_the_caller(self, host, attendance, student, other_student):
        # Extra arguments cannot redirect a check-in to someone else
        with pytest.raises(TypeError):
            host.transact(student, attendance, "checkIn", Subject.MATH, other_student)

        assert host.call(attendance, "isPresent", Subject.MATH, other_student) is False
        assert host.call(attendance, "isPresent", Subject.MATH, student) is False

    def test_invalid_subject_rejected_without_event(self, host, attendance, student):
        with pytest.raises(InvalidSubject):
            host.transact(student, attendance, "checkIn", 7)
        assert host.events() == []

    def test_is_present_invalid_subject(self, host, attendance, student):
        with pytest.raises(InvalidSubject):
            host.call(attendance, "isPresent", 42, student)

    def test_is_present_requires_address(self, host, attendance):
        with pytest.raises(ValidationError):
            host.call(attendance, "isPresent", Subject.MATH, "alice")

    def test_addresses_compare_case_insensitively(self, host, attendance):
        mixed = "0x" + "Ab" * 20
        host.transact(mixed, attendance, "checkIn", "english")
        assert host.call(attendance, "isPresent", Subject.ENGLISH, mixed.lower()) is True
        assert host.call(attendance, "isPresent", Subject.ENGLISH, mixed.upper().replace("0X", "0x")) is True

    def test_python_method_names_resolve(self, host, attendance, student):
        host.transact(student, attendance, "check_in", Subject.MATH)
        assert host.call(attendance, "is_present", Subject.MATH, student) is True
