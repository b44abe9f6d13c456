"""Tests for the GradesManager contract."""

import pytest

from classledger import NotAuthorized, OutOfRange, UnknownEntryPoint, ValidationError


class TestGradesManager:

    def test_deployer_is_teacher(self, host, grades, teacher):
        assert host.call(grades, "teacher") == teacher

    def test_grade_unset_by_default(self, host, grades, student):
        assert host.call(grades, "getGrade", student) is None
        assert host.call(grades, "getMyGrade", sender=student) is None

    def test_zero_is_distinct_from_unset(self, host, grades, teacher, student):
        host.transact(teacher, grades, "setGrade", student, 0)
        assert host.call(grades, "getGrade", student) == 0

    def test_teacher_sets_grade(self, host, grades, teacher, student):
        receipt = host.transact(teacher, grades, "setGrade", student, 95)

        assert host.call(grades, "getGrade", student) == 95
        assert host.call(grades, "getMyGrade", sender=student) == 95
        assert [e.name for e in receipt.events] == ["GradeSet"]
        assert receipt.events[0].args == {"teacher": teacher, "student": student, "grade": 95}

    def test_last_write_wins(self, host, grades, teacher, student):
        host.transact(teacher, grades, "setGrade", student, 10)
        host.transact(teacher, grades, "setGrade", student, 90)

        assert host.call(grades, "getGrade", student) == 90
        assert [e.args["grade"] for e in host.events(name="GradeSet")] == [10, 90]

    @pytest.mark.parametrize("value", [0, 1, 50, 99, 100])
    def test_boundaries_accepted(self, host, grades, teacher, student, value):
        host.transact(teacher, grades, "setGrade", student, value)
        assert host.call(grades, "getGrade", student) == value

    @pytest.mark.parametrize("value", [-1, 101, 150, 10**6])
    def test_out_of_range_rejected(self, host, grades, teacher, student, value):
        with pytest.raises(OutOfRange) as exc_info:
            host.transact(teacher, grades, "setGrade", student, value)

        assert exc_info.value.reason == "OutOfRange"
        assert host.call(grades, "getGrade", student) is None
        assert host.events() == []

    @pytest.mark.parametrize("value", [True, 42.0, "42", None])
    def test_non_integer_rejected(self, host, grades, teacher, student, value):
        with pytest.raises(OutOfRange):
            host.transact(teacher, grades, "setGrade", student, value)

    def test_out_of_range_keeps_previous_value(self, host, grades, teacher, student):
        host.transact(teacher, grades, "setGrade", student, 70)
        with pytest.raises(OutOfRange):
            host.transact(teacher, grades, "setGrade", student, 150)
        assert host.call(grades, "getGrade", student) == 70

    def test_non_teacher_rejected(self, host, grades, student, other_student):
        with pytest.raises(NotAuthorized) as exc_info:
            host.transact(other_student, grades, "setGrade", student, 95)

        assert exc_info.value.caller == other_student
        assert host.call(grades, "getGrade", student) is None
        assert host.events() == []

    def test_student_cannot_grade_self(self, host, grades, student):
        with pytest.raises(NotAuthorized):
            host.transact(student, grades, "setGrade", student, 100)

    def test_authorization_checked_before_range(self, host, grades, student, other_student):
        with pytest.raises(NotAuthorized):
            host.transact(other_student, grades, "setGrade", student, 150)

    def test_bad_student_address(self, host, grades, teacher):
        with pytest.raises(ValidationError):
            host.transact(teacher, grades, "setGrade", "bob", 80)

    def test_get_my_grade_needs_sender(self, host, grades):
        with pytest.raises(ValidationError):
            host.call(grades, "getMyGrade")

    def test_get_my_grade_is_bound_to_sender(self, host, grades, teacher, student, other_student):
        host.transact(teacher, grades, "setGrade", student, 88)
        assert host.call(grades, "getMyGrade", sender=student) == 88
        assert host.call(grades, "getMyGrade", sender=other_student) is None

    def test_reads_cannot_be_transacted(self, host, grades, teacher, student):
        with pytest.raises(UnknownEntryPoint):
            host.transact(teacher, grades, "getGrade", student)

    def test_writes_cannot_be_called(self, host, grades, student):
        with pytest.raises(UnknownEntryPoint):
            host.call(grades, "setGrade", student, 50)


class TestScenarios:

    def test_unauthorized_then_teacher(self, host, grades, teacher, student, other_student):
        with pytest.raises(NotAuthorized):
            host.transact(other_student, grades, "setGrade", student, 95)
        assert host.call(grades, "getGrade", student) is None

        host.transact(teacher, grades, "setGrade", student, 95)
        assert host.call(grades, "getGrade", student) == 95
        assert host.call(grades, "getMyGrade", sender=student) == 95

    def test_ledgers_are_independent(self, host, attendance, grades, teacher, student):
        host.transact(student, attendance, "checkIn", 0)
        host.transact(teacher, grades, "setGrade", student, 60)

        assert [e.contract for e in host.events()] == ["Attendance", "GradesManager"]
        assert len(host.events(contract=attendance)) == 1
        assert len(host.events(contract="GradesManager")) == 1
