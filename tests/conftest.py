"""Shared fixtures for ClassLedger tests."""

from datetime import datetime, timedelta, timezone

import pytest

from classledger import Account, Attendance, GradesManager, Host


class StepClock:
    """Deterministic clock advancing one second per reading."""

    def __init__(self, start=None):
        self.now = start or datetime(2026, 1, 1, tzinfo=timezone.utc)

    def __call__(self):
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture
def teacher():
    return "0x" + "11" * 20


@pytest.fixture
def student():
    return "0x" + "22" * 20


@pytest.fixture
def other_student():
    return "0x" + "33" * 20


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def host(clock):
    with Host(clock=clock) as h:
        yield h


@pytest.fixture
def attendance(host, teacher):
    return host.deploy(Attendance, teacher)


@pytest.fixture
def grades(host, teacher):
    return host.deploy(GradesManager, teacher)


@pytest.fixture(scope="session")
def teacher_account():
    return Account.generate()


@pytest.fixture(scope="session")
def student_account():
    return Account.generate()


@pytest.fixture(scope="session")
def outsider_account():
    return Account.generate()
