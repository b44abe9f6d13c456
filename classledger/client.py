"""Wallet-side helpers for talking to a ClassLedger host."""

from typing import Any, Iterable, List, Optional, Set
import logging

from .contracts.attendance import Subject
from .contracts.grades import MIN_GRADE, MAX_GRADE
from .core.events import Event
from .core.exceptions import OutOfRange
from .core.host import Host, ContractRef
from .core.transaction import Receipt, Transaction
from .crypto.identity import Account, normalize_address

logger = logging.getLogger(__name__)


def parse_grade(value: Any) -> int:
    """Turn form input into a grade, rejecting anything outside [0, 100].

    Raises:
        OutOfRange: If the value is not a whole number in range
    """
    if isinstance(value, bool):
        raise OutOfRange(value, MIN_GRADE, MAX_GRADE)
    if isinstance(value, str):
        text = value.strip()
        try:
            value = int(text)
        except ValueError:
            raise OutOfRange(text, MIN_GRADE, MAX_GRADE)
    if isinstance(value, float):
        if not value.is_integer():
            raise OutOfRange(value, MIN_GRADE, MAX_GRADE)
        value = int(value)
    if not isinstance(value, int) or not MIN_GRADE <= value <= MAX_GRADE:
        raise OutOfRange(value, MIN_GRADE, MAX_GRADE)
    return value


class EventFeed:
    """Deduplicated, newest-first view over delivered events.

    Log delivery is at-least-once, so the same event may arrive in several
    batches. Events are keyed by their stable id.
    """

    def __init__(self, name: Optional[str] = None, max_events: Optional[int] = None):
        self.name = name
        self.max_events = max_events
        self._events: List[Event] = []
        self._seen: Set[str] = set()

    def ingest(self, events: Iterable[Event]) -> List[Event]:
        """Add a delivered batch and return the events not seen before."""
        fresh = []
        for event in events:
            if self.name and event.name != self.name:
                continue
            if event.id in self._seen:
                continue
            self._seen.add(event.id)
            fresh.append(event)

        # Newest batch goes on top, newest event first within it
        self._events = list(reversed(fresh)) + self._events
        if self.max_events:
            self._events = self._events[:self.max_events]
        return fresh

    def __call__(self, event: Event) -> None:
        self.ingest([event])

    @property
    def events(self) -> List[Event]:
        return list(self._events)

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self):
        return iter(self._events)


class LedgerClient:
    """Signs and submits transactions for one account."""

    def __init__(
        self,
        host: Host,
        account: Account,
        attendance: ContractRef = "Attendance",
        grades: ContractRef = "GradesManager",
    ):
        self.host = host
        self.account = account
        self.attendance = attendance
        self.grades = grades

    @property
    def address(self) -> str:
        return self.account.address

    def _submit(self, contract: ContractRef, method: str, *args) -> Receipt:
        target = self.host.contract(contract)
        tx = Transaction.build(
            self.account,
            target.address,
            method,
            *args,
            nonce=self.host.nonce(self.address),
        )
        return self.host.submit(tx)

    def check_in(self, subject) -> Receipt:
        return self._submit(self.attendance, "checkIn", Subject.parse(subject))

    def set_grade(self, student: str, grade: Any) -> Receipt:
        """Validate form input locally, then submit setGrade.

        Raises:
            ValidationError: If student is not an address
            OutOfRange: If grade is not a whole number in [0, 100]
        """
        student = normalize_address(student, field="student")
        return self._submit(self.grades, "setGrade", student, parse_grade(grade))

    def is_present(self, subject, participant: Optional[str] = None) -> bool:
        return self.host.call(self.attendance, "isPresent", subject, participant or self.address)

    def get_grade(self, participant: str) -> Optional[int]:
        return self.host.call(self.grades, "getGrade", participant)

    def get_my_grade(self) -> Optional[int]:
        return self.host.call(self.grades, "getMyGrade", sender=self.address)

    def teacher(self, contract: Optional[ContractRef] = None) -> str:
        return self.host.call(contract or self.grades, "teacher")
