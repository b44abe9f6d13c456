"""Attendance contract: per-subject check-in records."""

from enum import IntEnum
from typing import Dict, Tuple
import logging

from .base import Contract, entrypoint
from ..core.events import Event
from ..core.exceptions import AlreadyCheckedIn, IntegrityError, InvalidSubject
from ..core.transaction import Call
from ..crypto.identity import normalize_address

logger = logging.getLogger(__name__)


class Subject(IntEnum):
    """Subjects a participant can check in for."""

    PROGRAMMING = 0
    ENGLISH = 1
    MATH = 2

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @classmethod
    def parse(cls, value) -> "Subject":
        """Accept a member, its integer value or its name.

        Raises:
            InvalidSubject: If the value names no subject
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise InvalidSubject(value)
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError:
                raise InvalidSubject(value)
        if isinstance(value, str):
            member = cls.__members__.get(value.strip().upper())
            if member is not None:
                return member
        raise InvalidSubject(value)


class Attendance(Contract):
    """Records whether each participant has checked in for each subject.

    A record starts absent and can only ever become present once, by the
    participant themselves.
    """

    def __init__(self, call: Call):
        super().__init__(call)
        self._presence: Dict[Tuple[Subject, str], bool] = {}

    @entrypoint("checkIn", mutating=True)
    def check_in(self, call: Call, subject) -> None:
        """Mark the caller present for ``subject``.

        Raises:
            InvalidSubject: If subject is not a known subject
            AlreadyCheckedIn: If the caller already checked in for it
        """
        subject = Subject.parse(subject)
        key = (subject, call.sender)

        if self._presence.get(key, False):
            raise AlreadyCheckedIn(subject.label, call.sender)

        self._write(self._presence, key, True)
        self._emit("CheckedIn", student=call.sender, subject=int(subject))
        logger.debug(f"{call.sender} checked in for {subject.label}")

    @entrypoint("isPresent")
    def is_present(self, subject, participant: str) -> bool:
        subject = Subject.parse(subject)
        participant = normalize_address(participant, field="participant")
        return self._presence.get((subject, participant), False)

    def apply_event(self, event: Event) -> None:
        if event.name != "CheckedIn":
            super().apply_event(event)
        key = (Subject.parse(event.args["subject"]), event.args["student"])
        if key in self._presence:
            raise IntegrityError(f"Duplicate check-in in event {event.id}", event_id=event.id)
        self._presence[key] = True
