"""GradesManager contract: one grade per student, written by the teacher."""

from typing import Dict, Optional
import logging

from .base import Contract, entrypoint
from ..core.events import Event
from ..core.exceptions import IntegrityError, OutOfRange
from ..core.transaction import Call
from ..crypto.identity import normalize_address

logger = logging.getLogger(__name__)

MIN_GRADE = 0
MAX_GRADE = 100


class GradesManager(Contract):
    """Last-write-wins grade register gated on the deploying teacher."""

    def __init__(self, call: Call):
        super().__init__(call)
        self._grades: Dict[str, int] = {}

    @entrypoint("setGrade", mutating=True)
    def set_grade(self, call: Call, student: str, grade: int) -> None:
        """Set or overwrite ``student``'s grade.

        Authorization is checked before the value is looked at.

        Raises:
            NotAuthorized: If the caller is not the teacher
            OutOfRange: If grade is not an integer in [0, 100]
        """
        self._require(call, self.teacher())
        student = normalize_address(student, field="student")

        if isinstance(grade, bool) or not isinstance(grade, int):
            raise OutOfRange(grade, MIN_GRADE, MAX_GRADE)
        if not MIN_GRADE <= grade <= MAX_GRADE:
            raise OutOfRange(grade, MIN_GRADE, MAX_GRADE)

        previous = self._grades.get(student)
        self._write(self._grades, student, int(grade))
        self._emit("GradeSet", teacher=call.sender, student=student, grade=int(grade))
        logger.debug(f"Grade for {student}: {previous} -> {grade}")

    @entrypoint("getGrade")
    def get_grade(self, participant: str) -> Optional[int]:
        """Grade of ``participant``, or None if never set."""
        return self._grades.get(normalize_address(participant, field="participant"))

    @entrypoint("getMyGrade", bound=True)
    def get_my_grade(self, call: Call) -> Optional[int]:
        return self._grades.get(call.sender)

    def apply_event(self, event: Event) -> None:
        if event.name != "GradeSet":
            super().apply_event(event)
        if event.args["teacher"] != self.deployer:
            raise IntegrityError(
                f"Event {event.id} was recorded by {event.args['teacher']}, not by {self.deployer}",
                event_id=event.id,
            )
        self._grades[event.args["student"]] = event.args["grade"]
