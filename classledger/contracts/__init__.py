"""Ledger contracts hosted by ClassLedger."""

from .base import Contract, entrypoint
from .attendance import Attendance, Subject
from .grades import GradesManager, MIN_GRADE, MAX_GRADE

__all__ = [
    'Contract',
    'entrypoint',
    'Attendance',
    'Subject',
    'GradesManager',
    'MIN_GRADE',
    'MAX_GRADE',
]
