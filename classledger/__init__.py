"""ClassLedger - Attendance and Grade Ledger.

A small deterministic ledger for academic records: students check in per
subject, and a single teacher identity records grades. Every accepted write
emits a hash-chained event.
"""

from classledger.core.host import Host
from classledger.core.events import Event, EventLog
from classledger.core.transaction import Call, Receipt, Transaction
from classledger.core.exceptions import (
    ClassLedgerError,
    ValidationError,
    InvalidSubject,
    OutOfRange,
    AlreadyCheckedIn,
    NotAuthorized,
    IntegrityError,
    StorageError,
    SignatureError,
    UnknownEntryPoint,
)
from classledger.contracts import Attendance, GradesManager, Subject
from classledger.crypto.identity import Account
from classledger.config import HostConfig
from classledger.client import EventFeed, LedgerClient

__version__ = "1.0.0"

__all__ = [
    "Host",
    "HostConfig",
    "Event",
    "EventLog",
    "Call",
    "Receipt",
    "Transaction",
    "Attendance",
    "GradesManager",
    "Subject",
    "Account",
    "EventFeed",
    "LedgerClient",
    "ClassLedgerError",
    "ValidationError",
    "InvalidSubject",
    "OutOfRange",
    "AlreadyCheckedIn",
    "NotAuthorized",
    "IntegrityError",
    "StorageError",
    "SignatureError",
    "UnknownEntryPoint",
]
