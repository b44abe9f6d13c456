"""Exception classes for ClassLedger."""

from typing import Optional, Any


class ClassLedgerError(Exception):
    """Base exception for all ClassLedger errors."""

    reason = "ClassLedgerError"

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(ClassLedgerError):
    """Raised when input validation fails."""

    reason = "ValidationError"

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        details = {"field": field, "value": value}
        super().__init__(message, details)
        self.field = field
        self.value = value


class InvalidSubject(ValidationError):
    """Raised when a subject is outside the closed enumeration."""

    reason = "InvalidSubject"

    def __init__(self, value: Any):
        super().__init__(f"Invalid subject: {value!r}", field="subject", value=value)


class OutOfRange(ValidationError):
    """Raised when a grade is outside the accepted range."""

    reason = "OutOfRange"

    def __init__(self, value: Any, low: int = 0, high: int = 100):
        super().__init__(
            f"Grade {value!r} is out of range [{low}, {high}]",
            field="grade",
            value=value,
        )
        self.low = low
        self.high = high


class UnknownEntryPoint(ValidationError):
    """Raised when a contract does not expose the requested method."""

    reason = "UnknownEntryPoint"

    def __init__(self, contract: str, method: str):
        super().__init__(
            f"{contract} has no entry point {method!r}",
            field="method",
            value=method,
        )
        self.contract = contract


class AlreadyCheckedIn(ClassLedgerError):
    """Raised on a second check-in for the same subject and participant."""

    reason = "AlreadyCheckedIn"

    def __init__(self, subject: Any, participant: str):
        details = {"subject": subject, "participant": participant}
        super().__init__(f"{participant} already checked in for {subject}", details)
        self.subject = subject
        self.participant = participant


class NotAuthorized(ClassLedgerError):
    """Raised when a caller other than the authority attempts a restricted write."""

    reason = "NotAuthorized"

    def __init__(self, caller: str, authority: str):
        details = {"caller": caller, "authority": authority}
        super().__init__(f"{caller} is not authorized; only {authority} may do this", details)
        self.caller = caller
        self.authority = authority


class IntegrityError(ClassLedgerError):
    """Raised when the event hash chain is compromised."""

    reason = "IntegrityError"

    def __init__(
        self,
        message: str,
        event_id: Optional[str] = None,
        expected_hash: Optional[str] = None,
        actual_hash: Optional[str] = None,
    ):
        details = {
            "event_id": event_id,
            "expected_hash": expected_hash,
            "actual_hash": actual_hash,
        }
        super().__init__(message, details)
        self.event_id = event_id
        self.expected_hash = expected_hash
        self.actual_hash = actual_hash


class StorageError(ClassLedgerError):
    """Raised when storage operations fail."""

    reason = "StorageError"

    def __init__(self, message: str, operation: str, backend: Optional[str] = None):
        details = {"operation": operation, "backend": backend}
        super().__init__(message, details)
        self.operation = operation
        self.backend = backend


class SignatureError(ClassLedgerError):
    """Raised when a signed transaction cannot be accepted."""

    reason = "SignatureError"

    def __init__(self, message: str, sender: Optional[str] = None, nonce: Optional[int] = None):
        details = {"sender": sender, "nonce": nonce}
        super().__init__(message, details)
        self.sender = sender
        self.nonce = nonce
