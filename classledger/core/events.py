"""Append-only, hash-chained event log for ClassLedger."""

import json
import threading
from datetime import datetime
from typing import Any, Dict, List, Optional, Callable, Iterator, Iterable
import logging

from pydantic import BaseModel, Field, field_validator

from .clock import to_utc, utc_now
from .exceptions import IntegrityError, StorageError
from ..crypto.hashing import HashChain
from ..backends.base import StorageBackend, InMemoryBackend

logger = logging.getLogger(__name__)


class Event(BaseModel):
    """Immutable event emitted by a successful mutating call."""

    model_config = {"frozen": True}

    tx_id: str
    log_index: int = 0
    name: str
    contract: str
    args: Dict[str, Any]
    block_number: int = 0
    timestamp: datetime = Field(default_factory=utc_now)
    hash: Optional[str] = None
    previous_hash: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        """Ensure the event has a name."""
        if not v:
            raise ValueError("Event name cannot be empty")
        return v

    @field_validator("timestamp")
    @classmethod
    def validate_timestamp(cls, v):
        """Store every timestamp in UTC."""
        return to_utc(v)

    @property
    def id(self) -> str:
        """Stable identifier: transaction id plus position in its event list."""
        return f"{self.tx_id}-{self.log_index}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary."""
        return {
            "tx_id": self.tx_id,
            "log_index": self.log_index,
            "name": self.name,
            "contract": self.contract,
            "args": self.args,
            "block_number": self.block_number,
            "timestamp": self.timestamp.isoformat(),
            "hash": self.hash,
            "previous_hash": self.previous_hash,
        }

    def to_json(self) -> str:
        """Convert event to JSON string."""
        return json.dumps(self.to_dict(), sort_keys=True)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Event":
        """Create event from dictionary."""
        data = dict(data)
        if isinstance(data.get("timestamp"), str):
            data["timestamp"] = datetime.fromisoformat(data["timestamp"])
        return cls(**data)


class LogStats(BaseModel):
    """Event log statistics."""

    total_events: int = 0
    events_by_name: Dict[str, int] = Field(default_factory=dict)
    first_event_time: Optional[datetime] = None
    last_event_time: Optional[datetime] = None
    last_block_number: int = 0
    total_size_bytes: int = 0
    hash_algorithm: str = "sha256"


class EventLog:
    """Hash-chained store for the events of every accepted transaction."""

    def __init__(
        self,
        backend: Optional[StorageBackend] = None,
        hash_algorithm: str = "sha256",
    ):
        self.backend = backend or InMemoryBackend()
        self.hash_chain = HashChain(algorithm=hash_algorithm)

        self._write_lock = threading.Lock()
        self._subscribers: List[Callable[[Event], None]] = []

    def append(self, events: Iterable[Event]) -> List[Event]:
        """Append the events of one transaction to the log.

        Events are chained and stored together; if storage fails part-way
        the log is left as it was before the call.

        Args:
            events: Unsealed events in emission order

        Returns:
            The sealed events, with hash and previous_hash set

        Raises:
            StorageError: If storage operation fails
        """
        with self._write_lock:
            previous_hash = None
            last_event = self.backend.get_latest_event()
            if last_event:
                previous_hash = last_event.hash

            sealed = []
            for event in events:
                event_dict = event.model_dump()
                event_dict["previous_hash"] = previous_hash
                event_dict["hash"] = None
                event_dict["hash"] = self.hash_chain.calculate_hash(Event(**event_dict))
                final_event = Event(**event_dict)
                sealed.append(final_event)
                previous_hash = final_event.hash

            if not sealed:
                return sealed

            try:
                self.backend.append_events(sealed)
            except StorageError:
                raise
            except Exception as e:
                raise StorageError(f"Failed to append events: {e}", "append", self.backend.name)

        for event in sealed:
            self._notify_subscribers(event)

        return sealed

    def get_event(self, event_id: str) -> Optional[Event]:
        """Get an event by its id."""
        return self.backend.get_event(event_id)

    def get_events(
        self,
        name: Optional[str] = None,
        contract: Optional[str] = None,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> Iterator[Event]:
        """Get events, oldest first, with optional filters.

        Args:
            name: Only events with this name
            contract: Only events emitted by this contract
            start_time: Earliest timestamp, naive values are taken as UTC
            end_time: Latest timestamp, naive values are taken as UTC
            limit: Maximum number of events

        Yields:
            Matching events
        """
        if start_time is not None:
            start_time = to_utc(start_time)
        if end_time is not None:
            end_time = to_utc(end_time)

        returned = 0
        for event in self.backend.get_events(start_time=start_time, end_time=end_time):
            if name and event.name != name:
                continue
            if contract and event.contract != contract:
                continue
            yield event
            returned += 1
            if limit and returned >= limit:
                break

    def verify_integrity(self) -> bool:
        """Verify the hash chain over every stored event.

        Returns:
            True if integrity is valid

        Raises:
            IntegrityError: If integrity check fails
        """
        logger.info("Starting event log verification...")

        previous_hash = None
        event_count = 0

        for event in self.backend.get_events():
            event_count += 1

            if event.previous_hash != previous_hash:
                raise IntegrityError(
                    f"Hash chain broken at event {event.id}",
                    event_id=event.id,
                    expected_hash=previous_hash,
                    actual_hash=event.previous_hash,
                )

            calculated_hash = self.hash_chain.calculate_hash(event)
            if event.hash != calculated_hash:
                raise IntegrityError(
                    f"Invalid hash for event {event.id}",
                    event_id=event.id,
                    expected_hash=calculated_hash,
                    actual_hash=event.hash,
                )

            previous_hash = event.hash

        logger.info(f"Event log verification complete. Verified {event_count} events.")
        return True

    def get_stats(self) -> LogStats:
        """Get event log statistics."""
        stats = LogStats(hash_algorithm=self.hash_chain.algorithm)

        for event in self.backend.get_events():
            stats.total_events += 1
            stats.events_by_name[event.name] = stats.events_by_name.get(event.name, 0) + 1
            if stats.first_event_time is None:
                stats.first_event_time = event.timestamp
            stats.last_event_time = event.timestamp
            stats.last_block_number = max(stats.last_block_number, event.block_number)

        stats.total_size_bytes = self.backend.get_size()
        return stats

    def subscribe(self, callback: Callable[[Event], None]) -> None:
        """Subscribe to new events."""
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[Event], None]) -> None:
        """Unsubscribe from new events."""
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def _notify_subscribers(self, event: Event) -> None:
        """Notify subscribers of a new event."""
        for callback in self._subscribers:
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Subscriber callback failed: {e}")

    def close(self) -> None:
        """Close the underlying backend."""
        self.backend.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
