"""Base storage backend interface for the ClassLedger event log."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, List, Iterator, Dict, Any, Sequence

from ..core.clock import to_utc
from ..core.exceptions import StorageError


class StorageBackend(ABC):
    """Abstract base class for event storage backends."""

    def __init__(self, **kwargs):
        self.name = self.__class__.__name__
        self._config = kwargs

    @abstractmethod
    def append_events(self, events: Sequence[Any]) -> None:
        """Append the events of one transaction, all or none.

        Args:
            events: Sealed events in chain order

        Raises:
            StorageError: If append fails
        """
        pass

    @abstractmethod
    def get_event(self, event_id: str) -> Optional[Any]:
        """Get event by id.

        Returns:
            Event if found, None otherwise
        """
        pass

    @abstractmethod
    def get_events(
        self,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> Iterator[Any]:
        """Get events in chain order within a time range.

        Args:
            start_time: Start time filter
            end_time: End time filter
            limit: Maximum number of events
            offset: Number of events to skip

        Yields:
            Matching events
        """
        pass

    @abstractmethod
    def get_latest_event(self) -> Optional[Any]:
        """Get the most recently appended event."""
        pass

    @abstractmethod
    def count_events(self) -> int:
        """Get total number of events."""
        pass

    @abstractmethod
    def get_size(self) -> int:
        """Get approximate storage size in bytes."""
        pass

    def close(self) -> None:
        """Close storage connection."""
        pass

    def verify_storage(self) -> bool:
        """Verify storage health.

        Returns:
            True if storage is healthy
        """
        return True


class InMemoryBackend(StorageBackend):
    """In-memory storage backend for testing and development."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._events: Dict[str, Any] = {}
        self._ordered_ids: List[str] = []
        self._size = 0

    def append_events(self, events: Sequence[Any]) -> None:
        """Append events to memory storage."""
        ids = [event.id for event in events]
        if len(set(ids)) != len(ids):
            raise StorageError("Duplicate event ids in one append", "append", self.name)
        for event_id in ids:
            if event_id in self._events:
                raise StorageError(f"Event {event_id} already exists", "append", self.name)

        for event in events:
            self._events[event.id] = event
            self._ordered_ids.append(event.id)
            self._size += len(event.to_json())

    def get_event(self, event_id: str) -> Optional[Any]:
        """Get event by id from memory."""
        return self._events.get(event_id)

    def get_events(
        self,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> Iterator[Any]:
        """Get events within time range from memory."""
        if start_time is not None:
            start_time = to_utc(start_time)
        if end_time is not None:
            end_time = to_utc(end_time)

        returned = 0

        # Snapshot the order so appends during iteration are not observed
        for event_id in list(self._ordered_ids)[offset:]:
            event = self._events[event_id]

            if start_time and event.timestamp < start_time:
                continue

            if end_time and event.timestamp > end_time:
                continue

            yield event
            returned += 1

            if limit and returned >= limit:
                break

    def get_latest_event(self) -> Optional[Any]:
        """Get the most recent event from memory."""
        if self._ordered_ids:
            return self._events[self._ordered_ids[-1]]
        return None

    def count_events(self) -> int:
        """Get total number of events in memory."""
        return len(self._events)

    def get_size(self) -> int:
        """Get approximate storage size in bytes."""
        return self._size

    def clear(self) -> None:
        """Clear all events (for testing)."""
        self._events.clear()
        self._ordered_ids.clear()
        self._size = 0
