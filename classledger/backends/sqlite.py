"""SQLite backend for the ClassLedger event log."""

import sqlite3
import json
from datetime import datetime
from typing import Optional, Iterator, Sequence
from pathlib import Path
import logging
import threading

from .base import StorageBackend
from ..core.clock import to_utc
from ..core.exceptions import StorageError
from ..core.events import Event

logger = logging.getLogger(__name__)


class SQLiteBackend(StorageBackend):
    """SQLite storage backend for the event log."""

    def __init__(
        self,
        db_path: str = "classledger.db",
        table_name: str = "ledger_events",
        wal_mode: bool = True,
        **kwargs
    ):
        super().__init__(**kwargs)

        self.db_path = db_path
        self.table_name = table_name
        self.wal_mode = wal_mode

        # Thread-local storage for connections
        self._local = threading.local()

        self._init_database()

    def _get_connection(self) -> sqlite3.Connection:
        """Get thread-local database connection."""
        if not hasattr(self._local, 'connection') or self._local.connection is None:
            self._local.connection = sqlite3.connect(
                self.db_path,
                check_same_thread=False
            )
            self._local.connection.row_factory = sqlite3.Row

            if self.wal_mode:
                self._local.connection.execute("PRAGMA journal_mode = WAL")

            self._local.connection.execute("PRAGMA synchronous = NORMAL")

        return self._local.connection

    def _init_database(self):
        """Initialize database schema."""
        conn = self._get_connection()

        # seq preserves chain order; timestamps can tie within a transaction
        conn.execute(f"""
            CREATE TABLE IF NOT EXISTS {self.table_name} (
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                id TEXT NOT NULL UNIQUE,
                tx_id TEXT NOT NULL,
                log_index INTEGER NOT NULL,
                name TEXT NOT NULL,
                contract TEXT NOT NULL,
                args TEXT NOT NULL,
                block_number INTEGER NOT NULL,
                timestamp TEXT NOT NULL,
                hash TEXT NOT NULL UNIQUE,
                previous_hash TEXT
            )
        """)

        conn.execute(f"""
            CREATE INDEX IF NOT EXISTS idx_{self.table_name}_timestamp
            ON {self.table_name} (timestamp)
        """)
        conn.execute(f"""
            CREATE INDEX IF NOT EXISTS idx_{self.table_name}_name
            ON {self.table_name} (name)
        """)

        conn.commit()

    def append_events(self, events: Sequence[Event]) -> None:
        """Append the events of one transaction in a single SQL transaction."""
        conn = self._get_connection()

        try:
            with conn:
                conn.executemany(f"""
                    INSERT INTO {self.table_name}
                    (id, tx_id, log_index, name, contract, args,
                     block_number, timestamp, hash, previous_hash)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """, [
                    (
                        event.id,
                        event.tx_id,
                        event.log_index,
                        event.name,
                        event.contract,
                        json.dumps(event.args, sort_keys=True),
                        event.block_number,
                        to_utc(event.timestamp).isoformat(timespec="microseconds"),
                        event.hash,
                        event.previous_hash,
                    )
                    for event in events
                ])
        except sqlite3.IntegrityError as e:
            if 'UNIQUE constraint failed' in str(e):
                raise StorageError(
                    f"Event already exists: {e}",
                    "append",
                    self.name
                )
            raise StorageError(f"Failed to append events: {e}", "append", self.name)
        except sqlite3.Error as e:
            raise StorageError(f"Failed to append events: {e}", "append", self.name)

    def get_event(self, event_id: str) -> Optional[Event]:
        """Get event by id."""
        conn = self._get_connection()

        cursor = conn.execute(f"""
            SELECT * FROM {self.table_name} WHERE id = ?
        """, (event_id,))

        row = cursor.fetchone()

        if row:
            return self._row_to_event(row)

        return None

    def get_events(
        self,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> Iterator[Event]:
        """Get events within time range, in chain order.

        Timestamps are stored as UTC ISO strings with fixed precision, so
        the bounds are converted the same way before the text comparison.
        """
        conn = self._get_connection()

        query = f"SELECT * FROM {self.table_name}"
        params = []
        conditions = []

        if start_time:
            conditions.append("timestamp >= ?")
            params.append(to_utc(start_time).isoformat(timespec="microseconds"))

        if end_time:
            conditions.append("timestamp <= ?")
            params.append(to_utc(end_time).isoformat(timespec="microseconds"))

        if conditions:
            query += " WHERE " + " AND ".join(conditions)

        query += " ORDER BY seq ASC"

        if limit or offset:
            query += " LIMIT ?"
            params.append(limit if limit else -1)

        if offset:
            query += " OFFSET ?"
            params.append(offset)

        cursor = conn.execute(query, params)

        for row in cursor.fetchall():
            yield self._row_to_event(row)

    def get_latest_event(self) -> Optional[Event]:
        """Get the most recently appended event."""
        conn = self._get_connection()

        cursor = conn.execute(f"""
            SELECT * FROM {self.table_name}
            ORDER BY seq DESC LIMIT 1
        """)

        row = cursor.fetchone()

        if row:
            return self._row_to_event(row)

        return None

    def count_events(self) -> int:
        """Get total number of events."""
        conn = self._get_connection()

        cursor = conn.execute(f"SELECT COUNT(*) FROM {self.table_name}")
        return cursor.fetchone()[0]

    def get_size(self) -> int:
        """Get approximate storage size in bytes."""
        if Path(self.db_path).exists():
            db_size = Path(self.db_path).stat().st_size

            wal_path = Path(f"{self.db_path}-wal")
            if wal_path.exists():
                db_size += wal_path.stat().st_size

            return db_size

        return 0

    def close(self) -> None:
        """Close database connection."""
        if hasattr(self._local, 'connection') and self._local.connection:
            self._local.connection.close()
            self._local.connection = None

    def verify_storage(self) -> bool:
        """Verify storage integrity."""
        try:
            conn = self._get_connection()

            cursor = conn.execute("PRAGMA integrity_check")
            result = cursor.fetchone()[0]

            if result != "ok":
                logger.error(f"SQLite integrity check failed: {result}")
                return False

            cursor = conn.execute("""
                SELECT name FROM sqlite_master
                WHERE type='table' AND name=?
            """, (self.table_name,))

            if not cursor.fetchone():
                logger.error(f"Table {self.table_name} does not exist")
                return False

            return True

        except sqlite3.Error as e:
            logger.error(f"Storage verification failed: {e}")
            return False

    def _row_to_event(self, row) -> Event:
        """Convert database row to Event object."""
        data = dict(row)

        data['args'] = json.loads(data['args'])
        data['timestamp'] = datetime.fromisoformat(data['timestamp'])

        # Columns derived from the event rather than part of it
        data.pop('seq', None)
        data.pop('id', None)

        return Event.from_dict(data)
