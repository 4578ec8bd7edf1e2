"""
Storage Backend Module

Provides the ledger store interface and implementations for in-memory (testing)
and SQLite (persistence). All monetary values stored as Decimal strings.

Every backend supports an all-or-nothing unit of work via ``atomic()`` and a
conditional update via ``compare_and_swap()``, which is what the account
repository builds its optimistic concurrency on.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Union
from decimal import Decimal
from datetime import datetime, timezone
import sqlite3
import json
import threading
from dataclasses import dataclass, asdict
from pathlib import Path
from contextlib import contextmanager


@dataclass
class StorageRecord:
    """Base class for all stored records"""
    id: str
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage"""
        result = asdict(self)
        # Convert datetime objects to ISO strings
        result['created_at'] = self.created_at.isoformat()
        result['updated_at'] = self.updated_at.isoformat()
        # Convert Decimal objects to strings
        for key, value in result.items():
            if isinstance(value, Decimal):
                result[key] = str(value)
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StorageRecord':
        """Create instance from dictionary"""
        # Convert ISO strings back to datetime objects
        if 'created_at' in data and isinstance(data['created_at'], str):
            data['created_at'] = datetime.fromisoformat(data['created_at'])
        if 'updated_at' in data and isinstance(data['updated_at'], str):
            data['updated_at'] = datetime.fromisoformat(data['updated_at'])

        return cls(**data)


class StorageInterface(ABC):
    """Abstract interface for storage backends"""

    @abstractmethod
    def save(self, table: str, record_id: str, data: Dict[str, Any]) -> None:
        """Save a record to storage"""
        pass

    @abstractmethod
    def load(self, table: str, record_id: str) -> Optional[Dict[str, Any]]:
        """Load a record from storage"""
        pass

    @abstractmethod
    def load_all(self, table: str) -> List[Dict[str, Any]]:
        """Load all records from a table"""
        pass

    @abstractmethod
    def find(self, table: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Find records whose fields equal the given filters"""
        pass

    @abstractmethod
    def count(self, table: str) -> int:
        """Count records in table"""
        pass

    @abstractmethod
    def clear_table(self, table: str) -> None:
        """Clear all records from a table"""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close storage connection"""
        pass

    @abstractmethod
    @contextmanager
    def atomic(self):
        """
        Run the enclosed writes as a single unit of work.

        Either every write inside the block becomes visible or none does.
        Nested blocks join the outermost one.
        """
        yield

    def exists(self, table: str, record_id: str) -> bool:
        """Check if a record exists"""
        return self.load(table, record_id) is not None

    def find_where(
        self,
        table: str,
        predicate: Callable[[Dict[str, Any]], bool]
    ) -> List[Dict[str, Any]]:
        """Find records matching an arbitrary predicate"""
        return [record for record in self.load_all(table) if predicate(record)]

    def compare_and_swap(
        self,
        table: str,
        record_id: str,
        expected: Dict[str, Any],
        data: Dict[str, Any]
    ) -> bool:
        """
        Replace a record only if its current fields match ``expected``

        Args:
            table: Table name
            record_id: ID of the record to update
            expected: Field values the stored record must still have
            data: Full replacement record

        Returns:
            True if the record was replaced, False if it is missing or changed
        """
        with self.atomic():
            current = self.load(table, record_id)
            if current is None:
                return False
            for key, value in expected.items():
                if current.get(key) != value:
                    return False
            self.save(table, record_id, data)
            return True


class InMemoryStorage(StorageInterface):
    """In-memory storage implementation for testing"""

    def __init__(self):
        self._data: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._lock = threading.RLock()
        self._depth = 0
        self._snapshot: Optional[Dict[str, Dict[str, Dict[str, Any]]]] = None

    def _ensure_table(self, table: str) -> None:
        """Ensure table exists"""
        if table not in self._data:
            self._data[table] = {}

    def save(self, table: str, record_id: str, data: Dict[str, Any]) -> None:
        """Save a record to memory"""
        with self._lock:
            self._ensure_table(table)
            # Deep copy to prevent external mutation
            self._data[table][record_id] = json.loads(json.dumps(data, default=str))

    def load(self, table: str, record_id: str) -> Optional[Dict[str, Any]]:
        """Load a record from memory"""
        with self._lock:
            self._ensure_table(table)
            record = self._data[table].get(record_id)
            if record:
                return json.loads(json.dumps(record))
            return None

    def load_all(self, table: str) -> List[Dict[str, Any]]:
        """Load all records from a table in insertion order"""
        with self._lock:
            self._ensure_table(table)
            return [json.loads(json.dumps(record)) for record in self._data[table].values()]

    def find(self, table: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Find records matching filters"""
        with self._lock:
            self._ensure_table(table)
            results = []
            for record in self._data[table].values():
                match = True
                for key, value in filters.items():
                    if key not in record or record[key] != value:
                        match = False
                        break
                if match:
                    results.append(json.loads(json.dumps(record)))
            return results

    def count(self, table: str) -> int:
        """Count records in table"""
        with self._lock:
            self._ensure_table(table)
            return len(self._data[table])

    def clear_table(self, table: str) -> None:
        """Clear all records from a table"""
        with self._lock:
            self._data[table] = {}

    def close(self) -> None:
        """Close storage (no-op for in-memory)"""
        pass

    @contextmanager
    def atomic(self):
        """
        Hold the store lock for the whole unit of work

        Readers take the same lock, so they never observe a half-applied
        unit. On error the tables are restored from the snapshot taken when
        the outermost block was entered.
        """
        with self._lock:
            outermost = self._depth == 0
            if outermost:
                self._snapshot = json.loads(json.dumps(self._data))
            self._depth += 1
            try:
                yield
            except BaseException:
                self._depth -= 1
                if outermost:
                    self._data = self._snapshot
                    self._snapshot = None
                raise
            self._depth -= 1
            if outermost:
                self._snapshot = None

    def get_all_data(self) -> Dict[str, Dict[str, Dict[str, Any]]]:
        """Get all data for debugging/inspection"""
        with self._lock:
            return json.loads(json.dumps(self._data, default=str))


class SQLiteStorage(StorageInterface):
    """SQLite storage implementation for persistence"""

    def __init__(self, db_path: Union[str, Path] = ":memory:", timeout: float = 5.0):
        self.db_path = str(db_path)
        # Autocommit mode: units of work are opened explicitly in atomic()
        self._connection = sqlite3.connect(
            self.db_path,
            timeout=timeout,
            check_same_thread=False,
            isolation_level=None
        )
        self._connection.row_factory = sqlite3.Row
        self._lock = threading.RLock()
        self._depth = 0
        self._known_tables = set()

        # Enable WAL mode for better concurrent access
        if self.db_path != ":memory:":
            with self._lock:
                self._connection.execute("PRAGMA journal_mode = WAL")
                self._connection.execute("PRAGMA synchronous = NORMAL")

    def _ensure_table(self, table: str) -> None:
        """Ensure table exists with proper schema"""
        with self._lock:
            if table in self._known_tables:
                return
            self._connection.execute(f"""
                CREATE TABLE IF NOT EXISTS {table} (
                    id TEXT PRIMARY KEY,
                    data TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            self._connection.execute(f"""
                CREATE INDEX IF NOT EXISTS idx_{table}_created_at
                ON {table}(created_at)
            """)
            self._known_tables.add(table)

    def save(self, table: str, record_id: str, data: Dict[str, Any]) -> None:
        """Save a record to SQLite"""
        with self._lock:
            self._ensure_table(table)

            now = datetime.now(timezone.utc).isoformat()
            data_json = json.dumps(data, default=str)

            self._connection.execute(f"""
                INSERT INTO {table} (id, data, created_at, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    data = excluded.data,
                    updated_at = excluded.updated_at
            """, (record_id, data_json, now, now))

    def load(self, table: str, record_id: str) -> Optional[Dict[str, Any]]:
        """Load a record from SQLite"""
        with self._lock:
            self._ensure_table(table)
            cursor = self._connection.execute(f"""
                SELECT data FROM {table} WHERE id = ?
            """, (record_id,))
            row = cursor.fetchone()
            if row:
                return json.loads(row['data'])
            return None

    def load_all(self, table: str) -> List[Dict[str, Any]]:
        """Load all records from a table in insertion order"""
        with self._lock:
            self._ensure_table(table)
            cursor = self._connection.execute(f"""
                SELECT data FROM {table} ORDER BY created_at, rowid
            """)
            return [json.loads(row['data']) for row in cursor.fetchall()]

    def exists(self, table: str, record_id: str) -> bool:
        """Check if a record exists"""
        with self._lock:
            self._ensure_table(table)
            cursor = self._connection.execute(f"""
                SELECT 1 FROM {table} WHERE id = ? LIMIT 1
            """, (record_id,))
            return cursor.fetchone() is not None

    def find(self, table: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Find records matching filters (simple JSON key matching)"""
        with self._lock:
            results = []
            for record in self.load_all(table):
                match = True
                for key, value in filters.items():
                    if key not in record or record[key] != value:
                        match = False
                        break
                if match:
                    results.append(record)

            return results

    def count(self, table: str) -> int:
        """Count records in table"""
        with self._lock:
            self._ensure_table(table)
            cursor = self._connection.execute(f"""
                SELECT COUNT(*) as count FROM {table}
            """)
            return cursor.fetchone()['count']

    def clear_table(self, table: str) -> None:
        """Clear all records from a table"""
        with self._lock:
            self._ensure_table(table)
            self._connection.execute(f"DELETE FROM {table}")

    @contextmanager
    def atomic(self):
        """
        Open an IMMEDIATE transaction for the outermost block

        IMMEDIATE takes the database write lock up front, so concurrent
        units of work from other connections serialize instead of
        interleaving. A busy database past ``timeout`` raises and nothing
        is applied.
        """
        with self._lock:
            outermost = self._depth == 0
            if outermost:
                self._connection.execute("BEGIN IMMEDIATE")
            self._depth += 1
            try:
                yield
            except BaseException:
                self._depth -= 1
                if outermost:
                    self._rollback()
                raise
            self._depth -= 1
            if outermost:
                try:
                    self._connection.execute("COMMIT")
                except sqlite3.Error:
                    self._rollback()
                    raise

    def _rollback(self) -> None:
        self._connection.execute("ROLLBACK")
        # Tables created inside the rolled back unit are gone again
        self._known_tables.clear()

    def close(self) -> None:
        """Close SQLite connection"""
        with self._lock:
            if self._connection:
                self._connection.close()
                self._connection = None
