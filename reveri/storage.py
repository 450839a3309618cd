"""
Persistence adapters for the memory collection.

Each adapter stores exactly one entry: the whole serialized collection.
- SQLiteStorage: key/value table in a SQLite database (default)
- JsonFileStorage: a single JSON file, replaced atomically

load() never raises for missing or unreadable data; it degrades to an
empty collection. save() raises PersistenceWriteFailed on any failure.
"""
import os
import sqlite3
import tempfile
from pathlib import Path
from typing import List, Optional, Protocol, Sequence
import logging

from reveri import config
from reveri.errors import ConfigurationError, PersistenceLoadCorrupt, PersistenceWriteFailed
from reveri.memory import MemoryRecord, decode_collection, encode_collection


logger = logging.getLogger(__name__)


class Storage(Protocol):
    """Interface the memory store persists through."""

    def load(self) -> List[MemoryRecord]:
        ...

    def save(self, records: Sequence[MemoryRecord]) -> None:
        ...

    def describe(self) -> str:
        ...


def _decode_or_empty(payload: str, source: str) -> List[MemoryRecord]:
    try:
        return decode_collection(payload)
    except PersistenceLoadCorrupt as e:
        logger.warning(f"Ignoring corrupt memory payload in {source}: {e}")
        return []


class SQLiteStorage:
    """Key/value storage in SQLite, holding the collection under one key."""

    def __init__(self, db_path: str, key: str = config.STORAGE_KEY):
        """
        Initialize SQLite storage.

        Args:
            db_path: Path to SQLite database (created on first save)
            key: Key the collection is stored under
        """
        self.db_path = db_path
        self.key = key

    def _connect(self) -> sqlite3.Connection:
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path)
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
        except sqlite3.Error:
            conn.close()
            raise
        return conn

    def load(self) -> List[MemoryRecord]:
        """Load the collection, or an empty one if nothing usable is stored."""
        if not Path(self.db_path).exists():
            return []

        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            logger.error(f"Error opening {self.db_path}: {e}")
            return []

        try:
            cursor = conn.cursor()
            cursor.execute("SELECT value FROM kv_store WHERE key = ?", (self.key,))
            row = cursor.fetchone()
        except sqlite3.Error as e:
            # Missing table means nothing was ever saved
            logger.warning(f"Could not read '{self.key}' from {self.db_path}: {e}")
            return []
        finally:
            conn.close()

        if row is None:
            return []

        records = _decode_or_empty(row[0], f"{self.db_path}:{self.key}")
        logger.info(f"Loaded {len(records)} memories from SQLite")
        return records

    def save(self, records: Sequence[MemoryRecord]) -> None:
        """
        Overwrite the stored collection in a single transaction.

        Raises:
            PersistenceWriteFailed if the write does not commit
        """
        payload = encode_collection(records)

        try:
            conn = self._connect()
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Error opening {self.db_path}: {e}")
            raise PersistenceWriteFailed(f"Could not open {self.db_path}: {e}") from e

        try:
            conn.execute("""
                INSERT OR REPLACE INTO kv_store (key, value, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
            """, (self.key, payload))
            conn.commit()
            logger.debug(f"Saved {len(records)} memories to SQLite")
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error saving to SQLite: {e}")
            raise PersistenceWriteFailed(f"Could not save memories: {e}") from e
        finally:
            conn.close()

    def describe(self) -> str:
        return f"sqlite:{self.db_path}#{self.key}"


class JsonFileStorage:
    """Stores the collection as a JSON file."""

    def __init__(self, json_path: str):
        self.json_path = Path(json_path)

    def load(self) -> List[MemoryRecord]:
        """Load the collection, or an empty one if nothing usable is stored."""
        if not self.json_path.exists():
            return []

        try:
            payload = self.json_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Error reading {self.json_path}: {e}")
            return []

        records = _decode_or_empty(payload, str(self.json_path))
        logger.info(f"Loaded {len(records)} memories from JSON")
        return records

    def save(self, records: Sequence[MemoryRecord]) -> None:
        """
        Write to a temporary file next to the target, then swap it in.

        Raises:
            PersistenceWriteFailed if the file could not be written
        """
        payload = encode_collection(records)
        tmp_path = None

        try:
            self.json_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.json_path.parent,
                prefix=f".{self.json_path.name}.",
                suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_path, self.json_path)
            tmp_path = None
            logger.debug(f"Saved {len(records)} memories to JSON")
        except OSError as e:
            logger.error(f"Error saving memories to {self.json_path}: {e}")
            raise PersistenceWriteFailed(f"Could not save memories: {e}") from e
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)

    def describe(self) -> str:
        return f"json:{self.json_path}"


def open_storage(
    backend: Optional[str] = None,
    db_path: Optional[str] = None,
    json_path: Optional[str] = None
) -> Storage:
    """
    Build the configured storage backend.

    Args:
        backend: "sqlite" or "json" (default: from configuration)
        db_path: SQLite database path (default: from configuration)
        json_path: JSON file path (default: from configuration)

    Raises:
        ConfigurationError for an unknown backend
    """
    backend = (backend or config.backend()).lower()

    if backend == "sqlite":
        return SQLiteStorage(db_path or config.db_path())
    if backend == "json":
        return JsonFileStorage(json_path or config.json_path())

    raise ConfigurationError(f"Unknown storage backend: {backend!r} (expected 'sqlite' or 'json')")
