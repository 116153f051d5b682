"""Storage backends for pastes.

This module handles persistence of paste content and metadata, either to a
SQLite database or to an in-process dictionary.
"""

import logging
import sqlite3
import threading
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Protocol

from pastebox.config import Config, ConfigurationError

# Configure logging
logger = logging.getLogger(__name__)

# Storage format of the expiry column, always UTC
EXPIRY_FORMAT = "%Y-%m-%d %H:%M:%S"


class StorageError(Exception):
    """Raised when storage operations fail."""

    pass


class DuplicateIdError(StorageError):
    """Raised when a paste ID is already taken at insert time."""

    pass


@dataclass(frozen=True)
class PasteRecord:
    """Represents a stored paste.

    Attributes:
        id: Unique paste identifier
        fingerprint: Digest of the original content, used for duplicate checks
        content: HTML-escaped paste content
        expiry: Absolute UTC time after which the paste is no longer served
        language: Content type hint supplied by the uploader (e.g. "url")
        delete_key: Token that allows the uploader to delete the paste
    """

    id: str
    fingerprint: str
    content: str
    expiry: datetime
    language: str = ""
    delete_key: str = ""

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expiry


def format_expiry(expiry: datetime) -> str:
    """Serialize an expiry timestamp as a UTC string."""
    return expiry.astimezone(timezone.utc).strftime(EXPIRY_FORMAT)


def parse_expiry(value: str) -> datetime:
    """Parse a stored expiry string back into an aware UTC datetime."""
    return datetime.strptime(value, EXPIRY_FORMAT).replace(tzinfo=timezone.utc)


class PasteStorage(Protocol):
    """Interface shared by the storage backends."""

    def insert(self, record: PasteRecord) -> None: ...

    def load(self, paste_id: str) -> Optional[PasteRecord]: ...

    def find_by_fingerprint(self, fingerprint: str) -> Optional[PasteRecord]: ...

    def exists(self, paste_id: str) -> bool: ...

    def delete(self, paste_id: str) -> bool: ...

    def delete_expired(self, now: datetime) -> int: ...


class Storage:
    """SQLite database storage for pastes.

    Stores pastes in a single table:
    CREATE TABLE pastebin (
        id VARCHAR(30) NOT NULL,
        hash CHAR(40) DEFAULT NULL,
        data TEXT,
        delkey CHAR(40) DEFAULT NULL,
        expiry DATETIME,
        language TEXT,
        PRIMARY KEY (id)
    )

    A new connection is opened for every operation, so one instance can be
    shared between request threads.
    """

    def __init__(self, database_path: str):
        """Initialize storage with database path.

        Args:
            database_path: Path to SQLite database file

        Raises:
            StorageError: If database initialization fails
        """
        self.database_path = Path(database_path)

        # Ensure parent directory exists
        try:
            self.database_path.parent.mkdir(parents=True, exist_ok=True)
            logger.info(f"Storage initialized at: {self.database_path}")
        except Exception as e:
            logger.error(f"Failed to create database directory: {e}")
            raise StorageError(f"Failed to create database directory: {e}")

        # Initialize database schema
        self.initialize()

    def _get_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.database_path), timeout=30)
        conn.row_factory = sqlite3.Row
        return conn

    def initialize(self) -> None:
        """Create database and schema if not exists.

        Raises:
            StorageError: If schema initialization fails
        """
        try:
            conn = self._get_connection()
            try:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS pastebin (
                        id VARCHAR(30) NOT NULL,
                        hash CHAR(40) DEFAULT NULL,
                        data TEXT,
                        delkey CHAR(40) DEFAULT NULL,
                        expiry DATETIME,
                        language TEXT,
                        PRIMARY KEY (id)
                    )
                """)
                conn.execute(
                    "CREATE INDEX IF NOT EXISTS pastebin_hash ON pastebin (hash)"
                )
                conn.commit()
            finally:
                conn.close()
            logger.debug("Database schema initialized successfully")

        except sqlite3.Error as e:
            logger.error(f"Failed to initialize database schema: {e}")
            raise StorageError(f"Failed to initialize database schema: {e}")

    def insert(self, record: PasteRecord) -> None:
        """Insert a new paste.

        Args:
            record: Paste to persist

        Raises:
            DuplicateIdError: If a paste with the same ID already exists
            StorageError: If the insert fails
        """
        try:
            conn = self._get_connection()
            try:
                conn.execute(
                    """
                    INSERT INTO pastebin (id, hash, data, delkey, expiry, language)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        record.id,
                        record.fingerprint,
                        record.content,
                        record.delete_key,
                        format_expiry(record.expiry),
                        record.language,
                    ),
                )
                conn.commit()
            finally:
                conn.close()
            logger.debug(f"Paste saved to database: {record.id}")

        except sqlite3.IntegrityError as e:
            logger.warning(f"Attempted to save duplicate paste ID: {record.id}")
            raise DuplicateIdError(f"Paste with ID {record.id} already exists: {e}")
        except sqlite3.Error as e:
            logger.error(f"Database error saving paste {record.id}: {e}")
            raise StorageError(f"Failed to save paste {record.id}: {e}")

    def load(self, paste_id: str) -> Optional[PasteRecord]:
        """Load a paste by ID, or None if there is no such paste.

        Raises:
            StorageError: If the query fails
        """
        row = self._fetch_one(
            "SELECT id, hash, data, delkey, expiry, language FROM pastebin WHERE id = ?",
            (paste_id,),
        )
        if row is None:
            logger.debug(f"Paste not found in database: {paste_id}")
            return None
        return self._record_from_row(row)

    def find_by_fingerprint(self, fingerprint: str) -> Optional[PasteRecord]:
        """Return the paste with the given fingerprint and the latest expiry, if any.

        Raises:
            StorageError: If the query fails
        """
        row = self._fetch_one(
            """
            SELECT id, hash, data, delkey, expiry, language
            FROM pastebin
            WHERE hash = ?
            ORDER BY expiry DESC
            LIMIT 1
            """,
            (fingerprint,),
        )
        return self._record_from_row(row) if row is not None else None

    def exists(self, paste_id: str) -> bool:
        """Check if a paste ID is taken.

        Raises:
            StorageError: If the query fails
        """
        row = self._fetch_one(
            "SELECT 1 FROM pastebin WHERE id = ? LIMIT 1", (paste_id,)
        )
        return row is not None

    def delete(self, paste_id: str) -> bool:
        """Delete a paste. Returns True if a row was removed.

        Raises:
            StorageError: If the delete fails
        """
        return self._execute("DELETE FROM pastebin WHERE id = ?", (paste_id,)) > 0

    def delete_expired(self, now: datetime) -> int:
        """Delete every paste whose expiry is at or before now.

        Returns:
            Number of deleted pastes
        """
        return self._execute(
            "DELETE FROM pastebin WHERE expiry <= ?", (format_expiry(now),)
        )

    def _fetch_one(self, query: str, params: tuple) -> Optional[sqlite3.Row]:
        try:
            conn = self._get_connection()
            try:
                return conn.execute(query, params).fetchone()
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error(f"Database error running query: {e}")
            raise StorageError(f"Database query failed: {e}")

    def _execute(self, statement: str, params: tuple) -> int:
        try:
            conn = self._get_connection()
            try:
                cursor = conn.execute(statement, params)
                conn.commit()
                return cursor.rowcount
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error(f"Database error running statement: {e}")
            raise StorageError(f"Database statement failed: {e}")

    @staticmethod
    def _record_from_row(row: sqlite3.Row) -> PasteRecord:
        # Rows inserted with only an ID (no content yet) never expire
        expiry = (
            parse_expiry(row["expiry"])
            if row["expiry"]
            else datetime.max.replace(tzinfo=timezone.utc)
        )
        return PasteRecord(
            id=row["id"],
            fingerprint=row["hash"] or "",
            content=row["data"] or "",
            expiry=expiry,
            language=row["language"] or "",
            delete_key=row["delkey"] or "",
        )


class MemoryStorage:
    """In-process storage for development and testing.

    Pastes live in a dictionary guarded by a lock and are lost on restart.
    """

    def __init__(self):
        self._pastes: dict[str, PasteRecord] = {}
        self._lock = threading.Lock()

    def insert(self, record: PasteRecord) -> None:
        with self._lock:
            if record.id in self._pastes:
                logger.warning(f"Attempted to save duplicate paste ID: {record.id}")
                raise DuplicateIdError(f"Paste with ID {record.id} already exists")
            # Truncate like the SQLite column does
            self._pastes[record.id] = replace(
                record, expiry=record.expiry.replace(microsecond=0)
            )

    def load(self, paste_id: str) -> Optional[PasteRecord]:
        with self._lock:
            return self._pastes.get(paste_id)

    def find_by_fingerprint(self, fingerprint: str) -> Optional[PasteRecord]:
        with self._lock:
            matches = [
                record
                for record in self._pastes.values()
                if record.fingerprint == fingerprint
            ]
        # Latest expiry first, like the SQLite backend
        return max(matches, key=lambda record: record.expiry, default=None)

    def exists(self, paste_id: str) -> bool:
        with self._lock:
            return paste_id in self._pastes

    def delete(self, paste_id: str) -> bool:
        with self._lock:
            return self._pastes.pop(paste_id, None) is not None

    def delete_expired(self, now: datetime) -> int:
        with self._lock:
            expired = [
                paste_id
                for paste_id, record in self._pastes.items()
                if record.is_expired(now)
            ]
            for paste_id in expired:
                del self._pastes[paste_id]
        return len(expired)


def open_storage(config: Config) -> PasteStorage:
    """Create the storage backend selected by the configuration.

    Raises:
        ConfigurationError: If the backend selector is unknown
        StorageError: If the database cannot be initialized
    """
    if config.db_type == "sqlite3":
        return Storage(str(config.database_path))
    if config.db_type == "memory":
        logger.warning("Using in-memory storage: pastes will not survive a restart")
        return MemoryStorage()
    raise ConfigurationError(f"Incorrect DB type: {config.db_type}")
