"""Database schema and connection management for SQLite."""

import enum
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator, Optional

from common.logging_config import get_logger
from fileshare.exceptions import DatabaseNotReadyError

logger = get_logger(__name__)


SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS users (
        user_id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        email TEXT NOT NULL UNIQUE COLLATE NOCASE,
        password_hash TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS files (
        file_id TEXT PRIMARY KEY,
        storage_handle TEXT NOT NULL UNIQUE,
        original_name TEXT NOT NULL,
        media_type TEXT NOT NULL,
        size INTEGER NOT NULL,
        owner_id TEXT NOT NULL,
        created_at TEXT NOT NULL,
        share_token TEXT UNIQUE,
        link_expiry TEXT,
        FOREIGN KEY(owner_id) REFERENCES users(user_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS file_grants (
        file_id TEXT NOT NULL,
        user_id TEXT NOT NULL,
        granted_at TEXT NOT NULL,
        PRIMARY KEY(file_id, user_id),
        FOREIGN KEY(file_id) REFERENCES files(file_id) ON DELETE CASCADE,
        FOREIGN KEY(user_id) REFERENCES users(user_id)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_files_owner ON files(owner_id, created_at)",
    "CREATE INDEX IF NOT EXISTS idx_grants_user ON file_grants(user_id)",
)


class DatabaseState(str, enum.Enum):
    OPEN = "open"
    READY = "ready"
    CLOSED = "closed"


class Database:
    """
    Handle to the metadata store, passed explicitly to every repository.

    The handle starts ``open`` (path known, schema not yet ensured), becomes
    ``ready`` once ``initialize`` has created the schema, and is ``closed``
    by the process entry point on shutdown. Connections are only handed out
    while ready.
    """

    def __init__(self, path: str):
        self.path = path
        self._state = DatabaseState.OPEN
        self._lock = threading.Lock()

    @property
    def state(self) -> DatabaseState:
        return self._state

    def initialize(self) -> None:
        """
        Create the schema if needed and move the handle to ready.
        """
        with self._lock:
            if self._state is DatabaseState.CLOSED:
                raise DatabaseNotReadyError("Database handle is closed")
            if self._state is DatabaseState.READY:
                return

            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
            conn = self._connect()
            try:
                cursor = conn.cursor()
                for statement in SCHEMA_STATEMENTS:
                    cursor.execute(statement)
                conn.commit()
            finally:
                conn.close()

            self._state = DatabaseState.READY
            logger.info(f"Database ready at {self.path}")

    def close(self) -> None:
        with self._lock:
            self._state = DatabaseState.CLOSED
        logger.info("Database closed")

    @contextmanager
    def connection(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Context manager for database connections.
        """
        if self._state is not DatabaseState.READY:
            raise DatabaseNotReadyError(f"Database is {self._state.value}, not ready")

        conn = self._connect()
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def use(self, conn: Optional[sqlite3.Connection] = None) -> Generator[sqlite3.Connection, None, None]:
        """
        Yield ``conn`` when the caller already holds one, else a fresh connection.
        """
        if conn is not None:
            yield conn
            return

        with self.connection() as own_conn:
            yield own_conn

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Connection inside ``BEGIN IMMEDIATE``: commits on success, rolls back on error.

        Taking the write lock up front serializes read-modify-write sequences
        against other writers.
        """
        with self.connection() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
                conn.commit()
            except Exception:
                conn.rollback()
                raise

    def _connect(self) -> sqlite3.Connection:
        # autocommit; multi-statement writes go through transaction()
        conn = sqlite3.connect(self.path, timeout=10.0, isolation_level=None)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn


def get_row_value(row: sqlite3.Row, key: str, default: Any = None) -> Any:
    """
    Read a column from a row, returning ``default`` when missing or NULL.
    """
    if key not in row.keys():
        return default
    value = row[key]
    return default if value is None else value
