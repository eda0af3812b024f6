"""Grant repository: the per-file set of users with standing download access."""

import sqlite3
from datetime import datetime
from typing import Dict, FrozenSet, Iterable, List, Optional

from common.logging_config import get_logger
from fileshare.database import Database

logger = get_logger(__name__)


class GrantRepository:
    def __init__(self, database: Database):
        self.database = database

    def add_grants(
        self,
        file_id: str,
        user_ids: Iterable[str],
        granted_at: datetime,
        conn: Optional[sqlite3.Connection] = None,
    ) -> int:
        """
        Insert grant rows, ignoring ones that already exist.

        Returns:
            Number of newly created grants
        """
        user_ids = list(user_ids)
        if not user_ids:
            return 0

        with self.database.use(conn) as conn:
            cursor = conn.cursor()
            added = 0
            for user_id in user_ids:
                cursor.execute(
                    "INSERT OR IGNORE INTO file_grants (file_id, user_id, granted_at) VALUES (?, ?, ?)",
                    (file_id, user_id, granted_at.isoformat())
                )
                added += cursor.rowcount

        logger.debug(f"Added {added} new grants [file_id={file_id}]")
        return added

    def get_grantees(self, file_id: str, conn: Optional[sqlite3.Connection] = None) -> FrozenSet[str]:
        with self.database.use(conn) as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT user_id FROM file_grants WHERE file_id = ?", (file_id,))
            return frozenset(row["user_id"] for row in cursor.fetchall())

    def get_grantees_for_files(
        self,
        file_ids: List[str],
        conn: Optional[sqlite3.Connection] = None,
    ) -> Dict[str, FrozenSet[str]]:
        if not file_ids:
            return {}

        with self.database.use(conn) as conn:
            cursor = conn.cursor()
            placeholders = ','.join('?' for _ in file_ids)
            cursor.execute(
                f"SELECT file_id, user_id FROM file_grants WHERE file_id IN ({placeholders})",
                file_ids
            )
            grantees: Dict[str, set] = {file_id: set() for file_id in file_ids}
            for row in cursor.fetchall():
                grantees[row["file_id"]].add(row["user_id"])

        return {file_id: frozenset(users) for file_id, users in grantees.items()}
