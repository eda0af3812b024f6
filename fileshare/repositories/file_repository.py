"""File record repository for database operations."""

import sqlite3
from dataclasses import dataclass, field
from datetime import datetime
from typing import FrozenSet, List, Optional

from common.logging_config import get_logger
from fileshare.database import Database, get_row_value
from fileshare.repositories.grant_repository import GrantRepository

logger = get_logger(__name__)

FILE_COLUMNS = (
    "file_id, storage_handle, original_name, media_type, size, owner_id, "
    "created_at, share_token, link_expiry"
)


@dataclass(frozen=True)
class FileRecord:
    file_id: str
    storage_handle: str
    original_name: str
    media_type: str
    size: int
    owner_id: str
    created_at: datetime
    shared_with: FrozenSet[str] = field(default_factory=frozenset)
    share_token: Optional[str] = None
    link_expiry: Optional[datetime] = None


@dataclass(frozen=True)
class SharedFileEntry:
    """A file visible to a grantee, with its owner's public details."""
    record: FileRecord
    owner_name: str
    owner_email: str


def _row_to_record(row: sqlite3.Row, shared_with: FrozenSet[str]) -> FileRecord:
    link_expiry = get_row_value(row, "link_expiry")
    return FileRecord(
        file_id=row["file_id"],
        storage_handle=row["storage_handle"],
        original_name=row["original_name"],
        media_type=row["media_type"],
        size=row["size"],
        owner_id=row["owner_id"],
        created_at=datetime.fromisoformat(row["created_at"]),
        shared_with=shared_with,
        share_token=get_row_value(row, "share_token"),
        link_expiry=datetime.fromisoformat(link_expiry) if link_expiry else None,
    )


class FileRepository:
    def __init__(self, database: Database, grant_repo: Optional[GrantRepository] = None):
        self.database = database
        self.grant_repo = grant_repo or GrantRepository(database)

    def create_file(
        self,
        file_id: str,
        storage_handle: str,
        original_name: str,
        media_type: str,
        size: int,
        owner_id: str,
        created_at: datetime,
        conn: Optional[sqlite3.Connection] = None,
    ) -> FileRecord:
        logger.debug(f"Creating file record: {original_name} [file_id={file_id}]")
        with self.database.use(conn) as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO files (file_id, storage_handle, original_name, media_type, size, owner_id, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (file_id, storage_handle, original_name, media_type, size, owner_id, created_at.isoformat())
            )

        return FileRecord(
            file_id=file_id,
            storage_handle=storage_handle,
            original_name=original_name,
            media_type=media_type,
            size=size,
            owner_id=owner_id,
            created_at=created_at,
        )

    def get_by_id(self, file_id: str, conn: Optional[sqlite3.Connection] = None) -> Optional[FileRecord]:
        with self.database.use(conn) as conn:
            cursor = conn.cursor()
            cursor.execute(f"SELECT {FILE_COLUMNS} FROM files WHERE file_id = ?", (file_id,))
            row = cursor.fetchone()
            if row is None:
                return None
            return _row_to_record(row, self.grant_repo.get_grantees(file_id, conn=conn))

    def get_by_share_token(self, share_token: str) -> Optional[FileRecord]:
        with self.database.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(f"SELECT {FILE_COLUMNS} FROM files WHERE share_token = ?", (share_token,))
            row = cursor.fetchone()
            if row is None:
                return None
            return _row_to_record(row, self.grant_repo.get_grantees(row["file_id"], conn=conn))

    def list_by_owner(self, owner_id: str) -> List[FileRecord]:
        with self.database.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {FILE_COLUMNS} FROM files WHERE owner_id = ? ORDER BY created_at DESC",
                (owner_id,)
            )
            rows = cursor.fetchall()
            grantees = self.grant_repo.get_grantees_for_files([row["file_id"] for row in rows], conn=conn)
            return [_row_to_record(row, grantees[row["file_id"]]) for row in rows]

    def list_shared_with(self, user_id: str) -> List[SharedFileEntry]:
        columns = ", ".join(f"f.{column.strip()}" for column in FILE_COLUMNS.split(","))
        with self.database.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT {columns}, u.name AS owner_name, u.email AS owner_email
                FROM files f
                JOIN file_grants g ON g.file_id = f.file_id
                JOIN users u ON u.user_id = f.owner_id
                WHERE g.user_id = ?
                ORDER BY f.created_at DESC
                """,
                (user_id,)
            )
            rows = cursor.fetchall()
            grantees = self.grant_repo.get_grantees_for_files([row["file_id"] for row in rows], conn=conn)
            return [
                SharedFileEntry(
                    record=_row_to_record(row, grantees[row["file_id"]]),
                    owner_name=row["owner_name"],
                    owner_email=row["owner_email"],
                )
                for row in rows
            ]

    def set_share_link(
        self,
        file_id: str,
        owner_id: str,
        share_token: str,
        link_expiry: Optional[datetime],
    ) -> bool:
        """
        Replace the file's share token and expiry.

        The update is predicated on ownership; returns False when no row matched.
        """
        with self.database.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE files SET share_token = ?, link_expiry = ? WHERE file_id = ? AND owner_id = ?",
                (share_token, link_expiry.isoformat() if link_expiry else None, file_id, owner_id)
            )
            return cursor.rowcount == 1

    def clear_share_link(self, file_id: str, owner_id: str) -> bool:
        with self.database.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE files SET share_token = NULL, link_expiry = NULL WHERE file_id = ? AND owner_id = ?",
                (file_id, owner_id)
            )
            return cursor.rowcount == 1

    def delete_file(self, file_id: str, owner_id: str) -> bool:
        """
        Delete a file record and, by cascade, its grants.
        """
        logger.debug(f"Deleting file record [file_id={file_id}]")
        with self.database.connection() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM files WHERE file_id = ? AND owner_id = ?", (file_id, owner_id))
            deleted = cursor.rowcount == 1

        if deleted:
            logger.info(f"File record deleted [file_id={file_id}]")
        return deleted
