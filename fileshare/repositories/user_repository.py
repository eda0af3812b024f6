"""User repository for database operations."""

import sqlite3
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Set

from common.logging_config import get_logger
from fileshare.database import Database
from fileshare.exceptions import UserAlreadyExistsError

logger = get_logger(__name__)


@dataclass(frozen=True)
class User:
    user_id: str
    name: str
    email: str
    password_hash: str
    created_at: datetime


def _row_to_user(row: sqlite3.Row) -> User:
    return User(
        user_id=row["user_id"],
        name=row["name"],
        email=row["email"],
        password_hash=row["password_hash"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )


class UserRepository:
    def __init__(self, database: Database):
        self.database = database

    def create_user(
        self,
        user_id: str,
        name: str,
        email: str,
        password_hash: str,
        created_at: datetime,
    ) -> User:
        email = email.lower()
        logger.debug(f"Creating user: {email} [user_id={user_id}]")

        with self.database.connection() as conn:
            cursor = conn.cursor()
            try:
                cursor.execute(
                    """
                    INSERT INTO users (user_id, name, email, password_hash, created_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (user_id, name, email, password_hash, created_at.isoformat())
                )
            except sqlite3.IntegrityError:
                logger.warning(f"Email already registered: {email}")
                raise UserAlreadyExistsError(f"User already exists with email '{email}'")

        logger.info(f"User created successfully: {email} [user_id={user_id}]")
        return User(
            user_id=user_id,
            name=name,
            email=email,
            password_hash=password_hash,
            created_at=created_at,
        )

    def get_by_id(self, user_id: str) -> Optional[User]:
        with self.database.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT user_id, name, email, password_hash, created_at FROM users WHERE user_id = ?",
                (user_id,)
            )
            row = cursor.fetchone()
            return _row_to_user(row) if row is not None else None

    def get_by_email(self, email: str) -> Optional[User]:
        logger.debug(f"Fetching user by email: {email}")
        with self.database.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT user_id, name, email, password_hash, created_at FROM users WHERE email = ?",
                (email.lower(),)
            )
            row = cursor.fetchone()
            return _row_to_user(row) if row is not None else None

    def list_users(self, exclude_user_id: Optional[str] = None) -> List[User]:
        with self.database.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT user_id, name, email, password_hash, created_at
                FROM users
                WHERE user_id != ?
                ORDER BY name COLLATE NOCASE, email
                """,
                (exclude_user_id or "",)
            )
            return [_row_to_user(row) for row in cursor.fetchall()]

    @staticmethod
    def existing_ids(user_ids: Iterable[str], conn: sqlite3.Connection) -> Set[str]:
        """
        Return the subset of ``user_ids`` present in the users table.

        Runs on the caller's connection so the check shares its transaction.
        """
        ids = list(user_ids)
        if not ids:
            return set()

        placeholders = ','.join('?' for _ in ids)
        cursor = conn.cursor()
        cursor.execute(f"SELECT user_id FROM users WHERE user_id IN ({placeholders})", ids)
        return {row["user_id"] for row in cursor.fetchall()}
