"""Repository layer for data access."""

from fileshare.repositories.user_repository import User, UserRepository
from fileshare.repositories.file_repository import FileRecord, FileRepository, SharedFileEntry
from fileshare.repositories.grant_repository import GrantRepository

__all__ = [
    "User",
    "UserRepository",
    "FileRecord",
    "FileRepository",
    "SharedFileEntry",
    "GrantRepository",
]
