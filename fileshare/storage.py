"""Byte storage for uploaded files: write, stream, and delete stored objects."""

import os
import uuid
from pathlib import Path
from typing import Iterator, Protocol

from common.constants import DOWNLOAD_PIECE_SIZE
from common.logging_config import get_logger
from fileshare.exceptions import StorageFailureError, StoredBytesMissingError

logger = get_logger(__name__)


class ByteStorage(Protocol):
    """Contract the file lifecycle needs from a byte store."""

    def store(self, data: bytes, suffix: str = "") -> str:
        ...

    def retrieve(self, handle: str) -> Iterator[bytes]:
        ...

    def delete(self, handle: str) -> bool:
        ...


class DiskByteStorage:
    """
    Stores each uploaded object as one file under a root directory.

    Handles are generated here and never derived from user input beyond the
    original file extension.
    """

    def __init__(self, root: str, piece_size: int = DOWNLOAD_PIECE_SIZE):
        self.root = Path(root)
        self.piece_size = piece_size

    def ensure_root(self) -> None:
        """Ensure storage directory exists."""
        self.root.mkdir(parents=True, exist_ok=True)

    def get_path(self, handle: str) -> Path:
        """
        Get file path for a handle.

        Raises:
            StorageFailureError: If the handle would escape the storage root
        """
        if not handle or os.sep in handle or (os.altsep and os.altsep in handle) or handle in (".", ".."):
            raise StorageFailureError(f"Invalid storage handle: {handle!r}")
        return self.root / handle

    def store(self, data: bytes, suffix: str = "") -> str:
        """
        Write object data to disk.

        Args:
            data: Raw file content
            suffix: Extension to keep on the stored object (e.g. ".pdf")

        Returns:
            Handle of the stored object

        Raises:
            StorageFailureError: If the write fails
        """
        handle = f"{uuid.uuid4().hex}{_safe_suffix(suffix)}"
        try:
            self.ensure_root()
            self.get_path(handle).write_bytes(data)
        except OSError as e:
            logger.error(f"Failed to store object {handle}: {e}", exc_info=True)
            raise StorageFailureError(f"Failed to store object: {e}") from e

        logger.debug(f"Stored object {handle} ({len(data)} bytes)")
        return handle

    def retrieve(self, handle: str) -> Iterator[bytes]:
        """
        Stream object data in pieces.

        The existence check happens eagerly so a missing object is reported
        before a response starts streaming.

        Raises:
            StoredBytesMissingError: If the object does not exist
        """
        if not self.exists(handle):
            raise StoredBytesMissingError(f"Stored object {handle} not found")
        return self._read_pieces(self.get_path(handle))

    def _read_pieces(self, path: Path) -> Iterator[bytes]:
        with open(path, 'rb') as f:
            while True:
                piece = f.read(self.piece_size)
                if not piece:
                    break
                yield piece

    def delete(self, handle: str) -> bool:
        """
        Delete object from disk.

        Returns:
            True if the object was deleted, False if it didn't exist

        Raises:
            StorageFailureError: If the object exists but cannot be removed
        """
        path = self.get_path(handle)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageFailureError(f"Failed to delete object {handle}: {e}") from e

        logger.debug(f"Deleted object {handle}")
        return True

    def exists(self, handle: str) -> bool:
        return self.get_path(handle).is_file()


def _safe_suffix(suffix: str) -> str:
    suffix = suffix.lower()
    if not suffix.startswith(".") or len(suffix) > 16 or not suffix[1:].isalnum():
        return ""
    return suffix
