"""File service for business logic."""

import sqlite3
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Tuple

from common.constants import ALLOWED_MEDIA_TYPES, MAX_FILES_PER_UPLOAD, MAX_UPLOAD_BYTES
from common.logging_config import get_logger
from fileshare.access_policy import Action, enforce
from fileshare.database import Database
from fileshare.exceptions import (
    FileRecordNotFoundError,
    InvalidUploadError,
    StorageFailureError,
    UnsupportedMediaTypeError,
    UploadTooLargeError,
)
from fileshare.repositories.file_repository import FileRecord, FileRepository, SharedFileEntry
from fileshare.repositories.user_repository import User
from fileshare.services.grant_service import GrantStore
from fileshare.storage import ByteStorage
from fileshare.utils import Clock, clean_filename, file_suffix, generate_uuid, utc_now

logger = get_logger(__name__)


@dataclass(frozen=True)
class UploadItem:
    """One file received from the client, fully read into memory."""
    filename: str
    media_type: str
    data: bytes


@dataclass(frozen=True)
class DeleteResult:
    file_id: str
    bytes_removed: bool


def normalize_media_type(media_type: str) -> str:
    return (media_type or "").split(";", 1)[0].strip().lower()


class FileService:
    def __init__(
        self,
        database: Database,
        file_repo: FileRepository,
        grant_store: GrantStore,
        storage: ByteStorage,
        clock: Clock = utc_now,
        max_upload_bytes: int = MAX_UPLOAD_BYTES,
        allowed_media_types: Iterable[str] = ALLOWED_MEDIA_TYPES,
    ):
        self.database = database
        self.file_repo = file_repo
        self.grant_store = grant_store
        self.storage = storage
        self.clock = clock
        self.max_upload_bytes = max_upload_bytes
        self.allowed_media_types = frozenset(allowed_media_types)

    def _validate(self, item: UploadItem) -> None:
        if not item.data:
            raise InvalidUploadError(f"Uploaded file '{item.filename}' is empty")
        if normalize_media_type(item.media_type) not in self.allowed_media_types:
            raise UnsupportedMediaTypeError(f"Invalid file type: {item.media_type or 'unknown'}")
        if len(item.data) > self.max_upload_bytes:
            raise UploadTooLargeError(
                f"File '{item.filename}' exceeds the {self.max_upload_bytes} byte limit"
            )

    def upload_file(self, owner: User, item: UploadItem) -> FileRecord:
        """
        Store an uploaded file's bytes, then persist its record.

        If the record cannot be saved the stored bytes are removed before the
        error propagates.

        Raises:
            InvalidUploadError: Empty, oversized, or disallowed file
            StorageFailureError: Bytes or metadata could not be written
        """
        self._validate(item)
        name = clean_filename(item.filename)
        file_id = generate_uuid()
        logger.info(f"Uploading {name} ({len(item.data)} bytes) [file_id={file_id}] [user_id={owner.user_id}]")

        handle = self.storage.store(item.data, file_suffix(name))
        try:
            record = self.file_repo.create_file(
                file_id=file_id,
                storage_handle=handle,
                original_name=name,
                media_type=normalize_media_type(item.media_type),
                size=len(item.data),
                owner_id=owner.user_id,
                created_at=self.clock(),
            )
        except sqlite3.Error as e:
            logger.error(f"Upload failed for file {file_id}: {e}", exc_info=True)
            self._cleanup_objects([handle])
            raise StorageFailureError(f"Failed to save file metadata: {e}") from e
        except Exception as e:
            logger.error(f"Upload failed for file {file_id}: {e}", exc_info=True)
            self._cleanup_objects([handle])
            raise

        logger.info(f"Successfully uploaded file {file_id} [user_id={owner.user_id}]")
        return record

    def upload_files(self, owner: User, items: List[UploadItem]) -> List[FileRecord]:
        """
        Upload a batch of files atomically: either every record is saved or none is.
        """
        if not items:
            raise InvalidUploadError("No files uploaded")
        if len(items) > MAX_FILES_PER_UPLOAD:
            raise InvalidUploadError(f"At most {MAX_FILES_PER_UPLOAD} files may be uploaded at once")
        for item in items:
            self._validate(item)

        logger.info(f"Uploading batch of {len(items)} files [user_id={owner.user_id}]")
        stored: List[Tuple[str, UploadItem]] = []
        records: List[FileRecord] = []

        try:
            for item in items:
                handle = self.storage.store(item.data, file_suffix(clean_filename(item.filename)))
                stored.append((handle, item))

            with self.database.transaction() as conn:
                for handle, item in stored:
                    records.append(self.file_repo.create_file(
                        file_id=generate_uuid(),
                        storage_handle=handle,
                        original_name=clean_filename(item.filename),
                        media_type=normalize_media_type(item.media_type),
                        size=len(item.data),
                        owner_id=owner.user_id,
                        created_at=self.clock(),
                        conn=conn,
                    ))
        except sqlite3.Error as e:
            logger.error(f"Batch upload failed: {e} [user_id={owner.user_id}]", exc_info=True)
            self._cleanup_objects([handle for handle, _ in stored])
            raise StorageFailureError(f"Failed to save file metadata: {e}") from e
        except Exception as e:
            logger.error(f"Batch upload failed: {e} [user_id={owner.user_id}]", exc_info=True)
            self._cleanup_objects([handle for handle, _ in stored])
            raise

        logger.info(f"Successfully uploaded {len(records)} files [user_id={owner.user_id}]")
        return records

    def _cleanup_objects(self, handles: List[str]) -> List[str]:
        """
        Delete stored objects left behind by a failed upload.

        Single best-effort attempt per object; failures are logged, never raised.

        Returns:
            Handles that could not be deleted
        """
        failed = []
        for handle in handles:
            try:
                self.storage.delete(handle)
                logger.info(f"Deleted orphaned object {handle}")
            except StorageFailureError as e:
                logger.error(f"Failed to delete orphaned object {handle}: {e}")
                failed.append(handle)
        return failed

    def get_file(self, file_id: str) -> FileRecord:
        record = self.file_repo.get_by_id(file_id)
        if record is None:
            raise FileRecordNotFoundError(f"File {file_id} not found")
        return record

    def list_owned(self, owner: User) -> List[FileRecord]:
        return self.file_repo.list_by_owner(owner.user_id)

    def list_shared_with(self, user: User) -> List[SharedFileEntry]:
        return self.file_repo.list_shared_with(user.user_id)

    def open_download(self, actor: User, file_id: str) -> Tuple[FileRecord, Iterator[bytes]]:
        """
        Authorize a download and open the stored bytes.

        Raises:
            FileRecordNotFoundError: Unknown file
            ForbiddenError: Actor is neither owner nor grantee
            StoredBytesMissingError: Record exists but its bytes are gone
        """
        record = self.get_file(file_id)
        enforce(Action.DOWNLOAD, actor.user_id, record)
        stream = self.storage.retrieve(record.storage_handle)
        logger.info(f"Download started [file_id={file_id}] [user_id={actor.user_id}]")
        return record, stream

    def share_with(self, actor: User, file_id: str, grantee_ids: Iterable[str]) -> FileRecord:
        """
        Grant standing download access to other users.

        Raises:
            FileRecordNotFoundError: Unknown file
            ForbiddenError: Actor is not the owner
            UnknownGranteeError: Any grantee is not a registered user
        """
        record = self.get_file(file_id)
        enforce(Action.SHARE, actor.user_id, record)
        return self.grant_store.merge(record, grantee_ids)

    def delete_file(self, actor: User, file_id: str) -> DeleteResult:
        """
        Delete a file's stored bytes, then its record.

        A byte deletion failure does not stop the record deletion; it is
        logged and reported in the result.

        Raises:
            FileRecordNotFoundError: Unknown file
            ForbiddenError: Actor is not the owner
        """
        record = self.get_file(file_id)
        enforce(Action.DELETE, actor.user_id, record)

        bytes_removed = False
        try:
            bytes_removed = self.storage.delete(record.storage_handle)
            if not bytes_removed:
                logger.warning(f"Stored object already missing for file {file_id}")
        except StorageFailureError as e:
            logger.error(f"Failed to delete stored object for file {file_id}, deleting record anyway: {e}")

        if not self.file_repo.delete_file(file_id, actor.user_id):
            raise FileRecordNotFoundError(f"File {file_id} not found")

        logger.info(f"File deleted [file_id={file_id}] [user_id={actor.user_id}] bytes_removed={bytes_removed}")
        return DeleteResult(file_id=file_id, bytes_removed=bytes_removed)
