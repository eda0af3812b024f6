"""Grant store: standing per-file access for users other than the owner."""

from typing import Iterable

from common.logging_config import get_logger
from fileshare.access_policy import has_access
from fileshare.database import Database
from fileshare.exceptions import FileRecordNotFoundError, UnknownGranteeError
from fileshare.repositories.file_repository import FileRecord, FileRepository
from fileshare.repositories.grant_repository import GrantRepository
from fileshare.repositories.user_repository import UserRepository
from fileshare.utils import Clock, utc_now

logger = get_logger(__name__)


class GrantStore:
    """
    Set-union merges into a file's grant set.

    Callers are responsible for owner authorization before merging; this
    component only guarantees that merges are all-or-nothing and idempotent.
    """

    def __init__(
        self,
        database: Database,
        file_repo: FileRepository,
        grant_repo: GrantRepository,
        clock: Clock = utc_now,
    ):
        self.database = database
        self.file_repo = file_repo
        self.grant_repo = grant_repo
        self.clock = clock

    @staticmethod
    def has(record: FileRecord, user_id: str) -> bool:
        return has_access(user_id, record)

    def merge(self, record: FileRecord, grantee_ids: Iterable[str]) -> FileRecord:
        """
        Add users to the file's grant set.

        Args:
            record: File being shared
            grantee_ids: Users to grant; the owner and existing grantees are no-ops

        Returns:
            The reloaded record with its updated grant set

        Raises:
            UnknownGranteeError: If any id is not a registered user (nothing is written)
        """
        requested = set(grantee_ids)
        logger.info(f"Merging {len(requested)} grantees [file_id={record.file_id}]")

        with self.database.transaction() as conn:
            if self.file_repo.get_by_id(record.file_id, conn=conn) is None:
                raise FileRecordNotFoundError(f"File {record.file_id} not found")

            missing = requested - UserRepository.existing_ids(requested, conn)
            if missing:
                logger.warning(f"Grant merge rejected, unknown users {sorted(missing)} [file_id={record.file_id}]")
                raise UnknownGranteeError(missing)

            new_grantees = sorted(requested - {record.owner_id})
            added = self.grant_repo.add_grants(record.file_id, new_grantees, self.clock(), conn=conn)
            updated = self.file_repo.get_by_id(record.file_id, conn=conn)

        logger.info(f"Grant merge added {added} users [file_id={record.file_id}]")
        return updated

    def grant(self, record: FileRecord, user_id: str) -> FileRecord:
        """
        Give a single user standing access; a no-op if they already have it.
        """
        if self.has(record, user_id):
            return record
        return self.merge(record, {user_id})
