"""Share-link lifecycle: mint, resolve (with grant upgrade), and revoke."""

import enum
import math
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from common.constants import SHARE_TOKEN_BYTES
from common.logging_config import get_logger
from fileshare.access_policy import Action, enforce, has_access
from fileshare.exceptions import (
    AuthenticationRequiredError,
    FileRecordNotFoundError,
    TokenExpiredError,
    TokenNotFoundError,
)
from fileshare.repositories.file_repository import FileRecord, FileRepository
from fileshare.repositories.user_repository import User, UserRepository
from fileshare.services.grant_service import GrantStore
from fileshare.utils import Clock, utc_now

logger = get_logger(__name__)


class TtlPolicy(str, enum.Enum):
    """How long a freshly minted link stays valid."""
    THIRTY_SECONDS = "30s"
    ONE_HOUR = "1h"
    THREE_HOURS = "3h"
    ONE_DAY = "24h"
    NEVER = "never"

    @property
    def duration(self) -> Optional[timedelta]:
        return _TTL_DURATIONS[self]


_TTL_DURATIONS = {
    TtlPolicy.THIRTY_SECONDS: timedelta(seconds=30),
    TtlPolicy.ONE_HOUR: timedelta(hours=1),
    TtlPolicy.THREE_HOURS: timedelta(hours=3),
    TtlPolicy.ONE_DAY: timedelta(hours=24),
    TtlPolicy.NEVER: None,
}


class LinkState(str, enum.Enum):
    NO_LINK = "no_link"
    ACTIVE = "active"
    EXPIRED = "expired"


@dataclass(frozen=True)
class ShareLink:
    token: str
    ttl_policy: TtlPolicy
    expires_at: Optional[datetime]


@dataclass(frozen=True)
class ResolvedLink:
    record: FileRecord
    expires_at: Optional[datetime]
    remaining_seconds: Optional[int]
    owner: Optional[User]
    granted: bool


def generate_share_token() -> str:
    return secrets.token_hex(SHARE_TOKEN_BYTES)


class ShareLinkManager:
    """
    Per-file share links.

    A file holds at most one token. Minting always replaces the previous
    token, revoking clears it, and expiry is only evaluated when a token is
    resolved.
    """

    def __init__(
        self,
        file_repo: FileRepository,
        user_repo: UserRepository,
        grant_store: GrantStore,
        clock: Clock = utc_now,
    ):
        self.file_repo = file_repo
        self.user_repo = user_repo
        self.grant_store = grant_store
        self.clock = clock

    def _load_owned(self, actor: User, file_id: str, action: Action) -> FileRecord:
        record = self.file_repo.get_by_id(file_id)
        if record is None:
            raise FileRecordNotFoundError(f"File {file_id} not found")
        enforce(action, actor.user_id, record)
        return record

    def mint(self, actor: User, file_id: str, ttl_policy: TtlPolicy = TtlPolicy.NEVER) -> ShareLink:
        """
        Create a new share link for a file, invalidating any previous one.

        Raises:
            FileRecordNotFoundError: Unknown file
            ForbiddenError: Actor is not the owner
        """
        record = self._load_owned(actor, file_id, Action.MINT_LINK)

        duration = ttl_policy.duration
        expires_at = self.clock() + duration if duration is not None else None
        token = generate_share_token()

        if not self.file_repo.set_share_link(record.file_id, actor.user_id, token, expires_at):
            raise FileRecordNotFoundError(f"File {file_id} not found")

        logger.info(
            f"Share link created policy={ttl_policy.value} expires_at={expires_at.isoformat() if expires_at else 'never'} "
            f"[file_id={file_id}] [user_id={actor.user_id}]"
        )
        return ShareLink(token=token, ttl_policy=ttl_policy, expires_at=expires_at)

    def resolve(self, token: str, actor: Optional[User]) -> ResolvedLink:
        """
        Redeem a share token as an authenticated user.

        A successful redemption by a user without access adds them to the
        file's grant set, so access outlives the link.

        Raises:
            AuthenticationRequiredError: No acting user (checked before lookup)
            TokenNotFoundError: No file carries this token
            TokenExpiredError: The link existed but has expired
        """
        if actor is None:
            raise AuthenticationRequiredError("Authentication required to open a share link")

        record = self.file_repo.get_by_share_token(token)
        if record is None:
            logger.warning(f"Share token not found [user_id={actor.user_id}]")
            raise TokenNotFoundError("File not found or link expired")

        now = self.clock()
        remaining_seconds = None
        if record.link_expiry is not None:
            if now > record.link_expiry:
                logger.info(f"Share link expired [file_id={record.file_id}] [user_id={actor.user_id}]")
                raise TokenExpiredError(f"Share link expired at {record.link_expiry.isoformat()}")
            remaining_seconds = max(0, math.floor((record.link_expiry - now).total_seconds()))

        granted = False
        if not has_access(actor.user_id, record):
            record = self.grant_store.grant(record, actor.user_id)
            granted = True
            logger.info(f"Share link redeemed, access granted [file_id={record.file_id}] [user_id={actor.user_id}]")

        return ResolvedLink(
            record=record,
            expires_at=record.link_expiry,
            remaining_seconds=remaining_seconds,
            owner=self.user_repo.get_by_id(record.owner_id),
            granted=granted,
        )

    def revoke(self, actor: User, file_id: str) -> None:
        """
        Remove a file's share link; revoking a file without one succeeds.

        Raises:
            FileRecordNotFoundError: Unknown file
            ForbiddenError: Actor is not the owner
        """
        record = self._load_owned(actor, file_id, Action.REVOKE_LINK)
        self.file_repo.clear_share_link(record.file_id, actor.user_id)
        logger.info(f"Share link revoked [file_id={file_id}] [user_id={actor.user_id}]")

    def link_state(self, record: FileRecord) -> LinkState:
        if record.share_token is None:
            return LinkState.NO_LINK
        if record.link_expiry is not None and self.clock() > record.link_expiry:
            return LinkState.EXPIRED
        return LinkState.ACTIVE
