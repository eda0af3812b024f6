"""Authorization decisions for file actions.

Every rule is a pure function of (action, actor, file record). Whether a
proposed grantee exists is not decided here; the grant store rejects
unknown users when the merge is applied.
"""

import enum
from dataclasses import dataclass
from typing import Optional

from fileshare.exceptions import ForbiddenError
from fileshare.repositories.file_repository import FileRecord


class Action(str, enum.Enum):
    DOWNLOAD = "download"
    SHARE = "share"
    MINT_LINK = "mint_link"
    REVOKE_LINK = "revoke_link"
    DELETE = "delete"


OWNER_ONLY_ACTIONS = frozenset({
    Action.SHARE,
    Action.MINT_LINK,
    Action.REVOKE_LINK,
    Action.DELETE,
})

DENY_REASONS = {
    Action.DOWNLOAD: "You do not have permission to download this file",
    Action.SHARE: "Not authorized to share this file",
    Action.MINT_LINK: "Not authorized to create a share link for this file",
    Action.REVOKE_LINK: "Not authorized to revoke the share link for this file",
    Action.DELETE: "Not authorized to delete this file",
}


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[str] = None

    @classmethod
    def allow(cls) -> "Decision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str) -> "Decision":
        return cls(allowed=False, reason=reason)


def is_owner(actor_id: Optional[str], record: FileRecord) -> bool:
    return actor_id is not None and actor_id == record.owner_id


def has_access(actor_id: Optional[str], record: FileRecord) -> bool:
    """True iff the actor owns the file or holds a standing grant on it."""
    return is_owner(actor_id, record) or (actor_id is not None and actor_id in record.shared_with)


def decide(action: Action, actor_id: Optional[str], record: FileRecord) -> Decision:
    if actor_id is None:
        return Decision.deny("Authentication required")

    if action is Action.DOWNLOAD:
        allowed = has_access(actor_id, record)
    elif action in OWNER_ONLY_ACTIONS:
        allowed = is_owner(actor_id, record)
    else:
        raise ValueError(f"Unknown action: {action!r}")

    return Decision.allow() if allowed else Decision.deny(DENY_REASONS[action])


def enforce(action: Action, actor_id: Optional[str], record: FileRecord) -> None:
    """
    Raise ForbiddenError unless ``decide`` allows the action.
    """
    decision = decide(action, actor_id, record)
    if not decision.allowed:
        raise ForbiddenError(decision.reason)
