"""Tests for file action authorization rules."""

from datetime import datetime, timezone

import pytest

from fileshare.access_policy import Action, decide, enforce, has_access, is_owner
from fileshare.exceptions import ForbiddenError
from fileshare.repositories.file_repository import FileRecord


@pytest.fixture
def record():
    return FileRecord(
        file_id="file-1",
        storage_handle="abc.txt",
        original_name="report.txt",
        media_type="text/plain",
        size=10,
        owner_id="owner",
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        shared_with=frozenset({"grantee"}),
    )


class TestAccessPredicates:

    def test_owner(self, record):
        assert is_owner("owner", record)
        assert has_access("owner", record)

    def test_grantee_has_access_but_is_not_owner(self, record):
        assert not is_owner("grantee", record)
        assert has_access("grantee", record)

    def test_stranger(self, record):
        assert not has_access("stranger", record)

    def test_no_actor(self, record):
        assert not is_owner(None, record)
        assert not has_access(None, record)


class TestDecide:

    @pytest.mark.parametrize("actor", ["owner", "grantee"])
    def test_download_allowed_for_owner_and_grantee(self, record, actor):
        assert decide(Action.DOWNLOAD, actor, record).allowed

    def test_download_denied_for_stranger(self, record):
        decision = decide(Action.DOWNLOAD, "stranger", record)
        assert not decision.allowed
        assert decision.reason

    @pytest.mark.parametrize("action", [Action.SHARE, Action.MINT_LINK, Action.REVOKE_LINK, Action.DELETE])
    def test_owner_only_actions(self, record, action):
        assert decide(action, "owner", record).allowed
        assert not decide(action, "grantee", record).allowed
        assert not decide(action, "stranger", record).allowed

    @pytest.mark.parametrize("action", list(Action))
    def test_absent_actor_is_always_denied(self, record, action):
        assert not decide(action, None, record).allowed


class TestEnforce:

    def test_allowed_action_returns_none(self, record):
        assert enforce(Action.DELETE, "owner", record) is None

    def test_denied_action_raises(self, record):
        with pytest.raises(ForbiddenError, match="Not authorized to delete"):
            enforce(Action.DELETE, "grantee", record)
