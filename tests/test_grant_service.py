"""Tests for grant merges."""

import pytest

from fileshare.exceptions import FileRecordNotFoundError, UnknownGranteeError


class TestGrantStore:
    """Test set-union merges into a file's grant set."""

    def test_merge_adds_grantees(self, services, alice_file, bob, carol):
        updated = services.grant_store.merge(alice_file, [bob.user_id, carol.user_id])
        assert updated.shared_with == frozenset({bob.user_id, carol.user_id})

    def test_merge_is_idempotent(self, services, alice_file, bob):
        services.grant_store.merge(alice_file, [bob.user_id])
        updated = services.grant_store.merge(alice_file, [bob.user_id, bob.user_id])
        assert updated.shared_with == frozenset({bob.user_id})

    def test_merge_keeps_existing_grantees(self, services, alice_file, bob, carol):
        services.grant_store.merge(alice_file, [bob.user_id])
        updated = services.grant_store.merge(alice_file, [carol.user_id])
        assert updated.shared_with == frozenset({bob.user_id, carol.user_id})

    def test_merge_skips_owner(self, services, alice, alice_file, bob):
        updated = services.grant_store.merge(alice_file, [alice.user_id, bob.user_id])
        assert updated.shared_with == frozenset({bob.user_id})

    def test_unknown_grantee_rejects_whole_merge(self, services, alice_file, bob):
        with pytest.raises(UnknownGranteeError) as exc_info:
            services.grant_store.merge(alice_file, [bob.user_id, "ghost-1", "ghost-0"])

        assert exc_info.value.missing_ids == ["ghost-0", "ghost-1"]
        reloaded = services.file_repo.get_by_id(alice_file.file_id)
        assert reloaded.shared_with == frozenset()

    def test_merge_on_deleted_file(self, services, alice, alice_file, bob):
        services.file_service.delete_file(alice, alice_file.file_id)
        with pytest.raises(FileRecordNotFoundError):
            services.grant_store.merge(alice_file, [bob.user_id])

    def test_grant_single_user(self, services, alice_file, bob):
        updated = services.grant_store.grant(alice_file, bob.user_id)
        assert services.grant_store.has(updated, bob.user_id)

    def test_grant_noop_for_existing_access(self, services, alice, alice_file):
        assert services.grant_store.grant(alice_file, alice.user_id) is alice_file
