"""Integration tests for database repositories."""

from datetime import datetime, timedelta, timezone

import pytest

from fileshare.database import Database, DatabaseState, get_row_value
from fileshare.exceptions import DatabaseNotReadyError, UserAlreadyExistsError
from fileshare.repositories.file_repository import FileRepository
from fileshare.repositories.grant_repository import GrantRepository
from fileshare.repositories.user_repository import UserRepository

NOW = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def test_db(tmp_path):
    """
    Create a temporary, initialized test database for each test.
    """
    database = Database(str(tmp_path / "nested" / "test.db"))
    database.initialize()
    yield database
    database.close()


@pytest.fixture
def user_repo(test_db):
    return UserRepository(test_db)


@pytest.fixture
def file_repo(test_db):
    return FileRepository(test_db, GrantRepository(test_db))


def create_file(file_repo, file_id, owner_id, created_at=NOW):
    return file_repo.create_file(
        file_id=file_id,
        storage_handle=f"{file_id}.bin",
        original_name=f"{file_id}.txt",
        media_type="text/plain",
        size=3,
        owner_id=owner_id,
        created_at=created_at,
    )


class TestDatabaseLifecycle:
    """Test the open, ready, and closed states of the database handle."""

    def test_starts_open(self, tmp_path):
        database = Database(str(tmp_path / "db.sqlite"))
        assert database.state is DatabaseState.OPEN

    def test_connection_refused_before_initialize(self, tmp_path):
        database = Database(str(tmp_path / "db.sqlite"))
        with pytest.raises(DatabaseNotReadyError):
            with database.connection():
                pass

    def test_initialize_creates_parent_directory(self, test_db, tmp_path):
        assert test_db.state is DatabaseState.READY
        assert (tmp_path / "nested" / "test.db").exists()

    def test_initialize_is_idempotent(self, test_db):
        test_db.initialize()
        assert test_db.state is DatabaseState.READY

    def test_connection_refused_after_close(self, test_db):
        test_db.close()
        assert test_db.state is DatabaseState.CLOSED
        with pytest.raises(DatabaseNotReadyError):
            with test_db.connection():
                pass
        with pytest.raises(DatabaseNotReadyError):
            test_db.initialize()

    def test_transaction_rolls_back_on_error(self, test_db, user_repo):
        with pytest.raises(RuntimeError):
            with test_db.transaction() as conn:
                conn.execute(
                    "INSERT INTO users (user_id, name, email, password_hash, created_at) VALUES (?, ?, ?, ?, ?)",
                    ("user-1", "Alice", "alice@example.com", "hash", NOW.isoformat())
                )
                raise RuntimeError("abort")

        assert user_repo.get_by_id("user-1") is None


class TestDatabaseHelpers:
    """Test database helper functions."""

    def test_get_row_value(self, test_db, file_repo, user_repo):
        user_repo.create_user("user-1", "Alice", "alice@example.com", "hash", NOW)
        create_file(file_repo, "file-1", "user-1")
        with test_db.connection() as conn:
            row = conn.execute("SELECT * FROM files WHERE file_id = ?", ("file-1",)).fetchone()

        assert get_row_value(row, "original_name") == "file-1.txt"
        assert get_row_value(row, "share_token") is None
        assert get_row_value(row, "share_token", "default") == "default"
        assert get_row_value(row, "nonexistent", "default") == "default"


class TestUserRepository:
    """Test UserRepository with various scenarios."""

    def test_create_and_fetch(self, user_repo):
        user = user_repo.create_user("user-1", "Alice", "Alice@Example.com", "hash", NOW)

        assert user.email == "alice@example.com"
        assert user_repo.get_by_id("user-1") == user
        assert user_repo.get_by_email("ALICE@example.com").user_id == "user-1"

    def test_duplicate_email_is_case_insensitive(self, user_repo):
        user_repo.create_user("user-1", "Alice", "alice@example.com", "hash", NOW)
        with pytest.raises(UserAlreadyExistsError):
            user_repo.create_user("user-2", "Other", "ALICE@EXAMPLE.COM", "hash", NOW)

    def test_get_missing_user(self, user_repo):
        assert user_repo.get_by_id("nope") is None
        assert user_repo.get_by_email("nope@example.com") is None

    def test_list_users(self, user_repo):
        user_repo.create_user("user-1", "bob", "bob@example.com", "hash", NOW)
        user_repo.create_user("user-2", "Alice", "alice@example.com", "hash", NOW)
        user_repo.create_user("user-3", "Carol", "carol@example.com", "hash", NOW)

        assert [user.name for user in user_repo.list_users()] == ["Alice", "bob", "Carol"]
        assert [user.name for user in user_repo.list_users(exclude_user_id="user-2")] == ["bob", "Carol"]

    def test_existing_ids(self, test_db, user_repo):
        user_repo.create_user("user-1", "Alice", "alice@example.com", "hash", NOW)
        with test_db.connection() as conn:
            assert UserRepository.existing_ids(["user-1", "ghost"], conn) == {"user-1"}
            assert UserRepository.existing_ids([], conn) == set()


class TestFileRepository:
    """Test FileRepository with various scenarios."""

    @pytest.fixture(autouse=True)
    def owners(self, user_repo):
        user_repo.create_user("owner", "Owner", "owner@example.com", "hash", NOW)
        user_repo.create_user("friend", "Friend", "friend@example.com", "hash", NOW)

    def test_create_and_get(self, file_repo):
        created = create_file(file_repo, "file-1", "owner")
        fetched = file_repo.get_by_id("file-1")

        assert fetched == created
        assert fetched.created_at == NOW
        assert fetched.share_token is None
        assert fetched.link_expiry is None

    def test_list_by_owner_newest_first(self, file_repo):
        create_file(file_repo, "old", "owner", NOW)
        create_file(file_repo, "new", "owner", NOW + timedelta(minutes=1))

        assert [record.file_id for record in file_repo.list_by_owner("owner")] == ["new", "old"]
        assert file_repo.list_by_owner("friend") == []

    def test_share_link_update_requires_owner(self, file_repo):
        create_file(file_repo, "file-1", "owner")
        expiry = NOW + timedelta(hours=1)

        assert file_repo.set_share_link("file-1", "friend", "tok", expiry) is False
        assert file_repo.set_share_link("file-1", "owner", "tok", expiry) is True

        record = file_repo.get_by_share_token("tok")
        assert record.file_id == "file-1"
        assert record.link_expiry == expiry

    def test_clear_share_link(self, file_repo):
        create_file(file_repo, "file-1", "owner")
        file_repo.set_share_link("file-1", "owner", "tok", None)

        assert file_repo.clear_share_link("file-1", "owner") is True
        assert file_repo.get_by_share_token("tok") is None

    def test_grants_and_shared_listing(self, file_repo):
        create_file(file_repo, "file-1", "owner")
        added = file_repo.grant_repo.add_grants("file-1", ["friend", "friend"], NOW)

        assert added == 1
        assert file_repo.get_by_id("file-1").shared_with == frozenset({"friend"})

        entries = file_repo.list_shared_with("friend")
        assert [entry.record.file_id for entry in entries] == ["file-1"]
        assert entries[0].owner_name == "Owner"

    def test_delete_cascades_grants(self, test_db, file_repo):
        create_file(file_repo, "file-1", "owner")
        file_repo.grant_repo.add_grants("file-1", ["friend"], NOW)

        assert file_repo.delete_file("file-1", "friend") is False
        assert file_repo.delete_file("file-1", "owner") is True
        assert file_repo.get_by_id("file-1") is None
        with test_db.connection() as conn:
            assert conn.execute("SELECT COUNT(*) FROM file_grants").fetchone()[0] == 0
