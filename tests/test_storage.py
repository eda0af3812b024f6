"""Tests for on-disk byte storage."""

import pytest

from fileshare.exceptions import StorageFailureError, StoredBytesMissingError
from fileshare.storage import DiskByteStorage


@pytest.fixture
def storage(tmp_path):
    """
    Create a byte store under a not-yet-existing directory.
    """
    return DiskByteStorage(str(tmp_path / "objects"), piece_size=4)


class TestDiskByteStorage:

    def test_store_creates_root_and_keeps_suffix(self, storage):
        handle = storage.store(b"content", ".PDF")
        assert handle.endswith(".pdf")
        assert storage.exists(handle)

    def test_handles_are_unique(self, storage):
        assert storage.store(b"a") != storage.store(b"a")

    def test_unsafe_suffix_dropped(self, storage):
        handle = storage.store(b"content", "./../x")
        assert "/" not in handle
        assert "." not in handle

    def test_retrieve_streams_in_pieces(self, storage):
        handle = storage.store(b"0123456789")
        pieces = list(storage.retrieve(handle))
        assert pieces == [b"0123", b"4567", b"89"]

    def test_retrieve_missing_raises_before_streaming(self, storage):
        storage.ensure_root()
        with pytest.raises(StoredBytesMissingError):
            storage.retrieve("does-not-exist")

    def test_delete(self, storage):
        handle = storage.store(b"content")
        assert storage.delete(handle) is True
        assert not storage.exists(handle)
        assert storage.delete(handle) is False

    @pytest.mark.parametrize("handle", ["", ".", "..", "../escape", "a/b"])
    def test_invalid_handles(self, storage, handle):
        with pytest.raises(StorageFailureError):
            storage.get_path(handle)

    def test_write_failure_raises_storage_error(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        storage = DiskByteStorage(str(blocker / "objects"))

        with pytest.raises(StorageFailureError):
            storage.store(b"content")
