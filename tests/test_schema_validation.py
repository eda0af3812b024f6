"""Tests for request schema validation and small helpers."""

import pytest
from pydantic import ValidationError

from fileshare.schemas.auth import RegisterRequest
from fileshare.schemas.files import CreateLinkRequest, ShareRequest
from fileshare.services.share_link_service import TtlPolicy
from fileshare.utils import clean_filename, content_disposition, file_suffix


class TestRegisterRequest:

    def test_password_at_byte_limit_accepted(self):
        request = RegisterRequest(name="Alice", email="alice@example.com", password="p" * 72)
        assert request.password == "p" * 72

    @pytest.mark.parametrize("password", ["p" * 73, "\u00e9" * 40])
    def test_password_over_byte_limit_rejected(self, password):
        with pytest.raises(ValidationError):
            RegisterRequest(name="Alice", email="alice@example.com", password=password)


class TestShareRequest:

    def test_accepts_both_field_names(self):
        assert ShareRequest.model_validate({"user_ids": ["a"]}).user_ids == ["a"]
        assert ShareRequest.model_validate({"userIds": ["a"]}).user_ids == ["a"]

    def test_single_id_is_wrapped(self):
        assert ShareRequest.model_validate({"userIds": "a"}).user_ids == ["a"]

    def test_ids_are_stripped_and_deduplicated(self):
        request = ShareRequest.model_validate({"user_ids": [" a ", "b", "a"]})
        assert request.user_ids == ["a", "b"]

    @pytest.mark.parametrize("payload", [{}, {"user_ids": []}, {"user_ids": ["  "]}])
    def test_invalid(self, payload):
        with pytest.raises(ValidationError):
            ShareRequest.model_validate(payload)


class TestCreateLinkRequest:

    def test_default_is_never(self):
        assert CreateLinkRequest().ttl_policy is TtlPolicy.NEVER

    def test_expiry_option_alias(self):
        assert CreateLinkRequest.model_validate({"expiryOption": "3h"}).ttl_policy is TtlPolicy.THREE_HOURS

    def test_unknown_policy(self):
        with pytest.raises(ValidationError):
            CreateLinkRequest.model_validate({"ttl_policy": "7d"})


class TestFilenameHelpers:

    @pytest.mark.parametrize("raw,expected", [
        ("report.pdf", "report.pdf"),
        ("../../etc/passwd.txt", "passwd.txt"),
        ("C:\\Users\\me\\photo.png", "photo.png"),
        ("", "untitled"),
        ("dir/", "dir"),
    ])
    def test_clean_filename(self, raw, expected):
        assert clean_filename(raw) == expected

    def test_content_disposition_ascii(self):
        assert content_disposition("notes.txt") == "attachment; filename=\"notes.txt\"; filename*=UTF-8''notes.txt"

    def test_content_disposition_unicode(self):
        header = content_disposition("résumé.pdf")
        assert 'filename="rsum.pdf"' in header
        assert "filename*=UTF-8''r%C3%A9sum%C3%A9.pdf" in header

    def test_file_suffix(self):
        assert file_suffix("archive.tar.gz") == ".gz"
        assert file_suffix("README") == ""
