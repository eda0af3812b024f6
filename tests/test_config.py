"""Tests for settings and the signing-key startup check."""

import logging
from dataclasses import replace

import pytest
from fastapi.testclient import TestClient

from fileshare.config import DEFAULT_JWT_SECRET, Settings
from fileshare.main import create_app


class RecordingHandler(logging.Handler):

    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


@pytest.fixture
def fileshare_log():
    handler = RecordingHandler()
    logger = logging.getLogger("fileshare")
    logger.addHandler(handler)
    yield handler.records
    logger.removeHandler(handler)


def signing_key_warnings(records):
    return [
        record for record in records
        if record.levelno == logging.WARNING and "FILESHARE_JWT_SECRET" in record.getMessage()
    ]


class TestJwtSecret:

    def test_default_secret_is_long_enough_for_hs256(self):
        assert len(DEFAULT_JWT_SECRET.encode("utf-8")) >= 32

    def test_uses_default_jwt_secret(self, settings):
        assert settings.uses_default_jwt_secret is False
        assert Settings(jwt_secret=DEFAULT_JWT_SECRET).uses_default_jwt_secret is True

    def test_startup_warns_on_default_secret(self, settings, clock, fileshare_log):
        app = create_app(replace(settings, jwt_secret=DEFAULT_JWT_SECRET), clock=clock)
        with TestClient(app):
            pass
        assert len(signing_key_warnings(fileshare_log)) == 1

    def test_startup_quiet_with_configured_secret(self, settings, clock, fileshare_log):
        app = create_app(settings, clock=clock)
        with TestClient(app):
            pass
        assert signing_key_warnings(fileshare_log) == []
