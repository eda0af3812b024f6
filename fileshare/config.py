"""Configuration settings for the file sharing server."""

import os
from dataclasses import dataclass
from typing import Tuple

from common.constants import (
    CREDENTIAL_TTL_SECONDS as DEFAULT_CREDENTIAL_TTL_SECONDS,
    DEFAULT_DATABASE_PATH,
    DEFAULT_STORAGE_PATH,
    MAX_UPLOAD_BYTES as DEFAULT_MAX_UPLOAD_BYTES,
)


DATABASE_PATH = os.environ.get("FILESHARE_DATABASE_PATH", DEFAULT_DATABASE_PATH)

STORAGE_PATH = os.environ.get("FILESHARE_STORAGE_PATH", DEFAULT_STORAGE_PATH)

SERVER_HOST = os.environ.get("FILESHARE_HOST", "0.0.0.0")

SERVER_PORT = int(os.environ.get("FILESHARE_PORT", "5000"))

DEFAULT_JWT_SECRET = "change-me-in-production-fileshare-signing-key"

JWT_SECRET = os.environ.get("FILESHARE_JWT_SECRET", DEFAULT_JWT_SECRET)

CREDENTIAL_TTL_SECONDS = int(
    os.environ.get("FILESHARE_CREDENTIAL_TTL_SECONDS", str(DEFAULT_CREDENTIAL_TTL_SECONDS))
)

MAX_UPLOAD_BYTES = int(os.environ.get("FILESHARE_MAX_UPLOAD_BYTES", str(DEFAULT_MAX_UPLOAD_BYTES)))

CORS_ORIGINS = tuple(
    origin.strip()
    for origin in os.environ.get("FILESHARE_CORS_ORIGINS", "http://localhost:5173").split(",")
    if origin.strip()
)

API_PREFIX = "/api"


@dataclass(frozen=True)
class Settings:
    """
    Resolved configuration handed to ``create_app``.

    Built from the module-level environment values by default; tests build
    one directly with temporary paths.
    """
    database_path: str = DATABASE_PATH
    storage_path: str = STORAGE_PATH
    jwt_secret: str = JWT_SECRET
    credential_ttl_seconds: int = CREDENTIAL_TTL_SECONDS
    max_upload_bytes: int = MAX_UPLOAD_BYTES
    cors_origins: Tuple[str, ...] = CORS_ORIGINS

    @property
    def uses_default_jwt_secret(self) -> bool:
        return self.jwt_secret == DEFAULT_JWT_SECRET

    @classmethod
    def from_env(cls) -> "Settings":
        return cls()
