"""Project-wide constants (upload limits, media types, token sizes)."""

MAX_UPLOAD_BYTES: int = 50 * 1024 * 1024  # 50 MiB per file
MAX_FILES_PER_UPLOAD: int = 30

DOWNLOAD_PIECE_SIZE: int = 64 * 1024

SHARE_TOKEN_BYTES: int = 32  # hex-encoded, 256 bits

CREDENTIAL_TTL_SECONDS: int = 7 * 24 * 60 * 60
CREDENTIAL_ALGORITHM: str = "HS256"

MIN_PASSWORD_LENGTH: int = 6
MAX_PASSWORD_BYTES: int = 72  # bcrypt input limit

ALLOWED_MEDIA_TYPES: frozenset = frozenset({
    "image/jpeg",
    "image/png",
    "image/gif",
    "application/pdf",
    "text/csv",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "text/plain",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
})

DEFAULT_DATABASE_PATH: str = "./data/fileshare.db"
DEFAULT_STORAGE_PATH: str = "./data/uploads"
