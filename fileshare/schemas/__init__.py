"""Pydantic schemas for API requests and responses."""

from fileshare.schemas.auth import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    UserListResponse,
    UserResponse,
)
from fileshare.schemas.files import (
    CreateLinkRequest,
    CreateLinkResponse,
    DeleteFileResponse,
    FileResponse,
    LinkInfo,
    OwnedFileResponse,
    OwnedFilesResponse,
    OwnerInfo,
    RevokeLinkResponse,
    ShareAccessResponse,
    SharedFileResponse,
    SharedFilesResponse,
    ShareRequest,
    ShareResponse,
    UploadManyResponse,
    UploadResponse,
)
from fileshare.schemas.common import ErrorResponse

__all__ = [
    "AuthResponse",
    "LoginRequest",
    "RegisterRequest",
    "UserListResponse",
    "UserResponse",
    "CreateLinkRequest",
    "CreateLinkResponse",
    "DeleteFileResponse",
    "FileResponse",
    "LinkInfo",
    "OwnedFileResponse",
    "OwnedFilesResponse",
    "OwnerInfo",
    "RevokeLinkResponse",
    "ShareAccessResponse",
    "SharedFileResponse",
    "SharedFilesResponse",
    "ShareRequest",
    "ShareResponse",
    "UploadManyResponse",
    "UploadResponse",
    "ErrorResponse",
]
