"""Pydantic schemas for file and sharing endpoints."""

from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

from fileshare.repositories.file_repository import FileRecord
from fileshare.services.share_link_service import LinkState, TtlPolicy


class FileResponse(BaseModel):
    """Response model for file metadata."""
    id: str
    original_name: str
    media_type: str
    size: int
    created_at: datetime

    @classmethod
    def from_record(cls, record: FileRecord) -> "FileResponse":
        return cls(
            id=record.file_id,
            original_name=record.original_name,
            media_type=record.media_type,
            size=record.size,
            created_at=record.created_at,
        )


class OwnedFileResponse(FileResponse):
    """A file as its owner sees it: grantees and link status, never the token itself."""
    shared_with: List[str]
    has_share_link: bool
    link_state: LinkState
    link_expiry: Optional[datetime] = None


class OwnerInfo(BaseModel):
    name: str
    email: str


class SharedFileResponse(FileResponse):
    owner: Optional[OwnerInfo] = None


class UploadResponse(BaseModel):
    """Response model for single file upload."""
    file: FileResponse


class UploadManyResponse(BaseModel):
    """Response model for batch upload."""
    files: List[FileResponse]
    count: int


class OwnedFilesResponse(BaseModel):
    files: List[OwnedFileResponse]
    count: int


class SharedFilesResponse(BaseModel):
    files: List[SharedFileResponse]
    count: int


class ShareRequest(BaseModel):
    """Request model for granting users access to a file."""
    user_ids: List[str] = Field(min_length=1, validation_alias=AliasChoices("user_ids", "userIds"))

    @field_validator("user_ids", mode="before")
    @classmethod
    def wrap_single_id(cls, value):
        if isinstance(value, str):
            return [value]
        return value

    @field_validator("user_ids")
    @classmethod
    def dedupe_ids(cls, value: List[str]) -> List[str]:
        ids = []
        for user_id in value:
            user_id = user_id.strip()
            if not user_id:
                raise ValueError("user ids must be non-empty")
            if user_id not in ids:
                ids.append(user_id)
        return ids


class ShareResponse(BaseModel):
    file_id: str
    shared_with: List[str]


class CreateLinkRequest(BaseModel):
    """Request model for minting a share link."""
    ttl_policy: TtlPolicy = Field(
        default=TtlPolicy.NEVER,
        validation_alias=AliasChoices("ttl_policy", "expiryOption"),
    )


class CreateLinkResponse(BaseModel):
    file_id: str
    share_token: str
    ttl_policy: TtlPolicy
    expires_at: Optional[datetime] = None


class RevokeLinkResponse(BaseModel):
    file_id: str
    revoked: bool


class DeleteFileResponse(BaseModel):
    file_id: str
    deleted: bool
    bytes_removed: bool


class LinkInfo(BaseModel):
    expires_at: Optional[datetime] = None
    remaining_seconds: Optional[int] = None


class ShareAccessResponse(BaseModel):
    """Response model for a redeemed share link."""
    file: SharedFileResponse
    link: LinkInfo
    granted: bool
