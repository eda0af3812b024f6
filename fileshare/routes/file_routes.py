"""File operation API routes."""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import StreamingResponse

from common.constants import MAX_FILES_PER_UPLOAD
from fileshare.auth import get_current_user
from fileshare.config import API_PREFIX
from fileshare.exceptions import InvalidUploadError
from fileshare.repositories.user_repository import User
from fileshare.schemas.common import ErrorResponse
from fileshare.schemas.files import (
    CreateLinkRequest,
    CreateLinkResponse,
    DeleteFileResponse,
    FileResponse,
    OwnedFileResponse,
    OwnedFilesResponse,
    OwnerInfo,
    RevokeLinkResponse,
    SharedFileResponse,
    SharedFilesResponse,
    ShareRequest,
    ShareResponse,
    UploadManyResponse,
    UploadResponse,
)
from fileshare.service_locator import ServiceContainer, get_services
from fileshare.services.file_service import UploadItem
from fileshare.services.share_link_service import LinkState
from fileshare.utils import content_disposition

router = APIRouter(
    prefix=f"{API_PREFIX}/files",
    tags=["Files"],
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)


async def _read_upload(upload: UploadFile, max_bytes: int) -> UploadItem:
    # one byte past the limit is enough to detect an oversized file
    data = await upload.read(max_bytes + 1)
    return UploadItem(
        filename=upload.filename or "",
        media_type=upload.content_type or "",
        data=data,
    )


@router.post("/upload", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_file(
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    services: ServiceContainer = Depends(get_services),
):
    """
    Upload a single file.

    Parameters:
        - file: File to upload (multipart/form-data)
        - Authorization header: Bearer <credential> (required)

    Raises:
        - 400: Empty upload
        - 401: Missing or invalid credential
        - 413: File too large
        - 415: File type not allowed
        - 500: Storage failure
    """
    file_service = services.file_service
    item = await _read_upload(file, file_service.max_upload_bytes)
    record = file_service.upload_file(current_user, item)
    return UploadResponse(file=FileResponse.from_record(record))


@router.post("/upload-multiple", response_model=UploadManyResponse, status_code=status.HTTP_201_CREATED)
async def upload_files(
    files: List[UploadFile] = File(...),
    current_user: User = Depends(get_current_user),
    services: ServiceContainer = Depends(get_services),
):
    """
    Upload several files at once; either all are saved or none are.
    """
    file_service = services.file_service
    if not files:
        raise InvalidUploadError("No files uploaded")
    if len(files) > MAX_FILES_PER_UPLOAD:
        raise InvalidUploadError(f"At most {MAX_FILES_PER_UPLOAD} files may be uploaded at once")

    items = [await _read_upload(upload, file_service.max_upload_bytes) for upload in files]
    records = file_service.upload_files(current_user, items)
    return UploadManyResponse(
        files=[FileResponse.from_record(record) for record in records],
        count=len(records),
    )


@router.get("/mine", response_model=OwnedFilesResponse)
async def list_my_files(
    current_user: User = Depends(get_current_user),
    services: ServiceContainer = Depends(get_services),
):
    """
    List files owned by the caller, newest first, with grantees and link status.
    """
    records = services.file_service.list_owned(current_user)
    files = []
    for record in records:
        link_state = services.share_links.link_state(record)
        files.append(OwnedFileResponse(
            **FileResponse.from_record(record).model_dump(),
            shared_with=sorted(record.shared_with),
            has_share_link=link_state is not LinkState.NO_LINK,
            link_state=link_state,
            link_expiry=record.link_expiry,
        ))
    return OwnedFilesResponse(files=files, count=len(files))


@router.get("/shared", response_model=SharedFilesResponse)
async def list_shared_files(
    current_user: User = Depends(get_current_user),
    services: ServiceContainer = Depends(get_services),
):
    """
    List files other users have shared with the caller, newest first.
    """
    entries = services.file_service.list_shared_with(current_user)
    files = [
        SharedFileResponse(
            **FileResponse.from_record(entry.record).model_dump(),
            owner=OwnerInfo(name=entry.owner_name, email=entry.owner_email),
        )
        for entry in entries
    ]
    return SharedFilesResponse(files=files, count=len(files))


@router.get("/{file_id}/download")
async def download_file(
    file_id: str,
    current_user: User = Depends(get_current_user),
    services: ServiceContainer = Depends(get_services),
):
    """
    Download a file the caller owns or has been granted.

    Raises:
        - 401: Missing or invalid credential
        - 403: Caller is neither owner nor grantee
        - 404: File not found, or its stored bytes are missing
    """
    record, stream = services.file_service.open_download(current_user, file_id)
    return StreamingResponse(
        stream,
        media_type=record.media_type,
        headers={
            "Content-Disposition": content_disposition(record.original_name),
            "Content-Length": str(record.size),
        }
    )


@router.post("/{file_id}/share", response_model=ShareResponse)
async def share_file(
    file_id: str,
    request: ShareRequest,
    current_user: User = Depends(get_current_user),
    services: ServiceContainer = Depends(get_services),
):
    """
    Grant other users standing access to a file.

    Raises:
        - 400: One or more user ids do not exist (nothing is granted)
        - 403: Caller is not the owner
        - 404: File not found
    """
    record = services.file_service.share_with(current_user, file_id, request.user_ids)
    return ShareResponse(file_id=record.file_id, shared_with=sorted(record.shared_with))


@router.post("/{file_id}/link", response_model=CreateLinkResponse)
async def create_share_link(
    file_id: str,
    request: Optional[CreateLinkRequest] = None,
    current_user: User = Depends(get_current_user),
    services: ServiceContainer = Depends(get_services),
):
    """
    Mint a share link, replacing any earlier one.

    Parameters:
        - ttl_policy: one of "30s", "1h", "3h", "24h", "never" (default "never")

    Raises:
        - 403: Caller is not the owner
        - 404: File not found
    """
    request = request or CreateLinkRequest()
    link = services.share_links.mint(current_user, file_id, request.ttl_policy)
    return CreateLinkResponse(
        file_id=file_id,
        share_token=link.token,
        ttl_policy=link.ttl_policy,
        expires_at=link.expires_at,
    )


@router.delete("/{file_id}/link", response_model=RevokeLinkResponse)
async def revoke_share_link(
    file_id: str,
    current_user: User = Depends(get_current_user),
    services: ServiceContainer = Depends(get_services),
):
    """
    Revoke a file's share link. Grants already obtained through it remain.
    """
    services.share_links.revoke(current_user, file_id)
    return RevokeLinkResponse(file_id=file_id, revoked=True)


@router.delete("/{file_id}", response_model=DeleteFileResponse)
async def delete_file(
    file_id: str,
    current_user: User = Depends(get_current_user),
    services: ServiceContainer = Depends(get_services),
):
    """
    Delete a file and its stored bytes.

    Raises:
        - 403: Caller is not the owner
        - 404: File not found
    """
    result = services.file_service.delete_file(current_user, file_id)
    return DeleteFileResponse(file_id=result.file_id, deleted=True, bytes_removed=result.bytes_removed)
