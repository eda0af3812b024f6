"""Share-link redemption route."""

from fastapi import APIRouter, Depends

from fileshare.auth import get_current_user
from fileshare.config import API_PREFIX
from fileshare.repositories.user_repository import User
from fileshare.schemas.common import ErrorResponse
from fileshare.schemas.files import (
    FileResponse,
    LinkInfo,
    OwnerInfo,
    ShareAccessResponse,
    SharedFileResponse,
)
from fileshare.service_locator import ServiceContainer, get_services

router = APIRouter(
    prefix=f"{API_PREFIX}/share",
    tags=["Share links"],
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 410: {"model": ErrorResponse}},
)


@router.get("/{token}", response_model=ShareAccessResponse)
async def open_share_link(
    token: str,
    current_user: User = Depends(get_current_user),
    services: ServiceContainer = Depends(get_services),
):
    """
    Redeem a share link.

    The caller must be signed in; a caller without access becomes a
    standing grantee of the file and can download it from then on.

    Raises:
        - 401: Missing or invalid credential (checked before the token)
        - 404: Token does not exist (never minted, replaced, or revoked)
        - 410: Link has expired
    """
    resolved = services.share_links.resolve(token, current_user)
    owner = resolved.owner
    return ShareAccessResponse(
        file=SharedFileResponse(
            **FileResponse.from_record(resolved.record).model_dump(),
            owner=OwnerInfo(name=owner.name, email=owner.email) if owner else None,
        ),
        link=LinkInfo(
            expires_at=resolved.expires_at,
            remaining_seconds=resolved.remaining_seconds,
        ),
        granted=resolved.granted,
    )
