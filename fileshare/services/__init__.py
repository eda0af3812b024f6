"""Service layer for business logic."""

from fileshare.services.auth_service import AuthService
from fileshare.services.file_service import FileService
from fileshare.services.grant_service import GrantStore
from fileshare.services.share_link_service import ShareLinkManager

__all__ = [
    "AuthService",
    "FileService",
    "GrantStore",
    "ShareLinkManager",
]
