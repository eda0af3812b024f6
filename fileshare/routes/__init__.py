"""API routes package."""

from fileshare.routes.auth_routes import router as auth_router
from fileshare.routes.file_routes import router as file_router
from fileshare.routes.share_routes import router as share_router

__all__ = ["auth_router", "file_router", "share_router"]
