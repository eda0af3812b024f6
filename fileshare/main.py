"""Entry point for the file sharing service."""

import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from common.logging_config import setup_logging
from fileshare.config import SERVER_HOST, SERVER_PORT, Settings
from fileshare.exceptions import (
    AuthenticationError,
    DatabaseNotReadyError,
    FileRecordNotFoundError,
    FileShareException,
    ForbiddenError,
    InvalidUploadError,
    LoginFailedError,
    StorageFailureError,
    StoredBytesMissingError,
    TokenExpiredError,
    TokenNotFoundError,
    UnknownGranteeError,
    UnsupportedMediaTypeError,
    UploadTooLargeError,
    UserAlreadyExistsError,
)
from fileshare.routes.auth_routes import router as auth_router
from fileshare.routes.file_routes import router as file_router
from fileshare.routes.share_routes import router as share_router
from fileshare.schemas.common import ErrorResponse
from fileshare.service_locator import build_services
from fileshare.utils import Clock, utc_now

logger = setup_logging('fileshare')

# (status, code) for errors whose message is safe to return as-is
CLIENT_ERRORS = [
    (LoginFailedError, 401, "INVALID_LOGIN"),
    (UserAlreadyExistsError, 400, "USER_ALREADY_EXISTS"),
    (UnknownGranteeError, 400, "UNKNOWN_GRANTEE"),
    (InvalidUploadError, 400, "INVALID_UPLOAD"),
    (UnsupportedMediaTypeError, 415, "UNSUPPORTED_MEDIA_TYPE"),
    (UploadTooLargeError, 413, "UPLOAD_TOO_LARGE"),
    (ForbiddenError, 403, "FORBIDDEN"),
    (FileRecordNotFoundError, 404, "FILE_NOT_FOUND"),
    (StoredBytesMissingError, 404, "STORED_BYTES_MISSING"),
    (TokenNotFoundError, 404, "TOKEN_NOT_FOUND"),
    (TokenExpiredError, 410, "TOKEN_EXPIRED"),
]


def _request_id(request: Request) -> str:
    return getattr(request.state, 'request_id', 'unknown')


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Open the metadata store on startup and close it on shutdown.
    """
    services = app.state.services
    logger.info("File sharing service starting up...")
    if app.state.settings.uses_default_jwt_secret:
        logger.warning("FILESHARE_JWT_SECRET is not set; credentials are signed with the built-in default key")

    services.database.initialize()
    services.storage.ensure_root()
    logger.info("Database and storage initialized")

    yield

    logger.info("File sharing service shutting down...")
    services.database.close()


async def log_requests(request: Request, call_next):
    """
    Middleware to log all HTTP requests and responses.
    """
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()

    logger.info(f"Request started: {request.method} {request.url.path} [request_id={request_id}]")

    response = await call_next(request)

    duration = time.time() - start_time
    user_id = getattr(request.state, 'user_id', None)

    logger.info(
        f"Request completed: {request.method} {request.url.path} "
        f"status={response.status_code} duration={duration:.3f}s "
        f"[request_id={request_id}] [user_id={user_id or 'anonymous'}]"
    )

    response.headers["X-Request-ID"] = request_id

    return response


async def authentication_error_handler(request: Request, exc: AuthenticationError):
    # the rejection kind is logged only; every kind gets the same response
    logger.warning(
        f"Authentication rejected: {type(exc).__name__}: {exc} "
        f"[request_id={_request_id(request)}] path={request.url.path}"
    )
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": "Authentication required", "code": "UNAUTHENTICATED", "requires_auth": True},
        headers={"WWW-Authenticate": "Bearer"},
    )


def _client_error_handler(status_code: int, code: str):
    async def handler(request: Request, exc: FileShareException):
        user_id = getattr(request.state, 'user_id', 'anonymous')
        logger.warning(
            f"{type(exc).__name__}: {exc} [request_id={_request_id(request)}] "
            f"[user_id={user_id}] path={request.url.path}"
        )
        return JSONResponse(status_code=status_code, content=ErrorResponse(detail=str(exc), code=code).model_dump())

    return handler


async def storage_failure_handler(request: Request, exc: StorageFailureError):
    logger.error(
        f"Storage failure: {exc} [request_id={_request_id(request)}] path={request.url.path}",
        exc_info=True
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Storage operation failed", "code": "STORAGE_FAILURE"}
    )


async def database_not_ready_handler(request: Request, exc: DatabaseNotReadyError):
    logger.error(f"Database not ready: {exc} [request_id={_request_id(request)}] path={request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Service not ready", "code": "DATABASE_NOT_READY"}
    )


async def fileshare_exception_handler(request: Request, exc: FileShareException):
    logger.error(
        f"Unhandled file sharing error: {exc} [request_id={_request_id(request)}] path={request.url.path}",
        exc_info=True
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error", "code": "INTERNAL_ERROR"}
    )


def create_app(settings: Optional[Settings] = None, clock: Clock = utc_now) -> FastAPI:
    """
    Build the FastAPI application around its own service container.

    Args:
        settings: Configuration; defaults to environment-derived settings
        clock: Time source for link expiry and record timestamps
    """
    settings = settings or Settings.from_env()

    app = FastAPI(
        title="File Sharing Service",
        description="File uploads with per-user grants and expiring share links",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.services = build_services(settings, clock=clock)

    app.middleware("http")(log_requests)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Content-Disposition"],
    )

    app.add_exception_handler(AuthenticationError, authentication_error_handler)
    for exc_class, status_code, code in CLIENT_ERRORS:
        app.add_exception_handler(exc_class, _client_error_handler(status_code, code))
    app.add_exception_handler(StorageFailureError, storage_failure_handler)
    app.add_exception_handler(DatabaseNotReadyError, database_not_ready_handler)
    app.add_exception_handler(FileShareException, fileshare_exception_handler)

    app.include_router(auth_router)
    app.include_router(file_router)
    app.include_router(share_router)

    @app.get("/")
    async def root():
        """
        Root endpoint for health check.
        """
        return {"message": "File Sharing Service API", "status": "running"}

    @app.get("/health")
    async def health_check():
        """
        Liveness check; returns 200 while the process is serving.
        """
        return {"status": "healthy", "service": "fileshare"}

    @app.get("/ready")
    async def ready_check(request: Request):
        """
        Readiness check.
        Verifies the database answers queries and the storage directory exists.
        """
        services = request.app.state.services

        try:
            with services.database.connection() as conn:
                conn.execute("SELECT 1")
            db_status = "ok"
        except Exception as e:
            db_status = f"error: {str(e)}"

        storage_status = "ok" if services.storage.root.is_dir() else "error: storage directory missing"

        ready = db_status == "ok" and storage_status == "ok"
        status_code = status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE

        return JSONResponse(
            status_code=status_code,
            content={
                "ready": ready,
                "database": db_status,
                "database_state": services.database.state.value,
                "storage": storage_status,
            }
        )

    return app


app = create_app()


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    uvicorn.run(
        "fileshare.main:app",
        host=SERVER_HOST,
        port=SERVER_PORT,
    )


if __name__ == "__main__":
    main()
