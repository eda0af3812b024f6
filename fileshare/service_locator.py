"""Wiring of repositories and services for one application instance."""

from dataclasses import dataclass

from fastapi import Request

from fileshare.auth import CredentialVerifier
from fileshare.config import Settings
from fileshare.database import Database
from fileshare.repositories.file_repository import FileRepository
from fileshare.repositories.grant_repository import GrantRepository
from fileshare.repositories.user_repository import UserRepository
from fileshare.services.auth_service import AuthService
from fileshare.services.file_service import FileService
from fileshare.services.grant_service import GrantStore
from fileshare.services.share_link_service import ShareLinkManager
from fileshare.storage import DiskByteStorage
from fileshare.utils import Clock, utc_now


@dataclass
class ServiceContainer:
    database: Database
    storage: DiskByteStorage
    user_repo: UserRepository
    file_repo: FileRepository
    credential_verifier: CredentialVerifier
    auth_service: AuthService
    grant_store: GrantStore
    share_links: ShareLinkManager
    file_service: FileService


def build_services(settings: Settings, clock: Clock = utc_now) -> ServiceContainer:
    """
    Construct every component around one database handle and byte store.

    Nothing touches disk here; the database becomes usable once the
    application lifespan calls ``initialize``.
    """
    database = Database(settings.database_path)
    storage = DiskByteStorage(settings.storage_path)

    user_repo = UserRepository(database)
    grant_repo = GrantRepository(database)
    file_repo = FileRepository(database, grant_repo)

    verifier = CredentialVerifier(
        user_repo,
        secret=settings.jwt_secret,
        ttl_seconds=settings.credential_ttl_seconds,
    )
    grant_store = GrantStore(database, file_repo, grant_repo, clock=clock)

    return ServiceContainer(
        database=database,
        storage=storage,
        user_repo=user_repo,
        file_repo=file_repo,
        credential_verifier=verifier,
        auth_service=AuthService(user_repo, verifier, clock=clock),
        grant_store=grant_store,
        share_links=ShareLinkManager(file_repo, user_repo, grant_store, clock=clock),
        file_service=FileService(
            database,
            file_repo,
            grant_store,
            storage,
            clock=clock,
            max_upload_bytes=settings.max_upload_bytes,
        ),
    )


def get_services(request: Request) -> ServiceContainer:
    """FastAPI dependency returning the application's service container."""
    return request.app.state.services
