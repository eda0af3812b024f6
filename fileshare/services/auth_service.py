"""Authentication service for business logic."""

from typing import List, Optional, Tuple

from common.logging_config import get_logger
from fileshare.auth import CredentialVerifier, hash_password, verify_password
from fileshare.exceptions import LoginFailedError, UserAlreadyExistsError
from fileshare.repositories.user_repository import User, UserRepository
from fileshare.utils import Clock, generate_uuid, utc_now

logger = get_logger(__name__)


class AuthService:
    def __init__(self, user_repo: UserRepository, verifier: CredentialVerifier, clock: Clock = utc_now):
        self.user_repo = user_repo
        self.verifier = verifier
        self.clock = clock

    def register_user(self, name: str, email: str, password: str) -> Tuple[str, User]:
        email = email.strip().lower()
        logger.info(f"Attempting to register user: {email}")

        if self.user_repo.get_by_email(email) is not None:
            logger.warning(f"Registration failed: email '{email}' already exists")
            raise UserAlreadyExistsError("User already exists with this email")

        # the UNIQUE NOCASE constraint still guards a concurrent duplicate
        user = self.user_repo.create_user(
            user_id=generate_uuid(),
            name=name.strip(),
            email=email,
            password_hash=hash_password(password),
            created_at=self.clock(),
        )
        logger.info(f"Successfully registered user: {email} [user_id={user.user_id}]")

        return self.verifier.issue(user.user_id), user

    def login_user(self, email: str, password: str) -> Tuple[str, User]:
        email = email.strip().lower()
        logger.info(f"Login attempt for user: {email}")

        user = self.user_repo.get_by_email(email)
        if user is None:
            logger.warning(f"Login failed: email '{email}' not found")
            raise LoginFailedError("Invalid email or password")

        if not verify_password(password, user.password_hash):
            logger.warning(f"Login failed: invalid password for email '{email}'")
            raise LoginFailedError("Invalid email or password")

        logger.info(f"Successfully logged in user: {email} [user_id={user.user_id}]")
        return self.verifier.issue(user.user_id), user

    def list_users(self, exclude_user_id: Optional[str] = None) -> List[User]:
        return self.user_repo.list_users(exclude_user_id=exclude_user_id)
