"""Authentication and security utilities."""

import time
from typing import Optional

import bcrypt
import jwt
from fastapi import Header, Request

from common.constants import CREDENTIAL_ALGORITHM, CREDENTIAL_TTL_SECONDS, MAX_PASSWORD_BYTES
from common.logging_config import get_logger
from fileshare.exceptions import (
    ExpiredCredentialError,
    InvalidCredentialError,
    MissingCredentialError,
    UnknownSubjectError,
)
from fileshare.repositories.user_repository import User, UserRepository

logger = get_logger(__name__)

BEARER_SCHEME = "bearer"


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password to hash

    Returns:
        Bcrypt hash of the password
    """
    password_bytes = password.encode('utf-8')
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password_bytes, salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify a password against a bcrypt hash.

    Args:
        password: Plain text password to verify
        password_hash: Bcrypt hash to verify against

    Returns:
        True if password matches hash, False otherwise
    """
    password_bytes = password.encode('utf-8')
    if len(password_bytes) > MAX_PASSWORD_BYTES:
        return False
    hash_bytes = password_hash.encode('utf-8')
    return bcrypt.checkpw(password_bytes, hash_bytes)


def extract_bearer_token(authorization: Optional[str]) -> str:
    """
    Pull the credential out of an ``Authorization: Bearer <credential>`` header.

    Raises:
        MissingCredentialError: Header absent, wrong scheme, or empty credential
    """
    if not authorization:
        raise MissingCredentialError("No authorization header")

    scheme, _, credential = authorization.strip().partition(" ")
    if scheme.lower() != BEARER_SCHEME:
        raise MissingCredentialError("Authorization scheme is not Bearer")

    credential = credential.strip()
    if not credential:
        raise MissingCredentialError("Empty bearer credential")
    return credential


class CredentialVerifier:
    """
    Issues and verifies signed session credentials (HS256 JWTs).

    Verification is read-only: it checks signature, structure and expiry,
    then resolves the ``sub`` claim against the user store.
    """

    def __init__(
        self,
        user_repo: UserRepository,
        secret: str,
        ttl_seconds: int = CREDENTIAL_TTL_SECONDS,
        algorithm: str = CREDENTIAL_ALGORITHM,
    ):
        self.user_repo = user_repo
        self._secret = secret
        self.ttl_seconds = ttl_seconds
        self.algorithm = algorithm

    def issue(self, user_id: str) -> str:
        now = int(time.time())
        payload = {
            "sub": user_id,
            "iat": now,
            "exp": now + self.ttl_seconds,
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def decode(self, credential: str) -> str:
        """
        Validate a credential and return its subject id.

        Raises:
            ExpiredCredentialError: Signature valid but past expiry
            InvalidCredentialError: Bad signature, malformed token, or missing claims
        """
        try:
            payload = jwt.decode(
                credential,
                self._secret,
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise ExpiredCredentialError("Credential expired") from e
        except jwt.InvalidTokenError as e:
            raise InvalidCredentialError(f"Invalid credential: {e}") from e

        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            raise InvalidCredentialError("Credential has no subject")
        return subject

    def verify(self, authorization: Optional[str]) -> User:
        """
        Resolve an Authorization header value to the user it identifies.

        Raises:
            MissingCredentialError, InvalidCredentialError,
            ExpiredCredentialError, UnknownSubjectError
        """
        credential = extract_bearer_token(authorization)
        user_id = self.decode(credential)

        user = self.user_repo.get_by_id(user_id)
        if user is None:
            raise UnknownSubjectError(f"No user for credential subject {user_id}")
        return user


async def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(None),
) -> User:
    """
    FastAPI dependency to validate the bearer credential and attach the user.

    Args:
        authorization: Authorization header value (format: "Bearer <credential>")

    Returns:
        The authenticated user; its id is also stored on ``request.state.user_id``

    Raises:
        AuthenticationError: Any credential rejection (rendered as a uniform 401)
    """
    verifier: CredentialVerifier = request.app.state.services.credential_verifier
    user = verifier.verify(authorization)
    request.state.user_id = user.user_id
    return user
